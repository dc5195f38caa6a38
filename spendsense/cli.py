"""
SpendSense - CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Execute the action (DB init, import, pipeline stage, review, ...).
  5. Report the result to stdout.

Install and run::

    pip install -e .
    spendsense --help
    spendsense init-db
    spendsense import-data --file data/raw/dataset.json
    spendsense process-users
    spendsense show-user user_001
    spendsense review rec_0123abcd approve --operator ops_1
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="spendsense",
    help="SpendSense - behavioral signals, personas and guarded recommendations.",
    add_completion=False,
)

consent_app = typer.Typer(help="Grant or revoke a user's data-processing consent.")
app.add_typer(consent_app, name="consent")


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from spendsense.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    from spendsense.utils.logging import configure_logging
    configure_logging(config.logging)


def _connect(config, db_path: Optional[str] = None):
    from spendsense.db.connection import get_connection

    return get_connection(
        db_path or config.database.db_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    )


def _parse_date_or_exit(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        typer.echo(f"[ERROR] Invalid date '{value}' (expected YYYY-MM-DD).", err=True)
        raise typer.Exit(code=1)


_DB_OPTION = typer.Option(None, "--db-path", help="Override DB path from config.")
_CONFIG_OPTION = typer.Option(None, "--config", help="Path to TOML config file.")


# ── Setup ─────────────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = _DB_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Initialize the SQLite database and apply the schema.

    Safe to run multiple times - all DDL uses IF NOT EXISTS.
    """
    from spendsense.db.schema import ALL_TABLE_NAMES, apply_schema

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_path = db_path or config.database.db_path
    typer.echo(f"Initializing database at: {target_path}")
    with _connect(config, db_path) as conn:
        apply_schema(conn)

    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = _CONFIG_OPTION,
    show_full: bool = typer.Option(False, "--full", help="Print the full config as JSON."),
) -> None:
    """Validate the configuration and print the parsed values."""
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:    {config.database.db_path}")
    typer.echo(f"  Signal windows:   {', '.join(config.signals.windows)}")
    typer.echo(f"  Persona window:   {config.signals.persona_window}")
    typer.echo(f"  Target recs:      {config.recommendations.target_count}")
    typer.echo(f"  Content model:    {config.content.model} (enabled={config.content.enabled})")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("import-data")
def import_data(
    dataset_file: Optional[str] = typer.Option(
        None, "--file", "-f", help="Dataset JSON file. Defaults to config.data.dataset_file."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Validate the dataset but do not write to the database."
    ),
    db_path: Optional[str] = _DB_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Import users, accounts, transactions and liabilities from JSON.

    Uses upsert semantics - re-importing the same file changes nothing.
    """
    from pydantic import ValidationError

    from spendsense.pipeline.import_data import ImportDataStage

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    path = Path(dataset_file) if dataset_file else Path(config.data.dataset_file)
    typer.echo(f"Loading dataset from: {path}")
    try:
        run = ImportDataStage(config=config, db_path=db_path).run(path=path, dry_run=dry_run)
    except (FileNotFoundError, ValueError, ValidationError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    if dry_run:
        typer.echo(f"[DRY RUN] {run.rows_processed} records valid; nothing written.")
    else:
        typer.echo(f"[OK] Imported {run.rows_processed} records.")


# ── Pipeline ──────────────────────────────────────────────────────────────────

@app.command("process-users")
def process_users(
    user: Optional[list[str]] = typer.Option(
        None, "--user", "-u", help="User id to process. Repeatable; default is every user."
    ),
    force: bool = typer.Option(
        False, "--force", help="Recompute stored signals (they are overwritten)."
    ),
    as_of: Optional[str] = typer.Option(
        None, "--as-of", help="Signal window end date (YYYY-MM-DD). Defaults to today."
    ),
    db_path: Optional[str] = _DB_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Compute signals, personas and guarded recommendations.

    \b
    Per user:
      1. Skip users without active consent.
      2. Signals for each configured window (reused unless --force).
      3. Personas from the persona window (never duplicated).
      4. Recommendations through the guardrail pipeline (only passing ones saved).
    """
    from spendsense.pipeline.process_users import ProcessUsersStage

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    stage = ProcessUsersStage(config=config, db_path=db_path)
    run = stage.run(user_ids=user or None, force=force, as_of=_parse_date_or_exit(as_of))
    batch = stage.last_result

    typer.echo(f"process-users | status={run.status} | run_slug={run.run_slug}")
    if batch is not None:
        typer.echo(
            f"  total={batch.total} processed={batch.processed} "
            f"skipped={batch.skipped} failed={batch.failed}"
        )
        for err in batch.errors:
            typer.echo(f"  [FAILED] {err}", err=True)
        if batch.failed:
            raise typer.Exit(code=1)
    typer.echo("[OK] Users processed.")


@app.command("assign-personas")
def assign_personas_cmd(
    db_path: Optional[str] = _DB_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Assign personas to consenting users that have signals but no personas."""
    from spendsense.pipeline.assign_personas import AssignPersonasStage

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    run = AssignPersonasStage(config=config, db_path=db_path).run()
    typer.echo(f"[OK] Personas assigned for {run.rows_processed} user(s).")


# ── Inspection ────────────────────────────────────────────────────────────────

@app.command("show-user")
def show_user(
    user_id: str = typer.Argument(..., help="User id."),
    articles: int = typer.Option(3, "--articles", help="Number of articles to show."),
    db_path: Optional[str] = _DB_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Print a user's consent, signals, personas, recommendations and articles."""
    from spendsense.db.storage import SQLiteStorage
    from spendsense.education import top_articles

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _connect(config, db_path) as conn:
        storage = SQLiteStorage(conn)
        user = storage.get_user(user_id)
        if user is None:
            typer.echo(f"[ERROR] User '{user_id}' not found.", err=True)
            raise typer.Exit(code=1)

        typer.echo(f"{user.full_name} <{user.email}> ({user.user_id})")
        typer.echo(f"  Consent: {'active' if user.has_consent else 'not given'}")

        persona_signals = None
        for window in config.signals.windows:
            signals = storage.get_signals(user_id, window)
            if signals is None:
                typer.echo(f"  Signals [{window}]: not computed")
                continue
            if window == config.signals.persona_window:
                persona_signals = signals
            typer.echo(
                f"  Signals [{window}] as of {signals.as_of}: "
                f"util={signals.credit.highest_utilization:.0%} "
                f"recurring={signals.subscription.total_recurring_count} "
                f"savings=${signals.savings.current_savings_balance:,.2f} "
                f"income=${signals.income.estimated_annual_income:,.0f}/yr"
            )

        personas = storage.get_personas(user_id)
        typer.echo("  Personas:")
        for p in personas:
            typer.echo(f"    {p.priority}. {p.persona_type.value}: {p.rationale}")
        if not personas:
            typer.echo("    (none)")

        recs = storage.get_recommendations(user_id)
        typer.echo("  Recommendations:")
        for r in recs:
            typer.echo(f"    [{r.status.value}] {r.recommendation_id} {r.title}")
        if not recs:
            typer.echo("    (none)")

        typer.echo("  Articles:")
        for match in top_articles(user, persona_signals, personas, count=max(articles, 1)):
            typer.echo(
                f"    {match.relevance_score:.2f} {match.article.title}: {match.reason}"
            )


@app.command("metrics")
def metrics(
    as_json: bool = typer.Option(False, "--json", help="Print metrics as JSON."),
    db_path: Optional[str] = _DB_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Print system coverage metrics."""
    from spendsense.db.schema import apply_schema
    from spendsense.reporting.metrics import compute_metrics

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _connect(config, db_path) as conn:
        apply_schema(conn)
        m = compute_metrics(conn)

    if as_json:
        typer.echo(m.model_dump_json(indent=2))
        return

    typer.echo(f"  Users:               {m.total_users}")
    typer.echo(f"  With consent:        {m.users_with_consent}")
    typer.echo(f"  With persona:        {m.users_with_persona} ({m.coverage_percentage}%)")
    typer.echo(f"  Recommendations:     {m.total_recommendations}")
    typer.echo(f"  Avg per user:        {m.average_recommendations_per_user}")
    for status, count in m.recommendations_by_status.items():
        typer.echo(f"    {status:<10} {count}")


@app.command("export")
def export(
    output_dir: Optional[str] = typer.Option(
        None, "--output-dir", help="Directory for export files. Defaults to config.data.processed_dir."
    ),
    fmt: str = typer.Option("csv", "--format", help="Recommendation format: csv or json."),
    db_path: Optional[str] = _DB_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Export signal results (Parquet) and recommendations (CSV or JSON)."""
    from spendsense.db.repositories.recommendation_repo import RecommendationRepository
    from spendsense.db.repositories.signal_repo import SignalRepository
    from spendsense.reporting.export import (
        export_recommendations_csv,
        export_recommendations_json,
        export_signals_parquet,
    )

    if fmt not in ("csv", "json"):
        typer.echo(f"[ERROR] Unknown format '{fmt}' (expected csv or json).", err=True)
        raise typer.Exit(code=1)

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    out = Path(output_dir or config.data.processed_dir)

    with _connect(config, db_path) as conn:
        signals = SignalRepository(conn).get_all()
        recs = RecommendationRepository(conn).get_all()

    sig_path = export_signals_parquet(signals, out / "signals.parquet")
    if fmt == "csv":
        rec_path = export_recommendations_csv(recs, out / "recommendations.csv")
    else:
        rec_path = export_recommendations_json(recs, out / "recommendations.json")

    typer.echo(f"  Signals:          {len(signals)} rows → {sig_path}")
    typer.echo(f"  Recommendations:  {len(recs)} rows → {rec_path}")
    typer.echo("[OK] Export complete.")


# ── Operator actions ──────────────────────────────────────────────────────────

def _set_consent(user_id: str, active: bool, db_path: Optional[str], config_path: Optional[str]) -> None:
    from spendsense.review import set_consent

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    try:
        with _connect(config, db_path) as conn:
            set_consent(conn, user_id, active)
    except KeyError as exc:
        typer.echo(f"[ERROR] {exc.args[0]}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"[OK] Consent {'granted' if active else 'revoked'} for {user_id}.")


@consent_app.command("grant")
def consent_grant(
    user_id: str = typer.Argument(..., help="User id."),
    db_path: Optional[str] = _DB_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Record active consent for a user."""
    _set_consent(user_id, True, db_path, config_path)


@consent_app.command("revoke")
def consent_revoke(
    user_id: str = typer.Argument(..., help="User id."),
    db_path: Optional[str] = _DB_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Revoke a user's consent. Their recommendations stop being generated."""
    _set_consent(user_id, False, db_path, config_path)


@app.command("review")
def review(
    recommendation_id: str = typer.Argument(..., help="Recommendation id."),
    action: str = typer.Argument(..., help="approve, reject or flag."),
    operator: str = typer.Option(..., "--operator", help="Operator id recorded in the audit log."),
    reason: Optional[str] = typer.Option(None, "--reason", help="Optional review note."),
    db_path: Optional[str] = _DB_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Approve, reject or flag a recommendation (with an audit record)."""
    from spendsense.models.recommendation import InvalidStatusTransition
    from spendsense.review import review_recommendation
    from spendsense.taxonomy.offer_taxonomy import OperatorActionType

    valid = [a.value for a in OperatorActionType]
    if action not in valid:
        typer.echo(f"[ERROR] Unknown action '{action}'. Must be one of {valid}.", err=True)
        raise typer.Exit(code=1)

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    try:
        with _connect(config, db_path) as conn:
            rec = review_recommendation(conn, recommendation_id, action, operator, reason)
    except KeyError as exc:
        typer.echo(f"[ERROR] {exc.args[0]}", err=True)
        raise typer.Exit(code=1)
    except InvalidStatusTransition as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"[OK] {recommendation_id} is now {rec.status.value}.")


if __name__ == "__main__":
    app()
