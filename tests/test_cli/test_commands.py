"""End-to-end tests for the Typer CLI against a temporary workspace."""

from __future__ import annotations

import json
import logging

import pytest
from typer.testing import CliRunner

from conftest import make_accounts, make_card_liability, make_transactions, make_user
from spendsense.cli import app
from spendsense.db.connection import get_connection
from spendsense.db.storage import SQLiteStorage
from spendsense.ingestion.dataset_loader import Dataset

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def workspace(tmp_path):
    db_path = tmp_path / "cli.db"
    config_path = tmp_path / "cli.toml"
    config_path.write_text(
        f'[database]\ndb_path = "{db_path.as_posix()}"\n\n'
        f'[data]\nprocessed_dir = "{(tmp_path / "exports").as_posix()}"\n\n'
        '[content]\nenabled = false\n\n'
        f'[logging]\nlevel = "WARNING"\nlog_file = "{(tmp_path / "cli.log").as_posix()}"\n',
        encoding="utf-8",
    )
    dataset = Dataset(
        users=[make_user("u001"), make_user("u002", consent=False)],
        accounts=make_accounts("u001", card_balance=4000.0),
        transactions=make_transactions("u001"),
        liabilities=[make_card_liability("u001", last_payment=75.0)],
    )
    dataset_path = tmp_path / "dataset.json"
    dataset_path.write_text(dataset.model_dump_json(), encoding="utf-8")
    return {"db": str(db_path), "config": str(config_path), "dataset": str(dataset_path),
            "root": tmp_path}


def _invoke(workspace, *args: str):
    return runner.invoke(app, [*args, "--config", workspace["config"]])


@pytest.fixture
def processed(workspace):
    assert _invoke(workspace, "init-db").exit_code == 0
    assert _invoke(workspace, "import-data", "--file", workspace["dataset"]).exit_code == 0
    result = _invoke(workspace, "process-users", "--as-of", "2024-06-30")
    assert result.exit_code == 0, result.output
    return workspace


class TestSetupCommands:
    def test_init_db(self, workspace):
        result = _invoke(workspace, "init-db")
        assert result.exit_code == 0
        assert "[OK] Database ready." in result.output

    def test_validate_config(self, workspace):
        result = _invoke(workspace, "validate-config", "--full")
        assert result.exit_code == 0
        assert "Persona window:   180d" in result.output

    def test_missing_config(self, tmp_path):
        result = runner.invoke(app, ["validate-config", "--config", str(tmp_path / "no.toml")])
        assert result.exit_code == 1

    def test_import_dry_run(self, workspace):
        _invoke(workspace, "init-db")
        result = _invoke(workspace, "import-data", "--file", workspace["dataset"], "--dry-run")
        assert result.exit_code == 0
        assert "[DRY RUN] 25 records valid" in result.output

    def test_import_missing_file(self, workspace):
        _invoke(workspace, "init-db")
        result = _invoke(workspace, "import-data", "--file", "missing.json")
        assert result.exit_code == 1


class TestPipelineCommands:
    def test_process_users_summary(self, workspace):
        _invoke(workspace, "init-db")
        _invoke(workspace, "import-data", "--file", workspace["dataset"])
        result = _invoke(workspace, "process-users", "--as-of", "2024-06-30")
        assert result.exit_code == 0
        assert "total=2 processed=1 skipped=1 failed=0" in result.output

    def test_bad_as_of(self, workspace):
        result = _invoke(workspace, "process-users", "--as-of", "June")
        assert result.exit_code == 1

    def test_show_user(self, processed):
        result = _invoke(processed, "show-user", "u001")
        assert result.exit_code == 0
        assert "HIGH_UTILIZATION" in result.output
        assert "Reduce Credit Card Utilization" in result.output

    def test_show_unknown_user(self, processed):
        assert _invoke(processed, "show-user", "ghost").exit_code == 1

    def test_metrics_json(self, processed):
        result = _invoke(processed, "metrics", "--json")
        assert result.exit_code == 0
        payload = json.loads(result.output[result.output.index("{"):])
        assert payload["total_users"] == 2
        assert payload["users_with_persona"] == 1
        assert payload["recommendations_by_status"]["pending"] == 2

    def test_export(self, processed):
        result = _invoke(processed, "export", "--format", "json")
        assert result.exit_code == 0
        exports = processed["root"] / "exports"
        assert (exports / "signals.parquet").exists()
        assert len(json.loads((exports / "recommendations.json").read_text())) == 2

    def test_export_bad_format(self, processed):
        assert _invoke(processed, "export", "--format", "xml").exit_code == 1


class TestOperatorCommands:
    def test_consent_grant_and_revoke(self, processed):
        assert _invoke(processed, "consent", "grant", "u002").exit_code == 0
        assert _invoke(processed, "consent", "revoke", "u001").exit_code == 0
        with get_connection(processed["db"]) as conn:
            storage = SQLiteStorage(conn)
            assert storage.get_user("u002").has_consent
            assert not storage.get_user("u001").has_consent

    def test_consent_unknown_user(self, processed):
        assert _invoke(processed, "consent", "grant", "ghost").exit_code == 1

    def test_review_flow(self, processed):
        with get_connection(processed["db"]) as conn:
            rec_id = SQLiteStorage(conn).get_recommendations("u001")[0].recommendation_id

        result = _invoke(processed, "review", rec_id, "approve", "--operator", "op_1")
        assert result.exit_code == 0
        assert f"{rec_id} is now approved" in result.output

        again = _invoke(processed, "review", rec_id, "reject", "--operator", "op_1")
        assert again.exit_code == 1

    def test_review_unknown_action(self, processed):
        result = _invoke(processed, "review", "rec_x", "escalate", "--operator", "op_1")
        assert result.exit_code == 1
