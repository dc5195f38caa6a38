"""
ProcessUsersStage - the full per-user flow.

For each user (sequentially):
  1. Consent gate: users without active consent are skipped untouched.
  2. Signals for every configured window. A stored result is reused unless
     ``force=True``, in which case it is recomputed and overwritten.
  3. Personas from the persona-window signals, unless the user already has
     assignments (assignments are append-only and never duplicated).
  4. Recommendations, unless the user already has some: generated by the
     engine, each passed through the guardrail pipeline. Only passing
     recommendations are persisted; failures are logged and dropped.

Each user's writes are committed on success and rolled back on failure, so
one user's error never leaves partial rows or stops the batch. A user whose
signals, personas and recommendations all already existed counts as
skipped.

Returns the number of users processed (not skipped, not failed). The full
``BatchResult`` is available on ``stage.last_result`` after ``run()``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from spendsense.models.meta import RunMetadata
from spendsense.models.user import User
from spendsense.pipeline.base import PipelineStage
from spendsense.recommendations.content import ContentGenerator

logger = logging.getLogger(__name__)


@dataclass
class UserProcessingResult:
    """Outcome for one user in a batch.

    ``status`` is one of ``processed``, ``skipped``, ``no_consent``, ``failed``.
    """

    user_id: str
    status: str
    signal_windows: list[str] = field(default_factory=list)
    personas: list[str] = field(default_factory=list)
    recommendations_saved: int = 0
    recommendations_blocked: int = 0
    error: Optional[str] = None


@dataclass
class BatchResult:
    """Aggregate outcome of a ``ProcessUsersStage`` run."""

    total: int = 0
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
    results: list[UserProcessingResult] = field(default_factory=list)

    def add(self, result: UserProcessingResult) -> None:
        self.results.append(result)
        self.total += 1
        if result.status == "processed":
            self.processed += 1
        elif result.status == "failed":
            self.failed += 1
            self.errors.append(f"{result.user_id}: {result.error}")
        else:
            self.skipped += 1


class ProcessUsersStage(PipelineStage):
    """Compute signals, personas and guarded recommendations for users."""

    stage_name = "process_users"

    def __init__(
        self,
        config,
        db_path: str | None = None,
        content_generator: Optional[ContentGenerator] = None,
    ) -> None:
        super().__init__(config, db_path)
        self.content_generator = content_generator
        self.last_result: Optional[BatchResult] = None

    def _execute(
        self,
        run: RunMetadata,
        user_ids: Optional[list[str]] = None,
        force: bool = False,
        as_of: Optional[date] = None,
        **kwargs,
    ) -> int:
        """Process ``user_ids`` (default: every user).

        Args:
            run: In-progress run record.
            user_ids: Restrict the batch to these users.
            force: Recompute stored signals.
            as_of: Signal window end date; defaults to today (UTC).

        Returns:
            Number of users processed.
        """
        from spendsense.db.schema import apply_schema
        from spendsense.db.storage import SQLiteStorage
        from spendsense.recommendations.content import build_content_generator
        from spendsense.utils.time_utils import today_utc

        as_of = as_of or today_utc()
        generator = self.content_generator or build_content_generator(self.config.content)
        batch = BatchResult()

        with self._connect() as conn:
            apply_schema(conn)
            storage = SQLiteStorage(conn)
            users = storage.list_users()
            if user_ids is not None:
                wanted = set(user_ids)
                users = [u for u in users if u.user_id in wanted]
                missing = wanted - {u.user_id for u in users}
                for user_id in sorted(missing):
                    logger.warning("Unknown user %s; skipping.", user_id)

            logger.info("Processing %d user(s) as of %s", len(users), as_of)
            for user in users:
                try:
                    result = self._process_user(storage, user, as_of, force, generator)
                    conn.commit()
                except Exception as exc:
                    conn.rollback()
                    logger.error("Failed to process user %s: %s", user.user_id, exc)
                    result = UserProcessingResult(
                        user_id=user.user_id, status="failed", error=str(exc)
                    )
                batch.add(result)

        self.last_result = batch
        logger.info(
            "Batch complete: %d processed, %d skipped, %d failed (of %d)",
            batch.processed, batch.skipped, batch.failed, batch.total,
        )
        return batch.processed

    def _process_user(
        self,
        storage,
        user: User,
        as_of: date,
        force: bool,
        generator: ContentGenerator,
    ) -> UserProcessingResult:
        from spendsense.guardrails import apply_guardrails
        from spendsense.personas import assign_personas
        from spendsense.recommendations import generate_recommendations
        from spendsense.signals import detect_signals

        if not user.consent_status.active:
            logger.info("User %s has no active consent; skipping.", user.user_id)
            return UserProcessingResult(user_id=user.user_id, status="no_consent")

        cfg = self.config
        result = UserProcessingResult(user_id=user.user_id, status="skipped")
        did_work = False

        # ── Signals ──────────────────────────────────────────────────────────
        signals_by_window = {}
        accounts = transactions = liabilities = None
        for window in cfg.signals.windows:
            existing = None if force else storage.get_signals(user.user_id, window)
            if existing is not None:
                signals_by_window[window] = existing
                continue
            if accounts is None:
                accounts = storage.get_accounts(user.user_id)
                transactions = storage.get_transactions(user.user_id, end_date=as_of)
                liabilities = storage.get_liabilities(user.user_id)
            computed = detect_signals(user, accounts, transactions, liabilities, window, as_of)
            storage.save_signals(computed)
            signals_by_window[window] = computed
            result.signal_windows.append(window)
            did_work = True

        persona_signals = signals_by_window[cfg.signals.persona_window]

        # ── Personas ─────────────────────────────────────────────────────────
        personas = storage.get_personas(user.user_id)
        if not personas:
            personas = assign_personas(user.user_id, persona_signals)
            if personas:
                storage.append_personas(personas)
                did_work = True
        result.personas = [p.persona_type.value for p in personas]

        # ── Recommendations ──────────────────────────────────────────────────
        if personas and not storage.get_recommendations(user.user_id):
            candidates = asyncio.run(generate_recommendations(
                user,
                persona_signals,
                personas,
                target_count=cfg.recommendations.target_count,
                content_generator=generator,
                confidence=cfg.recommendations.confidence,
            ))
            for rec in candidates:
                outcome = apply_guardrails(rec, user, persona_signals)
                if outcome.passed:
                    storage.append_recommendation(outcome.recommendation)
                    result.recommendations_saved += 1
                else:
                    logger.warning(
                        "Dropping recommendation %s for %s: %s",
                        rec.recommendation_id, user.user_id,
                        "; ".join(f.reason or f.name for f in outcome.failures),
                    )
                    result.recommendations_blocked += 1
            did_work = True

        if did_work:
            result.status = "processed"
        return result
