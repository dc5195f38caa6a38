"""
AssignPersonasStage - assign personas from already-stored signals.

Covers users whose persona-window ``SignalResult`` exists but who have no
persona assignments yet (e.g. signals computed by an earlier, partial run).
Users without stored signals are left alone; ``process-users`` computes
those. Consent is checked here too.

Each user commits on its own; a user whose stored signals cannot be read or
assigned is rolled back, logged and listed in ``failed_users``.
Returns the number of users that received assignments.
"""

from __future__ import annotations

import logging

from spendsense.models.meta import RunMetadata
from spendsense.pipeline.base import PipelineStage

logger = logging.getLogger(__name__)


class AssignPersonasStage(PipelineStage):
    """Assign personas to every consenting user with signals and no personas."""

    stage_name = "assign_personas"

    def __init__(self, config, db_path: str | None = None) -> None:
        super().__init__(config, db_path=db_path)
        self.failed_users: list[str] = []

    def _execute(self, run: RunMetadata, **kwargs) -> int:
        from spendsense.db.schema import apply_schema
        from spendsense.db.storage import SQLiteStorage

        window = self.config.signals.persona_window
        assigned_users = 0
        self.failed_users = []

        with self._connect() as conn:
            apply_schema(conn)
            storage = SQLiteStorage(conn)
            for user in storage.list_users():
                if not user.consent_status.active:
                    continue
                try:
                    if self._assign_user(storage, user.user_id, window):
                        assigned_users += 1
                    conn.commit()
                except Exception as exc:
                    conn.rollback()
                    logger.error("Failed to assign personas for %s: %s", user.user_id, exc)
                    self.failed_users.append(user.user_id)

        if self.failed_users:
            logger.warning(
                "%d user(s) failed persona assignment: %s",
                len(self.failed_users), ", ".join(self.failed_users),
            )
        return assigned_users

    def _assign_user(self, storage, user_id: str, window: str) -> bool:
        from spendsense.personas import assign_personas

        if storage.get_personas(user_id):
            return False
        signals = storage.get_signals(user_id, window)
        if signals is None:
            logger.debug("No %s signals for %s; skipping.", window, user_id)
            return False

        assignments = assign_personas(user_id, signals)
        if not assignments:
            logger.info("No persona matched for %s.", user_id)
            return False
        storage.append_personas(assignments)
        logger.info(
            "Assigned %s to %s",
            ", ".join(a.persona_type.value for a in assignments), user_id,
        )
        return True
