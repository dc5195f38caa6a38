"""
Repository for persona assignments.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime

from spendsense.db.repositories.base import BaseRepository
from spendsense.models.persona import PersonaAssignment

logger = logging.getLogger(__name__)


class PersonaRepository(BaseRepository):
    """Append-only access to ``persona_assignments``."""

    def append(self, assignments: list[PersonaAssignment]) -> int:
        if not assignments:
            return 0
        self.executemany(
            """
            INSERT INTO persona_assignments (
                user_id, persona_type, priority, rationale,
                matched_criteria, signal_window, assigned_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?);
            """,
            [
                (
                    a.user_id,
                    a.persona_type.value,
                    a.priority,
                    a.rationale,
                    json.dumps(a.matched_criteria),
                    a.signal_window,
                    a.assigned_at.isoformat(),
                )
                for a in assignments
            ],
        )
        return len(assignments)

    def get_for_user(self, user_id: str) -> list[PersonaAssignment]:
        """A user's assignments, sorted by priority (primary first)."""
        rows = self.fetchall(
            """
            SELECT * FROM persona_assignments
            WHERE user_id = ?
            ORDER BY priority, assignment_id;
            """,
            (user_id,),
        )
        return [_row_to_assignment(r) for r in rows]

    def count_users_with_persona(self) -> int:
        row = self.fetchone(
            "SELECT COUNT(DISTINCT user_id) AS n FROM persona_assignments;"
        )
        return int(row["n"]) if row else 0


def _row_to_assignment(row: sqlite3.Row) -> PersonaAssignment:
    return PersonaAssignment(
        user_id=row["user_id"],
        persona_type=row["persona_type"],
        priority=row["priority"],
        rationale=row["rationale"],
        matched_criteria=json.loads(row["matched_criteria"]),
        signal_window=row["signal_window"],
        assigned_at=datetime.fromisoformat(row["assigned_at"]),
    )
