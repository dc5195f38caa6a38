"""
Repository for recommendations and the operator review audit log.

The full ``Recommendation`` (offers, decision trace) is stored as JSON in
``payload_json``; ``status`` is duplicated into its own column for
filtering and is the authoritative value on read.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from spendsense.db.repositories.base import BaseRepository
from spendsense.models.recommendation import OperatorAction, Recommendation
from spendsense.taxonomy.offer_taxonomy import RecommendationStatus

logger = logging.getLogger(__name__)


class RecommendationRepository(BaseRepository):
    """Read/write access to ``recommendations`` and ``operator_actions``."""

    def insert(self, rec: Recommendation) -> None:
        """Insert a new recommendation.

        Raises:
            sqlite3.IntegrityError: If ``rec.recommendation_id`` already exists.
        """
        self.execute(
            """
            INSERT INTO recommendations (
                recommendation_id, user_id, persona_type, status, payload_json, created_at
            ) VALUES (?, ?, ?, ?, ?, ?);
            """,
            (
                rec.recommendation_id,
                rec.user_id,
                rec.persona_type.value,
                rec.status.value,
                rec.model_dump_json(),
                rec.created_at.isoformat(),
            ),
        )

    def get(self, recommendation_id: str) -> Optional[Recommendation]:
        row = self.fetchone(
            "SELECT status, payload_json FROM recommendations WHERE recommendation_id = ?;",
            (recommendation_id,),
        )
        return _row_to_recommendation(row) if row else None

    def get_for_user(self, user_id: str) -> list[Recommendation]:
        rows = self.fetchall(
            """
            SELECT status, payload_json FROM recommendations
            WHERE user_id = ?
            ORDER BY created_at, recommendation_id;
            """,
            (user_id,),
        )
        return [_row_to_recommendation(r) for r in rows]

    def get_all(self, status: Optional[RecommendationStatus] = None) -> list[Recommendation]:
        if status is not None:
            rows = self.fetchall(
                """
                SELECT status, payload_json FROM recommendations
                WHERE status = ?
                ORDER BY user_id, created_at;
                """,
                (RecommendationStatus(status).value,),
            )
        else:
            rows = self.fetchall(
                "SELECT status, payload_json FROM recommendations ORDER BY user_id, created_at;"
            )
        return [_row_to_recommendation(r) for r in rows]

    def update(self, rec: Recommendation) -> None:
        """Persist the current state (status and payload) of ``rec``."""
        cur = self.execute(
            """
            UPDATE recommendations SET status = ?, payload_json = ?
            WHERE recommendation_id = ?;
            """,
            (rec.status.value, rec.model_dump_json(), rec.recommendation_id),
        )
        if cur.rowcount == 0:
            raise KeyError(f"Recommendation '{rec.recommendation_id}' not found.")

    def count_by_status(self) -> dict[str, int]:
        rows = self.fetchall(
            "SELECT status, COUNT(*) AS n FROM recommendations GROUP BY status ORDER BY status;"
        )
        counts = {s.value: 0 for s in RecommendationStatus}
        counts.update({r["status"]: int(r["n"]) for r in rows})
        return counts

    # ── Operator actions ─────────────────────────────────────────────────────

    def insert_action(self, action: OperatorAction) -> int:
        self.execute(
            """
            INSERT INTO operator_actions (
                operator_id, action, recommendation_id, reason, created_at
            ) VALUES (?, ?, ?, ?, ?);
            """,
            (
                action.operator_id,
                action.action.value,
                action.recommendation_id,
                action.reason,
                action.created_at.isoformat(),
            ),
        )
        return self.last_insert_rowid()

    def get_actions(self, recommendation_id: str) -> list[OperatorAction]:
        rows = self.fetchall(
            """
            SELECT * FROM operator_actions
            WHERE recommendation_id = ?
            ORDER BY action_id;
            """,
            (recommendation_id,),
        )
        return [OperatorAction.model_validate(dict(r)) for r in rows]


def _row_to_recommendation(row: sqlite3.Row) -> Recommendation:
    rec = Recommendation.model_validate_json(row["payload_json"])
    if rec.status != row["status"]:
        rec.status = RecommendationStatus(row["status"])
    return rec
