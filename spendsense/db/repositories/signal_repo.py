"""
Repository for computed signal results.

One current row per ``(user_id, signal_window)``: saving a recomputed result
replaces the previous one outright. ``computed_at`` lives only in the table,
never in the serialized ``SignalResult``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from spendsense.db.repositories.base import BaseRepository
from spendsense.models.signal import SignalResult
from spendsense.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class SignalRepository(BaseRepository):
    """Read/write access to ``signal_results``."""

    def save(self, result: SignalResult, computed_at: Optional[datetime] = None) -> None:
        self.execute(
            """
            INSERT OR REPLACE INTO signal_results (
                user_id, signal_window, as_of, payload_json, computed_at
            ) VALUES (?, ?, ?, ?, ?);
            """,
            (
                result.user_id,
                result.window,
                result.as_of.isoformat(),
                result.model_dump_json(),
                (computed_at or utcnow()).isoformat(),
            ),
        )

    def get(self, user_id: str, window: str) -> Optional[SignalResult]:
        row = self.fetchone(
            "SELECT payload_json FROM signal_results WHERE user_id = ? AND signal_window = ?;",
            (user_id, window),
        )
        return SignalResult.model_validate_json(row["payload_json"]) if row else None

    def get_all(self, window: Optional[str] = None) -> list[SignalResult]:
        """All stored results, optionally for one window, ordered by user."""
        if window:
            rows = self.fetchall(
                """
                SELECT payload_json FROM signal_results
                WHERE signal_window = ?
                ORDER BY user_id;
                """,
                (window,),
            )
        else:
            rows = self.fetchall(
                "SELECT payload_json FROM signal_results ORDER BY user_id, signal_window;"
            )
        return [SignalResult.model_validate_json(r["payload_json"]) for r in rows]
