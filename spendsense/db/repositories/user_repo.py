"""
Repository for users and their consent records.

``User.consent_status`` is not a column on ``users``; it is joined in from
``consents`` on every read so the consent table stays the single source.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Optional

from spendsense.db.repositories.base import BaseRepository
from spendsense.models.user import Consent, ConsentStatus, User

logger = logging.getLogger(__name__)

_SELECT_USER = """
SELECT u.user_id, u.email, u.first_name, u.last_name, u.created_at,
       c.active, c.granted_at, c.revoked_at
FROM users u
LEFT JOIN consents c ON c.user_id = u.user_id
"""


class UserRepository(BaseRepository):
    """Read/write access to ``users`` and ``consents``."""

    def upsert_user(self, user: User) -> None:
        """Insert or update a user and its embedded consent status."""
        self.execute(
            """
            INSERT INTO users (user_id, email, first_name, last_name, created_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                email      = excluded.email,
                first_name = excluded.first_name,
                last_name  = excluded.last_name;
            """,
            (
                user.user_id,
                user.email,
                user.first_name,
                user.last_name,
                user.created_at.isoformat(),
            ),
        )
        status = user.consent_status
        if status.active or status.granted_at or status.revoked_at:
            self.save_consent(Consent(
                user_id=user.user_id,
                active=status.active,
                granted_at=status.granted_at,
                revoked_at=status.revoked_at,
            ))

    def get_user(self, user_id: str) -> Optional[User]:
        row = self.fetchone(_SELECT_USER + " WHERE u.user_id = ?;", (user_id,))
        return _row_to_user(row) if row else None

    def list_users(self) -> list[User]:
        rows = self.fetchall(_SELECT_USER + " ORDER BY u.user_id;")
        return [_row_to_user(r) for r in rows]

    def count_users(self) -> int:
        return self.count("users")

    def count_with_consent(self) -> int:
        row = self.fetchone("SELECT COUNT(*) AS n FROM consents WHERE active = 1;")
        return int(row["n"]) if row else 0

    # ── Consent ──────────────────────────────────────────────────────────────

    def save_consent(self, consent: Consent) -> None:
        """Insert or replace the consent record for ``consent.user_id``."""
        self.execute(
            """
            INSERT OR REPLACE INTO consents (
                user_id, active, granted_at, revoked_at, ip_address, user_agent, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, strftime('%Y-%m-%dT%H:%M:%SZ', 'now'));
            """,
            (
                consent.user_id,
                int(consent.active),
                consent.granted_at.isoformat() if consent.granted_at else None,
                consent.revoked_at.isoformat() if consent.revoked_at else None,
                consent.ip_address,
                consent.user_agent,
            ),
        )

    def get_consent(self, user_id: str) -> Optional[Consent]:
        row = self.fetchone("SELECT * FROM consents WHERE user_id = ?;", (user_id,))
        if row is None:
            return None
        return Consent(
            user_id=row["user_id"],
            active=bool(row["active"]),
            granted_at=_parse_dt(row["granted_at"]),
            revoked_at=_parse_dt(row["revoked_at"]),
            ip_address=row["ip_address"],
            user_agent=row["user_agent"],
        )


# ── Private helpers ────────────────────────────────────────────────────────────

def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        user_id=row["user_id"],
        email=row["email"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        created_at=datetime.fromisoformat(row["created_at"]),
        consent_status=ConsentStatus(
            active=bool(row["active"]) if row["active"] is not None else False,
            granted_at=_parse_dt(row["granted_at"]),
            revoked_at=_parse_dt(row["revoked_at"]),
        ),
    )
