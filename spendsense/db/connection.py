"""
SQLite connection management.

``get_connection()`` yields a connection with foreign keys ON, optional WAL
journaling, a busy timeout and ``sqlite3.Row`` rows. It commits on clean
exit and rolls back on exception.

Usage::

    from spendsense.db.connection import get_connection

    with get_connection("data/db/spendsense.db") as conn:
        SQLiteStorage(conn).list_users()
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

logger = logging.getLogger(__name__)


@contextmanager
def get_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
) -> Generator[sqlite3.Connection, None, None]:
    """Context manager yielding a configured SQLite connection.

    Parent directories of ``db_path`` are created when missing.

    Args:
        db_path: Database file, or ``":memory:"``.
        wal_mode: Enable WAL journaling.
        busy_timeout_ms: How long to wait on a locked database.

    Yields:
        An open ``sqlite3.Connection``.
    """
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=busy_timeout_ms / 1000)
    conn.row_factory = sqlite3.Row

    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute(f"PRAGMA busy_timeout = {busy_timeout_ms};")
        if wal_mode and db_path != ":memory:":
            conn.execute("PRAGMA journal_mode = WAL;")

        yield conn
        conn.commit()

    except Exception:
        logger.debug("Rolling back transaction on %s", db_path)
        conn.rollback()
        raise

    finally:
        conn.close()
