"""
SQLite schema DDL - all CREATE TABLE and CREATE INDEX statements.

All statements use ``IF NOT EXISTS`` so ``apply_schema()`` is **idempotent**:
safe to call on an already-initialized database (e.g. after restart or in tests).

Table creation order respects foreign key dependencies:
  1. users                (no FKs)
  2. consents             (→ users)
  3. accounts             (→ users)
  4. transactions         (→ accounts, users)
  5. liabilities          (→ accounts, users)
  6. signal_results       (→ users; PK (user_id, signal_window))
  7. persona_assignments  (→ users)
  8. recommendations      (→ users)
  9. operator_actions     (→ recommendations)
  10. run_metadata        (no FKs)

Derived records (signals, recommendations) are stored as a JSON payload of
the pydantic model next to the columns they are queried by.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

# ── DDL statements ─────────────────────────────────────────────────────────────

_DDL_USERS = """
CREATE TABLE IF NOT EXISTS users (
    user_id     TEXT PRIMARY KEY,
    email       TEXT NOT NULL,
    first_name  TEXT NOT NULL,
    last_name   TEXT NOT NULL,
    created_at  TEXT NOT NULL
);
"""

_DDL_CONSENTS = """
CREATE TABLE IF NOT EXISTS consents (
    user_id     TEXT    PRIMARY KEY REFERENCES users(user_id),
    active      INTEGER NOT NULL DEFAULT 0,
    granted_at  TEXT,
    revoked_at  TEXT,
    ip_address  TEXT,
    user_agent  TEXT,
    updated_at  TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_ACCOUNTS = """
CREATE TABLE IF NOT EXISTS accounts (
    account_id          TEXT PRIMARY KEY,
    user_id             TEXT NOT NULL REFERENCES users(user_id),
    name                TEXT NOT NULL,
    official_name       TEXT NOT NULL DEFAULT '',
    type                TEXT NOT NULL,
    subtype             TEXT NOT NULL,
    mask                TEXT NOT NULL,
    current_balance     REAL NOT NULL,
    available_balance   REAL,
    credit_limit        REAL,
    iso_currency_code   TEXT NOT NULL DEFAULT 'USD'
);
CREATE INDEX IF NOT EXISTS idx_accounts_user ON accounts(user_id);
"""

_DDL_TRANSACTIONS = """
CREATE TABLE IF NOT EXISTS transactions (
    transaction_id      TEXT    PRIMARY KEY,
    account_id          TEXT    NOT NULL REFERENCES accounts(account_id),
    user_id             TEXT    NOT NULL REFERENCES users(user_id),
    amount              REAL    NOT NULL,
    date                TEXT    NOT NULL,
    name                TEXT    NOT NULL,
    merchant_name       TEXT,
    category_primary    TEXT    NOT NULL,
    category_detailed   TEXT    NOT NULL,
    payment_channel     TEXT    NOT NULL,
    pending             INTEGER NOT NULL DEFAULT 0,
    transaction_type    TEXT    NOT NULL,
    iso_currency_code   TEXT    NOT NULL DEFAULT 'USD'
);
CREATE INDEX IF NOT EXISTS idx_transactions_user_date ON transactions(user_id, date);
"""

_DDL_LIABILITIES = """
CREATE TABLE IF NOT EXISTS liabilities (
    liability_id    TEXT PRIMARY KEY,
    user_id         TEXT NOT NULL REFERENCES users(user_id),
    account_id      TEXT NOT NULL REFERENCES accounts(account_id),
    type            TEXT NOT NULL,
    details_json    TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_liabilities_user ON liabilities(user_id);
"""

_DDL_SIGNAL_RESULTS = """
CREATE TABLE IF NOT EXISTS signal_results (
    user_id         TEXT NOT NULL REFERENCES users(user_id),
    signal_window   TEXT NOT NULL,
    as_of           TEXT NOT NULL,
    payload_json    TEXT NOT NULL,
    computed_at     TEXT NOT NULL,
    PRIMARY KEY (user_id, signal_window)
);
"""

_DDL_PERSONA_ASSIGNMENTS = """
CREATE TABLE IF NOT EXISTS persona_assignments (
    assignment_id       INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id             TEXT    NOT NULL REFERENCES users(user_id),
    persona_type        TEXT    NOT NULL,
    priority            INTEGER NOT NULL,
    rationale           TEXT    NOT NULL,
    matched_criteria    TEXT    NOT NULL,
    signal_window       TEXT    NOT NULL,
    assigned_at         TEXT    NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_personas_user ON persona_assignments(user_id, priority);
"""

_DDL_RECOMMENDATIONS = """
CREATE TABLE IF NOT EXISTS recommendations (
    recommendation_id   TEXT PRIMARY KEY,
    user_id             TEXT NOT NULL REFERENCES users(user_id),
    persona_type        TEXT NOT NULL,
    status              TEXT NOT NULL DEFAULT 'pending',
    payload_json        TEXT NOT NULL,
    created_at          TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_recommendations_user ON recommendations(user_id, created_at);
CREATE INDEX IF NOT EXISTS idx_recommendations_status ON recommendations(status);
"""

_DDL_OPERATOR_ACTIONS = """
CREATE TABLE IF NOT EXISTS operator_actions (
    action_id           INTEGER PRIMARY KEY AUTOINCREMENT,
    operator_id         TEXT NOT NULL,
    action              TEXT NOT NULL,
    recommendation_id   TEXT NOT NULL REFERENCES recommendations(recommendation_id),
    reason              TEXT,
    created_at          TEXT NOT NULL
);
"""

_DDL_RUN_METADATA = """
CREATE TABLE IF NOT EXISTS run_metadata (
    run_id          INTEGER PRIMARY KEY AUTOINCREMENT,
    run_slug        TEXT    NOT NULL UNIQUE,
    pipeline_stage  TEXT    NOT NULL,
    status          TEXT    NOT NULL DEFAULT 'started',
    config_snapshot TEXT    NOT NULL,
    rows_processed  INTEGER NOT NULL DEFAULT 0,
    error_message   TEXT,
    started_at      TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    finished_at     TEXT
);
"""

# ── Ordered list of all DDL to apply ──────────────────────────────────────────

_ALL_DDL: list[str] = [
    _DDL_USERS,
    _DDL_CONSENTS,
    _DDL_ACCOUNTS,
    _DDL_TRANSACTIONS,
    _DDL_LIABILITIES,
    _DDL_SIGNAL_RESULTS,
    _DDL_PERSONA_ASSIGNMENTS,
    _DDL_RECOMMENDATIONS,
    _DDL_OPERATOR_ACTIONS,
    _DDL_RUN_METADATA,
]

# Table names for introspection / tests
ALL_TABLE_NAMES = [
    "users",
    "consents",
    "accounts",
    "transactions",
    "liabilities",
    "signal_results",
    "persona_assignments",
    "recommendations",
    "operator_actions",
    "run_metadata",
]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply all DDL statements to ``conn``.

    Idempotent - safe to call on an already-initialized database.

    Args:
        conn: An open ``sqlite3.Connection`` (FK enforcement should be ON).
    """
    logger.debug("Applying schema to database...")

    for ddl in _ALL_DDL:
        for statement in _split_ddl(ddl):
            conn.execute(statement)

    conn.commit()
    logger.info("Schema applied: %d tables verified.", len(ALL_TABLE_NAMES))


def _split_ddl(ddl: str) -> list[str]:
    return [s.strip() for s in ddl.split(";") if s.strip()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Return table names present in the database, sorted alphabetically."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]
