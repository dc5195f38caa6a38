"""Tests for SQLite schema - idempotency, table creation, FK enforcement."""

from __future__ import annotations

import sqlite3

import pytest

from spendsense.db.connection import get_connection
from spendsense.db.schema import ALL_TABLE_NAMES, apply_schema, get_existing_tables


class TestApplySchema:
    def test_all_tables_created(self, in_memory_db):
        tables = get_existing_tables(in_memory_db)
        for expected_table in ALL_TABLE_NAMES:
            assert expected_table in tables, (
                f"Expected table '{expected_table}' not found in database. Found: {tables}"
            )

    def test_idempotent_double_apply(self, in_memory_db):
        apply_schema(in_memory_db)
        assert set(ALL_TABLE_NAMES) <= set(get_existing_tables(in_memory_db))

    def test_fk_enforced(self, in_memory_db):
        with pytest.raises(sqlite3.IntegrityError):
            in_memory_db.execute(
                """
                INSERT INTO accounts (account_id, user_id, name, type, subtype, mask, current_balance)
                VALUES ('a1', 'nobody', 'Checking', 'depository', 'checking', '0000', 0);
                """
            )

    def test_signal_results_one_row_per_window(self, in_memory_db):
        in_memory_db.execute(
            "INSERT INTO users VALUES ('u1', 'u1@example.com', 'A', 'B', '2024-01-01T00:00:00');"
        )
        insert = (
            "INSERT INTO signal_results (user_id, signal_window, as_of, payload_json, computed_at) "
            "VALUES ('u1', '30d', '2024-06-30', '{}', '2024-06-30T00:00:00');"
        )
        in_memory_db.execute(insert)
        with pytest.raises(sqlite3.IntegrityError):
            in_memory_db.execute(insert)


class TestGetConnection:
    def test_creates_parent_dirs(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "test.db"
        with get_connection(str(db_path)) as conn:
            apply_schema(conn)
        assert db_path.exists()

    def test_foreign_keys_on(self, tmp_path):
        with get_connection(str(tmp_path / "fk.db")) as conn:
            assert conn.execute("PRAGMA foreign_keys;").fetchone()[0] == 1

    def test_commits_on_exit(self, tmp_path):
        db_path = str(tmp_path / "commit.db")
        with get_connection(db_path) as conn:
            apply_schema(conn)
            conn.execute(
                "INSERT INTO users VALUES ('u1', 'u1@example.com', 'A', 'B', '2024-01-01T00:00:00');"
            )
        with get_connection(db_path) as conn:
            assert conn.execute("SELECT COUNT(*) FROM users;").fetchone()[0] == 1

    def test_rolls_back_on_error(self, tmp_path):
        db_path = str(tmp_path / "rollback.db")
        with get_connection(db_path) as conn:
            apply_schema(conn)
        with pytest.raises(RuntimeError):
            with get_connection(db_path) as conn:
                conn.execute(
                    "INSERT INTO users VALUES ('u1', 'u1@example.com', 'A', 'B', '2024-01-01T00:00:00');"
                )
                raise RuntimeError("boom")
        with get_connection(db_path) as conn:
            assert conn.execute("SELECT COUNT(*) FROM users;").fetchone()[0] == 0
