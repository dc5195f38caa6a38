"""
Repository for raw financial records: accounts, transactions, liabilities.

All writes are upserts keyed by the record's external id, so re-importing
the same dataset is a no-op.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import date
from typing import Optional

from spendsense.db.repositories.base import BaseRepository
from spendsense.models.account import Account, Liability, Transaction, TransactionCategory

logger = logging.getLogger(__name__)


class FinancialRepository(BaseRepository):
    """Read/write access to ``accounts``, ``transactions`` and ``liabilities``."""

    # ── Accounts ─────────────────────────────────────────────────────────────

    def upsert_accounts(self, accounts: list[Account]) -> int:
        if not accounts:
            return 0
        self.executemany(
            """
            INSERT INTO accounts (
                account_id, user_id, name, official_name, type, subtype, mask,
                current_balance, available_balance, credit_limit, iso_currency_code
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(account_id) DO UPDATE SET
                name              = excluded.name,
                official_name     = excluded.official_name,
                type              = excluded.type,
                subtype           = excluded.subtype,
                mask              = excluded.mask,
                current_balance   = excluded.current_balance,
                available_balance = excluded.available_balance,
                credit_limit      = excluded.credit_limit,
                iso_currency_code = excluded.iso_currency_code;
            """,
            [
                (
                    a.account_id, a.user_id, a.name, a.official_name, a.type,
                    a.subtype, a.mask, a.current_balance, a.available_balance,
                    a.credit_limit, a.iso_currency_code,
                )
                for a in accounts
            ],
        )
        return len(accounts)

    def get_accounts(self, user_id: str) -> list[Account]:
        rows = self.fetchall(
            "SELECT * FROM accounts WHERE user_id = ? ORDER BY account_id;", (user_id,)
        )
        return [Account.model_validate(dict(r)) for r in rows]

    # ── Transactions ─────────────────────────────────────────────────────────

    def upsert_transactions(self, transactions: list[Transaction]) -> int:
        if not transactions:
            return 0
        self.executemany(
            """
            INSERT OR REPLACE INTO transactions (
                transaction_id, account_id, user_id, amount, date, name,
                merchant_name, category_primary, category_detailed,
                payment_channel, pending, transaction_type, iso_currency_code
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            [
                (
                    t.transaction_id, t.account_id, t.user_id, t.amount,
                    t.date.isoformat(), t.name, t.merchant_name,
                    t.category.primary, t.category.detailed, t.payment_channel,
                    int(t.pending), t.transaction_type, t.iso_currency_code,
                )
                for t in transactions
            ],
        )
        return len(transactions)

    def get_transactions(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        """Fetch a user's transactions, optionally bounded by date (inclusive).

        Returns:
            Transactions ordered by date, then id.
        """
        sql = "SELECT * FROM transactions WHERE user_id = ?"
        params: list = [user_id]
        if start_date is not None:
            sql += " AND date >= ?"
            params.append(start_date.isoformat())
        if end_date is not None:
            sql += " AND date <= ?"
            params.append(end_date.isoformat())
        rows = self.fetchall(sql + " ORDER BY date, transaction_id;", tuple(params))
        return [_row_to_transaction(r) for r in rows]

    # ── Liabilities ──────────────────────────────────────────────────────────

    def upsert_liabilities(self, liabilities: list[Liability]) -> int:
        if not liabilities:
            return 0
        self.executemany(
            """
            INSERT OR REPLACE INTO liabilities (
                liability_id, user_id, account_id, type, details_json
            ) VALUES (?, ?, ?, ?, ?);
            """,
            [
                (
                    lb.liability_id, lb.user_id, lb.account_id, lb.type,
                    lb.details.model_dump_json(),
                )
                for lb in liabilities
            ],
        )
        return len(liabilities)

    def get_liabilities(self, user_id: str) -> list[Liability]:
        rows = self.fetchall(
            "SELECT * FROM liabilities WHERE user_id = ? ORDER BY liability_id;", (user_id,)
        )
        return [
            Liability(
                liability_id=r["liability_id"],
                user_id=r["user_id"],
                account_id=r["account_id"],
                type=r["type"],
                details=json.loads(r["details_json"]),
            )
            for r in rows
        ]


# ── Private helpers ────────────────────────────────────────────────────────────

def _row_to_transaction(row: sqlite3.Row) -> Transaction:
    return Transaction(
        transaction_id=row["transaction_id"],
        account_id=row["account_id"],
        user_id=row["user_id"],
        amount=row["amount"],
        date=date.fromisoformat(row["date"]),
        name=row["name"],
        merchant_name=row["merchant_name"],
        category=TransactionCategory(
            primary=row["category_primary"], detailed=row["category_detailed"]
        ),
        payment_channel=row["payment_channel"],
        pending=bool(row["pending"]),
        transaction_type=row["transaction_type"],
        iso_currency_code=row["iso_currency_code"],
    )
