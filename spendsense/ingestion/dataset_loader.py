"""
Dataset loader: JSON → validated models → SQLite.

Input file layout::

    {
      "users":        [User, ...],
      "accounts":     [Account, ...],
      "transactions": [Transaction, ...],
      "liabilities":  [Liability, ...]
    }

Each record is validated by its pydantic model (so ``users[].consent_status``
is imported along with the user). On top of field validation the loader
rejects:
  - duplicate ids within a record type;
  - accounts, transactions or liabilities owned by an unknown user;
  - transactions or liabilities pointing at an unknown account, or at an
    account that belongs to a different user.

Writes are upserts, so importing the same file twice leaves the database
unchanged.

Usage::

    from spendsense.ingestion.dataset_loader import import_dataset, load_dataset

    dataset = load_dataset(Path("data/raw/dataset.json"))
    counts = import_dataset(conn, dataset)
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections import Counter
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from spendsense.models.account import Account, Liability, Transaction
from spendsense.models.user import User

logger = logging.getLogger(__name__)


class Dataset(BaseModel):
    """A complete raw dataset ready for import."""

    model_config = ConfigDict(frozen=True)

    users: list[User] = Field(default_factory=list)
    accounts: list[Account] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    liabilities: list[Liability] = Field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "users": len(self.users),
            "accounts": len(self.accounts),
            "transactions": len(self.transactions),
            "liabilities": len(self.liabilities),
        }


# ── Validation ────────────────────────────────────────────────────────────────

def _reject_duplicates(kind: str, ids: list[str]) -> None:
    dupes = sorted(i for i, n in Counter(ids).items() if n > 1)
    if dupes:
        raise ValueError(f"Duplicate {kind} id(s): {', '.join(dupes[:5])}")


def validate_dataset(dataset: Dataset) -> None:
    """Check referential integrity across record types.

    Raises:
        ValueError: On the first integrity violation found.
    """
    _reject_duplicates("user", [u.user_id for u in dataset.users])
    _reject_duplicates("account", [a.account_id for a in dataset.accounts])
    _reject_duplicates("transaction", [t.transaction_id for t in dataset.transactions])
    _reject_duplicates("liability", [lb.liability_id for lb in dataset.liabilities])

    user_ids = {u.user_id for u in dataset.users}
    account_owner = {a.account_id: a.user_id for a in dataset.accounts}

    for account in dataset.accounts:
        if account.user_id not in user_ids:
            raise ValueError(
                f"Account '{account.account_id}' references unknown user '{account.user_id}'."
            )

    for kind, records in (
        ("Transaction", [(t.transaction_id, t.user_id, t.account_id) for t in dataset.transactions]),
        ("Liability", [(lb.liability_id, lb.user_id, lb.account_id) for lb in dataset.liabilities]),
    ):
        for record_id, user_id, account_id in records:
            owner = account_owner.get(account_id)
            if owner is None:
                raise ValueError(
                    f"{kind} '{record_id}' references unknown account '{account_id}'."
                )
            if owner != user_id:
                raise ValueError(
                    f"{kind} '{record_id}' belongs to user '{user_id}' but account "
                    f"'{account_id}' belongs to '{owner}'."
                )


# ── Load / import ─────────────────────────────────────────────────────────────

def load_dataset(path: Path) -> Dataset:
    """Read and validate a dataset JSON file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        pydantic.ValidationError: If any record fails model validation.
        ValueError: If the dataset fails ``validate_dataset()``.
    """
    if not path.exists():
        raise FileNotFoundError(f"Dataset file not found: {path}")

    with open(path, encoding="utf-8") as fh:
        raw = json.load(fh)

    dataset = Dataset.model_validate(raw)
    validate_dataset(dataset)
    logger.info("Loaded dataset %s: %s", path, dataset.counts())
    return dataset


def import_dataset(conn: sqlite3.Connection, dataset: Dataset) -> dict[str, int]:
    """Upsert every record in ``dataset``. Returns per-type counts.

    The caller owns the transaction (``get_connection()`` commits on exit).
    """
    from spendsense.db.repositories.financial_repo import FinancialRepository
    from spendsense.db.repositories.user_repo import UserRepository

    users = UserRepository(conn)
    for user in dataset.users:
        users.upsert_user(user)

    financial = FinancialRepository(conn)
    counts = {
        "users": len(dataset.users),
        "accounts": financial.upsert_accounts(dataset.accounts),
        "transactions": financial.upsert_transactions(dataset.transactions),
        "liabilities": financial.upsert_liabilities(dataset.liabilities),
    }
    logger.info("Imported dataset: %s", counts)
    return counts
