"""Tests for dataset validation, loading and import."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from conftest import make_accounts, make_card_liability, make_transactions, make_user
from spendsense.db.repositories.financial_repo import FinancialRepository
from spendsense.db.repositories.user_repo import UserRepository
from spendsense.ingestion.dataset_loader import (
    Dataset,
    import_dataset,
    load_dataset,
    validate_dataset,
)


def _dataset(**overrides) -> Dataset:
    fields = dict(
        users=[make_user("u001"), make_user("u002", consent=False)],
        accounts=make_accounts("u001") + make_accounts("u002"),
        transactions=make_transactions("u001"),
        liabilities=[make_card_liability("u001")],
    )
    fields.update(overrides)
    return Dataset(**fields)


class TestValidateDataset:
    def test_valid(self):
        validate_dataset(_dataset())

    def test_duplicate_user(self):
        with pytest.raises(ValueError, match="Duplicate user id"):
            validate_dataset(_dataset(users=[make_user("u001"), make_user("u001")]))

    def test_account_unknown_user(self):
        with pytest.raises(ValueError, match="unknown user 'u002'"):
            validate_dataset(_dataset(users=[make_user("u001")]))

    def test_transaction_unknown_account(self):
        txns = make_transactions("u001")
        orphan = txns[0].model_copy(update={"account_id": "ghost"})
        with pytest.raises(ValueError, match="unknown account 'ghost'"):
            validate_dataset(_dataset(transactions=[orphan]))

    def test_liability_on_other_users_account(self):
        stolen = make_card_liability("u001").model_copy(update={"account_id": "u002_cc"})
        with pytest.raises(ValueError, match="belongs to 'u002'"):
            validate_dataset(_dataset(liabilities=[stolen]))


class TestLoadDataset:
    def test_round_trip_through_file(self, tmp_path):
        path = tmp_path / "dataset.json"
        path.write_text(_dataset().model_dump_json(), encoding="utf-8")
        dataset = load_dataset(path)
        assert dataset.counts() == {
            "users": 2, "accounts": 6, "transactions": 19, "liabilities": 1,
        }
        assert dataset.users[0].has_consent
        assert not dataset.users[1].has_consent

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_dataset(tmp_path / "missing.json")

    def test_invalid_record(self, tmp_path):
        raw = json.loads(_dataset().model_dump_json())
        raw["accounts"][0]["type"] = "crypto"
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(raw), encoding="utf-8")
        with pytest.raises(ValidationError):
            load_dataset(path)

    def test_integrity_failure(self, tmp_path):
        raw = json.loads(_dataset().model_dump_json())
        raw["transactions"][0]["user_id"] = "u002"
        path = tmp_path / "mismatch.json"
        path.write_text(json.dumps(raw), encoding="utf-8")
        with pytest.raises(ValueError, match="belongs to user 'u002'"):
            load_dataset(path)


class TestImportDataset:
    def test_counts(self, in_memory_db):
        counts = import_dataset(in_memory_db, _dataset())
        assert counts == {"users": 2, "accounts": 6, "transactions": 19, "liabilities": 1}
        assert UserRepository(in_memory_db).count_users() == 2
        assert len(FinancialRepository(in_memory_db).get_accounts("u002")) == 3

    def test_import_twice_is_noop(self, in_memory_db):
        import_dataset(in_memory_db, _dataset())
        import_dataset(in_memory_db, _dataset())
        repo = FinancialRepository(in_memory_db)
        assert repo.count("users") == 2
        assert repo.count("transactions") == 19
        assert repo.count("consents") == 1
