"""Tests for operator consent management and recommendation review."""

from __future__ import annotations

import pytest

from conftest import make_recommendation, make_user
from spendsense.db.repositories.recommendation_repo import RecommendationRepository
from spendsense.db.repositories.user_repo import UserRepository
from spendsense.models.recommendation import InvalidStatusTransition
from spendsense.review import review_recommendation, set_consent
from spendsense.taxonomy.offer_taxonomy import OperatorActionType, RecommendationStatus


@pytest.fixture
def review_db(in_memory_db):
    UserRepository(in_memory_db).upsert_user(make_user("u001"))
    UserRepository(in_memory_db).upsert_user(make_user("u002", consent=False))
    RecommendationRepository(in_memory_db).insert(make_recommendation())
    return in_memory_db


class TestSetConsent:
    def test_grant(self, review_db):
        consent = set_consent(review_db, "u002", True, ip_address="10.0.0.2")
        assert consent.active
        assert consent.granted_at is not None
        assert consent.revoked_at is None
        assert UserRepository(review_db).get_user("u002").has_consent

    def test_regrant_keeps_original_timestamp(self, review_db):
        original = UserRepository(review_db).get_consent("u001").granted_at
        consent = set_consent(review_db, "u001", True)
        assert consent.granted_at == original

    def test_revoke(self, review_db):
        original = UserRepository(review_db).get_consent("u001").granted_at
        consent = set_consent(review_db, "u001", False)
        assert not consent.active
        assert consent.granted_at == original
        assert consent.revoked_at is not None
        assert not UserRepository(review_db).get_user("u001").has_consent

    def test_grant_after_revoke_is_fresh(self, review_db):
        set_consent(review_db, "u001", False)
        consent = set_consent(review_db, "u001", True)
        assert consent.active
        assert consent.revoked_at is None

    def test_unknown_user(self, review_db):
        with pytest.raises(KeyError):
            set_consent(review_db, "nobody", True)


class TestReviewRecommendation:
    def test_approve_records_action(self, review_db):
        rec = review_recommendation(review_db, "rec_0001", "approve", "op_1", reason="ok")
        assert rec.status is RecommendationStatus.APPROVED

        repo = RecommendationRepository(review_db)
        assert repo.get("rec_0001").status is RecommendationStatus.APPROVED
        actions = repo.get_actions("rec_0001")
        assert [(a.operator_id, a.action, a.reason) for a in actions] == [
            ("op_1", OperatorActionType.APPROVE, "ok")
        ]

    def test_flag_then_reject(self, review_db):
        review_recommendation(review_db, "rec_0001", OperatorActionType.FLAG, "op_1")
        rec = review_recommendation(review_db, "rec_0001", OperatorActionType.REJECT, "op_2")
        assert rec.status is RecommendationStatus.REJECTED
        actions = RecommendationRepository(review_db).get_actions("rec_0001")
        assert [a.action for a in actions] == [OperatorActionType.FLAG, OperatorActionType.REJECT]

    def test_terminal_status_rejects_further_review(self, review_db):
        review_recommendation(review_db, "rec_0001", "reject", "op_1")
        with pytest.raises(InvalidStatusTransition):
            review_recommendation(review_db, "rec_0001", "approve", "op_1")
        assert len(RecommendationRepository(review_db).get_actions("rec_0001")) == 1

    def test_unknown_recommendation(self, review_db):
        with pytest.raises(KeyError):
            review_recommendation(review_db, "rec_missing", "approve", "op_1")

    def test_unknown_action(self, review_db):
        with pytest.raises(ValueError):
            review_recommendation(review_db, "rec_0001", "escalate", "op_1")

    def test_blank_operator_rejected(self, review_db):
        with pytest.raises(ValueError):
            review_recommendation(review_db, "rec_0001", "approve", "  ")
        assert RecommendationRepository(review_db).get("rec_0001").status is (
            RecommendationStatus.PENDING
        )
