"""
Offer, recommendation-status, and operator-action taxonomies.

``OfferType`` includes both the partner products SpendSense can surface and
the predatory product types that must never reach a user
(``EXCLUDED_OFFER_TYPES``).

This module has NO imports from any other ``spendsense`` package.
"""

from enum import StrEnum


class OfferType(StrEnum):
    """Kind of partner product attached to a recommendation."""

    BALANCE_TRANSFER_CARD = "balance_transfer_card"
    HIGH_YIELD_SAVINGS = "high_yield_savings"
    BUDGETING_APP = "budgeting_app"
    SUBSCRIPTION_MANAGER = "subscription_manager"
    FINANCIAL_COUNSELING = "financial_counseling"

    # ── Excluded (predatory) products ────────────────────────────────────────
    PAYDAY_LOAN = "payday_loan"
    TITLE_LOAN = "title_loan"
    PREDATORY_LENDER = "predatory_lender"
    HIGH_INTEREST_INSTALLMENT = "high_interest_installment"


EXCLUDED_OFFER_TYPES: frozenset[OfferType] = frozenset({
    OfferType.PAYDAY_LOAN,
    OfferType.TITLE_LOAN,
    OfferType.PREDATORY_LENDER,
    OfferType.HIGH_INTEREST_INSTALLMENT,
})


class RecommendationStatus(StrEnum):
    """Review lifecycle of a recommendation."""

    PENDING = "pending"
    """Generated and passed guardrails; awaiting operator review."""

    APPROVED = "approved"
    REJECTED = "rejected"

    FLAGGED = "flagged"
    """Held for a second look; may still be approved or rejected."""


# Allowed status transitions; terminal states map to an empty set.
STATUS_TRANSITIONS: dict[RecommendationStatus, frozenset[RecommendationStatus]] = {
    RecommendationStatus.PENDING: frozenset({
        RecommendationStatus.APPROVED,
        RecommendationStatus.REJECTED,
        RecommendationStatus.FLAGGED,
    }),
    RecommendationStatus.FLAGGED: frozenset({
        RecommendationStatus.APPROVED,
        RecommendationStatus.REJECTED,
    }),
    RecommendationStatus.APPROVED: frozenset(),
    RecommendationStatus.REJECTED: frozenset(),
}


class OperatorActionType(StrEnum):
    """Review action an operator can take on a recommendation."""

    APPROVE = "approve"
    REJECT = "reject"
    FLAG = "flag"


ACTION_TARGET_STATUS: dict[OperatorActionType, RecommendationStatus] = {
    OperatorActionType.APPROVE: RecommendationStatus.APPROVED,
    OperatorActionType.REJECT: RecommendationStatus.REJECTED,
    OperatorActionType.FLAG: RecommendationStatus.FLAGGED,
}
