"""
Eligibility guardrail and excluded-product filtering.

The check fails when:
  - any attached offer is an excluded (predatory) product type;
  - a balance transfer card is marked eligible for annual income < $25,000;
  - a "Savings Optimization" recommendation targets savings > $50,000.

``filter_excluded_offers`` is the separate mutating step that strips excluded
products regardless of any check outcome.
"""

from __future__ import annotations

from spendsense.models.recommendation import GuardrailResult, PartnerOffer, Recommendation
from spendsense.models.signal import SignalResult
from spendsense.taxonomy.offer_taxonomy import EXCLUDED_OFFER_TYPES, OfferType

ELIGIBILITY_CHECK = "Eligibility Check"

BALANCE_TRANSFER_MIN_INCOME = 25_000.0
SAVINGS_OPTIMIZATION_CATEGORY = "Savings Optimization"
SAVINGS_OPTIMIZATION_MAX_BALANCE = 50_000.0


def is_excluded(offer: PartnerOffer) -> bool:
    return offer.type in EXCLUDED_OFFER_TYPES


def check_eligibility(
    recommendation: Recommendation,
    signals: SignalResult,
) -> GuardrailResult:
    issues: list[str] = []

    excluded = sorted({o.type.value for o in recommendation.partner_offers if is_excluded(o)})
    if excluded:
        issues.append(f"Contains excluded predatory product types: {', '.join(excluded)}")

    if signals.income.estimated_annual_income < BALANCE_TRANSFER_MIN_INCOME:
        for offer in recommendation.partner_offers:
            if offer.type is OfferType.BALANCE_TRANSFER_CARD and offer.eligibility.eligible:
                issues.append(f"{offer.name}: Income requirement not met")

    if (
        recommendation.category == SAVINGS_OPTIMIZATION_CATEGORY
        and signals.savings.current_savings_balance > SAVINGS_OPTIMIZATION_MAX_BALANCE
    ):
        issues.append("User may already have optimized savings accounts")

    passed = not issues
    return GuardrailResult(
        name=ELIGIBILITY_CHECK,
        passed=passed,
        reason=(
            "All eligibility criteria met"
            if passed else f"Eligibility issues: {'; '.join(issues)}"
        ),
    )


def filter_excluded_offers(offers: list[PartnerOffer]) -> list[PartnerOffer]:
    """Return ``offers`` without excluded product types, preserving order."""
    return [o for o in offers if not is_excluded(o)]
