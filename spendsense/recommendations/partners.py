"""
Partner offer catalog matching.

Stateless and deterministic: the same (user, signals, persona) always yields
the same offers in the same order with the same ids.

  balance transfer card   HIGH_UTILIZATION with highest utilization >= 50%;
                          eligible only with annual income >= $25,000
  high-yield savings      SAVINGS_BUILDER or LOW_INCOME_STABILIZER
  budgeting app           VARIABLE_INCOME_BUDGETER or SUBSCRIPTION_HEAVY
  subscription manager    SUBSCRIPTION_HEAVY
  financial counseling    any persona showing financial stress
"""

from __future__ import annotations

from spendsense.models.recommendation import EligibilityStatus, PartnerOffer
from spendsense.models.signal import SignalResult
from spendsense.models.user import User
from spendsense.taxonomy.offer_taxonomy import OfferType
from spendsense.taxonomy.persona_taxonomy import PersonaType

BALANCE_TRANSFER_MIN_UTILIZATION = 0.5
BALANCE_TRANSFER_MIN_INCOME = 25_000.0
HYSA_EXISTING_BALANCE_HINT = 10_000.0
STRESS_INCOME_THRESHOLD = 30_000.0
STRESS_UTILIZATION_THRESHOLD = 0.7

_OPEN_TO_ALL = EligibilityStatus(eligible=True, reasons=["Available to all users"])


def has_financial_stress(signals: SignalResult) -> bool:
    """Overdue payments, negative cash flow, or low income with maxed-out credit."""
    return (
        signals.credit.has_overdue
        or signals.income.cash_flow_buffer < 0
        or (
            signals.income.estimated_annual_income < STRESS_INCOME_THRESHOLD
            and signals.credit.highest_utilization > STRESS_UTILIZATION_THRESHOLD
        )
    )


def balance_transfer_eligibility(signals: SignalResult) -> EligibilityStatus:
    reasons: list[str] = []
    eligible = signals.income.estimated_annual_income >= BALANCE_TRANSFER_MIN_INCOME
    if eligible:
        reasons.append("Income requirement met")
    else:
        reasons.append("Minimum annual income requirement not met")
    if signals.credit.highest_utilization >= 0.3:
        reasons.append("Utilization high enough to benefit from a balance transfer")
    return EligibilityStatus(eligible=eligible, reasons=reasons)


def savings_account_eligibility(signals: SignalResult) -> EligibilityStatus:
    if signals.savings.current_savings_balance > HYSA_EXISTING_BALANCE_HINT:
        reason = "You may already have a high-yield savings account"
    else:
        reason = "Good candidate for high-yield savings"
    return EligibilityStatus(eligible=True, reasons=[reason])


def match_partner_offers(
    user: User,
    signals: SignalResult,
    persona_type: PersonaType | str,
) -> list[PartnerOffer]:
    """Return the partner offers relevant to a persona and signal state.

    Args:
        user: The user (reserved for user-level gates; currently unused).
        signals: The signals the recommendation was built from.
        persona_type: Persona the recommendation targets.

    Returns:
        Offers in catalog order.
    """
    persona = PersonaType(persona_type)
    offers: list[PartnerOffer] = []

    if (
        persona is PersonaType.HIGH_UTILIZATION
        and signals.credit.highest_utilization >= BALANCE_TRANSFER_MIN_UTILIZATION
    ):
        offers.append(PartnerOffer(
            offer_id="offer_balance_transfer_card",
            name="Balance Transfer Credit Card",
            description=(
                "0% APR for 18 months on balance transfers. Move high-interest "
                "balances and save on interest charges."
            ),
            type=OfferType.BALANCE_TRANSFER_CARD,
            eligibility=balance_transfer_eligibility(signals),
            eligibility_criteria=[
                "Credit score 670+",
                "Annual income $25,000+",
                "No recent bankruptcies",
            ],
            cta_text="Learn More",
        ))

    if persona in (PersonaType.SAVINGS_BUILDER, PersonaType.LOW_INCOME_STABILIZER):
        offers.append(PartnerOffer(
            offer_id="offer_high_yield_savings",
            name="High-Yield Savings Account",
            description=(
                "Earn 4.5% APY on your savings. FDIC insured up to $250,000. "
                "No minimum balance required."
            ),
            type=OfferType.HIGH_YIELD_SAVINGS,
            eligibility=savings_account_eligibility(signals),
            eligibility_criteria=["18 years or older", "U.S. resident", "No existing HYSA"],
            cta_text="Open Account",
        ))

    if persona in (PersonaType.VARIABLE_INCOME_BUDGETER, PersonaType.SUBSCRIPTION_HEAVY):
        offers.append(PartnerOffer(
            offer_id="offer_budgeting_app",
            name="YNAB (You Need A Budget)",
            description=(
                "Budgeting app designed for variable income. Give every dollar a "
                "job and break the paycheck-to-paycheck cycle."
            ),
            type=OfferType.BUDGETING_APP,
            eligibility=_OPEN_TO_ALL,
            eligibility_criteria=["None - available to all"],
            cta_text="Try Free for 34 Days",
        ))

    if persona is PersonaType.SUBSCRIPTION_HEAVY:
        offers.append(PartnerOffer(
            offer_id="offer_subscription_manager",
            name="Truebill Subscription Manager",
            description=(
                "Track, manage, and cancel unwanted subscriptions automatically. "
                "Get alerts before renewals."
            ),
            type=OfferType.SUBSCRIPTION_MANAGER,
            eligibility=_OPEN_TO_ALL,
            eligibility_criteria=["None - available to all"],
            cta_text="Start Managing",
        ))

    if has_financial_stress(signals):
        offers.append(PartnerOffer(
            offer_id="offer_financial_counseling",
            name="Free Financial Counseling",
            description=(
                "Connect with a certified non-profit financial counselor for free, "
                "confidential guidance."
            ),
            type=OfferType.FINANCIAL_COUNSELING,
            eligibility=EligibilityStatus(
                eligible=True, reasons=["Available to all income levels"]
            ),
            eligibility_criteria=["None - free service"],
            cta_text="Find a Counselor",
        ))

    return offers
