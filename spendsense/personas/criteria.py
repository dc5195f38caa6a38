"""
Persona criteria - an ordered rule table.

Each ``PersonaCriterion`` pairs a pure predicate over a ``SignalResult`` with
a pure renderer that explains a match. ``PERSONA_CRITERIA`` lists them in
priority order; evaluation order is the list order.

Thresholds
----------
HIGH_UTILIZATION          any card >= 70% utilization, or minimum-only payments
                          with > $50/month interest, or any overdue card.
VARIABLE_INCOME_BUDGETER  payment variability > 0.25, or a gap > 45 days.
SUBSCRIPTION_HEAVY        >= 3 recurring merchants and either >= $50/month
                          recurring spend (30d window only) or >= 10% share.
SAVINGS_BUILDER           balance > $5000, growth >= 2%, or >= $200/month
                          inflow; and every card below 40% utilization.
LOW_INCOME_STABILIZER     annual income < $30,000 or monthly < $2,500.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from spendsense.models.signal import SignalResult
from spendsense.taxonomy.persona_taxonomy import (
    PERSONA_DESCRIPTIONS,
    PERSONA_NAMES,
    PERSONA_PRIORITY,
    PersonaType,
)

# ── Thresholds ────────────────────────────────────────────────────────────────

HIGH_UTILIZATION_THRESHOLD = 0.70
RATIONALE_UTILIZATION_THRESHOLD = 0.50
HIGH_INTEREST_THRESHOLD = 50.0
VARIABILITY_THRESHOLD = 0.25
MIN_RECURRING_MERCHANTS = 3
MIN_MONTHLY_RECURRING_SPEND = 50.0
MIN_SUBSCRIPTION_SHARE_PCT = 10.0
SAVINGS_BALANCE_THRESHOLD = 5000.0
MIN_GROWTH_RATE_PCT = 2.0
MIN_MONTHLY_INFLOW = 200.0
SAVINGS_MAX_UTILIZATION = 0.40
LOW_INCOME_ANNUAL = 30_000.0
LOW_INCOME_MONTHLY = 2_500.0


Explanation = tuple[str, list[str]]


@dataclass(frozen=True)
class PersonaCriterion:
    """One row of the persona rule table.

    Attributes:
        persona_type: Persona this rule assigns.
        priority: Fixed priority (1 = most urgent).
        matches: Pure predicate over a ``SignalResult``.
        explain: Pure renderer returning ``(rationale, matched_criteria)``.
    """

    persona_type: PersonaType
    priority: int
    matches: Callable[[SignalResult], bool]
    explain: Callable[[SignalResult], Explanation]

    @property
    def name(self) -> str:
        return PERSONA_NAMES[self.persona_type]

    @property
    def description(self) -> str:
        return PERSONA_DESCRIPTIONS[self.persona_type]


def monthly_savings_inflow(signals: SignalResult) -> float:
    """Net savings inflow normalized to a 30-day month."""
    return signals.savings.net_inflow / signals.window_days * 30


def _pct(ratio: float) -> int:
    return round(ratio * 100)


# ── HIGH_UTILIZATION ──────────────────────────────────────────────────────────

def _high_utilization_matches(s: SignalResult) -> bool:
    credit = s.credit
    if not credit.cards:
        return False
    high_util = any(c.utilization >= HIGH_UTILIZATION_THRESHOLD for c in credit.cards)
    costly_minimums = (
        credit.has_minimum_payment_only
        and credit.total_interest_charges > HIGH_INTEREST_THRESHOLD
    )
    return high_util or costly_minimums or credit.has_overdue


def _high_utilization_explain(s: SignalResult) -> Explanation:
    credit = s.credit
    parts: list[str] = []
    labels: list[str] = []

    elevated = [c for c in credit.cards if c.utilization >= RATIONALE_UTILIZATION_THRESHOLD]
    if elevated:
        card = elevated[0]
        labels.append(f"Credit card utilization of {_pct(card.utilization)}%")
        parts.append(
            f"Your card ending in {card.card_mask} is at {_pct(card.utilization)}% "
            f"utilization (${card.balance:,.2f} of a ${card.limit:,.2f} limit)."
        )
    if credit.total_interest_charges > 0:
        labels.append("Interest charges detected")
        parts.append(
            f"You're paying roughly ${credit.total_interest_charges:,.2f} per month in interest."
        )
    if credit.has_minimum_payment_only:
        labels.append("Minimum payment only behavior")
        parts.append("Recent payments look close to the minimum payment due.")
    if credit.has_overdue:
        labels.append("Overdue payment status")
        parts.append("At least one card has an overdue payment.")

    parts.append(
        "Bringing utilization down and staying current on payments can lower "
        "interest costs and support your credit score."
    )
    return " ".join(parts), labels


# ── VARIABLE_INCOME_BUDGETER ──────────────────────────────────────────────────

def _variable_income_matches(s: SignalResult) -> bool:
    return (
        s.income.payment_variability > VARIABILITY_THRESHOLD
        or s.income.has_income_gap
    )


def _variable_income_explain(s: SignalResult) -> Explanation:
    income = s.income
    labels = [
        f"Income variability of {income.payment_variability:.2f}",
        f"Income gap of {income.longest_gap_days} days",
        f"Cash flow buffer: {income.cash_flow_buffer:.2f}",
    ]
    rationale = (
        f"Your deposits vary by about {_pct(income.payment_variability)}% from "
        f"payment to payment, with gaps of up to {income.longest_gap_days} days "
        f"between them, and your cash flow buffer is {income.cash_flow_buffer:.2f}. "
        "Budgeting approaches built for irregular income can smooth out the lean months."
    )
    return rationale, labels


# ── SUBSCRIPTION_HEAVY ────────────────────────────────────────────────────────

def _subscription_heavy_matches(s: SignalResult) -> bool:
    sub = s.subscription
    if sub.total_recurring_count < MIN_RECURRING_MERCHANTS:
        return False
    # The dollar threshold only applies to the 30-day window
    high_spend = (
        s.window == "30d"
        and sub.monthly_recurring_spend >= MIN_MONTHLY_RECURRING_SPEND
    )
    high_share = sub.subscription_share >= MIN_SUBSCRIPTION_SHARE_PCT
    return high_spend or high_share


def _subscription_heavy_explain(s: SignalResult) -> Explanation:
    sub = s.subscription
    labels = [
        f"{sub.total_recurring_count} recurring subscriptions",
        f"${sub.monthly_recurring_spend:,.2f} monthly recurring spend",
        f"{sub.subscription_share:.1f}% of total spending",
    ]
    top = sorted(
        sub.recurring_merchants, key=lambda m: (-m.average_amount, m.merchant_name)
    )[:3]
    top_text = ", ".join(
        f"{m.merchant_name} (${m.average_amount:,.2f}/{m.cadence})" for m in top
    )
    rationale = (
        f"You have {sub.total_recurring_count} recurring subscriptions totaling "
        f"${sub.monthly_recurring_spend:,.2f} per month "
        f"({sub.subscription_share:.1f}% of your spending). "
        f"Largest: {top_text}. "
        "A periodic audit is an easy way to free up monthly cash flow."
    )
    return rationale, labels


# ── SAVINGS_BUILDER ───────────────────────────────────────────────────────────

def _savings_builder_matches(s: SignalResult) -> bool:
    savings = s.savings
    saving = (
        savings.current_savings_balance > SAVINGS_BALANCE_THRESHOLD
        or savings.growth_rate >= MIN_GROWTH_RATE_PCT
        or monthly_savings_inflow(s) >= MIN_MONTHLY_INFLOW
    )
    # all() over no cards is True
    low_utilization = all(
        c.utilization < SAVINGS_MAX_UTILIZATION for c in s.credit.cards
    )
    return saving and low_utilization


def _savings_builder_explain(s: SignalResult) -> Explanation:
    savings = s.savings
    labels: list[str] = []
    if savings.current_savings_balance > SAVINGS_BALANCE_THRESHOLD:
        labels.append(f"${savings.current_savings_balance:,.2f} in savings")
    if savings.growth_rate >= MIN_GROWTH_RATE_PCT:
        labels.append(f"{savings.growth_rate:.1f}% savings growth rate")
    inflow = monthly_savings_inflow(s)
    if inflow >= MIN_MONTHLY_INFLOW:
        labels.append(f"${inflow:,.2f} average monthly savings")
    labels.append("Low credit utilization")

    rationale = (
        f"You're building savings, with a current balance of "
        f"${savings.current_savings_balance:,.2f} and "
        f"{savings.emergency_fund_coverage:.1f} months of emergency fund coverage, "
        "while keeping credit utilization low. Higher-yield accounts and "
        "automated transfers could help that money grow faster."
    )
    return rationale, labels


# ── LOW_INCOME_STABILIZER ─────────────────────────────────────────────────────

def _low_income_matches(s: SignalResult) -> bool:
    annual = s.income.estimated_annual_income
    return annual < LOW_INCOME_ANNUAL or annual / 12 < LOW_INCOME_MONTHLY


def _low_income_explain(s: SignalResult) -> Explanation:
    annual = s.income.estimated_annual_income
    monthly = annual / 12
    labels = [
        f"Estimated annual income: ${annual:,.0f}",
        f"Average monthly income: ${monthly:,.0f}",
    ]
    rationale = (
        f"With an estimated annual income of ${annual:,.0f} (${monthly:,.0f}/month), "
        "every dollar has a job to do. Micro-budgeting, a small starter emergency "
        "fund, and awareness of assistance programs can help build stability."
    )
    return rationale, labels


# ── Rule table ────────────────────────────────────────────────────────────────

PERSONA_CRITERIA: tuple[PersonaCriterion, ...] = tuple(sorted(
    (
        PersonaCriterion(
            PersonaType.HIGH_UTILIZATION,
            PERSONA_PRIORITY[PersonaType.HIGH_UTILIZATION],
            _high_utilization_matches,
            _high_utilization_explain,
        ),
        PersonaCriterion(
            PersonaType.VARIABLE_INCOME_BUDGETER,
            PERSONA_PRIORITY[PersonaType.VARIABLE_INCOME_BUDGETER],
            _variable_income_matches,
            _variable_income_explain,
        ),
        PersonaCriterion(
            PersonaType.SUBSCRIPTION_HEAVY,
            PERSONA_PRIORITY[PersonaType.SUBSCRIPTION_HEAVY],
            _subscription_heavy_matches,
            _subscription_heavy_explain,
        ),
        PersonaCriterion(
            PersonaType.SAVINGS_BUILDER,
            PERSONA_PRIORITY[PersonaType.SAVINGS_BUILDER],
            _savings_builder_matches,
            _savings_builder_explain,
        ),
        PersonaCriterion(
            PersonaType.LOW_INCOME_STABILIZER,
            PERSONA_PRIORITY[PersonaType.LOW_INCOME_STABILIZER],
            _low_income_matches,
            _low_income_explain,
        ),
    ),
    key=lambda c: c.priority,
))

CRITERIA_BY_PERSONA: dict[PersonaType, PersonaCriterion] = {
    c.persona_type: c for c in PERSONA_CRITERIA
}
