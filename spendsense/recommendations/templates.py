"""
Recommendation template library.

Each ``RecommendationTemplate`` holds static copy (category, title,
description) plus pure callables that decide eligibility and render the
data-backed rationale and numeric action items from a ``SignalResult``.

``match_offers`` is optional; when ``None`` the engine attaches the
catalog offers from ``partners.match_partner_offers`` for the template's
persona.

Copy guidelines: rationale and description text is scanned by the tone
guardrail, so it avoids prescriptive phrasing ("you must", "you need to")
and shaming terms.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from spendsense.models.recommendation import PartnerOffer
from spendsense.models.signal import CreditCardSignal, SignalResult
from spendsense.models.user import User
from spendsense.taxonomy.persona_taxonomy import PersonaType

Predicate = Callable[[User, SignalResult], bool]
TextRenderer = Callable[[User, SignalResult], str]
ListRenderer = Callable[[User, SignalResult], list[str]]
OfferMatcher = Callable[[User, SignalResult], list[PartnerOffer]]

TARGET_UTILIZATION = 0.30
TRADITIONAL_APY = 0.0001   # 0.01%
HIGH_YIELD_APY = 0.045     # 4.5%


@dataclass(frozen=True)
class RecommendationTemplate:
    """One entry in the template library.

    Attributes:
        template_id: Stable id recorded in the decision trace.
        persona_type: Persona this template serves.
        category: Recommendation category (also read by guardrails).
        title: Headline.
        description: One-sentence summary.
        priority: Ordering within the persona (1 first).
        is_eligible: Whether the template applies to this user.
        render_rationale: Data-backed explanation.
        render_action_items: Concrete next steps.
        match_offers: Optional template-specific offer matcher.
    """

    template_id: str
    persona_type: PersonaType
    category: str
    title: str
    description: str
    priority: int
    is_eligible: Predicate
    render_rationale: TextRenderer
    render_action_items: ListRenderer
    match_offers: Optional[OfferMatcher] = None


def _highest_card(signals: SignalResult) -> CreditCardSignal:
    return max(signals.credit.cards, key=lambda c: (c.utilization, c.account_id))


# ── HIGH_UTILIZATION ──────────────────────────────────────────────────────────

def _hu_utilization_rationale(user: User, s: SignalResult) -> str:
    card = _highest_card(s)
    return (
        f"Your credit card ending in {card.card_mask} is at "
        f"{round(card.utilization * 100)}% utilization "
        f"(${card.balance:,.2f} of ${card.limit:,.2f}). High utilization can weigh "
        "on your credit score and increase interest costs; bringing it below 30% "
        "is a common goal."
    )


def _hu_utilization_actions(user: User, s: SignalResult) -> list[str]:
    card = _highest_card(s)
    paydown = max(card.balance - card.limit * TARGET_UTILIZATION, 0.0)
    return [
        f"Pay down ${paydown:,.2f} to reach 30% utilization",
        "Consider making multiple payments per month to keep utilization low",
        "Set up automatic payments to avoid missed due dates",
        "Track utilization weekly in your card issuer's app",
    ]


def _hu_minimum_rationale(user: User, s: SignalResult) -> str:
    return (
        f"You're paying approximately ${s.credit.total_interest_charges:,.2f} per "
        "month in interest. Paying more than the minimum reduces principal faster "
        "and can save a significant amount of interest over time."
    )


def _hu_minimum_actions(user: User, s: SignalResult) -> list[str]:
    extra = max(50.0, s.credit.total_interest_charges * 2)
    return [
        f"Try paying an extra ${extra:,.2f} above the minimum each month",
        "Use the avalanche method: direct extra payments to the highest-APR card first",
        "Set up bi-weekly payments to make 13 months of payments per year",
        "Round payments up (for example, $100 instead of $85.50)",
    ]


def _hu_autopay_rationale(user: User, s: SignalResult) -> str:
    overdue = sum(1 for c in s.credit.cards if c.is_overdue)
    return (
        f"{overdue} of your {len(s.credit.cards)} credit card(s) currently shows an "
        "overdue payment. Autopay for at least the minimum is a simple option that "
        "can prevent late fees and protect your payment history."
    )


def _hu_autopay_actions(user: User, s: SignalResult) -> list[str]:
    return [
        "Enable autopay for the minimum payment on every card",
        "Schedule a reminder three days before each due date",
        "Contact your issuer to ask about waiving a first late fee",
        "Align due dates with your paydays where the issuer allows it",
    ]


# ── VARIABLE_INCOME_BUDGETER ──────────────────────────────────────────────────

def _vib_buffer_rationale(user: User, s: SignalResult) -> str:
    return (
        f"Your income shows gaps of up to {s.income.longest_gap_days} days, and your "
        f"cash flow buffer is {s.income.cash_flow_buffer:.1f}. A dedicated buffer "
        "account can help you handle irregular income with less stress."
    )


def _vib_buffer_actions(user: User, s: SignalResult) -> list[str]:
    target = s.savings.average_monthly_expenses * 1.5
    return [
        f"Build a buffer of ${target:,.2f} (1.5 months of expenses)",
        "Deposit all income into the buffer account first",
        "Pay yourself a consistent weekly amount from the buffer",
        "Top up the buffer in strong months and draw on it in lean ones",
    ]


def _vib_percent_rationale(user: User, s: SignalResult) -> str:
    return (
        f"Your deposits vary by about {round(s.income.payment_variability * 100)}%, "
        "so a percent-based budget is an approach that adjusts automatically as "
        "your income changes."
    )


def _vib_percent_actions(user: User, s: SignalResult) -> list[str]:
    return [
        "Allocate 50% of each payment to needs (housing, food, utilities)",
        "Allocate 20% to savings and debt paydown",
        "Allocate 30% to wants and discretionary spending",
        "Shift to 60/10/30 during lean months",
    ]


# ── SUBSCRIPTION_HEAVY ────────────────────────────────────────────────────────

def _top_merchants(s: SignalResult, n: int = 3) -> list[str]:
    ranked = sorted(
        s.subscription.recurring_merchants,
        key=lambda m: (-m.average_amount, m.merchant_name),
    )
    return [m.merchant_name for m in ranked[:n]]


def _sh_audit_rationale(user: User, s: SignalResult) -> str:
    return (
        f"You have {s.subscription.total_recurring_count} subscriptions totaling "
        f"${s.subscription.monthly_recurring_spend:,.2f}/month. Largest: "
        f"{', '.join(_top_merchants(s))}. An audit is an opportunity to keep the "
        "services you value and drop the ones you rarely use."
    )


def _sh_audit_actions(user: User, s: SignalResult) -> list[str]:
    return [
        "List every subscription with its renewal date",
        'For each one, ask: "Have I used this in the last month?"',
        "Cancel the subscriptions you haven't used recently",
        "Ask about annual plans for the ones you keep (often 20-30% cheaper)",
        "Set calendar reminders one week before annual renewals",
    ]


def _sh_alerts_rationale(user: User, s: SignalResult) -> str:
    annual = s.subscription.monthly_recurring_spend * 12
    return (
        f"Your recurring charges add up to about ${annual:,.2f} per year. Renewal "
        "and price-change alerts can help you catch charges before they post."
    )


def _sh_alerts_actions(user: User, s: SignalResult) -> list[str]:
    return [
        "Turn on transaction alerts for recurring merchants in your banking app",
        "Use a single card for subscriptions so charges are easy to review",
        "Review that card's statement on the same day each month",
    ]


# ── SAVINGS_BUILDER ───────────────────────────────────────────────────────────

def _sb_apy_rationale(user: User, s: SignalResult) -> str:
    balance = s.savings.current_savings_balance
    difference = balance * (HIGH_YIELD_APY - TRADITIONAL_APY)
    return (
        f"With ${balance:,.2f} in savings, moving from a traditional account "
        "(0.01% APY) to a high-yield account (4.5% APY) could earn about "
        f"${difference:,.2f} more per year."
    )


def _sb_apy_actions(user: User, s: SignalResult) -> list[str]:
    return [
        "Research FDIC-insured high-yield savings accounts (current rates 4-5%)",
        "Compare fees, minimum balances, and withdrawal limits",
        "Open the new account and start the transfer",
        "Consider a CD ladder for money you won't need for 6-12 months",
    ]


def _sb_automate_rationale(user: User, s: SignalResult) -> str:
    monthly = s.savings.net_inflow / s.window_days * 30
    return (
        f"You're adding about ${monthly:,.2f} per month to savings. Automating "
        "transfers on payday and naming goals for each account can help that "
        "habit keep compounding."
    )


def _sb_automate_actions(user: User, s: SignalResult) -> list[str]:
    target = s.savings.average_monthly_expenses * 6
    return [
        f"Set a six-month emergency goal of ${target:,.2f}",
        "Schedule an automatic transfer for the day after each payday",
        "Increase the transfer by 1% of income every few months",
    ]


# ── LOW_INCOME_STABILIZER ─────────────────────────────────────────────────────

def _lis_fund_rationale(user: User, s: SignalResult) -> str:
    return (
        f"Your emergency fund currently covers "
        f"{s.savings.emergency_fund_coverage:.1f} months of expenses. Even a small "
        "fund of $500-$1,000 can help you avoid high-interest debt when surprises hit."
    )


def _lis_fund_actions(user: User, s: SignalResult) -> list[str]:
    return [
        "Set an initial goal of $500, which covers many minor emergencies",
        "Save $20-$50 per paycheck, even if it feels small",
        "Direct found money (tax refunds, rebates, gifts) to the fund",
        "Keep it in a separate savings account",
        "Celebrate milestones at $100, $250, and $500",
    ]


def _lis_essentials_rationale(user: User, s: SignalResult) -> str:
    return (
        f"Your income is about ${s.income.monthly_income:,.2f} per month. Ranking "
        "expenses by necessity is a strategy that makes sure housing, food, and "
        "utilities are covered first."
    )


def _lis_essentials_actions(user: User, s: SignalResult) -> list[str]:
    return [
        "List fixed essentials (rent, utilities, groceries, transport) first",
        "Check eligibility for utility and food assistance programs",
        "Call providers to ask about lower-cost plans",
    ]


# ── Library ───────────────────────────────────────────────────────────────────

ALL_TEMPLATES: tuple[RecommendationTemplate, ...] = (
    RecommendationTemplate(
        template_id="hu_1",
        persona_type=PersonaType.HIGH_UTILIZATION,
        category="Credit Management",
        title="Reduce Credit Card Utilization",
        description="Lower your credit utilization to help your credit score and reduce interest charges.",
        priority=1,
        is_eligible=lambda u, s: bool(s.credit.cards) and s.credit.highest_utilization >= 0.5,
        render_rationale=_hu_utilization_rationale,
        render_action_items=_hu_utilization_actions,
    ),
    RecommendationTemplate(
        template_id="hu_2",
        persona_type=PersonaType.HIGH_UTILIZATION,
        category="Payment Strategy",
        title="Move Beyond Minimum Payments",
        description="Increase payment amounts to reduce principal and save on interest.",
        priority=2,
        is_eligible=lambda u, s: s.credit.has_minimum_payment_only,
        render_rationale=_hu_minimum_rationale,
        render_action_items=_hu_minimum_actions,
    ),
    RecommendationTemplate(
        template_id="hu_3",
        persona_type=PersonaType.HIGH_UTILIZATION,
        category="Payment Automation",
        title="Set Up Autopay to Stay Current",
        description="Automatic minimum payments can keep every account current.",
        priority=3,
        is_eligible=lambda u, s: s.credit.has_overdue,
        render_rationale=_hu_autopay_rationale,
        render_action_items=_hu_autopay_actions,
    ),
    RecommendationTemplate(
        template_id="vib_1",
        persona_type=PersonaType.VARIABLE_INCOME_BUDGETER,
        category="Income Smoothing",
        title="Build a Cash Flow Buffer",
        description="Create a buffer account to smooth out irregular income.",
        priority=1,
        is_eligible=lambda u, s: s.income.has_income_gap,
        render_rationale=_vib_buffer_rationale,
        render_action_items=_vib_buffer_actions,
    ),
    RecommendationTemplate(
        template_id="vib_2",
        persona_type=PersonaType.VARIABLE_INCOME_BUDGETER,
        category="Budgeting Strategy",
        title="Use Percent-Based Budgeting",
        description="Budget with percentages rather than fixed dollar amounts.",
        priority=2,
        is_eligible=lambda u, s: s.income.payment_variability > 0.2,
        render_rationale=_vib_percent_rationale,
        render_action_items=_vib_percent_actions,
    ),
    RecommendationTemplate(
        template_id="sh_1",
        persona_type=PersonaType.SUBSCRIPTION_HEAVY,
        category="Subscription Audit",
        title="Audit Your Subscriptions",
        description="Review recurring subscriptions and cancel services you no longer use.",
        priority=1,
        is_eligible=lambda u, s: s.subscription.total_recurring_count >= 3,
        render_rationale=_sh_audit_rationale,
        render_action_items=_sh_audit_actions,
    ),
    RecommendationTemplate(
        template_id="sh_2",
        persona_type=PersonaType.SUBSCRIPTION_HEAVY,
        category="Bill Alerts",
        title="Turn On Renewal Alerts",
        description="Get notified before recurring charges renew or change price.",
        priority=2,
        is_eligible=lambda u, s: s.subscription.monthly_recurring_spend > 0,
        render_rationale=_sh_alerts_rationale,
        render_action_items=_sh_alerts_actions,
    ),
    RecommendationTemplate(
        template_id="sb_1",
        persona_type=PersonaType.SAVINGS_BUILDER,
        category="Savings Optimization",
        title="Maximize Your Savings APY",
        description="Move savings to a high-yield account for better returns.",
        priority=1,
        is_eligible=lambda u, s: s.savings.current_savings_balance > 1000,
        render_rationale=_sb_apy_rationale,
        render_action_items=_sb_apy_actions,
    ),
    RecommendationTemplate(
        template_id="sb_2",
        persona_type=PersonaType.SAVINGS_BUILDER,
        category="Savings Automation",
        title="Automate Your Savings Goals",
        description="Put savings on autopilot with scheduled transfers and named goals.",
        priority=2,
        is_eligible=lambda u, s: s.savings.net_inflow > 0,
        render_rationale=_sb_automate_rationale,
        render_action_items=_sb_automate_actions,
    ),
    RecommendationTemplate(
        template_id="lis_1",
        persona_type=PersonaType.LOW_INCOME_STABILIZER,
        category="Micro-Budgeting",
        title="Build a Micro-Emergency Fund",
        description="Start with a small, achievable emergency fund goal.",
        priority=1,
        is_eligible=lambda u, s: s.savings.emergency_fund_coverage < 0.5,
        render_rationale=_lis_fund_rationale,
        render_action_items=_lis_fund_actions,
    ),
    RecommendationTemplate(
        template_id="lis_2",
        persona_type=PersonaType.LOW_INCOME_STABILIZER,
        category="Essential Expenses",
        title="Prioritize Essential Expenses",
        description="Cover the essentials first and find room in the rest of the budget.",
        priority=2,
        is_eligible=lambda u, s: s.income.monthly_income > 0,
        render_rationale=_lis_essentials_rationale,
        render_action_items=_lis_essentials_actions,
    ),
)


def templates_for(
    persona_type: PersonaType,
    templates: tuple[RecommendationTemplate, ...] | list[RecommendationTemplate] = ALL_TEMPLATES,
) -> list[RecommendationTemplate]:
    """Return a persona's templates ordered by priority, then id."""
    return sorted(
        (t for t in templates if t.persona_type == persona_type),
        key=lambda t: (t.priority, t.template_id),
    )
