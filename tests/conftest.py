"""
Shared pytest fixtures for the SpendSense test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the full
    schema applied. Created anew for each test that requests it.
  - Sample raw records for one consenting user (``u001``) with a checking
    account, a savings account and a credit card at 50% utilization.
  - ``AS_OF``: the fixed end date every signal window in the tests uses.
  - ``make_signals`` and friends: build a ``SignalResult`` directly, for
    tests of code downstream of signal extraction.

Sample transaction history (all on checking):
  - Netflix: $15.99 on the 15th of each month, January to June 2024.
  - Payroll: $2,000 every 14 days from 2024-01-05.
"""

from __future__ import annotations

import sqlite3
from datetime import date, datetime, timedelta, timezone
from typing import Generator

import pytest

from spendsense.db.schema import apply_schema
from spendsense.models.account import (
    Account,
    CreditCardDetails,
    Liability,
    Transaction,
    TransactionCategory,
)
from spendsense.guardrails.disclaimer import STANDARD_DISCLAIMER
from spendsense.models.recommendation import DecisionTrace, Recommendation
from spendsense.models.signal import (
    CreditCardSignal,
    CreditSignals,
    IncomeSignals,
    RecurringMerchant,
    SavingsSignals,
    SignalResult,
    SubscriptionSignals,
)
from spendsense.models.user import ConsentStatus, User
from spendsense.taxonomy.persona_taxonomy import PersonaType

AS_OF = date(2024, 6, 30)


# ── Database fixture ──────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with the full schema applied.

    Foreign key enforcement is ON. Connection is closed after the test.
    """
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    apply_schema(conn)
    yield conn
    conn.close()


# ── Sample domain objects ─────────────────────────────────────────────────────

def make_user(user_id: str = "u001", consent: bool = True) -> User:
    granted = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return User(
        user_id=user_id,
        email=f"{user_id}@example.com",
        first_name="Alex",
        last_name="Rivera",
        created_at=datetime(2023, 12, 1, tzinfo=timezone.utc),
        consent_status=(
            ConsentStatus(active=True, granted_at=granted) if consent else ConsentStatus()
        ),
    )


def make_accounts(
    user_id: str = "u001",
    card_balance: float = 2500.0,
    savings_balance: float = 6000.0,
) -> list[Account]:
    return [
        Account(
            account_id=f"{user_id}_chk",
            user_id=user_id,
            name="Everyday Checking",
            type="depository",
            subtype="checking",
            mask="1111",
            current_balance=3000.0,
        ),
        Account(
            account_id=f"{user_id}_sav",
            user_id=user_id,
            name="Rainy Day Savings",
            type="depository",
            subtype="savings",
            mask="2222",
            current_balance=savings_balance,
        ),
        Account(
            account_id=f"{user_id}_cc",
            user_id=user_id,
            name="Rewards Card",
            type="credit",
            subtype="credit card",
            mask="4523",
            current_balance=card_balance,
            credit_limit=5000.0,
        ),
    ]


def make_card_liability(
    user_id: str = "u001",
    last_payment: float = 200.0,
    is_overdue: bool = False,
) -> Liability:
    return Liability(
        liability_id=f"{user_id}_liab_cc",
        user_id=user_id,
        account_id=f"{user_id}_cc",
        type="credit_card",
        details=CreditCardDetails(
            apr=24.0,
            minimum_payment_amount=75.0,
            last_payment_amount=last_payment,
            last_payment_date=date(2024, 6, 10),
            is_overdue=is_overdue,
        ),
    )


def make_transactions(user_id: str = "u001") -> list[Transaction]:
    account_id = f"{user_id}_chk"
    txns: list[Transaction] = []
    for month in range(1, 7):
        txns.append(Transaction(
            transaction_id=f"{user_id}_netflix_{month}",
            account_id=account_id,
            user_id=user_id,
            amount=-15.99,
            date=date(2024, month, 15),
            name="NETFLIX.COM",
            merchant_name="Netflix",
            category=TransactionCategory(primary="Entertainment", detailed="Streaming"),
            payment_channel="online",
            transaction_type="debit",
        ))

    pay_day = date(2024, 1, 5)
    n = 0
    while pay_day <= AS_OF:
        txns.append(Transaction(
            transaction_id=f"{user_id}_payroll_{n}",
            account_id=account_id,
            user_id=user_id,
            amount=2000.0,
            date=pay_day,
            name="ACME CORP PAYROLL",
            category=TransactionCategory(primary="Income", detailed="Payroll"),
            transaction_type="credit",
        ))
        pay_day += timedelta(days=14)
        n += 1
    return txns


@pytest.fixture
def sample_user() -> User:
    """A user with active consent."""
    return make_user()


@pytest.fixture
def sample_accounts() -> list[Account]:
    """Checking, savings ($6,000) and a credit card at $2,500 of $5,000."""
    return make_accounts()


@pytest.fixture
def sample_liabilities() -> list[Liability]:
    """One credit card liability: 24% APR, $75 minimum, $200 last payment."""
    return [make_card_liability()]


@pytest.fixture
def sample_transactions() -> list[Transaction]:
    """Six monthly Netflix charges plus biweekly payroll for H1 2024."""
    return make_transactions()


# ── Signal builders ───────────────────────────────────────────────────────────

def make_card(
    utilization: float,
    min_only: bool = False,
    interest: float = 0.0,
    overdue: bool = False,
    account_id: str = "u001_cc",
) -> CreditCardSignal:
    return CreditCardSignal(
        account_id=account_id,
        card_mask="4523",
        utilization=utilization,
        balance=utilization * 5000,
        limit=5000.0,
        is_minimum_payment_only=min_only,
        interest_charges=interest,
        is_overdue=overdue,
    )


def make_credit(*cards: CreditCardSignal) -> CreditSignals:
    if not cards:
        return CreditSignals()
    return CreditSignals(
        cards=list(cards),
        average_utilization=sum(c.utilization for c in cards) / len(cards),
        highest_utilization=max(c.utilization for c in cards),
        has_minimum_payment_only=any(c.is_minimum_payment_only for c in cards),
        total_interest_charges=sum(c.interest_charges for c in cards),
        has_overdue=any(c.is_overdue for c in cards),
    )


def steady_income(annual: float = 52080.0) -> IncomeSignals:
    """Biweekly payroll with no variability and a positive cash-flow buffer."""
    return IncomeSignals(
        has_payroll_pattern=True,
        payment_frequency="biweekly",
        average_payment=annual / 12 / 2.17,
        monthly_income=annual / 12,
        cash_flow_buffer=0.5,
        longest_gap_days=14,
        estimated_annual_income=annual,
    )


def make_subscriptions(count: int, monthly: float, share: float) -> SubscriptionSignals:
    merchants = [
        RecurringMerchant(
            merchant_name=f"Service {i}",
            occurrences=3,
            average_amount=monthly / count,
            total_amount=monthly / count * 3,
            cadence="monthly",
            last_date=date(2024, 6, 15),
        )
        for i in range(count)
    ]
    return SubscriptionSignals(
        recurring_merchants=merchants,
        monthly_recurring_spend=monthly,
        subscription_share=share,
        total_recurring_count=count,
    )


def make_signals(
    window: str = "180d",
    subscription: SubscriptionSignals | None = None,
    savings: SavingsSignals | None = None,
    credit: CreditSignals | None = None,
    income: IncomeSignals | None = None,
    user_id: str = "u001",
) -> SignalResult:
    """A ``SignalResult`` with steady income and empty blocks unless overridden."""
    return SignalResult(
        user_id=user_id,
        window=window,
        as_of=AS_OF,
        subscription=subscription or SubscriptionSignals(),
        savings=savings or SavingsSignals(),
        credit=credit or CreditSignals(),
        income=income or steady_income(),
    )


def make_recommendation(
    recommendation_id: str = "rec_0001",
    user_id: str = "u001",
    created_at: datetime = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc),
    **overrides,
) -> Recommendation:
    """A pending high-utilization recommendation that passes every guardrail."""
    fields = dict(
        recommendation_id=recommendation_id,
        user_id=user_id,
        persona_type=PersonaType.HIGH_UTILIZATION,
        category="Credit Management",
        title="Reduce Credit Card Utilization",
        description="Lower your utilization to help your credit score.",
        rationale="Your card ending in 4523 is at 80% utilization.",
        educational_content="Consider paying a little extra each month; it can help.",
        action_items=["Pay down $2,500.00 to reach 30% utilization"],
        disclaimer=STANDARD_DISCLAIMER,
        created_at=created_at,
        decision_trace=DecisionTrace(
            timestamp=created_at,
            persona_matched=PersonaType.HIGH_UTILIZATION,
            signals_used=["credit_utilization"],
            template_applied="hu_1",
            confidence=0.85,
        ),
    )
    fields.update(overrides)
    return Recommendation(**fields)
