"""
Derived behavioral signals.

A ``SignalResult`` bundles four independent blocks computed over one
look-back window ending on ``as_of``. It contains no wall-clock timestamp,
so identical inputs always serialize to identical JSON; storage records
when a result was computed separately.

Units:
  - Money fields are in account currency, rounded to 2 decimals.
  - Ratios (utilization, variability) are rounded to 3 decimals.
  - ``subscription_share`` and ``growth_rate`` are percentages (0-100+).
  - ``emergency_fund_coverage`` is months of expenses.
  - ``cash_flow_buffer`` is (monthly income - monthly spend) / monthly spend.
"""

from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Window = Literal["30d", "180d"]
Cadence = Literal["weekly", "monthly"]
PaymentFrequency = Literal["weekly", "biweekly", "monthly", "variable"]


class RecurringMerchant(BaseModel):
    """A merchant charging the user on a regular schedule."""

    model_config = ConfigDict(frozen=True)

    merchant_name: str
    occurrences: int
    average_amount: float
    total_amount: float
    cadence: Cadence
    last_date: date


class SubscriptionSignals(BaseModel):
    model_config = ConfigDict(frozen=True)

    recurring_merchants: list[RecurringMerchant] = Field(default_factory=list)
    monthly_recurring_spend: float = 0.0
    subscription_share: float = 0.0
    total_recurring_count: int = 0


class SavingsSignals(BaseModel):
    model_config = ConfigDict(frozen=True)

    net_inflow: float = 0.0
    growth_rate: float = 0.0
    emergency_fund_coverage: float = 0.0
    average_monthly_expenses: float = 0.0
    current_savings_balance: float = 0.0


class CreditCardSignal(BaseModel):
    """Per-card credit metrics."""

    model_config = ConfigDict(frozen=True)

    account_id: str
    card_mask: str
    utilization: float
    balance: float
    limit: float
    is_minimum_payment_only: bool
    interest_charges: float
    is_overdue: bool


class CreditSignals(BaseModel):
    model_config = ConfigDict(frozen=True)

    cards: list[CreditCardSignal] = Field(default_factory=list)
    average_utilization: float = 0.0
    highest_utilization: float = 0.0
    has_minimum_payment_only: bool = False
    total_interest_charges: float = 0.0
    has_overdue: bool = False


class IncomeSignals(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_payroll_pattern: bool = False
    payment_frequency: Optional[PaymentFrequency] = None
    average_payment: float = 0.0
    payment_variability: float = 0.0
    monthly_income: float = 0.0
    cash_flow_buffer: float = 0.0
    has_income_gap: bool = False
    longest_gap_days: int = 0
    estimated_annual_income: float = 0.0


class SignalResult(BaseModel):
    """All four signal blocks for one user over one window.

    Attributes:
        user_id: The user the signals describe.
        window: ``"30d"`` or ``"180d"``.
        as_of: Last day of the look-back window.
        subscription: Recurring-merchant load.
        savings: Savings balance and trajectory.
        credit: Credit card utilization and payment behavior.
        income: Income regularity and level.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    window: Window
    as_of: date
    subscription: SubscriptionSignals
    savings: SavingsSignals
    credit: CreditSignals
    income: IncomeSignals

    @property
    def window_days(self) -> int:
        return 30 if self.window == "30d" else 180
