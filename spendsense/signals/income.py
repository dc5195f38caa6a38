"""
Income stability signals.

Income transactions are credits categorized primary ``Income`` or detailed
``Payroll``. Frequency is classified from the median gap between deposits:

  weekly    5-10 days    monthly-equivalent = average * 4.33
  biweekly 12-16 days    monthly-equivalent = average * 2.17
  monthly  25-35 days    monthly-equivalent = average
  variable  otherwise    monthly-equivalent = average

A single deposit has no gaps and is classified ``variable``.
"""

from __future__ import annotations

from spendsense.models.account import Transaction
from spendsense.models.signal import IncomeSignals
from spendsense.signals.utils import (
    BIWEEKLY_PER_MONTH,
    WEEKS_PER_MONTH,
    coefficient_of_variation,
    median_or_zero,
    round_money,
    round_ratio,
    sort_chronologically,
)
from spendsense.utils.time_utils import day_gaps

INCOME_GAP_DAYS = 45

_MONTHLY_MULTIPLIER = {
    "weekly": WEEKS_PER_MONTH,
    "biweekly": BIWEEKLY_PER_MONTH,
    "monthly": 1.0,
    "variable": 1.0,
}


def is_income(t: Transaction) -> bool:
    return t.is_credit and (
        t.category.primary == "Income" or t.category.detailed == "Payroll"
    )


def classify_frequency(gaps: list[int]) -> str:
    """Classify pay frequency from the gaps (days) between deposits."""
    if not gaps:
        return "variable"
    mid = median_or_zero(gaps)
    if 5 <= mid <= 10:
        return "weekly"
    if 12 <= mid <= 16:
        return "biweekly"
    if 25 <= mid <= 35:
        return "monthly"
    return "variable"


def calculate_income_signals(
    transactions: list[Transaction],
    window_days: int,
) -> IncomeSignals:
    """Compute income regularity and level over an already-windowed list.

    Args:
        transactions: The user's transactions inside the window.
        window_days: Window length in days, used to normalize spend.

    Returns:
        ``IncomeSignals``; an all-zero block when no income was found.
    """
    deposits = sort_chronologically(t for t in transactions if is_income(t))
    if not deposits:
        return IncomeSignals()

    amounts = [t.amount for t in deposits]
    average = sum(amounts) / len(amounts)
    gaps = day_gaps(t.date for t in deposits)
    frequency = classify_frequency(gaps)
    monthly_income = average * _MONTHLY_MULTIPLIER[frequency]

    spend = abs(sum(t.amount for t in transactions if t.is_debit))
    monthly_spend = spend / window_days * 30
    buffer = (
        (monthly_income - monthly_spend) / monthly_spend
        if monthly_spend > 0 else 0.0
    )

    longest_gap = max(gaps) if gaps else 0
    return IncomeSignals(
        has_payroll_pattern=len(deposits) >= 2,
        payment_frequency=frequency,
        average_payment=round_money(average),
        payment_variability=round_ratio(coefficient_of_variation(amounts)),
        monthly_income=round_money(monthly_income),
        cash_flow_buffer=round(buffer, 2),
        has_income_gap=longest_gap > INCOME_GAP_DAYS,
        longest_gap_days=longest_gap,
        estimated_annual_income=round_money(monthly_income * 12),
    )
