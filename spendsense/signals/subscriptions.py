"""
Recurring-merchant (subscription) signals.

A merchant is recurring when, inside the window, it has at least three
debits and every gap between consecutive debits is within ±5 days of the
mean gap. Cadence is weekly for a mean gap in [5, 10] days and monthly
otherwise (including the [20, 35] band and anything outside both bands).
"""

from __future__ import annotations

from spendsense.models.account import Transaction
from spendsense.models.signal import RecurringMerchant, SubscriptionSignals
from spendsense.signals.utils import (
    WEEKS_PER_MONTH,
    group_by_counterparty,
    round_money,
    round_pct,
    sort_chronologically,
)
from spendsense.utils.time_utils import day_gaps

MIN_OCCURRENCES = 3
GAP_TOLERANCE_DAYS = 5


def classify_cadence(mean_gap: float) -> str:
    """Return ``"weekly"`` for a mean gap in [5, 10] days, else ``"monthly"``."""
    if 5 <= mean_gap <= 10:
        return "weekly"
    return "monthly"


def detect_recurring_merchant(
    merchant: str,
    transactions: list[Transaction],
) -> RecurringMerchant | None:
    """Return a ``RecurringMerchant`` if ``transactions`` recur regularly, else ``None``."""
    if len(transactions) < MIN_OCCURRENCES:
        return None

    ordered = sort_chronologically(transactions)
    gaps = day_gaps(t.date for t in ordered)
    mean_gap = sum(gaps) / len(gaps)
    if any(abs(gap - mean_gap) > GAP_TOLERANCE_DAYS for gap in gaps):
        return None

    total = abs(sum(t.amount for t in ordered))
    return RecurringMerchant(
        merchant_name=merchant,
        occurrences=len(ordered),
        average_amount=round_money(total / len(ordered)),
        total_amount=round_money(total),
        cadence=classify_cadence(mean_gap),
        last_date=ordered[-1].date,
    )


def calculate_subscription_signals(
    transactions: list[Transaction],
    window_days: int,
) -> SubscriptionSignals:
    """Compute subscription load over an already-windowed transaction list.

    Args:
        transactions: The user's transactions inside the window.
        window_days: Window length, used to scale monthly spend for the share.

    Returns:
        ``SubscriptionSignals`` with merchants sorted by name.
    """
    debits = [t for t in transactions if t.is_debit and t.amount < 0]

    merchants: list[RecurringMerchant] = []
    for merchant, txns in sorted(group_by_counterparty(debits).items()):
        recurring = detect_recurring_merchant(merchant, txns)
        if recurring is not None:
            merchants.append(recurring)

    monthly_spend = sum(
        m.average_amount * (WEEKS_PER_MONTH if m.cadence == "weekly" else 1.0)
        for m in merchants
    )
    total_spend = abs(sum(t.amount for t in debits))
    share = (
        monthly_spend * (window_days / 30) / total_spend * 100
        if total_spend > 0 else 0.0
    )

    return SubscriptionSignals(
        recurring_merchants=merchants,
        monthly_recurring_spend=round_money(monthly_spend),
        subscription_share=round_pct(share),
        total_recurring_count=len(merchants),
    )
