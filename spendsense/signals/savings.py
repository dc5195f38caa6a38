"""
Savings signals.

Savings accounts are those with subtype ``savings``, ``money market``,
``cash management`` or ``hsa``.

  net inflow          credits minus |debits| on savings accounts, in-window
  estimated start     max(current balance - net inflow, 0)
  growth rate (%)     (current - start) / start * 100; 100 when start is 0
                      and inflow is positive, else 0
  monthly expenses    |non-transfer debits outside savings| / window * 30
  coverage (months)   current balance / monthly expenses
"""

from __future__ import annotations

from spendsense.models.account import Account, Transaction
from spendsense.models.signal import SavingsSignals
from spendsense.signals.utils import round_money, round_pct

TRANSFER_CATEGORY = "Transfer"


def calculate_savings_signals(
    accounts: list[Account],
    transactions: list[Transaction],
    window_days: int,
) -> SavingsSignals:
    """Compute savings balance, trajectory and emergency coverage.

    Args:
        accounts: All of the user's accounts.
        transactions: The user's transactions inside the window.
        window_days: Window length in days.

    Returns:
        ``SavingsSignals``; an all-zero block when there are no savings accounts.
    """
    savings_accounts = [a for a in accounts if a.is_savings]
    if not savings_accounts:
        return SavingsSignals()

    savings_ids = {a.account_id for a in savings_accounts}
    current = sum(a.current_balance for a in savings_accounts)

    net_inflow = sum(
        t.amount if t.is_credit else -abs(t.amount)
        for t in transactions
        if t.account_id in savings_ids
    )

    start = max(current - net_inflow, 0.0)
    if start > 0:
        growth = (current - start) / start * 100
    else:
        growth = 100.0 if net_inflow > 0 else 0.0

    expenses = abs(sum(
        t.amount
        for t in transactions
        if t.is_debit
        and t.account_id not in savings_ids
        and t.category.primary != TRANSFER_CATEGORY
    ))
    monthly_expenses = expenses / window_days * 30
    coverage = current / monthly_expenses if monthly_expenses > 0 else 0.0

    return SavingsSignals(
        net_inflow=round_money(net_inflow),
        growth_rate=round_pct(growth),
        emergency_fund_coverage=round(coverage, 2),
        average_monthly_expenses=round_money(monthly_expenses),
        current_savings_balance=round_money(current),
    )
