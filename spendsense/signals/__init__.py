"""
Behavioral signal extraction.

Modules:
  utils          - window lookup, filtering, rounding, small statistics.
  credit         - per-card utilization, minimum-payment and interest signals.
  subscriptions  - recurring-merchant detection and subscription share.
  savings        - savings balance, growth, emergency-fund coverage.
  income         - pay frequency, variability, gaps, annualized income.

Entry point: ``detect_signals(user, accounts, transactions, liabilities,
window, as_of=None) -> SignalResult``. It is a pure function of its
arguments; ``as_of`` defaults to today (UTC) and is the only wall-clock read.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from spendsense.models.account import Account, Liability, Transaction
from spendsense.models.signal import SignalResult
from spendsense.models.user import User
from spendsense.signals.credit import calculate_credit_signals
from spendsense.signals.income import calculate_income_signals
from spendsense.signals.savings import calculate_savings_signals
from spendsense.signals.subscriptions import calculate_subscription_signals
from spendsense.signals.utils import filter_to_window, window_days
from spendsense.utils.time_utils import today_utc

logger = logging.getLogger(__name__)

__all__ = ["detect_signals"]


def detect_signals(
    user: User,
    accounts: list[Account],
    transactions: list[Transaction],
    liabilities: list[Liability],
    window: str,
    as_of: Optional[date] = None,
) -> SignalResult:
    """Compute all four signal blocks for one user over one window.

    Records belonging to other users are ignored, so callers may pass
    unfiltered lists.

    Args:
        user: The user being analyzed.
        accounts: The user's accounts.
        transactions: The user's transactions (any date range).
        liabilities: The user's liabilities.
        window: ``"30d"`` or ``"180d"``.
        as_of: Last day of the window. Defaults to today (UTC).

    Returns:
        A frozen ``SignalResult``.

    Raises:
        ValueError: If ``window`` is not a known window label.
    """
    days = window_days(window)
    as_of = as_of or today_utc()

    own_accounts = [a for a in accounts if a.user_id == user.user_id]
    own_liabilities = [
        liability for liability in liabilities if liability.user_id == user.user_id
    ]
    windowed = filter_to_window(
        (t for t in transactions if t.user_id == user.user_id), as_of, days
    )

    result = SignalResult(
        user_id=user.user_id,
        window=window,
        as_of=as_of,
        subscription=calculate_subscription_signals(windowed, days),
        savings=calculate_savings_signals(own_accounts, windowed, days),
        credit=calculate_credit_signals(own_accounts, own_liabilities),
        income=calculate_income_signals(windowed, days),
    )
    logger.debug(
        "Signals for %s [%s as of %s]: %d txns, %d cards, %d recurring",
        user.user_id, window, as_of, len(windowed),
        len(result.credit.cards), result.subscription.total_recurring_count,
    )
    return result
