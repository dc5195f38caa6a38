"""
Credit card signals.

A credit card is an account with ``type == "credit"`` and
``subtype == "credit card"`` that has a matching ``credit_card`` liability;
cards without one are skipped (no APR or payment data to reason about).

Per card:
  utilization     = balance / limit            (limit defaults to 5000)
  minimum-only    = |last payment - minimum| / minimum < 10%
  monthly interest = balance * APR / 12 / 100

Credit signals describe current balances, so they do not depend on the
transaction window.
"""

from __future__ import annotations

import logging

from spendsense.models.account import Account, CreditCardDetails, Liability
from spendsense.models.signal import CreditCardSignal, CreditSignals
from spendsense.signals.utils import round_money, round_ratio

logger = logging.getLogger(__name__)

DEFAULT_CREDIT_LIMIT = 5000.0
MIN_PAYMENT_TOLERANCE = 0.10


def is_minimum_payment_only(details: CreditCardDetails) -> bool:
    """True when the last payment was within 10% of the minimum payment."""
    if not details.last_payment_amount:
        return False
    if details.minimum_payment_amount <= 0:
        return False
    diff = abs(details.last_payment_amount - details.minimum_payment_amount)
    return diff / details.minimum_payment_amount < MIN_PAYMENT_TOLERANCE


def _card_signal(card: Account, details: CreditCardDetails) -> CreditCardSignal:
    balance = card.current_balance
    limit = card.credit_limit or DEFAULT_CREDIT_LIMIT
    interest = balance * details.apr / 12 / 100
    return CreditCardSignal(
        account_id=card.account_id,
        card_mask=card.mask,
        utilization=round_ratio(balance / limit),
        balance=round_money(balance),
        limit=round_money(limit),
        is_minimum_payment_only=is_minimum_payment_only(details),
        interest_charges=round_money(interest),
        is_overdue=details.is_overdue,
    )


def calculate_credit_signals(
    accounts: list[Account],
    liabilities: list[Liability],
) -> CreditSignals:
    """Compute per-card and aggregate credit signals.

    Args:
        accounts: All of the user's accounts.
        liabilities: All of the user's liabilities.

    Returns:
        ``CreditSignals``; an all-zero block when the user has no card with a
        matching credit card liability.
    """
    details_by_account = {
        liability.account_id: liability.details
        for liability in liabilities
        if liability.type == "credit_card" and isinstance(liability.details, CreditCardDetails)
    }

    cards: list[CreditCardSignal] = []
    for account in sorted(accounts, key=lambda a: a.account_id):
        if not account.is_credit_card:
            continue
        details = details_by_account.get(account.account_id)
        if details is None:
            logger.debug(
                "Skipping card %s: no credit_card liability", account.account_id
            )
            continue
        cards.append(_card_signal(account, details))

    if not cards:
        return CreditSignals()

    utilizations = [c.utilization for c in cards]
    return CreditSignals(
        cards=cards,
        average_utilization=round_ratio(sum(utilizations) / len(utilizations)),
        highest_utilization=round_ratio(max(utilizations)),
        has_minimum_payment_only=any(c.is_minimum_payment_only for c in cards),
        total_interest_charges=round_money(sum(c.interest_charges for c in cards)),
        has_overdue=any(c.is_overdue for c in cards),
    )
