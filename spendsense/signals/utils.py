"""
Shared helpers for the signal extractors: window lookup, filtering,
rounding, and small statistics.

Rounding is centralized here so every extractor produces the same
precision:  ``round_money`` (2 dp), ``round_ratio`` (3 dp),
``round_pct`` (2 dp).
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from statistics import median, pstdev
from typing import Iterable, Sequence

from spendsense.models.account import Transaction
from spendsense.utils.time_utils import window_bounds

WINDOW_DAYS: dict[str, int] = {"30d": 30, "180d": 180}

# Average weeks per month, and paychecks per month on a biweekly schedule.
WEEKS_PER_MONTH = 4.33
BIWEEKLY_PER_MONTH = 2.17


def window_days(window: str) -> int:
    """Return the day length of a window label.

    Raises:
        ValueError: If ``window`` is not ``"30d"`` or ``"180d"``.
    """
    try:
        return WINDOW_DAYS[window]
    except KeyError:
        raise ValueError(
            f"Unknown signal window '{window}'. Must be one of {sorted(WINDOW_DAYS)}."
        ) from None


def filter_to_window(
    transactions: Iterable[Transaction],
    as_of: date,
    days: int,
) -> list[Transaction]:
    """Keep transactions dated within ``[as_of - days, as_of]`` (inclusive)."""
    start, end = window_bounds(as_of, days)
    return [t for t in transactions if start <= t.date <= end]


def group_by_counterparty(transactions: Iterable[Transaction]) -> dict[str, list[Transaction]]:
    """Group transactions by ``merchant_name`` (falling back to ``name``)."""
    grouped: dict[str, list[Transaction]] = defaultdict(list)
    for t in transactions:
        grouped[t.counterparty].append(t)
    return dict(grouped)


def sort_chronologically(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Sort by date, breaking ties on transaction id so order is stable."""
    return sorted(transactions, key=lambda t: (t.date, t.transaction_id))


def coefficient_of_variation(values: Sequence[float]) -> float:
    """Population standard deviation divided by the mean; 0 when undefined."""
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    if mean <= 0:
        return 0.0
    return pstdev(values) / mean


def median_or_zero(values: Sequence[float]) -> float:
    return float(median(values)) if values else 0.0


def round_money(value: float) -> float:
    return round(value, 2)


def round_ratio(value: float) -> float:
    return round(value, 3)


def round_pct(value: float) -> float:
    return round(value, 2)
