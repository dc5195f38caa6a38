"""
Time and date utilities.

Signal windows are anchored on an explicit ``as_of`` date so that signal
computation never reads the wall clock; only ``utcnow()`` and ``today_utc()``
do, and callers pass their results in.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def today_utc() -> date:
    """Return today's date in UTC."""
    return utcnow().date()


def window_bounds(as_of: date, window_days: int) -> tuple[date, date]:
    """Return the inclusive ``(start, end)`` dates of a look-back window.

    Args:
        as_of: Last day of the window.
        window_days: Length of the look-back in days.

    Returns:
        ``(as_of - window_days, as_of)``.

    Raises:
        ValueError: If ``window_days < 1``.
    """
    if window_days < 1:
        raise ValueError(f"window_days must be >= 1, got {window_days}.")
    return as_of - timedelta(days=window_days), as_of


def day_gaps(dates: Iterable[date]) -> list[int]:
    """Return day differences between consecutive dates (input must be sorted)."""
    ordered = list(dates)
    return [(b - a).days for a, b in zip(ordered, ordered[1:])]


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse ``YYYY-MM-DD`` (or a full ISO timestamp) into a ``date``; ``None`` passes through."""
    if value is None:
        return None
    return date.fromisoformat(value[:10])
