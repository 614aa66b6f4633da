"""
HotelOps Core Time — Business Date Helpers
============================================
Pure functions over calendar dates. Stock replay and financial
reports work on half-open windows [start, end) of business dates.
"""

from __future__ import annotations

import calendar
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Union


# ══════════════════════════════════════════════════════════════
# DATE WINDOW (half-open [start, end))
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DateWindow:
    """
    A half-open interval of business dates [start, end).

    Invariant: start <= end (enforced at construction).
    An empty window (start == end) contains nothing.
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"DateWindow start ({self.start}) must be <= end ({self.end})."
            )

    @classmethod
    def for_day(cls, day: date) -> "DateWindow":
        return cls(start=day, end=day + timedelta(days=1))

    @classmethod
    def for_month(cls, year: int, month: int) -> "DateWindow":
        start, last = month_bounds(year, month)
        return cls(start=start, end=last + timedelta(days=1))

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days


# ══════════════════════════════════════════════════════════════
# PURE DATE FUNCTIONS
# ══════════════════════════════════════════════════════════════

def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return (first day, last day) of a calendar month."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}.")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def as_date(value: Union[date, datetime, str, None]) -> Optional[date]:
    """
    Coerce a stored value to a business date.

    Accepts date, datetime, 'YYYY-MM-DD' or an ISO-8601 datetime string
    (only the calendar part is kept). Returns None for None/empty.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    raise ValueError(f"Cannot interpret {value!r} as a date.")


def nights_between(start: date, end: date) -> int:
    """Whole nights from start to end, never negative."""
    return max(0, (end - start).days)


def ceil_div(amount, unit) -> int:
    """ceil(amount / unit) for positive units; 0 when unit is not positive."""
    if unit <= 0:
        return 0
    return int(math.ceil(amount / unit))
