"""
HotelOps Core Time — Clocks
=============================
Engines never read the wall clock. Services that stamp records or
need "today" (room board, interrupted checkout, report dates) take a
Clock; tests pass a FixedClock and step it through a scenario.

The hotel's business date is the UTC calendar day of the clock.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):

    @abstractmethod
    def now_utc(self) -> datetime:
        ...  # pragma: no cover

    def today(self) -> date:
        """Business date the hotel is operating on."""
        return self.now_utc().date()


class SystemClock(Clock):

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Stands still until advanced."""

    def __init__(self, at: datetime) -> None:
        if at.tzinfo is None:
            raise ValueError("FixedClock requires timezone-aware datetime.")
        self._at = at.astimezone(timezone.utc)

    def now_utc(self) -> datetime:
        return self._at

    def advance(self, seconds: float = 0, days: int = 0) -> None:
        self._at += timedelta(days=days, seconds=seconds)


_clock: Clock = SystemClock()


def get_default_clock() -> Clock:
    """Clock used by services constructed without one."""
    return _clock


def set_default_clock(clock: Clock) -> None:
    global _clock
    _clock = clock
