"""
Tests for core.time and core.session — clocks, business dates, session guard.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core.session import SessionExpiredError, StaticSession, require_active_session
from core.time import (
    DateWindow,
    FixedClock,
    SystemClock,
    as_date,
    ceil_div,
    get_default_clock,
    month_bounds,
    nights_between,
    set_default_clock,
)


class TestClocks:
    def test_system_clock_is_utc(self):
        assert SystemClock().now_utc().tzinfo == timezone.utc

    def test_fixed_clock_rejects_naive(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            FixedClock(datetime(2024, 1, 1))

    def test_fixed_clock_advance_days(self):
        clock = FixedClock(datetime(2024, 1, 7, 23, 0, tzinfo=timezone.utc))
        clock.advance(days=1)
        assert clock.today() == date(2024, 1, 8)
        clock.advance(seconds=3600)
        assert clock.today() == date(2024, 1, 9)

    def test_business_date_is_utc_day(self):
        lagos_morning = datetime(2024, 1, 8, 0, 30, tzinfo=timezone(timedelta(hours=1)))
        clock = FixedClock(lagos_morning)
        assert clock.now_utc() == lagos_morning
        assert clock.today() == date(2024, 1, 7)

    def test_default_clock_override(self):
        original = get_default_clock()
        fixed = FixedClock(datetime(2024, 1, 1, tzinfo=timezone.utc))
        set_default_clock(fixed)
        try:
            assert get_default_clock() is fixed
        finally:
            set_default_clock(original)


class TestDateWindow:
    def test_day_window_is_half_open(self):
        window = DateWindow.for_day(date(2024, 1, 7))
        assert window.contains(date(2024, 1, 7))
        assert not window.contains(date(2024, 1, 8))
        assert window.days == 1

    def test_month_window(self):
        window = DateWindow.for_month(2024, 2)
        assert window.start == date(2024, 2, 1)
        assert window.end == date(2024, 3, 1)
        assert window.days == 29

    def test_inverted_window_rejected(self):
        with pytest.raises(ValueError, match="must be <="):
            DateWindow(start=date(2024, 1, 2), end=date(2024, 1, 1))

    def test_month_bounds_validation(self):
        with pytest.raises(ValueError, match="1..12"):
            month_bounds(2024, 13)


class TestDateHelpers:
    def test_as_date_accepts_iso_forms(self):
        assert as_date("2024-01-07") == date(2024, 1, 7)
        assert as_date("2024-01-07T18:30:00Z") == date(2024, 1, 7)
        assert as_date(datetime(2024, 1, 7, 5, tzinfo=timezone.utc)) == date(2024, 1, 7)
        assert as_date(None) is None

    def test_nights_never_negative(self):
        assert nights_between(date(2024, 1, 1), date(2024, 1, 4)) == 3
        assert nights_between(date(2024, 1, 4), date(2024, 1, 1)) == 0

    def test_ceil_div(self):
        assert ceil_div(Decimal(25000), Decimal(10000)) == 3
        assert ceil_div(Decimal(20000), Decimal(10000)) == 2
        assert ceil_div(Decimal(5), Decimal(0)) == 0


class TestSessionGuard:
    def test_active_session_passes(self):
        require_active_session(StaticSession(), "checkout")

    def test_expired_session_raises(self):
        session = StaticSession()
        session.expire()
        with pytest.raises(SessionExpiredError, match="before checkout"):
            require_active_session(session, "checkout")
        session.renew()
        require_active_session(session, "checkout")
