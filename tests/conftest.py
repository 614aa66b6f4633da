"""Shared fixtures: a fixed clock, an in-memory record log, a live session."""

from datetime import datetime, timezone

import pytest

from core.records.store import InMemoryRecordStore
from core.session import StaticSession
from core.time import FixedClock

T0 = datetime(2024, 1, 10, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def session():
    return StaticSession(active=True, user_id="staff-1")
