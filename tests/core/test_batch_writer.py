"""
Tests for core.records.batch — chunked, retrying write bursts.
"""

from datetime import datetime, timezone

import pytest

from core.config import HotelOpsSettings
from core.records.batch import BatchWriter
from core.records.entities import Department, new_record
from core.records.errors import RecordConstraintError, RecordStoreUnavailableError
from core.records.store import InMemoryRecordStore
from core.session import SessionExpiredError, StaticSession

T0 = datetime(2024, 1, 5, 8, 0, 0, tzinfo=timezone.utc)

SETTINGS = HotelOpsSettings(batch_chunk_size=2, batch_max_attempts=3, batch_backoff_seconds=0.5)


def _records(n):
    return [
        new_record(
            entity_type=Department.STOREKEEPER,
            data={"type": "stock_restock", "item_name": f"Item {i}", "quantity": 1, "date": "2024-01-05"},
            created_at=T0,
            submitted_by="store-1",
        )
        for i in range(n)
    ]


class FlakyStore(InMemoryRecordStore):
    """Fails the first `failures` insert calls, optionally on one chunk only."""

    def __init__(self, failures=0, error=None, fail_from_call=1):
        super().__init__()
        self.calls = 0
        self.failures = failures
        self.error = error or RecordStoreUnavailableError("connection reset")
        self.fail_from_call = fail_from_call

    def insert(self, records):
        self.calls += 1
        if self.calls >= self.fail_from_call and self.failures > 0:
            self.failures -= 1
            raise self.error
        super().insert(records)


class TestBatchWriter:
    def test_writes_in_chunks(self):
        store = FlakyStore()
        records = _records(5)
        result = BatchWriter(store, StaticSession(), SETTINGS, sleep=lambda s: None).write(records)
        assert result.complete
        assert result.inserted_count == 5
        assert store.calls == 3

    def test_empty_batch(self):
        result = BatchWriter(FlakyStore(), StaticSession(), SETTINGS).write([])
        assert result.complete
        assert result.inserted_count == 0

    def test_expired_session_fails_fast(self):
        store = FlakyStore()
        with pytest.raises(SessionExpiredError):
            BatchWriter(store, StaticSession(active=False), SETTINGS).write(_records(3))
        assert store.calls == 0
        assert store.size == 0

    def test_transient_failure_retried_with_linear_backoff(self):
        sleeps = []
        store = FlakyStore(failures=2)
        result = BatchWriter(store, StaticSession(), SETTINGS, sleep=sleeps.append).write(_records(2))
        assert result.complete
        assert sleeps == [0.5, 1.0]

    def test_gives_up_after_max_attempts(self):
        store = FlakyStore(failures=10, fail_from_call=2)
        records = _records(5)
        result = BatchWriter(store, StaticSession(), SETTINGS, sleep=lambda s: None).write(records)
        assert result.partial
        assert result.inserted_ids == tuple(r.id for r in records[:2])
        assert result.failed_ids == tuple(r.id for r in records[2:4])
        assert result.unattempted_ids == (records[4].id,)
        assert "connection reset" in result.error
        assert store.calls == 1 + SETTINGS.batch_max_attempts

    def test_constraint_violation_not_retried(self):
        sleeps = []
        store = FlakyStore(failures=1, error=RecordConstraintError("uq_x", "clash"))
        result = BatchWriter(store, StaticSession(), SETTINGS, sleep=sleeps.append).write(_records(2))
        assert not result.complete
        assert not result.partial
        assert sleeps == []
        assert store.calls == 1

    def test_session_expiring_during_backoff_stops_burst(self):
        session = StaticSession()
        store = FlakyStore(failures=5)
        result = BatchWriter(
            store, session, SETTINGS, sleep=lambda s: session.expire(),
        ).write(_records(4))
        assert result.session_expired
        assert result.inserted_count == 0
        assert store.calls == 1
