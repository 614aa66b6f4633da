"""
Tests for core.records.resolver — current version per logical entity.
"""

import itertools
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from core.records.entities import (
    Department,
    OperationalRecord,
    RecordStatus,
    new_record,
    revise,
    tombstone,
)
from core.records.resolver import canonical_records, resolve_latest, version_key

T0 = datetime(2024, 1, 5, 8, 0, 0, tzinfo=timezone.utc)


def _item(name, price, *, at=T0, status=RecordStatus.APPROVED, record_id=None):
    return new_record(
        entity_type=Department.STOREKEEPER,
        data={"type": "config_item", "item_name": name, "category": "Drinks", "unit_price": price},
        created_at=at,
        status=status,
        submitted_by="store-1",
        record_id=record_id,
    )


def _edit(record, price, *, minutes=1, status=RecordStatus.APPROVED):
    return revise(
        record,
        data=dict(record.data, unit_price=price),
        created_at=record.created_at + timedelta(minutes=minutes),
        status=status,
        submitted_by="store-1",
    )


class TestResolveLatest:
    def test_highest_version_wins(self):
        v1 = _item("Soda", 10)
        v2 = _edit(v1, 12)
        v3 = _edit(v2, 15)
        current = resolve_latest([v1, v3, v2])
        assert current == {v1.original_id: v3}

    def test_independent_chains(self):
        soda = _item("Soda", 10)
        water = _item("Water", 5)
        current = resolve_latest([soda, water])
        assert set(current) == {soda.original_id, water.original_id}

    def test_input_order_does_not_matter(self):
        v1 = _item("Soda", 10)
        v2 = _edit(v1, 12)
        v3 = _edit(v2, 15)
        other = _item("Water", 5)
        expected = resolve_latest([v1, v2, v3, other])
        for perm in itertools.permutations([v1, v2, v3, other]):
            assert resolve_latest(perm) == expected

    def test_tie_on_version_and_time_broken_by_id(self):
        v1 = _item("Soda", 10)
        a = OperationalRecord(
            id="b-second", original_id=v1.original_id, version_no=2,
            entity_type="storekeeper", data=v1.data, status="approved", created_at=T0,
        )
        b = OperationalRecord(
            id="a-first", original_id=v1.original_id, version_no=2,
            entity_type="storekeeper", data=v1.data, status="approved", created_at=T0,
        )
        assert resolve_latest([a, b, v1])[v1.original_id].id == "b-second"
        assert resolve_latest([b, a, v1])[v1.original_id].id == "b-second"


class TestDeletion:
    def test_newest_deleted_removes_chain(self):
        v1 = _item("Soda", 10)
        gone = tombstone(v1, deleted_at=T0 + timedelta(hours=1), submitted_by="admin-1")
        assert resolve_latest([v1, gone]) == {}

    def test_restore_after_delete(self):
        v1 = _item("Soda", 10)
        gone = tombstone(v1, deleted_at=T0 + timedelta(hours=1), submitted_by="admin-1")
        back = revise(
            gone, data=v1.data, created_at=T0 + timedelta(hours=2),
            status=RecordStatus.APPROVED, submitted_by="admin-1",
        )
        current = resolve_latest([v1, gone, back])
        assert current[v1.original_id].id == back.id
        assert back.version_no == 3

    def test_tombstone_is_approved_new_version(self):
        v1 = _item("Soda", 10)
        gone = tombstone(v1, deleted_at=T0 + timedelta(hours=1))
        assert gone.version_no == 2
        assert gone.status == RecordStatus.APPROVED
        assert gone.is_deleted
        assert gone.previous_version_id == v1.id


class TestCanonicalRecords:
    def test_pending_edit_keeps_approved_version(self):
        v1 = _item("Soda", 10)
        v2 = _edit(v1, 99, status=RecordStatus.PENDING)
        [current] = canonical_records([v1, v2])
        assert current.id == v1.id

    def test_rejected_records_never_visible(self):
        rejected = _item("Soda", 10, status=RecordStatus.REJECTED)
        assert canonical_records([rejected]) == []

    def test_approved_deletion_removes_chain(self):
        v1 = _item("Soda", 10)
        gone = tombstone(v1, deleted_at=T0 + timedelta(hours=1))
        assert canonical_records([v1, gone]) == []

    def test_pending_deletion_still_applies(self):
        v1 = _item("Soda", 10)
        gone = replace(
            tombstone(v1, deleted_at=T0 + timedelta(hours=1)), status=RecordStatus.PENDING,
        )
        assert canonical_records([v1, gone]) == []

    def test_sorted_by_created_at(self):
        late = _item("Water", 5, at=T0 + timedelta(minutes=5))
        early = _item("Soda", 10, at=T0)
        assert [r.id for r in canonical_records([late, early])] == [early.id, late.id]

    def test_version_key_orders_version_first(self):
        v1 = _item("Soda", 10, at=T0 + timedelta(days=1))
        v2 = revise(v1, data=v1.data, created_at=T0)
        assert version_key(v2) > version_key(v1)


class TestRecordFactories:
    def test_new_record_is_its_own_original(self):
        record = _item("Soda", 10)
        assert record.original_id == record.id
        assert record.version_no == 1

    def test_rejects_naive_created_at(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            _item("Soda", 10, at=datetime(2024, 1, 5))

    def test_requires_type_tag(self):
        with pytest.raises(ValueError, match="type"):
            new_record(entity_type="bar", data={"item_name": "x"}, created_at=T0)

    def test_unknown_department_rejected(self):
        with pytest.raises(ValueError):
            new_record(entity_type="spa", data={"type": "config_item"}, created_at=T0)

    def test_business_date_prefers_payload_date(self):
        record = new_record(
            entity_type="bar",
            data={"type": "stock_issued", "item_name": "Soda", "quantity": 1, "date": "2024-01-03"},
            created_at=T0,
        )
        assert record.business_date().isoformat() == "2024-01-03"
