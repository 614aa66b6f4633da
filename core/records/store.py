"""
HotelOps Records — Record Store Contract
==========================================
The projection engine consumes storage only through RecordStore:

    insert(records)           — append new versions (never overwrite)
    query(RecordQuery)        — filtered range read, deterministic order
    update_status(id, ...)    — the one permitted in-place change
    get(id)                   — single version lookup

InMemoryRecordStore is the reference implementation used by tests
and batch tooling; DjangoRecordStore (core.records.repository) is
the database-backed one. Both apply RecordQuery.matches() so filter
semantics cannot drift between them.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from core.records.entities import Department, OperationalRecord, RecordStatus
from core.records.errors import DuplicateRecordError, RecordNotFoundError
from core.time import as_date


def payload_value(data: Any, path: str) -> Any:
    """Read a dotted path ("stay.room_id") from a raw payload; None if absent."""
    value = data
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def normalize_payload_value(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return as_date(value).isoformat()
    return value


# ══════════════════════════════════════════════════════════════
# QUERY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RecordQuery:
    """
    Filter for a record store read.

    Empty tuples mean "no constraint". Date bounds apply to the
    record's business date (payload `date`, else created_at) as the
    half-open range [on_or_after, before). payload_equals compares
    dotted payload paths; date values compare on their ISO day.
    """

    entity_types: Tuple[Department, ...] = ()
    statuses: Tuple[RecordStatus, ...] = ()
    payload_types: Tuple[str, ...] = ()
    original_ids: Tuple[str, ...] = ()
    payload_equals: Tuple[Tuple[str, Any], ...] = ()
    on_or_after: Optional[date] = None
    before: Optional[date] = None
    include_deleted: bool = True
    limit: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "entity_types", tuple(Department.parse(e) for e in self.entity_types)
        )
        object.__setattr__(
            self, "statuses", tuple(RecordStatus(s) for s in self.statuses)
        )
        if self.on_or_after and self.before and self.on_or_after > self.before:
            raise ValueError("on_or_after must be <= before.")
        if self.limit is not None and self.limit < 1:
            raise ValueError("limit must be >= 1.")

    def matches(self, record: OperationalRecord) -> bool:
        if self.entity_types and record.entity_type not in self.entity_types:
            return False
        if self.statuses and record.status not in self.statuses:
            return False
        if self.payload_types and record.payload_type not in self.payload_types:
            return False
        if self.original_ids and record.original_id not in self.original_ids:
            return False
        if not self.include_deleted and record.is_deleted:
            return False
        for path, expected in self.payload_equals:
            actual = payload_value(record.data, path)
            if normalize_payload_value(actual) != normalize_payload_value(expected):
                return False
        if self.on_or_after is not None or self.before is not None:
            day = record.business_date()
            if self.on_or_after is not None and day < self.on_or_after:
                return False
            if self.before is not None and day >= self.before:
                return False
        return True


def ordering_key(record: OperationalRecord) -> tuple:
    """Store read order: original_id, version_no, created_at, id."""
    return (record.original_id, record.version_no, record.created_at, record.id)


# ══════════════════════════════════════════════════════════════
# STORE PROTOCOL
# ══════════════════════════════════════════════════════════════

class RecordStore(Protocol):

    def insert(self, records: Sequence[OperationalRecord]) -> None:
        """Append records. All-or-nothing per call."""
        ...  # pragma: no cover

    def query(self, query: RecordQuery) -> List[OperationalRecord]:
        ...  # pragma: no cover

    def get(self, record_id: str) -> Optional[OperationalRecord]:
        ...  # pragma: no cover

    def update_status(
        self,
        record_id: str,
        status: RecordStatus,
        *,
        reviewed_by: Optional[str] = None,
        reviewed_at: Optional[datetime] = None,
        rejection_reason: Optional[str] = None,
    ) -> OperationalRecord:
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IN-MEMORY STORE
# ══════════════════════════════════════════════════════════════

class InMemoryRecordStore:
    """Thread-safe in-process record log."""

    def __init__(self, records: Sequence[OperationalRecord] = ()) -> None:
        self._records: Dict[str, OperationalRecord] = {}
        self._versions: set = set()
        self._lock = threading.Lock()
        if records:
            self.insert(records)

    def insert(self, records: Sequence[OperationalRecord]) -> None:
        with self._lock:
            seen_ids = set()
            seen_versions = set()
            for record in records:
                version = (record.original_id, record.version_no)
                if record.id in self._records or record.id in seen_ids:
                    raise DuplicateRecordError(record.id)
                if version in self._versions or version in seen_versions:
                    raise DuplicateRecordError(
                        record.id,
                        f"version {record.version_no} of {record.original_id} exists",
                    )
                seen_ids.add(record.id)
                seen_versions.add(version)
            for record in records:
                self._records[record.id] = record
                self._versions.add((record.original_id, record.version_no))

    def query(self, query: RecordQuery) -> List[OperationalRecord]:
        with self._lock:
            rows = [r for r in self._records.values() if query.matches(r)]
        rows.sort(key=ordering_key)
        if query.limit is not None:
            rows = rows[: query.limit]
        return rows

    def get(self, record_id: str) -> Optional[OperationalRecord]:
        return self._records.get(record_id)

    def update_status(
        self,
        record_id: str,
        status: RecordStatus,
        *,
        reviewed_by: Optional[str] = None,
        reviewed_at: Optional[datetime] = None,
        rejection_reason: Optional[str] = None,
    ) -> OperationalRecord:
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                raise RecordNotFoundError(record_id)
            updated = replace(
                record,
                status=status,
                reviewed_by=reviewed_by,
                reviewed_at=reviewed_at,
                rejection_reason=rejection_reason,
            )
            self._records[record_id] = updated
            return updated

    @property
    def size(self) -> int:
        return len(self._records)

    def all(self) -> List[OperationalRecord]:
        return sorted(self._records.values(), key=ordering_key)
