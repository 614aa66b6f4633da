"""
HotelOps Records — Version Resolver
=====================================
Collapses every version of a logical entity into its one current
value.

Ordering key per version: (version_no, created_at, id). The id term
only matters on an exact (version_no, created_at) tie and makes the
result independent of input order.

Deletion: if the newest version of a chain is a deletion, the chain
has no current value. Older deletions are superseded by later
non-deleted versions (a restore is just another version).
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from core.records.entities import OperationalRecord, RecordStatus


def version_key(record: OperationalRecord) -> tuple:
    return (record.version_no, record.created_at, record.id)


def resolve_latest(records: Iterable[OperationalRecord]) -> Dict[str, OperationalRecord]:
    """
    Map original_id → current version.

    Chains whose newest version is deleted are absent from the result.
    """
    newest: Dict[str, OperationalRecord] = {}
    for record in records:
        held = newest.get(record.original_id)
        if held is None or version_key(record) > version_key(held):
            newest[record.original_id] = record
    return {
        original_id: record
        for original_id, record in newest.items()
        if not record.is_deleted
    }


def canonical_records(records: Iterable[OperationalRecord]) -> List[OperationalRecord]:
    """
    Current, projection-visible versions in deterministic order.

    Only approved versions (and deletions, which always apply) take
    part. A pending edit therefore leaves the last approved version in
    force until it is reviewed.
    """
    eligible = (
        r for r in records
        if r.status == RecordStatus.APPROVED or r.is_deleted
    )
    current = resolve_latest(eligible)
    return sorted(current.values(), key=lambda r: (r.created_at, r.id))
