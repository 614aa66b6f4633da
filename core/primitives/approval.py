"""
HotelOps Approval Workflow — Record Visibility Gate
=====================================================
Every submitted record version starts pending (or pre-approved, for
supervisory roles). Only approved, non-deleted versions feed the
stock, ledger and room engines.

Transitions:
    pending  → approved | rejected
    approved → archived
    rejected, archived: terminal

RULES:
- A status change is the only in-place update a record ever gets
- Rejected versions are never re-approved; the submitter corrects
  by inserting a new version under the same original_id
- Only supervisor, manager or admin may review
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, Optional, Sequence, Union

from core.records.entities import Department, OperationalRecord, RecordStatus
from core.records.errors import RecordNotFoundError
from core.records.store import RecordQuery, RecordStore
from core.time import Clock

logger = logging.getLogger("hotelops.approval")


# ══════════════════════════════════════════════════════════════
# RULES
# ══════════════════════════════════════════════════════════════

ALLOWED_TRANSITIONS: Dict[RecordStatus, FrozenSet[RecordStatus]] = {
    RecordStatus.PENDING: frozenset({RecordStatus.APPROVED, RecordStatus.REJECTED}),
    RecordStatus.APPROVED: frozenset({RecordStatus.ARCHIVED}),
    RecordStatus.REJECTED: frozenset(),
    RecordStatus.ARCHIVED: frozenset(),
}

REVIEWER_ROLES: FrozenSet[Department] = frozenset({
    Department.SUPERVISOR, Department.MANAGER, Department.ADMIN,
})


class ApprovalError(Exception):
    """Base error for review operations."""
    pass


class InvalidTransitionError(ApprovalError):

    def __init__(self, record_id: str, current: RecordStatus, target: RecordStatus):
        self.record_id = record_id
        self.current = current
        self.target = target
        super().__init__(
            f"Record {record_id} cannot move from {current.value} to "
            f"{target.value}."
        )


def can_transition(current: RecordStatus, target: RecordStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[RecordStatus(current)]


def initial_status(role: Union[Department, str]) -> RecordStatus:
    """Supervisory submissions are pre-approved; everyone else waits for review."""
    if Department.parse(role) in REVIEWER_ROLES:
        return RecordStatus.APPROVED
    return RecordStatus.PENDING


def is_projection_visible(record: OperationalRecord) -> bool:
    return record.is_visible


# ══════════════════════════════════════════════════════════════
# WORKFLOW SERVICE
# ══════════════════════════════════════════════════════════════

class ApprovalWorkflow:
    """Applies review decisions to stored records."""

    def __init__(self, store: RecordStore, clock: Clock) -> None:
        self._store = store
        self._clock = clock

    def approve(self, record_id: str, reviewer: str, role: Department) -> OperationalRecord:
        return self._transition(record_id, RecordStatus.APPROVED, reviewer, role)

    def reject(
        self, record_id: str, reviewer: str, role: Department, reason: str
    ) -> OperationalRecord:
        if not reason or not reason.strip():
            raise ValueError("A rejection reason is required.")
        return self._transition(record_id, RecordStatus.REJECTED, reviewer, role, reason)

    def archive(self, record_id: str, reviewer: str, role: Department) -> OperationalRecord:
        return self._transition(record_id, RecordStatus.ARCHIVED, reviewer, role)

    def pending(self, entity_types: Sequence[Department] = ()) -> List[OperationalRecord]:
        """Pending versions awaiting review, oldest first."""
        rows = self._store.query(RecordQuery(
            entity_types=tuple(entity_types),
            statuses=(RecordStatus.PENDING,),
            include_deleted=False,
        ))
        return sorted(rows, key=lambda r: (r.created_at, r.id))

    def _transition(
        self,
        record_id: str,
        target: RecordStatus,
        reviewer: str,
        role: Department,
        reason: Optional[str] = None,
    ) -> OperationalRecord:
        if Department.parse(role) not in REVIEWER_ROLES:
            raise ApprovalError(
                f"Role '{Department.parse(role).value}' cannot review records."
            )
        record = self._store.get(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        if not can_transition(record.status, target):
            raise InvalidTransitionError(record_id, record.status, target)

        updated = self._store.update_status(
            record_id,
            target,
            reviewed_by=reviewer,
            reviewed_at=self._clock.now_utc(),
            rejection_reason=reason,
        )
        logger.info(
            "Record %s (%s) %s → %s by %s",
            record_id, record.payload_type, record.status.value, target.value, reviewer,
        )
        return updated
