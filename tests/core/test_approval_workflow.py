"""
Tests for core.primitives.approval — review transitions and visibility.
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.primitives.approval import (
    ApprovalError,
    ApprovalWorkflow,
    InvalidTransitionError,
    can_transition,
    initial_status,
    is_projection_visible,
)
from core.records.entities import Department, RecordStatus, new_record, tombstone
from core.records.errors import RecordNotFoundError
from core.records.store import InMemoryRecordStore
from core.time import FixedClock

T0 = datetime(2024, 1, 5, 8, 0, 0, tzinfo=timezone.utc)


def _submission(dept=Department.BAR, status=RecordStatus.PENDING, at=T0):
    return new_record(
        entity_type=dept,
        data={"type": "stock_issued", "item_name": "Soda", "quantity": 2, "date": "2024-01-05"},
        created_at=at,
        status=status,
        submitted_by="bar-1",
    )


def _workflow(*records):
    store = InMemoryRecordStore(records)
    return store, ApprovalWorkflow(store, FixedClock(T0 + timedelta(hours=1)))


class TestRules:
    @pytest.mark.parametrize("role", ["supervisor", "manager", "admin"])
    def test_supervisory_roles_pre_approved(self, role):
        assert initial_status(role) == RecordStatus.APPROVED

    @pytest.mark.parametrize("role", ["front_desk", "kitchen", "bar", "storekeeper"])
    def test_other_roles_pending(self, role):
        assert initial_status(role) == RecordStatus.PENDING

    def test_transition_table(self):
        assert can_transition(RecordStatus.PENDING, RecordStatus.APPROVED)
        assert can_transition(RecordStatus.PENDING, RecordStatus.REJECTED)
        assert can_transition(RecordStatus.APPROVED, RecordStatus.ARCHIVED)
        assert not can_transition(RecordStatus.REJECTED, RecordStatus.APPROVED)
        assert not can_transition(RecordStatus.ARCHIVED, RecordStatus.APPROVED)
        assert not can_transition(RecordStatus.APPROVED, RecordStatus.PENDING)

    def test_visibility(self):
        approved = _submission(status=RecordStatus.APPROVED)
        assert is_projection_visible(approved)
        assert not is_projection_visible(_submission())
        assert not is_projection_visible(tombstone(approved, deleted_at=T0))


class TestApprovalWorkflow:
    def test_approve_records_reviewer(self):
        record = _submission()
        store, workflow = _workflow(record)
        approved = workflow.approve(record.id, "sup-1", Department.SUPERVISOR)
        assert approved.status == RecordStatus.APPROVED
        assert approved.reviewed_by == "sup-1"
        assert approved.reviewed_at == T0 + timedelta(hours=1)

    def test_reject_requires_reason(self):
        record = _submission()
        _, workflow = _workflow(record)
        with pytest.raises(ValueError, match="reason"):
            workflow.reject(record.id, "sup-1", Department.SUPERVISOR, "  ")

    def test_rejected_cannot_be_approved(self):
        record = _submission()
        _, workflow = _workflow(record)
        workflow.reject(record.id, "sup-1", "supervisor", "wrong quantity")
        with pytest.raises(InvalidTransitionError, match="rejected to approved"):
            workflow.approve(record.id, "mgr-1", "manager")

    def test_archive_only_from_approved(self):
        record = _submission()
        _, workflow = _workflow(record)
        with pytest.raises(InvalidTransitionError):
            workflow.archive(record.id, "admin-1", "admin")
        workflow.approve(record.id, "admin-1", "admin")
        assert workflow.archive(record.id, "admin-1", "admin").status == RecordStatus.ARCHIVED

    def test_non_reviewer_role_rejected(self):
        record = _submission()
        _, workflow = _workflow(record)
        with pytest.raises(ApprovalError, match="cannot review"):
            workflow.approve(record.id, "bar-2", Department.BAR)

    def test_unknown_record(self):
        _, workflow = _workflow()
        with pytest.raises(RecordNotFoundError):
            workflow.approve("missing", "sup-1", "supervisor")

    def test_pending_queue_oldest_first(self):
        late = _submission(at=T0 + timedelta(minutes=5))
        early = _submission(dept=Department.KITCHEN)
        done = _submission(status=RecordStatus.APPROVED)
        _, workflow = _workflow(late, early, done)
        assert [r.id for r in workflow.pending()] == [early.id, late.id]
        assert [r.id for r in workflow.pending([Department.BAR])] == [late.id]
