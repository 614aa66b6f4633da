"""
HotelOps Records — Operational Record
=======================================
One immutable, append-only log entry. Every staff action (booking,
stock movement, housekeeping report, config edit) is written as an
OperationalRecord; all current-state views are projections over them.

Versioning:
    original_id groups all versions of one logical entity.
    Correction = new record, same original_id, version_no + 1.
    Deletion   = new record, same original_id, deleted_at set.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from core.records.payloads import Payload, decode_payload
from core.time import as_date


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class RecordStatus(str, Enum):
    """Approval status of one record version."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ARCHIVED = "archived"


class Department(str, Enum):
    """
    Closed set of department / role identifiers.

    A record's entity_type is the department that submitted it;
    the same identifiers are used as roles for approval and for
    category assignment.
    """
    FRONT_DESK = "front_desk"
    SUPERVISOR = "supervisor"
    MANAGER = "manager"
    ADMIN = "admin"
    KITCHEN = "kitchen"
    BAR = "bar"
    STOREKEEPER = "storekeeper"

    @classmethod
    def parse(cls, value: Union[str, "Department"]) -> "Department":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(d.value for d in cls)
            raise ValueError(
                f"Unknown department '{value}'. Expected one of: {allowed}."
            ) from None


# ══════════════════════════════════════════════════════════════
# OPERATIONAL RECORD
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OperationalRecord:
    """
    One version of one logical entity.

    `data` is the raw tagged payload as stored; call payload() to get
    the decoded variant before reading fields.
    """

    id: str
    original_id: str
    version_no: int
    entity_type: Department
    data: Dict[str, Any]
    status: RecordStatus
    created_at: datetime
    financial_amount: Decimal = Decimal(0)
    submitted_by: Optional[str] = None
    deleted_at: Optional[datetime] = None
    previous_version_id: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("id must be non-empty.")
        if not self.original_id:
            raise ValueError("original_id must be non-empty.")
        if self.version_no < 1:
            raise ValueError("version_no must be >= 1.")
        if self.created_at.tzinfo is None:
            raise ValueError("created_at must be timezone-aware.")
        if not isinstance(self.data, Mapping) or not self.data.get("type"):
            raise ValueError("data must be a mapping with a 'type' tag.")
        object.__setattr__(self, "entity_type", Department.parse(self.entity_type))
        object.__setattr__(self, "status", RecordStatus(self.status))
        object.__setattr__(self, "data", dict(self.data))
        object.__setattr__(
            self, "financial_amount", Decimal(str(self.financial_amount or 0))
        )

    @property
    def payload_type(self) -> str:
        return self.data["type"]

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_visible(self) -> bool:
        """Approved and not deleted: eligible to feed projections."""
        return self.status == RecordStatus.APPROVED and not self.is_deleted

    def payload(self) -> Payload:
        return decode_payload(self.data)

    def business_date(self) -> date:
        """The payload's business date, else the day the record was written."""
        return as_date(self.data.get("date")) or self.created_at.date()


# ══════════════════════════════════════════════════════════════
# FACTORIES
# ══════════════════════════════════════════════════════════════

def _as_data(data: Union[Payload, Mapping[str, Any]]) -> Dict[str, Any]:
    if hasattr(data, "to_data"):
        return data.to_data()
    return dict(data)


def new_record(
    *,
    entity_type: Union[Department, str],
    data: Union[Payload, Mapping[str, Any]],
    created_at: datetime,
    status: RecordStatus = RecordStatus.PENDING,
    submitted_by: Optional[str] = None,
    financial_amount: Union[Decimal, int, str] = 0,
    record_id: Optional[str] = None,
) -> OperationalRecord:
    """First version of a new logical entity (original_id == id)."""
    rid = record_id or str(uuid.uuid4())
    return OperationalRecord(
        id=rid,
        original_id=rid,
        version_no=1,
        entity_type=entity_type,
        data=_as_data(data),
        status=status,
        created_at=created_at,
        financial_amount=financial_amount,
        submitted_by=submitted_by,
    )


def revise(
    record: OperationalRecord,
    *,
    data: Union[Payload, Mapping[str, Any]],
    created_at: datetime,
    status: RecordStatus = RecordStatus.PENDING,
    submitted_by: Optional[str] = None,
    financial_amount: Union[Decimal, int, str, None] = None,
    record_id: Optional[str] = None,
) -> OperationalRecord:
    """Next version of the same logical entity."""
    return OperationalRecord(
        id=record_id or str(uuid.uuid4()),
        original_id=record.original_id,
        version_no=record.version_no + 1,
        entity_type=record.entity_type,
        data=_as_data(data),
        status=status,
        created_at=created_at,
        financial_amount=(
            record.financial_amount if financial_amount is None else financial_amount
        ),
        submitted_by=submitted_by,
        previous_version_id=record.id,
    )


def tombstone(
    record: OperationalRecord,
    *,
    deleted_at: datetime,
    submitted_by: Optional[str] = None,
    record_id: Optional[str] = None,
) -> OperationalRecord:
    """Deletion version: removes the logical entity from every projection."""
    deleted = revise(
        record,
        data=record.data,
        created_at=deleted_at,
        status=RecordStatus.APPROVED,
        submitted_by=submitted_by,
        record_id=record_id,
    )
    return replace(deleted, deleted_at=deleted_at)
