"""HotelOps Rooms Engine — Front Desk Requests"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple

from core.records.entities import Department
from core.records.payloads import HOUSEKEEPING_REPORT_STATUSES


def _money(value, name: str, *, allow_zero: bool = False) -> Decimal:
    amount = Decimal(str(value))
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValueError(f"{name} must be {'non-negative' if allow_zero else 'positive'}.")
    return amount


class _Actor:
    def _check_actor(self):
        if not self.actor_id: raise ValueError("actor_id must be non-empty.")
        object.__setattr__(self, "actor_role", Department.parse(self.actor_role))


@dataclass(frozen=True)
class BookRoomRequest(_Actor):
    guest_name:     str
    room_id:        str
    check_in:       date
    check_out:      date
    actor_id:       str
    actor_role:     Department
    adults:         int = 1
    children:       int = 0
    paid_amount:    Decimal = Decimal(0)
    payment_method: str = ""
    phone:          str = ""
    email:          str = ""
    room_rate:      Optional[Decimal] = None

    def __post_init__(self):
        self._check_actor()
        if not self.guest_name: raise ValueError("guest_name must be non-empty.")
        if not self.room_id:    raise ValueError("room_id must be non-empty.")
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in.")
        if self.adults < 1:     raise ValueError("adults must be >= 1.")
        if self.children < 0:   raise ValueError("children cannot be negative.")
        object.__setattr__(self, "paid_amount",
                           _money(self.paid_amount, "paid_amount", allow_zero=True))
        if self.room_rate is not None:
            object.__setattr__(self, "room_rate",
                               _money(self.room_rate, "room_rate", allow_zero=True))


@dataclass(frozen=True)
class RecordPaymentRequest(_Actor):
    booking_id: str
    amount:     Decimal
    method:     str
    actor_id:   str
    actor_role: Department
    reason:     str = ""

    def __post_init__(self):
        self._check_actor()
        if not self.booking_id: raise ValueError("booking_id must be non-empty.")
        if not self.method:     raise ValueError("method must be non-empty.")
        object.__setattr__(self, "amount", _money(self.amount, "amount"))


@dataclass(frozen=True)
class PenaltyRequest(_Actor):
    booking_id: str
    amount:     Decimal
    reason:     str
    actor_id:   str
    actor_role: Department

    def __post_init__(self):
        self._check_actor()
        if not self.booking_id: raise ValueError("booking_id must be non-empty.")
        object.__setattr__(self, "amount", _money(self.amount, "amount"))


@dataclass(frozen=True)
class DiscountRequest(_Actor):
    booking_id: str
    amount:     Decimal
    reason:     str
    actor_id:   str
    actor_role: Department

    def __post_init__(self):
        self._check_actor()
        if not self.booking_id: raise ValueError("booking_id must be non-empty.")
        if not self.reason:     raise ValueError("a discount needs a reason.")
        object.__setattr__(self, "amount", _money(self.amount, "amount"))


@dataclass(frozen=True)
class CheckoutRequest(_Actor):
    booking_id:     str
    actor_id:       str
    actor_role:     Department
    payment_method: str = "cash"
    notes:          str = ""

    def __post_init__(self):
        self._check_actor()
        if not self.booking_id: raise ValueError("booking_id must be non-empty.")


@dataclass(frozen=True)
class TransferRequest(_Actor):
    booking_id:    str
    new_room_id:   str
    actor_id:      str
    actor_role:    Department
    transfer_date: Optional[date] = None
    reason:        str = ""

    def __post_init__(self):
        self._check_actor()
        if not self.booking_id:  raise ValueError("booking_id must be non-empty.")
        if not self.new_room_id: raise ValueError("new_room_id must be non-empty.")


@dataclass(frozen=True)
class HousekeepingReportRequest(_Actor):
    room_ids:             Tuple[str, ...]
    housekeeping_status:  str
    housekeeper_id:       str
    housekeeper_name:     str
    actor_id:             str
    actor_role:           Department
    report_date:          Optional[date] = None
    room_condition:       str = ""
    maintenance_required: bool = False
    notes:                str = ""

    def __post_init__(self):
        self._check_actor()
        object.__setattr__(self, "room_ids", tuple(self.room_ids))
        if not self.room_ids: raise ValueError("room_ids must be non-empty.")
        if any(not r for r in self.room_ids):
            raise ValueError("room_ids must not contain empty ids.")
        if self.housekeeping_status not in HOUSEKEEPING_REPORT_STATUSES:
            raise ValueError(
                f"housekeeping_status must be one of {sorted(HOUSEKEEPING_REPORT_STATUSES)}."
            )
        if not self.housekeeper_id: raise ValueError("housekeeper_id must be non-empty.")


@dataclass(frozen=True)
class InterruptStayRequest(_Actor):
    booking_id: str
    actor_id:   str
    actor_role: Department
    reason:     str = ""

    def __post_init__(self):
        self._check_actor()
        if not self.booking_id: raise ValueError("booking_id must be non-empty.")


@dataclass(frozen=True)
class ExtendStayRequest(_Actor):
    booking_id: str
    nights:     int
    actor_id:   str
    actor_role: Department
    reason:     str = ""

    def __post_init__(self):
        self._check_actor()
        if not self.booking_id: raise ValueError("booking_id must be non-empty.")
        if self.nights < 1:     raise ValueError("nights must be >= 1.")


@dataclass(frozen=True)
class ResumeStayRequest(_Actor):
    credit_id:  str
    room_id:    str
    actor_id:   str
    actor_role: Department
    nights:     Optional[int] = None

    def __post_init__(self):
        self._check_actor()
        if not self.credit_id: raise ValueError("credit_id must be non-empty.")
        if not self.room_id:   raise ValueError("room_id must be non-empty.")
        if self.nights is not None and self.nights < 1:
            raise ValueError("nights must be >= 1.")
