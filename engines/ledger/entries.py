"""
HotelOps Ledger Engine — Guest Ledger
=======================================
Derives the ledger of one stay from its booking record and the
records that reference it. Entries are never persisted; every read
recomputes them from the log.

Posting rules:
    booking pricing              → debit  room_charge (total_room_cost)
    booking paid_amount > 0      → credit payment
    penalty_fee                  → debit  penalty
    payment_record               → credit payment
    discount_applied             → credit discount
    refund_record                → credit refund
    checkout final_payment > 0   → credit payment
    stay_extension cost > 0      → debit  room_charge
    linked segment cost > 0      → debit  room_charge (transfer segments)

Ordering: (date, recorded_at, debit-before-credit, id). The result
depends only on the set of related records, not on their order.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, Optional

from core.records.entities import OperationalRecord
from core.records.payloads import (
    CheckoutPayload,
    DiscountPayload,
    PaymentRecordPayload,
    PenaltyFeePayload,
    RefundPayload,
    RoomBookingPayload,
    StayExtensionPayload,
)

ZERO = Decimal(0)


class EntryType(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class LedgerCategory(str, Enum):
    ROOM_CHARGE = "room_charge"
    PAYMENT = "payment"
    PENALTY = "penalty"
    DISCOUNT = "discount"
    REFUND = "refund"


@dataclass(frozen=True)
class LedgerEntry:
    id: str
    date: date
    type: EntryType
    category: LedgerCategory
    amount: Decimal
    description: str
    recorded_at: Optional[datetime] = None
    source_record_id: Optional[str] = None

    @property
    def sort_key(self) -> tuple:
        return (
            self.date,
            self.recorded_at or datetime.min.replace(tzinfo=timezone.utc),
            0 if self.type == EntryType.DEBIT else 1,
            self.id,
        )


@dataclass(frozen=True)
class LedgerSummary:
    total_charges: Decimal
    total_payments: Decimal
    balance: Decimal


def _fmt(amount: Decimal) -> str:
    return f"{amount:,.2f}"


def _entry(
    entry_id: str,
    on: date,
    type_: EntryType,
    category: LedgerCategory,
    amount: Decimal,
    description: str,
    record: OperationalRecord,
) -> LedgerEntry:
    return LedgerEntry(
        id=entry_id,
        date=on,
        type=type_,
        category=category,
        amount=amount,
        description=description,
        recorded_at=record.created_at,
        source_record_id=record.id,
    )


def _booking_entries(record: OperationalRecord, booking: RoomBookingPayload) -> List[LedgerEntry]:
    entries = []
    pricing = booking.pricing
    on = record.created_at.date()
    if pricing.total_room_cost > 0:
        entries.append(_entry(
            f"{record.id}_room_charge", on, EntryType.DEBIT, LedgerCategory.ROOM_CHARGE,
            pricing.total_room_cost,
            f"Room Charge ({pricing.nights} nights @ {_fmt(pricing.room_rate)})",
            record,
        ))
    if booking.payment.paid_amount > 0:
        entries.append(_entry(
            f"{record.id}_initial_payment", on, EntryType.CREDIT, LedgerCategory.PAYMENT,
            booking.payment.paid_amount,
            f"Initial Payment{' (' + booking.payment.method + ')' if booking.payment.method else ''}",
            record,
        ))
    return entries


def _related_entries(record: OperationalRecord) -> List[LedgerEntry]:
    payload = record.payload()
    on = record.created_at.date()

    if isinstance(payload, PenaltyFeePayload):
        if payload.amount <= 0:
            return []
        return [_entry(
            record.id, payload.date or on, EntryType.DEBIT, LedgerCategory.PENALTY,
            payload.amount, payload.reason or "Penalty Fee", record,
        )]
    if isinstance(payload, PaymentRecordPayload):
        if payload.amount <= 0:
            return []
        label = payload.reason or (f"Payment ({payload.method})" if payload.method else "Payment")
        return [_entry(
            record.id, payload.date or on, EntryType.CREDIT, LedgerCategory.PAYMENT,
            payload.amount, label, record,
        )]
    if isinstance(payload, DiscountPayload):
        if payload.amount <= 0:
            return []
        return [_entry(
            record.id, payload.date or on, EntryType.CREDIT, LedgerCategory.DISCOUNT,
            payload.amount, payload.reason or "Discount", record,
        )]
    if isinstance(payload, RefundPayload):
        if payload.amount <= 0:
            return []
        return [_entry(
            record.id, payload.date or on, EntryType.CREDIT, LedgerCategory.REFUND,
            payload.amount, payload.reason or "Refund", record,
        )]
    if isinstance(payload, CheckoutPayload):
        final = payload.checkout.final_payment
        if final <= 0:
            return []
        return [_entry(
            f"{record.id}_final_payment", payload.checkout.checkout_date,
            EntryType.CREDIT, LedgerCategory.PAYMENT, final,
            "Final Settlement at Checkout", record,
        )]
    if isinstance(payload, StayExtensionPayload):
        ext = payload.extension
        if ext.additional_cost <= 0:
            return []
        return [_entry(
            f"{record.id}_extension", on, EntryType.DEBIT, LedgerCategory.ROOM_CHARGE,
            ext.additional_cost,
            f"Stay Extension ({ext.nights_added} nights, until {ext.new_check_out.isoformat()})",
            record,
        )]
    if isinstance(payload, RoomBookingPayload):
        pricing = payload.pricing
        if pricing.total_room_cost <= 0:
            return []
        return [_entry(
            f"{record.id}_transfer_charge", on, EntryType.DEBIT, LedgerCategory.ROOM_CHARGE,
            pricing.total_room_cost,
            f"Room Charge, room {payload.stay.room_id} "
            f"({pricing.nights} nights @ {_fmt(pricing.room_rate)})",
            record,
        )]
    return []


def build_ledger(
    booking: OperationalRecord, related: Iterable[OperationalRecord]
) -> List[LedgerEntry]:
    """
    Ledger entries for one stay, sorted by date ascending.

    `related` may contain the booking itself (any version); it is
    skipped. Records of unrelated payload types contribute nothing.
    """
    payload = booking.payload()
    if not isinstance(payload, RoomBookingPayload):
        raise ValueError(
            f"build_ledger needs a room_booking record, got '{booking.payload_type}'."
        )
    entries = _booking_entries(booking, payload)
    for record in related:
        if record.id == booking.id or record.original_id == booking.original_id:
            continue
        entries.extend(_related_entries(record))
    return sorted(entries, key=lambda e: e.sort_key)


def calculate_summary(entries: Iterable[LedgerEntry]) -> LedgerSummary:
    charges = ZERO
    payments = ZERO
    for entry in entries:
        if entry.type == EntryType.DEBIT:
            charges += entry.amount
        else:
            payments += entry.amount
    return LedgerSummary(
        total_charges=charges,
        total_payments=payments,
        balance=charges - payments,
    )
