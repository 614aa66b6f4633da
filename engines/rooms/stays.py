"""
HotelOps Rooms Engine — Stay Index
====================================
One pass over canonical front-desk records, answering:

- which booking segments exist, and which are still active
- which segment a booking_id reference points at
- which segments form one stay (transfer successors carry the
  first segment's id in payload.original_id)
- which records belong to a stay's ledger
- the latest housekeeping report per room
- pending transfers, completion markers and interrupted-stay credits

A segment is closed by a checkout_record or stay_interruption (the
whole stay ends), by a transfer_completion (that segment only), or
by a payload stay.status of checked_out / cancelled.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Set, Tuple

from core.records.entities import OperationalRecord
from core.records.payloads import (
    CheckoutPayload,
    HousekeepingReportPayload,
    InterruptedStayCreditPayload,
    RoomBookingPayload,
    RoomTransferPayload,
    StayExtensionPayload,
    StayInterruptionPayload,
    TransferCompletionPayload,
)
from engines.rooms.status import REPORT_TO_HOUSEKEEPING, HousekeepingStatus

ROOM_PAYLOAD_TYPES: Tuple[str, ...] = (
    "room_booking", "checkout_record", "penalty_fee", "payment_record",
    "discount_applied", "refund_record", "stay_extension", "room_transfer",
    "stay_interruption", "transfer_completion", "housekeeping_report",
    "interrupted_stay_credit",
)

CLOSED_STAY_STATUSES = frozenset({"checked_out", "cancelled"})


@dataclass(frozen=True)
class BookingSegment:
    record: OperationalRecord
    booking: RoomBookingPayload
    stay_id: str
    check_out: date  # includes approved extensions

    @property
    def key(self) -> str:
        return self.record.original_id

    @property
    def room_id(self) -> str:
        return self.booking.stay.room_id

    @property
    def check_in(self) -> date:
        return self.booking.stay.check_in

    @property
    def guest_name(self) -> str:
        return self.booking.guest.full_name

    def overlaps(self, start: date, end: date) -> bool:
        """Does the segment occupy any night in [start, end)?"""
        return self.check_in < end and start < self.check_out


@dataclass(frozen=True)
class PendingTransfer:
    record: OperationalRecord
    payload: RoomTransferPayload
    segment_key: Optional[str]

    @property
    def booking_id(self) -> str:
        return self.payload.booking_id


@dataclass(frozen=True)
class LatestReport:
    record: OperationalRecord
    payload: HousekeepingReportPayload

    @property
    def housekeeping_status(self) -> HousekeepingStatus:
        return REPORT_TO_HOUSEKEEPING[self.payload.housekeeping_status]

    @property
    def is_maintenance(self) -> bool:
        return self.payload.housekeeping_status == "maintenance"


def _report_key(report: LatestReport) -> tuple:
    return (report.payload.report_date, report.record.created_at, report.record.id)


class StayIndex:
    """Read-only index over canonical (approved, current) records."""

    def __init__(self, records: Iterable[OperationalRecord]) -> None:
        records = [r for r in records if r.payload_type in ROOM_PAYLOAD_TYPES]
        self._alias: Dict[str, str] = {}
        self._raw_segments: Dict[str, Tuple[OperationalRecord, RoomBookingPayload]] = {}
        self._references: Dict[str, List[OperationalRecord]] = defaultdict(list)
        self._closed: Dict[str, str] = {}
        self._completed: Set[str] = set()
        self._completion_refs: Set[str] = set()
        self._extended_to: Dict[str, date] = {}
        self._reports: Dict[str, LatestReport] = {}
        self._transfers: List[Tuple[OperationalRecord, RoomTransferPayload]] = []
        self._credits: Dict[str, Tuple[OperationalRecord, InterruptedStayCreditPayload]] = {}

        others = []
        for record in records:
            if record.payload_type == RoomBookingPayload.TYPE:
                booking = record.payload()
                key = record.original_id
                self._raw_segments[key] = (record, booking)
                for alias in (record.id, record.original_id, booking.booking_id):
                    if alias:
                        self._alias[alias] = key
            else:
                others.append(record)

        self._stay_of: Dict[str, str] = {}
        for key, (record, booking) in self._raw_segments.items():
            root = booking.original_id
            self._stay_of[key] = self._alias.get(root, root) if root else key

        for key, (record, booking) in self._raw_segments.items():
            if booking.stay.status in CLOSED_STAY_STATUSES:
                self._closed[key] = booking.stay.status

        for record in others:
            self._index_record(record, record.payload())

        self._segments: Dict[str, BookingSegment] = {}
        for key, (record, booking) in self._raw_segments.items():
            self._segments[key] = BookingSegment(
                record=record,
                booking=booking,
                stay_id=self._stay_of[key],
                check_out=max(booking.stay.check_out, self._extended_to.get(key, booking.stay.check_out)),
            )

    # ── Build ─────────────────────────────────────────────────

    def _index_record(self, record: OperationalRecord, payload) -> None:
        if isinstance(payload, HousekeepingReportPayload):
            report = LatestReport(record, payload)
            held = self._reports.get(payload.room_id)
            if held is None or _report_key(report) > _report_key(held):
                self._reports[payload.room_id] = report
            return
        if isinstance(payload, InterruptedStayCreditPayload):
            self._credits[record.original_id] = (record, payload)
            return
        if isinstance(payload, RoomTransferPayload):
            self._transfers.append((record, payload))
        if isinstance(payload, TransferCompletionPayload):
            self._completion_refs.add(payload.booking_id)

        booking_id = getattr(payload, "booking_id", None)
        key = self.resolve(booking_id) if booking_id else None
        if key is None:
            return
        self._references[key].append(record)

        if isinstance(payload, (CheckoutPayload, StayInterruptionPayload)):
            reason = "checked_out" if isinstance(payload, CheckoutPayload) else "interrupted"
            stay = self._stay_of[key]
            for other, other_stay in self._stay_of.items():
                if other_stay == stay:
                    self._closed.setdefault(other, reason)
        elif isinstance(payload, TransferCompletionPayload):
            self._completed.add(key)
            self._closed.setdefault(key, "transferred")
        elif isinstance(payload, StayExtensionPayload):
            new_out = payload.extension.new_check_out
            if new_out > self._extended_to.get(key, date.min):
                self._extended_to[key] = new_out

    # ── Segments ──────────────────────────────────────────────

    def resolve(self, booking_id: Optional[str]) -> Optional[str]:
        """Segment key for a booking reference (record id, original id or booking_id)."""
        if not booking_id:
            return None
        return self._alias.get(booking_id)

    def segment(self, booking_id: str) -> Optional[BookingSegment]:
        key = self.resolve(booking_id)
        return self._segments.get(key) if key else None

    def is_active(self, segment: BookingSegment) -> bool:
        return segment.key not in self._closed

    def closed_reason(self, segment: BookingSegment) -> Optional[str]:
        return self._closed.get(segment.key)

    def stay_segments(self, stay_id: str) -> List[BookingSegment]:
        return sorted(
            (s for s in self._segments.values() if s.stay_id == stay_id),
            key=lambda s: (s.check_in, s.record.created_at, s.key),
        )

    def active_segment(self, booking_id: str) -> Optional[BookingSegment]:
        """The stay's currently open segment, for any reference into the stay."""
        segment = self.segment(booking_id)
        if segment is None:
            return None
        active = [s for s in self.stay_segments(segment.stay_id) if self.is_active(s)]
        return active[-1] if active else None

    def active_segments(self, room_id: Optional[str] = None) -> List[BookingSegment]:
        return sorted(
            (
                s for s in self._segments.values()
                if self.is_active(s) and (room_id is None or s.room_id == room_id)
            ),
            key=lambda s: (s.check_in, s.key),
        )

    def room_conflict(
        self, room_id: str, start: date, end: date, ignore_stay: Optional[str] = None
    ) -> Optional[BookingSegment]:
        for segment in self.active_segments(room_id):
            if ignore_stay is not None and segment.stay_id == ignore_stay:
                continue
            if segment.overlaps(start, end):
                return segment
        return None

    # ── Ledger inputs ─────────────────────────────────────────

    def stay_records(self, booking_id: str) -> Optional[Tuple[OperationalRecord, List[OperationalRecord]]]:
        """(root booking record, related records) for the stay containing booking_id."""
        segment = self.segment(booking_id)
        if segment is None:
            return None
        segments = self.stay_segments(segment.stay_id)
        root = next((s for s in segments if s.key == segment.stay_id), segments[0])
        related: List[OperationalRecord] = []
        for s in segments:
            if s.key != root.key:
                related.append(s.record)
            related.extend(self._references.get(s.key, ()))
        return root.record, related

    # ── Housekeeping / transfers / credits ────────────────────

    def latest_report(self, room_id: str) -> Optional[LatestReport]:
        return self._reports.get(room_id)

    def housekeeping_status(self, room_id: str) -> HousekeepingStatus:
        report = self._reports.get(room_id)
        return report.housekeeping_status if report else HousekeepingStatus.NOT_REPORTED

    def latest_transfer_from(self, room_id: str) -> Optional[PendingTransfer]:
        candidates = [
            (record, payload) for record, payload in self._transfers
            if payload.transfer.previous_room_id == room_id
        ]
        if not candidates:
            return None
        record, payload = max(
            candidates,
            key=lambda rp: (rp[1].transfer.transfer_date, rp[0].created_at, rp[0].id),
        )
        return PendingTransfer(record, payload, self.resolve(payload.booking_id))

    def has_open_transfer(self, segment: BookingSegment) -> bool:
        for record, payload in self._transfers:
            if self.resolve(payload.booking_id) == segment.key and segment.key not in self._completed:
                return True
        return False

    def is_transfer_completed(self, booking_id: str) -> bool:
        if booking_id in self._completion_refs:
            return True
        key = self.resolve(booking_id)
        return key in self._completed if key else False

    def credit(self, credit_id: str) -> Optional[Tuple[OperationalRecord, InterruptedStayCreditPayload]]:
        return self._credits.get(credit_id)

    def credits(self) -> List[Tuple[OperationalRecord, InterruptedStayCreditPayload]]:
        return sorted(self._credits.values(), key=lambda rp: (rp[0].created_at, rp[0].id))
