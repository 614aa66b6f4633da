"""
HotelOps Rooms Engine — Front Desk Service
============================================
Command side of the room & booking state machine. Every operation:

    1. reads canonical records and builds a StayIndex
    2. checks its rule (rejects with a FrontDeskError, never bypasses)
    3. appends new records (session checked before the write burst)

Reservations follow the approval workflow (pre-approved for
supervisory roles). Follow-up facts recorded at the desk (payments,
checkouts, transfers, housekeeping) are written approved.

Transfer completion is marker-gated: the transfer_completion record
is checked before creating a successor segment and written after it.
A crash between the two is repaired by the next evaluation, which
finds the successor and only writes the marker.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, replace
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, List, Optional, Sequence, Set, Tuple, Union

from core.config import HotelOpsSettings, quantize_money
from core.primitives.approval import initial_status
from core.records.batch import BatchWriter, BatchWriteResult
from core.records.entities import (
    Department,
    OperationalRecord,
    RecordStatus,
    new_record,
    revise,
)
from core.records.payloads import (
    CheckoutInfo,
    CheckoutPayload,
    DiscountPayload,
    ExtensionInfo,
    GuestInfo,
    HousekeepingReportPayload,
    InterruptedStayCreditPayload,
    PaymentInfo,
    PaymentRecordPayload,
    PenaltyFeePayload,
    PricingInfo,
    RefundPayload,
    RoomBookingPayload,
    RoomTransferPayload,
    StayExtensionPayload,
    StayInfo,
    StayInterruptionPayload,
    TransferCompletionPayload,
    TransferInfo,
)
from core.records.resolver import canonical_records, resolve_latest
from core.records.store import RecordQuery, RecordStore
from core.session import SessionGuard, require_active_session
from core.time import Clock, ceil_div, get_default_clock, nights_between
from engines.ledger.entries import (
    LedgerCategory,
    LedgerEntry,
    LedgerSummary,
    build_ledger,
    calculate_summary,
)
from engines.rooms.board import derive_room_board
from engines.rooms.commands import (
    BookRoomRequest,
    CheckoutRequest,
    DiscountRequest,
    ExtendStayRequest,
    HousekeepingReportRequest,
    InterruptStayRequest,
    PenaltyRequest,
    RecordPaymentRequest,
    ResumeStayRequest,
    TransferRequest,
)
from engines.rooms.errors import (
    BookingNotFoundError,
    CheckoutRejectedError,
    InterruptedCreditError,
    RoomUnavailableError,
    TransferRejectedError,
)
from engines.rooms.stays import ROOM_PAYLOAD_TYPES, BookingSegment, StayIndex
from engines.rooms.status import (
    TRANSFER_RELEASE_REPORTS,
    Room,
    RoomDirectory,
    RoomStatus,
)

logger = logging.getLogger("hotelops.rooms")

ZERO = Decimal(0)


# ══════════════════════════════════════════════════════════════
# OUTCOMES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GuestLedger:
    booking: OperationalRecord
    entries: Tuple[LedgerEntry, ...]
    summary: LedgerSummary


@dataclass(frozen=True)
class CheckoutOutcome:
    booking_id: str
    room_id: str
    settled_amount: Decimal
    checkout_record_id: str
    payment_record_id: Optional[str] = None


@dataclass(frozen=True)
class TransferCompletion:
    booking_id: str
    previous_room_id: str
    new_room_id: str
    marker_id: str
    successor_booking_id: Optional[str]
    created_segment: bool


@dataclass(frozen=True)
class HousekeepingOutcome:
    batch: BatchWriteResult
    completions: Tuple[TransferCompletion, ...] = ()


@dataclass(frozen=True)
class InterruptionOutcome:
    booking_id: str
    credit_id: str
    used_days: int
    used_cost: Decimal
    total_paid: Decimal
    credit_remaining: Decimal


@dataclass(frozen=True)
class ResumeOutcome:
    booking_id: str
    credit_id: str
    nights: int
    total_cost: Decimal
    credit_applied: Decimal
    balance: Decimal


# ══════════════════════════════════════════════════════════════
# SERVICE
# ══════════════════════════════════════════════════════════════

class FrontDeskService:

    def __init__(
        self,
        *,
        store: RecordStore,
        rooms: RoomDirectory,
        session: SessionGuard,
        clock: Optional[Clock] = None,
        settings: Optional[HotelOpsSettings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._store = store
        self._rooms = rooms
        self._clock = clock or get_default_clock()
        self._session = session
        self._settings = settings or HotelOpsSettings()
        self._batch = BatchWriter(store, session, self._settings, sleep=sleep)

    # ── Reads ─────────────────────────────────────────────────

    def _records(self) -> List[OperationalRecord]:
        return self._store.query(RecordQuery(payload_types=ROOM_PAYLOAD_TYPES))

    def index(self) -> StayIndex:
        return StayIndex(canonical_records(self._records()))

    def _pending_room_ids(self, records: Sequence[OperationalRecord]) -> Set[str]:
        bookings = [r for r in records if r.payload_type == RoomBookingPayload.TYPE]
        return {
            r.payload().stay.room_id
            for r in resolve_latest(bookings).values()
            if r.status == RecordStatus.PENDING
        }

    def room_board(self, today: Optional[date] = None) -> List[RoomStatus]:
        records = self._records()
        index = StayIndex(canonical_records(records))
        return derive_room_board(
            self._rooms.all(),
            index,
            today or self._clock.today(),
            self._pending_room_ids(records),
        )

    def guest_ledger(self, booking_id: str, index: Optional[StayIndex] = None) -> GuestLedger:
        index = index or self.index()
        stay = index.stay_records(booking_id)
        if stay is None:
            raise BookingNotFoundError(booking_id, "not found")
        root, related = stay
        entries = build_ledger(root, related)
        return GuestLedger(
            booking=root, entries=tuple(entries), summary=calculate_summary(entries),
        )

    # ── Write helpers ─────────────────────────────────────────

    def _insert(self, records: Sequence[OperationalRecord], operation: str) -> None:
        require_active_session(self._session, operation)
        self._store.insert(records)

    def _record(
        self,
        data,
        actor_id: str,
        *,
        entity_type: Department = Department.FRONT_DESK,
        status: RecordStatus = RecordStatus.APPROVED,
        financial_amount: Union[Decimal, int] = 0,
    ) -> OperationalRecord:
        return new_record(
            entity_type=entity_type,
            data=data,
            created_at=self._clock.now_utc(),
            status=status,
            submitted_by=actor_id,
            financial_amount=financial_amount,
        )

    def _room(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None or not room.active:
            raise RoomUnavailableError(room_id, "unknown or inactive room")
        return room

    def _active(self, index: StayIndex, booking_id: str) -> BookingSegment:
        segment = index.active_segment(booking_id)
        if segment is None:
            raise BookingNotFoundError(booking_id)
        return segment

    def _require_clear(self, index: StayIndex, room_id: str) -> str:
        status = index.housekeeping_status(room_id).value
        if status not in self._settings.checkout_clearance_statuses:
            raise CheckoutRejectedError(room_id, status)
        return status

    # ── Reservations & folio ──────────────────────────────────

    def book_room(self, request: BookRoomRequest) -> OperationalRecord:
        room = self._room(request.room_id)
        index = self.index()
        clash = index.room_conflict(room.id, request.check_in, request.check_out)
        if clash is not None:
            raise RoomUnavailableError(
                room.id, f"booked by {clash.guest_name} until {clash.check_out.isoformat()}"
            )
        rate = request.room_rate if request.room_rate is not None else room.rate
        nights = nights_between(request.check_in, request.check_out)
        total = rate * nights
        today = self._clock.today()
        record = self._record(
            RoomBookingPayload(
                guest=GuestInfo(full_name=request.guest_name, phone=request.phone, email=request.email),
                stay=StayInfo(
                    room_id=room.id,
                    check_in=request.check_in,
                    check_out=request.check_out,
                    adults=request.adults,
                    children=request.children,
                    status="checked_in" if request.check_in <= today else "reserved",
                ),
                pricing=PricingInfo(room_rate=rate, nights=nights, total_room_cost=total),
                payment=PaymentInfo(
                    paid_amount=request.paid_amount,
                    method=request.payment_method,
                    balance=total - request.paid_amount,
                ),
            ),
            request.actor_id,
            status=initial_status(request.actor_role),
            financial_amount=request.paid_amount,
        )
        self._insert([record], "booking")
        logger.info(
            "Booking %s: room %s %s→%s (%s)",
            record.id, room.id, request.check_in, request.check_out, record.status.value,
        )
        return record

    def _segment(self, index: StayIndex, booking_id: str) -> BookingSegment:
        segment = index.segment(booking_id)
        if segment is None:
            raise BookingNotFoundError(booking_id, "not found")
        return segment

    def record_payment(self, request: RecordPaymentRequest) -> OperationalRecord:
        segment = self._segment(self.index(), request.booking_id)
        record = self._record(
            PaymentRecordPayload(
                booking_id=segment.key,
                amount=request.amount,
                method=request.method,
                reason=request.reason,
                date=self._clock.today(),
            ),
            request.actor_id,
            financial_amount=request.amount,
        )
        self._insert([record], "payment")
        return record

    def add_penalty(self, request: PenaltyRequest) -> OperationalRecord:
        segment = self._segment(self.index(), request.booking_id)
        record = self._record(
            PenaltyFeePayload(
                booking_id=segment.key,
                amount=request.amount,
                reason=request.reason or "Penalty Fee",
                date=self._clock.today(),
            ),
            request.actor_id,
        )
        self._insert([record], "penalty")
        return record

    def apply_discount(self, request: DiscountRequest) -> OperationalRecord:
        segment = self._segment(self.index(), request.booking_id)
        record = self._record(
            DiscountPayload(
                booking_id=segment.key,
                amount=request.amount,
                reason=request.reason,
                date=self._clock.today(),
            ),
            request.actor_id,
        )
        self._insert([record], "discount")
        return record

    def extend_stay(self, request: ExtendStayRequest) -> OperationalRecord:
        index = self.index()
        segment = self._active(index, request.booking_id)
        new_check_out = segment.check_out + timedelta(days=request.nights)
        clash = index.room_conflict(
            segment.room_id, segment.check_out, new_check_out, ignore_stay=segment.stay_id,
        )
        if clash is not None:
            raise RoomUnavailableError(
                segment.room_id, f"reserved from {clash.check_in.isoformat()} by {clash.guest_name}"
            )
        rate = segment.booking.pricing.room_rate
        record = self._record(
            StayExtensionPayload(
                booking_id=segment.key,
                extension=ExtensionInfo(
                    previous_check_out=segment.check_out,
                    new_check_out=new_check_out,
                    nights_added=request.nights,
                    additional_cost=rate * request.nights,
                    reason=request.reason,
                ),
            ),
            request.actor_id,
        )
        self._insert([record], "stay extension")
        return record

    # ── Checkout ──────────────────────────────────────────────

    def checkout(self, request: CheckoutRequest) -> CheckoutOutcome:
        """
        Standard checkout. Rejected unless the room is cleared by
        housekeeping; any outstanding balance is settled with a
        payment_record so the stay closes at zero.
        """
        index = self.index()
        segment = self._active(index, request.booking_id)
        self._require_clear(index, segment.room_id)

        balance = self.guest_ledger(segment.key, index).summary.balance
        settled = quantize_money(max(balance, ZERO))
        today = self._clock.today()
        records = []
        payment = None
        if balance > 0:
            payment = self._record(
                PaymentRecordPayload(
                    booking_id=segment.key,
                    amount=balance,
                    method=request.payment_method,
                    reason="Balance settled at checkout",
                    date=today,
                ),
                request.actor_id,
                financial_amount=balance,
            )
            records.append(payment)
        checkout = self._record(
            CheckoutPayload(
                booking_id=segment.key,
                checkout=CheckoutInfo(
                    checkout_date=today,
                    total_due=settled,
                    final_payment=ZERO,
                    payment_method=request.payment_method,
                    notes=request.notes,
                ),
            ),
            request.actor_id,
        )
        records.append(checkout)
        self._insert(records, "checkout")
        logger.info(
            "Checkout %s from room %s, settled %s", segment.key, segment.room_id, settled,
        )
        return CheckoutOutcome(
            booking_id=segment.key,
            room_id=segment.room_id,
            settled_amount=settled,
            checkout_record_id=checkout.id,
            payment_record_id=payment.id if payment else None,
        )

    # ── Transfers ─────────────────────────────────────────────

    def record_transfer(self, request: TransferRequest) -> OperationalRecord:
        """
        Record a room move. The booking stays on the old room until
        housekeeping clears it (see complete_pending_transfer).
        """
        index = self.index()
        segment = self._active(index, request.booking_id)
        new_room = self._room(request.new_room_id)
        old_room = self._rooms.get(segment.room_id)
        transfer_date = request.transfer_date or self._clock.today()

        if new_room.id == segment.room_id:
            raise TransferRejectedError("Guest is already in that room.")
        if index.has_open_transfer(segment):
            raise TransferRejectedError(
                f"Booking {segment.key} already has a transfer awaiting completion."
            )
        remaining = nights_between(transfer_date, segment.check_out)
        if remaining <= 0:
            raise TransferRejectedError("No remaining nights to transfer.")
        clash = index.room_conflict(new_room.id, transfer_date, segment.check_out)
        if clash is not None:
            raise RoomUnavailableError(new_room.id, f"occupied by {clash.guest_name}")

        old_rate = segment.booking.pricing.room_rate
        refund = old_rate * remaining
        transfer = self._record(
            RoomTransferPayload(
                booking_id=segment.key,
                transfer=TransferInfo(
                    previous_room_id=segment.room_id,
                    new_room_id=new_room.id,
                    transfer_date=transfer_date,
                    reason=request.reason,
                    refund_amount=refund,
                    new_charge_amount=new_room.rate * remaining,
                ),
            ),
            request.actor_id,
        )
        records = [transfer]
        if refund > 0:
            records.append(self._record(
                RefundPayload(
                    booking_id=segment.key,
                    amount=refund,
                    reason=f"Unused nights in room "
                           f"{old_room.room_number if old_room else segment.room_id} after transfer",
                    date=transfer_date,
                ),
                request.actor_id,
            ))
        records.append(self._record(
            HousekeepingReportPayload(
                room_id=segment.room_id,
                housekeeping_status="dirty",
                report_date=transfer_date,
                room_condition="vacated",
                housekeeper_id=request.actor_id,
                housekeeper_name="Front desk",
                notes=f"Guest transferred to room {new_room.room_number}",
            ),
            request.actor_id,
        ))
        self._insert(records, "room transfer")
        logger.info(
            "Transfer recorded for %s: %s → %s on %s",
            segment.key, segment.room_id, new_room.id, transfer_date,
        )
        return transfer

    def complete_pending_transfer(
        self, room_id: str, on_date: Optional[date] = None, actor_id: str = "system"
    ) -> Optional[TransferCompletion]:
        """
        Create the successor segment for the latest transfer out of
        `room_id`, unless its completion marker already exists.
        """
        index = self.index()
        pending = index.latest_transfer_from(room_id)
        if pending is None or index.is_transfer_completed(pending.booking_id):
            return None

        info = pending.payload.transfer
        original = index.segment(pending.booking_id)
        if original is None:
            logger.warning(
                "Transfer %s references unknown booking %s; completion skipped",
                pending.record.id, pending.booking_id,
            )
            return None
        if not index.is_active(original):
            logger.debug(
                "Transfer %s: booking %s already %s; completion skipped",
                pending.record.id, original.key, index.closed_reason(original),
            )
            return None

        completed_on = on_date or self._clock.today()
        existing = next(
            (
                s for s in index.stay_segments(original.stay_id)
                if s.room_id == info.new_room_id and s.check_in == info.transfer_date
            ),
            None,
        )
        successor_id = existing.key if existing else None
        if existing is None:
            successor = self._successor_segment(original, info, actor_id)
            self._insert([successor], "transfer completion")
            successor_id = successor.id

        marker = self._record(
            TransferCompletionPayload(
                booking_id=pending.booking_id,
                previous_room_id=info.previous_room_id,
                new_room_id=info.new_room_id,
                completed_date=completed_on,
                successor_booking_id=successor_id,
            ),
            actor_id,
        )
        self._insert([marker], "transfer completion")
        logger.info(
            "Transfer completed for %s: %s → %s (segment %s%s)",
            pending.booking_id, info.previous_room_id, info.new_room_id,
            successor_id, "" if existing is None else ", existing",
        )
        return TransferCompletion(
            booking_id=pending.booking_id,
            previous_room_id=info.previous_room_id,
            new_room_id=info.new_room_id,
            marker_id=marker.id,
            successor_booking_id=successor_id,
            created_segment=existing is None,
        )

    def _successor_segment(
        self, original: BookingSegment, info: TransferInfo, actor_id: str
    ) -> OperationalRecord:
        new_room = self._rooms.get(info.new_room_id)
        rate = new_room.rate if new_room is not None else original.booking.pricing.room_rate
        nights = nights_between(info.transfer_date, original.check_out)
        segment_id = str(uuid.uuid4())
        stay = original.booking.stay
        return new_record(
            entity_type=Department.FRONT_DESK,
            data=RoomBookingPayload(
                booking_id=segment_id,
                original_id=original.stay_id,
                guest=original.booking.guest,
                stay=StayInfo(
                    room_id=info.new_room_id,
                    check_in=info.transfer_date,
                    check_out=original.check_out,
                    adults=stay.adults,
                    children=stay.children,
                    status="checked_in",
                ),
                pricing=PricingInfo(room_rate=rate, nights=nights, total_room_cost=rate * nights),
                payment=PaymentInfo(paid_amount=ZERO, method="transfer", balance=ZERO),
                meta={"transferred_from": info.previous_room_id, "previous_booking_id": original.key},
            ),
            created_at=self._clock.now_utc(),
            status=RecordStatus.APPROVED,
            submitted_by=actor_id,
            record_id=segment_id,
        )

    # ── Housekeeping ──────────────────────────────────────────

    def file_housekeeping_report(self, request: HousekeepingReportRequest) -> HousekeepingOutcome:
        """
        Write one report per room as a batch, then run transfer
        completion for every cleaned / inspected room that was written.
        """
        for room_id in request.room_ids:
            self._room(room_id)
        report_date = request.report_date or self._clock.today()
        records = [
            self._record(
                HousekeepingReportPayload(
                    room_id=room_id,
                    housekeeping_status=request.housekeeping_status,
                    report_date=report_date,
                    room_condition=request.room_condition,
                    maintenance_required=request.maintenance_required,
                    housekeeper_id=request.housekeeper_id,
                    housekeeper_name=request.housekeeper_name,
                    notes=request.notes,
                ),
                request.actor_id,
                entity_type=request.actor_role,
            )
            for room_id in request.room_ids
        ]
        result = self._batch.write(records)

        completions = []
        if request.housekeeping_status in TRANSFER_RELEASE_REPORTS:
            written = set(result.inserted_ids)
            for record in records:
                if record.id not in written:
                    continue
                completion = self.complete_pending_transfer(
                    record.data["room_id"], report_date, request.actor_id,
                )
                if completion is not None:
                    completions.append(completion)
        return HousekeepingOutcome(batch=result, completions=tuple(completions))

    # ── Interrupted stays ─────────────────────────────────────

    def interrupt_stay(self, request: InterruptStayRequest) -> InterruptionOutcome:
        """
        End a stay early without settlement or housekeeping clearance.
        Unused prepayment becomes a resumable credit.
        """
        index = self.index()
        segment = self._active(index, request.booking_id)
        ledger = self.guest_ledger(segment.key, index)
        today = self._clock.today()

        used_days = max(0, (today - segment.check_in).days)
        used_cost = segment.booking.pricing.room_rate * used_days
        total_paid = sum(
            (e.amount for e in ledger.entries if e.category == LedgerCategory.PAYMENT),
            ZERO,
        )
        credit_remaining = quantize_money(max(ZERO, total_paid - used_cost))

        credit = self._record(
            InterruptedStayCreditPayload(
                booking_id=segment.key,
                guest_name=segment.guest_name,
                room_id=segment.room_id,
                credit_remaining=credit_remaining,
                interruption_date=today,
                used_days=used_days,
                used_cost=used_cost,
                total_paid=total_paid,
                can_resume=True,
                status="available",
            ),
            request.actor_id,
        )
        marker = self._record(
            StayInterruptionPayload(
                booking_id=segment.key,
                room_id=segment.room_id,
                interruption_date=today,
                used_days=used_days,
                used_cost=used_cost,
                credit_remaining=credit_remaining,
                reason=request.reason,
            ),
            request.actor_id,
        )
        self._insert([credit, marker], "stay interruption")
        logger.info(
            "Stay %s interrupted after %d days, credit %s", segment.key, used_days, credit_remaining,
        )
        return InterruptionOutcome(
            booking_id=segment.key,
            credit_id=credit.original_id,
            used_days=used_days,
            used_cost=used_cost,
            total_paid=total_paid,
            credit_remaining=credit_remaining,
        )

    def resume_interrupted_stay(self, request: ResumeStayRequest) -> ResumeOutcome:
        index = self.index()
        found = index.credit(request.credit_id)
        if found is None:
            raise InterruptedCreditError(f"Interrupted stay credit {request.credit_id} not found.")
        credit_record, credit = found
        if not credit.can_resume or credit.status != "available":
            raise InterruptedCreditError(
                f"Interrupted stay credit {request.credit_id} is {credit.status}."
            )

        room = self._room(request.room_id)
        hk = index.housekeeping_status(room.id).value
        if hk not in self._settings.checkout_clearance_statuses:
            raise RoomUnavailableError(room.id, f"housekeeping status is '{hk}'")

        today = self._clock.today()
        nights = request.nights or max(1, ceil_div(credit.credit_remaining, room.rate))
        check_out = today + timedelta(days=nights)
        clash = index.room_conflict(room.id, today, check_out)
        if clash is not None:
            raise RoomUnavailableError(room.id, f"occupied by {clash.guest_name}")

        total = room.rate * nights
        applied = min(total, credit.credit_remaining)
        balance = max(ZERO, total - credit.credit_remaining)
        previous = index.segment(credit.booking_id)
        guest = previous.booking.guest if previous else GuestInfo(full_name=credit.guest_name)
        segment_id = str(uuid.uuid4())
        segment = new_record(
            entity_type=Department.FRONT_DESK,
            data=RoomBookingPayload(
                booking_id=segment_id,
                guest=guest,
                stay=StayInfo(
                    room_id=room.id,
                    check_in=today,
                    check_out=check_out,
                    adults=previous.booking.stay.adults if previous else 1,
                    children=previous.booking.stay.children if previous else 0,
                    status="checked_in",
                ),
                pricing=PricingInfo(room_rate=room.rate, nights=nights, total_room_cost=total),
                payment=PaymentInfo(paid_amount=applied, method="interrupted_stay_credit", balance=balance),
                meta={
                    "resumed_from_interruption": credit_record.original_id,
                    "previous_booking_id": credit.booking_id,
                },
            ),
            created_at=self._clock.now_utc(),
            status=RecordStatus.APPROVED,
            submitted_by=request.actor_id,
            record_id=segment_id,
        )
        resumed = revise(
            credit_record,
            data=replace(credit, can_resume=False, status="resumed", resumed_booking_id=segment_id),
            created_at=self._clock.now_utc(),
            status=RecordStatus.APPROVED,
            submitted_by=request.actor_id,
        )
        self._insert([segment, resumed], "stay resume")
        logger.info(
            "Credit %s resumed into %s: %d nights in room %s", credit_record.original_id,
            segment_id, nights, room.id,
        )
        return ResumeOutcome(
            booking_id=segment_id,
            credit_id=credit_record.original_id,
            nights=nights,
            total_cost=total,
            credit_applied=applied,
            balance=balance,
        )
