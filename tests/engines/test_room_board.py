"""
Tests for engines.rooms.board and engines.rooms.stays — derived room status.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core.records.entities import Department, RecordStatus, new_record
from engines.rooms.board import derive_room_board, derive_room_status
from engines.rooms.stays import StayIndex
from engines.rooms.status import HousekeepingStatus, Room, RoomState

T0 = datetime(2024, 1, 10, 9, 0, 0, tzinfo=timezone.utc)
TODAY = date(2024, 1, 10)
R101 = Room("R101", "101", Decimal("10000"))
R102 = Room("R102", "102", Decimal("12000"))


def _rec(data, minutes=0):
    return new_record(
        entity_type=Department.FRONT_DESK, data=data,
        created_at=T0 + timedelta(minutes=minutes), status=RecordStatus.APPROVED,
    )


def _booking(room_id="R101", check_in="2024-01-09", check_out="2024-01-12", **extra):
    data = {
        "type": "room_booking",
        "guest": {"full_name": "Ada Obi"},
        "stay": {"room_id": room_id, "check_in": check_in, "check_out": check_out},
        "pricing": {"room_rate": 10000, "nights": 3, "total_room_cost": 30000},
    }
    data.update(extra)
    return _rec(data)


def _report(room_id, status, minutes=5, day="2024-01-10"):
    return _rec({
        "type": "housekeeping_report", "room_id": room_id,
        "housekeeping_status": status, "report_date": day,
    }, minutes=minutes)


def _status(records, room=R101, pending=frozenset()):
    return derive_room_status(room, StayIndex(records), TODAY, pending)


class TestRoomStatus:
    def test_new_room_available(self):
        status = _status([])
        assert status.status == RoomState.AVAILABLE
        assert status.housekeeping_status == HousekeepingStatus.NOT_REPORTED
        assert status.current_guest is None

    def test_occupied_beats_maintenance(self):
        booking = _booking()
        status = _status([booking, _report("R101", "maintenance")])
        assert status.status == RoomState.OCCUPIED
        assert status.current_guest == "Ada Obi"
        assert status.check_out_date == date(2024, 1, 12)
        assert status.current_booking_id == booking.id

    def test_maintenance_beats_cleaning(self):
        assert _status([_report("R101", "maintenance")]).status == RoomState.MAINTENANCE

    def test_dirty_means_cleaning(self):
        status = _status([_report("R101", "dirty")])
        assert status.status == RoomState.CLEANING
        assert status.housekeeping_status == HousekeepingStatus.DIRTY

    def test_cleaning_beats_reserved(self):
        future = _booking(check_in="2024-01-15", check_out="2024-01-17")
        assert _status([future, _report("R101", "dirty")]).status == RoomState.CLEANING

    def test_reserved_with_upcoming(self):
        future = _booking(check_in="2024-01-15", check_out="2024-01-17")
        status = _status([future])
        assert status.status == RoomState.RESERVED
        assert status.upcoming_reservation.booking_id == future.id
        assert status.upcoming_reservation.check_in == date(2024, 1, 15)

    def test_reserved_beats_pending(self):
        future = _booking(check_in="2024-01-15", check_out="2024-01-17")
        assert _status([future], pending={"R101"}).status == RoomState.RESERVED

    def test_pending(self):
        assert _status([], pending={"R101"}).status == RoomState.PENDING

    def test_latest_report_wins(self):
        records = [_report("R101", "dirty", minutes=1), _report("R101", "cleaned", minutes=2)]
        status = _status(records)
        assert status.status == RoomState.AVAILABLE
        assert status.housekeeping_status == HousekeepingStatus.CLEAN

    def test_later_report_date_wins_over_write_order(self):
        records = [
            _report("R101", "inspected", minutes=1, day="2024-01-11"),
            _report("R101", "dirty", minutes=2, day="2024-01-10"),
        ]
        assert _status(records).housekeeping_status == HousekeepingStatus.INSPECTED

    def test_checked_out_segment_frees_room(self):
        booking = _booking()
        checkout = _rec({"type": "checkout_record", "booking_id": booking.id,
                         "checkout": {"checkout_date": "2024-01-10"}}, minutes=10)
        assert _status([booking, checkout]).status == RoomState.AVAILABLE

    def test_cancelled_payload_status_frees_room(self):
        booking = _rec({
            "type": "room_booking",
            "guest": {"full_name": "Ada Obi"},
            "stay": {"room_id": "R101", "check_in": "2024-01-09",
                     "check_out": "2024-01-12", "status": "cancelled"},
            "pricing": {"room_rate": 10000},
        })
        assert _status([booking]).status == RoomState.AVAILABLE

    def test_extension_moves_check_out(self):
        booking = _booking()
        extension = _rec({"type": "stay_extension", "booking_id": booking.id, "extension": {
            "previous_check_out": "2024-01-12", "new_check_out": "2024-01-14",
            "nights_added": 2, "additional_cost": 20000}}, minutes=10)
        assert _status([booking, extension]).check_out_date == date(2024, 1, 14)


class TestRoomBoard:
    def test_inactive_rooms_skipped(self):
        closed = Room("R999", "999", Decimal("1"), active=False)
        board = derive_room_board([R101, R102, closed], StayIndex([]), TODAY)
        assert [s.id for s in board] == ["R101", "R102"]

    def test_transfer_completion_closes_only_old_segment(self):
        first = _booking()
        successor = _booking(room_id="R102", check_in="2024-01-10", original_id=first.id)
        marker = _rec({"type": "transfer_completion", "booking_id": first.id,
                       "previous_room_id": "R101", "new_room_id": "R102",
                       "completed_date": "2024-01-10"}, minutes=20)
        index = StayIndex([first, successor, marker])
        board = {s.id: s for s in derive_room_board([R101, R102], index, TODAY)}
        assert board["R101"].status == RoomState.AVAILABLE
        assert board["R102"].status == RoomState.OCCUPIED
        assert index.active_segment(first.id).room_id == "R102"


class TestStayIndex:
    def test_booking_id_alias_resolves(self):
        booking = _booking(booking_id="BK-7")
        index = StayIndex([booking])
        assert index.resolve("BK-7") == booking.original_id
        assert index.resolve("nope") is None

    def test_room_conflict(self):
        booking = _booking()
        index = StayIndex([booking])
        assert index.room_conflict("R101", date(2024, 1, 11), date(2024, 1, 13)) is not None
        assert index.room_conflict("R101", date(2024, 1, 12), date(2024, 1, 13)) is None
        assert index.room_conflict(
            "R101", date(2024, 1, 11), date(2024, 1, 13), ignore_stay=booking.original_id,
        ) is None

    def test_checkout_closes_every_segment_of_stay(self):
        first = _booking()
        successor = _booking(room_id="R102", check_in="2024-01-10", original_id=first.id)
        checkout = _rec({"type": "checkout_record", "booking_id": successor.id,
                         "checkout": {"checkout_date": "2024-01-12"}}, minutes=30)
        index = StayIndex([first, successor, checkout])
        assert index.active_segments() == []
        assert index.closed_reason(index.segment(first.id)) == "checked_out"

    @pytest.mark.parametrize("ref", ["first", "successor"])
    def test_stay_records_from_any_segment(self, ref):
        first = _booking()
        successor = _booking(room_id="R102", check_in="2024-01-10", original_id=first.id)
        penalty = _rec({"type": "penalty_fee", "booking_id": successor.id, "amount": 500}, minutes=3)
        index = StayIndex([first, successor, penalty])
        root, related = index.stay_records((first if ref == "first" else successor).id)
        assert root.id == first.id
        assert {r.id for r in related} == {successor.id, penalty.id}
