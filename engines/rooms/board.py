"""
HotelOps Rooms Engine — Room Board
====================================
Derives every room's RoomStatus from the stay index.

Precedence (first match wins):
    occupied     an active segment has started (check_in <= today)
    maintenance  latest housekeeping report is "maintenance"
    cleaning     housekeeping status is dirty
    reserved     an active segment starts in the future
    pending      a booking for the room awaits approval
    available    otherwise (also the state of a brand-new room)
"""

from __future__ import annotations

from datetime import date
from typing import AbstractSet, List, Sequence

from engines.rooms.stays import StayIndex
from engines.rooms.status import (
    HousekeepingStatus,
    Room,
    RoomState,
    RoomStatus,
    UpcomingReservation,
)


def derive_room_status(
    room: Room,
    index: StayIndex,
    today: date,
    pending_room_ids: AbstractSet[str] = frozenset(),
) -> RoomStatus:
    segments = index.active_segments(room.id)
    current = next((s for s in segments if s.check_in <= today), None)
    upcoming_segment = next((s for s in segments if s.check_in > today), None)
    upcoming = None
    if upcoming_segment is not None:
        upcoming = UpcomingReservation(
            booking_id=upcoming_segment.key,
            guest_name=upcoming_segment.guest_name,
            check_in=upcoming_segment.check_in,
            check_out=upcoming_segment.check_out,
        )

    housekeeping = index.housekeeping_status(room.id)
    report = index.latest_report(room.id)

    if current is not None:
        state = RoomState.OCCUPIED
    elif report is not None and report.is_maintenance:
        state = RoomState.MAINTENANCE
    elif housekeeping == HousekeepingStatus.DIRTY:
        state = RoomState.CLEANING
    elif upcoming is not None:
        state = RoomState.RESERVED
    elif room.id in pending_room_ids:
        state = RoomState.PENDING
    else:
        state = RoomState.AVAILABLE

    return RoomStatus(
        id=room.id,
        room_number=room.room_number,
        status=state,
        housekeeping_status=housekeeping,
        current_guest=current.guest_name if current else None,
        check_out_date=current.check_out if current else None,
        upcoming_reservation=upcoming,
        current_booking_id=current.key if current else None,
    )


def derive_room_board(
    rooms: Sequence[Room],
    index: StayIndex,
    today: date,
    pending_room_ids: AbstractSet[str] = frozenset(),
) -> List[RoomStatus]:
    return [
        derive_room_status(room, index, today, pending_room_ids)
        for room in rooms
        if room.active
    ]
