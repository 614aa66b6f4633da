"""
HotelOps Rooms Engine — Status Types
======================================
Room state is derived, never stored. RoomStatus is recomputed from
the record log on every read (see board.py).

Occupancy states:
    available, occupied, reserved, cleaning, maintenance, pending

Housekeeping states (independent of occupancy):
    clean, dirty, inspected, not_reported

Housekeeping reports use their own vocabulary; REPORT_TO_HOUSEKEEPING
maps a report onto the room's housekeeping state.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Protocol


class RoomState(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    RESERVED = "reserved"
    CLEANING = "cleaning"
    MAINTENANCE = "maintenance"
    PENDING = "pending"


class HousekeepingStatus(str, Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    INSPECTED = "inspected"
    NOT_REPORTED = "not_reported"


REPORT_TO_HOUSEKEEPING: Dict[str, HousekeepingStatus] = {
    "cleaned": HousekeepingStatus.CLEAN,
    "inspected": HousekeepingStatus.INSPECTED,
    "dirty": HousekeepingStatus.DIRTY,
    "maintenance": HousekeepingStatus.DIRTY,
}

TRANSFER_RELEASE_REPORTS = frozenset({"cleaned", "inspected"})


# ══════════════════════════════════════════════════════════════
# ROOMS (external directory)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Room:
    id: str
    room_number: str
    rate: Decimal
    active: bool = True

    def __post_init__(self):
        if not self.id:
            raise ValueError("room id must be non-empty.")
        object.__setattr__(self, "rate", Decimal(str(self.rate)))
        if self.rate < 0:
            raise ValueError("room rate cannot be negative.")


class RoomDirectory(Protocol):
    """Rooms are maintained by a plain CRUD screen outside HotelOps."""

    def get(self, room_id: str) -> Optional[Room]:
        ...  # pragma: no cover

    def all(self) -> List[Room]:
        ...  # pragma: no cover


class InMemoryRoomDirectory:

    def __init__(self, rooms=()) -> None:
        self._rooms: Dict[str, Room] = {r.id: r for r in rooms}

    def add(self, room: Room) -> None:
        self._rooms[room.id] = room

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def all(self) -> List[Room]:
        return sorted(self._rooms.values(), key=lambda r: r.room_number)


# ══════════════════════════════════════════════════════════════
# DERIVED STATUS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class UpcomingReservation:
    booking_id: str
    guest_name: str
    check_in: date
    check_out: date


@dataclass(frozen=True)
class RoomStatus:
    id: str
    room_number: str
    status: RoomState
    housekeeping_status: HousekeepingStatus
    current_guest: Optional[str] = None
    check_out_date: Optional[date] = None
    upcoming_reservation: Optional[UpcomingReservation] = None
    current_booking_id: Optional[str] = None
