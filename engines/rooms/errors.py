"""
HotelOps Rooms Engine — Errors
================================
Front-desk operations reject, they never silently bypass a rule.
"""

from __future__ import annotations


class FrontDeskError(Exception):
    """Base error for front-desk operations."""
    pass


class BookingNotFoundError(FrontDeskError):

    def __init__(self, booking_id: str, detail: str = "no active booking"):
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id}: {detail}.")


class CheckoutRejectedError(FrontDeskError):
    """Standard checkout requires the room to be cleared by housekeeping."""

    def __init__(self, room_id: str, housekeeping_status: str):
        self.room_id = room_id
        self.housekeeping_status = housekeeping_status
        super().__init__(
            f"Checkout rejected: room {room_id} housekeeping status is "
            f"'{housekeeping_status}'. The room must be cleaned or inspected first."
        )


class RoomUnavailableError(FrontDeskError):

    def __init__(self, room_id: str, detail: str):
        self.room_id = room_id
        super().__init__(f"Room {room_id} unavailable: {detail}.")


class TransferRejectedError(FrontDeskError):
    pass


class InterruptedCreditError(FrontDeskError):
    pass
