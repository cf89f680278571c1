"""
Ledger service exceptions.

Each carries the HTTP status the API layer answers with; the handler in
``src.main`` renders them as ``{"detail": message}``.
"""

from fastapi import status


class LedgerError(Exception):
    """Base exception for wallet ledger operations."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidLedgerOperation(LedgerError):
    """Raised when an operation is invalid for the current state."""


class AttendantNotFound(LedgerError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, attendant_id: int):
        super().__init__(f"Attendant not found: {attendant_id}")
        self.attendant_id = attendant_id


class NotAnAttendant(LedgerError):
    def __init__(self, user_id: int):
        super().__init__(f"User is not an attendant: {user_id}")
        self.user_id = user_id


class BookingNotFound(LedgerError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, booking_id: int):
        super().__init__(f"Booking not found: {booking_id}")
        self.booking_id = booking_id


class AlreadySettled(LedgerError):
    """Raised when settling a wallet that has nothing outstanding."""

    def __init__(self, attendant_id: int):
        super().__init__(f"Attendant already marked as paid: {attendant_id}")
        self.attendant_id = attendant_id


class LedgerConflictError(LedgerError):
    """Raised when a wallet write keeps losing the version race."""

    status_code = status.HTTP_409_CONFLICT
