"""
Booking errors.

Every validation failure raised by the booking core carries an
``ErrorCode`` so the API layer can return a discriminated body
(``{"code": ..., "detail": ...}``) without inspecting exception types.
"""

from __future__ import annotations

from typing import Optional

from .enums import ERROR_MESSAGES, BookingStatus, ErrorCode


class BookingError(Exception):
    """Base class for user-facing booking validation failures."""

    code: ErrorCode

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or ERROR_MESSAGES[self.code])

    @property
    def message(self) -> str:
        return str(self)


class OutOfRange(BookingError):
    code = ErrorCode.OUT_OF_RANGE


class LocationPermissionDenied(BookingError):
    code = ErrorCode.LOCATION_DENIED


class TermsNotAccepted(BookingError):
    code = ErrorCode.TERMS_NOT_ACCEPTED


class IncompleteBooking(BookingError):
    code = ErrorCode.INCOMPLETE_BOOKING


class AlreadyBooked(BookingError):
    code = ErrorCode.ALREADY_BOOKED


class InvalidStatusTransition(Exception):
    """Raised when a booking status change violates the lifecycle."""

    def __init__(self, current: BookingStatus, target: BookingStatus):
        super().__init__(f"Cannot transition from {current.value} to {target.value}")
        self.current = current
        self.target = target
