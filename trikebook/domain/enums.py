"""Domain enumerations and state-transition rules."""

import enum


class Endpoint(str, enum.Enum):
    PICKUP = "pickup"
    DROPOFF = "dropoff"


class QuoteState(str, enum.Enum):
    EMPTY = "EMPTY"
    PARTIAL_PICKUP = "PARTIAL_PICKUP"
    PARTIAL_DROPOFF = "PARTIAL_DROPOFF"
    BOTH_SET = "BOTH_SET"
    FINALIZED = "FINALIZED"


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# State machine: maps current status -> set of valid next statuses
BOOKING_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {
        BookingStatus.ASSIGNED,
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
    },
    BookingStatus.ASSIGNED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}

# Only bookings that have not been dispatched may be cancelled by the rider
CANCELLABLE_STATUSES = {BookingStatus.PENDING, BookingStatus.CONFIRMED}

# A rider can be attached to a confirmed booking, or swapped on an assigned one
ASSIGNABLE_STATUSES = {BookingStatus.CONFIRMED, BookingStatus.ASSIGNED}


class ErrorCode(str, enum.Enum):
    OUT_OF_RANGE = "OUT_OF_RANGE"
    LOCATION_DENIED = "LOCATION_DENIED"
    TERMS_NOT_ACCEPTED = "TERMS_NOT_ACCEPTED"
    INCOMPLETE_BOOKING = "INCOMPLETE_BOOKING"
    ALREADY_BOOKED = "ALREADY_BOOKED"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.OUT_OF_RANGE: (
        "Out of Range! Service is only available within Camarines Norte, Bicol."
    ),
    ErrorCode.LOCATION_DENIED: "Enable location services.",
    ErrorCode.TERMS_NOT_ACCEPTED: "Please accept the Terms of Use!",
    ErrorCode.INCOMPLETE_BOOKING: "Select pickup & drop-off first!",
    ErrorCode.ALREADY_BOOKED: "This quote has already been booked.",
}
