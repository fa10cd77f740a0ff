"""Domain enumerations and state-transition rules."""

import enum


class Role(str, enum.Enum):
    DRIVER = "driver"
    PASSENGER = "passenger"


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# State machine: maps current status -> set of valid next statuses
BOOKING_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {
        BookingStatus.ACCEPTED,
        BookingStatus.REJECTED,
        BookingStatus.CANCELLED,
    },
    BookingStatus.ACCEPTED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.REJECTED: set(),
    BookingStatus.CANCELLED: set(),
    BookingStatus.COMPLETED: set(),
}


def sources_for(target: BookingStatus) -> set[BookingStatus]:
    """Statuses from which *target* is reachable in one step."""
    return {src for src, nxt in BOOKING_TRANSITIONS.items() if target in nxt}
