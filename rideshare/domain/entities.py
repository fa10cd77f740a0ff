"""
Domain rules shared by the booking engine and the client.

- Booking status changes follow ``BOOKING_TRANSITIONS``
  (PENDING -> ACCEPTED -> COMPLETED, with REJECTED / CANCELLED exits).
- A request must fit in the seats a listing has left.
- Only driver accounts may switch between driver and passenger mode.
"""

from __future__ import annotations

from typing import Optional

from .enums import BOOKING_TRANSITIONS, BookingStatus, Role
from .errors import AuthorizationError, ConflictError


class InvalidStateTransition(ConflictError):
    """Raised when a booking status change violates the state machine."""


def ensure_transition(current: BookingStatus, target: BookingStatus) -> None:
    allowed = BOOKING_TRANSITIONS.get(BookingStatus(current), set())
    if target not in allowed:
        raise InvalidStateTransition(
            f"Cannot move booking from {BookingStatus(current).value} "
            f"to {target.value}"
        )


def resolve_active_role(role: Role, stored_active_role: Optional[str]) -> Role:
    """Passengers are always passengers; drivers keep their stored mode."""
    if Role(role) is Role.PASSENGER:
        return Role.PASSENGER
    return Role(stored_active_role) if stored_active_role else Role(role)


def ensure_can_switch(role: Optional[str], new_role: str) -> Role:
    if role != Role.DRIVER:
        raise AuthorizationError("Only drivers can switch roles")
    try:
        return Role(new_role)
    except ValueError:
        raise AuthorizationError(f"Invalid role: {new_role!r}") from None


def ensure_seats_available(available_seats: int, requested_seats: int) -> None:
    """A request fits when it asks for at least one seat and no more than are left."""
    if not 1 <= requested_seats <= available_seats:
        raise ConflictError(
            f"Only {available_seats} seat(s) available, "
            f"{requested_seats} requested"
        )
