"""
Booking Engine
==============

Passenger requests against a listing and their status lifecycle::

    pending ──accept──▶ accepted ──complete──▶ completed
       │  └──reject──▶ rejected        │
       └────cancel────▶ cancelled ◀─cancel─┘

Seat accounting
---------------
* Creating a request does NOT take seats; acceptance does.
* ``accept`` reserves seats with a single guarded ``UPDATE`` (see
  ``VehicleRepository.reserve_seats``) before flipping the status, so two
  drivers' sessions racing on the same listing can never drive
  ``available_seats`` below zero.  The loser gets ``ConflictError``.
* Cancelling an accepted booking gives its seats back.

All writes happen inside the caller's unit of work; any raised error rolls
the whole transition back.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from rideshare.domain.entities import (
    InvalidStateTransition,
    ensure_seats_available,
    ensure_transition,
    resolve_active_role,
)
from rideshare.domain.enums import BookingStatus, Role, sources_for
from rideshare.domain.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from rideshare.domain.validation import contact_errors, ensure_valid
from rideshare.infrastructure.models import AccountModel, RideRequestModel
from rideshare.infrastructure.repositories import (
    RideRequestRepository,
    VehicleRepository,
)

logger = logging.getLogger(__name__)


class BookingEngine:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.vehicles = VehicleRepository(session)
        self.requests = RideRequestRepository(session)

    # ── Create ────────────────────────────────────────────────────

    async def create(
        self,
        account: AccountModel,
        *,
        listing_id: int,
        requested_seats: int,
        passenger_name: Optional[str] = None,
        passenger_phone: Optional[str] = None,
        today: Optional[date] = None,
    ) -> RideRequestModel:
        if resolve_active_role(account.role, account.active_role) is not Role.PASSENGER:
            raise AuthorizationError("Switch to passenger mode to book rides")

        name = passenger_name if passenger_name is not None else account.name
        phone = passenger_phone if passenger_phone is not None else account.phone
        errors = contact_errors(name, phone)
        if requested_seats is None or requested_seats < 1:
            errors.append("At least one seat must be requested")
        ensure_valid(errors)

        vehicle = await self.vehicles.get_by_id(listing_id)
        if vehicle is None:
            raise NotFoundError("Vehicle not found")
        if vehicle.owner_id == account.id:
            raise AuthorizationError("You cannot book your own ride")
        if vehicle.date < (today or date.today()):
            raise ConflictError("This ride has already departed")

        ensure_seats_available(vehicle.available_seats, requested_seats)

        request = await self.requests.create(
            RideRequestModel(
                listing=vehicle,
                driver_id=vehicle.owner_id,
                passenger_id=account.id,
                passenger_name=name.strip(),
                passenger_phone=phone.strip(),
                requested_seats=requested_seats,
                status=BookingStatus.PENDING,
            )
        )
        logger.info(
            "Passenger %d requested %d seat(s) on vehicle %d (request %d)",
            account.id,
            requested_seats,
            vehicle.id,
            request.id,
        )
        return request

    # ── Driver transitions ────────────────────────────────────────

    async def accept(self, account: AccountModel, request_id: int) -> RideRequestModel:
        request = await self._for_driver(account, request_id)
        ensure_transition(request.status, BookingStatus.ACCEPTED)
        if request.listing_id is None:
            raise ConflictError("The ride for this request no longer exists")

        if not await self.vehicles.reserve_seats(
            request.listing_id, request.requested_seats
        ):
            vehicle = await self.vehicles.get_by_id(request.listing_id)
            if vehicle is not None:
                await self.session.refresh(vehicle)
            left = vehicle.available_seats if vehicle is not None else 0
            raise ConflictError(
                f"Not enough seats: {left} left, "
                f"{request.requested_seats} requested"
            )

        if not await self.requests.transition(
            request_id, sources_for(BookingStatus.ACCEPTED), BookingStatus.ACCEPTED
        ):
            # Someone else moved the request first; give the seats back.
            await self.vehicles.release_seats(
                request.listing_id, request.requested_seats
            )
            raise InvalidStateTransition("Request is no longer pending")

        await self._refresh_listing(request.listing_id)
        await self.session.refresh(request)
        logger.info(
            "Driver %d accepted request %d (%d seat(s))",
            account.id,
            request_id,
            request.requested_seats,
        )
        return request

    async def reject(
        self,
        account: AccountModel,
        request_id: int,
        reason: Optional[str] = None,
    ) -> RideRequestModel:
        request = await self._for_driver(account, request_id)
        ensure_transition(request.status, BookingStatus.REJECTED)
        reason = reason.strip() if reason and reason.strip() else None

        if not await self.requests.transition(
            request_id,
            sources_for(BookingStatus.REJECTED),
            BookingStatus.REJECTED,
            rejection_reason=reason,
        ):
            raise InvalidStateTransition("Request is no longer pending")

        await self.session.refresh(request)
        logger.info("Driver %d rejected request %d", account.id, request_id)
        return request

    # ── Passenger transitions ─────────────────────────────────────

    async def cancel(self, account: AccountModel, request_id: int) -> RideRequestModel:
        request = await self._get(request_id)
        if request.passenger_id != account.id:
            raise AuthorizationError("You can only cancel your own requests")

        current = BookingStatus(request.status)
        ensure_transition(current, BookingStatus.CANCELLED)

        if not await self.requests.transition(
            request_id, {current}, BookingStatus.CANCELLED
        ):
            raise InvalidStateTransition("Request changed status, refresh and retry")

        if current is BookingStatus.ACCEPTED and request.listing_id is not None:
            await self.vehicles.release_seats(
                request.listing_id, request.requested_seats
            )
            await self._refresh_listing(request.listing_id)

        await self.session.refresh(request)
        logger.info("Passenger %d cancelled request %d", account.id, request_id)
        return request

    # ── External completion ───────────────────────────────────────

    async def complete(self, request_id: int) -> RideRequestModel:
        """Mark an accepted booking completed; a second call is a no-op."""
        request = await self._get(request_id)
        if request.status == BookingStatus.COMPLETED:
            return request
        ensure_transition(request.status, BookingStatus.COMPLETED)

        if not await self.requests.transition(
            request_id, sources_for(BookingStatus.COMPLETED), BookingStatus.COMPLETED
        ):
            await self.session.refresh(request)
            if request.status == BookingStatus.COMPLETED:
                return request
            raise InvalidStateTransition(
                f"Cannot complete a {BookingStatus(request.status).value} booking"
            )

        await self.session.refresh(request)
        logger.info("Request %d completed", request_id)
        return request

    async def complete_departed(self, now: Optional[datetime] = None) -> int:
        """Complete every accepted booking whose ride has departed.

        Listing date and ``HH:MM`` time are naive server-local wall-clock
        values, so *now* is compared as naive local time too.
        """
        now = now or datetime.now()
        completed = 0
        for request, vehicle in await self.requests.get_accepted_with_listings(
            now.date()
        ):
            departure = datetime.combine(
                vehicle.date, datetime.strptime(vehicle.time, "%H:%M").time()
            )
            if departure > now:
                continue
            if await self.requests.transition(
                request.id, sources_for(BookingStatus.COMPLETED), BookingStatus.COMPLETED
            ):
                completed += 1
        return completed

    # ── Queries ───────────────────────────────────────────────────

    async def list_for_driver(
        self, account: AccountModel, status: Optional[BookingStatus] = None
    ) -> list[RideRequestModel]:
        if Role(account.role) is not Role.DRIVER:
            raise AuthorizationError("Only drivers have incoming ride requests")
        return await self.requests.list_for_driver(account.id, status)

    async def list_for_passenger(
        self, account: AccountModel, status: Optional[BookingStatus] = None
    ) -> list[RideRequestModel]:
        return await self.requests.list_for_passenger(account.id, status)

    # ── Helpers ───────────────────────────────────────────────────

    async def _get(self, request_id: int) -> RideRequestModel:
        request = await self.requests.get_by_id(request_id)
        if request is None:
            raise NotFoundError("Ride request not found")
        return request

    async def _for_driver(self, account: AccountModel, request_id: int) -> RideRequestModel:
        request = await self._get(request_id)
        if request.driver_id != account.id:
            raise AuthorizationError("You can only manage requests for your own rides")
        return request

    async def _refresh_listing(self, listing_id: int) -> None:
        vehicle = await self.vehicles.get_by_id(listing_id)
        if vehicle is not None:
            await self.session.refresh(vehicle)


def parse_status(value: Optional[str]) -> Optional[BookingStatus]:
    """``""``/``None``/``"all"`` mean no filter."""
    if not value or value == "all":
        return None
    try:
        return BookingStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown status: {value}") from None
