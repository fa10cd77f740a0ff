"""
Vehicle / ride catalog: driver-posted listings.

Deleting a listing cancels its open bookings in the same transaction, so
no passenger is left holding a pending or accepted booking on a ride
that no longer exists.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from rideshare.config import settings
from rideshare.domain.enums import Role
from rideshare.domain.errors import AuthorizationError, NotFoundError
from rideshare.domain.validation import ensure_valid, listing_errors
from rideshare.infrastructure.models import AccountModel, VehicleModel
from rideshare.infrastructure.repositories import (
    RideRequestRepository,
    VehicleRepository,
)

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.vehicles = VehicleRepository(session)
        self.requests = RideRequestRepository(session)

    async def create(
        self,
        account: AccountModel,
        *,
        car_type: Optional[str],
        pickup_location: Optional[str],
        drop_location: Optional[str],
        ride_date: Optional[date],
        ride_time: Optional[str],
        total_seats: Optional[int],
        available_seats: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> VehicleModel:
        if Role(account.role) is not Role.DRIVER:
            raise AuthorizationError("Only drivers can add vehicles")
        if available_seats is None:
            available_seats = total_seats
        ensure_valid(
            listing_errors(
                car_type,
                pickup_location,
                drop_location,
                ride_date,
                ride_time,
                total_seats,
                available_seats,
                settings.max_seats_per_listing,
            )
        )

        vehicle = await self.vehicles.create(
            VehicleModel(
                owner=account,
                car_type=car_type.strip(),
                pickup_location=pickup_location.strip(),
                drop_location=drop_location.strip(),
                date=ride_date,
                time=ride_time.strip(),
                total_seats=total_seats,
                available_seats=available_seats,
                notes=(notes or "").strip(),
            )
        )
        logger.info("Driver %d listed vehicle %d", account.id, vehicle.id)
        return vehicle

    async def get(self, listing_id: int) -> VehicleModel:
        vehicle = await self.vehicles.get_by_id(listing_id)
        if vehicle is None:
            raise NotFoundError("Vehicle not found")
        return vehicle

    async def list_mine(self, driver_id: int) -> list[VehicleModel]:
        return await self.vehicles.list_by_owner(driver_id)

    async def list_available(
        self,
        *,
        pickup: Optional[str] = None,
        drop: Optional[str] = None,
        ride_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> list[VehicleModel]:
        return await self.vehicles.list_available(
            today=today or date.today(),
            pickup=pickup.strip() if pickup else None,
            drop=drop.strip() if drop else None,
            ride_date=ride_date,
        )

    async def delete(self, listing_id: int, account: AccountModel) -> int:
        """Delete the listing; returns how many open bookings were cancelled."""
        vehicle = await self.get(listing_id)
        if vehicle.owner_id != account.id:
            raise AuthorizationError("You can only delete your own vehicles")

        cancelled = await self.requests.cancel_open_for_listing(listing_id)
        await self.vehicles.delete(listing_id)
        self.session.expunge(vehicle)
        logger.info(
            "Driver %d deleted vehicle %d (%d booking(s) cancelled)",
            account.id,
            listing_id,
            cancelled,
        )
        return cancelled
