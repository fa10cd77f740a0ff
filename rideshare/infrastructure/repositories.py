"""
Repository Pattern -- abstracts DB access so services stay DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  Seat and status changes are single
conditional ``UPDATE`` statements: the ``WHERE`` clause carries the
invariant, and the affected row count tells the caller whether it won.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import AccountModel, RatingModel, RideRequestModel, VehicleModel
from rideshare.domain.enums import BookingStatus, Role


class AccountRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, account: AccountModel) -> AccountModel:
        self.session.add(account)
        await self.session.flush()
        return account

    async def get_by_id(self, account_id: int) -> Optional[AccountModel]:
        return await self.session.get(AccountModel, account_id)

    async def get_by_email(self, email: str) -> Optional[AccountModel]:
        result = await self.session.execute(
            select(AccountModel).where(
                func.lower(AccountModel.email) == email.strip().lower()
            )
        )
        return result.scalar_one_or_none()

    async def get_driver_for_update(self, driver_id: int) -> Optional[AccountModel]:
        """SELECT ... FOR UPDATE so rating recomputation serialises per driver."""
        result = await self.session.execute(
            select(AccountModel)
            .where(AccountModel.id == driver_id, AccountModel.role == Role.DRIVER)
            .with_for_update()
        )
        return result.scalar_one_or_none()


class VehicleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, vehicle: VehicleModel) -> VehicleModel:
        self.session.add(vehicle)
        await self.session.flush()
        return vehicle

    async def get_by_id(self, vehicle_id: int) -> Optional[VehicleModel]:
        return await self.session.get(VehicleModel, vehicle_id)

    async def list_by_owner(self, owner_id: int) -> list[VehicleModel]:
        result = await self.session.execute(
            select(VehicleModel)
            .where(VehicleModel.owner_id == owner_id)
            .order_by(VehicleModel.date.desc(), VehicleModel.time.desc())
        )
        return list(result.scalars().all())

    async def list_available(
        self,
        *,
        today: date,
        pickup: str | None = None,
        drop: str | None = None,
        ride_date: date | None = None,
    ) -> list[VehicleModel]:
        query = select(VehicleModel).where(VehicleModel.date >= today)
        if pickup:
            query = query.where(VehicleModel.pickup_location.ilike(f"%{pickup}%"))
        if drop:
            query = query.where(VehicleModel.drop_location.ilike(f"%{drop}%"))
        if ride_date:
            query = query.where(VehicleModel.date == ride_date)
        result = await self.session.execute(
            query.order_by(VehicleModel.date, VehicleModel.time)
        )
        return list(result.scalars().all())

    async def reserve_seats(self, vehicle_id: int, seats: int) -> bool:
        """Atomically take *seats*; ``False`` if fewer are left."""
        result = await self.session.execute(
            update(VehicleModel)
            .where(
                VehicleModel.id == vehicle_id,
                VehicleModel.available_seats >= seats,
            )
            .values(available_seats=VehicleModel.available_seats - seats)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def release_seats(self, vehicle_id: int, seats: int) -> bool:
        """Atomically give *seats* back, never above ``total_seats``."""
        result = await self.session.execute(
            update(VehicleModel)
            .where(
                VehicleModel.id == vehicle_id,
                VehicleModel.available_seats + seats <= VehicleModel.total_seats,
            )
            .values(available_seats=VehicleModel.available_seats + seats)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def delete(self, vehicle_id: int) -> None:
        await self.session.execute(
            delete(VehicleModel)
            .where(VehicleModel.id == vehicle_id)
            .execution_options(synchronize_session=False)
        )


class RideRequestRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, request: RideRequestModel) -> RideRequestModel:
        self.session.add(request)
        await self.session.flush()
        return request

    async def get_by_id(self, request_id: int) -> Optional[RideRequestModel]:
        return await self.session.get(RideRequestModel, request_id)

    async def list_for_driver(
        self, driver_id: int, status: BookingStatus | None = None
    ) -> list[RideRequestModel]:
        query = select(RideRequestModel).where(RideRequestModel.driver_id == driver_id)
        if status:
            query = query.where(RideRequestModel.status == status)
        result = await self.session.execute(
            query.order_by(RideRequestModel.created_at.desc(), RideRequestModel.id.desc())
        )
        return list(result.scalars().all())

    async def list_for_passenger(
        self, passenger_id: int, status: BookingStatus | None = None
    ) -> list[RideRequestModel]:
        query = select(RideRequestModel).where(
            RideRequestModel.passenger_id == passenger_id
        )
        if status:
            query = query.where(RideRequestModel.status == status)
        result = await self.session.execute(
            query.order_by(RideRequestModel.created_at.desc(), RideRequestModel.id.desc())
        )
        return list(result.scalars().all())

    async def transition(
        self,
        request_id: int,
        sources: Iterable[BookingStatus],
        target: BookingStatus,
        **values,
    ) -> bool:
        """Move to *target* only if the row is still in one of *sources*."""
        result = await self.session.execute(
            update(RideRequestModel)
            .where(
                RideRequestModel.id == request_id,
                RideRequestModel.status.in_(list(sources)),
            )
            .values(status=target, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def cancel_open_for_listing(self, listing_id: int) -> int:
        """Cancel every pending/accepted booking on *listing_id*."""
        result = await self.session.execute(
            update(RideRequestModel)
            .where(
                RideRequestModel.listing_id == listing_id,
                RideRequestModel.status.in_(
                    [BookingStatus.PENDING, BookingStatus.ACCEPTED]
                ),
            )
            .values(status=BookingStatus.CANCELLED, listing_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(
            update(RideRequestModel)
            .where(RideRequestModel.listing_id == listing_id)
            .values(listing_id=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def get_accepted_with_listings(
        self, up_to: date
    ) -> list[tuple[RideRequestModel, VehicleModel]]:
        """Accepted bookings whose listing departs on or before *up_to*."""
        result = await self.session.execute(
            select(RideRequestModel, VehicleModel)
            .join(VehicleModel, RideRequestModel.listing_id == VehicleModel.id)
            .where(
                RideRequestModel.status == BookingStatus.ACCEPTED,
                VehicleModel.date <= up_to,
            )
        )
        return [(row[0], row[1]) for row in result.all()]


class RatingRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, rating: RatingModel) -> RatingModel:
        self.session.add(rating)
        await self.session.flush()
        return rating

    async def exists_for(self, passenger_id: int, ride_id: int) -> bool:
        result = await self.session.execute(
            select(func.count())
            .select_from(RatingModel)
            .where(
                RatingModel.passenger_id == passenger_id,
                RatingModel.ride_id == ride_id,
            )
        )
        return bool(result.scalar())

    async def values_for_driver(self, driver_id: int) -> list[int]:
        result = await self.session.execute(
            select(RatingModel.rating).where(RatingModel.driver_id == driver_id)
        )
        return list(result.scalars().all())

    async def list_for_driver(
        self, driver_id: int
    ) -> list[tuple[RatingModel, str]]:
        """Ratings for *driver_id*, newest first, with the passenger's name."""
        result = await self.session.execute(
            select(RatingModel, AccountModel.name)
            .join(AccountModel, RatingModel.passenger_id == AccountModel.id)
            .where(RatingModel.driver_id == driver_id)
            .order_by(RatingModel.created_at.desc(), RatingModel.id.desc())
        )
        return [(row[0], row[1]) for row in result.all()]
