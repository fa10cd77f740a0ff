"""
Rating Service.

A passenger rates the driver of a completed booking exactly once.  The
driver's ``average_rating`` / ``total_ratings`` are recomputed from the
ratings table while the driver row is locked, so concurrent submissions
for the same driver serialise instead of overwriting each other.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rideshare.domain.enums import BookingStatus, Role
from rideshare.domain.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from rideshare.domain.ratings import average_rating
from rideshare.domain.validation import ensure_valid, rating_errors
from rideshare.infrastructure.models import AccountModel, RatingModel
from rideshare.infrastructure.repositories import (
    AccountRepository,
    RatingRepository,
    RideRequestRepository,
)

logger = logging.getLogger(__name__)


class RatingService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.accounts = AccountRepository(session)
        self.ratings = RatingRepository(session)
        self.requests = RideRequestRepository(session)

    async def submit(
        self,
        account: AccountModel,
        *,
        driver_id: int,
        ride_id: int,
        rating: int,
        review: Optional[str] = None,
        passenger_id: Optional[int] = None,
        cleanliness_rating: Optional[int] = None,
        behavior_rating: Optional[int] = None,
        safety_rating: Optional[int] = None,
    ) -> RatingModel:
        ensure_valid(
            rating_errors(
                rating,
                cleanliness_rating=cleanliness_rating,
                behavior_rating=behavior_rating,
                safety_rating=safety_rating,
            )
        )
        if passenger_id is not None and passenger_id != account.id:
            raise AuthorizationError("You can only rate rides you booked")

        booking = await self.requests.get_by_id(ride_id)
        if booking is None:
            raise NotFoundError("Ride not found")
        if booking.passenger_id != account.id:
            raise AuthorizationError("You can only rate rides you booked")
        if booking.driver_id != driver_id:
            raise ValidationError("Driver does not match this ride")
        if booking.status != BookingStatus.COMPLETED:
            raise ConflictError("Only completed rides can be rated")

        driver = await self.accounts.get_driver_for_update(driver_id)
        if driver is None:
            raise NotFoundError("Driver not found")
        if await self.ratings.exists_for(account.id, ride_id):
            raise ConflictError("You have already rated this ride")

        review = review.strip() if review and review.strip() else None
        try:
            created = await self.ratings.create(
                RatingModel(
                    driver_id=driver_id,
                    passenger_id=account.id,
                    ride_id=ride_id,
                    rating=rating,
                    review=review,
                    cleanliness_rating=cleanliness_rating,
                    behavior_rating=behavior_rating,
                    safety_rating=safety_rating,
                )
            )
        except IntegrityError:
            raise ConflictError("You have already rated this ride") from None

        booking.rating = rating
        booking.review = review
        driver.average_rating, driver.total_ratings = average_rating(
            await self.ratings.values_for_driver(driver_id)
        )
        await self.session.flush()
        logger.info(
            "Driver %d rated %d by passenger %d (avg %.1f over %d)",
            driver_id,
            rating,
            account.id,
            driver.average_rating,
            driver.total_ratings,
        )
        return created

    async def list_for_driver(
        self, driver_id: int
    ) -> tuple[AccountModel, list[tuple[RatingModel, str]]]:
        driver = await self.accounts.get_by_id(driver_id)
        if driver is None or Role(driver.role) is not Role.DRIVER:
            raise NotFoundError("Driver not found")
        return driver, await self.ratings.list_for_driver(driver_id)
