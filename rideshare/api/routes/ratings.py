"""
Rating endpoints
================

POST /api/ratings                 -- passenger rates the driver of a completed ride
GET  /api/ratings/driver/{id}     -- a driver's ratings, average and count
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rideshare.api.dependencies import get_current_account, get_db
from rideshare.api.middleware import limiter
from rideshare.api.schemas import (
    DriverRatingsResponse,
    RatingCreateRequest,
    RatingResponse,
)
from rideshare.config import settings
from rideshare.infrastructure.models import AccountModel
from rideshare.services.ratings import RatingService

router = APIRouter(prefix="/ratings", tags=["ratings"])


@router.post(
    "",
    status_code=201,
    response_model=RatingResponse,
    summary="Rate a completed ride",
    responses={409: {"description": "Ride not completed, or already rated."}},
)
@limiter.limit(settings.rate_limit)
async def submit_rating(
    request: Request,
    body: RatingCreateRequest,
    account: AccountModel = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    rating = await RatingService(db).submit(
        account,
        driver_id=body.driver_id,
        ride_id=body.ride_id,
        rating=body.rating,
        review=body.review,
        passenger_id=body.passenger_id,
        cleanliness_rating=body.cleanliness_rating,
        behavior_rating=body.behavior_rating,
        safety_rating=body.safety_rating,
    )
    dto = RatingResponse.model_validate(rating)
    dto.passenger_name = account.name
    return dto


@router.get(
    "/driver/{driver_id}",
    response_model=DriverRatingsResponse,
    summary="A driver's ratings",
)
@limiter.limit(settings.rate_limit)
async def driver_ratings(
    request: Request,
    driver_id: int,
    db: AsyncSession = Depends(get_db),
):
    driver, rows = await RatingService(db).list_for_driver(driver_id)
    ratings: list[RatingResponse] = []
    for rating, passenger_name in rows:
        dto = RatingResponse.model_validate(rating)
        dto.passenger_name = passenger_name
        ratings.append(dto)
    return DriverRatingsResponse(
        driver_id=driver.id,
        average_rating=driver.average_rating,
        total_ratings=driver.total_ratings,
        ratings=ratings,
    )
