"""
Vehicle (ride listing) endpoints
================================

GET    /api/vehicles                    -- upcoming listings, filterable by pickup/drop/date
POST   /api/vehicles                    -- driver posts a listing
GET    /api/vehicles/driver/my-vehicles -- the caller's own listings
GET    /api/vehicles/{vehicle_id}       -- one listing
DELETE /api/vehicles/{vehicle_id}       -- owner deletes; open bookings are cancelled
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rideshare.api.dependencies import get_current_account, get_db
from rideshare.api.middleware import limiter
from rideshare.api.schemas import (
    DeleteListingResponse,
    ListingResponse,
    VehicleCreateRequest,
)
from rideshare.config import settings
from rideshare.infrastructure.models import AccountModel
from rideshare.services.catalog import CatalogService

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.get(
    "",
    response_model=list[ListingResponse],
    summary="List upcoming rides",
)
@limiter.limit(settings.rate_limit)
async def list_vehicles(
    request: Request,
    pickup: Optional[str] = Query(None, description="Substring of the pickup location"),
    drop: Optional[str] = Query(None, description="Substring of the drop location"),
    ride_date: Optional[date] = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
):
    return await CatalogService(db).list_available(
        pickup=pickup, drop=drop, ride_date=ride_date
    )


@router.post(
    "",
    status_code=201,
    response_model=ListingResponse,
    summary="Post a ride",
    responses={400: {"description": "Every violated field constraint is listed."}},
)
@limiter.limit(settings.rate_limit)
async def create_vehicle(
    request: Request,
    body: VehicleCreateRequest,
    account: AccountModel = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    return await CatalogService(db).create(
        account,
        car_type=body.car_type,
        pickup_location=body.pickup_location,
        drop_location=body.drop_location,
        ride_date=body.ride_date,
        ride_time=body.ride_time,
        total_seats=body.total_seats,
        available_seats=body.available_seats,
        notes=body.notes,
    )


@router.get(
    "/driver/my-vehicles",
    response_model=list[ListingResponse],
    summary="List the caller's own rides",
)
@limiter.limit(settings.rate_limit)
async def my_vehicles(
    request: Request,
    account: AccountModel = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    return await CatalogService(db).list_mine(account.id)


@router.get("/{vehicle_id}", response_model=ListingResponse, summary="Get one ride")
@limiter.limit(settings.rate_limit)
async def get_vehicle(
    request: Request,
    vehicle_id: int,
    db: AsyncSession = Depends(get_db),
):
    return await CatalogService(db).get(vehicle_id)


@router.delete(
    "/{vehicle_id}",
    response_model=DeleteListingResponse,
    summary="Delete a ride",
    description="Only the owner may delete. Pending and accepted bookings are cancelled.",
)
@limiter.limit(settings.rate_limit)
async def delete_vehicle(
    request: Request,
    vehicle_id: int,
    account: AccountModel = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    cancelled = await CatalogService(db).delete(vehicle_id, account)
    return DeleteListingResponse(id=vehicle_id, cancelled_requests=cancelled)
