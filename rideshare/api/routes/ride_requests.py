"""
Ride request (booking) endpoints
================================

POST /api/ride-requests                           -- passenger requests seats (pending)
GET  /api/ride-requests/driver/pending?status=    -- requests on the caller's rides
GET  /api/ride-requests/passenger/my-requests     -- the caller's requests
GET  /api/ride-requests/passenger/my-bookings     -- same, for the bookings/rating view
PUT  /api/ride-requests/{request_id}/accept       -- driver accepts, seats are taken
PUT  /api/ride-requests/{request_id}/reject       -- driver rejects with optional reason
PUT  /api/ride-requests/{request_id}/cancel       -- passenger cancels, seats come back
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rideshare.api.dependencies import get_current_account, get_db
from rideshare.api.middleware import limiter
from rideshare.api.schemas import BookingResponse, RejectRequest, RideRequestCreate
from rideshare.config import settings
from rideshare.infrastructure.models import AccountModel
from rideshare.services.booking import BookingEngine, parse_status

router = APIRouter(prefix="/ride-requests", tags=["ride-requests"])

_STATUS_QUERY = Query(
    None, description="pending | accepted | rejected | cancelled | completed; empty for all"
)


@router.post(
    "",
    status_code=201,
    response_model=BookingResponse,
    summary="Request seats on a ride",
)
@limiter.limit(settings.rate_limit)
async def create_request(
    request: Request,
    body: RideRequestCreate,
    account: AccountModel = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    return await BookingEngine(db).create(
        account,
        listing_id=body.listing_id,
        requested_seats=body.requested_seats,
        passenger_name=body.passenger_name,
        passenger_phone=body.passenger_phone,
    )


@router.get(
    "/driver/pending",
    response_model=list[BookingResponse],
    summary="Requests on the caller's rides",
)
@limiter.limit(settings.rate_limit)
async def driver_requests(
    request: Request,
    status: Optional[str] = _STATUS_QUERY,
    account: AccountModel = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    return await BookingEngine(db).list_for_driver(account, parse_status(status))


@router.get(
    "/passenger/my-requests",
    response_model=list[BookingResponse],
    summary="The caller's ride requests",
)
@limiter.limit(settings.rate_limit)
async def my_requests(
    request: Request,
    status: Optional[str] = _STATUS_QUERY,
    account: AccountModel = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    return await BookingEngine(db).list_for_passenger(account, parse_status(status))


@router.get(
    "/passenger/my-bookings",
    response_model=list[BookingResponse],
    summary="The caller's bookings, including ratings given",
)
@limiter.limit(settings.rate_limit)
async def my_bookings(
    request: Request,
    status: Optional[str] = _STATUS_QUERY,
    account: AccountModel = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    return await BookingEngine(db).list_for_passenger(account, parse_status(status))


@router.put(
    "/{request_id}/accept",
    response_model=BookingResponse,
    summary="Accept a pending request",
    responses={409: {"description": "Not enough seats left, or no longer pending."}},
)
@limiter.limit(settings.rate_limit)
async def accept_request(
    request: Request,
    request_id: int,
    account: AccountModel = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    return await BookingEngine(db).accept(account, request_id)


@router.put(
    "/{request_id}/reject",
    response_model=BookingResponse,
    summary="Reject a pending request",
)
@limiter.limit(settings.rate_limit)
async def reject_request(
    request: Request,
    request_id: int,
    body: Optional[RejectRequest] = Body(None),
    account: AccountModel = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    reason = body.rejection_reason if body else None
    return await BookingEngine(db).reject(account, request_id, reason)


@router.put(
    "/{request_id}/cancel",
    response_model=BookingResponse,
    summary="Cancel a pending or accepted request",
)
@limiter.limit(settings.rate_limit)
async def cancel_request(
    request: Request,
    request_id: int,
    account: AccountModel = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    return await BookingEngine(db).cancel(account, request_id)
