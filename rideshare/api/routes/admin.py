"""
Admin / operations endpoints
============================

POST /api/admin/ride-requests/{id}/complete -- mark one accepted booking completed
POST /api/admin/complete-departed           -- run one completion sweep now
GET  /api/admin/health                      -- simple health check
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rideshare.api.dependencies import get_db, require_admin
from rideshare.api.middleware import limiter
from rideshare.api.schemas import BookingResponse, CompletionResponse, HealthResponse
from rideshare.config import settings
from rideshare.services.booking import BookingEngine

router = APIRouter(
    prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)]
)


@router.post(
    "/ride-requests/{request_id}/complete",
    response_model=BookingResponse,
    summary="Complete an accepted booking (idempotent)",
)
@limiter.limit(settings.rate_limit)
async def complete_request(
    request: Request,
    request_id: int,
    db: AsyncSession = Depends(get_db),
):
    return await BookingEngine(db).complete(request_id)


@router.post(
    "/complete-departed",
    response_model=CompletionResponse,
    summary="Complete every accepted booking whose ride has departed",
)
@limiter.limit(settings.rate_limit)
async def complete_departed(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    return CompletionResponse(completed=await BookingEngine(db).complete_departed())


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
