"""
Pydantic request / response schemas for the REST API.

Field names are snake_case in Python and camelCase on the wire
(``availableSeats``, ``rejectionReason``, ...); both spellings are
accepted on input.  Most request fields are optional here on purpose:
the services validate them and report every problem at once.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, EmailStr, Field
from pydantic.alias_generators import to_camel

from rideshare.domain.enums import BookingStatus, Role


class CamelModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


# ── Requests ──────────────────────────────────────────────────────────


class RegisterRequest(CamelModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    password_confirm: Optional[str] = None


class LoginRequest(CamelModel):
    email: str
    password: str


class SetRoleRequest(CamelModel):
    role: str


class VehicleCreateRequest(CamelModel):
    car_type: Optional[str] = None
    pickup_location: Optional[str] = None
    drop_location: Optional[str] = None
    ride_date: Optional[date] = Field(None, alias="date")
    ride_time: Optional[str] = Field(None, alias="time")
    total_seats: Optional[int] = None
    available_seats: Optional[int] = None
    notes: Optional[str] = None


class RideRequestCreate(CamelModel):
    listing_id: int = Field(
        ...,
        validation_alias=AliasChoices(
            "listingId", "listing_id", "vehicleId", "rideId"
        ),
    )
    requested_seats: int = 1
    passenger_name: Optional[str] = None
    passenger_phone: Optional[str] = None


class RejectRequest(CamelModel):
    rejection_reason: Optional[str] = None


class RatingCreateRequest(CamelModel):
    driver_id: int
    ride_id: int
    passenger_id: Optional[int] = None
    rating: int
    review: Optional[str] = Field(None, max_length=1000)
    cleanliness_rating: Optional[int] = None
    behavior_rating: Optional[int] = None
    safety_rating: Optional[int] = None


# ── Responses ─────────────────────────────────────────────────────────


class AccountResponse(CamelModel):
    id: int
    name: str
    email: str
    phone: str
    role: Role
    active_role: Role
    average_rating: float = 0.0
    total_ratings: int = 0


class AuthResponse(CamelModel):
    token: str
    account: AccountResponse


class SetRoleResponse(CamelModel):
    active_role: Role
    account: AccountResponse


class ListingResponse(CamelModel):
    id: int
    owner_id: int
    car_type: str
    pickup_location: str
    drop_location: str
    ride_date: date = Field(alias="date")
    ride_time: str = Field(alias="time")
    total_seats: int
    available_seats: int
    notes: str = ""
    created_at: Optional[datetime] = None
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None


class DeleteListingResponse(CamelModel):
    id: int
    cancelled_requests: int


class ListingSummary(CamelModel):
    """The ride a booking is for, with the driver to contact."""

    id: int
    car_type: str
    pickup_location: str
    drop_location: str
    ride_date: date = Field(alias="date")
    ride_time: str = Field(alias="time")
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None


class BookingResponse(CamelModel):
    id: int
    listing_id: Optional[int] = None
    driver_id: int
    passenger_id: int
    passenger_name: str
    passenger_phone: str
    requested_seats: int
    status: BookingStatus
    rejection_reason: Optional[str] = None
    rating: Optional[int] = None
    review: Optional[str] = None
    created_at: Optional[datetime] = None
    listing: Optional[ListingSummary] = None


class RatingResponse(CamelModel):
    id: int
    driver_id: int
    passenger_id: int
    passenger_name: Optional[str] = None
    ride_id: int
    rating: int
    review: Optional[str] = None
    cleanliness_rating: Optional[int] = None
    behavior_rating: Optional[int] = None
    safety_rating: Optional[int] = None
    created_at: Optional[datetime] = None


class DriverRatingsResponse(CamelModel):
    driver_id: int
    average_rating: float
    total_ratings: int
    ratings: list[RatingResponse] = []


class CompletionResponse(CamelModel):
    completed: int


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
    errors: list[str] = []
