"""
Typed wrappers over the catalog, booking and rating endpoints.

Inputs are checked with the same validators the server uses before any
request goes out, so a form can show every problem without a round trip.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from rideshare.api.schemas import (
    BookingResponse,
    DeleteListingResponse,
    DriverRatingsResponse,
    ListingResponse,
    RatingResponse,
)
from rideshare.client.transport import ApiClient
from rideshare.config import settings
from rideshare.domain.enums import BookingStatus
from rideshare.domain.errors import NotFoundError
from rideshare.domain.validation import (
    contact_errors,
    ensure_valid,
    listing_errors,
    rating_errors,
)


@dataclass(frozen=True)
class BookingContact:
    """Who the driver should expect: collected before a booking is sent."""

    name: str
    phone: str

    def __post_init__(self):
        ensure_valid(contact_errors(self.name, self.phone))

    @classmethod
    def from_account(
        cls,
        account: Optional[dict[str, Any]],
        name: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> "BookingContact":
        """Fill blanks from the signed-in account snapshot."""
        account = account or {}
        return cls(
            name=(name or account.get("name") or "").strip(),
            phone=(phone or account.get("phone") or "").strip(),
        )


def _status_value(status: Optional[BookingStatus | str]) -> Optional[str]:
    if status is None:
        return None
    return BookingStatus(status).value


class CatalogClient:
    def __init__(self, api: ApiClient):
        self.api = api

    async def create(
        self,
        *,
        car_type: str,
        pickup_location: str,
        drop_location: str,
        ride_date: Optional[date],
        ride_time: str,
        total_seats: int,
        available_seats: Optional[int] = None,
        notes: str = "",
    ) -> ListingResponse:
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
        data = await self.api.post(
            "/vehicles",
            json={
                "carType": car_type.strip(),
                "pickupLocation": pickup_location.strip(),
                "dropLocation": drop_location.strip(),
                "date": ride_date.isoformat(),
                "time": ride_time.strip(),
                "totalSeats": total_seats,
                "availableSeats": available_seats,
                "notes": notes.strip(),
            },
        )
        return ListingResponse.model_validate(data)

    async def list_mine(self) -> list[ListingResponse]:
        data = await self.api.get("/vehicles/driver/my-vehicles")
        return [ListingResponse.model_validate(item) for item in data]

    async def list_available(
        self,
        *,
        pickup: Optional[str] = None,
        drop: Optional[str] = None,
        ride_date: Optional[date] = None,
    ) -> list[ListingResponse]:
        data = await self.api.get(
            "/vehicles",
            params={
                "pickup": pickup,
                "drop": drop,
                "date": ride_date.isoformat() if ride_date else None,
            },
        )
        return [ListingResponse.model_validate(item) for item in data]

    async def delete(self, listing_id: int) -> DeleteListingResponse:
        data = await self.api.delete(f"/vehicles/{listing_id}")
        return DeleteListingResponse.model_validate(data)


class BookingClient:
    def __init__(self, api: ApiClient):
        self.api = api

    async def create(
        self, listing_id: int, requested_seats: int, contact: BookingContact
    ) -> BookingResponse:
        data = await self.api.post(
            "/ride-requests",
            json={
                "listingId": listing_id,
                "requestedSeats": requested_seats,
                "passengerName": contact.name,
                "passengerPhone": contact.phone,
            },
        )
        return BookingResponse.model_validate(data)

    async def driver_requests(
        self, status: Optional[BookingStatus | str] = BookingStatus.PENDING
    ) -> list[BookingResponse]:
        data = await self.api.get(
            "/ride-requests/driver/pending", params={"status": _status_value(status)}
        )
        return [BookingResponse.model_validate(item) for item in data]

    async def my_requests(
        self, status: Optional[BookingStatus | str] = None
    ) -> list[BookingResponse]:
        data = await self.api.get(
            "/ride-requests/passenger/my-requests",
            params={"status": _status_value(status)},
        )
        return [BookingResponse.model_validate(item) for item in data]

    async def my_bookings(
        self, status: Optional[BookingStatus | str] = None
    ) -> list[BookingResponse]:
        data = await self.api.get(
            "/ride-requests/passenger/my-bookings",
            params={"status": _status_value(status)},
        )
        return [BookingResponse.model_validate(item) for item in data]

    async def accept(self, request_id: int) -> BookingResponse:
        data = await self.api.put(f"/ride-requests/{request_id}/accept")
        return BookingResponse.model_validate(data)

    async def reject(
        self, request_id: int, reason: Optional[str] = None
    ) -> BookingResponse:
        body = {"rejectionReason": reason} if reason else None
        data = await self.api.put(f"/ride-requests/{request_id}/reject", json=body)
        return BookingResponse.model_validate(data)

    async def cancel(self, request_id: int) -> BookingResponse:
        data = await self.api.put(f"/ride-requests/{request_id}/cancel")
        return BookingResponse.model_validate(data)


class RatingClient:
    def __init__(self, api: ApiClient):
        self.api = api

    async def submit(
        self,
        *,
        driver_id: int,
        ride_id: int,
        rating: int,
        review: Optional[str] = None,
        passenger_id: Optional[int] = None,
        cleanliness_rating: Optional[int] = None,
        behavior_rating: Optional[int] = None,
        safety_rating: Optional[int] = None,
    ) -> RatingResponse:
        ensure_valid(
            rating_errors(
                rating,
                cleanliness_rating=cleanliness_rating,
                behavior_rating=behavior_rating,
                safety_rating=safety_rating,
            )
        )
        payload = {
            "driverId": driver_id,
            "rideId": ride_id,
            "passengerId": passenger_id,
            "rating": rating,
            "review": review.strip() if review and review.strip() else None,
            "cleanlinessRating": cleanliness_rating,
            "behaviorRating": behavior_rating,
            "safetyRating": safety_rating,
        }
        data = await self.api.post(
            "/ratings", json={k: v for k, v in payload.items() if v is not None}
        )
        return RatingResponse.model_validate(data)

    async def list_for_driver(self, driver_id: int) -> DriverRatingsResponse:
        """A driver with nothing on record reads as "no ratings yet"."""
        try:
            data = await self.api.get(f"/ratings/driver/{driver_id}")
        except NotFoundError:
            return DriverRatingsResponse(
                driver_id=driver_id, average_rating=0.0, total_ratings=0, ratings=[]
            )
        return DriverRatingsResponse.model_validate(data)
