"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 3 drivers and 4 passengers (password for all: ``password123``)
  - 6 upcoming ride listings
  - 6 ride requests (mix of pending, accepted, rejected, completed)
  - 1 rating on the completed ride
"""

import asyncio
from datetime import date, timedelta

from sqlalchemy import func, select

from rideshare.domain.enums import BookingStatus, Role
from rideshare.domain.ratings import average_rating
from rideshare.infrastructure.database import async_session_factory, engine
from rideshare.infrastructure.models import (
    AccountModel,
    RatingModel,
    RideRequestModel,
    VehicleModel,
)
from rideshare.infrastructure.security import hash_password

PASSWORD = "password123"

DRIVERS = [
    {"name": "Aarav Sharma", "email": "aarav@example.com", "phone": "9820011001"},
    {"name": "Priya Patel", "email": "priya@example.com", "phone": "9820011002"},
    {"name": "Rohan Mehta", "email": "rohan@example.com", "phone": "9820011003"},
]

PASSENGERS = [
    {"name": "Sneha Gupta", "email": "sneha@example.com", "phone": "9820022001"},
    {"name": "Vikram Singh", "email": "vikram@example.com", "phone": "9820022002"},
    {"name": "Ananya Reddy", "email": "ananya@example.com", "phone": "9820022003"},
    {"name": "Karan Joshi", "email": "karan@example.com", "phone": "9820022004"},
]

# (driver index, car, pickup, drop, days ahead, time, seats)
LISTINGS = [
    (0, "Sedan", "Mumbai Airport T2", "Andheri East", 1, "08:30", 4),
    (0, "Sedan", "Andheri East", "Mumbai Airport T2", 2, "18:00", 4),
    (1, "SUV", "Bandra West", "Pune Station", 1, "06:15", 6),
    (1, "SUV", "Pune Station", "Bandra West", 3, "19:45", 6),
    (2, "Hatchback", "Powai", "Lower Parel", 2, "09:00", 3),
    (2, "Van", "Thane", "Navi Mumbai", 4, "07:30", 8),
]

# (passenger index, listing index, seats, status)
REQUESTS = [
    (0, 0, 1, BookingStatus.ACCEPTED),
    (1, 0, 2, BookingStatus.PENDING),
    (2, 2, 2, BookingStatus.ACCEPTED),
    (3, 2, 1, BookingStatus.REJECTED),
    (0, 4, 1, BookingStatus.PENDING),
    (1, 5, 1, BookingStatus.COMPLETED),
]


def _account(data: dict, role: Role) -> AccountModel:
    return AccountModel(
        name=data["name"],
        email=data["email"],
        phone=data["phone"],
        password_hash=hash_password(PASSWORD),
        role=role,
        active_role=role,
        average_rating=0.0,
        total_ratings=0,
    )


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(select(func.count()).select_from(AccountModel))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Accounts ──────────────────────────────────────────────────
        drivers = [_account(d, Role.DRIVER) for d in DRIVERS]
        passengers = [_account(p, Role.PASSENGER) for p in PASSENGERS]
        session.add_all(drivers + passengers)
        await session.flush()
        print(f"  Created {len(drivers)} drivers and {len(passengers)} passengers")

        # ── Listings ──────────────────────────────────────────────────
        today = date.today()
        vehicles = []
        for owner, car, pickup, drop, days, time, seats in LISTINGS:
            vehicles.append(
                VehicleModel(
                    owner_id=drivers[owner].id,
                    car_type=car,
                    pickup_location=pickup,
                    drop_location=drop,
                    date=today + timedelta(days=days),
                    time=time,
                    total_seats=seats,
                    available_seats=seats,
                    notes="",
                )
            )
        session.add_all(vehicles)
        await session.flush()
        print(f"  Created {len(vehicles)} listings")

        # ── Ride requests ─────────────────────────────────────────────
        requests = []
        for who, listing, seats, status in REQUESTS:
            passenger, vehicle = passengers[who], vehicles[listing]
            if status in (BookingStatus.ACCEPTED, BookingStatus.COMPLETED):
                vehicle.available_seats -= seats
            requests.append(
                RideRequestModel(
                    listing_id=vehicle.id,
                    driver_id=vehicle.owner_id,
                    passenger_id=passenger.id,
                    passenger_name=passenger.name,
                    passenger_phone=passenger.phone,
                    requested_seats=seats,
                    status=status,
                    rejection_reason="Car is full that day"
                    if status is BookingStatus.REJECTED
                    else None,
                )
            )
        session.add_all(requests)
        await session.flush()
        print(f"  Created {len(requests)} ride requests")

        # ── Ratings ───────────────────────────────────────────────────
        completed = requests[-1]
        completed.rating, completed.review = 5, "Smooth ride, on time"
        session.add(
            RatingModel(
                driver_id=completed.driver_id,
                passenger_id=completed.passenger_id,
                ride_id=completed.id,
                rating=5,
                review=completed.review,
                cleanliness_rating=5,
                behavior_rating=5,
                safety_rating=4,
            )
        )
        rated = drivers[2]
        rated.average_rating, rated.total_ratings = average_rating([5])
        await session.flush()
        print("  Created 1 rating")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
