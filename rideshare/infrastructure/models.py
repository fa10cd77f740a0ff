"""
SQLAlchemy ORM models.

Tables
------
* ``accounts``       -- drivers and passengers (one table, ``role`` column)
* ``vehicles``       -- driver-posted ride listings with seat capacity
* ``ride_requests``  -- passenger bookings against a listing
* ``ratings``        -- passenger feedback on a completed booking

Constraints
-----------
* ``ck_vehicles_seats`` keeps ``0 <= available_seats <= total_seats`` at
  the database level as well as in the guarded updates.
* ``uq_ratings_passenger_ride`` enforces one rating per (passenger, ride).

Listings load their owner and bookings load their listing in the same
query, so responses can show the driver's contact and the ride details.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base
from rideshare.domain.enums import BookingStatus, Role


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _values(enum_cls):
    return [member.value for member in enum_cls]


class AccountModel(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(20), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(Role, values_callable=_values), nullable=False)
    active_role = Column(Enum(Role, values_callable=_values), nullable=False)
    average_rating = Column(Float, default=0.0, nullable=False)
    total_ratings = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (Index("idx_accounts_role", "role"),)


class VehicleModel(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    car_type = Column(String(80), nullable=False)
    pickup_location = Column(String(255), nullable=False)
    drop_location = Column(String(255), nullable=False)
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)  # HH:MM, local to the route
    total_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)
    notes = Column(Text, default="", nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    owner = relationship(AccountModel, lazy="joined", innerjoin=True)

    __table_args__ = (
        CheckConstraint(
            "available_seats >= 0 AND available_seats <= total_seats",
            name="ck_vehicles_seats",
        ),
        Index("idx_vehicles_owner", "owner_id"),
        Index("idx_vehicles_date", "date"),
    )

    @property
    def driver_name(self) -> str:
        return self.owner.name

    @property
    def driver_phone(self) -> str:
        return self.owner.phone


class RideRequestModel(Base):
    __tablename__ = "ride_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Nulled when the listing is deleted; the booking itself is kept.
    listing_id = Column(
        Integer, ForeignKey("vehicles.id", ondelete="SET NULL"), nullable=True
    )
    driver_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    passenger_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    passenger_name = Column(String(120), nullable=False)
    passenger_phone = Column(String(20), nullable=False)
    requested_seats = Column(Integer, nullable=False)
    status = Column(
        Enum(BookingStatus, values_callable=_values),
        default=BookingStatus.PENDING,
        nullable=False,
    )
    rejection_reason = Column(Text, nullable=True)
    rating = Column(Integer, nullable=True)
    review = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    listing = relationship(VehicleModel, lazy="joined")

    __table_args__ = (
        CheckConstraint("requested_seats >= 1", name="ck_ride_requests_seats"),
        Index("idx_ride_requests_listing", "listing_id"),
        Index("idx_ride_requests_driver_status", "driver_id", "status"),
        Index("idx_ride_requests_passenger", "passenger_id"),
    )


class RatingModel(Base):
    __tablename__ = "ratings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    driver_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    passenger_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    ride_id = Column(Integer, ForeignKey("ride_requests.id"), nullable=False)
    rating = Column(Integer, nullable=False)
    review = Column(Text, nullable=True)
    cleanliness_rating = Column(Integer, nullable=True)
    behavior_rating = Column(Integer, nullable=True)
    safety_rating = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        UniqueConstraint("passenger_id", "ride_id", name="uq_ratings_passenger_ride"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_ratings_range"),
        Index("idx_ratings_driver", "driver_id"),
    )
