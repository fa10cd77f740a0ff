"""
Input validators.

Each ``*_errors`` function returns *every* violated constraint so the
caller can surface them together; ``ensure_*`` wrappers raise a single
``ValidationError`` carrying the whole list.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Optional

from .errors import ValidationError

PHONE_PATTERN = re.compile(r"^[0-9]{10}$")
TIME_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")

# bcrypt input limit
MAX_PASSWORD_BYTES = 72


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def registration_errors(
    name: Optional[str],
    email: Optional[str],
    phone: Optional[str],
    password: Optional[str],
    password_confirm: Optional[str],
    min_password_length: int = 6,
) -> list[str]:
    errors: list[str] = []
    if any(_blank(v) for v in (name, email, phone, password, password_confirm)):
        errors.append("Please fill all fields")
    if password is not None and password_confirm is not None:
        if password != password_confirm:
            errors.append("Passwords do not match")
    if password and len(password) < min_password_length:
        errors.append(
            f"Password must be at least {min_password_length} characters"
        )
    if password and len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        errors.append(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    if phone and sum(ch.isdigit() for ch in phone) < 10:
        errors.append("Please enter a valid phone number")
    return errors


def listing_errors(
    car_type: Optional[str],
    pickup_location: Optional[str],
    drop_location: Optional[str],
    ride_date: Optional[date],
    ride_time: Optional[str],
    total_seats: Optional[int],
    available_seats: Optional[int],
    max_seats: int = 8,
) -> list[str]:
    errors: list[str] = []
    if _blank(car_type):
        errors.append("Car type is required")
    if _blank(pickup_location):
        errors.append("Pickup location is required")
    if _blank(drop_location):
        errors.append("Destination location is required")
    if ride_date is None:
        errors.append("Date is required")
    if _blank(ride_time):
        errors.append("Time is required")
    elif not TIME_PATTERN.match(ride_time.strip()):
        errors.append("Time must be HH:MM")
    if total_seats is None or not 1 <= total_seats <= max_seats:
        errors.append(f"Total seats must be 1-{max_seats}")
    upper = total_seats if total_seats is not None else max_seats
    if available_seats is None or not 0 <= available_seats <= upper:
        errors.append(f"Available seats must be 0-{upper}")
    return errors


def contact_errors(name: Optional[str], phone: Optional[str]) -> list[str]:
    errors: list[str] = []
    if _blank(name):
        errors.append("Passenger name is required")
    if _blank(phone):
        errors.append("Passenger phone is required")
    elif not PHONE_PATTERN.match(phone.strip()):
        errors.append("Please enter a valid 10-digit phone number")
    return errors


def rating_errors(rating: Optional[int], **sub_ratings: Optional[int]) -> list[str]:
    errors: list[str] = []
    if rating is None or not 1 <= rating <= 5:
        errors.append("Rating must be between 1 and 5")
    for name, value in sub_ratings.items():
        if value is not None and not 1 <= value <= 5:
            errors.append(f"{name} must be between 1 and 5")
    return errors


def ensure_valid(errors: list[str]) -> None:
    if errors:
        raise ValidationError.from_errors(errors)
