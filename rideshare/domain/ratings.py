"""Driver rating aggregation."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable


def round_rating(value: float) -> float:
    """Round to one decimal place, halves away from zero (4.25 -> 4.3)."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def average_rating(ratings: Iterable[int]) -> tuple[float, int]:
    """Return ``(average, count)``; an unrated driver averages 0.0."""
    values = list(ratings)
    if not values:
        return 0.0, 0
    return round_rating(sum(values) / len(values)), len(values)
