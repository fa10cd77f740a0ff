"""Completion worker: one cycle against SQLite with a mocked Redis lock."""

from datetime import date, datetime, time
from unittest.mock import AsyncMock, patch

import pytest

from rideshare.workers.completer import run_completion_cycle


def _redis(lock_free: bool = True) -> AsyncMock:
    mock_redis = AsyncMock()
    mock_redis.set = AsyncMock(return_value=lock_free)
    mock_redis.eval = AsyncMock(return_value=1)
    return mock_redis


async def _accepted_booking(client, register, create_listing, request_seats, ride_time):
    _, driver = await register("driver")
    _, passenger = await register("passenger")
    listing = await create_listing(driver, date=date.today().isoformat(), time=ride_time)
    booking = (await request_seats(passenger, listing["id"])).json()
    resp = await client.put(f"/api/ride-requests/{booking['id']}/accept", headers=driver)
    assert resp.status_code == 200
    return booking, passenger


async def _status(client, headers) -> str:
    resp = await client.get("/api/ride-requests/passenger/my-bookings", headers=headers)
    return resp.json()[0]["status"]


@pytest.mark.asyncio
async def test_cycle_completes_departed_bookings(
    client, session_factory, register, create_listing, request_seats
):
    _, passenger = await _accepted_booking(
        client, register, create_listing, request_seats, "08:00"
    )
    mock_redis = _redis()

    with (
        patch(
            "rideshare.workers.completer.get_redis",
            new=AsyncMock(return_value=mock_redis),
        ),
        patch("rideshare.workers.completer.async_session_factory", session_factory),
    ):
        completed = await run_completion_cycle(
            now=datetime.combine(date.today(), time(9, 0))
        )

    assert completed == 1
    assert await _status(client, passenger) == "completed"
    mock_redis.eval.assert_called_once()


@pytest.mark.asyncio
async def test_cycle_skips_rides_not_yet_departed(
    client, session_factory, register, create_listing, request_seats
):
    _, passenger = await _accepted_booking(
        client, register, create_listing, request_seats, "18:00"
    )

    with (
        patch(
            "rideshare.workers.completer.get_redis",
            new=AsyncMock(return_value=_redis()),
        ),
        patch("rideshare.workers.completer.async_session_factory", session_factory),
    ):
        completed = await run_completion_cycle(
            now=datetime.combine(date.today(), time(9, 0))
        )

    assert completed == 0
    assert await _status(client, passenger) == "accepted"


@pytest.mark.asyncio
async def test_cycle_skipped_when_lock_is_held(
    client, session_factory, register, create_listing, request_seats
):
    _, passenger = await _accepted_booking(
        client, register, create_listing, request_seats, "08:00"
    )
    mock_redis = _redis(lock_free=False)

    with (
        patch(
            "rideshare.workers.completer.get_redis",
            new=AsyncMock(return_value=mock_redis),
        ),
        patch("rideshare.workers.completer.async_session_factory", session_factory),
    ):
        completed = await run_completion_cycle(
            now=datetime.combine(date.today(), time(9, 0))
        )

    assert completed == 0
    assert await _status(client, passenger) == "accepted"
    mock_redis.eval.assert_not_called()
