"""
Background Completion Worker
============================

Bookings become ``completed`` once their ride has departed; nothing in
the request path triggers that, so this worker does.  It runs every
``COMPLETION_INTERVAL_SECONDS`` (default 300 s).

Concurrency safety
------------------
* **Redis distributed lock** ensures only one API process runs a cycle.
* Each completion is a conditional ``UPDATE ... WHERE status = 'accepted'``,
  so a cycle racing with a passenger's cancel either completes the booking
  or leaves it cancelled, never both.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Optional

from rideshare.config import settings
from rideshare.infrastructure.database import async_session_factory
from rideshare.infrastructure.locks import DistributedLock
from rideshare.infrastructure.redis_client import get_redis
from rideshare.services.booking import BookingEngine

logger = logging.getLogger(__name__)

_task: asyncio.Task | None = None
_stop_event: asyncio.Event | None = None


# ── Public API ────────────────────────────────────────────────────────


async def start_completion_loop() -> None:
    global _task, _stop_event
    _stop_event = asyncio.Event()
    _task = asyncio.create_task(_loop())
    logger.info(
        "Completion worker started (interval=%ds)",
        settings.completion_interval_seconds,
    )


async def stop_completion_loop() -> None:
    if _stop_event:
        _stop_event.set()
    if _task:
        _task.cancel()
        try:
            await _task
        except asyncio.CancelledError:
            pass
    logger.info("Completion worker stopped")


async def run_completion_cycle(now: Optional[datetime] = None) -> int:
    """Execute one cycle.  Returns the number of bookings completed."""
    redis = await get_redis()
    lock = DistributedLock(redis, "booking_completion", ttl_seconds=60)

    if not await lock.acquire():
        logger.debug("Lock held by another worker – skipping cycle")
        return 0

    completed = 0
    try:
        async with async_session_factory() as session:
            completed = await BookingEngine(session).complete_departed(now)
            await session.commit()
        if completed:
            logger.info("Completion cycle: %d booking(s) completed", completed)
    except Exception:
        logger.exception("Error in completion cycle")
    finally:
        await lock.release()

    return completed


# ── Internals ─────────────────────────────────────────────────────────


async def _loop() -> None:
    """Periodic loop: run a cycle then sleep."""
    assert _stop_event is not None
    while not _stop_event.is_set():
        try:
            await run_completion_cycle()
        except Exception:
            logger.exception("Unhandled error in completion cycle")
        try:
            await asyncio.wait_for(
                _stop_event.wait(), timeout=settings.completion_interval_seconds
            )
            break
        except asyncio.TimeoutError:
            pass  # next cycle
