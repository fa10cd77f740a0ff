"""
Redis-based distributed lock.

The completion worker runs in every API process; the lock makes sure
only one of them completes departed bookings per cycle.

Acquire is ``SET NX EX``; release is a Lua check-and-delete so a
process never frees a lock that expired and was taken by someone else.
"""

from __future__ import annotations

import logging
import uuid

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class LockNotAcquired(RuntimeError):
    pass


class DistributedLock:
    def __init__(
        self, client: aioredis.Redis, name: str, ttl_seconds: int = 60
    ):
        self.redis = client
        self.key = f"rideshare:lock:{name}"
        self.ttl = ttl_seconds
        self.token = uuid.uuid4().hex

    async def acquire(self) -> bool:
        """Try once; ``True`` if this instance now holds the lock."""
        acquired = bool(
            await self.redis.set(self.key, self.token, nx=True, ex=self.ttl)
        )
        if not acquired:
            logger.debug("Lock %s is held elsewhere", self.key)
        return acquired

    async def release(self) -> bool:
        released = await self.redis.eval(_RELEASE_SCRIPT, 1, self.key, self.token)
        return bool(released)

    async def __aenter__(self):
        if not await self.acquire():
            raise LockNotAcquired(f"Could not acquire lock: {self.key}")
        return self

    async def __aexit__(self, *exc_info):
        await self.release()
