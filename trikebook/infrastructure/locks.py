"""
Redis-based per-quote lock.

Every request that changes a quote holds ``lock:quote:{id}`` from loading
the session until saving it back, so two requests for the same quote never
work on separate copies.  A request that finds the lock taken polls until
``wait_seconds`` have passed and then gives up with ``QuoteBusy``.

Implementation uses SET NX EX for acquire and a Lua script for
atomic check-and-delete on release.
"""

from __future__ import annotations

import asyncio
import time
import uuid

import redis.asyncio as aioredis

from trikebook.config import settings

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class QuoteBusy(Exception):
    """Another request kept the quote locked for longer than we could wait."""

    def __init__(self, key: str):
        super().__init__(f"Could not acquire lock: {key}")
        self.key = key


class DistributedLock:
    def __init__(
        self,
        client: aioredis.Redis,
        key: str,
        ttl_seconds: int = settings.quote_lock_ttl_seconds,
        wait_seconds: float = settings.quote_lock_wait_seconds,
        poll_interval: float = 0.05,
    ):
        self.redis = client
        self.key = f"lock:{key}"
        self.ttl = ttl_seconds
        self.wait = wait_seconds
        self.poll_interval = poll_interval
        self.token = str(uuid.uuid4())

    async def try_acquire(self) -> bool:
        return bool(
            await self.redis.set(self.key, self.token, nx=True, ex=self.ttl)
        )

    async def acquire(self) -> bool:
        """Poll until acquired or ``wait_seconds`` elapse."""
        deadline = time.monotonic() + self.wait
        while not await self.try_acquire():
            if time.monotonic() >= deadline:
                return False
            await asyncio.sleep(self.poll_interval)
        return True

    async def release(self) -> None:
        """Release only if we still own the lock (atomic via Lua)."""
        await self.redis.eval(_RELEASE_SCRIPT, 1, self.key, self.token)

    async def __aenter__(self):
        if not await self.acquire():
            raise QuoteBusy(self.key)
        return self

    async def __aexit__(self, *args):
        await self.release()
