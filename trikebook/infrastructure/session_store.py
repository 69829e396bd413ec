"""
Redis-backed quote sessions.

Each quote lives under ``quote:{id}`` as JSON and expires after
``quote_ttl_seconds`` of inactivity (every save refreshes the TTL).  A
missing key means the quote never existed or has expired; both are
reported as ``None``.  Writers serialise on ``lock(id)``.
"""

from __future__ import annotations

import json
import uuid
from typing import Optional

import redis.asyncio as aioredis

from trikebook.config import settings
from trikebook.domain.session import QuoteSession
from trikebook.infrastructure.locks import DistributedLock


class QuoteSessionStore:
    def __init__(self, client: aioredis.Redis, ttl_seconds: int = settings.quote_ttl_seconds):
        self.redis = client
        self.ttl = ttl_seconds

    @staticmethod
    def _key(quote_id: str) -> str:
        return f"quote:{quote_id}"

    async def create(self) -> tuple[str, QuoteSession]:
        quote_id = uuid.uuid4().hex
        session = QuoteSession()
        await self.save(quote_id, session)
        return quote_id, session

    async def load(self, quote_id: str) -> Optional[QuoteSession]:
        raw = await self.redis.get(self._key(quote_id))
        if raw is None:
            return None
        return QuoteSession.from_dict(json.loads(raw))

    async def save(self, quote_id: str, session: QuoteSession) -> None:
        await self.redis.set(
            self._key(quote_id), json.dumps(session.to_dict()), ex=self.ttl
        )

    async def delete(self, quote_id: str) -> None:
        await self.redis.delete(self._key(quote_id))

    def lock(self, quote_id: str) -> DistributedLock:
        """Exclusive hold on one quote for a load -> operate -> save cycle."""
        return DistributedLock(self.redis, self._key(quote_id))
