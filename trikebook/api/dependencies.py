"""FastAPI dependency injection helpers."""

from functools import lru_cache

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession

from trikebook.config import settings
from trikebook.domain.entities import GeoBounds
from trikebook.domain.pricing import FareModel
from trikebook.infrastructure.database import async_session_factory
from trikebook.infrastructure.session_store import QuoteSessionStore
from trikebook.services.geocoding import AddressResolver
from trikebook.services.orchestrator import BookingQuoteOrchestrator
from trikebook.services.routing import RouteResolver

_redis_pool = aioredis.ConnectionPool.from_url(
    settings.redis_url, decode_responses=True
)


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_store() -> QuoteSessionStore:
    """Quote sessions backed by the shared Redis connection pool."""
    return QuoteSessionStore(aioredis.Redis(connection_pool=_redis_pool))


@lru_cache
def get_address_resolver() -> AddressResolver:
    return AddressResolver()


@lru_cache
def get_orchestrator() -> BookingQuoteOrchestrator:
    bounds = GeoBounds(
        north=settings.bounds_north,
        south=settings.bounds_south,
        east=settings.bounds_east,
        west=settings.bounds_west,
    )
    return BookingQuoteOrchestrator(
        bounds=bounds,
        fare_model=FareModel.from_settings(settings),
        route_resolver=RouteResolver(),
        address_resolver=get_address_resolver(),
    )


async def close_redis_pool() -> None:
    await _redis_pool.disconnect()
