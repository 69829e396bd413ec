"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  PostGIS-specific features (Geometry columns)
are mocked by using plain String columns in the test models, and Redis is
replaced by a dict-backed stand-in with the few commands the quote store
and its lock use.
"""

from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy import Column, DateTime, Float, Integer, String, func
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from trikebook.domain.entities import Coordinate, GeoBounds, Route, RouteResult
from trikebook.domain.pricing import FareModel
from trikebook.infrastructure.repositories import BookingRepository
from trikebook.services.geocoding import AddressResolver
from trikebook.services.orchestrator import BookingQuoteOrchestrator
from trikebook.services.routing import RouteResolver


# ── Test DB (SQLite in-memory) ────────────────────────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


class TestBase(DeclarativeBase):
    pass


# Mirror the production model but without PostGIS Geometry columns
# (SQLite doesn't support them).

class TestBookingModel(TestBase):
    __tablename__ = "bookings"
    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_number = Column(String(20), unique=True, nullable=False)
    pickup_location = Column(String(500), nullable=False, default="")
    dropoff_location = Column(String(500), nullable=False, default="")
    pickup_point = Column(String, nullable=True)  # stub for Geometry
    dropoff_point = Column(String, nullable=True)  # stub for Geometry
    pickup_lat = Column(Float, nullable=False)
    pickup_lng = Column(Float, nullable=False)
    dropoff_lat = Column(Float, nullable=False)
    dropoff_lng = Column(Float, nullable=False)
    distance = Column(Float, nullable=False)
    duration = Column(Float, nullable=True)
    fare = Column(Float, nullable=False)
    status = Column(String(20), default="pending", nullable=False)
    user_name = Column(String(120), nullable=False, default="")
    user_phone = Column(String(40), nullable=False, default="")
    assigned_rider_id = Column(Integer, nullable=True)
    assigned_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, server_default=func.now())


class TestBookingRepository(BookingRepository):
    """``BookingRepository`` over the SQLite-friendly mirror model."""

    model = TestBookingModel

    @staticmethod
    def _point(lat: float, lng: float):
        return f"POINT({lng} {lat})"


# ── Redis stand-in ────────────────────────────────────────────────────


class FakeRedis:
    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttl: dict[str, Optional[int]] = {}

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(
        self, key: str, value: str, ex: Optional[int] = None, nx: bool = False
    ) -> Optional[bool]:
        if nx and key in self.data:
            return None
        self.data[key] = value
        self.ttl[key] = ex
        return True

    async def delete(self, key: str) -> int:
        self.ttl.pop(key, None)
        return 1 if self.data.pop(key, None) is not None else 0

    async def eval(self, script: str, numkeys: int, key: str, token: str) -> int:
        # Only the lock release script is ever evaluated.
        if self.data.get(key) == token:
            return await self.delete(key)
        return 0


# ── Domain fixtures ───────────────────────────────────────────────────

DAET_PLAZA = Coordinate(14.10, 122.90)
BASUD_TERMINAL = Coordinate(14.20, 123.00)


@pytest.fixture
def bounds() -> GeoBounds:
    return GeoBounds(north=14.7, south=13.9, east=123.1, west=122.5)


@pytest.fixture
def fare_model() -> FareModel:
    return FareModel(base_fare=50.0, base_km=3.0, extra_rate_per_km=15.0)


@pytest.fixture
def road_route() -> RouteResult:
    return RouteResult(
        primary=Route(
            coordinates=(DAET_PLAZA, Coordinate(14.15, 122.95), BASUD_TERMINAL),
            distance_km=12.5,
            duration_minutes=20.0,
        ),
        alternatives=(
            Route(coordinates=(DAET_PLAZA, BASUD_TERMINAL), distance_km=14.0, duration_minutes=24.0),
        ),
    )


@pytest.fixture
def route_resolver(road_route) -> AsyncMock:
    resolver = AsyncMock(spec=RouteResolver)
    resolver.resolve_route.return_value = road_route
    return resolver


@pytest.fixture
def address_resolver() -> AsyncMock:
    resolver = AsyncMock(spec=AddressResolver)
    resolver.reverse_geocode.return_value = "Vinzons Avenue, Daet"
    resolver.search_address.return_value = []
    return resolver


@pytest.fixture
def orchestrator(bounds, fare_model, route_resolver, address_resolver) -> BookingQuoteOrchestrator:
    return BookingQuoteOrchestrator(
        bounds=bounds,
        fare_model=fare_model,
        route_resolver=route_resolver,
        address_resolver=address_resolver,
    )


# ── DB fixtures ───────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database per test; tables created, then dropped."""
    engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(TestBase.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(TestBase.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
