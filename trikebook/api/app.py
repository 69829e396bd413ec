"""
FastAPI application factory.

* Registers routes for quotes, geocoding, bookings and admin.
* Maps booking validation errors to ``422 {"code", "detail"}``.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from trikebook.api.dependencies import close_redis_pool
from trikebook.api.middleware import limiter
from trikebook.api.routes import admin, bookings, geocode, quotes
from trikebook.domain.errors import BookingError
from trikebook.infrastructure.database import engine
from trikebook.infrastructure.locks import QuoteBusy

logging.basicConfig(level=logging.INFO)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release the DB engine and Redis pool on shutdown."""
    yield
    await engine.dispose()
    await close_redis_pool()


async def _booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    logger.info("Booking rejected: %s", exc.code.value)
    return JSONResponse(
        status_code=422,
        content={"code": exc.code.value, "detail": exc.message},
    )


async def _quote_busy_handler(request: Request, exc: QuoteBusy) -> JSONResponse:
    logger.warning("Gave up waiting for %s", exc.key)
    return JSONResponse(
        status_code=409,
        content={"detail": "Quote is being updated, please retry"},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Trike Booking API",
        description=(
            "Quotes and books trike rides inside Camarines Norte: "
            "service-area validation, address search, routing with a "
            "straight-line fallback, fares and booking management."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(BookingError, _booking_error_handler)
    app.add_exception_handler(QuoteBusy, _quote_busy_handler)

    # Routers
    app.include_router(quotes.router, prefix="/api/v1")
    app.include_router(geocode.router, prefix="/api/v1")
    app.include_router(bookings.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
