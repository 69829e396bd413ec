"""
Quote endpoints
===============

POST /api/v1/quotes                        -- start an empty quote
GET  /api/v1/quotes/{quote_id}             -- current quote (endpoints, route, fare)
POST /api/v1/quotes/{quote_id}/locations   -- select pickup / drop-off
POST /api/v1/quotes/{quote_id}/current-location -- select the device position
POST /api/v1/quotes/{quote_id}/swap        -- swap pickup and drop-off
POST /api/v1/quotes/{quote_id}/reset       -- clear the quote
GET  /api/v1/quotes/{quote_id}/fare        -- fare breakdown
POST /api/v1/quotes/{quote_id}/book        -- finalize and persist a booking

Endpoints that change a quote hold its Redis lock from load to save; a
quote that stays locked past the wait time answers 409.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from trikebook.api.dependencies import get_db, get_orchestrator, get_session_store
from trikebook.api.middleware import limiter
from trikebook.api.schemas import (
    BookingResponse,
    BookRequest,
    CurrentLocationRequest,
    ErrorResponse,
    FareBreakdownResponse,
    LocationSelectRequest,
    QuoteResponse,
)
from trikebook.domain.entities import Coordinate
from trikebook.domain.enums import Endpoint
from trikebook.domain.session import QuoteSession
from trikebook.infrastructure.repositories import BookingRepository
from trikebook.infrastructure.session_store import QuoteSessionStore
from trikebook.services.orchestrator import BookingQuoteOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["quotes"])

_VALIDATION_ERROR = {422: {"model": ErrorResponse, "description": "Booking validation failed."}}


async def _load(store: QuoteSessionStore, quote_id: str) -> QuoteSession:
    session = await store.load(quote_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Quote not found or expired")
    return session


@asynccontextmanager
async def _editing(store: QuoteSessionStore, quote_id: str) -> AsyncIterator[QuoteSession]:
    """Hold the quote lock while its session is loaded, changed and saved."""
    async with store.lock(quote_id):
        yield await _load(store, quote_id)


@router.post(
    "",
    status_code=201,
    response_model=QuoteResponse,
    summary="Start a new quote",
)
@limiter.limit("100/minute")
async def create_quote(
    request: Request,
    store: QuoteSessionStore = Depends(get_session_store),
    orchestrator: BookingQuoteOrchestrator = Depends(get_orchestrator),
):
    quote_id, session = await store.create()
    return QuoteResponse.from_quote(quote_id, orchestrator.quote(session))


@router.get("/{quote_id}", response_model=QuoteResponse, summary="Get a quote")
@limiter.limit("100/minute")
async def get_quote(
    request: Request,
    quote_id: str,
    store: QuoteSessionStore = Depends(get_session_store),
    orchestrator: BookingQuoteOrchestrator = Depends(get_orchestrator),
):
    session = await _load(store, quote_id)
    return QuoteResponse.from_quote(quote_id, orchestrator.quote(session))


@router.post(
    "/{quote_id}/locations",
    response_model=QuoteResponse,
    summary="Select a pickup or drop-off location",
    description=(
        "Rejects points outside the service area with OUT_OF_RANGE. "
        "When both endpoints are set the route and fare are recomputed."
    ),
    responses=_VALIDATION_ERROR,
)
@limiter.limit("100/minute")
async def select_location(
    request: Request,
    quote_id: str,
    body: LocationSelectRequest,
    store: QuoteSessionStore = Depends(get_session_store),
    orchestrator: BookingQuoteOrchestrator = Depends(get_orchestrator),
):
    async with _editing(store, quote_id) as session:
        result = await orchestrator.select_location(
            session,
            Coordinate(body.latitude, body.longitude),
            body.label,
            is_pickup=body.endpoint is Endpoint.PICKUP,
        )
        await store.save(quote_id, session)
    return QuoteResponse.from_quote(quote_id, orchestrator.quote(session), stale=result.stale)


@router.post(
    "/{quote_id}/current-location",
    response_model=QuoteResponse,
    summary="Use the device position as pickup or drop-off",
    description="Omit the coordinates when the device denied geolocation (LOCATION_DENIED).",
    responses=_VALIDATION_ERROR,
)
@limiter.limit("100/minute")
async def use_current_location(
    request: Request,
    quote_id: str,
    body: CurrentLocationRequest,
    store: QuoteSessionStore = Depends(get_session_store),
    orchestrator: BookingQuoteOrchestrator = Depends(get_orchestrator),
):
    position = None
    if body.latitude is not None and body.longitude is not None:
        position = Coordinate(body.latitude, body.longitude)
    async with _editing(store, quote_id) as session:
        result = await orchestrator.use_current_location(
            session, position, is_pickup=body.endpoint is Endpoint.PICKUP
        )
        await store.save(quote_id, session)
    return QuoteResponse.from_quote(quote_id, orchestrator.quote(session), stale=result.stale)


@router.post("/{quote_id}/swap", response_model=QuoteResponse, summary="Swap pickup and drop-off")
@limiter.limit("100/minute")
async def swap(
    request: Request,
    quote_id: str,
    store: QuoteSessionStore = Depends(get_session_store),
    orchestrator: BookingQuoteOrchestrator = Depends(get_orchestrator),
):
    async with _editing(store, quote_id) as session:
        orchestrator.swap(session)
        await store.save(quote_id, session)
    return QuoteResponse.from_quote(quote_id, orchestrator.quote(session))


@router.post("/{quote_id}/reset", response_model=QuoteResponse, summary="Clear the quote")
@limiter.limit("100/minute")
async def reset(
    request: Request,
    quote_id: str,
    store: QuoteSessionStore = Depends(get_session_store),
    orchestrator: BookingQuoteOrchestrator = Depends(get_orchestrator),
):
    async with _editing(store, quote_id) as session:
        orchestrator.reset(session)
        await store.save(quote_id, session)
    return QuoteResponse.from_quote(quote_id, orchestrator.quote(session))


@router.get(
    "/{quote_id}/fare",
    response_model=FareBreakdownResponse,
    summary="Fare breakdown for the current distance",
)
@limiter.limit("100/minute")
async def fare_breakdown(
    request: Request,
    quote_id: str,
    store: QuoteSessionStore = Depends(get_session_store),
    orchestrator: BookingQuoteOrchestrator = Depends(get_orchestrator),
):
    session = await _load(store, quote_id)
    return FareBreakdownResponse.from_domain(orchestrator.quote(session).breakdown)


@router.post(
    "/{quote_id}/book",
    status_code=201,
    response_model=BookingResponse,
    summary="Book the quote",
    description=(
        "Requires accepted terms (TERMS_NOT_ACCEPTED) and both endpoints "
        "with a distance (INCOMPLETE_BOOKING); a quote books once (ALREADY_BOOKED). "
        "The booking is stored as pending."
    ),
    responses=_VALIDATION_ERROR,
)
@limiter.limit("100/minute")
async def book(
    request: Request,
    quote_id: str,
    body: BookRequest,
    store: QuoteSessionStore = Depends(get_session_store),
    orchestrator: BookingQuoteOrchestrator = Depends(get_orchestrator),
    db: AsyncSession = Depends(get_db),
):
    async with _editing(store, quote_id) as session:
        booking = orchestrator.finalize(session, body.accepted_terms)

        booking, row = await BookingRepository(db).save_booking(
            booking,
            full_name=body.full_name,
            contact_number=body.contact_number,
            number_factory=orchestrator.number_factory,
        )
        # The quote only becomes FINALIZED once the booking row is durable.
        await db.commit()
        session.booking_number = booking.booking_number
        await store.save(quote_id, session)
    logger.info("Quote %s booked as %s", quote_id, booking.booking_number)
    return row
