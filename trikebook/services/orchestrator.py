"""
Booking Quote Orchestrator
==========================

Ties the bounds check, address and route resolvers and the fare model
together over an explicit ``QuoteSession``.

State machine
-------------
  EMPTY -> PARTIAL_PICKUP | PARTIAL_DROPOFF -> BOTH_SET -> FINALIZED

* ``select_location`` moves between the first three states.
* ``finalize`` is the only way into FINALIZED.
* ``reset`` returns to EMPTY from anywhere.

Ordering of ``finalize`` checks: already booked, then consent, then
completeness.  An unknown distance is a hard gate (``IncompleteBooking``);
the fare model is never consulted without one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from trikebook.domain.entities import (
    Booking,
    Coordinate,
    FareBreakdown,
    GeoBounds,
    Location,
    Route,
    RouteResult,
)
from trikebook.domain.enums import Endpoint, QuoteState
from trikebook.domain.errors import (
    AlreadyBooked,
    IncompleteBooking,
    LocationPermissionDenied,
    OutOfRange,
    TermsNotAccepted,
)
from trikebook.domain.pricing import FareModel
from trikebook.domain.session import QuoteSession
from trikebook.domain.validation import generate_booking_number, is_within_bounds
from trikebook.services.geocoding import AddressResolver
from trikebook.services.routing import RouteResolver

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SelectionResult:
    """Outcome of ``select_location``.

    ``stale`` is set when a newer selection superseded this one while it
    was waiting on the network; nothing from a stale result was applied.
    """

    location: Location
    route: Optional[RouteResult] = None
    stale: bool = False


@dataclass(frozen=True)
class Quote:
    state: QuoteState
    pickup: Optional[Location]
    dropoff: Optional[Location]
    route: Optional[Route]
    alternatives: tuple[Route, ...]
    distance_km: Optional[float]
    duration_minutes: Optional[float]
    fare: float
    breakdown: FareBreakdown
    booking_number: Optional[str] = None


class BookingQuoteOrchestrator:
    def __init__(
        self,
        bounds: GeoBounds,
        fare_model: FareModel,
        route_resolver: RouteResolver,
        address_resolver: AddressResolver,
        number_factory: Callable[[], str] = generate_booking_number,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.bounds = bounds
        self.fare_model = fare_model
        self.route_resolver = route_resolver
        self.address_resolver = address_resolver
        self.number_factory = number_factory
        self.clock = clock

    # ── Location selection ───────────────────────────────────────────

    async def select_location(
        self,
        session: QuoteSession,
        coordinate: Coordinate,
        label: Optional[str] = None,
        *,
        is_pickup: bool,
    ) -> SelectionResult:
        if not is_within_bounds(coordinate, self.bounds):
            raise OutOfRange()

        if session.finalized:
            session.clear()

        endpoint = Endpoint.PICKUP if is_pickup else Endpoint.DROPOFF
        ticket = session.next_sequence(endpoint)

        display_name = label if label is not None else (
            await self.address_resolver.reverse_geocode(coordinate)
        )
        location = Location(coordinate, display_name)

        if not session.is_latest(endpoint, ticket):
            logger.debug("Discarding superseded %s selection #%d", endpoint.value, ticket)
            return SelectionResult(location, stale=True)

        session.set(endpoint, location)
        if session.pickup is None or session.dropoff is None:
            return SelectionResult(location)

        # The old route no longer matches the endpoints.
        session.route = None
        session.alternatives = []

        issued = dict(session.sequence)
        result = await self.route_resolver.resolve_route(
            session.pickup.coordinate, session.dropoff.coordinate
        )
        if session.sequence != issued:
            logger.debug("Discarding route for superseded %s selection", endpoint.value)
            return SelectionResult(location, result, stale=True)

        session.route = result.primary
        session.alternatives = list(result.alternatives)
        return SelectionResult(location, result)

    async def use_current_location(
        self,
        session: QuoteSession,
        position: Optional[Coordinate],
        *,
        is_pickup: bool,
    ) -> SelectionResult:
        """Select the device position; ``None`` means geolocation was denied."""
        if position is None:
            raise LocationPermissionDenied()
        return await self.select_location(session, position, is_pickup=is_pickup)

    # ── Session edits ────────────────────────────────────────────────

    def swap(self, session: QuoteSession) -> None:
        # Route is kept as-is: distance is treated as symmetric.
        session.pickup, session.dropoff = session.dropoff, session.pickup
        for endpoint in Endpoint:
            session.next_sequence(endpoint)

    def reset(self, session: QuoteSession) -> None:
        session.clear()

    # ── Read model ───────────────────────────────────────────────────

    def quote(self, session: QuoteSession) -> Quote:
        distance = session.distance_km
        return Quote(
            state=session.state,
            pickup=session.pickup,
            dropoff=session.dropoff,
            route=session.route,
            alternatives=tuple(session.alternatives),
            distance_km=distance,
            duration_minutes=session.duration_minutes,
            fare=self.fare_model.display_fare(distance),
            breakdown=self.fare_model.breakdown(distance),
            booking_number=session.booking_number,
        )

    # ── Finalize ─────────────────────────────────────────────────────

    def finalize(self, session: QuoteSession, consent_given: bool) -> Booking:
        if session.finalized:
            raise AlreadyBooked()
        if not consent_given:
            raise TermsNotAccepted()
        if session.pickup is None or session.dropoff is None or session.distance_km is None:
            raise IncompleteBooking()

        session.consent_given = True
        booking = Booking(
            booking_number=self.number_factory(),
            pickup=session.pickup,
            dropoff=session.dropoff,
            distance_km=session.distance_km,
            duration_minutes=session.duration_minutes,
            fare=self.fare_model.trip_fare(session.distance_km),
            created_at=self.clock(),
        )
        session.finalized = True
        session.booking_number = booking.booking_number
        logger.info(
            "Quote finalized as %s (%.2f km, fare %.2f)",
            booking.booking_number, booking.distance_km, booking.fare,
        )
        return booking
