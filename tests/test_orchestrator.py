"""
Unit tests for the booking quote orchestrator (state machine, validation
gates, stale-response handling) plus an end-to-end quote over a mocked
routing provider.
"""

import asyncio
import re
from datetime import datetime, timezone

import pytest
import respx
from httpx import Response

from trikebook.domain.entities import Coordinate, Location, Route, RouteResult
from trikebook.domain.enums import QuoteState
from trikebook.domain.errors import (
    AlreadyBooked,
    IncompleteBooking,
    LocationPermissionDenied,
    OutOfRange,
    TermsNotAccepted,
)
from trikebook.domain.pricing import FareModel
from trikebook.domain.session import QuoteSession
from trikebook.services.orchestrator import BookingQuoteOrchestrator
from trikebook.services.routing import RouteResolver
from tests.conftest import BASUD_TERMINAL, DAET_PLAZA

OUTSIDE = Coordinate(10.0, 122.9)


async def _both_set(orchestrator, session):
    await orchestrator.select_location(session, DAET_PLAZA, "Daet Plaza", is_pickup=True)
    await orchestrator.select_location(session, BASUD_TERMINAL, "Basud Terminal", is_pickup=False)


class TestSelectLocation:
    @pytest.mark.asyncio
    async def test_pickup_only(self, orchestrator, route_resolver):
        session = QuoteSession()
        result = await orchestrator.select_location(session, DAET_PLAZA, "Daet Plaza", is_pickup=True)

        assert result.location.display_name == "Daet Plaza"
        assert result.route is None
        assert session.state == QuoteState.PARTIAL_PICKUP
        route_resolver.resolve_route.assert_not_called()

    @pytest.mark.asyncio
    async def test_dropoff_only(self, orchestrator):
        session = QuoteSession()
        await orchestrator.select_location(session, BASUD_TERMINAL, "Basud Terminal", is_pickup=False)
        assert session.state == QuoteState.PARTIAL_DROPOFF
        assert session.pickup is None

    @pytest.mark.asyncio
    async def test_missing_label_is_reverse_geocoded(self, orchestrator, address_resolver):
        session = QuoteSession()
        result = await orchestrator.select_location(session, DAET_PLAZA, is_pickup=True)

        address_resolver.reverse_geocode.assert_awaited_once_with(DAET_PLAZA)
        assert result.location.display_name == "Vinzons Avenue, Daet"

    @pytest.mark.asyncio
    async def test_explicit_label_skips_reverse_geocode(self, orchestrator, address_resolver):
        await orchestrator.select_location(QuoteSession(), DAET_PLAZA, "Daet Plaza", is_pickup=True)
        address_resolver.reverse_geocode.assert_not_called()

    @pytest.mark.asyncio
    async def test_both_set_resolves_route(self, orchestrator, route_resolver, road_route):
        session = QuoteSession()
        await _both_set(orchestrator, session)

        route_resolver.resolve_route.assert_awaited_once_with(DAET_PLAZA, BASUD_TERMINAL)
        assert session.state == QuoteState.BOTH_SET
        assert session.route == road_route.primary
        assert session.alternatives == list(road_route.alternatives)
        assert session.distance_km == 12.5
        assert session.duration_minutes == 20.0

    @pytest.mark.asyncio
    async def test_route_always_pickup_to_dropoff(self, orchestrator, route_resolver):
        session = QuoteSession()
        await orchestrator.select_location(session, BASUD_TERMINAL, "Basud Terminal", is_pickup=False)
        await orchestrator.select_location(session, DAET_PLAZA, "Daet Plaza", is_pickup=True)
        route_resolver.resolve_route.assert_awaited_once_with(DAET_PLAZA, BASUD_TERMINAL)

    @pytest.mark.asyncio
    async def test_reselection_replaces_location(self, orchestrator):
        session = QuoteSession()
        await orchestrator.select_location(session, DAET_PLAZA, "Daet Plaza", is_pickup=True)
        other = Coordinate(14.12, 122.95)
        await orchestrator.select_location(session, other, "Daet Market", is_pickup=True)
        assert session.pickup.coordinate == other
        assert session.pickup.display_name == "Daet Market"


class TestOutOfRange:
    @pytest.mark.asyncio
    async def test_rejected_and_pickup_stays_unset(self, orchestrator, address_resolver):
        session = QuoteSession()
        with pytest.raises(OutOfRange):
            await orchestrator.select_location(session, OUTSIDE, is_pickup=True)
        assert session.pickup is None
        assert session.state == QuoteState.EMPTY
        address_resolver.reverse_geocode.assert_not_called()

    @pytest.mark.asyncio
    async def test_previous_endpoint_untouched(self, orchestrator):
        session = QuoteSession()
        await _both_set(orchestrator, session)
        before = (session.pickup, session.dropoff, session.route)

        with pytest.raises(OutOfRange):
            await orchestrator.select_location(session, OUTSIDE, "Manila", is_pickup=False)

        assert (session.pickup, session.dropoff, session.route) == before

    def test_error_carries_code_and_message(self):
        err = OutOfRange()
        assert err.code.value == "OUT_OF_RANGE"
        assert "Camarines Norte" in err.message


class TestCurrentLocation:
    @pytest.mark.asyncio
    async def test_denied(self, orchestrator):
        with pytest.raises(LocationPermissionDenied):
            await orchestrator.use_current_location(QuoteSession(), None, is_pickup=True)

    @pytest.mark.asyncio
    async def test_position_is_reverse_geocoded(self, orchestrator, address_resolver):
        session = QuoteSession()
        await orchestrator.use_current_location(session, DAET_PLAZA, is_pickup=True)
        assert session.pickup.display_name == "Vinzons Avenue, Daet"

    @pytest.mark.asyncio
    async def test_position_outside_area(self, orchestrator):
        with pytest.raises(OutOfRange):
            await orchestrator.use_current_location(QuoteSession(), OUTSIDE, is_pickup=True)


class TestSwapAndReset:
    @pytest.mark.asyncio
    async def test_swap_exchanges_endpoints(self, orchestrator, route_resolver):
        session = QuoteSession()
        await _both_set(orchestrator, session)
        pickup, dropoff, route = session.pickup, session.dropoff, session.route

        orchestrator.swap(session)

        assert session.pickup == dropoff
        assert session.dropoff == pickup
        assert session.route == route
        assert route_resolver.resolve_route.await_count == 1

    @pytest.mark.asyncio
    async def test_swap_twice_restores(self, orchestrator):
        session = QuoteSession()
        await _both_set(orchestrator, session)
        pickup, dropoff = session.pickup, session.dropoff

        orchestrator.swap(session)
        orchestrator.swap(session)

        assert session.pickup == pickup
        assert session.dropoff == dropoff

    @pytest.mark.asyncio
    async def test_swap_with_single_endpoint(self, orchestrator):
        session = QuoteSession()
        await orchestrator.select_location(session, DAET_PLAZA, "Daet Plaza", is_pickup=True)
        orchestrator.swap(session)
        assert session.state == QuoteState.PARTIAL_DROPOFF

    @pytest.mark.asyncio
    async def test_reset_clears_everything(self, orchestrator):
        session = QuoteSession()
        await _both_set(orchestrator, session)

        orchestrator.reset(session)

        assert session.state == QuoteState.EMPTY
        assert session.route is None
        assert session.alternatives == []
        assert session.distance_km is None

    def test_reset_empty_session(self, orchestrator):
        session = QuoteSession()
        orchestrator.reset(session)
        assert session.state == QuoteState.EMPTY


class TestFinalize:
    def test_terms_checked_first(self, orchestrator):
        with pytest.raises(TermsNotAccepted):
            orchestrator.finalize(QuoteSession(), consent_given=False)

    @pytest.mark.asyncio
    async def test_pickup_only_is_incomplete(self, orchestrator):
        session = QuoteSession()
        await orchestrator.select_location(session, DAET_PLAZA, "Daet Plaza", is_pickup=True)
        with pytest.raises(IncompleteBooking):
            orchestrator.finalize(session, consent_given=True)

    @pytest.mark.asyncio
    async def test_both_set_without_consent(self, orchestrator):
        session = QuoteSession()
        await _both_set(orchestrator, session)
        with pytest.raises(TermsNotAccepted):
            orchestrator.finalize(session, consent_given=False)
        assert session.state == QuoteState.BOTH_SET

    def test_unknown_distance_is_incomplete(self, orchestrator):
        session = QuoteSession(
            pickup=Location(DAET_PLAZA, "Daet Plaza"),
            dropoff=Location(BASUD_TERMINAL, "Basud Terminal"),
        )
        with pytest.raises(IncompleteBooking):
            orchestrator.finalize(session, consent_given=True)

    @pytest.mark.asyncio
    async def test_booking_record(self, bounds, fare_model, route_resolver, address_resolver):
        fixed_now = datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc)
        orchestrator = BookingQuoteOrchestrator(
            bounds=bounds,
            fare_model=fare_model,
            route_resolver=route_resolver,
            address_resolver=address_resolver,
            number_factory=lambda: "BK202610191234",
            clock=lambda: fixed_now,
        )
        session = QuoteSession()
        await _both_set(orchestrator, session)

        booking = orchestrator.finalize(session, consent_given=True)

        assert booking.booking_number == "BK202610191234"
        assert booking.pickup.display_name == "Daet Plaza"
        assert booking.dropoff.display_name == "Basud Terminal"
        assert booking.distance_km == 12.5
        assert booking.duration_minutes == 20.0
        assert booking.fare == pytest.approx(192.5)
        assert booking.created_at == fixed_now
        assert session.state == QuoteState.FINALIZED
        assert session.booking_number == "BK202610191234"

    @pytest.mark.asyncio
    async def test_zero_distance_trip_pays_base_fare(self, orchestrator, route_resolver):
        route_resolver.resolve_route.return_value = RouteResult(
            primary=Route(coordinates=(), distance_km=0.0)
        )
        session = QuoteSession()
        await orchestrator.select_location(session, DAET_PLAZA, "A", is_pickup=True)
        await orchestrator.select_location(session, DAET_PLAZA, "B", is_pickup=False)

        assert orchestrator.finalize(session, consent_given=True).fare == 50.0

    @pytest.mark.asyncio
    async def test_finalize_twice(self, orchestrator):
        session = QuoteSession()
        await _both_set(orchestrator, session)
        orchestrator.finalize(session, consent_given=True)
        with pytest.raises(AlreadyBooked):
            orchestrator.finalize(session, consent_given=True)

    @pytest.mark.asyncio
    async def test_selecting_after_finalize_starts_new_quote(self, orchestrator):
        session = QuoteSession()
        await _both_set(orchestrator, session)
        orchestrator.finalize(session, consent_given=True)

        await orchestrator.select_location(session, DAET_PLAZA, "Daet Plaza", is_pickup=True)

        assert session.state == QuoteState.PARTIAL_PICKUP
        assert session.booking_number is None


class TestQuoteView:
    def test_empty_quote_shows_starting_fare(self, orchestrator):
        quote = orchestrator.quote(QuoteSession())
        assert quote.state == QuoteState.EMPTY
        assert quote.distance_km is None
        assert quote.fare == 50.0

    @pytest.mark.asyncio
    async def test_quote_with_route(self, orchestrator):
        session = QuoteSession()
        await _both_set(orchestrator, session)
        quote = orchestrator.quote(session)
        assert quote.fare == pytest.approx(192.5)
        assert quote.breakdown.extra_distance_km == 9.5
        assert len(quote.alternatives) == 1


class TestStaleResponses:
    @pytest.mark.asyncio
    async def test_slow_reverse_geocode_is_discarded(self, orchestrator, address_resolver):
        gate = asyncio.Event()

        async def slow_reverse(coordinate):
            await gate.wait()
            return "Old label"

        address_resolver.reverse_geocode.side_effect = slow_reverse
        session = QuoteSession()

        first = asyncio.create_task(
            orchestrator.select_location(session, DAET_PLAZA, is_pickup=True)
        )
        await asyncio.sleep(0)
        newer = Coordinate(14.12, 122.95)
        await orchestrator.select_location(session, newer, "Daet Market", is_pickup=True)

        gate.set()
        stale = await first

        assert stale.stale
        assert session.pickup.coordinate == newer
        assert session.pickup.display_name == "Daet Market"

    @pytest.mark.asyncio
    async def test_slow_route_is_discarded(self, orchestrator, route_resolver):
        gate = asyncio.Event()
        far = Coordinate(14.30, 123.05)
        near_route = RouteResult(primary=Route(coordinates=(DAET_PLAZA, BASUD_TERMINAL), distance_km=12.5))
        far_route = RouteResult(primary=Route(coordinates=(DAET_PLAZA, far), distance_km=30.0))

        async def resolve(start, end):
            if end == BASUD_TERMINAL:
                await gate.wait()
                return near_route
            return far_route

        route_resolver.resolve_route.side_effect = resolve
        session = QuoteSession()
        await orchestrator.select_location(session, DAET_PLAZA, "Daet Plaza", is_pickup=True)

        first = asyncio.create_task(
            orchestrator.select_location(session, BASUD_TERMINAL, "Basud Terminal", is_pickup=False)
        )
        await asyncio.sleep(0)
        await orchestrator.select_location(session, far, "Mercedes", is_pickup=False)

        gate.set()
        stale = await first

        assert stale.stale
        assert session.dropoff.display_name == "Mercedes"
        assert session.distance_km == 30.0

    @pytest.mark.asyncio
    async def test_reset_discards_in_flight_selection(self, orchestrator, address_resolver):
        gate = asyncio.Event()

        async def slow_reverse(coordinate):
            await gate.wait()
            return "Late label"

        address_resolver.reverse_geocode.side_effect = slow_reverse
        session = QuoteSession()
        pending = asyncio.create_task(
            orchestrator.select_location(session, DAET_PLAZA, is_pickup=True)
        )
        await asyncio.sleep(0)
        orchestrator.reset(session)
        gate.set()

        assert (await pending).stale
        assert session.state == QuoteState.EMPTY

    @pytest.mark.asyncio
    async def test_swap_discards_in_flight_selection(self, orchestrator, address_resolver):
        gate = asyncio.Event()

        async def slow_reverse(coordinate):
            await gate.wait()
            return "Late label"

        address_resolver.reverse_geocode.side_effect = slow_reverse
        session = QuoteSession()
        await _both_set(orchestrator, session)
        pickup, dropoff = session.pickup, session.dropoff

        pending = asyncio.create_task(
            orchestrator.select_location(session, Coordinate(14.12, 122.95), is_pickup=True)
        )
        await asyncio.sleep(0)
        orchestrator.swap(session)
        gate.set()

        assert (await pending).stale
        assert session.pickup == dropoff
        assert session.dropoff == pickup


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_daet_plaza_to_basud_terminal(self, bounds, address_resolver):
        orchestrator = BookingQuoteOrchestrator(
            bounds=bounds,
            fare_model=FareModel(50.0, 3.0, 15.0),
            route_resolver=RouteResolver(base_url="http://osrm.test", timeout=1.0),
            address_resolver=address_resolver,
        )
        osrm = {
            "code": "Ok",
            "routes": [
                {
                    "distance": 12500.0,
                    "duration": 1200.0,
                    "geometry": {
                        "type": "LineString",
                        "coordinates": [[122.90, 14.10], [122.95, 14.15], [123.00, 14.20]],
                    },
                }
            ],
        }
        session = QuoteSession()
        async with respx.mock:
            respx.get(url__regex=r".*/route/v1/driving/.*").mock(
                return_value=Response(200, json=osrm)
            )
            await orchestrator.select_location(session, Coordinate(14.10, 122.90), "Daet Plaza", is_pickup=True)
            await orchestrator.select_location(session, Coordinate(14.20, 123.00), "Basud Terminal", is_pickup=False)

        booking = orchestrator.finalize(session, consent_given=True)

        assert booking.fare == pytest.approx(192.5)
        assert booking.distance_km == 12.5
        assert booking.duration_minutes == 20.0
        assert re.fullmatch(r"BK\d{8}\d{4}", booking.booking_number)
        address_resolver.reverse_geocode.assert_not_called()
