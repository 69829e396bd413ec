"""
Route Resolver
==============

Asks an OSRM-compatible routing service for a driving route between two
points, with alternatives and full GeoJSON geometry.

Fallback
--------
Any provider failure (transport error, timeout, non-2xx status, malformed
body, ``code != "Ok"`` or zero routes) degrades to a straight-line
estimate: an empty path, the haversine distance and no duration.  Callers
therefore always receive a usable distance and never see an exception.
"""

from __future__ import annotations

import logging

import httpx

from trikebook.config import settings
from trikebook.domain.distance import haversine_km
from trikebook.domain.entities import Coordinate, Route, RouteResult

logger = logging.getLogger(__name__)


class NoRouteFound(Exception):
    """The provider answered but had no usable route."""


class RouteResolver:
    def __init__(
        self,
        base_url: str = settings.routing_api_url,
        timeout: float = settings.http_timeout_seconds,
        max_alternatives: int = settings.max_alternative_routes,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_alternatives = max_alternatives

    async def resolve_route(self, start: Coordinate, end: Coordinate) -> RouteResult:
        try:
            data = await self._fetch(start, end)
            return self._parse(data)
        except (httpx.HTTPError, NoRouteFound, ValueError, KeyError, TypeError, IndexError) as exc:
            logger.warning(
                "Routing failed for %s -> %s (%s); using straight-line estimate",
                start, end, exc,
            )
            return self.straight_line(start, end)

    @staticmethod
    def straight_line(start: Coordinate, end: Coordinate) -> RouteResult:
        return RouteResult(
            primary=Route(coordinates=(), distance_km=haversine_km(start, end)),
            alternatives=(),
        )

    # ── Internals ────────────────────────────────────────────────────

    async def _fetch(self, start: Coordinate, end: Coordinate) -> dict:
        url = (
            f"{self.base_url}/route/v1/driving/"
            f"{start.lng},{start.lat};{end.lng},{end.lat}"
        )
        params = {
            "overview": "full",
            "geometries": "geojson",
            "alternatives": "true",
            "steps": "true",
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(url, params=params)
            response.raise_for_status()
            return response.json()

    def _parse(self, data: dict) -> RouteResult:
        if not isinstance(data, dict):
            raise NoRouteFound(f"unexpected body: {type(data).__name__}")
        routes = data.get("routes") or []
        if data.get("code") != "Ok" or not routes:
            raise NoRouteFound(data.get("code", "no routes"))

        primary = _to_route(routes[0])
        alternatives = tuple(
            _to_route(r) for r in routes[1 : 1 + self.max_alternatives]
        )
        return RouteResult(primary=primary, alternatives=alternatives)


def _to_route(raw: dict) -> Route:
    """OSRM route -> ``Route`` (metres -> km, seconds -> minutes, [lng, lat] -> lat/lng)."""
    return Route(
        coordinates=tuple(
            Coordinate.from_lng_lat(pair) for pair in raw["geometry"]["coordinates"]
        ),
        distance_km=float(raw["distance"]) / 1000,
        duration_minutes=float(raw["duration"]) / 60,
    )
