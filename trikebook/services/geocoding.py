"""
Address Resolver -- forward and reverse geocoding via a Nominatim-compatible API.

Both operations are unreliable I/O with graceful degradation: a failed
search yields ``[]`` and a failed reverse lookup yields ``""``.  Callers
cannot tell "no matches" from "provider down", and are not meant to.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from trikebook.config import settings
from trikebook.domain.entities import AddressCandidate, Coordinate

logger = logging.getLogger(__name__)


class AddressResolver:
    def __init__(
        self,
        base_url: str = settings.geocode_api_url,
        timeout: float = settings.http_timeout_seconds,
        user_agent: str = settings.http_user_agent,
        limit: int = settings.search_limit,
        viewbox_span: float = settings.search_viewbox_span,
        default_bias: Optional[Coordinate] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent}  # required by Nominatim
        self.limit = limit
        self.viewbox_span = viewbox_span
        self.default_bias = default_bias or Coordinate(
            settings.default_center_lat, settings.default_center_lng
        )

    async def search_address(
        self, query: str, bias: Optional[Coordinate] = None
    ) -> list[AddressCandidate]:
        """Free-text query -> ranked candidates inside a viewbox around *bias*."""
        if not query or not query.strip():
            return []

        bias = bias or self.default_bias
        span = self.viewbox_span
        params = {
            "q": query.strip(),
            "format": "json",
            "limit": self.limit,
            "viewbox": f"{bias.lng - span},{bias.lat - span},{bias.lng + span},{bias.lat + span}",
            "bounded": 1,
        }
        try:
            data = await self._get("/search", params)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Address search failed for %r: %s", query, exc)
            return []

        if not isinstance(data, list):
            logger.warning("Address search returned %s, expected a list", type(data).__name__)
            return []

        results: list[AddressCandidate] = []
        for place in data[: self.limit]:
            try:
                coordinate = Coordinate(float(place["lat"]), float(place["lon"]))
            except (KeyError, TypeError, ValueError):
                continue
            results.append(
                AddressCandidate(
                    coordinate=coordinate,
                    display_name=place.get("display_name", ""),
                    category=place.get("type") or place.get("class") or "place",
                )
            )
        return results

    async def reverse_geocode(self, coordinate: Coordinate) -> str:
        params = {"lat": coordinate.lat, "lon": coordinate.lng, "format": "json"}
        try:
            data = await self._get("/reverse", params)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Reverse geocode failed for %s: %s", coordinate, exc)
            return ""
        if not isinstance(data, dict):
            return ""
        return data.get("display_name") or ""

    async def _get(self, path: str, params: dict):
        async with httpx.AsyncClient(timeout=self.timeout, headers=self.headers) as client:
            response = await client.get(f"{self.base_url}{path}", params=params)
            response.raise_for_status()
            return response.json()
