"""
Domain value objects.

All types here are immutable.  A ``Location`` is replaced wholesale when a
user re-selects an endpoint, and a ``Booking`` is frozen the moment the
orchestrator finalizes a quote; its lifecycle (pending, confirmed, ...) is
tracked by the persistence layer, not by this object.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Coordinate:
    """WGS84 point in degrees.

    NaN components are accepted so that predicates over coordinates can
    stay total; any finite value must lie in the WGS84 ranges.
    """

    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not math.isnan(self.lat) and not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not math.isnan(self.lng) and not -180.0 <= self.lng <= 180.0:
            raise ValueError(f"Longitude out of range: {self.lng}")

    @classmethod
    def from_lng_lat(cls, pair) -> Coordinate:
        """Build from a GeoJSON ``[lng, lat]`` pair."""
        return cls(lat=float(pair[1]), lng=float(pair[0]))

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class GeoBounds:
    north: float
    south: float
    east: float
    west: float


@dataclass(frozen=True)
class Location:
    coordinate: Coordinate
    display_name: str = ""

    @property
    def lat(self) -> float:
        return self.coordinate.lat

    @property
    def lng(self) -> float:
        return self.coordinate.lng

    def to_dict(self) -> dict:
        return {**self.coordinate.to_dict(), "display_name": self.display_name}

    @classmethod
    def from_dict(cls, data: dict) -> Location:
        return cls(Coordinate(data["lat"], data["lng"]), data.get("display_name", ""))


@dataclass(frozen=True)
class AddressCandidate:
    """One forward-geocoding hit."""

    coordinate: Coordinate
    display_name: str
    category: str = "place"


@dataclass(frozen=True)
class Route:
    coordinates: tuple[Coordinate, ...] = ()
    distance_km: float = 0.0
    duration_minutes: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        """True for the straight-line fallback, which has no path."""
        return len(self.coordinates) == 0

    def to_dict(self) -> dict:
        return {
            "coordinates": [[c.lat, c.lng] for c in self.coordinates],
            "distance_km": self.distance_km,
            "duration_minutes": self.duration_minutes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Route:
        return cls(
            coordinates=tuple(Coordinate(lat, lng) for lat, lng in data["coordinates"]),
            distance_km=data["distance_km"],
            duration_minutes=data.get("duration_minutes"),
        )


@dataclass(frozen=True)
class RouteResult:
    primary: Route
    alternatives: tuple[Route, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class FareBreakdown:
    base_fare: float
    extra_distance_km: float
    extra_fare: float
    total: float


@dataclass(frozen=True)
class Booking:
    booking_number: str
    pickup: Location
    dropoff: Location
    distance_km: float
    duration_minutes: Optional[float]
    fare: float
    created_at: datetime
