"""
Quote session -- the mutable state behind one booking interaction.

The session is an explicit object handed to every orchestrator call
rather than module-level state, so the caller decides where it lives (in
memory for a single process, or Redis for the HTTP API).

Request sequencing
------------------
Each ``select_location`` call takes a ticket from ``next_sequence`` for its
endpoint.  Responses are applied only while the ticket is still the latest
one issued for that endpoint, so a slow geocode/route response can never
overwrite a newer selection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .entities import Location, Route
from .enums import Endpoint, QuoteState


@dataclass
class QuoteSession:
    pickup: Optional[Location] = None
    dropoff: Optional[Location] = None
    route: Optional[Route] = None
    alternatives: list[Route] = field(default_factory=list)
    consent_given: bool = False
    finalized: bool = False
    booking_number: Optional[str] = None
    sequence: dict[Endpoint, int] = field(
        default_factory=lambda: {Endpoint.PICKUP: 0, Endpoint.DROPOFF: 0}
    )

    # ── Derived ──────────────────────────────────────────────────────

    @property
    def state(self) -> QuoteState:
        if self.finalized:
            return QuoteState.FINALIZED
        if self.pickup and self.dropoff:
            return QuoteState.BOTH_SET
        if self.pickup:
            return QuoteState.PARTIAL_PICKUP
        if self.dropoff:
            return QuoteState.PARTIAL_DROPOFF
        return QuoteState.EMPTY

    @property
    def distance_km(self) -> Optional[float]:
        return self.route.distance_km if self.route else None

    @property
    def duration_minutes(self) -> Optional[float]:
        return self.route.duration_minutes if self.route else None

    # ── Endpoint access ──────────────────────────────────────────────

    def set(self, endpoint: Endpoint, location: Location) -> None:
        if endpoint is Endpoint.PICKUP:
            self.pickup = location
        else:
            self.dropoff = location

    def next_sequence(self, endpoint: Endpoint) -> int:
        self.sequence[endpoint] += 1
        return self.sequence[endpoint]

    def is_latest(self, endpoint: Endpoint, ticket: int) -> bool:
        return self.sequence[endpoint] == ticket

    def clear(self) -> None:
        """Back to EMPTY.  Sequence counters keep counting so in-flight
        requests started before the reset are discarded."""
        self.pickup = None
        self.dropoff = None
        self.route = None
        self.alternatives = []
        self.consent_given = False
        self.finalized = False
        self.booking_number = None
        for endpoint in self.sequence:
            self.sequence[endpoint] += 1

    # ── Serialisation (session store) ────────────────────────────────

    def to_dict(self) -> dict:
        return {
            "pickup": self.pickup.to_dict() if self.pickup else None,
            "dropoff": self.dropoff.to_dict() if self.dropoff else None,
            "route": self.route.to_dict() if self.route else None,
            "alternatives": [r.to_dict() for r in self.alternatives],
            "consent_given": self.consent_given,
            "finalized": self.finalized,
            "booking_number": self.booking_number,
            "sequence": {e.value: n for e, n in self.sequence.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> QuoteSession:
        pickup, dropoff, route = data.get("pickup"), data.get("dropoff"), data.get("route")
        session = cls(
            pickup=Location.from_dict(pickup) if pickup else None,
            dropoff=Location.from_dict(dropoff) if dropoff else None,
            route=Route.from_dict(route) if route else None,
            alternatives=[Route.from_dict(r) for r in data.get("alternatives", [])],
            consent_given=data.get("consent_given", False),
            finalized=data.get("finalized", False),
            booking_number=data.get("booking_number"),
        )
        for key, value in data.get("sequence", {}).items():
            session.sequence[Endpoint(key)] = value
        return session
