"""
Fare Model
==========

Formula
-------
Fare = Base_Fare                                      if distance <= Base_KM
Fare = Base_Fare + (distance - Base_KM) x Extra_Rate  otherwise

* The function is continuous at ``Base_KM`` and non-decreasing in distance.
* ``calculate`` is the raw tariff: no distance (``None``, zero or
  negative) means no charge.
* ``trip_fare`` is what a booked trip costs.  A booking always has a known
  distance, and even a 0 km trip pays the base fare.
* ``display_fare`` shows the base fare as the starting price while the
  distance is still unknown.  Booking with an unknown distance is blocked
  by the orchestrator before any fare is computed.

Complexity: O(1) per calculation.
"""

from __future__ import annotations

import math
from typing import Optional

from .entities import FareBreakdown


def _known(distance_km: Optional[float]) -> bool:
    return distance_km is not None and not math.isnan(distance_km)


class FareModel:
    """Base fare covering the first ``base_km``, then a flat per-km rate."""

    def __init__(
        self,
        base_fare: float = 50.0,
        base_km: float = 3.0,
        extra_rate_per_km: float = 15.0,
    ):
        self.base_fare = base_fare
        self.base_km = base_km
        self.extra_rate_per_km = extra_rate_per_km

    @classmethod
    def from_settings(cls, settings) -> FareModel:
        return cls(
            base_fare=settings.base_fare,
            base_km=settings.base_km,
            extra_rate_per_km=settings.extra_rate_per_km,
        )

    def calculate(self, distance_km: Optional[float]) -> float:
        if not _known(distance_km) or distance_km <= 0:
            return 0.0
        if distance_km <= self.base_km:
            return self.base_fare
        return self.base_fare + (distance_km - self.base_km) * self.extra_rate_per_km

    def trip_fare(self, distance_km: float) -> float:
        """Fare charged for a booked trip: never below the base fare."""
        return max(self.base_fare, self.calculate(distance_km))

    def display_fare(self, distance_km: Optional[float]) -> float:
        """Fare shown to the user; the base fare while distance is unknown."""
        if not _known(distance_km):
            return self.base_fare
        return self.trip_fare(distance_km)

    def breakdown(self, distance_km: Optional[float]) -> FareBreakdown:
        distance = distance_km if _known(distance_km) else 0.0
        extra_distance = max(0.0, distance - self.base_km)
        extra_fare = extra_distance * self.extra_rate_per_km
        return FareBreakdown(
            base_fare=self.base_fare,
            extra_distance_km=extra_distance,
            extra_fare=extra_fare,
            total=self.base_fare + extra_fare,
        )
