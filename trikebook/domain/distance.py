"""
Distance calculation using the Haversine formula.

Used as the fallback when the routing provider cannot produce a road
route: a great-circle estimate is always better than no distance, since
without a distance the quote cannot be booked.

Complexity: O(1) per call.
"""

import math

from .entities import Coordinate

EARTH_RADIUS_KM = 6_371.0


def haversine_km(start: Coordinate, end: Coordinate) -> float:
    """Return the great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(start.lat), math.radians(end.lat)
    dlat = math.radians(end.lat - start.lat)
    dlng = math.radians(end.lng - start.lng)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))
