"""Service-area check and booking number generation."""

from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Optional

from .entities import Coordinate, GeoBounds


def is_within_bounds(coordinate: Coordinate, bounds: GeoBounds) -> bool:
    """Inclusive on all four edges.  NaN compares false, so never inside."""
    return (
        bounds.south <= coordinate.lat <= bounds.north
        and bounds.west <= coordinate.lng <= bounds.east
    )


def generate_booking_number(now: Optional[datetime] = None) -> str:
    """``BK`` + UTC date (YYYYMMDD) + random 4-digit suffix, e.g. BK202610191234."""
    now = now or datetime.now(timezone.utc)
    suffix = 1000 + secrets.randbelow(9000)
    return f"BK{now:%Y%m%d}{suffix}"
