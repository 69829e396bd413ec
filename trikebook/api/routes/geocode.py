"""
Geocoding endpoints
===================

GET /api/v1/geocode/search?q=...   -- address search biased to the service area
GET /api/v1/geocode/reverse        -- coordinate -> label

Provider failures come back as an empty list / empty label, never an error.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from trikebook.api.dependencies import get_address_resolver
from trikebook.api.middleware import limiter
from trikebook.api.schemas import AddressCandidateResponse, ReverseGeocodeResponse
from trikebook.domain.entities import Coordinate
from trikebook.services.geocoding import AddressResolver

router = APIRouter(prefix="/geocode", tags=["geocode"])


@router.get(
    "/search",
    response_model=list[AddressCandidateResponse],
    summary="Search addresses near the service area",
)
@limiter.limit("60/minute")
async def search(
    request: Request,
    q: str = Query(..., min_length=1, max_length=200),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    resolver: AddressResolver = Depends(get_address_resolver),
):
    bias = Coordinate(lat, lng) if lat is not None and lng is not None else None
    candidates = await resolver.search_address(q, bias)
    return [
        AddressCandidateResponse(
            latitude=c.coordinate.lat,
            longitude=c.coordinate.lng,
            display_name=c.display_name,
            category=c.category,
        )
        for c in candidates
    ]


@router.get(
    "/reverse",
    response_model=ReverseGeocodeResponse,
    summary="Label for a coordinate",
)
@limiter.limit("60/minute")
async def reverse(
    request: Request,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    resolver: AddressResolver = Depends(get_address_resolver),
):
    return ReverseGeocodeResponse(
        display_name=await resolver.reverse_geocode(Coordinate(lat, lng))
    )
