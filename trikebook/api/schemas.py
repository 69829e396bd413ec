"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from trikebook.domain.entities import FareBreakdown, Location, Route
from trikebook.domain.enums import BookingStatus, Endpoint, QuoteState
from trikebook.services.orchestrator import Quote


# ── Requests ──────────────────────────────────────────────────────────


class LocationSelectRequest(BaseModel):
    endpoint: Endpoint
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    label: Optional[str] = Field(
        None,
        max_length=500,
        description="Label of the picked search result; reverse-geocoded when omitted.",
    )


class CurrentLocationRequest(BaseModel):
    endpoint: Endpoint
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class BookRequest(BaseModel):
    accepted_terms: bool = False
    full_name: str = Field("", max_length=120)
    contact_number: str = Field("", max_length=40)


class StatusUpdateRequest(BaseModel):
    status: BookingStatus


class AssignRiderRequest(BaseModel):
    rider_id: int = Field(..., ge=1)


class BulkDeleteRequest(BaseModel):
    ids: list[int]


# ── Responses ─────────────────────────────────────────────────────────


class LocationResponse(BaseModel):
    latitude: float
    longitude: float
    display_name: str

    @classmethod
    def from_domain(cls, location: Location) -> LocationResponse:
        return cls(
            latitude=location.lat,
            longitude=location.lng,
            display_name=location.display_name,
        )


class RouteResponse(BaseModel):
    coordinates: list[tuple[float, float]]
    distance_km: float
    duration_minutes: Optional[float] = None
    is_fallback: bool = False

    @classmethod
    def from_domain(cls, route: Route) -> RouteResponse:
        return cls(
            coordinates=[(c.lat, c.lng) for c in route.coordinates],
            distance_km=route.distance_km,
            duration_minutes=route.duration_minutes,
            is_fallback=route.is_empty,
        )


class FareBreakdownResponse(BaseModel):
    base_fare: float
    extra_distance_km: float
    extra_fare: float
    total: float

    @classmethod
    def from_domain(cls, breakdown: FareBreakdown) -> FareBreakdownResponse:
        return cls(
            base_fare=breakdown.base_fare,
            extra_distance_km=breakdown.extra_distance_km,
            extra_fare=breakdown.extra_fare,
            total=breakdown.total,
        )


class QuoteResponse(BaseModel):
    id: str
    state: QuoteState
    pickup: Optional[LocationResponse] = None
    dropoff: Optional[LocationResponse] = None
    route: Optional[RouteResponse] = None
    alternatives: list[RouteResponse] = []
    distance_km: Optional[float] = None
    duration_minutes: Optional[float] = None
    fare: float
    booking_number: Optional[str] = None
    stale: bool = False

    @classmethod
    def from_quote(cls, quote_id: str, quote: Quote, stale: bool = False) -> QuoteResponse:
        return cls(
            id=quote_id,
            state=quote.state,
            pickup=LocationResponse.from_domain(quote.pickup) if quote.pickup else None,
            dropoff=LocationResponse.from_domain(quote.dropoff) if quote.dropoff else None,
            route=RouteResponse.from_domain(quote.route) if quote.route else None,
            alternatives=[RouteResponse.from_domain(r) for r in quote.alternatives],
            distance_km=quote.distance_km,
            duration_minutes=quote.duration_minutes,
            fare=quote.fare,
            booking_number=quote.booking_number,
            stale=stale,
        )


class AddressCandidateResponse(BaseModel):
    latitude: float
    longitude: float
    display_name: str
    category: str


class ReverseGeocodeResponse(BaseModel):
    display_name: str


class BookingResponse(BaseModel):
    id: int
    booking_number: str
    pickup_location: str
    pickup_lat: float
    pickup_lng: float
    dropoff_location: str
    dropoff_lat: float
    dropoff_lng: float
    distance: float
    duration: Optional[float] = None
    fare: float
    status: BookingStatus
    user_name: str = ""
    user_phone: str = ""
    created_at: Optional[datetime] = None
    assigned_rider_id: Optional[int] = None
    assigned_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class StatsResponse(BaseModel):
    total: int
    by_status: dict[BookingStatus, int]


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    code: Optional[str] = None
    detail: str
