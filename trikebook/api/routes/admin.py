"""
Admin endpoints
===============

GET    /api/v1/admin/bookings                           -- newest bookings, optional status / text filter
GET    /api/v1/admin/stats                              -- booking counts per status
PATCH  /api/v1/admin/bookings/{booking_number}/status   -- move a booking through its lifecycle
PATCH  /api/v1/admin/bookings/{booking_number}/assign   -- hand a booking to a rider
PATCH  /api/v1/admin/bookings/{booking_number}/unassign -- take it back from the rider
GET    /api/v1/admin/riders/{rider_id}/bookings         -- bookings handed to one rider
DELETE /api/v1/admin/bookings/{booking_id}              -- delete one booking
POST   /api/v1/admin/bookings/bulk-delete               -- delete several bookings
GET    /api/v1/admin/health                             -- simple health check
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from trikebook.api.dependencies import get_db
from trikebook.api.middleware import limiter
from trikebook.api.schemas import (
    AssignRiderRequest,
    BookingResponse,
    BulkDeleteRequest,
    HealthResponse,
    StatsResponse,
    StatusUpdateRequest,
)
from trikebook.domain.enums import BookingStatus
from trikebook.domain.errors import InvalidStatusTransition
from trikebook.infrastructure.repositories import BookingRepository

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/bookings",
    response_model=list[BookingResponse],
    summary="List bookings, newest first",
)
@limiter.limit("100/minute")
async def list_bookings(
    request: Request,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    status: Optional[BookingStatus] = None,
    q: Optional[str] = Query(
        None,
        max_length=100,
        description="Matches booking number, place labels, name or phone.",
    ),
    db: AsyncSession = Depends(get_db),
):
    return await BookingRepository(db).list_recent(
        limit=limit, offset=offset, status=status, q=q
    )


@router.get("/stats", response_model=StatsResponse, summary="Booking counts per status")
@limiter.limit("100/minute")
async def stats(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    counts = await BookingRepository(db).count_by_status()
    return StatsResponse(total=sum(counts.values()), by_status=counts)


@router.patch(
    "/bookings/{booking_number}/status",
    response_model=BookingResponse,
    summary="Update a booking's status",
)
@limiter.limit("100/minute")
async def update_status(
    request: Request,
    booking_number: str,
    body: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        booking = await BookingRepository(db).update_status(booking_number, body.status)
    except InvalidStatusTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


@router.patch(
    "/bookings/{booking_number}/assign",
    response_model=BookingResponse,
    summary="Assign a rider to a confirmed booking",
)
@limiter.limit("100/minute")
async def assign_rider(
    request: Request,
    booking_number: str,
    body: AssignRiderRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        booking = await BookingRepository(db).assign(booking_number, body.rider_id)
    except InvalidStatusTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


@router.patch(
    "/bookings/{booking_number}/unassign",
    response_model=BookingResponse,
    summary="Return an assigned booking to confirmed",
)
@limiter.limit("100/minute")
async def unassign_rider(
    request: Request,
    booking_number: str,
    db: AsyncSession = Depends(get_db),
):
    try:
        booking = await BookingRepository(db).unassign(booking_number)
    except InvalidStatusTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


@router.get(
    "/riders/{rider_id}/bookings",
    response_model=list[BookingResponse],
    summary="Bookings assigned to a rider",
)
@limiter.limit("100/minute")
async def rider_bookings(
    request: Request,
    rider_id: int,
    db: AsyncSession = Depends(get_db),
):
    return await BookingRepository(db).list_for_rider(rider_id)


@router.delete("/bookings/{booking_id}", status_code=204, summary="Delete a booking")
@limiter.limit("100/minute")
async def delete_booking(
    request: Request,
    booking_id: int,
    db: AsyncSession = Depends(get_db),
):
    if not await BookingRepository(db).delete(booking_id):
        raise HTTPException(status_code=404, detail="Booking not found")


@router.post("/bookings/bulk-delete", summary="Delete several bookings")
@limiter.limit("100/minute")
async def bulk_delete(
    request: Request,
    body: BulkDeleteRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        deleted = await BookingRepository(db).delete_many(body.ids)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"deleted": deleted}


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
