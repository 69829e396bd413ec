"""
Booking endpoints (rider side)
==============================

GET   /api/v1/bookings/{booking_number}        -- look up a booking
PATCH /api/v1/bookings/{booking_number}/cancel -- cancel a pending/confirmed booking
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from trikebook.api.dependencies import get_db
from trikebook.api.middleware import limiter
from trikebook.api.schemas import BookingResponse
from trikebook.domain.errors import InvalidStatusTransition
from trikebook.infrastructure.repositories import BookingRepository

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get(
    "/{booking_number}",
    response_model=BookingResponse,
    summary="Look up a booking by its number",
)
@limiter.limit("100/minute")
async def get_booking(
    request: Request,
    booking_number: str,
    db: AsyncSession = Depends(get_db),
):
    booking = await BookingRepository(db).get_by_number(booking_number)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


@router.patch(
    "/{booking_number}/cancel",
    response_model=BookingResponse,
    summary="Cancel a booking",
    description=(
        "Only pending or confirmed bookings can be cancelled; "
        "assigned, completed and cancelled bookings return 409."
    ),
)
@limiter.limit("100/minute")
async def cancel_booking(
    request: Request,
    booking_number: str,
    db: AsyncSession = Depends(get_db),
):
    try:
        booking = await BookingRepository(db).cancel(booking_number)
    except InvalidStatusTransition as exc:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot cancel booking with status: {exc.current.value}",
        )
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking
