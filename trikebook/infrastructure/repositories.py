"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

``BookingRepository`` is the persistence collaborator of the booking core:
it receives finalized, immutable ``Booking`` values and owns everything
that happens afterwards: status lifecycle, rider dispatch, cancellation
and deletion.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import BookingModel
from trikebook.domain.entities import Booking, Coordinate, Location
from trikebook.domain.enums import (
    ASSIGNABLE_STATUSES,
    BOOKING_TRANSITIONS,
    CANCELLABLE_STATUSES,
    BookingStatus,
)
from trikebook.domain.errors import InvalidStatusTransition
from trikebook.domain.validation import generate_booking_number

logger = logging.getLogger(__name__)


class BookingNumberExhausted(Exception):
    """Every generated booking number collided with an existing one."""


def to_domain(row: BookingModel) -> Booking:
    """Rebuild the immutable ``Booking`` from a stored row."""
    return Booking(
        booking_number=row.booking_number,
        pickup=Location(Coordinate(row.pickup_lat, row.pickup_lng), row.pickup_location),
        dropoff=Location(Coordinate(row.dropoff_lat, row.dropoff_lng), row.dropoff_location),
        distance_km=row.distance,
        duration_minutes=row.duration,
        fare=row.fare,
        created_at=row.created_at,
    )


class BookingRepository:
    model = BookingModel

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _point(lat: float, lng: float):
        from geoalchemy2.functions import ST_MakePoint

        return ST_MakePoint(lng, lat)

    # ── Writes ───────────────────────────────────────────────────────

    async def create_from_booking(
        self,
        booking: Booking,
        *,
        full_name: str = "",
        contact_number: str = "",
    ) -> BookingModel:
        """Store a finalized booking as ``pending``."""
        row = self.model(
            booking_number=booking.booking_number,
            pickup_location=booking.pickup.display_name or "Unknown Location",
            dropoff_location=booking.dropoff.display_name or "Unknown Location",
            pickup_lat=booking.pickup.lat,
            pickup_lng=booking.pickup.lng,
            dropoff_lat=booking.dropoff.lat,
            dropoff_lng=booking.dropoff.lng,
            pickup_point=self._point(booking.pickup.lat, booking.pickup.lng),
            dropoff_point=self._point(booking.dropoff.lat, booking.dropoff.lng),
            distance=booking.distance_km,
            duration=booking.duration_minutes,
            fare=booking.fare,
            status=BookingStatus.PENDING.value,
            user_name=full_name,
            user_phone=contact_number,
            created_at=booking.created_at,
        )
        self.session.add(row)
        await self.session.flush()
        logger.info("Booking %s saved (fare %.2f)", booking.booking_number, booking.fare)
        return row

    async def save_booking(
        self,
        booking: Booking,
        *,
        full_name: str = "",
        contact_number: str = "",
        number_factory: Callable[[], str] = generate_booking_number,
        attempts: int = 5,
    ) -> tuple[Booking, BookingModel]:
        """Persist *booking*, re-drawing its number if it is already taken.

        Returns the booking actually stored (its number may differ from the
        one passed in) together with the row.
        """
        for _ in range(attempts):
            if not await self.number_exists(booking.booking_number):
                row = await self.create_from_booking(
                    booking, full_name=full_name, contact_number=contact_number
                )
                return booking, row
            logger.warning("Booking number %s already taken, re-drawing", booking.booking_number)
            booking = dataclasses.replace(booking, booking_number=number_factory())
        raise BookingNumberExhausted(f"No free booking number after {attempts} attempts")

    async def update_status(
        self, booking_number: str, status: BookingStatus
    ) -> Optional[BookingModel]:
        """Move a booking along its lifecycle.

        ``assigned`` needs a rider, so it is only reachable through ``assign``.
        """
        row = await self.get_by_number(booking_number)
        if row is None:
            return None
        current = BookingStatus(row.status)
        if (
            status == BookingStatus.ASSIGNED
            or status not in BOOKING_TRANSITIONS.get(current, set())
        ):
            raise InvalidStatusTransition(current, status)
        row.status = status.value
        await self.session.flush()
        logger.info("Booking %s: %s -> %s", booking_number, current.value, status.value)
        return row

    async def assign(
        self,
        booking_number: str,
        rider_id: int,
        *,
        now: Optional[datetime] = None,
    ) -> Optional[BookingModel]:
        """Attach a rider to a confirmed booking, or hand it to another rider."""
        row = await self.get_by_number(booking_number)
        if row is None:
            return None
        current = BookingStatus(row.status)
        if current not in ASSIGNABLE_STATUSES:
            raise InvalidStatusTransition(current, BookingStatus.ASSIGNED)
        row.status = BookingStatus.ASSIGNED.value
        row.assigned_rider_id = rider_id
        row.assigned_at = now or datetime.now(timezone.utc)
        await self.session.flush()
        logger.info("Booking %s assigned to rider %d", booking_number, rider_id)
        return row

    async def unassign(self, booking_number: str) -> Optional[BookingModel]:
        row = await self.get_by_number(booking_number)
        if row is None:
            return None
        current = BookingStatus(row.status)
        if current != BookingStatus.ASSIGNED:
            raise InvalidStatusTransition(current, BookingStatus.CONFIRMED)
        row.status = BookingStatus.CONFIRMED.value
        row.assigned_rider_id = None
        row.assigned_at = None
        await self.session.flush()
        logger.info("Booking %s returned to the dispatch queue", booking_number)
        return row

    async def cancel(self, booking_number: str) -> Optional[BookingModel]:
        """Cancel a booking that has not been dispatched yet."""
        row = await self.get_by_number(booking_number)
        if row is None:
            return None
        current = BookingStatus(row.status)
        if current not in CANCELLABLE_STATUSES:
            raise InvalidStatusTransition(current, BookingStatus.CANCELLED)
        row.status = BookingStatus.CANCELLED.value
        await self.session.flush()
        logger.info("Booking %s cancelled", booking_number)
        return row

    async def delete(self, booking_id: int) -> bool:
        result = await self.session.execute(
            delete(self.model).where(self.model.id == booking_id)
        )
        return result.rowcount > 0

    async def delete_many(self, booking_ids: list[int]) -> int:
        if not booking_ids:
            raise ValueError("No booking IDs provided")
        result = await self.session.execute(
            delete(self.model).where(self.model.id.in_(booking_ids))
        )
        return result.rowcount

    # ── Reads ────────────────────────────────────────────────────────

    async def get_by_number(self, booking_number: str) -> Optional[BookingModel]:
        result = await self.session.execute(
            select(self.model).where(self.model.booking_number == booking_number)
        )
        return result.scalar_one_or_none()

    async def number_exists(self, booking_number: str) -> bool:
        result = await self.session.execute(
            select(func.count())
            .select_from(self.model)
            .where(self.model.booking_number == booking_number)
        )
        return (result.scalar() or 0) > 0

    async def list_recent(
        self,
        limit: int = 50,
        offset: int = 0,
        status: Optional[BookingStatus] = None,
        q: Optional[str] = None,
    ) -> list[BookingModel]:
        """Newest bookings first.

        ``q`` matches case-insensitively anywhere in the booking number,
        either place label, the passenger name or the phone number.
        """
        query = (
            select(self.model)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset(offset)
            .limit(limit)
        )
        if status:
            query = query.where(self.model.status == status.value)
        if q and q.strip():
            pattern = f"%{q.strip()}%"
            query = query.where(
                or_(
                    self.model.booking_number.ilike(pattern),
                    self.model.pickup_location.ilike(pattern),
                    self.model.dropoff_location.ilike(pattern),
                    self.model.user_name.ilike(pattern),
                    self.model.user_phone.ilike(pattern),
                )
            )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_for_rider(self, rider_id: int) -> list[BookingModel]:
        """Every booking ever handed to *rider_id*, latest assignment first."""
        result = await self.session.execute(
            select(self.model)
            .where(self.model.assigned_rider_id == rider_id)
            .order_by(self.model.assigned_at.desc(), self.model.id.desc())
        )
        return list(result.scalars().all())

    async def count_by_status(self) -> dict[BookingStatus, int]:
        result = await self.session.execute(
            select(self.model.status, func.count()).group_by(self.model.status)
        )
        counts = {status: 0 for status in BookingStatus}
        for status, count in result.all():
            counts[BookingStatus(status)] = count
        return counts
