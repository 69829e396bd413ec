"""
Seed script -- populates the database with sample bookings for reviewers.

Run after migrations:
    python seed.py

Creates one booking per lifecycle status between well-known places in
Camarines Norte.  Fares come from the same ``FareModel`` the API uses;
distances are straight-line estimates so no routing service is needed.
"""

import asyncio
from datetime import datetime, timedelta, timezone

from trikebook.config import settings
from trikebook.domain.distance import haversine_km
from trikebook.domain.entities import Booking, Coordinate, Location
from trikebook.domain.enums import BookingStatus
from trikebook.domain.pricing import FareModel
from trikebook.domain.validation import generate_booking_number
from trikebook.infrastructure.database import async_session_factory, engine
from trikebook.infrastructure.repositories import BookingRepository

PLACES = {
    "Daet Plaza": Coordinate(14.1122, 122.9553),
    "Daet Public Market": Coordinate(14.1150, 122.9530),
    "Basud Terminal": Coordinate(14.0640, 122.9660),
    "Bagasbas Beach": Coordinate(14.1390, 122.9840),
    "Talisay Town Hall": Coordinate(14.1350, 122.9230),
    "Vinzons Church": Coordinate(14.1740, 122.9080),
}

TRIPS = [
    ("Daet Plaza", "Bagasbas Beach", BookingStatus.PENDING, "Juan Dela Cruz", "09171234567"),
    ("Daet Public Market", "Basud Terminal", BookingStatus.CONFIRMED, "Maria Santos", "09181234567"),
    ("Talisay Town Hall", "Daet Plaza", BookingStatus.ASSIGNED, "Jose Reyes", "09191234567"),
    ("Vinzons Church", "Daet Public Market", BookingStatus.COMPLETED, "Ana Garcia", "09201234567"),
    ("Bagasbas Beach", "Talisay Town Hall", BookingStatus.CANCELLED, "Pedro Cruz", ""),
]

RIDER_ID = 1

# Lifecycle path from pending to each seeded status
PATHS = {
    BookingStatus.PENDING: [],
    BookingStatus.CONFIRMED: [BookingStatus.CONFIRMED],
    BookingStatus.ASSIGNED: [BookingStatus.CONFIRMED, BookingStatus.ASSIGNED],
    BookingStatus.COMPLETED: [
        BookingStatus.CONFIRMED,
        BookingStatus.ASSIGNED,
        BookingStatus.COMPLETED,
    ],
    BookingStatus.CANCELLED: [BookingStatus.CANCELLED],
}


async def seed():
    fare_model = FareModel.from_settings(settings)
    now = datetime.now(timezone.utc)

    async with async_session_factory() as session:
        repo = BookingRepository(session)

        for i, (origin, destination, status, name, phone) in enumerate(TRIPS):
            start, end = PLACES[origin], PLACES[destination]
            distance = round(haversine_km(start, end), 2)
            booking = Booking(
                booking_number=generate_booking_number(now),
                pickup=Location(start, origin),
                dropoff=Location(end, destination),
                distance_km=distance,
                duration_minutes=None,
                fare=fare_model.trip_fare(distance),
                created_at=now - timedelta(hours=len(TRIPS) - i),
            )
            booking, _ = await repo.save_booking(
                booking, full_name=name, contact_number=phone
            )
            for step in PATHS[status]:
                if step == BookingStatus.ASSIGNED:
                    await repo.assign(booking.booking_number, rider_id=RIDER_ID)
                else:
                    await repo.update_status(booking.booking_number, step)

        await session.commit()
        print(f"  Created {len(TRIPS)} bookings")
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
