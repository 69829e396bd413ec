"""
SQLAlchemy ORM models  (maps to PostgreSQL + PostGIS).

Tables
------
* ``bookings`` -- finalized trike bookings plus their lifecycle status

Indexes
-------
* **GIST** on ``pickup_point`` / ``dropoff_point`` for spatial queries
  (e.g. bookings near a rider).
* **B-Tree** on ``booking_number`` (unique), ``status``, ``created_at`` and
  ``assigned_rider_id`` for look-ups by riders, the newest-first admin
  listing and per-rider dispatch lists.
"""

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    Float,
    Index,
    Integer,
    String,
    func,
)
from geoalchemy2 import Geometry

from .database import Base
from trikebook.domain.enums import BookingStatus


class BookingModel(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_number = Column(String(20), unique=True, nullable=False)

    pickup_location = Column(String(500), nullable=False, default="")
    dropoff_location = Column(String(500), nullable=False, default="")

    # Stored as PostGIS geometry for spatial indexing
    pickup_point = Column(Geometry("POINT", srid=4326, spatial_index=False), nullable=False)
    dropoff_point = Column(Geometry("POINT", srid=4326, spatial_index=False), nullable=False)

    # Also stored as plain floats for fast reads (avoids ST_X / ST_Y)
    pickup_lat = Column(Float, nullable=False)
    pickup_lng = Column(Float, nullable=False)
    dropoff_lat = Column(Float, nullable=False)
    dropoff_lng = Column(Float, nullable=False)

    distance = Column(Float, nullable=False)  # km
    duration = Column(Float, nullable=True)  # minutes, null for straight-line quotes
    fare = Column(Float, nullable=False)

    status = Column(
        Enum(BookingStatus, values_callable=lambda e: [m.value for m in e]),
        default=BookingStatus.PENDING,
        nullable=False,
    )
    user_name = Column(String(120), nullable=False, default="")
    user_phone = Column(String(40), nullable=False, default="")

    # Rider dispatch; kept once the trip completes or is cancelled
    assigned_rider_id = Column(Integer, nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_bookings_pickup", "pickup_point", postgresql_using="gist"),
        Index("idx_bookings_dropoff", "dropoff_point", postgresql_using="gist"),
        Index("idx_bookings_status", "status"),
        Index("idx_bookings_created", "created_at"),
        Index("idx_bookings_rider", "assigned_rider_id"),
    )
