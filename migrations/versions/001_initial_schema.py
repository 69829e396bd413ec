"""Initial schema with PostGIS extension and the bookings table.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from geoalchemy2 import Geometry


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Enable PostGIS extension
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")

    # ── bookings ──────────────────────────────────────────────────────
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("booking_number", sa.String(20), unique=True, nullable=False),
        sa.Column("pickup_location", sa.String(500), nullable=False, server_default=""),
        sa.Column("dropoff_location", sa.String(500), nullable=False, server_default=""),
        sa.Column(
            "pickup_point",
            Geometry("POINT", srid=4326, spatial_index=False),
            nullable=False,
        ),
        sa.Column(
            "dropoff_point",
            Geometry("POINT", srid=4326, spatial_index=False),
            nullable=False,
        ),
        sa.Column("pickup_lat", sa.Float, nullable=False),
        sa.Column("pickup_lng", sa.Float, nullable=False),
        sa.Column("dropoff_lat", sa.Float, nullable=False),
        sa.Column("dropoff_lng", sa.Float, nullable=False),
        sa.Column("distance", sa.Float, nullable=False),
        sa.Column("duration", sa.Float, nullable=True),
        sa.Column("fare", sa.Float, nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "confirmed",
                "assigned",
                "completed",
                "cancelled",
                name="bookingstatus",
            ),
            server_default="pending",
            nullable=False,
        ),
        sa.Column("user_name", sa.String(120), nullable=False, server_default=""),
        sa.Column("user_phone", sa.String(40), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "idx_bookings_pickup", "bookings", ["pickup_point"], postgresql_using="gist"
    )
    op.create_index(
        "idx_bookings_dropoff", "bookings", ["dropoff_point"], postgresql_using="gist"
    )
    op.create_index("idx_bookings_status", "bookings", ["status"])
    op.create_index("idx_bookings_created", "bookings", ["created_at"])


def downgrade() -> None:
    op.drop_table("bookings")
    op.execute("DROP TYPE IF EXISTS bookingstatus")
