"""Rider assignment columns on bookings.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column("bookings", sa.Column("assigned_rider_id", sa.Integer, nullable=True))
    op.add_column(
        "bookings", sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True)
    )
    op.create_index("idx_bookings_rider", "bookings", ["assigned_rider_id"])


def downgrade() -> None:
    op.drop_index("idx_bookings_rider", table_name="bookings")
    op.drop_column("bookings", "assigned_at")
    op.drop_column("bookings", "assigned_rider_id")
