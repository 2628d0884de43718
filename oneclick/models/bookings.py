"""Bookings table model using SQLAlchemy Core."""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Table,
    Text,
    Time,
    Uuid,
)

from oneclick.models.metadata import metadata


def _utcnow() -> datetime:
    return datetime.now(UTC)


bookings = Table(
    "bookings",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Ownership / references
    Column(
        "volunteer_id",
        Uuid,
        ForeignKey("volunteers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("client_id", Text, nullable=False, index=True),
    # Snapshot of the client at booking time (no client table exists)
    Column("client_name", Text, nullable=True),
    Column("client_email", Text, nullable=True),
    # Slot
    Column("date", Date, nullable=False),
    Column("time", Time, nullable=False),
    Column("duration", Integer, nullable=False),
    # Fixed at creation, never recomputed from the volunteer's current rate
    Column("total_amount", Integer, nullable=False),
    Column("message", Text, nullable=True),
    Column("status", Text, nullable=False, default="pending"),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, default=_utcnow),
    Column(
        "updated_at",
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    ),
    CheckConstraint("duration >= 1 AND duration <= 8", name="bookings_duration_check"),
    CheckConstraint(
        "status IN ('pending', 'confirmed', 'completed', 'cancelled', 'declined')",
        name="bookings_status_check",
    ),
)
