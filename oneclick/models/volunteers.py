"""Volunteer and skill tables using SQLAlchemy Core."""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Table,
    Text,
    Uuid,
)

from oneclick.models.metadata import metadata


def _utcnow() -> datetime:
    return datetime.now(UTC)


volunteers = Table(
    "volunteers",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Identity provider user id; one profile per user
    Column("user_id", Text, nullable=False, unique=True, index=True),
    # Contact / presentation
    Column("name", Text, nullable=False),
    Column("email", Text, nullable=False),
    Column("phone", Text, nullable=True),
    Column("bio", Text, nullable=True),
    Column("profile_photo_url", Text, nullable=True),
    # Service details
    Column("hourly_rate", Integer, nullable=False),
    Column("availability", Text, nullable=True),
    Column("is_verified", Boolean, nullable=False, default=False),
    # Reputation
    Column("rating", Float, nullable=False, default=5.0),
    Column("total_bookings", Integer, nullable=False, default=0),
    # Audit fields (updated_at doubles as the optimistic concurrency token)
    Column("created_at", DateTime(timezone=True), nullable=False, default=_utcnow),
    Column(
        "updated_at",
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    ),
    CheckConstraint("hourly_rate > 0", name="volunteers_hourly_rate_check"),
    CheckConstraint("rating >= 0 AND rating <= 5", name="volunteers_rating_check"),
)

skills = Table(
    "skills",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("name", Text, nullable=False, unique=True),
)

volunteer_skills = Table(
    "volunteer_skills",
    metadata,
    Column(
        "volunteer_id",
        Uuid,
        ForeignKey("volunteers.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "skill_id",
        Uuid,
        ForeignKey("skills.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)
