"""Feedback table model using SQLAlchemy Core."""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Table, Text, Uuid

from oneclick.models.metadata import metadata

feedback = Table(
    "feedback",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("user_id", Text, nullable=False),
    Column("user_role", Text, nullable=False),
    Column("user_name", Text, nullable=False),
    Column("feedback_text", Text, nullable=False),
    # 0 means "not rated"
    Column("rating", Integer, nullable=False, default=0),
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    ),
    CheckConstraint("rating >= 0 AND rating <= 5", name="feedback_rating_check"),
)
