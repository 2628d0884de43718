"""Feedback submission."""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from oneclick.models.feedback import feedback
from oneclick.schemas.feedback import FeedbackCreate
from oneclick.schemas.users import User
from oneclick.services.errors import remote_call

logger = structlog.get_logger(__name__)


class FeedbackService:
    """Service for storing user feedback."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def submit(self, user: User, data: FeedbackCreate) -> dict:
        """
        Store a feedback entry for ``user``.

        Role falls back to ``unknown`` and name to ``Anonymous``.
        """
        values = {
            "user_id": user.id,
            "user_role": user.role.value if user.role else "unknown",
            "user_name": user.name or "Anonymous",
            "feedback_text": data.message,
            "rating": data.rating,
        }

        async with remote_call(self.db, "submit_feedback", user_id=user.id):
            result = await self.db.execute(feedback.insert().values(**values).returning(feedback))
            row = dict(result.mappings().one())
            await self.db.commit()

        logger.info("feedback_submitted", feedback_id=str(row["id"]), rating=data.rating)
        return row
