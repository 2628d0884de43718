"""Feedback schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from oneclick.schemas.common import Toast


class FeedbackCreate(BaseModel):
    """Contact page feedback form."""

    message: str = Field(..., min_length=1, max_length=5000)
    rating: int = Field(default=0, ge=0, le=5)


class FeedbackResponse(BaseModel):
    """Stored feedback entry."""

    id: UUID
    user_id: str
    user_role: str
    user_name: str
    feedback_text: str
    rating: int
    created_at: datetime
    toast: Toast
