"""Contact page feedback."""

from fastapi import APIRouter, Depends, status

from oneclick.dependencies import DatabaseSession, current_user, require_page
from oneclick.schemas.common import Toast
from oneclick.schemas.feedback import FeedbackCreate, FeedbackResponse
from oneclick.services.feedback_service import FeedbackService
from oneclick.store import AppStore

router = APIRouter()


@router.post(
    "",
    response_model=FeedbackResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send feedback",
)
async def submit_feedback(
    data: FeedbackCreate,
    db: DatabaseSession,
    store: AppStore = Depends(require_page("/contact")),
) -> FeedbackResponse:
    """Store feedback from the signed-in user."""
    row = await FeedbackService(db).submit(current_user(store), data)
    return FeedbackResponse(
        **row,
        toast=Toast(
            title="Feedback submitted successfully!",
            description="Thank you for helping us improve.",
        ),
    )
