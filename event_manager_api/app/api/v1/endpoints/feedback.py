"""
Feedback endpoints for API v1.

Submitting feedback does not require authentication unless
``PUBLIC_FEEDBACK`` is switched off: the participant id from the
feedback request mail identifies the author.  A second submission for
the same participant updates the first and answers 200 instead of 201.
"""

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status

from event_manager_api.app.core.mail import get_mailer
from event_manager_api.app.core.security import get_current_user, get_optional_user
from event_manager_api.app.schemas.feedback import (
    FeedbackCreate,
    FeedbackRead,
    FeedbackRequestResult,
)
from event_manager_api.app.services.feedback_service import FeedbackService
from event_manager_api.app.services.mail_service import MailService


router = APIRouter()


@router.get("/events/{event_id}/feedback", response_model=List[FeedbackRead])
async def list_feedback(
    event_id: int,
    current_user: dict = Depends(get_current_user),
) -> List[FeedbackRead]:
    return await FeedbackService.list_feedback(event_id, current_user)


@router.post(
    "/events/{event_id}/feedback",
    response_model=FeedbackRead,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"model": FeedbackRead, "description": "Existing feedback updated"}},
)
async def submit_feedback(
    event_id: int,
    data: FeedbackCreate,
    response: Response,
    current_user: Optional[dict] = Depends(get_optional_user),
) -> FeedbackRead:
    """Submit or update a participant's feedback.  Rating or comments is required.

    ``participant_id`` must belong to this event; a participant of another
    event is rejected with 422 even though it exists.
    """
    feedback, created = await FeedbackService.submit_feedback(event_id, data, current_user)
    if not created:
        response.status_code = status.HTTP_200_OK
    return feedback


@router.post("/events/{event_id}/feedback/request", response_model=FeedbackRequestResult)
async def request_feedback(
    event_id: int,
    background_tasks: BackgroundTasks,
    current_user: dict = Depends(get_current_user),
    mailer=Depends(get_mailer),
) -> FeedbackRequestResult:
    """Mail a feedback request to every confirmed or attending participant."""
    result = await FeedbackService.request_feedback(event_id, current_user)
    background_tasks.add_task(MailService.deliver, [d.id for d in result.dispatches], mailer)
    return result
