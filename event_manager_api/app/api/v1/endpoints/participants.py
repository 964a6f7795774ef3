"""
Participant endpoints for API v1.

Nested under an event for listing, adding and bulk inviting; addressed
directly by id for status changes and removal.  The router is
included without a prefix, so every path is spelled out here.

Invitation mails are delivered in a background task after the
response; their per-recipient outcome is available from
``GET /events/{event_id}/dispatches``.
"""

from typing import List, Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status

from event_manager_api.app.core.mail import get_mailer
from event_manager_api.app.core.security import get_current_user, get_optional_user
from event_manager_api.app.schemas.participant import (
    InviteResult,
    ParticipantCreate,
    ParticipantInvite,
    ParticipantRead,
    ParticipantUpdate,
)
from event_manager_api.app.services.mail_service import MailService
from event_manager_api.app.services.participant_service import ParticipantService


router = APIRouter()


@router.get("/events/{event_id}/participants", response_model=List[ParticipantRead])
async def list_participants(
    event_id: int,
    current_user: dict = Depends(get_current_user),
) -> List[ParticipantRead]:
    return await ParticipantService.list_participants(event_id, current_user)


@router.post(
    "/events/{event_id}/participants",
    response_model=ParticipantRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_participant(
    event_id: int,
    data: ParticipantCreate,
    current_user: dict = Depends(get_current_user),
) -> ParticipantRead:
    """Add a participant.  No invitation is sent; use the invite endpoint for that."""
    return await ParticipantService.create_participant(event_id, data, current_user)


@router.post(
    "/events/{event_id}/participants/invite",
    response_model=InviteResult,
    status_code=status.HTTP_201_CREATED,
)
async def invite_participants(
    event_id: int,
    data: ParticipantInvite,
    background_tasks: BackgroundTasks,
    current_user: dict = Depends(get_current_user),
    mailer=Depends(get_mailer),
) -> InviteResult:
    """Invite several people at once.

    ``emails`` and ``names`` are paired by position.  The response lists
    the created participants and their queued invitations.
    """
    result = await ParticipantService.invite(event_id, data, current_user)
    background_tasks.add_task(MailService.deliver, [d.id for d in result.dispatches], mailer)
    return result


@router.put("/participants/{participant_id}", response_model=ParticipantRead)
async def update_participant(
    participant_id: int,
    data: ParticipantUpdate,
    current_user: dict = Depends(get_current_user),
) -> ParticipantRead:
    """Change a participant's status (invited, confirmed, declined, attended)."""
    return await ParticipantService.update_participant(participant_id, data, current_user)


@router.delete("/participants/{participant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_participant(
    participant_id: int,
    current_user: dict = Depends(get_current_user),
) -> Response:
    await ParticipantService.delete_participant(participant_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/rsvp/{participant_id}/{decision}", response_model=ParticipantRead)
async def rsvp(
    participant_id: int,
    decision: Literal["confirm", "decline"],
    current_user: Optional[dict] = Depends(get_optional_user),
) -> ParticipantRead:
    """Answer an invitation from the links in the invitation mail."""
    return await ParticipantService.respond(participant_id, decision, current_user)
