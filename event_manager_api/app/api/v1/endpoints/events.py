"""
Event endpoints for API v1.

CRUD for the acting user's events.  Ownership is enforced by the
service layer; a request for someone else's event answers 403.
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status

from event_manager_api.app.core.security import get_current_user
from event_manager_api.app.core.storage import get_file_store
from event_manager_api.app.schemas.event import EventCreate, EventDetail, EventRead, EventUpdate
from event_manager_api.app.schemas.mail import MailDispatchRead
from event_manager_api.app.services.event_service import EventService
from event_manager_api.app.services.mail_service import MailService


router = APIRouter()


@router.get("", response_model=List[EventRead])
async def list_events(current_user: dict = Depends(get_current_user)) -> List[EventRead]:
    """List the events owned by the current user, newest first."""
    return await EventService.list_events(current_user)


@router.post("", response_model=EventRead, status_code=status.HTTP_201_CREATED)
async def create_event(
    event: EventCreate,
    current_user: dict = Depends(get_current_user),
) -> EventRead:
    """Create a new event owned by the current user.

    ``end_date`` must be on or after ``start_date``.
    """
    return await EventService.create_event(event, current_user)


@router.get("/{event_id}", response_model=EventDetail)
async def get_event(
    event_id: int,
    current_user: dict = Depends(get_current_user),
) -> EventDetail:
    """Retrieve an event with its participants and materials."""
    return await EventService.get_event(event_id, current_user)


@router.put("/{event_id}", response_model=EventRead)
@router.patch("/{event_id}", response_model=EventRead)
async def update_event(
    event_id: int,
    updates: EventUpdate,
    current_user: dict = Depends(get_current_user),
) -> EventRead:
    """Update an existing event.

    Partial updates are supported; fields missing from the body remain
    unchanged.
    """
    return await EventService.update_event(
        event_id, updates.model_dump(exclude_unset=True), current_user
    )


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: int,
    current_user: dict = Depends(get_current_user),
    store=Depends(get_file_store),
) -> Response:
    """Delete an event with its participants, materials (files included) and feedback."""
    await EventService.delete_event(event_id, current_user, store)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{event_id}/dispatches", response_model=List[MailDispatchRead])
async def list_dispatches(
    event_id: int,
    current_user: dict = Depends(get_current_user),
) -> List[MailDispatchRead]:
    """Per-recipient delivery state of the invitations and feedback requests of an event."""
    return await MailService.list_dispatches(event_id, current_user)
