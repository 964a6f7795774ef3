"""
Authorization gate for event resources.

Every operation on an event or one of its children goes through this
module.  The acting user must own the event.  Material downloads
additionally admit invited participants whose email matches the
actor's, and feedback or RSVP answers follow ``PUBLIC_FEEDBACK``.
"""

import sqlite3
from typing import Optional

from .config import settings
from .exceptions import AuthorizationError, NotFoundError


def is_owner(actor: Optional[dict], event: sqlite3.Row) -> bool:
    return actor is not None and actor.get("user_id") == event["owner_id"]


def is_participant(cursor: sqlite3.Cursor, actor: Optional[dict], event_id: int) -> bool:
    """Whether the actor's email appears on the event's participant list."""
    if actor is None or not actor.get("email"):
        return False
    row = cursor.execute(
        "SELECT 1 FROM participants WHERE event_id = ? AND lower(email) = lower(?) LIMIT 1",
        (event_id, actor["email"]),
    ).fetchone()
    return row is not None


def authorize(actor: Optional[dict], event: sqlite3.Row) -> None:
    """Raise ``AuthorizationError`` unless the actor owns the event."""
    if not is_owner(actor, event):
        raise AuthorizationError()


def authorize_download(cursor: sqlite3.Cursor, actor: Optional[dict], event: sqlite3.Row) -> None:
    if is_owner(actor, event) or is_participant(cursor, actor, event["id"]):
        return
    raise AuthorizationError()


def authorize_participant_action(
    actor: Optional[dict], event: sqlite3.Row, participant: sqlite3.Row
) -> None:
    """Gate for feedback submission and RSVP answers.

    With ``PUBLIC_FEEDBACK`` enabled anyone holding the participant id
    may act.  Otherwise the actor must own the event or be that
    participant.
    """
    if settings.public_feedback or is_owner(actor, event):
        return
    if actor is not None and actor.get("email", "").lower() == participant["email"].lower():
        return
    raise AuthorizationError()


def load_event(cursor: sqlite3.Cursor, event_id: int) -> sqlite3.Row:
    row = cursor.execute("SELECT * FROM events WHERE id = ?", (event_id,)).fetchone()
    if not row:
        raise NotFoundError("Event not found")
    return row


def load_owned_event(cursor: sqlite3.Cursor, actor: Optional[dict], event_id: int) -> sqlite3.Row:
    """Fetch an event and apply the ownership gate in one step."""
    event = load_event(cursor, event_id)
    authorize(actor, event)
    return event
