"""
Business logic for participants.

Participants are added one at a time or in bulk through ``invite``,
which also queues one invitation mail per invitee.  All organizer
operations are gated through the participant's parent event.
``respond`` backs the confirm/decline links of the invitation mail.
"""

import logging
import sqlite3
from typing import List, Optional

from event_manager_api.app.core.db import get_connection
from event_manager_api.app.core.exceptions import NotFoundError, ValidationError
from event_manager_api.app.core.permissions import (
    authorize,
    authorize_participant_action,
    load_event,
    load_owned_event,
)
from ..schemas.participant import (
    InviteResult,
    ParticipantCreate,
    ParticipantInvite,
    ParticipantRead,
    ParticipantUpdate,
)
from .audit_service import AuditService
from .mail_service import MailService


logger = logging.getLogger(__name__)

RSVP_DECISIONS = {"confirm": "confirmed", "decline": "declined"}


def participant_from_row(row: sqlite3.Row) -> ParticipantRead:
    return ParticipantRead(**dict(row))


def load_participant(cursor: sqlite3.Cursor, participant_id: int) -> sqlite3.Row:
    row = cursor.execute(
        "SELECT * FROM participants WHERE id = ?", (participant_id,)
    ).fetchone()
    if not row:
        raise NotFoundError("Participant not found")
    return row


def _insert_participant(
    cursor: sqlite3.Cursor, event_id: int, email: str, name: str, status: str
) -> sqlite3.Row:
    cursor.execute(
        "INSERT INTO participants (event_id, email, name, status) VALUES (?, ?, ?, ?)",
        (event_id, email, name, status),
    )
    return load_participant(cursor, cursor.lastrowid)


class ParticipantService:
    """Service for managing the invitees of an event."""

    @classmethod
    async def list_participants(cls, event_id: int, current_user: dict) -> List[ParticipantRead]:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            load_owned_event(cursor, current_user, event_id)
            rows = cursor.execute(
                "SELECT * FROM participants WHERE event_id = ? ORDER BY id", (event_id,)
            ).fetchall()
            return [participant_from_row(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def create_participant(
        cls, event_id: int, data: ParticipantCreate, current_user: dict
    ) -> ParticipantRead:
        """Add a single participant without sending any mail."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            load_owned_event(cursor, current_user, event_id)
            row = _insert_participant(cursor, event_id, data.email, data.name, data.status)
            conn.commit()
        finally:
            conn.close()
        await AuditService.log(
            user_id=current_user["user_id"],
            action="create",
            object_type="participant",
            object_id=row["id"],
            details={"event_id": event_id, "email": row["email"]},
        )
        return participant_from_row(row)

    @classmethod
    async def invite(cls, event_id: int, data: ParticipantInvite, current_user: dict) -> InviteResult:
        """Create one ``invited`` participant per email and queue their invitations.

        Participants and dispatch records are written in one
        transaction.  Delivery happens later (see ``MailService.deliver``)
        so a failing recipient cannot undo or block the others.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            load_owned_event(cursor, current_user, event_id)
            participants: List[ParticipantRead] = []
            dispatches = []
            for email, name in zip(data.emails, data.names):
                row = _insert_participant(cursor, event_id, email, name.strip(), "invited")
                participants.append(participant_from_row(row))
                dispatches.append(MailService.queue(cursor, event_id, row, "invitation"))
            conn.commit()
        finally:
            conn.close()
        logger.info(
            "User %s invited %d participants to event %s",
            current_user["user_id"],
            len(participants),
            event_id,
        )
        await AuditService.log(
            user_id=current_user["user_id"],
            action="invite",
            object_type="event",
            object_id=event_id,
            details={"emails": [p.email for p in participants]},
        )
        return InviteResult(participants=participants, dispatches=dispatches)

    @classmethod
    async def update_participant(
        cls, participant_id: int, data: ParticipantUpdate, current_user: dict
    ) -> ParticipantRead:
        """Change a participant's status.  Any status may follow any other."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            participant = load_participant(cursor, participant_id)
            authorize(current_user, load_event(cursor, participant["event_id"]))
            if data.status is not None:
                cursor.execute(
                    "UPDATE participants SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (data.status, participant_id),
                )
                conn.commit()
                participant = load_participant(cursor, participant_id)
        finally:
            conn.close()
        if data.status is not None:
            await AuditService.log(
                user_id=current_user["user_id"],
                action="update",
                object_type="participant",
                object_id=participant_id,
                details={"status": data.status},
            )
        return participant_from_row(participant)

    @classmethod
    async def delete_participant(cls, participant_id: int, current_user: dict) -> None:
        """Remove a participant along with their feedback and mail records."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            participant = load_participant(cursor, participant_id)
            authorize(current_user, load_event(cursor, participant["event_id"]))
            cursor.execute("DELETE FROM feedback WHERE participant_id = ?", (participant_id,))
            cursor.execute("DELETE FROM mail_dispatches WHERE participant_id = ?", (participant_id,))
            cursor.execute("DELETE FROM participants WHERE id = ?", (participant_id,))
            conn.commit()
        finally:
            conn.close()
        await AuditService.log(
            user_id=current_user["user_id"],
            action="delete",
            object_type="participant",
            object_id=participant_id,
            details={"event_id": participant["event_id"]},
        )

    @classmethod
    async def respond(
        cls, participant_id: int, decision: str, current_user: Optional[dict] = None
    ) -> ParticipantRead:
        """Apply an RSVP answer (``confirm`` or ``decline``) from the invitation mail."""
        status = RSVP_DECISIONS.get(decision)
        if status is None:
            raise ValidationError.for_field("decision", "The decision must be confirm or decline.")
        conn = get_connection()
        try:
            cursor = conn.cursor()
            participant = load_participant(cursor, participant_id)
            event = load_event(cursor, participant["event_id"])
            authorize_participant_action(current_user, event, participant)
            cursor.execute(
                "UPDATE participants SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (status, participant_id),
            )
            conn.commit()
            participant = load_participant(cursor, participant_id)
        finally:
            conn.close()
        logger.info("Participant %s answered %s for event %s", participant_id, status, event["id"])
        await AuditService.log(
            user_id=current_user["user_id"] if current_user else None,
            action="rsvp",
            object_type="participant",
            object_id=participant_id,
            details={"status": status},
        )
        return participant_from_row(participant)
