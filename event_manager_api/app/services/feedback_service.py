"""
Business logic for post-event feedback.

Feedback is keyed by ``(event_id, participant_id)``; the table carries
a unique constraint on that pair.  Submitting feedback twice for the
same participant updates the stored row instead of adding a second
one, and only the fields present in the later request are
overwritten.  The upsert is a single ``INSERT ... ON CONFLICT`` inside
a ``BEGIN IMMEDIATE`` transaction, so concurrent submissions for one
participant are serialized by SQLite's write lock.

Who may submit is governed by ``PUBLIC_FEEDBACK`` (see
``core.permissions.authorize_participant_action``).
"""

import logging
import sqlite3
from typing import List, Optional, Tuple

from event_manager_api.app.core.db import get_connection
from event_manager_api.app.core.exceptions import ValidationError
from event_manager_api.app.core.permissions import (
    authorize_participant_action,
    load_event,
    load_owned_event,
)
from ..schemas.feedback import FeedbackCreate, FeedbackRead, FeedbackRequestResult
from .audit_service import AuditService
from .mail_service import MailService


logger = logging.getLogger(__name__)

FEEDBACK_STATUSES = ("confirmed", "attended")
UPSERT_FIELDS = ("rating", "comments")


def feedback_from_row(row: sqlite3.Row) -> FeedbackRead:
    return FeedbackRead(**dict(row))


class FeedbackService:
    """Service for collecting and requesting feedback."""

    @classmethod
    async def list_feedback(cls, event_id: int, current_user: dict) -> List[FeedbackRead]:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            load_owned_event(cursor, current_user, event_id)
            rows = cursor.execute(
                "SELECT * FROM feedback WHERE event_id = ? ORDER BY id", (event_id,)
            ).fetchall()
            return [feedback_from_row(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def submit_feedback(
        cls,
        event_id: int,
        data: FeedbackCreate,
        current_user: Optional[dict] = None,
    ) -> Tuple[FeedbackRead, bool]:
        """Create or update the feedback of one participant.

        Returns the stored row and whether it was newly created.
        """
        if data.rating is None and not data.comments:
            message = "Either rating or comments must be provided"
            raise ValidationError(message, {"rating": [message], "comments": [message]})
        provided = [field for field in UPSERT_FIELDS if field in data.model_fields_set]

        conn = get_connection()
        try:
            cursor = conn.cursor()
            event = load_event(cursor, event_id)
            participant = cursor.execute(
                "SELECT * FROM participants WHERE id = ?", (data.participant_id,)
            ).fetchone()
            if not participant or participant["event_id"] != event_id:
                raise ValidationError.for_field(
                    "participant_id", "The selected participant id is invalid."
                )
            authorize_participant_action(current_user, event, participant)

            cursor.execute("BEGIN IMMEDIATE")
            existing = cursor.execute(
                "SELECT id FROM feedback WHERE event_id = ? AND participant_id = ?",
                (event_id, data.participant_id),
            ).fetchone()
            assignments = "".join(f"{field} = excluded.{field}, " for field in provided)
            cursor.execute(
                f"""
                INSERT INTO feedback (event_id, participant_id, rating, comments)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(event_id, participant_id)
                DO UPDATE SET {assignments}updated_at = CURRENT_TIMESTAMP
                """,
                (event_id, data.participant_id, data.rating, data.comments),
            )
            conn.commit()
            row = cursor.execute(
                "SELECT * FROM feedback WHERE event_id = ? AND participant_id = ?",
                (event_id, data.participant_id),
            ).fetchone()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        created = existing is None
        logger.info(
            "%s feedback %s for participant %s of event %s",
            "Created" if created else "Updated",
            row["id"],
            data.participant_id,
            event_id,
        )
        await AuditService.log(
            user_id=current_user["user_id"] if current_user else None,
            action="create" if created else "update",
            object_type="feedback",
            object_id=row["id"],
            details={"event_id": event_id, "participant_id": data.participant_id, "fields": provided},
        )
        return feedback_from_row(row), created

    @classmethod
    async def request_feedback(cls, event_id: int, current_user: dict) -> FeedbackRequestResult:
        """Queue a feedback request for every confirmed or attending participant."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            load_owned_event(cursor, current_user, event_id)
            participants = cursor.execute(
                "SELECT * FROM participants WHERE event_id = ? AND status IN (?, ?) ORDER BY id",
                (event_id, *FEEDBACK_STATUSES),
            ).fetchall()
            dispatches = [
                MailService.queue(cursor, event_id, participant, "feedback_request")
                for participant in participants
            ]
            conn.commit()
        finally:
            conn.close()
        logger.info(
            "User %s requested feedback from %d participants of event %s",
            current_user["user_id"],
            len(dispatches),
            event_id,
        )
        return FeedbackRequestResult(
            message="Feedback requests sent successfully",
            dispatches=dispatches,
        )
