"""
Business logic for events.

Every method takes the acting user explicitly and passes the event
through the ownership gate in ``core.permissions`` before reading
nested data or writing anything.
"""

import logging
import sqlite3
from datetime import datetime
from typing import List

from event_manager_api.app.core.db import get_connection
from event_manager_api.app.core.exceptions import StorageError, ValidationError
from event_manager_api.app.core.permissions import load_owned_event
from ..schemas.event import EventCreate, EventDetail, EventRead
from .audit_service import AuditService
from .material_service import material_from_row
from .participant_service import participant_from_row


logger = logging.getLogger(__name__)

REQUIRED_ON_UPDATE = ("title", "start_date", "end_date")
UPDATABLE_FIELDS = ("title", "description", "location", "start_date", "end_date")


def event_from_row(row: sqlite3.Row) -> EventRead:
    return EventRead(**dict(row))


def _to_db(value):
    return value.isoformat() if isinstance(value, datetime) else value


def check_date_order(start: datetime, end: datetime) -> None:
    if end < start:
        raise ValidationError.for_field(
            "end_date", "The end date must be a date after or equal to start date."
        )


class EventService:
    """Service for managing an organizer's events."""

    @classmethod
    async def list_events(cls, current_user: dict) -> List[EventRead]:
        """Events owned by the acting user, most recently created first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM events WHERE owner_id = ? ORDER BY created_at DESC, id DESC",
                (current_user["user_id"],),
            ).fetchall()
            return [event_from_row(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def create_event(cls, data: EventCreate, current_user: dict) -> EventRead:
        """Create a new event owned by the acting user and return it."""
        check_date_order(data.start_date, data.end_date)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO events (owner_id, title, description, location, start_date, end_date)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    current_user["user_id"],
                    data.title,
                    data.description,
                    data.location,
                    _to_db(data.start_date),
                    _to_db(data.end_date),
                ),
            )
            event_id = cursor.lastrowid
            conn.commit()
            row = cursor.execute("SELECT * FROM events WHERE id = ?", (event_id,)).fetchone()
        finally:
            conn.close()
        logger.info("User %s created event %s '%s'", current_user["user_id"], event_id, data.title)
        await AuditService.log(
            user_id=current_user["user_id"],
            action="create",
            object_type="event",
            object_id=event_id,
            details={"title": data.title},
        )
        return event_from_row(row)

    @classmethod
    async def get_event(cls, event_id: int, current_user: dict) -> EventDetail:
        """Return an event with its participants and materials.

        Feedback is not included; it is listed through the feedback
        endpoints.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            event = load_owned_event(cursor, current_user, event_id)
            participants = cursor.execute(
                "SELECT * FROM participants WHERE event_id = ? ORDER BY id", (event_id,)
            ).fetchall()
            materials = cursor.execute(
                "SELECT * FROM materials WHERE event_id = ? ORDER BY id", (event_id,)
            ).fetchall()
            return EventDetail(
                **dict(event),
                participants=[participant_from_row(p) for p in participants],
                materials=[material_from_row(m) for m in materials],
            )
        finally:
            conn.close()

    @classmethod
    async def update_event(cls, event_id: int, updates: dict, current_user: dict) -> EventRead:
        """Update the fields present in ``updates``.

        ``updates`` holds only the fields sent by the client, so an
        explicit ``None`` clears ``description`` or ``location``.  The
        resulting start/end pair is checked against stored values when
        only one side changes.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            event = load_owned_event(cursor, current_user, event_id)
            updates = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS}
            for field in REQUIRED_ON_UPDATE:
                if field in updates and updates[field] is None:
                    raise ValidationError.for_field(
                        field, f"The {field.replace('_', ' ')} field is required."
                    )
            start = updates.get("start_date") or datetime.fromisoformat(event["start_date"])
            end = updates.get("end_date") or datetime.fromisoformat(event["end_date"])
            check_date_order(start, end)
            if updates:
                assignments = ", ".join(f"{key} = ?" for key in updates)
                values = [_to_db(value) for value in updates.values()]
                cursor.execute(
                    f"UPDATE events SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*values, event_id),
                )
                conn.commit()
            row = cursor.execute("SELECT * FROM events WHERE id = ?", (event_id,)).fetchone()
        finally:
            conn.close()
        if updates:
            await AuditService.log(
                user_id=current_user["user_id"],
                action="update",
                object_type="event",
                object_id=event_id,
                details=updates,
            )
        return event_from_row(row)

    @classmethod
    async def delete_event(cls, event_id: int, current_user: dict, store) -> None:
        """Delete an event together with everything attached to it.

        Material blobs are released first, one material at a time: each
        material row is deleted and committed as soon as its blob is gone.
        If the store fails on a blob, ``StorageError`` is raised and that
        material, the remaining ones and the event itself are kept, so no
        row ever points at a deleted blob.  Blobs that were already
        missing are logged and their rows removed.  The other rows are
        then removed children first in one transaction.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            load_owned_event(cursor, current_user, event_id)
            materials = cursor.execute(
                "SELECT id, file_path FROM materials WHERE event_id = ? ORDER BY id", (event_id,)
            ).fetchall()
            for material in materials:
                try:
                    removed = store.delete(material["file_path"])
                except OSError as e:
                    logger.error(
                        "Could not delete blob %s of material %s: %s",
                        material["file_path"],
                        material["id"],
                        e,
                    )
                    raise StorageError(
                        f"Could not delete the file of material {material['id']}; event was kept"
                    ) from e
                if not removed:
                    logger.warning(
                        "Blob %s of material %s was already missing",
                        material["file_path"],
                        material["id"],
                    )
                cursor.execute("DELETE FROM materials WHERE id = ?", (material["id"],))
                conn.commit()
            cursor.execute("DELETE FROM mail_dispatches WHERE event_id = ?", (event_id,))
            cursor.execute("DELETE FROM feedback WHERE event_id = ?", (event_id,))
            cursor.execute("DELETE FROM materials WHERE event_id = ?", (event_id,))
            cursor.execute("DELETE FROM participants WHERE event_id = ?", (event_id,))
            cursor.execute("DELETE FROM events WHERE id = ?", (event_id,))
            conn.commit()
        finally:
            conn.close()
        logger.info("User %s deleted event %s", current_user["user_id"], event_id)
        await AuditService.log(
            user_id=current_user["user_id"],
            action="delete",
            object_type="event",
            object_id=event_id,
            details={"materials": len(materials)},
        )
