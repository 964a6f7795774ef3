"""
Business logic for outgoing event mail.

Invitations and feedback requests are not sent inside the request.
The workflow services call ``MailService.queue`` while they write
participants, which records one ``mail_dispatches`` row per recipient
with status ``queued``.  The endpoint then schedules
``MailService.deliver`` as a background task; it renders and sends
each message after the response has gone out and records ``sent`` or
``failed`` (with the error) per recipient.  A failed recipient never
stops the remaining ones, and the outcome stays visible through
``list_dispatches``.
"""

import logging
import sqlite3
from typing import Iterable, List

from event_manager_api.app.core.db import get_connection
from event_manager_api.app.core.mail import build_message, render_email
from event_manager_api.app.core.permissions import load_owned_event
from ..schemas.mail import MailDispatchRead


logger = logging.getLogger(__name__)

TEMPLATES = {
    "invitation": "invitation.txt",
    "feedback_request": "feedback_request.txt",
}

DISPATCH_COLUMNS = (
    "id, event_id, participant_id, email, kind, status, error_message, created_at, sent_at"
)


def dispatch_from_row(row: sqlite3.Row) -> MailDispatchRead:
    return MailDispatchRead(**dict(row))


class MailService:
    """Queue, deliver and report event mail."""

    @classmethod
    def queue(
        cls,
        cursor: sqlite3.Cursor,
        event_id: int,
        participant: sqlite3.Row,
        kind: str,
    ) -> MailDispatchRead:
        """Record a queued message inside the caller's transaction."""
        if kind not in TEMPLATES:
            raise ValueError(f"Unknown mail kind {kind!r}")
        cursor.execute(
            "INSERT INTO mail_dispatches (event_id, participant_id, email, kind) VALUES (?, ?, ?, ?)",
            (event_id, participant["id"], participant["email"], kind),
        )
        row = cursor.execute(
            f"SELECT {DISPATCH_COLUMNS} FROM mail_dispatches WHERE id = ?",
            (cursor.lastrowid,),
        ).fetchone()
        return dispatch_from_row(row)

    @classmethod
    def deliver(cls, dispatch_ids: Iterable[int], mailer) -> List[MailDispatchRead]:
        """Send every queued dispatch and record its outcome.

        Runs as a background task in the worker thread pool since SMTP
        calls block.  Returns the final state of each dispatch.
        """
        results: List[MailDispatchRead] = []
        conn = get_connection()
        try:
            for dispatch_id in dispatch_ids:
                row = conn.execute(
                    f"SELECT {DISPATCH_COLUMNS} FROM mail_dispatches WHERE id = ?",
                    (dispatch_id,),
                ).fetchone()
                if not row or row["status"] != "queued":
                    continue
                error = cls._send_one(conn, row, mailer)
                if error is None:
                    conn.execute(
                        "UPDATE mail_dispatches SET status = 'sent', error_message = NULL, "
                        "sent_at = CURRENT_TIMESTAMP WHERE id = ?",
                        (dispatch_id,),
                    )
                else:
                    conn.execute(
                        "UPDATE mail_dispatches SET status = 'failed', error_message = ? WHERE id = ?",
                        (error, dispatch_id),
                    )
                conn.commit()
                final = conn.execute(
                    f"SELECT {DISPATCH_COLUMNS} FROM mail_dispatches WHERE id = ?",
                    (dispatch_id,),
                ).fetchone()
                results.append(dispatch_from_row(final))
        finally:
            conn.close()
        failed = sum(1 for r in results if r.status == "failed")
        if failed:
            logger.warning("%d of %d mail dispatches failed", failed, len(results))
        return results

    @classmethod
    def _send_one(cls, conn: sqlite3.Connection, dispatch: sqlite3.Row, mailer):
        """Render and send one dispatch.  Returns an error message or ``None``."""
        event = conn.execute(
            "SELECT * FROM events WHERE id = ?", (dispatch["event_id"],)
        ).fetchone()
        participant = None
        if dispatch["participant_id"] is not None:
            participant = conn.execute(
                "SELECT * FROM participants WHERE id = ?", (dispatch["participant_id"],)
            ).fetchone()
        if event is None or participant is None:
            logger.warning("Dispatch %s has no event or participant anymore", dispatch["id"])
            return "Recipient no longer exists"
        try:
            subject, body = render_email(
                TEMPLATES[dispatch["kind"]],
                event=dict(event),
                participant=dict(participant),
            )
            mailer.send(build_message(dispatch["email"], subject, body))
        except Exception as e:
            logger.exception(
                "Failed to send %s mail to %s for event %s",
                dispatch["kind"],
                dispatch["email"],
                dispatch["event_id"],
            )
            return str(e) or e.__class__.__name__
        return None

    @classmethod
    async def list_dispatches(cls, event_id: int, current_user: dict) -> List[MailDispatchRead]:
        """Delivery log of an event, newest first.  Owner only."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            load_owned_event(cursor, current_user, event_id)
            rows = cursor.execute(
                f"SELECT {DISPATCH_COLUMNS} FROM mail_dispatches WHERE event_id = ? ORDER BY id DESC",
                (event_id,),
            ).fetchall()
            return [dispatch_from_row(row) for row in rows]
        finally:
            conn.close()
