"""
Audit service for recording who changed what.

Services call ``AuditService.log`` after every create, update and
delete.  A failure to write the audit row is logged and never undoes
or blocks the operation that triggered it.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any, Dict, List, Optional

from event_manager_api.app.core.db import get_connection


logger = logging.getLogger(__name__)


class AuditService:
    """Service class for writing and reading audit records."""

    @classmethod
    async def log(
        cls,
        user_id: Optional[int],
        action: str,
        object_type: str,
        object_id: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Insert a new audit record.

        Parameters
        ----------
        user_id : Optional[int]
            ID of the acting user.  ``None`` for anonymous actions such
            as public feedback submissions.
        action : str
            Short description of the action (``create``, ``update``,
            ``delete``, ``invite``...).
        object_type : str
            Type of object affected (``event``, ``participant``...).
        object_id : Optional[int]
            Primary key of the affected object, if applicable.
        details : Optional[dict]
            Additional structured data, stored as JSON.
        """
        try:
            conn = get_connection()
            try:
                conn.execute(
                    """
                    INSERT INTO audit_logs (user_id, action, object_type, object_id, details)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        action,
                        object_type,
                        object_id,
                        json.dumps(details, default=str) if details else None,
                    ),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.warning("Failed to write audit log for %s %s: %s", action, object_type, e)

    @classmethod
    async def list_logs(
        cls,
        object_type: Optional[str] = None,
        object_id: Optional[int] = None,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """Most recent audit records first, optionally for one object."""
        query = "SELECT id, user_id, action, object_type, object_id, timestamp, details FROM audit_logs"
        params: list = []
        where_clauses: list[str] = []
        if object_type is not None:
            where_clauses.append("object_type = ?")
            params.append(object_type)
        if object_id is not None:
            where_clauses.append("object_id = ?")
            params.append(object_id)
        if where_clauses:
            query += " WHERE " + " AND ".join(where_clauses)
        query += " ORDER BY id DESC LIMIT ?"
        params.append(limit)
        conn = get_connection()
        try:
            rows = conn.execute(query, tuple(params)).fetchall()
        finally:
            conn.close()
        return [
            {
                **dict(row),
                "details": json.loads(row["details"]) if row["details"] else None,
            }
            for row in rows
        ]
