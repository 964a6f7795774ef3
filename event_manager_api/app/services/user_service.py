"""
Minimal user lookup and creation.

Accounts are managed outside this service; only the rows needed to
resolve bearer tokens to event owners are kept here.
"""

import logging
from typing import Dict

from event_manager_api.app.core.db import get_connection


logger = logging.getLogger(__name__)


class UserService:
    @classmethod
    def get_or_create_user(cls, email: str, name: str) -> Dict[str, object]:
        """Return the user with ``email``, inserting it first if missing."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT OR IGNORE INTO users (email, name) VALUES (?, ?)",
                (email.strip(), name.strip()),
            )
            if cursor.rowcount:
                logger.info("Created user %s", email)
            conn.commit()
            row = cursor.execute(
                "SELECT id, email, name FROM users WHERE email = ?", (email.strip(),)
            ).fetchone()
            return dict(row)
        finally:
            conn.close()
