"""
Business logic for shared event materials.

A material is a metadata row plus one blob in the file store, tied
together by ``file_path``.  The two are not written atomically, so the
order of operations is fixed:

* create: store blob, insert row; if the insert fails the blob is
  deleted again.
* delete: delete blob, delete row; if the blob delete fails the row is
  kept and ``StorageError`` is raised.  A blob that is already missing
  does not block removing the row.
* download: a row whose blob is missing answers ``NotFoundError``.
"""

import logging
import sqlite3
from pathlib import Path, PurePosixPath
from typing import List, Optional, Tuple

from fastapi import UploadFile

from event_manager_api.app.core.config import settings
from event_manager_api.app.core.db import get_connection
from event_manager_api.app.core.exceptions import NotFoundError, StorageError, ValidationError
from event_manager_api.app.core.permissions import (
    authorize,
    authorize_download,
    load_event,
    load_owned_event,
)
from ..schemas.material import MaterialRead
from .audit_service import AuditService


logger = logging.getLogger(__name__)


def material_from_row(row: sqlite3.Row) -> MaterialRead:
    return MaterialRead(**dict(row))


def load_material(cursor: sqlite3.Cursor, material_id: int) -> sqlite3.Row:
    row = cursor.execute("SELECT * FROM materials WHERE id = ?", (material_id,)).fetchone()
    if not row:
        raise NotFoundError("Material not found")
    return row


def download_name(material: MaterialRead) -> str:
    """File name offered to the browser: the material name, keeping the blob's extension."""
    suffix = PurePosixPath(material.file_path).suffix
    if suffix and not material.name.lower().endswith(suffix):
        return f"{material.name}{suffix}"
    return material.name


class MaterialService:
    """Service for uploading, listing, downloading and deleting materials."""

    @classmethod
    async def list_materials(cls, event_id: int, current_user: dict) -> List[MaterialRead]:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            load_owned_event(cursor, current_user, event_id)
            rows = cursor.execute(
                "SELECT * FROM materials WHERE event_id = ? ORDER BY id", (event_id,)
            ).fetchall()
            return [material_from_row(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def create_material(
        cls,
        event_id: int,
        name: str,
        upload: Optional[UploadFile],
        current_user: dict,
        store,
    ) -> MaterialRead:
        """Store an uploaded file for an event and record its metadata."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            load_owned_event(cursor, current_user, event_id)

            name = (name or "").strip()
            if not name:
                raise ValidationError.for_field("name", "The name field is required.")
            if len(name) > 255:
                raise ValidationError.for_field(
                    "name", "The name may not be greater than 255 characters."
                )
            if upload is None or not upload.filename:
                raise ValidationError.for_field("file", "The file field is required.")
            limit = settings.max_upload_bytes
            content = await upload.read(limit + 1)
            if len(content) > limit:
                raise ValidationError.for_field(
                    "file", f"The file may not be greater than {limit // 1024} kilobytes."
                )

            try:
                file_path = store.store(f"materials/{event_id}", content, upload.filename)
            except OSError as e:
                logger.error("Could not store upload for event %s: %s", event_id, e)
                raise StorageError("Could not store the uploaded file") from e

            try:
                cursor.execute(
                    """
                    INSERT INTO materials (event_id, name, file_path, file_type, file_size)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (event_id, name, file_path, upload.content_type, len(content)),
                )
                material_id = cursor.lastrowid
                conn.commit()
            except sqlite3.Error:
                conn.rollback()
                logger.error("Metadata insert failed, removing orphaned blob %s", file_path)
                try:
                    store.delete(file_path)
                except OSError as cleanup_error:
                    logger.error("Orphaned blob %s could not be removed: %s", file_path, cleanup_error)
                raise
            row = load_material(cursor, material_id)
        finally:
            conn.close()
        logger.info(
            "User %s uploaded material %s (%d bytes) to event %s",
            current_user["user_id"],
            material_id,
            len(content),
            event_id,
        )
        await AuditService.log(
            user_id=current_user["user_id"],
            action="create",
            object_type="material",
            object_id=material_id,
            details={"event_id": event_id, "name": name, "file_size": len(content)},
        )
        return material_from_row(row)

    @classmethod
    async def delete_material(cls, material_id: int, current_user: dict, store) -> None:
        """Delete the blob, then the row.  See the module docstring for failure order."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            material = load_material(cursor, material_id)
            authorize(current_user, load_event(cursor, material["event_id"]))
            try:
                removed = store.delete(material["file_path"])
            except OSError as e:
                logger.error(
                    "Could not delete blob %s of material %s: %s",
                    material["file_path"],
                    material_id,
                    e,
                )
                raise StorageError("Could not delete the file; material was kept") from e
            if not removed:
                logger.warning(
                    "Blob %s of material %s was already missing",
                    material["file_path"],
                    material_id,
                )
            cursor.execute("DELETE FROM materials WHERE id = ?", (material_id,))
            conn.commit()
        finally:
            conn.close()
        await AuditService.log(
            user_id=current_user["user_id"],
            action="delete",
            object_type="material",
            object_id=material_id,
            details={"event_id": material["event_id"], "file_path": material["file_path"]},
        )

    @classmethod
    async def get_download(
        cls, material_id: int, current_user: dict, store
    ) -> Tuple[MaterialRead, Path]:
        """Resolve a material for download by its owner or an invited participant."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            material = load_material(cursor, material_id)
            event = load_event(cursor, material["event_id"])
            authorize_download(cursor, current_user, event)
        finally:
            conn.close()
        if not store.exists(material["file_path"]):
            logger.warning(
                "Material %s points to missing blob %s", material_id, material["file_path"]
            )
            raise NotFoundError("File not found")
        return material_from_row(material), store.local_path(material["file_path"])
