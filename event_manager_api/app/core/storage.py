"""
Local blob storage for uploaded materials.

Blobs are addressed by a relative path such as
``materials/12/3f9c0a....pdf``.  The path is the only key: the
``materials`` table stores it and nothing else knows where the bytes
live.  Swapping the backend (S3, Azure blob) means providing another
class with the same four methods and returning it from
``get_file_store``.
"""

import logging
import os
import secrets
from pathlib import Path, PurePosixPath

from .config import settings
from .db import resolve_path


logger = logging.getLogger(__name__)


class LocalFileStore:
    """Store blobs below a root directory on the local filesystem."""

    def __init__(self, root: str) -> None:
        self.root = Path(root).resolve()

    def _full_path(self, path: str) -> Path:
        full = (self.root / PurePosixPath(path)).resolve()
        # Keys must resolve inside the root.
        if self.root != full and self.root not in full.parents:
            raise ValueError(f"Path {path!r} escapes the storage root")
        return full

    def store(self, directory: str, content: bytes, filename: str = "") -> str:
        """Write ``content`` under ``directory`` with a random name.

        The extension of ``filename`` is kept on the blob name.  Returns
        the relative storage key.
        """
        suffix = PurePosixPath(filename).suffix.lower() if filename else ""
        key = str(PurePosixPath(directory) / f"{secrets.token_hex(20)}{suffix}")
        full = self._full_path(key)
        full.parent.mkdir(parents=True, exist_ok=True)
        full.write_bytes(content)
        logger.debug("Stored %d bytes at %s", len(content), key)
        return key

    def exists(self, path: str) -> bool:
        return self._full_path(path).is_file()

    def delete(self, path: str) -> bool:
        """Remove a blob.  Returns ``False`` if it was already gone.

        Any other ``OSError`` (permissions, I/O) propagates.
        """
        try:
            os.remove(self._full_path(path))
        except FileNotFoundError:
            return False
        return True

    def local_path(self, path: str) -> Path:
        """Filesystem path used to stream the blob back to the client."""
        return self._full_path(path)


def get_file_store() -> LocalFileStore:
    """FastAPI dependency returning the configured blob store."""
    return LocalFileStore(resolve_path(settings.storage_root))
