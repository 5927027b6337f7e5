"""Local filesystem blob storage for uploaded document bytes."""

import logging
import os
import re
import uuid
from dataclasses import dataclass
from pathlib import Path

from app.core.config import get_settings

logger = logging.getLogger(__name__)

# Characters kept from the client's file name when building a storage key.
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
MAX_NAME_IN_KEY = 120


class StorageError(Exception):
    """Raised for invalid keys or failed filesystem operations."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


@dataclass(frozen=True)
class StoredBlob:
    key: str
    path: str
    size: int


def sanitize_filename(name: str) -> str:
    """Reduce a client-supplied file name to a safe, bounded key suffix."""
    base = Path(name.replace("\\", "/")).name
    cleaned = _UNSAFE_NAME_CHARS.sub("_", base).strip("._")
    return (cleaned or "file")[:MAX_NAME_IN_KEY]


class LocalBlobStorage:
    """
    Stores blobs as flat files under base_path.

    Keys are generated on save (uuid4 prefix + sanitized original name), so
    two uploads with the same name never collide.
    """

    def __init__(self, base_path: str | Path) -> None:
        self.base_path = Path(base_path)

    def ensure_ready(self) -> None:
        """Create the storage directory if needed (idempotent)."""
        self.base_path.mkdir(parents=True, exist_ok=True)

    def is_available(self) -> bool:
        return self.base_path.is_dir() and os.access(self.base_path, os.W_OK)

    def _path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self.base_path / key

    def save(self, original_name: str, data: bytes) -> StoredBlob:
        key = f"{uuid.uuid4().hex}-{sanitize_filename(original_name)}"
        path = self._path_for(key)
        self.ensure_ready()
        try:
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to write blob {key}", cause=e) from e
        logger.debug("Blob stored: key=%s size=%s", key, len(data))
        return StoredBlob(key=key, path=str(path), size=len(data))

    def read(self, key: str) -> bytes:
        path = self._path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise StorageError(f"Blob not found: {key}", cause=e) from e
        except OSError as e:
            raise StorageError(f"Failed to read blob {key}", cause=e) from e

    def delete(self, key: str) -> bool:
        """Remove a blob; returns False when it was already gone."""
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("Blob already missing on delete: key=%s", key)
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete blob {key}", cause=e) from e
        return True


def get_storage() -> LocalBlobStorage:
    """Dependency: blob storage rooted at STORAGE_LOCAL_PATH."""
    return LocalBlobStorage(get_settings().STORAGE_LOCAL_PATH)
