"""
Local Storage Backends
======================

- FilesystemStorageBackend: artifacts as files under a base directory
- InMemoryStorageBackend: artifacts in a dict, for tests and ephemeral vaults
"""

import logging
import os
import threading
import uuid
from pathlib import Path
from typing import Dict, Union

from ...error_handling import NotFoundError, VaultStorageError
from .base import StorageBackend

logger = logging.getLogger(__name__)


class FilesystemStorageBackend(StorageBackend):
    """
    Filesystem-based storage backend.

    Artifacts are stored at ``base_dir / key``. Writes are atomic by default:
    the data goes to a uniquely named temp file in the same directory which
    then replaces the target, so a reader never sees a truncated artifact and
    concurrent writers to the same key resolve to last-writer-wins.

    Attributes:
        base_dir: Root directory for artifacts
        atomic: Write through temp file + rename (default: True)
    """

    def __init__(self, base_dir: Union[str, Path], atomic: bool = True):
        """
        Initialize filesystem storage backend.

        Args:
            base_dir: Directory where artifacts will be stored
            atomic: Use write-temp-then-rename for writes
        """
        self.base_dir = Path(base_dir)
        self.atomic = atomic
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise VaultStorageError(
                f"Cannot create storage directory: {e}", {"path": str(self.base_dir)}
            ) from e
        logger.debug(
            f"FilesystemStorageBackend initialized at {self.base_dir} (atomic={atomic})"
        )

    def _get_path(self, key: str) -> Path:
        """Convert a key to a path below base_dir."""
        # Sanitize key to prevent path traversal
        safe_key = key.replace("..", "__").replace("/", os.sep).replace("\\", os.sep)
        safe_key = safe_key.lstrip(os.sep)
        return self.base_dir / safe_key

    def describe(self, key: str) -> str:
        return str(self._get_path(key))

    def write(self, key: str, data: bytes) -> str:
        """Write artifact to filesystem."""
        path = self._get_path(key)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if not self.atomic:
                path.write_bytes(data)
            else:
                temp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
                try:
                    temp_path.write_bytes(data)
                    temp_path.replace(path)
                except OSError:
                    if temp_path.exists():
                        temp_path.unlink()
                    raise
        except OSError as e:
            raise VaultStorageError(
                f"Failed to write artifact: {e}", {"path": str(path)}
            ) from e

        logger.debug(f"Wrote {len(data)} bytes to {path}")
        return str(path)

    def read(self, key: str) -> bytes:
        """Read artifact from filesystem."""
        path = self._get_path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise NotFoundError(f"{path} file not found.", {"path": str(path)}) from e
        except OSError as e:
            raise VaultStorageError(
                f"Failed to read artifact: {e}", {"path": str(path)}
            ) from e

    def exists(self, key: str) -> bool:
        """Check if artifact exists on filesystem."""
        return self._get_path(key).is_file()

    def delete(self, key: str) -> bool:
        """Delete artifact from filesystem."""
        path = self._get_path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise VaultStorageError(
                f"Failed to delete artifact: {e}", {"path": str(path)}
            ) from e
        logger.debug(f"Deleted artifact: {path}")
        return True


class InMemoryStorageBackend(StorageBackend):
    """
    In-memory storage backend.

    Stores artifacts in a dictionary. Useful for testing or ephemeral vaults.
    Data is lost when the backend is garbage collected.
    """

    def __init__(self):
        """Initialize in-memory storage backend."""
        self._storage: Dict[str, bytes] = {}
        self._lock = threading.Lock()
        logger.debug("InMemoryStorageBackend initialized")

    def describe(self, key: str) -> str:
        return f"memory://{key}"

    def write(self, key: str, data: bytes) -> str:
        """Write artifact to memory."""
        with self._lock:
            self._storage[key] = bytes(data)
        logger.debug(f"Wrote {len(data)} bytes to memory://{key}")
        return self.describe(key)

    def read(self, key: str) -> bytes:
        """Read artifact from memory."""
        with self._lock:
            if key not in self._storage:
                raise NotFoundError(
                    f"{self.describe(key)} not found.", {"path": self.describe(key)}
                )
            return self._storage[key]

    def exists(self, key: str) -> bool:
        """Check if artifact exists in memory."""
        with self._lock:
            return key in self._storage

    def delete(self, key: str) -> bool:
        """Delete artifact from memory."""
        with self._lock:
            return self._storage.pop(key, None) is not None

    def clear(self) -> int:
        """Clear all artifacts from memory. Returns count of artifacts cleared."""
        with self._lock:
            count = len(self._storage)
            self._storage.clear()
        return count
