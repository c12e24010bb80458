"""
Storage Backend Interface
=========================

Abstract interface for vault storage backends.

A backend stores opaque artifact bytes under a string key. The vault derives
the key from a logical name plus its file extension; the backend maps the key
to a location (file path, URL, object key).
"""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class StorageBackend(ABC):
    """
    Abstract base class for vault storage backends.

    Implementations must:
    - overwrite any existing artifact on ``write``
    - raise ``NotFoundError`` from ``read`` when the key does not exist
    - raise ``VaultStorageError`` (or a subclass) for any other failure
    """

    @abstractmethod
    def write(self, key: str, data: bytes) -> str:
        """
        Write artifact bytes, replacing any previous artifact.

        Args:
            key: Storage key (logical name plus extension)
            data: Raw bytes to store

        Returns:
            Location (path/URL) where the artifact was written
        """
        pass

    @abstractmethod
    def read(self, key: str) -> bytes:
        """
        Read artifact bytes.

        Raises:
            NotFoundError: If no artifact exists under ``key``
        """
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check if an artifact exists under ``key``."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete an artifact.

        Returns:
            True if the artifact was deleted, False if it didn't exist
        """
        pass

    def describe(self, key: str) -> str:
        """Full location of ``key``, for messages and logs."""
        return key

    def close(self) -> None:
        """
        Close and clean up any resources.

        Default implementation does nothing. Override in backends that
        hold connections or other resources.
        """
        pass

    def __enter__(self):
        """Support context manager protocol."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Ensure resources are cleaned up."""
        self.close()
        return False
