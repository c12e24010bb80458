"""
Storage Layer
=============

Byte-level artifact storage used by vaults. Backends know nothing about
documents or signatures; they only write, read, check and delete bytes.

Usage:
    from signvault.storage import get_storage_backend

    backend = get_storage_backend("filesystem", base_dir="./vault")
    backend.write("settings.json", data)
"""

from .backends import (
    FilesystemStorageBackend,
    HttpStorageBackend,
    InMemoryStorageBackend,
    S3StorageBackend,
    StorageBackend,
    get_storage_backend,
    list_storage_backends,
    register_storage_backend,
    unregister_storage_backend,
)

__all__ = [
    "StorageBackend",
    "FilesystemStorageBackend",
    "InMemoryStorageBackend",
    "HttpStorageBackend",
    "S3StorageBackend",
    "register_storage_backend",
    "unregister_storage_backend",
    "get_storage_backend",
    "list_storage_backends",
]
