"""
Storage Backends
================

Pluggable backends that persist vault artifacts:

- FilesystemStorageBackend: Local filesystem storage (default)
- InMemoryStorageBackend: In-memory storage for testing
- HttpStorageBackend: Remote HTTP endpoint (requests)
- S3StorageBackend: S3/MinIO object storage (requires boto3)

Registry APIs: register_storage_backend(), get_storage_backend(),
list_storage_backends(), unregister_storage_backend()
"""

from .base import StorageBackend
from .http_backend import HttpStorageBackend
from .local import FilesystemStorageBackend, InMemoryStorageBackend
from .registry import (
    get_storage_backend,
    list_storage_backends,
    register_storage_backend,
    unregister_storage_backend,
)
from .s3_backend import BOTO3_AVAILABLE, S3StorageBackend

__all__ = [
    "StorageBackend",
    "FilesystemStorageBackend",
    "InMemoryStorageBackend",
    "HttpStorageBackend",
    "S3StorageBackend",
    "BOTO3_AVAILABLE",
    "register_storage_backend",
    "unregister_storage_backend",
    "get_storage_backend",
    "list_storage_backends",
]
