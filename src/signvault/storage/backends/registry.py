"""
Storage Backend Registry
========================

Maps backend names to StorageBackend classes so vaults can be built from
configuration.

Usage:
    from signvault.storage.backends import (
        register_storage_backend,
        get_storage_backend,
        list_storage_backends,
    )

    backend = get_storage_backend("filesystem", base_dir="./vault")

    class RedisStorageBackend(StorageBackend):
        ...

    register_storage_backend("redis", RedisStorageBackend)
"""

import logging
from typing import Any, Dict, List, Type

from .base import StorageBackend
from .http_backend import HttpStorageBackend
from .local import FilesystemStorageBackend, InMemoryStorageBackend
from .s3_backend import BOTO3_AVAILABLE, S3StorageBackend

logger = logging.getLogger(__name__)

_storage_backend_registry: Dict[str, Type[StorageBackend]] = {}
_builtin_storage_backends = {"filesystem", "memory", "http", "s3"}


def _initialize_builtin_storage_backends():
    """Initialize registry with built-in backends."""
    _storage_backend_registry["filesystem"] = FilesystemStorageBackend
    _storage_backend_registry["memory"] = InMemoryStorageBackend
    _storage_backend_registry["http"] = HttpStorageBackend
    if BOTO3_AVAILABLE:
        _storage_backend_registry["s3"] = S3StorageBackend


# Initialize on module load
_initialize_builtin_storage_backends()


def register_storage_backend(
    name: str, backend_class: Type[StorageBackend], force: bool = False
) -> None:
    """
    Register a custom storage backend.

    Args:
        name: Unique name for the backend (e.g., "redis", "gcs")
        backend_class: Class that implements the StorageBackend interface
        force: If True, overwrite existing registration

    Raises:
        ValueError: If name already registered and force=False
        ValueError: If backend_class doesn't inherit from StorageBackend
    """
    if not isinstance(backend_class, type):
        raise ValueError(f"backend_class must be a class, got {type(backend_class)}")

    if not issubclass(backend_class, StorageBackend):
        raise ValueError(
            f"Backend class {backend_class.__name__} must inherit from StorageBackend"
        )

    if name in _storage_backend_registry and not force:
        raise ValueError(
            f"Storage backend '{name}' already registered. "
            f"Use force=True to overwrite or unregister_storage_backend() first."
        )

    _storage_backend_registry[name] = backend_class
    logger.info(f"Registered storage backend '{name}' ({backend_class.__name__})")


def unregister_storage_backend(name: str) -> bool:
    """
    Unregister a storage backend.

    Returns:
        True if backend was unregistered, False if not found
    """
    if name in _storage_backend_registry:
        del _storage_backend_registry[name]
        logger.info(f"Unregistered storage backend '{name}'")
        return True

    logger.warning(f"Storage backend '{name}' not found for unregistration")
    return False


def get_storage_backend(name: str, **options) -> StorageBackend:
    """
    Get a storage backend instance by name.

    Args:
        name: Name of the registered backend
        **options: Backend-specific configuration options

    Raises:
        ValueError: If backend name not registered or options are invalid
    """
    if name not in _storage_backend_registry:
        available = list(_storage_backend_registry.keys())
        raise ValueError(
            f"Unknown storage backend: '{name}'. Available backends: {available}"
        )

    backend_class = _storage_backend_registry[name]

    try:
        return backend_class(**options)
    except TypeError as e:
        raise ValueError(
            f"Failed to create storage backend '{name}' with options {options}: {e}"
        ) from e


def list_storage_backends() -> List[Dict[str, Any]]:
    """
    List all registered storage backends.

    Returns:
        List of dictionaries with ``name``, ``class`` and ``is_builtin``,
        built-in backends first
    """
    result = []

    for name in sorted(_builtin_storage_backends):
        if name in _storage_backend_registry:
            result.append(
                {
                    "name": name,
                    "class": _storage_backend_registry[name].__name__,
                    "is_builtin": True,
                }
            )

    for name in sorted(_storage_backend_registry.keys()):
        if name not in _builtin_storage_backends:
            result.append(
                {
                    "name": name,
                    "class": _storage_backend_registry[name].__name__,
                    "is_builtin": False,
                }
            )

    return result
