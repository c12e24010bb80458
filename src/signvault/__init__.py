"""
signvault - Signed persistence for typed Python objects.

A vault serializes an object, signs it with HMAC-SHA256, and stores it via a
pluggable backend (local filesystem, HTTP, S3, in-memory). Loading verifies
the signature before the data is used, so tampered artifacts are rejected.

Key Features:
- Signed JSON documents with a byte-exact canonical form
- Constant-time signature verification
- Compact binary vault (pickle + blosc2) for trusted storage
- Pluggable storage backends with a registry
- Result-style ``try_save``/``try_load`` alongside exception-raising calls

Quick Start:
    >>> from signvault import local_json_vault
    >>>
    >>> vault = local_json_vault("/tmp/vault", secret="mySecret")
    >>> location = vault.save({"randomString": "abc123XYZ9", "randomNumber": 42}, "data")
    >>> vault.load("data")
    {'randomString': 'abc123XYZ9', 'randomNumber': 42}
"""

from .config import SecurityConfig, StorageConfig, VaultConfig, create_vault_config
from .documents import (
    SIGNATURE_FIELD,
    canonical_bytes,
    parse_document,
    with_field,
    without_field,
)
from .error_handling import (
    DeserializationError,
    ErrorKind,
    HttpResponseError,
    InvalidSignatureError,
    MalformedDocumentError,
    NotFoundError,
    SerializationError,
    VaultConfigurationError,
    VaultError,
    VaultResult,
    VaultStorageError,
)
from .security import DocumentSigner, load_secret, sign, verify
from .storage.backends import (
    FilesystemStorageBackend,
    HttpStorageBackend,
    InMemoryStorageBackend,
    StorageBackend,
    get_storage_backend,
    register_storage_backend,
)
from .vault import (
    BinaryVault,
    SignedJsonVault,
    Vault,
    create_vault,
    http_binary_vault,
    http_json_vault,
    local_binary_vault,
    local_json_vault,
)

__version__ = "0.1.0"

__all__ = [
    # Vaults
    "Vault",
    "SignedJsonVault",
    "BinaryVault",
    "create_vault",
    "local_json_vault",
    "local_binary_vault",
    "http_json_vault",
    "http_binary_vault",
    # Configuration
    "VaultConfig",
    "StorageConfig",
    "SecurityConfig",
    "create_vault_config",
    # Documents and signing
    "SIGNATURE_FIELD",
    "parse_document",
    "canonical_bytes",
    "with_field",
    "without_field",
    "DocumentSigner",
    "sign",
    "verify",
    "load_secret",
    # Storage
    "StorageBackend",
    "FilesystemStorageBackend",
    "InMemoryStorageBackend",
    "HttpStorageBackend",
    "get_storage_backend",
    "register_storage_backend",
    # Errors
    "VaultError",
    "VaultConfigurationError",
    "VaultStorageError",
    "NotFoundError",
    "HttpResponseError",
    "MalformedDocumentError",
    "InvalidSignatureError",
    "SerializationError",
    "DeserializationError",
    "ErrorKind",
    "VaultResult",
    # Version info
    "__version__",
]
