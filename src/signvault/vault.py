"""
Vault Facade
============

A vault pairs a serialization codec with a storage backend and exposes
``save``/``load`` by logical name.

- SignedJsonVault: JSON documents signed with HMAC-SHA256. Loading verifies
  the signature before anything is deserialized.
- BinaryVault: compact binary payloads (pickle + blosc2), unsigned.

Save path: object -> document -> signed document -> canonical bytes -> storage
Load path: storage -> bytes -> verified document -> object

Vaults keep no state between calls apart from the immutable signing secret,
so concurrent calls on different names are independent. Concurrent saves to
the same name are last-writer-wins; no locking or versioning is done.

Usage:
    from signvault import local_json_vault

    vault = local_json_vault("/var/lib/app", secret="mySecret", target_type=Settings)
    vault.save(settings, "settings")        # writes /var/lib/app/settings.json
    settings = vault.load("settings")       # raises InvalidSignatureError if tampered
"""

import logging
from typing import Any, Dict, Optional, Type

from .codecs import BinaryCodec, Codec, JsonCodec, from_document
from .config import VaultConfig
from .documents import (
    SIGNATURE_FIELD,
    canonical_bytes,
    parse_document,
    with_field,
    without_field,
)
from .error_handling import (
    InvalidSignatureError,
    SerializationError,
    VaultError,
    VaultResult,
    vault_operation_context,
)
from .security import DocumentSigner, Secret
from .storage.backends import (
    FilesystemStorageBackend,
    HttpStorageBackend,
    StorageBackend,
    get_storage_backend,
)

logger = logging.getLogger(__name__)


class Vault:
    """
    Save/load facade generic over a storage backend and a codec.

    Subclasses customize ``_serialize`` and ``_deserialize``; the key
    derivation, storage calls, logging and result variants live here.
    """

    def __init__(self, storage: StorageBackend, codec: Codec, extension: str):
        extension = (extension or "").lstrip(".")
        if not extension:
            raise ValueError("extension must not be empty")
        self.storage = storage
        self.codec = codec
        self.extension = extension

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(storage={type(self.storage).__name__}, "
            f"extension={self.extension!r})"
        )

    def path(self, filename: str) -> str:
        """
        Storage key for a logical name: ``{filename}.{extension}``.

        Raises:
            ValueError: If filename is empty or already carries the extension
        """
        if not isinstance(filename, str) or not filename:
            raise ValueError("filename must be a non-empty string")
        if filename.endswith(f".{self.extension}"):
            raise ValueError(
                f"filename must not include the '.{self.extension}' extension: {filename!r}"
            )
        return f"{filename}.{self.extension}"

    def _serialize(self, data: Any) -> bytes:
        return self.codec.encode(data)

    def _deserialize(self, data: bytes) -> Any:
        return self.codec.decode(data)

    def save(self, data: Any, filename: str) -> str:
        """
        Serialize ``data`` and store it under ``filename``.

        Any previous artifact under the same name is overwritten.

        Returns:
            Location the artifact was written to

        Raises:
            SerializationError: If the object cannot be represented
            VaultStorageError: If the backend write fails
        """
        key = self.path(filename)
        with vault_operation_context("save", key=key):
            payload = self._serialize(data)
            location = self.storage.write(key, payload)
        logger.debug(f"Saved {key} ({len(payload)} bytes)")
        return location

    def load(self, filename: str) -> Any:
        """
        Load the artifact stored under ``filename``.

        Raises:
            NotFoundError: If no artifact exists
            VaultStorageError: If the backend read fails
            DeserializationError: If the payload does not match the target type
        """
        key = self.path(filename)
        with vault_operation_context("load", key=key):
            payload = self.storage.read(key)
            return self._deserialize(payload)

    def exists(self, filename: str) -> bool:
        """Check whether an artifact is stored under ``filename``."""
        return self.storage.exists(self.path(filename))

    def delete(self, filename: str) -> bool:
        """Delete the artifact stored under ``filename``."""
        return self.storage.delete(self.path(filename))

    def try_save(self, data: Any, filename: str) -> VaultResult:
        """Like ``save`` but returns a VaultResult instead of raising VaultError."""
        try:
            return VaultResult.success(self.save(data, filename))
        except VaultError as e:
            return VaultResult.failure(e)

    def try_load(self, filename: str) -> VaultResult:
        """Like ``load`` but returns a VaultResult instead of raising VaultError."""
        try:
            return VaultResult.success(self.load(filename))
        except VaultError as e:
            return VaultResult.failure(e)

    def close(self) -> None:
        """Release the storage backend."""
        self.storage.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class SignedJsonVault(Vault):
    """
    Vault storing objects as signed JSON documents.

    The stored document holds the object's fields followed by a
    ``signature`` field: the base64 HMAC-SHA256 of the canonical bytes of the
    document without that field.
    """

    def __init__(
        self,
        storage: StorageBackend,
        secret: Secret,
        target_type: Optional[Type] = None,
        extension: str = "json",
        strict_canonical: bool = True,
    ):
        """
        Args:
            storage: Backend the documents are stored in
            secret: Secret used to create and validate signatures
            target_type: Type documents are loaded into (None loads dicts)
            extension: File extension without leading dot
            strict_canonical: Reject artifacts whose bytes are not exactly
                the canonical encoding, so that any byte change is detected
        """
        super().__init__(storage, JsonCodec(target_type), extension)
        self._signer = DocumentSigner(secret)
        self.strict_canonical = strict_canonical

    def _serialize(self, data: Any) -> bytes:
        document = self.codec.to_document(data)
        if SIGNATURE_FIELD in document:
            raise SerializationError(
                f"Field '{SIGNATURE_FIELD}' is reserved for the document signature",
                {"type": type(data).__name__},
            )

        signature = self._signer.sign_document(document)
        return canonical_bytes(with_field(document, SIGNATURE_FIELD, signature))

    def _deserialize(self, data: bytes) -> Any:
        document = parse_document(data)
        self._signer.verify_document(document)

        if self.strict_canonical and canonical_bytes(document) != bytes(data):
            raise InvalidSignatureError(
                "Artifact bytes are not in canonical form", {"size": len(data)}
            )

        return from_document(self.codec.target_type, without_field(document, SIGNATURE_FIELD))


class BinaryVault(Vault):
    """
    Vault storing objects in a compact binary format (pickle + blosc2).

    Binary artifacts are not signed; only use this vault with storage you
    trust.
    """

    def __init__(
        self,
        storage: StorageBackend,
        target_type: Optional[Type] = None,
        extension: str = "bin",
        codec: str = "zstd",
        clevel: int = 5,
    ):
        super().__init__(storage, BinaryCodec(target_type, codec=codec, clevel=clevel), extension)


# =============================================================================
# Factories
# =============================================================================


def create_vault(config: VaultConfig, target_type: Optional[Type] = None) -> Vault:
    """
    Build a vault from configuration.

    Raises:
        VaultConfigurationError: If a signed vault has no resolvable secret
        ValueError: If the storage backend cannot be created
    """
    storage = get_storage_backend(
        config.storage.backend, **config.storage.backend_options()
    )

    if config.format == "binary":
        return BinaryVault(
            storage,
            target_type=target_type,
            extension=config.extension,
            codec=config.compression_codec,
            clevel=config.compression_level,
        )

    return SignedJsonVault(
        storage,
        config.security.resolve_secret(),
        target_type=target_type,
        extension=config.extension,
        strict_canonical=config.security.strict_canonical,
    )


def local_json_vault(
    base_dir: str, secret: Secret, target_type: Optional[Type] = None, **kwargs
) -> SignedJsonVault:
    """Signed JSON vault on the local filesystem."""
    return SignedJsonVault(FilesystemStorageBackend(base_dir), secret, target_type, **kwargs)


def local_binary_vault(
    base_dir: str, target_type: Optional[Type] = None, extension: str = "bin", **kwargs
) -> BinaryVault:
    """Binary vault on the local filesystem."""
    return BinaryVault(FilesystemStorageBackend(base_dir), target_type, extension, **kwargs)


def http_json_vault(
    url: Optional[str],
    secret: Secret,
    target_type: Optional[Type] = None,
    http_options: Optional[Dict[str, Any]] = None,
    **kwargs,
) -> SignedJsonVault:
    """Signed JSON vault on an HTTP endpoint (see HttpStorageBackend options)."""
    return SignedJsonVault(
        HttpStorageBackend(base_url=url, **(http_options or {})), secret, target_type, **kwargs
    )


def http_binary_vault(
    url: Optional[str],
    target_type: Optional[Type] = None,
    extension: str = "bin",
    http_options: Optional[Dict[str, Any]] = None,
    **kwargs,
) -> BinaryVault:
    """Binary vault on an HTTP endpoint (see HttpStorageBackend options)."""
    return BinaryVault(
        HttpStorageBackend(base_url=url, **(http_options or {})), target_type, extension, **kwargs
    )
