"""
Document Signing and Verification
=================================

This module provides cryptographic signing for vault documents to detect
tampering. Uses HMAC-SHA256 over the canonical bytes of a document.

Security Model:
- Signs the canonical bytes of the document without the reserved
  ``signature`` field
- Stores the base64 tag in the reserved field, appended last
- Verifies with constant-time comparison over the full tag
- The secret lives only inside the signer; it is never logged or persisted
"""

import base64
import binascii
import hashlib
import hmac
import logging
from pathlib import Path
from typing import Union

from .documents import SIGNATURE_FIELD, Document, canonical_bytes, without_field
from .error_handling import InvalidSignatureError, VaultConfigurationError

logger = logging.getLogger(__name__)

Secret = Union[str, bytes]

DIGEST = hashlib.sha256
TAG_SIZE = DIGEST().digest_size  # 32 bytes


def _secret_bytes(secret: Secret) -> bytes:
    if isinstance(secret, str):
        secret = secret.encode("utf-8")
    if not isinstance(secret, (bytes, bytearray)):
        raise TypeError(f"Secret must be str or bytes, got {type(secret).__name__}")
    if not secret:
        raise ValueError("Secret must not be empty")
    return bytes(secret)


def sign(data: bytes, secret: Secret) -> bytes:
    """
    Compute the HMAC-SHA256 tag of ``data``.

    Args:
        data: Canonical document bytes
        secret: Shared secret (str secrets are UTF-8 encoded)

    Returns:
        Raw 32-byte tag
    """
    return hmac.new(_secret_bytes(secret), data, DIGEST).digest()


def verify(data: bytes, secret: Secret, tag: bytes) -> bool:
    """Recompute the tag of ``data`` and compare it in constant time."""
    expected = sign(data, secret)
    return hmac.compare_digest(expected, bytes(tag))


def encode_tag(tag: bytes) -> str:
    """Encode a raw tag as base64 text."""
    return base64.b64encode(tag).decode("ascii")


def decode_tag(text: str) -> bytes:
    """
    Decode base64 tag text back to raw bytes.

    Raises:
        InvalidSignatureError: If the text is empty, not strict base64, or
            does not decode to a full-length tag
    """
    if not isinstance(text, str) or not text:
        raise InvalidSignatureError("Signature is missing or empty")
    try:
        tag = base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise InvalidSignatureError(f"Signature is not valid base64: {e}") from e
    if len(tag) != TAG_SIZE:
        raise InvalidSignatureError(
            f"Signature has wrong length ({len(tag)} bytes, expected {TAG_SIZE})"
        )
    # Unused trailing bits must be zero so each tag has a single text form
    if encode_tag(tag) != text:
        raise InvalidSignatureError("Signature is not canonical base64")
    return tag


def load_secret(key_file_path: Union[str, Path]) -> bytes:
    """
    Read a signing secret from a key file.

    A single trailing newline is stripped so keys written with ``echo`` work.
    The library never generates or writes secrets.

    Raises:
        VaultConfigurationError: If the file is missing, unreadable or empty
    """
    path = Path(key_file_path)
    try:
        key = path.read_bytes()
    except OSError as e:
        raise VaultConfigurationError(
            f"Failed to read signing key: {e}", {"key_file": str(path)}
        ) from e

    if key.endswith(b"\r\n"):
        key = key[:-2]
    elif key.endswith(b"\n"):
        key = key[:-1]

    if not key:
        raise VaultConfigurationError(
            "Signing key file is empty", {"key_file": str(path)}
        )
    logger.debug(f"Loaded signing key from {path}")
    return key


class DocumentSigner:
    """
    HMAC-based document signer owned by a single vault.

    Holds the secret for the lifetime of the vault and signs/verifies
    documents through their canonical bytes.
    """

    def __init__(self, secret: Secret):
        """
        Initialize the document signer.

        Args:
            secret: Shared secret used to create and validate signatures

        Raises:
            ValueError: If the secret is empty
        """
        self._secret = _secret_bytes(secret)
        logger.debug("Document signer initialized")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(secret=<hidden>)"

    def sign(self, data: bytes) -> bytes:
        """Sign raw bytes."""
        return sign(data, self._secret)

    def verify(self, data: bytes, tag: bytes) -> bool:
        """Verify a raw tag over raw bytes."""
        return verify(data, self._secret, tag)

    def sign_document(self, document: Document) -> str:
        """
        Create the base64 signature for a document.

        The reserved field is excluded from the signed bytes, so re-signing
        an already signed document yields the same tag.
        """
        payload = canonical_bytes(without_field(document, SIGNATURE_FIELD))
        return encode_tag(self.sign(payload))

    def verify_document(self, document: Document) -> None:
        """
        Verify the signature embedded in a document.

        Raises:
            InvalidSignatureError: If the reserved field is absent, empty,
                undecodable, or does not match the document
        """
        if SIGNATURE_FIELD not in document:
            raise InvalidSignatureError("Signature field not found in document")

        tag = decode_tag(document[SIGNATURE_FIELD])
        payload = canonical_bytes(without_field(document, SIGNATURE_FIELD))

        if not self.verify(payload, tag):
            logger.warning("Signature verification failed: document was tampered with")
            raise InvalidSignatureError(
                "Signature does not match document", {"payload_size": len(payload)}
            )
        logger.debug("Signature verified")
