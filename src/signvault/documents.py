"""
Canonical Document Editor
=========================

Field-level editing of structured (JSON object) documents with a byte-exact
serialized form. Signatures are computed over these bytes, so every function
here must be deterministic: no key reordering, no whitespace, same output for
the same input on every platform.

Documents are plain dicts; Python dicts keep insertion order, which is the
field order of the serialized form.

Usage:
    from signvault.documents import parse_document, with_field, canonical_bytes

    doc = parse_document(b'{"a":1,"b":2}')
    signed = with_field(doc, "signature", "...")
    canonical_bytes(signed)  # b'{"a":1,"b":2,"signature":"..."}'
"""

import logging
from typing import Any, Dict, Union

from . import json_utils
from .error_handling import MalformedDocumentError, SerializationError

logger = logging.getLogger(__name__)

Document = Dict[str, Any]

# Reserved field carrying the document signature
SIGNATURE_FIELD = "signature"


def _check_name(name: str) -> None:
    if not isinstance(name, str) or not name:
        raise ValueError(f"Field name must be a non-empty string, got {name!r}")


def parse_document(data: Union[bytes, str]) -> Document:
    """
    Parse serialized input into a document.

    Args:
        data: JSON text or UTF-8 bytes

    Returns:
        Ordered document (dict)

    Raises:
        MalformedDocumentError: If the input is not valid JSON or the
            top-level value is not an object
    """
    try:
        document = json_utils.loads(data)
    except json_utils.JSONDecodeError as e:
        raise MalformedDocumentError(
            f"Document is not well-formed JSON: {e}", {"size": len(data)}
        ) from e

    if not isinstance(document, dict):
        raise MalformedDocumentError(
            f"Document must be a JSON object, got {type(document).__name__}",
            {"size": len(data)},
        )
    return document


def canonical_bytes(document: Document) -> bytes:
    """
    Serialize a document to its canonical bytes.

    Raises:
        SerializationError: If a value cannot be represented as JSON
    """
    try:
        return json_utils.dumps(document)
    except json_utils.JSONEncodeError as e:
        raise SerializationError(f"Document cannot be serialized: {e}") from e


def is_canonical(data: bytes) -> bool:
    """Check whether ``data`` is exactly the canonical encoding of itself."""
    return canonical_bytes(parse_document(data)) == bytes(data)


def with_field(document: Document, name: str, value: Any) -> Document:
    """
    Return a copy of ``document`` with ``name`` set to ``value``.

    An existing field keeps its position; a new field is appended last.
    The input document is not modified.
    """
    _check_name(name)
    result = dict(document)
    result[name] = value
    return result


def without_field(document: Document, name: str) -> Document:
    """Return a copy of ``document`` without ``name`` (no-op if absent)."""
    _check_name(name)
    return {key: value for key, value in document.items() if key != name}


def rewrite_with_field(data: Union[bytes, str], name: str, value: Any) -> bytes:
    """Parse ``data``, set ``name`` and return the canonical bytes."""
    return canonical_bytes(with_field(parse_document(data), name, value))


def rewrite_without_field(data: Union[bytes, str], name: str) -> bytes:
    """Parse ``data``, drop ``name`` and return the canonical bytes."""
    return canonical_bytes(without_field(parse_document(data), name))
