"""
Serialization Codecs
====================

Codecs convert typed Python objects to stored bytes and back. Two formats
are provided:

- JsonCodec: structured text (JSON via orjson). The only format that supports
  field-level editing, and therefore the only one that is signed.
- BinaryCodec: compact binary (pickle compressed with blosc2).

Typed objects are dataclasses (coerced field by field from their type
hints), classes exposing ``to_dict``/``from_dict``, or plain dicts.
"""

import dataclasses
import logging
import pickle
import types
import typing
import uuid
from abc import ABC, abstractmethod
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Type

from . import json_utils
from .compression import compress_bytes, decompress_bytes, validate_compression
from .documents import Document, parse_document
from .error_handling import (
    DeserializationError,
    MalformedDocumentError,
    SerializationError,
    VaultError,
)

logger = logging.getLogger(__name__)

_UNION_TYPES = tuple(
    t for t in (typing.Union, getattr(types, "UnionType", None)) if t is not None
)


class Codec(ABC):
    """Abstract encode/decode contract for vault payloads."""

    def __init__(self, target_type: Optional[Type] = None):
        self.target_type = target_type

    @abstractmethod
    def encode(self, obj: Any) -> bytes:
        """Encode an object to bytes."""
        pass

    @abstractmethod
    def decode(self, data: bytes) -> Any:
        """Decode bytes back into ``target_type``."""
        pass


# =============================================================================
# Document -> typed object conversion
# =============================================================================


def _json_default(obj: Any) -> Any:
    """orjson fallback for objects exposing ``to_dict``."""
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        data = to_dict()
        json_utils.ensure_finite(data, type(obj).__name__)
        return data
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def _coerce(tp: Any, value: Any, path: str) -> Any:
    """Convert a JSON value to the Python type described by ``tp``."""
    if tp is Any or tp is None:
        return value

    origin = typing.get_origin(tp)
    args = typing.get_args(tp)

    if origin in _UNION_TYPES:
        if value is None and type(None) in args:
            return None
        errors = []
        for arg in args:
            if arg is type(None):
                continue
            try:
                return _coerce(arg, value, path)
            except (TypeError, ValueError, AttributeError) as e:
                errors.append(str(e))
        raise TypeError(f"{path}: no matching type in {tp} ({'; '.join(errors)})")

    if origin in (list, tuple, set, frozenset):
        if not isinstance(value, list):
            raise TypeError(f"{path}: expected list, got {type(value).__name__}")
        if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
            args = (args[0],)
        if origin is tuple and len(args) > 1:
            if len(args) != len(value):
                raise TypeError(f"{path}: expected {len(args)} items, got {len(value)}")
            return tuple(
                _coerce(arg, item, f"{path}[{i}]")
                for i, (arg, item) in enumerate(zip(args, value))
            )
        item_type = args[0] if args else Any
        items = [_coerce(item_type, item, f"{path}[{i}]") for i, item in enumerate(value)]
        return origin(items)

    if origin is dict:
        if not isinstance(value, dict):
            raise TypeError(f"{path}: expected object, got {type(value).__name__}")
        value_type = args[1] if len(args) == 2 else Any
        return {k: _coerce(value_type, v, f"{path}.{k}") for k, v in value.items()}

    if origin is not None:
        # Other generics (Literal, Annotated, ...) are passed through
        return value

    if dataclasses.is_dataclass(tp):
        if not isinstance(value, dict):
            raise TypeError(f"{path}: expected object, got {type(value).__name__}")
        return _build_dataclass(tp, value, path)

    if tp is datetime:
        if isinstance(value, datetime):
            return value
        if not isinstance(value, str):
            raise TypeError(f"{path}: expected ISO datetime string")
        return datetime.fromisoformat(value.replace("Z", "+00:00"))

    if tp is date:
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
        if not isinstance(value, str):
            raise TypeError(f"{path}: expected ISO date string")
        return date.fromisoformat(value)

    if isinstance(tp, type) and issubclass(tp, Enum):
        return tp(value)

    if tp is uuid.UUID:
        if isinstance(value, uuid.UUID):
            return value
        if not isinstance(value, str):
            raise TypeError(f"{path}: expected UUID string, got {type(value).__name__}")
        return uuid.UUID(value)

    if tp is bool:
        if not isinstance(value, bool):
            raise TypeError(f"{path}: expected bool, got {type(value).__name__}")
        return value

    if tp is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"{path}: expected int, got {type(value).__name__}")
        return value

    if tp is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"{path}: expected number, got {type(value).__name__}")
        return float(value)

    if tp is str:
        if not isinstance(value, str):
            raise TypeError(f"{path}: expected str, got {type(value).__name__}")
        return value

    if tp is dict or tp is list:
        if not isinstance(value, tp):
            raise TypeError(f"{path}: expected {tp.__name__}, got {type(value).__name__}")
        return value

    from_dict = getattr(tp, "from_dict", None)
    if callable(from_dict):
        return from_dict(value)

    return value


def _build_dataclass(cls: Type, data: Dict[str, Any], path: str) -> Any:
    hints = typing.get_type_hints(cls)
    init_fields = {f.name: f for f in dataclasses.fields(cls) if f.init}

    unknown = set(data) - set(init_fields)
    if unknown:
        raise TypeError(f"{path}: unexpected fields {sorted(unknown)}")

    kwargs = {
        name: _coerce(hints.get(name, Any), value, f"{path}.{name}")
        for name, value in data.items()
    }
    return cls(**kwargs)


def from_document(target_type: Optional[Type], document: Document) -> Any:
    """
    Convert a parsed document into ``target_type``.

    Args:
        target_type: Dataclass, class with ``from_dict``, ``dict`` or None
        document: Parsed document without the reserved signature field

    Raises:
        DeserializationError: If the document shape does not match the type
    """
    if target_type is None or target_type is dict:
        return document

    name = getattr(target_type, "__name__", str(target_type))
    try:
        if dataclasses.is_dataclass(target_type):
            return _build_dataclass(target_type, document, name)
        from_dict = getattr(target_type, "from_dict", None)
        if callable(from_dict):
            return from_dict(document)
        return target_type(**document)
    except VaultError:
        raise
    except (TypeError, ValueError, KeyError, AttributeError) as e:
        raise DeserializationError(
            f"Document does not match {name}: {e}", {"target_type": name}
        ) from e


# =============================================================================
# Codecs
# =============================================================================


class JsonCodec(Codec):
    """Structured-text codec backed by orjson."""

    def encode(self, obj: Any) -> bytes:
        """
        Encode an object to compact JSON bytes.

        Raises:
            SerializationError: On unsupported types, cycles or integers
                outside the 64-bit range
        """
        try:
            return json_utils.dumps(obj, default=_json_default)
        except json_utils.JSONEncodeError as e:
            raise SerializationError(
                f"Object cannot be serialized to JSON: {e}",
                {"type": type(obj).__name__},
            ) from e

    def to_document(self, obj: Any) -> Document:
        """
        Encode an object and parse it back into an editable document.

        Raises:
            SerializationError: If encoding fails or the top level is not
                a JSON object
        """
        data = self.encode(obj)
        try:
            return parse_document(data)
        except MalformedDocumentError as e:
            raise SerializationError(
                "Object must serialize to a JSON object to be stored",
                {"type": type(obj).__name__},
            ) from e

    def decode(self, data: bytes) -> Any:
        """
        Decode JSON bytes into ``target_type``.

        Raises:
            MalformedDocumentError: If the bytes are not a JSON object
            DeserializationError: If the document does not fit the type
        """
        return from_document(self.target_type, parse_document(data))


class BinaryCodec(Codec):
    """
    Compact binary codec: pickle compressed with blosc2.

    Binary payloads are not signed. Only load them from storage you trust,
    since unpickling can execute code.
    """

    def __init__(
        self, target_type: Optional[Type] = None, codec: str = "zstd", clevel: int = 5
    ):
        super().__init__(target_type)
        validate_compression(codec, clevel)
        self.codec = codec
        self.clevel = clevel

    def encode(self, obj: Any) -> bytes:
        """
        Pickle and compress an object.

        Raises:
            SerializationError: If the object cannot be pickled
        """
        try:
            payload = pickle.dumps(obj, protocol=pickle.HIGHEST_PROTOCOL)
        except (pickle.PicklingError, TypeError, AttributeError, RecursionError) as e:
            raise SerializationError(
                f"Object cannot be pickled: {e}", {"type": type(obj).__name__}
            ) from e
        return compress_bytes(payload, codec=self.codec, clevel=self.clevel)

    def decode(self, data: bytes) -> Any:
        """
        Decompress and unpickle a payload.

        Raises:
            DeserializationError: If the payload is corrupt or of the
                wrong type
        """
        payload = decompress_bytes(data)
        try:
            obj = pickle.loads(payload)
        except Exception as e:
            raise DeserializationError(f"Payload cannot be unpickled: {e}") from e

        if self.target_type is not None and not isinstance(obj, self.target_type):
            raise DeserializationError(
                f"Expected {self.target_type.__name__}, got {type(obj).__name__}",
                {"target_type": self.target_type.__name__},
            )
        return obj
