"""
Canonical JSON Utilities
========================

Thin orjson wrappers producing the canonical byte encoding that signatures
are computed over: compact separators, insertion-ordered keys, UTF-8 output.

orjson is a hard requirement. The built-in json module emits different bytes
for the same document (separators, float spelling, escapes), which would make
previously written signatures unverifiable.
"""

import dataclasses
import math
from enum import Enum
from typing import Any, Callable, Optional, Set, Union

import orjson

# Exceptions raised by orjson on failure
JSONEncodeError = orjson.JSONEncodeError
JSONDecodeError = orjson.JSONDecodeError

# orjson refuses to serialize deeper nesting than this
_MAX_DEPTH = 255


def dumps(obj: Any, default: Optional[Callable[[Any], Any]] = None) -> bytes:
    """
    Serialize object to canonical JSON bytes.

    Args:
        obj: Object to serialize (dataclasses, dates and enums are native)
        default: Function to handle otherwise non-serializable objects

    Returns:
        JSON bytes

    Raises:
        JSONEncodeError: On unsupported types, cycles, out-of-range integers
            or non-finite floats
    """
    ensure_finite(obj)
    return orjson.dumps(obj, default=default)


def loads(s: Union[str, bytes, bytearray, memoryview]) -> Any:
    """Deserialize JSON text or bytes."""
    return orjson.loads(s)


def ensure_finite(obj: Any, path: str = "$", _active: Optional[Set[int]] = None) -> None:
    """
    Reject NaN and infinite floats anywhere in ``obj``.

    orjson writes them as ``null``, which would silently change the stored
    value. Cycles and nesting deeper than orjson accepts are left for
    orjson to report.

    Raises:
        JSONEncodeError: If a non-finite float is found
    """
    if isinstance(obj, float):
        if not math.isfinite(obj):
            raise JSONEncodeError(f"Non-finite float is not JSON compliant at {path}: {obj}")
        return
    if isinstance(obj, (str, int, bool)) or obj is None:
        return
    if isinstance(obj, Enum):
        ensure_finite(obj.value, path, _active)
        return

    if isinstance(obj, dict):
        items = ((f"{path}.{key}", value) for key, value in obj.items())
    elif isinstance(obj, (list, tuple)):
        items = ((f"{path}[{i}]", value) for i, value in enumerate(obj))
    elif dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        items = (
            (f"{path}.{f.name}", getattr(obj, f.name)) for f in dataclasses.fields(obj)
        )
    else:
        return

    active = _active if _active is not None else set()
    if id(obj) in active or len(active) > _MAX_DEPTH:
        return
    active.add(id(obj))
    try:
        for item_path, value in items:
            ensure_finite(value, item_path, active)
    finally:
        active.discard(id(obj))
