"""
Standardized Error Handling for signvault
=========================================

This module provides the vault error hierarchy, error kinds for result-style
callers, and consistent logging helpers shared by every vault operation.
"""

import functools
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Type

logger = logging.getLogger(__name__)


class VaultError(Exception):
    """Base exception for all vault-related errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.context = context or {}
        super().__init__(message)

        # Log error with context for debugging
        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        logger.error(
            f"Vault error: {message}" + (f" ({context_str})" if context_str else "")
        )


class VaultConfigurationError(VaultError):
    """Raised when vault configuration is invalid."""

    pass


class VaultStorageError(VaultError, OSError):
    """Raised when a storage backend read or write fails."""

    pass


class NotFoundError(VaultStorageError, FileNotFoundError):
    """Raised when the requested artifact does not exist."""

    pass


class HttpResponseError(VaultStorageError):
    """Raised when an HTTP backend answers with a non-2xx status code."""

    def __init__(
        self,
        status_code: int,
        url: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        self.url = url
        error_context = {"status_code": status_code, "url": url}
        error_context.update(context or {})
        super().__init__(
            f"HTTP request failed. Status code: {status_code}", error_context
        )


class MalformedDocumentError(VaultError):
    """Raised when artifact bytes do not parse as a structured document."""

    pass


class InvalidSignatureError(VaultError):
    """Raised when a document signature is missing, undecodable or mismatched."""

    pass


class SerializationError(VaultError):
    """Raised when an object cannot be turned into a document or payload."""

    pass


class DeserializationError(VaultError):
    """Raised when a document or payload does not match the expected type."""

    pass


class CompressionError(SerializationError):
    """Raised when compression fails."""

    pass


class DecompressionError(DeserializationError):
    """Raised when decompression fails."""

    pass


class ErrorKind(str, Enum):
    """Distinguishable failure kinds reported by result-style vault calls."""

    NOT_FOUND = "not_found"
    MALFORMED_DOCUMENT = "malformed_document"
    INVALID_SIGNATURE = "invalid_signature"
    SERIALIZATION = "serialization"
    DESERIALIZATION = "deserialization"
    HTTP_RESPONSE = "http_response"
    STORAGE = "storage"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


# Most specific classes first
_ERROR_KINDS = [
    (NotFoundError, ErrorKind.NOT_FOUND),
    (HttpResponseError, ErrorKind.HTTP_RESPONSE),
    (VaultStorageError, ErrorKind.STORAGE),
    (MalformedDocumentError, ErrorKind.MALFORMED_DOCUMENT),
    (InvalidSignatureError, ErrorKind.INVALID_SIGNATURE),
    (DeserializationError, ErrorKind.DESERIALIZATION),
    (SerializationError, ErrorKind.SERIALIZATION),
    (VaultConfigurationError, ErrorKind.CONFIGURATION),
]


def error_kind(error: BaseException) -> ErrorKind:
    """Map an exception to its ErrorKind."""
    for error_type, kind in _ERROR_KINDS:
        if isinstance(error, error_type):
            return kind
    return ErrorKind.UNKNOWN


@dataclass(frozen=True)
class VaultResult:
    """
    Outcome of a result-style vault call.

    Exactly one of ``value`` (on success) or ``error`` (on failure) is
    meaningful. ``kind`` is None for successful results.
    """

    ok: bool
    value: Any = None
    error: Optional[VaultError] = None

    @property
    def kind(self) -> Optional[ErrorKind]:
        if self.error is None:
            return None
        return error_kind(self.error)

    @classmethod
    def success(cls, value: Any = None) -> "VaultResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: VaultError) -> "VaultResult":
        return cls(ok=False, error=error)

    def unwrap(self) -> Any:
        """Return the value, or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value


def with_error_handling(
    error_type: Type[VaultError] = VaultError,
    context: Optional[Dict[str, Any]] = None,
):
    """
    Decorator converting unexpected exceptions into ``error_type``.

    VaultError subclasses pass through untouched; anything else is wrapped
    and re-raised with the original exception chained.

    Args:
        error_type: Type of VaultError to raise
        context: Additional context to include in error
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except VaultError:
                raise
            except Exception as e:
                error_context = (context or {}).copy()
                error_context.update(
                    {
                        "function": func.__name__,
                        "original_error": str(e),
                        "original_error_type": type(e).__name__,
                    }
                )
                raise error_type(f"Error in {func.__name__}: {e}", error_context) from e

        return wrapper

    return decorator


@contextmanager
def vault_operation_context(operation: str, **context):
    """
    Context manager for vault operations with standardized logging.

    Args:
        operation: Description of the operation
        **context: Additional context for logging
    """
    logger.debug(f"Starting vault operation: {operation}", extra=context)
    start_time = time.time()

    try:
        yield
    except VaultError as e:
        logger.warning(
            f"Vault operation failed: {operation} ({type(e).__name__})", extra=context
        )
        raise
    except Exception as e:
        logger.error(
            f"Unexpected error in vault operation: {operation} - {e}", extra=context
        )
        raise

    duration = time.time() - start_time
    logger.debug(
        f"Vault operation completed: {operation} ({duration:.3f}s)", extra=context
    )
