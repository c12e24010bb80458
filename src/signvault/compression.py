"""
Compression Utilities
=====================

blosc2 compression for compact binary vault payloads.

Supported compression codecs:
- lz4: Very fast compression
- lz4hc: High compression variant of lz4
- zstd: Zstandard compression (excellent ratio, default)
- zlib: Standard zlib compression
- blosclz: blosc's own fast codec

Usage:
    from signvault.compression import compress_bytes, decompress_bytes

    packed = compress_bytes(payload, codec="lz4", clevel=3)
    payload = decompress_bytes(packed)
"""

import logging
from typing import List

import blosc2

from .error_handling import CompressionError, DecompressionError

logger = logging.getLogger(__name__)

_CODECS = {
    "lz4": blosc2.Codec.LZ4,
    "lz4hc": blosc2.Codec.LZ4HC,
    "zstd": blosc2.Codec.ZSTD,
    "zlib": blosc2.Codec.ZLIB,
    "blosclz": blosc2.Codec.BLOSCLZ,
}


def list_available_codecs() -> List[str]:
    """List codec names accepted by compress_bytes."""
    return sorted(_CODECS)


def validate_compression(codec: str, clevel: int) -> None:
    """
    Validate compression parameters.

    Raises:
        ValueError: If the codec is unknown or the level is out of range
    """
    if not isinstance(codec, str) or codec.lower() not in _CODECS:
        raise ValueError(
            f"Unsupported codec: {codec}. Supported: {list_available_codecs()}"
        )
    if not (0 <= clevel <= 9):
        raise ValueError("clevel must be between 0 and 9")


def compress_bytes(data: bytes, codec: str = "zstd", clevel: int = 5) -> bytes:
    """
    Compress a byte payload with blosc2.

    Raises:
        ValueError: If invalid parameters are provided
        CompressionError: If compression fails
    """
    validate_compression(codec, clevel)

    if len(data) > blosc2.MAX_BUFFERSIZE:
        raise CompressionError(
            f"Payload too large to compress ({len(data)} bytes)",
            {"max_size": blosc2.MAX_BUFFERSIZE},
        )

    try:
        packed = blosc2.compress(
            data,
            typesize=1,
            clevel=clevel,
            filter=blosc2.Filter.SHUFFLE,
            codec=_CODECS[codec.lower()],
        )
    except Exception as e:
        raise CompressionError(f"Failed to compress data: {e}") from e

    logger.debug(f"Compressed {len(data)} -> {len(packed)} bytes with {codec}")
    return bytes(packed)


def decompress_bytes(data: bytes) -> bytes:
    """
    Decompress a blosc2 payload.

    Raises:
        DecompressionError: If the payload is not a valid blosc2 frame
    """
    try:
        payload = blosc2.decompress(data)
    except Exception as e:
        raise DecompressionError(f"Failed to decompress data: {e}") from e

    if payload is None:
        raise DecompressionError("Failed to decompress data: empty result")
    return bytes(payload)
