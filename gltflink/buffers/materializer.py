"""
Buffer materializer — fetches a Buffer's bytes and reconciles their length
with the declared byteLength.

Length policy:
  • fewer bytes than declared → ShortBufferError is reported, but the bytes
    are still returned, zero-extended to the declared length, so byte-range
    slicing downstream never runs past the end;
  • more bytes than declared  → only the first byteLength bytes are kept.
"""

import logging
from typing import Optional, Sequence

from gltflink.document.models import Buffer
from gltflink.exceptions import BufferLengthError, BufferReadError, ShortBufferError
from .sources import ByteSource

__all__ = ["check_declared_length", "materialize", "reconcile_length"]

logger = logging.getLogger(__name__)


def check_declared_length(uri: str, byte_length: int, limit: int) -> None:
    """
    Reject a declared byteLength that is negative or above *limit* before
    any bytes are fetched or padded.

    Raises:
        BufferLengthError
    """
    if byte_length < 0:
        raise BufferLengthError(uri, byte_length, "is negative")
    if byte_length > limit:
        raise BufferLengthError(uri, byte_length, f"exceeds the {limit} byte soft limit")


def reconcile_length(
    uri: str, data: bytes, byte_length: int
) -> tuple[bytes, Optional[ShortBufferError]]:
    """
    Pad or truncate *data* to exactly *byte_length* bytes.

    Returns:
        (data, None) when the size matched or was truncated,
        (padded data, ShortBufferError) when it fell short.

    Raises:
        BufferLengthError: *byte_length* is negative.
    """
    if byte_length < 0:
        raise BufferLengthError(uri, byte_length, "is negative")
    actual = len(data)
    if actual == byte_length:
        return bytes(data), None
    if actual > byte_length:
        logger.debug("Buffer %r: ignoring %d trailing bytes", uri, actual - byte_length)
        return bytes(data[:byte_length]), None

    short = ShortBufferError(uri, expected=byte_length, actual=actual)
    logger.warning("%s", short)
    return bytes(data) + bytes(byte_length - actual), short


def materialize(
    buffer: Buffer,
    source: ByteSource,
    search_paths: Sequence[str],
) -> tuple[bytes, Optional[ShortBufferError]]:
    """
    Load the bytes for one Buffer.

    Args:
        buffer:       Raw Buffer entity.
        source:       Where to read bytes from.
        search_paths: Ordered directories to try for relative URIs.

    Returns:
        (bytes of length buffer.byte_length, optional ShortBufferError).

    Raises:
        BufferLengthError: the declared length is negative or over the
                           source's soft limit.
        BufferReadError:   the URI is missing or nothing could be read.
    """
    if not buffer.uri:
        raise BufferReadError(
            "<none>", list(search_paths),
            reason="buffer has no uri (GLB binary chunks are not supported)",
        )
    label = "<embedded data uri>" if buffer.is_data_uri else buffer.uri
    check_declared_length(label, buffer.byte_length, source.config.max_buffer_bytes)
    data = source.fetch(buffer.uri, search_paths)
    return reconcile_length(label, data, buffer.byte_length)
