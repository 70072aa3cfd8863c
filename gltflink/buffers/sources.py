"""
Byte sources — where buffer bytes come from.

A ByteSource answers one question: given a buffer URI and an ordered list of
search directories, what bytes does it name?  The resolver only ever talks
to this interface, so tests (and embedders) can swap the filesystem for an
in-memory mapping.

``data:`` URIs are decoded by every source without consulting the search
path.
"""

import base64
import binascii
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Mapping, Optional, Sequence
from urllib.parse import unquote, unquote_to_bytes

from gltflink.config import LoadConfig
from gltflink.exceptions import BufferReadError

__all__ = ["ByteSource", "FileSystemSource", "MemorySource", "decode_data_uri"]

logger = logging.getLogger(__name__)

_BASE64_MARKER = ";base64,"


def decode_data_uri(uri: str) -> bytes:
    """
    Decode an RFC 2397 ``data:`` URI.

        data:application/octet-stream;base64,AAAAAAAAgD8=

    Raises:
        BufferReadError: the URI is not a data URI or its payload is corrupt.
    """
    if not uri.startswith("data:") or "," not in uri:
        raise BufferReadError(uri[:64], reason="not a data URI")

    index = uri.find(_BASE64_MARKER)
    if index == -1:
        # plain (percent-encoded) payload
        return unquote_to_bytes(uri.split(",", 1)[1])
    try:
        return base64.b64decode(uri[index + len(_BASE64_MARKER):], validate=True)
    except (binascii.Error, ValueError) as exc:
        raise BufferReadError(uri[:64], reason=f"invalid base64 payload: {exc}") from exc


class ByteSource(ABC):
    """
    All byte sources implement this interface.

    Implementations must try the search directories in the order given and
    return the first match.  ``config`` carries the soft size limit the
    materializer checks declared lengths against.
    """

    def __init__(self, config: Optional[LoadConfig] = None) -> None:
        self.config = config or LoadConfig()

    def fetch(self, uri: str, search_paths: Sequence[str]) -> bytes:
        """
        Return the bytes named by *uri*.

        Raises:
            BufferReadError: nothing readable was found.
        """
        if uri.startswith("data:"):
            return decode_data_uri(uri)
        return self._fetch_external(uri, search_paths)

    @abstractmethod
    def _fetch_external(self, uri: str, search_paths: Sequence[str]) -> bytes:
        """Look up a relative (non-data) URI against *search_paths*."""
        ...


class FileSystemSource(ByteSource):
    """
    Reads buffer files from disk.

    Each search directory is tried in order; a file that exists but cannot
    be read is skipped in favour of the next directory.  Files above
    ``config.max_buffer_bytes`` are rejected before being read, as are
    absolute uris and uris with ``..`` segments unless
    ``config.confine_uris`` is off.
    """

    def _fetch_external(self, uri: str, search_paths: Sequence[str]) -> bytes:
        relative = unquote(uri)
        rel_path = Path(relative)
        if self.config.confine_uris and (rel_path.anchor or ".." in rel_path.parts):
            raise BufferReadError(
                uri, list(search_paths),
                reason="uri points outside the search directories",
            )
        reason = "file not found"

        for directory in search_paths:
            candidate = Path(directory) / relative
            if not candidate.is_file():
                continue
            try:
                size = candidate.stat().st_size
                if size > self.config.max_buffer_bytes:
                    raise BufferReadError(
                        uri, list(search_paths),
                        reason=(f"{size} bytes exceeds the "
                                f"{self.config.max_buffer_bytes} byte soft limit"),
                    )
                data = candidate.read_bytes()
            except OSError as exc:
                logger.debug("Unreadable candidate %s: %s", candidate, exc)
                reason = str(exc)
                continue
            logger.debug("Buffer %r read from %s (%d bytes)", uri, candidate, len(data))
            return data

        raise BufferReadError(uri, list(search_paths), reason=reason)


class MemorySource(ByteSource):
    """
    Serves buffers from an in-memory mapping.

    Keys are either bare URIs (matched in any directory) or
    ``"<directory>/<uri>"`` paths (matched only for that directory).
    """

    def __init__(self, files: Mapping[str, bytes],
                 config: Optional[LoadConfig] = None) -> None:
        super().__init__(config)
        self._files = dict(files)

    def _fetch_external(self, uri: str, search_paths: Sequence[str]) -> bytes:
        for directory in search_paths:
            key = f"{directory.rstrip('/')}/{uri}"
            if key in self._files:
                return bytes(self._files[key])
        if uri in self._files:
            return bytes(self._files[uri])
        raise BufferReadError(uri, list(search_paths), reason="no such entry")
