"""
Project-wide custom exception hierarchy.
All modules raise subclasses of GltfLinkError — never bare Exception.

Every class carries a ``fatal`` flag.  A fatal error means the graph returned
alongside it is partial; a non-fatal one (only ShortBufferError) coexists
with a usable graph.
"""

__all__ = [
    "GltfLinkError",
    "DocumentError",
    "DocumentTooLargeError",
    "DocumentParseError",
    "BufferLoadError",
    "BufferReadError",
    "ShortBufferError",
    "BufferLengthError",
    "SearchPathError",
    "ResolutionError",
    "IndexOutOfRangeError",
    "ByteRangeError",
    "UnknownEnumError",
    "IncompleteGraphError",
]


class GltfLinkError(Exception):
    """Root exception for all gltflink errors."""

    fatal = True


# ── Document loading ──────────────────────────────────────────────────────────

class DocumentError(GltfLinkError):
    """Raised when a document cannot be loaded or deserialized."""


class DocumentTooLargeError(DocumentError):
    """Raised when a file exceeds the configured soft size limit."""

    def __init__(self, source: str, size: int, limit: int) -> None:
        self.source = source
        self.size = size
        self.limit = limit
        super().__init__(
            f"{source}: {size} bytes exceeds the {limit} byte soft limit"
        )


class DocumentParseError(DocumentError):
    """Raised when the document text is not valid glTF JSON."""


# ── Buffers ───────────────────────────────────────────────────────────────────

class BufferLoadError(GltfLinkError):
    """Base class for buffer materialization errors."""


class BufferReadError(BufferLoadError):
    """Raised when a buffer URI cannot be opened or read from any search path."""

    def __init__(self, uri: str, searched: list[str] | None = None,
                 reason: str = "") -> None:
        self.uri = uri
        self.searched = list(searched or [])
        self.reason = reason
        where = ", ".join(self.searched) if self.searched else "<no search path>"
        msg = f"Could not read buffer {uri!r} (searched: {where})"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ShortBufferError(BufferLoadError):
    """
    Reported when a buffer holds fewer bytes than its declared byteLength.

    Not fatal: the available bytes are still installed, zero-padded to the
    declared length.
    """

    fatal = False

    def __init__(self, uri: str, expected: int, actual: int) -> None:
        self.uri = uri
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Binary size was smaller than declared: {uri}, "
            f"expected >= {expected} bytes, got {actual} bytes"
        )


class BufferLengthError(BufferLoadError):
    """Raised when a declared byteLength is negative or above the soft limit."""

    def __init__(self, uri: str, byte_length: int, reason: str) -> None:
        self.uri = uri
        self.byte_length = byte_length
        self.reason = reason
        super().__init__(f"Buffer {uri!r}: declared byteLength {byte_length} {reason}")


class SearchPathError(BufferLoadError):
    """Raised when external buffers exist but no search directory is known."""


# ── Resolution ────────────────────────────────────────────────────────────────

class ResolutionError(GltfLinkError):
    """Base class for structural errors found while linking references."""


class IndexOutOfRangeError(ResolutionError):
    """Raised when an index field points outside its target array."""

    def __init__(self, entity: str, field: str, index: int, bound: int) -> None:
        self.entity = entity
        self.field = field
        self.index = index
        self.bound = bound
        super().__init__(
            f"{entity}.{field}: index {index} out of range "
            f"(target array has {bound} entries)"
        )


class ByteRangeError(ResolutionError):
    """Raised when a buffer view's byte range exceeds its buffer."""

    def __init__(self, entity: str, offset: int, length: int,
                 buffer_length: int) -> None:
        self.entity = entity
        self.offset = offset
        self.length = length
        self.buffer_length = buffer_length
        super().__init__(
            f"{entity}: byte range [{offset}, {offset + length}) exceeds "
            f"buffer length {buffer_length}"
        )


class UnknownEnumError(ResolutionError):
    """Raised when a closed enumeration field holds an unknown code."""

    def __init__(self, entity: str, field: str, value: object) -> None:
        self.entity = entity
        self.field = field
        self.value = value
        super().__init__(f"{entity}.{field}: unknown value {value!r}")


# ── Graph consumers ───────────────────────────────────────────────────────────

class IncompleteGraphError(GltfLinkError):
    """Raised when a partially resolved graph is used as if it were complete."""
