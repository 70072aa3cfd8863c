"""Runtime configuration shared by the loader and the filesystem byte source."""

from dataclasses import dataclass

__all__ = ["LoadConfig", "DEFAULT_SIZE_LIMIT"]

# 1 GiB soft ceiling for documents and buffer files
DEFAULT_SIZE_LIMIT = 1 << 30


@dataclass
class LoadConfig:
    """Size limits and path rules enforced before any bytes are read from disk."""
    max_document_bytes: int = DEFAULT_SIZE_LIMIT
    max_buffer_bytes:   int = DEFAULT_SIZE_LIMIT
    encoding:           str = "utf-8"
    # reject buffer uris that resolve outside their search directory
    confine_uris:       bool = True
