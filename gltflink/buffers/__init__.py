"""Buffer byte loading: sources (where bytes live) and length reconciliation."""

from .materializer import check_declared_length, materialize, reconcile_length
from .sources import ByteSource, FileSystemSource, MemorySource, decode_data_uri

__all__ = [
    "check_declared_length",
    "materialize",
    "reconcile_length",
    "ByteSource",
    "FileSystemSource",
    "MemorySource",
    "decode_data_uri",
]
