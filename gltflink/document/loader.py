"""
Document loader — JSON text / file object / file name → Document.

Usage::

    doc = from_filename("models/Box/glTF/Box.gltf")
    doc.default_search_path   # "models/Box/glTF"

from_filename() is the only entry point that sets ``default_search_path``;
documents built from bytes or an anonymous stream carry none, so the
caller must pass explicit search paths to resolve() for external buffers.
"""

import json
import logging
import os
from pathlib import Path
from typing import BinaryIO, Optional

from gltflink.config import LoadConfig
from gltflink.exceptions import DocumentError, DocumentParseError, DocumentTooLargeError
from .models import Document

__all__ = ["from_bytes", "from_file", "from_filename"]

logger = logging.getLogger(__name__)


def from_bytes(data: bytes, config: Optional[LoadConfig] = None) -> Document:
    """
    Deserialize glTF JSON bytes into a Document.

    Raises:
        DocumentParseError: invalid JSON, or JSON that is not a glTF object.
    """
    config = config or LoadConfig()
    try:
        raw = json.loads(data.decode(config.encoding))
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        raise DocumentParseError(f"Failure parsing document as JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise DocumentParseError(
            f"Top-level glTF value must be an object, got {type(raw).__name__}"
        )

    try:
        doc = Document.from_dict(raw)
    except KeyError as exc:
        raise DocumentParseError(f"Missing required property {exc}") from exc
    except (TypeError, ValueError, AttributeError) as exc:
        raise DocumentParseError(f"Malformed glTF property: {exc}") from exc

    logger.debug(
        "Parsed document: %d buffers, %d nodes, %d meshes",
        len(doc.buffers), len(doc.nodes), len(doc.meshes),
    )
    return doc


def from_file(f: BinaryIO, config: Optional[LoadConfig] = None) -> Document:
    """
    Read and deserialize an open binary file.

    The size is checked with fstat() before reading so oversized files are
    rejected without being loaded.

    Raises:
        DocumentTooLargeError: the file exceeds config.max_document_bytes.
        DocumentError: the file could not be stat'ed or read.
        DocumentParseError: see from_bytes().
    """
    config = config or LoadConfig()
    label = getattr(f, "name", "<stream>")
    try:
        size = os.fstat(f.fileno()).st_size
    except (OSError, AttributeError, ValueError) as exc:
        raise DocumentError(f"Could not stat {label}: {exc}") from exc

    if size > config.max_document_bytes:
        raise DocumentTooLargeError(str(label), size, config.max_document_bytes)

    try:
        data = f.read()
    except OSError as exc:
        raise DocumentError(f"Could not read file contents of {label}: {exc}") from exc

    return from_bytes(data, config)


def from_filename(name: str | os.PathLike, config: Optional[LoadConfig] = None) -> Document:
    """
    Open, read and deserialize a glTF file by name.

    The file's containing directory becomes the document's
    ``default_search_path``.

    Raises:
        FileNotFoundError: the file does not exist.
        DocumentError / DocumentParseError: see from_file().
    """
    path = Path(name)
    logger.info("Loading document: %s", path)
    with path.open("rb") as f:
        doc = from_file(f, config)
    doc.default_search_path = str(path.parent)
    return doc
