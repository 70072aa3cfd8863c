"""
gltflink — load glTF 2.0 documents and link them into a navigable graph.

    from gltflink import load_and_resolve

    graph, error = load_and_resolve("Box/glTF/Box.gltf")
    mesh = graph.scene.nodes[0].mesh
"""

import os
from typing import Optional, Sequence

from gltflink.buffers.sources import FileSystemSource
from gltflink.config import LoadConfig
from gltflink.document.loader import from_bytes, from_file, from_filename
from gltflink.document.models import Document
from gltflink.exceptions import GltfLinkError
from gltflink.resolver.engine import resolve
from gltflink.resolver.models import ResolvedGraph

__all__ = [
    "LoadConfig",
    "Document",
    "ResolvedGraph",
    "from_bytes",
    "from_file",
    "from_filename",
    "load",
    "load_and_resolve",
    "resolve",
]

__version__ = "0.1.0"

load = from_filename


def load_and_resolve(
    path: str | os.PathLike,
    search_paths: Optional[Sequence[str]] = None,
    config: Optional[LoadConfig] = None,
) -> tuple[ResolvedGraph, Optional[GltfLinkError]]:
    """
    Load *path* and resolve it, searching the file's directory for buffers
    unless *search_paths* is given.

    Loader errors (missing file, bad JSON, size limit) are raised; resolution
    errors are returned alongside the graph as with resolve().
    """
    document = from_filename(path, config)
    return resolve(document, search_paths, source=FileSystemSource(config))
