"""
Reference resolution — turns the index-based Document into a linked graph.

Every integer reference (node→children, primitive→accessor,
accessor→bufferView, …) becomes a direct reference to the corresponding
Resolved* object; buffer bytes are loaded and buffer views become
zero-copy slices of them.
"""

from .engine import GraphResolver, resolve, search_paths_for
from .models import (
    ResolvedAccessor,
    ResolvedAnimation,
    ResolvedAnimationChannel,
    ResolvedAnimationChannelTarget,
    ResolvedAnimationSampler,
    ResolvedBuffer,
    ResolvedBufferView,
    ResolvedCamera,
    ResolvedGraph,
    ResolvedMaterial,
    ResolvedMesh,
    ResolvedNode,
    ResolvedPrimitive,
    ResolvedScene,
)

__all__ = [
    "GraphResolver",
    "resolve",
    "search_paths_for",
    "ResolvedAccessor",
    "ResolvedAnimation",
    "ResolvedAnimationChannel",
    "ResolvedAnimationChannelTarget",
    "ResolvedAnimationSampler",
    "ResolvedBuffer",
    "ResolvedBufferView",
    "ResolvedCamera",
    "ResolvedGraph",
    "ResolvedMaterial",
    "ResolvedMesh",
    "ResolvedNode",
    "ResolvedPrimitive",
    "ResolvedScene",
]
