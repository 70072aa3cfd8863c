"""
Data models for the resolver module — the linked, resolved graph.

Key concepts
────────────
Resolved*      — one per raw entity; keeps ``raw`` (the source entity) and
                 ``index`` (its position in the source array) and replaces
                 every index field with a direct reference
ResolvedGraph  — owns the per-type tuples of resolved entities

Resolved entities are frozen and compare and hash by identity.  Node graphs may contain
cycles in malformed input, so field-wise __eq__ / __repr__ would recurse
forever; __str__ only prints the entity's own label.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from gltflink.document import models as doc
from gltflink.document.models import (
    AccessorType,
    BufferTarget,
    CameraType,
    ComponentType,
    Interpolation,
    PrimitiveMode,
    TargetPath,
)
from gltflink.exceptions import GltfLinkError, IncompleteGraphError, ShortBufferError

__all__ = [
    "ResolvedBuffer",
    "ResolvedBufferView",
    "ResolvedAccessor",
    "ResolvedMaterial",
    "ResolvedCamera",
    "ResolvedPrimitive",
    "ResolvedMesh",
    "ResolvedNode",
    "ResolvedScene",
    "ResolvedAnimationSampler",
    "ResolvedAnimationChannelTarget",
    "ResolvedAnimationChannel",
    "ResolvedAnimation",
    "ResolvedGraph",
]

_EMPTY: Mapping = MappingProxyType({})


def _label(kind: str, index: int, name: str) -> str:
    return f"{kind}[{index}]" + (f" {name!r}" if name else "")


# ── Binary data ───────────────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False, repr=False)
class ResolvedBuffer:
    raw:   doc.Buffer
    index: int
    data:  bytes                # exactly raw.byte_length bytes

    @property
    def uri(self) -> Optional[str]:
        return self.raw.uri

    @property
    def byte_length(self) -> int:
        return self.raw.byte_length

    def __str__(self) -> str:
        return _label("Buffer", self.index, self.raw.name)

    __repr__ = __str__


@dataclass(frozen=True, eq=False, repr=False)
class ResolvedBufferView:
    """``data`` is a zero-copy slice of ``buffer.data``."""
    raw:    doc.BufferView
    index:  int
    buffer: ResolvedBuffer
    data:   memoryview
    target: Optional[BufferTarget] = None

    @property
    def byte_offset(self) -> int:
        return self.raw.byte_offset

    @property
    def byte_length(self) -> int:
        return self.raw.byte_length

    @property
    def byte_stride(self) -> Optional[int]:
        return self.raw.byte_stride

    def __str__(self) -> str:
        return _label("BufferView", self.index, self.raw.name)

    __repr__ = __str__


@dataclass(frozen=True, eq=False, repr=False)
class ResolvedAccessor:
    raw:            doc.Accessor
    index:          int
    component_type: ComponentType
    type:           AccessorType
    buffer_view:    Optional[ResolvedBufferView] = None

    @property
    def count(self) -> int:
        return self.raw.count

    @property
    def normalized(self) -> bool:
        return self.raw.normalized

    @property
    def byte_offset(self) -> int:
        return self.raw.byte_offset

    @property
    def element_size(self) -> int:
        """Bytes per element: component size × components per element."""
        return self.component_type.size * self.type.count

    @property
    def stride(self) -> int:
        """Distance between consecutive elements (view stride if interleaved)."""
        if self.buffer_view is not None and self.buffer_view.byte_stride:
            return self.buffer_view.byte_stride
        return self.element_size

    def __str__(self) -> str:
        return (
            f"{_label('Accessor', self.index, self.raw.name)} "
            f"{self.type.value}/{self.component_type.name} x{self.count}"
        )

    __repr__ = __str__


# ── Materials / cameras ───────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False, repr=False)
class ResolvedMaterial:
    raw:   doc.Material
    index: int

    @property
    def name(self) -> str:
        return self.raw.name

    def __str__(self) -> str:
        return _label("Material", self.index, self.raw.name)

    __repr__ = __str__


@dataclass(frozen=True, eq=False, repr=False)
class ResolvedCamera:
    raw:   doc.Camera
    index: int
    type:  CameraType

    def __str__(self) -> str:
        return _label("Camera", self.index, self.raw.name)

    __repr__ = __str__


# ── Meshes ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False, repr=False)
class ResolvedPrimitive:
    """
    ``material`` None means "use the default material"; ``indices`` None
    means a non-indexed draw.
    """
    raw:        doc.Primitive
    index:      int                 # position within the owning mesh
    mode:       PrimitiveMode
    attributes: Mapping[str, ResolvedAccessor] = field(default_factory=lambda: _EMPTY)
    indices:    Optional[ResolvedAccessor] = None
    material:   Optional[ResolvedMaterial] = None
    targets:    tuple[Mapping[str, ResolvedAccessor], ...] = ()

    def __str__(self) -> str:
        return f"Primitive[{self.index}] {self.mode.name} ({', '.join(self.attributes)})"

    __repr__ = __str__


@dataclass(frozen=True, eq=False, repr=False)
class ResolvedMesh:
    raw:        doc.Mesh
    index:      int
    primitives: tuple[ResolvedPrimitive, ...] = ()

    @property
    def name(self) -> str:
        return self.raw.name

    def __str__(self) -> str:
        return _label("Mesh", self.index, self.raw.name)

    __repr__ = __str__


# ── Scene hierarchy ───────────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False, repr=False)
class ResolvedNode:
    """
    ``children`` is always a tuple (empty for leaves).  It may contain
    cycles in malformed documents: traverse with ResolvedGraph.walk().
    """
    raw:      doc.Node
    index:    int
    mesh:     Optional[ResolvedMesh] = None
    camera:   Optional[ResolvedCamera] = None
    children: tuple["ResolvedNode", ...] = ()

    @property
    def name(self) -> str:
        return self.raw.name

    def __str__(self) -> str:
        return _label("Node", self.index, self.raw.name)

    __repr__ = __str__


@dataclass(frozen=True, eq=False, repr=False)
class ResolvedScene:
    raw:   doc.Scene
    index: int
    nodes: tuple[ResolvedNode, ...] = ()

    @property
    def name(self) -> str:
        return self.raw.name

    def __str__(self) -> str:
        return _label("Scene", self.index, self.raw.name)

    __repr__ = __str__


# ── Animations ────────────────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False, repr=False)
class ResolvedAnimationSampler:
    raw:           doc.AnimationSampler
    index:         int
    input:         ResolvedAccessor
    output:        ResolvedAccessor
    interpolation: Interpolation

    def __str__(self) -> str:
        return f"AnimationSampler[{self.index}] {self.interpolation.value}"

    __repr__ = __str__


@dataclass(frozen=True, eq=False, repr=False)
class ResolvedAnimationChannelTarget:
    raw:  doc.AnimationChannelTarget
    path: TargetPath
    node: Optional[ResolvedNode] = None


@dataclass(frozen=True, eq=False, repr=False)
class ResolvedAnimationChannel:
    raw:     doc.AnimationChannel
    index:   int
    sampler: ResolvedAnimationSampler
    target:  ResolvedAnimationChannelTarget

    def __str__(self) -> str:
        return f"AnimationChannel[{self.index}] {self.target.path.value} → {self.target.node}"

    __repr__ = __str__


@dataclass(frozen=True, eq=False, repr=False)
class ResolvedAnimation:
    raw:      doc.Animation
    index:    int
    samplers: tuple[ResolvedAnimationSampler, ...] = ()
    channels: tuple[ResolvedAnimationChannel, ...] = ()

    def __str__(self) -> str:
        return _label("Animation", self.index, self.raw.name)

    __repr__ = __str__


# ── Graph ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False)
class ResolvedGraph:
    """
    Fully linked view of a Document.

    Arrays are installed only once every entity of that type is resolved.
    After a fatal error the arrays of types not yet reached are None and
    ``complete`` is False.  ``warnings`` holds the non-fatal
    ShortBufferErrors raised while loading buffers.

    The source Document is kept in ``document``; every resolved entity
    points back into it through ``raw``.  The graph and its entities are
    frozen once resolve() returns.
    """
    document:     doc.Document
    buffers:      Optional[tuple[ResolvedBuffer, ...]] = None
    buffer_views: Optional[tuple[ResolvedBufferView, ...]] = None
    accessors:    Optional[tuple[ResolvedAccessor, ...]] = None
    materials:    Optional[tuple[ResolvedMaterial, ...]] = None
    cameras:      Optional[tuple[ResolvedCamera, ...]] = None
    meshes:       Optional[tuple[ResolvedMesh, ...]] = None
    nodes:        Optional[tuple[ResolvedNode, ...]] = None
    animations:   Optional[tuple[ResolvedAnimation, ...]] = None
    scenes:       Optional[tuple[ResolvedScene, ...]] = None
    scene:        Optional[ResolvedScene] = None
    warnings:     tuple[ShortBufferError, ...] = ()
    error:        Optional[GltfLinkError] = None
    complete:     bool = False

    def __repr__(self) -> str:
        def n(arr):
            return "-" if arr is None else len(arr)
        return (
            f"ResolvedGraph(buffers={n(self.buffers)}, accessors={n(self.accessors)}, "
            f"meshes={n(self.meshes)}, nodes={n(self.nodes)}, scenes={n(self.scenes)}, "
            f"complete={self.complete})"
        )

    def require_complete(self) -> "ResolvedGraph":
        """Return self, or raise IncompleteGraphError if resolution stopped early."""
        if not self.complete:
            raise IncompleteGraphError(
                f"Graph is only partially resolved: {self.error}"
            ) from self.error
        return self

    def walk(
        self, scene: Optional[ResolvedScene] = None
    ) -> Iterator[tuple[ResolvedNode, int]]:
        """
        Depth-first (node, depth) pairs for *scene* (default: ``self.scene``).

        Each node is yielded at most once, so cyclic child references
        terminate.
        """
        scene = scene if scene is not None else self.scene
        if scene is None:
            return
        seen: set[int] = set()
        stack = [(node, 0) for node in reversed(scene.nodes)]
        while stack:
            node, depth = stack.pop()
            if id(node) in seen:
                continue
            seen.add(id(node))
            yield node, depth
            stack.extend((child, depth + 1) for child in reversed(node.children))
