"""
GraphResolver — links a raw Document into a ResolvedGraph.

Strategy:
  • One forward pass over the entity arrays in dependency order; every type
    only refers to types resolved before it:

        buffers → bufferViews → accessors → materials, cameras → meshes
        → nodes → animations → scenes (+ default scene)

  • Each array is built to its final length before anything downstream
    takes a reference into it, and is installed on the graph only once
    complete.
  • Nodes are done in two sub-phases: every slot is allocated first
    (with its mesh / camera), then children are wired purely by index.
    Forward and cyclic child references therefore never recurse.
  • Every index is bounds-checked before use.  The first structural error
    aborts the pass; the graph built so far is returned with it.
  • Short buffers are the one lenient case: the zero-padded bytes are kept,
    the ShortBufferError is recorded in graph.warnings and resolution
    carries on.
"""

import logging
from enum import Enum
from types import MappingProxyType
from typing import Optional, Sequence, TypeVar

from gltflink.buffers.materializer import materialize
from gltflink.buffers.sources import ByteSource, FileSystemSource
from gltflink.document.models import (
    AccessorType,
    BufferTarget,
    CameraType,
    ComponentType,
    Document,
    Interpolation,
    Mesh,
    PrimitiveMode,
    TargetPath,
)
from gltflink.exceptions import (
    ByteRangeError,
    GltfLinkError,
    IndexOutOfRangeError,
    SearchPathError,
    ShortBufferError,
    UnknownEnumError,
)
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

__all__ = ["GraphResolver", "resolve", "search_paths_for"]

logger = logging.getLogger(__name__)

T = TypeVar("T")
E = TypeVar("E", bound=Enum)


# ── Checked lookups ───────────────────────────────────────────────────────────

def _lookup(items: Sequence[T], index: int, entity: str, field: str) -> T:
    """items[index], or IndexOutOfRangeError naming the referencing field."""
    if not 0 <= index < len(items):
        raise IndexOutOfRangeError(entity, field, index, len(items))
    return items[index]


def _opt_lookup(items: Sequence[T], index: Optional[int], entity: str,
                field: str) -> Optional[T]:
    return None if index is None else _lookup(items, index, entity, field)


def _enum(enum_cls: type[E], value: object, entity: str, field: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        raise UnknownEnumError(entity, field, value) from None


def search_paths_for(document: Document,
                     search_paths: Optional[Sequence[str]]) -> list[str]:
    """
    Explicit search paths win; otherwise the directory the document was
    loaded from, if any.
    """
    if search_paths:
        return [str(p) for p in search_paths]
    if document.default_search_path is not None:
        return [document.default_search_path]
    return []


# ── Resolver ──────────────────────────────────────────────────────────────────

class GraphResolver:
    """
    Turns a Document into a ResolvedGraph.

    Usage::

        graph, error = GraphResolver().resolve(doc, ["assets/"])
        if error is not None and error.fatal:
            ...   # graph is partial

    The resolver holds no per-call state; one instance can resolve any
    number of documents.
    """

    def __init__(self, source: Optional[ByteSource] = None) -> None:
        self._source = source or FileSystemSource()

    # ── Public API ────────────────────────────────────────────────────────

    def resolve(
        self,
        document: Document,
        search_paths: Optional[Sequence[str]] = None,
    ) -> tuple[ResolvedGraph, Optional[GltfLinkError]]:
        """
        Resolve every reference in *document*.

        Args:
            document:     Raw document; not modified.
            search_paths: Ordered directories for external buffer URIs.
                          Empty/None → document.default_search_path.

        Returns:
            (graph, error).  error is None on a clean run; a fatal
            GltfLinkError if resolution aborted (graph.complete is False);
            or the first ShortBufferError if the graph is complete but some
            buffers had to be zero-padded (all of them are in
            graph.warnings).
        """
        warnings: list[ShortBufferError] = []
        paths = search_paths_for(document, search_paths)
        # finished arrays only; the graph is built from these once at the end
        done: dict[str, object] = {}

        try:
            done["buffers"] = self._resolve_buffers(document, paths, warnings)
            done["buffer_views"] = self._resolve_buffer_views(document, done["buffers"])
            done["accessors"] = self._resolve_accessors(document, done["buffer_views"])
            done["materials"] = tuple(
                ResolvedMaterial(raw=m, index=i) for i, m in enumerate(document.materials)
            )
            done["cameras"] = self._resolve_cameras(document)
            done["meshes"] = tuple(
                self._resolve_mesh(i, m, done["accessors"], done["materials"])
                for i, m in enumerate(document.meshes)
            )
            done["nodes"] = self._resolve_nodes(document, done["meshes"], done["cameras"])
            done["animations"] = self._resolve_animations(
                document, done["accessors"], done["nodes"]
            )
            done["scenes"] = self._resolve_scenes(document, done["nodes"])
            done["scene"] = _opt_lookup(done["scenes"], document.scene, "document", "scene")
        except GltfLinkError as exc:
            logger.error("Resolution aborted: %s", exc)
            graph = ResolvedGraph(
                document=document, warnings=tuple(warnings), error=exc, **done
            )
            return graph, exc

        graph = ResolvedGraph(
            document=document, warnings=tuple(warnings), complete=True, **done
        )
        logger.info(
            "Resolved %d buffers, %d accessors, %d meshes, %d nodes, %d scenes "
            "(%d warnings)",
            len(graph.buffers), len(graph.accessors), len(graph.meshes),
            len(graph.nodes), len(graph.scenes), len(warnings),
        )
        return graph, (warnings[0] if warnings else None)

    # ── Phases ────────────────────────────────────────────────────────────

    def _resolve_buffers(
        self,
        document: Document,
        paths: list[str],
        warnings: list[ShortBufferError],
    ) -> tuple[ResolvedBuffer, ...]:
        resolved = []
        for i, buf in enumerate(document.buffers):
            if buf.uri and not buf.is_data_uri and not paths:
                raise SearchPathError(
                    f"buffers[{i}] refers to external uri {buf.uri!r} but no search "
                    "path was given and the document was not loaded from a file"
                )
            data, short = materialize(buf, self._source, paths)
            if short is not None:
                warnings.append(short)
            resolved.append(ResolvedBuffer(raw=buf, index=i, data=data))
        logger.debug("Materialized %d buffers", len(resolved))
        return tuple(resolved)

    @staticmethod
    def _resolve_buffer_views(
        document: Document, buffers: Sequence[ResolvedBuffer]
    ) -> tuple[ResolvedBufferView, ...]:
        resolved = []
        for i, bv in enumerate(document.buffer_views):
            entity = f"bufferViews[{i}]"
            buffer = _lookup(buffers, bv.buffer, entity, "buffer")
            end = bv.byte_offset + bv.byte_length
            if bv.byte_offset < 0 or bv.byte_length < 0 or end > buffer.byte_length:
                raise ByteRangeError(entity, bv.byte_offset, bv.byte_length,
                                     buffer.byte_length)
            target = None
            if bv.target is not None:
                target = _enum(BufferTarget, bv.target, entity, "target")
            resolved.append(ResolvedBufferView(
                raw=bv,
                index=i,
                buffer=buffer,
                data=memoryview(buffer.data)[bv.byte_offset:end],
                target=target,
            ))
        logger.debug("Sliced %d buffer views", len(resolved))
        return tuple(resolved)

    @staticmethod
    def _resolve_accessors(
        document: Document, views: Sequence[ResolvedBufferView]
    ) -> tuple[ResolvedAccessor, ...]:
        resolved = []
        for i, acc in enumerate(document.accessors):
            entity = f"accessors[{i}]"
            resolved.append(ResolvedAccessor(
                raw=acc,
                index=i,
                component_type=_enum(ComponentType, acc.component_type, entity,
                                     "componentType"),
                type=_enum(AccessorType, acc.type, entity, "type"),
                buffer_view=_opt_lookup(views, acc.buffer_view, entity, "bufferView"),
            ))
        logger.debug("Attached %d accessors", len(resolved))
        return tuple(resolved)

    @staticmethod
    def _resolve_cameras(document: Document) -> tuple[ResolvedCamera, ...]:
        return tuple(
            ResolvedCamera(raw=cam, index=i,
                           type=_enum(CameraType, cam.type, f"cameras[{i}]", "type"))
            for i, cam in enumerate(document.cameras)
        )

    @staticmethod
    def _resolve_mesh(
        index: int,
        mesh: Mesh,
        accessors: Sequence[ResolvedAccessor],
        materials: Sequence[ResolvedMaterial],
    ) -> ResolvedMesh:
        primitives = []
        for p, prim in enumerate(mesh.primitives):
            entity = f"meshes[{index}].primitives[{p}]"
            attributes = {
                name: _lookup(accessors, idx, entity, f"attributes.{name}")
                for name, idx in prim.attributes.items()
            }
            targets = tuple(
                MappingProxyType({
                    name: _lookup(accessors, idx, entity, f"targets[{t}].{name}")
                    for name, idx in target.items()
                })
                for t, target in enumerate(prim.targets)
            )
            primitives.append(ResolvedPrimitive(
                raw=prim,
                index=p,
                mode=_enum(PrimitiveMode, prim.mode, entity, "mode"),
                attributes=MappingProxyType(attributes),
                indices=_opt_lookup(accessors, prim.indices, entity, "indices"),
                material=_opt_lookup(materials, prim.material, entity, "material"),
                targets=targets,
            ))
        return ResolvedMesh(raw=mesh, index=index, primitives=tuple(primitives))

    @staticmethod
    def _resolve_nodes(
        document: Document,
        meshes: Sequence[ResolvedMesh],
        cameras: Sequence[ResolvedCamera],
    ) -> tuple[ResolvedNode, ...]:
        # Sub-phase 1: allocate every slot before any node-to-node link
        slots: list[Optional[ResolvedNode]] = [None] * len(document.nodes)
        for i, node in enumerate(document.nodes):
            entity = f"nodes[{i}]"
            slots[i] = ResolvedNode(
                raw=node,
                index=i,
                mesh=_opt_lookup(meshes, node.mesh, entity, "mesh"),
                camera=_opt_lookup(cameras, node.camera, entity, "camera"),
            )
        nodes = tuple(slots)

        # Sub-phase 2: wire children by index into the allocated slots
        for resolved in nodes:
            entity = f"nodes[{resolved.index}]"
            children = tuple(
                _lookup(nodes, child, entity, f"children[{c}]")
                for c, child in enumerate(resolved.raw.children)
            )
            # ResolvedNode is frozen; this is the one write after construction
            object.__setattr__(resolved, "children", children)
        logger.debug("Linked %d nodes", len(nodes))
        return nodes

    @staticmethod
    def _resolve_animations(
        document: Document,
        accessors: Sequence[ResolvedAccessor],
        nodes: Sequence[ResolvedNode],
    ) -> tuple[ResolvedAnimation, ...]:
        resolved = []
        for a, anim in enumerate(document.animations):
            samplers = []
            for s, sampler in enumerate(anim.samplers):
                entity = f"animations[{a}].samplers[{s}]"
                samplers.append(ResolvedAnimationSampler(
                    raw=sampler,
                    index=s,
                    input=_lookup(accessors, sampler.input, entity, "input"),
                    output=_lookup(accessors, sampler.output, entity, "output"),
                    interpolation=_enum(Interpolation, sampler.interpolation,
                                        entity, "interpolation"),
                ))
            samplers = tuple(samplers)

            channels = []
            for c, channel in enumerate(anim.channels):
                entity = f"animations[{a}].channels[{c}]"
                target = ResolvedAnimationChannelTarget(
                    raw=channel.target,
                    path=_enum(TargetPath, channel.target.path, entity, "target.path"),
                    node=_opt_lookup(nodes, channel.target.node, entity, "target.node"),
                )
                channels.append(ResolvedAnimationChannel(
                    raw=channel,
                    index=c,
                    sampler=_lookup(samplers, channel.sampler, entity, "sampler"),
                    target=target,
                ))

            resolved.append(ResolvedAnimation(
                raw=anim, index=a, samplers=samplers, channels=tuple(channels),
            ))
        return tuple(resolved)

    @staticmethod
    def _resolve_scenes(
        document: Document, nodes: Sequence[ResolvedNode]
    ) -> tuple[ResolvedScene, ...]:
        return tuple(
            ResolvedScene(
                raw=scene,
                index=i,
                nodes=tuple(
                    _lookup(nodes, n, f"scenes[{i}]", f"nodes[{k}]")
                    for k, n in enumerate(scene.nodes)
                ),
            )
            for i, scene in enumerate(document.scenes)
        )


def resolve(
    document: Document,
    search_paths: Optional[Sequence[str]] = None,
    source: Optional[ByteSource] = None,
) -> tuple[ResolvedGraph, Optional[GltfLinkError]]:
    """Module-level shortcut for GraphResolver(source).resolve(...)."""
    return GraphResolver(source).resolve(document, search_paths)
