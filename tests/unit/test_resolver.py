"""
Unit tests for the resolver module.

Covers:
  • End-to-end triangle document (file-backed, default search path)
  • Index fidelity and array-length preservation on a document that uses
    every reference type
  • Bounds safety for every cross-reference field
  • Unknown enumeration codes and buffer-view byte ranges
  • Short-buffer padding vs. fatal I/O errors
  • Default scene wiring, cyclic nodes, empty documents
  • ResolvedGraph.walk / require_complete
"""

import copy
import dataclasses
import json
import struct

import pytest

from gltflink.buffers.sources import MemorySource
from gltflink.config import LoadConfig
from gltflink.document.models import (
    AccessorType,
    BufferTarget,
    ComponentType,
    Document,
    Interpolation,
    PrimitiveMode,
    TargetPath,
)
from gltflink.exceptions import (
    BufferLengthError,
    BufferReadError,
    ByteRangeError,
    IncompleteGraphError,
    IndexOutOfRangeError,
    SearchPathError,
    ShortBufferError,
    UnknownEnumError,
)
from gltflink.resolver.engine import GraphResolver, resolve


# ── Fixtures ──────────────────────────────────────────────────────────────────

_TRIANGLE_POSITIONS = struct.pack("<9f", 0, 0, 0, 1, 0, 0, 0, 1, 0)


def _triangle_dict(uri: str = "triangle.bin") -> dict:
    return {
        "asset": {"version": "2.0"},
        "scene": 0,
        "scenes": [{"nodes": [0]}],
        "nodes": [{"mesh": 0}],
        "meshes": [{"primitives": [{"attributes": {"POSITION": 0}}]}],
        "buffers": [{"uri": uri, "byteLength": 36}],
        "bufferViews": [{"buffer": 0, "byteOffset": 0, "byteLength": 36,
                         "target": 34962}],
        "accessors": [{"bufferView": 0, "byteOffset": 0, "componentType": 5126,
                       "count": 3, "type": "VEC3",
                       "max": [1.0, 1.0, 0.0], "min": [0.0, 0.0, 0.0]}],
    }


def _rich_dict() -> dict:
    """A document touching every reference type the resolver links."""
    return {
        "asset": {"version": "2.0", "generator": "unit-test"},
        "scene": 0,
        "scenes": [{"name": "main", "nodes": [0]}],
        "nodes": [
            {"name": "root", "children": [1]},
            {"name": "leaf", "mesh": 0, "camera": 0, "translation": [1, 2, 3]},
        ],
        "cameras": [{"type": "perspective",
                     "perspective": {"yfov": 0.8, "znear": 0.1}}],
        "materials": [{"name": "red", "pbrMetallicRoughness": {}}],
        "meshes": [{
            "name": "tri",
            "primitives": [{
                "attributes": {"POSITION": 0},
                "indices": 1,
                "material": 0,
                "targets": [{"POSITION": 0}],
            }],
        }],
        "animations": [{
            "samplers": [{"input": 2, "output": 3, "interpolation": "linear"}],
            "channels": [{"sampler": 0, "target": {"node": 1, "path": "translation"}}],
        }],
        "buffers": [{"uri": "rich.bin", "byteLength": 76}],
        "bufferViews": [
            {"buffer": 0, "byteOffset": 0, "byteLength": 36, "target": 34962},
            {"buffer": 0, "byteOffset": 36, "byteLength": 6, "target": 34963},
            {"buffer": 0, "byteOffset": 44, "byteLength": 32},
        ],
        "accessors": [
            {"bufferView": 0, "componentType": 5126, "count": 3, "type": "VEC3"},
            {"bufferView": 1, "componentType": 5123, "count": 3, "type": "SCALAR"},
            {"bufferView": 2, "componentType": 5126, "count": 2, "type": "SCALAR"},
            {"bufferView": 2, "byteOffset": 8, "componentType": 5126, "count": 2,
             "type": "VEC3"},
        ],
    }


def _rich_bytes() -> bytes:
    return bytes(range(76))


@pytest.fixture
def rich_source() -> MemorySource:
    return MemorySource({"mem/rich.bin": _rich_bytes()})


@pytest.fixture
def rich_result(rich_source):
    doc = Document.from_dict(_rich_dict())
    return doc, *resolve(doc, ["mem"], source=rich_source)


def _set(d: dict, path: tuple, value) -> dict:
    target = d
    for key in path[:-1]:
        target = target[key]
    target[path[-1]] = value
    return d


# ── End-to-end ────────────────────────────────────────────────────────────────

class TestTriangleEndToEnd:
    """The minimal single-triangle document, loaded from real files."""

    @pytest.fixture
    def triangle_doc(self, tmp_path):
        from gltflink.document.loader import from_filename
        (tmp_path / "triangle.bin").write_bytes(_TRIANGLE_POSITIONS)
        path = tmp_path / "triangle.gltf"
        path.write_text(json.dumps(_triangle_dict()), encoding="utf-8")
        return from_filename(path)

    def test_resolves_without_error(self, triangle_doc):
        graph, error = resolve(triangle_doc, [])
        assert error is None
        assert graph.complete is True

    def test_position_data_reachable_from_scene(self, triangle_doc):
        graph, _ = resolve(triangle_doc, [])
        position = graph.scenes[0].nodes[0].mesh.primitives[0].attributes["POSITION"]
        assert len(position.buffer_view.data) == 36
        assert bytes(position.buffer_view.data) == _TRIANGLE_POSITIONS

    def test_non_indexed_primitive_without_material(self, triangle_doc):
        graph, _ = resolve(triangle_doc, [])
        prim = graph.meshes[0].primitives[0]
        assert prim.indices is None
        assert prim.material is None
        assert prim.mode is PrimitiveMode.TRIANGLES

    def test_accessor_enums_and_sizes(self, triangle_doc):
        graph, _ = resolve(triangle_doc, [])
        acc = graph.accessors[0]
        assert acc.component_type is ComponentType.FLOAT
        assert acc.type is AccessorType.VEC3
        assert acc.element_size == 12
        assert acc.stride == 12

    def test_buffer_view_target(self, triangle_doc):
        graph, _ = resolve(triangle_doc, [])
        assert graph.buffer_views[0].target is BufferTarget.ARRAY_BUFFER

    def test_explicit_search_path_overrides_default(self, triangle_doc, tmp_path):
        other = tmp_path / "other"
        other.mkdir()
        (other / "triangle.bin").write_bytes(b"\x01" * 36)
        graph, error = resolve(triangle_doc, [str(other)])
        assert error is None
        assert graph.buffers[0].data == b"\x01" * 36


# ── Index fidelity / array lengths ────────────────────────────────────────────

class TestIndexFidelity:
    """Every resolved reference points at the entity named by the raw index."""

    def test_resolves_cleanly(self, rich_result):
        _, graph, error = rich_result
        assert error is None
        assert graph.complete

    def test_array_lengths_preserved(self, rich_result):
        doc, graph, _ = rich_result
        assert len(graph.buffers) == len(doc.buffers)
        assert len(graph.buffer_views) == len(doc.buffer_views)
        assert len(graph.accessors) == len(doc.accessors)
        assert len(graph.materials) == len(doc.materials)
        assert len(graph.cameras) == len(doc.cameras)
        assert len(graph.meshes) == len(doc.meshes)
        assert len(graph.nodes) == len(doc.nodes)
        assert len(graph.animations) == len(doc.animations)
        assert len(graph.scenes) == len(doc.scenes)

    def test_back_references_are_raw_entities(self, rich_result):
        doc, graph, _ = rich_result
        for raw_list, resolved in (
            (doc.buffers, graph.buffers),
            (doc.buffer_views, graph.buffer_views),
            (doc.accessors, graph.accessors),
            (doc.nodes, graph.nodes),
            (doc.scenes, graph.scenes),
        ):
            for i, item in enumerate(resolved):
                assert item.raw is raw_list[i]
                assert item.index == i

    def test_buffer_view_references(self, rich_result):
        doc, graph, _ = rich_result
        for bv in graph.buffer_views:
            assert bv.buffer is graph.buffers[bv.raw.buffer]

    def test_buffer_view_data_is_a_slice_not_a_copy(self, rich_result):
        _, graph, _ = rich_result
        bv = graph.buffer_views[1]
        assert isinstance(bv.data, memoryview)
        assert bv.data.obj is graph.buffers[0].data
        assert bytes(bv.data) == _rich_bytes()[36:42]

    def test_accessor_references(self, rich_result):
        _, graph, _ = rich_result
        for acc in graph.accessors:
            assert acc.buffer_view is graph.buffer_views[acc.raw.buffer_view]

    def test_primitive_references(self, rich_result):
        _, graph, _ = rich_result
        prim = graph.meshes[0].primitives[0]
        assert prim.attributes["POSITION"] is graph.accessors[0]
        assert prim.indices is graph.accessors[1]
        assert prim.material is graph.materials[0]
        assert prim.targets[0]["POSITION"] is graph.accessors[0]

    def test_node_references(self, rich_result):
        _, graph, _ = rich_result
        root, leaf = graph.nodes
        assert root.children == (leaf,)
        assert leaf.children == ()
        assert leaf.mesh is graph.meshes[0]
        assert leaf.camera is graph.cameras[0]
        assert root.mesh is None

    def test_animation_references(self, rich_result):
        _, graph, _ = rich_result
        anim = graph.animations[0]
        sampler = anim.samplers[0]
        channel = anim.channels[0]
        assert sampler.input is graph.accessors[2]
        assert sampler.output is graph.accessors[3]
        assert sampler.interpolation is Interpolation.LINEAR
        assert channel.sampler is sampler
        assert channel.target.node is graph.nodes[1]
        assert channel.target.path is TargetPath.TRANSLATION

    def test_scene_references(self, rich_result):
        _, graph, _ = rich_result
        assert graph.scenes[0].nodes == (graph.nodes[0],)

    def test_default_scene_is_same_object(self, rich_result):
        _, graph, _ = rich_result
        assert graph.scene is graph.scenes[0]

    def test_input_document_unchanged(self, rich_source):
        doc = Document.from_dict(_rich_dict())
        before = copy.deepcopy(doc)
        resolve(doc, ["mem"], source=rich_source)
        assert doc == before

    def test_scene_index_points_at_listed_node(self, rich_source):
        d = _rich_dict()
        d["scenes"] = [{"nodes": [1]}]
        graph, error = resolve(Document.from_dict(d), ["mem"], source=rich_source)
        assert error is None
        assert graph.scenes[0].nodes[0] is graph.nodes[1]


# ── Bounds safety ─────────────────────────────────────────────────────────────

_BAD_REFERENCES = [
    (("bufferViews", 0, "buffer"), 5, "bufferViews[0]", "buffer"),
    (("accessors", 0, "bufferView"), 9, "accessors[0]", "bufferView"),
    (("meshes", 0, "primitives", 0, "attributes", "POSITION"), 10,
     "meshes[0].primitives[0]", "attributes.POSITION"),
    (("meshes", 0, "primitives", 0, "indices"), 10,
     "meshes[0].primitives[0]", "indices"),
    (("meshes", 0, "primitives", 0, "material"), 3,
     "meshes[0].primitives[0]", "material"),
    (("meshes", 0, "primitives", 0, "targets", 0, "POSITION"), 4,
     "meshes[0].primitives[0]", "targets[0].POSITION"),
    (("nodes", 1, "mesh"), 4, "nodes[1]", "mesh"),
    (("nodes", 1, "camera"), 2, "nodes[1]", "camera"),
    (("nodes", 0, "children"), [1, 7], "nodes[0]", "children[1]"),
    (("animations", 0, "samplers", 0, "input"), 20,
     "animations[0].samplers[0]", "input"),
    (("animations", 0, "samplers", 0, "output"), 20,
     "animations[0].samplers[0]", "output"),
    (("animations", 0, "channels", 0, "sampler"), 3,
     "animations[0].channels[0]", "sampler"),
    (("animations", 0, "channels", 0, "target", "node"), 9,
     "animations[0].channels[0]", "target.node"),
    (("scenes", 0, "nodes"), [0, 5], "scenes[0]", "nodes[1]"),
    (("scene",), 2, "document", "scene"),
]


class TestBoundsSafety:
    """Out-of-range indices produce IndexOutOfRangeError, never IndexError."""

    @pytest.mark.parametrize("path,value,entity,field", _BAD_REFERENCES)
    def test_out_of_range_reference(self, rich_source, path, value, entity, field):
        doc = Document.from_dict(_set(_rich_dict(), path, value))
        graph, error = resolve(doc, ["mem"], source=rich_source)
        assert isinstance(error, IndexOutOfRangeError)
        assert error.fatal
        assert error.entity == entity
        assert error.field == field
        assert graph.complete is False
        assert graph.error is error

    def test_negative_index_rejected(self, rich_source):
        doc = Document.from_dict(_set(_rich_dict(), ("nodes", 1, "mesh"), -1))
        _, error = resolve(doc, ["mem"], source=rich_source)
        assert isinstance(error, IndexOutOfRangeError)
        assert error.index == -1

    def test_error_message_names_index_and_bound(self, rich_source):
        doc = Document.from_dict(_set(_rich_dict(), ("nodes", 1, "mesh"), 4))
        _, error = resolve(doc, ["mem"], source=rich_source)
        assert "nodes[1].mesh" in str(error)
        assert "4" in str(error)
        assert error.bound == 1

    def test_partial_graph_keeps_earlier_arrays_only(self, rich_source):
        doc = Document.from_dict(_set(_rich_dict(), ("nodes", 1, "mesh"), 4))
        graph, _ = resolve(doc, ["mem"], source=rich_source)
        assert graph.buffers is not None
        assert graph.buffer_views is not None
        assert graph.accessors is not None
        assert graph.meshes is not None
        assert graph.nodes is None
        assert graph.animations is None
        assert graph.scenes is None
        assert graph.scene is None

    def test_require_complete_raises_on_partial_graph(self, rich_source):
        doc = Document.from_dict(_set(_rich_dict(), ("scene",), 2))
        graph, _ = resolve(doc, ["mem"], source=rich_source)
        with pytest.raises(IncompleteGraphError):
            graph.require_complete()


class TestEnumsAndByteRanges:

    @pytest.mark.parametrize("path,value,field", [
        (("accessors", 0, "componentType"), 5124, "componentType"),
        (("accessors", 0, "type"), "VEC5", "type"),
        (("bufferViews", 0, "target"), 1234, "target"),
        (("meshes", 0, "primitives", 0, "mode"), 9, "mode"),
        (("animations", 0, "samplers", 0, "interpolation"), "bezier", "interpolation"),
        (("animations", 0, "channels", 0, "target", "path"), "color", "target.path"),
        (("cameras", 0, "type"), "fisheye", "type"),
    ])
    def test_unknown_code_is_fatal(self, rich_source, path, value, field):
        doc = Document.from_dict(_set(_rich_dict(), path, value))
        graph, error = resolve(doc, ["mem"], source=rich_source)
        assert isinstance(error, UnknownEnumError)
        assert error.field == field
        assert error.value == value
        assert not graph.complete

    def test_buffer_view_past_end_of_buffer(self, rich_source):
        doc = Document.from_dict(
            _set(_rich_dict(), ("bufferViews", 2, "byteLength"), 40)
        )
        graph, error = resolve(doc, ["mem"], source=rich_source)
        assert isinstance(error, ByteRangeError)
        assert error.entity == "bufferViews[2]"
        assert error.buffer_length == 76
        assert graph.buffers is not None
        assert graph.buffer_views is None

    def test_buffer_view_exactly_at_end_is_allowed(self, rich_source):
        doc = Document.from_dict(
            _set(_rich_dict(), ("bufferViews", 2, "byteLength"), 32)
        )
        _, error = resolve(doc, ["mem"], source=rich_source)
        assert error is None

    def test_accessor_without_buffer_view(self, rich_source):
        d = _rich_dict()
        del d["accessors"][3]["bufferView"]
        graph, error = resolve(Document.from_dict(d), ["mem"], source=rich_source)
        assert error is None
        assert graph.accessors[3].buffer_view is None

    def test_interleaved_stride_comes_from_view(self, rich_source):
        doc = Document.from_dict(
            _set(_rich_dict(), ("bufferViews", 0, "byteStride"), 16)
        )
        graph, _ = resolve(doc, ["mem"], source=rich_source)
        assert graph.accessors[0].element_size == 12
        assert graph.accessors[0].stride == 16


# ── Buffers ───────────────────────────────────────────────────────────────────

class TestBufferHandling:

    def test_short_buffer_is_padded_and_reported(self):
        source = MemorySource({"triangle.bin": _TRIANGLE_POSITIONS[:20]})
        doc = Document.from_dict(_triangle_dict())
        graph, error = resolve(doc, ["anywhere"], source=source)
        assert isinstance(error, ShortBufferError)
        assert not error.fatal
        assert error.expected == 36
        assert error.actual == 20
        assert graph.complete
        data = graph.buffers[0].data
        assert len(data) == 36
        assert data[:20] == _TRIANGLE_POSITIONS[:20]
        assert data[20:] == bytes(16)
        assert graph.warnings == (error,)

    def test_every_short_buffer_is_recorded(self):
        d = _triangle_dict()
        d["buffers"].append({"uri": "second.bin", "byteLength": 8})
        source = MemorySource({"triangle.bin": b"\x00" * 10, "second.bin": b"\x00"})
        graph, error = resolve(Document.from_dict(d), ["x"], source=source)
        assert [w.uri for w in graph.warnings] == ["triangle.bin", "second.bin"]
        assert error is graph.warnings[0]

    def test_long_buffer_is_truncated(self):
        source = MemorySource({"triangle.bin": _TRIANGLE_POSITIONS + b"extra"})
        graph, error = resolve(Document.from_dict(_triangle_dict()), ["x"], source=source)
        assert error is None
        assert graph.buffers[0].data == _TRIANGLE_POSITIONS

    def test_missing_buffer_aborts_with_partial_graph(self):
        graph, error = resolve(
            Document.from_dict(_triangle_dict()), ["x"], source=MemorySource({})
        )
        assert isinstance(error, BufferReadError)
        assert error.fatal
        assert error.uri == "triangle.bin"
        assert graph.buffers is None
        assert graph.complete is False

    def test_no_search_path_for_external_buffer(self):
        doc = Document.from_dict(_triangle_dict())
        assert doc.default_search_path is None
        _, error = resolve(doc, None, source=MemorySource({"triangle.bin": b""}))
        assert isinstance(error, SearchPathError)

    def test_default_search_path_used_when_none_given(self):
        doc = Document.from_dict(_triangle_dict())
        doc.default_search_path = "models"
        source = MemorySource({"models/triangle.bin": _TRIANGLE_POSITIONS})
        graph, error = resolve(doc, [], source=source)
        assert error is None
        assert graph.buffers[0].data == _TRIANGLE_POSITIONS

    def test_data_uri_needs_no_search_path(self):
        import base64
        uri = ("data:application/octet-stream;base64,"
               + base64.b64encode(_TRIANGLE_POSITIONS).decode())
        doc = Document.from_dict(_triangle_dict(uri=uri))
        graph, error = resolve(doc)
        assert error is None
        assert graph.buffers[0].data == _TRIANGLE_POSITIONS

    def test_oversized_declared_length_is_fatal(self):
        d = _triangle_dict()
        d["buffers"][0]["byteLength"] = 1 << 62
        source = MemorySource({"triangle.bin": b"\x01" * 4})
        graph, error = resolve(Document.from_dict(d), ["x"], source=source)
        assert isinstance(error, BufferLengthError)
        assert error.fatal
        assert error.byte_length == 1 << 62
        assert graph.buffers is None
        assert graph.complete is False

    def test_declared_length_checked_against_source_config(self):
        source = MemorySource({"triangle.bin": _TRIANGLE_POSITIONS},
                              LoadConfig(max_buffer_bytes=16))
        _, error = resolve(Document.from_dict(_triangle_dict()), ["x"], source=source)
        assert isinstance(error, BufferLengthError)
        assert "soft limit" in str(error)

    def test_negative_declared_length_is_fatal(self):
        d = _triangle_dict()
        d["buffers"][0]["byteLength"] = -1
        source = MemorySource({"triangle.bin": _TRIANGLE_POSITIONS})
        graph, error = resolve(Document.from_dict(d), ["x"], source=source)
        assert isinstance(error, BufferLengthError)
        assert "negative" in str(error)
        assert graph.buffers is None


# ── Graph shape ───────────────────────────────────────────────────────────────

class TestGraphShape:

    def test_empty_document_resolves_to_empty_arrays(self):
        graph, error = resolve(Document.from_dict({"asset": {"version": "2.0"}}))
        assert error is None
        assert graph.complete
        assert graph.buffers == ()
        assert graph.accessors == ()
        assert graph.nodes == ()
        assert graph.scenes == ()
        assert graph.scene is None

    def test_cyclic_children_resolve(self):
        doc = Document.from_dict({
            "asset": {"version": "2.0"},
            "nodes": [{"children": [1]}, {"children": [0]}],
            "scenes": [{"nodes": [0]}],
            "scene": 0,
        })
        graph, error = resolve(doc)
        assert error is None
        a, b = graph.nodes
        assert a.children[0] is b
        assert b.children[0] is a

    def test_walk_terminates_on_cycles(self):
        doc = Document.from_dict({
            "asset": {"version": "2.0"},
            "nodes": [{"children": [1]}, {"children": [0, 2]}, {}],
            "scenes": [{"nodes": [0]}],
            "scene": 0,
        })
        graph, _ = resolve(doc)
        visited = [(node.index, depth) for node, depth in graph.walk()]
        assert visited == [(0, 0), (1, 1), (2, 2)]

    def test_forward_and_self_references(self):
        doc = Document.from_dict({
            "asset": {"version": "2.0"},
            "nodes": [{"children": [2]}, {"children": [1]}, {}],
        })
        graph, error = resolve(doc)
        assert error is None
        assert graph.nodes[0].children[0] is graph.nodes[2]
        assert graph.nodes[1].children[0] is graph.nodes[1]

    def test_str_does_not_recurse_on_cycles(self):
        doc = Document.from_dict({
            "asset": {"version": "2.0"},
            "nodes": [{"name": "a", "children": [0]}],
        })
        graph, _ = resolve(doc)
        assert str(graph.nodes[0]) == "Node[0] 'a'"
        assert "Node[0]" in repr(graph.nodes[0])

    def test_resolver_instance_is_reusable(self, rich_source):
        resolver = GraphResolver(rich_source)
        g1, _ = resolver.resolve(Document.from_dict(_rich_dict()), ["mem"])
        g2, _ = resolver.resolve(Document.from_dict(_rich_dict()), ["mem"])
        assert g1.nodes[0] is not g2.nodes[0]
        assert g1.buffers[0].data == g2.buffers[0].data

    def test_graph_is_frozen(self, rich_result):
        _, graph, _ = rich_result
        with pytest.raises(dataclasses.FrozenInstanceError):
            graph.complete = False
        with pytest.raises(dataclasses.FrozenInstanceError):
            graph.nodes[0].children = ()
        with pytest.raises(dataclasses.FrozenInstanceError):
            graph.accessors[0].buffer_view = None
