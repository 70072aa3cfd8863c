"""
Raw document model — glTF entities exactly as deserialized.

Every cross-entity reference is still an integer index into one of the
Document's arrays.  These objects are treated as read-only once built;
the resolver never modifies them.

Enumerated codes are kept as the raw int / str read from the file.  The
closed enumerations below are applied (and unknown codes rejected) during
resolution, not during deserialization.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

__all__ = [
    "ComponentType",
    "AccessorType",
    "BufferTarget",
    "PrimitiveMode",
    "Interpolation",
    "TargetPath",
    "CameraType",
    "AttributeSemantic",
    "is_standard_semantic",
    "Asset",
    "Buffer",
    "BufferView",
    "Accessor",
    "Material",
    "Camera",
    "Primitive",
    "Mesh",
    "Node",
    "Scene",
    "AnimationSampler",
    "AnimationChannelTarget",
    "AnimationChannel",
    "Animation",
    "Document",
]


# ── Enumerations (values fixed by the glTF 2.0 format) ───────────────────────

class ComponentType(int, Enum):
    """Accessor component type codes (GL enum values)."""
    BYTE           = 5120
    UNSIGNED_BYTE  = 5121
    SHORT          = 5122
    UNSIGNED_SHORT = 5123
    UNSIGNED_INT   = 5125
    FLOAT          = 5126

    @property
    def size(self) -> int:
        """Byte size of one component, as fixed by the format (not the host)."""
        return _COMPONENT_SIZES[self]


_COMPONENT_SIZES = {
    ComponentType.BYTE:           1,
    ComponentType.UNSIGNED_BYTE:  1,
    ComponentType.SHORT:          2,
    ComponentType.UNSIGNED_SHORT: 2,
    ComponentType.UNSIGNED_INT:   4,
    ComponentType.FLOAT:          4,
}


class AccessorType(str, Enum):
    """Accessor element shape."""
    SCALAR = "SCALAR"
    VEC2   = "VEC2"
    VEC3   = "VEC3"
    VEC4   = "VEC4"
    MAT2   = "MAT2"
    MAT3   = "MAT3"
    MAT4   = "MAT4"

    @property
    def count(self) -> int:
        """Number of components per element."""
        return _ELEMENT_COUNTS[self]


_ELEMENT_COUNTS = {
    AccessorType.SCALAR: 1,
    AccessorType.VEC2:   2,
    AccessorType.VEC3:   3,
    AccessorType.VEC4:   4,
    AccessorType.MAT2:   4,
    AccessorType.MAT3:   9,
    AccessorType.MAT4:   16,
}


class BufferTarget(int, Enum):
    """Intended GPU buffer binding of a buffer view."""
    ARRAY_BUFFER         = 34962
    ELEMENT_ARRAY_BUFFER = 34963


class PrimitiveMode(int, Enum):
    POINTS         = 0
    LINES          = 1
    LINE_LOOP      = 2
    LINE_STRIP     = 3
    TRIANGLES      = 4
    TRIANGLE_STRIP = 5
    TRIANGLE_FAN   = 6


class Interpolation(str, Enum):
    LINEAR       = "linear"
    STEP         = "step"
    CUBIC_SPLINE = "cubicspline"


class TargetPath(str, Enum):
    TRANSLATION = "translation"
    ROTATION    = "rotation"
    SCALE       = "scale"
    WEIGHTS     = "weights"


class CameraType(str, Enum):
    PERSPECTIVE  = "perspective"
    ORTHOGRAPHIC = "orthographic"


class AttributeSemantic(str, Enum):
    """
    Standard vertex attribute names.

    Only the set-0/set-1 names are listed; TEXCOORD_n, COLOR_n, JOINTS_n
    and WEIGHTS_n continue with higher suffixes (see is_standard_semantic).
    """
    POSITION   = "POSITION"
    NORMAL     = "NORMAL"
    TANGENT    = "TANGENT"
    TEXCOORD_0 = "TEXCOORD_0"
    TEXCOORD_1 = "TEXCOORD_1"
    COLOR_0    = "COLOR_0"
    JOINTS_0   = "JOINTS_0"
    WEIGHTS_0  = "WEIGHTS_0"


_INDEXED_SEMANTIC_RE = re.compile(r"^(TEXCOORD|COLOR|JOINTS|WEIGHTS)_(0|[1-9][0-9]*)$")


def is_standard_semantic(name: str) -> bool:
    """True for format-defined attribute names, False for custom ``_FOO`` ones."""
    if name in ("POSITION", "NORMAL", "TANGENT"):
        return True
    return bool(_INDEXED_SEMANTIC_RE.match(name))


# ── Helpers ───────────────────────────────────────────────────────────────────

_IDENTITY = [1.0, 0.0, 0.0, 0.0,
             0.0, 1.0, 0.0, 0.0,
             0.0, 0.0, 1.0, 0.0,
             0.0, 0.0, 0.0, 1.0]


def _opt_int(d: dict, key: str) -> Optional[int]:
    value = d.get(key)
    return None if value is None else int(value)


def _common(d: dict) -> dict:
    return {
        "name":       d.get("name", ""),
        "extensions": dict(d.get("extensions") or {}),
        "extras":     d.get("extras"),
    }


# ── Entities ──────────────────────────────────────────────────────────────────

@dataclass
class Asset:
    version:     str = "2.0"
    generator:   str = ""
    copyright:   str = ""
    min_version: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> "Asset":
        return cls(
            version=str(d.get("version", "")),
            generator=d.get("generator", ""),
            copyright=d.get("copyright", ""),
            min_version=d.get("minVersion", ""),
        )


@dataclass
class Buffer:
    byte_length: int
    uri:         Optional[str] = None
    name:        str = ""
    extensions:  dict = field(default_factory=dict)
    extras:      Any = None

    @classmethod
    def from_dict(cls, d: dict) -> "Buffer":
        return cls(byte_length=int(d["byteLength"]), uri=d.get("uri"), **_common(d))

    @property
    def is_data_uri(self) -> bool:
        return bool(self.uri) and self.uri.startswith("data:")


@dataclass
class BufferView:
    buffer:      int
    byte_length: int
    byte_offset: int = 0
    byte_stride: Optional[int] = None
    target:      Optional[int] = None       # BufferTarget code
    name:        str = ""
    extensions:  dict = field(default_factory=dict)
    extras:      Any = None

    @classmethod
    def from_dict(cls, d: dict) -> "BufferView":
        return cls(
            buffer=int(d["buffer"]),
            byte_length=int(d["byteLength"]),
            byte_offset=int(d.get("byteOffset", 0)),
            byte_stride=_opt_int(d, "byteStride"),
            target=_opt_int(d, "target"),
            **_common(d),
        )


@dataclass
class Accessor:
    component_type: int                     # ComponentType code
    count:          int
    type:           str                     # AccessorType tag
    buffer_view:    Optional[int] = None    # absent → all zeros / sparse only
    byte_offset:    int = 0
    normalized:     bool = False
    min:            Optional[list[float]] = None
    max:            Optional[list[float]] = None
    sparse:         Optional[dict] = None
    name:           str = ""
    extensions:     dict = field(default_factory=dict)
    extras:         Any = None

    @classmethod
    def from_dict(cls, d: dict) -> "Accessor":
        return cls(
            component_type=int(d["componentType"]),
            count=int(d["count"]),
            type=str(d["type"]),
            buffer_view=_opt_int(d, "bufferView"),
            byte_offset=int(d.get("byteOffset", 0)),
            normalized=bool(d.get("normalized", False)),
            min=d.get("min"),
            max=d.get("max"),
            sparse=d.get("sparse"),
            **_common(d),
        )


@dataclass
class Material:
    """Material properties are carried through untouched in ``properties``."""
    name:       str = ""
    properties: dict = field(default_factory=dict)
    extensions: dict = field(default_factory=dict)
    extras:     Any = None

    @classmethod
    def from_dict(cls, d: dict) -> "Material":
        props = {k: v for k, v in d.items() if k not in ("name", "extensions", "extras")}
        return cls(properties=props, **_common(d))


@dataclass
class Camera:
    type:         str                       # CameraType tag
    perspective:  Optional[dict] = None
    orthographic: Optional[dict] = None
    name:         str = ""
    extensions:   dict = field(default_factory=dict)
    extras:       Any = None

    @classmethod
    def from_dict(cls, d: dict) -> "Camera":
        return cls(
            type=str(d["type"]),
            perspective=d.get("perspective"),
            orthographic=d.get("orthographic"),
            **_common(d),
        )


@dataclass
class Primitive:
    attributes: dict[str, int]
    indices:    Optional[int] = None
    material:   Optional[int] = None        # None → default material
    mode:       int = PrimitiveMode.TRIANGLES.value
    targets:    list[dict[str, int]] = field(default_factory=list)
    extensions: dict = field(default_factory=dict)
    extras:     Any = None

    @classmethod
    def from_dict(cls, d: dict) -> "Primitive":
        return cls(
            attributes={str(k): int(v) for k, v in d["attributes"].items()},
            indices=_opt_int(d, "indices"),
            material=_opt_int(d, "material"),
            mode=int(d.get("mode", PrimitiveMode.TRIANGLES.value)),
            targets=list(d.get("targets") or []),
            extensions=dict(d.get("extensions") or {}),
            extras=d.get("extras"),
        )


@dataclass
class Mesh:
    primitives: list[Primitive]
    weights:    Optional[list[float]] = None
    name:       str = ""
    extensions: dict = field(default_factory=dict)
    extras:     Any = None

    @classmethod
    def from_dict(cls, d: dict) -> "Mesh":
        return cls(
            primitives=[Primitive.from_dict(p) for p in d["primitives"]],
            weights=d.get("weights"),
            **_common(d),
        )


@dataclass
class Node:
    children:    list[int] = field(default_factory=list)
    mesh:        Optional[int] = None
    camera:      Optional[int] = None
    skin:        Optional[int] = None
    matrix:      list[float] = field(default_factory=lambda: list(_IDENTITY))
    translation: Optional[list[float]] = None
    rotation:    Optional[list[float]] = None
    scale:       Optional[list[float]] = None
    weights:     Optional[list[float]] = None
    name:        str = ""
    extensions:  dict = field(default_factory=dict)
    extras:      Any = None

    @classmethod
    def from_dict(cls, d: dict) -> "Node":
        return cls(
            children=[int(c) for c in d.get("children", [])],
            mesh=_opt_int(d, "mesh"),
            camera=_opt_int(d, "camera"),
            skin=_opt_int(d, "skin"),
            matrix=list(d.get("matrix", _IDENTITY)),
            translation=d.get("translation"),
            rotation=d.get("rotation"),
            scale=d.get("scale"),
            weights=d.get("weights"),
            **_common(d),
        )


@dataclass
class Scene:
    nodes:      list[int] = field(default_factory=list)
    name:       str = ""
    extensions: dict = field(default_factory=dict)
    extras:     Any = None

    @classmethod
    def from_dict(cls, d: dict) -> "Scene":
        return cls(nodes=[int(n) for n in d.get("nodes", [])], **_common(d))


@dataclass
class AnimationSampler:
    input:         int
    output:        int
    interpolation: str = Interpolation.LINEAR.value
    extensions:    dict = field(default_factory=dict)
    extras:        Any = None

    @classmethod
    def from_dict(cls, d: dict) -> "AnimationSampler":
        return cls(
            input=int(d["input"]),
            output=int(d["output"]),
            interpolation=str(d.get("interpolation", Interpolation.LINEAR.value)),
            extensions=dict(d.get("extensions") or {}),
            extras=d.get("extras"),
        )


@dataclass
class AnimationChannelTarget:
    path:       str                         # TargetPath tag
    node:       Optional[int] = None
    extensions: dict = field(default_factory=dict)
    extras:     Any = None

    @classmethod
    def from_dict(cls, d: dict) -> "AnimationChannelTarget":
        return cls(
            path=str(d["path"]),
            node=_opt_int(d, "node"),
            extensions=dict(d.get("extensions") or {}),
            extras=d.get("extras"),
        )


@dataclass
class AnimationChannel:
    sampler:    int
    target:     AnimationChannelTarget
    extensions: dict = field(default_factory=dict)
    extras:     Any = None

    @classmethod
    def from_dict(cls, d: dict) -> "AnimationChannel":
        return cls(
            sampler=int(d["sampler"]),
            target=AnimationChannelTarget.from_dict(d["target"]),
            extensions=dict(d.get("extensions") or {}),
            extras=d.get("extras"),
        )


@dataclass
class Animation:
    channels:   list[AnimationChannel]
    samplers:   list[AnimationSampler]
    name:       str = ""
    extensions: dict = field(default_factory=dict)
    extras:     Any = None

    @classmethod
    def from_dict(cls, d: dict) -> "Animation":
        return cls(
            channels=[AnimationChannel.from_dict(c) for c in d["channels"]],
            samplers=[AnimationSampler.from_dict(s) for s in d["samplers"]],
            **_common(d),
        )


@dataclass
class Document:
    """
    Root of a deserialized glTF asset.

    ``default_search_path`` is not part of the file format: the loader sets
    it to the directory of the file the document was read from, and the
    resolver falls back to it when no explicit search paths are given.
    """
    asset:               Asset = field(default_factory=Asset)
    buffers:             list[Buffer] = field(default_factory=list)
    buffer_views:        list[BufferView] = field(default_factory=list)
    accessors:           list[Accessor] = field(default_factory=list)
    materials:           list[Material] = field(default_factory=list)
    cameras:             list[Camera] = field(default_factory=list)
    meshes:              list[Mesh] = field(default_factory=list)
    nodes:               list[Node] = field(default_factory=list)
    scenes:              list[Scene] = field(default_factory=list)
    animations:          list[Animation] = field(default_factory=list)
    scene:               Optional[int] = None

    # Carried through without resolution
    images:              list[dict] = field(default_factory=list)
    samplers:            list[dict] = field(default_factory=list)
    skins:               list[dict] = field(default_factory=list)
    textures:            list[dict] = field(default_factory=list)
    extensions_used:     list[str] = field(default_factory=list)
    extensions_required: list[str] = field(default_factory=list)
    extensions:          dict = field(default_factory=dict)
    extras:              Any = None

    default_search_path: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "Document":
        """
        Build a Document from parsed glTF JSON.

        Raises KeyError / TypeError / ValueError on malformed input; the
        loader converts those into DocumentParseError.
        """
        return cls(
            asset=Asset.from_dict(d["asset"]),
            buffers=[Buffer.from_dict(x) for x in d.get("buffers", [])],
            buffer_views=[BufferView.from_dict(x) for x in d.get("bufferViews", [])],
            accessors=[Accessor.from_dict(x) for x in d.get("accessors", [])],
            materials=[Material.from_dict(x) for x in d.get("materials", [])],
            cameras=[Camera.from_dict(x) for x in d.get("cameras", [])],
            meshes=[Mesh.from_dict(x) for x in d.get("meshes", [])],
            nodes=[Node.from_dict(x) for x in d.get("nodes", [])],
            scenes=[Scene.from_dict(x) for x in d.get("scenes", [])],
            animations=[Animation.from_dict(x) for x in d.get("animations", [])],
            scene=_opt_int(d, "scene"),
            images=list(d.get("images", [])),
            samplers=list(d.get("samplers", [])),
            skins=list(d.get("skins", [])),
            textures=list(d.get("textures", [])),
            extensions_used=list(d.get("extensionsUsed", [])),
            extensions_required=list(d.get("extensionsRequired", [])),
            extensions=dict(d.get("extensions") or {}),
            extras=d.get("extras"),
        )
