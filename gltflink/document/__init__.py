"""
Raw glTF document model and loader.

The model mirrors the file format 1:1: references between entities are
still integer indices.  See gltflink.resolver for the linked form.
"""

from .loader import from_bytes, from_file, from_filename
from .models import (
    Accessor,
    AccessorType,
    Animation,
    AnimationChannel,
    AnimationChannelTarget,
    AnimationSampler,
    Asset,
    AttributeSemantic,
    Buffer,
    BufferTarget,
    BufferView,
    Camera,
    CameraType,
    ComponentType,
    Document,
    Interpolation,
    Material,
    Mesh,
    Node,
    Primitive,
    PrimitiveMode,
    Scene,
    TargetPath,
    is_standard_semantic,
)

__all__ = [
    "from_bytes",
    "from_file",
    "from_filename",
    "Accessor",
    "AccessorType",
    "Animation",
    "AnimationChannel",
    "AnimationChannelTarget",
    "AnimationSampler",
    "Asset",
    "AttributeSemantic",
    "Buffer",
    "BufferTarget",
    "BufferView",
    "Camera",
    "CameraType",
    "ComponentType",
    "Document",
    "Interpolation",
    "Material",
    "Mesh",
    "Node",
    "Primitive",
    "PrimitiveMode",
    "Scene",
    "TargetPath",
    "is_standard_semantic",
]
