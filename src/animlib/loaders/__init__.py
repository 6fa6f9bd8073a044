"""Loader utilities for accessor data and glTF documents."""

from .accessor_view import (
    AccessorDescriptor,
    ComponentType,
    OutOfRangeError,
    SchemaError,
    TypedAccessorView,
    has_float_components,
)
from .gltf_document import (
    AccessorDescription,
    AnimationDescription,
    BufferViewDescription,
    ChannelDescription,
    GltfDocument,
    SamplerDescription,
    document_from_gltf2,
    document_from_json,
)

__all__ = [
    'AccessorDescriptor',
    'ComponentType',
    'OutOfRangeError',
    'SchemaError',
    'TypedAccessorView',
    'has_float_components',
    'AccessorDescription',
    'AnimationDescription',
    'BufferViewDescription',
    'ChannelDescription',
    'GltfDocument',
    'SamplerDescription',
    'document_from_gltf2',
    'document_from_json',
]
