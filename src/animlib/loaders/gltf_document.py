"""
glTF Document

In-memory description of the parts of a glTF asset that animation playback
reads, plus adapters from pygltflib objects and raw glTF JSON.

glTF 1.0 keys its collections by string IDs, glTF 2.0 uses lists indexed by
integers. Both shapes are accepted everywhere an ID is looked up.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Mapping, Optional, Union

import pygltflib

from ..core.versions import normalize_version
from .accessor_view import AccessorDescriptor, SchemaError, TypedAccessorView, is_integer

Collection = Union[Mapping[Hashable, Any], List[Any]]


def lookup(collection: Optional[Collection], key: Hashable):
    """
    Fetch an entry from a dict- or list-shaped glTF collection.

    Returns:
        The entry, or None if the collection or key is missing
    """
    if collection is None or key is None:
        return None
    if isinstance(collection, Mapping):
        try:
            return collection.get(key)
        except TypeError:
            # Unhashable key
            return None
    if not is_integer(key):
        return None
    if 0 <= key < len(collection):
        return collection[key]
    return None


def _entries(collection: Optional[Collection]):
    """Iterate (id, entry) pairs of a dict- or list-shaped collection."""
    if collection is None:
        return []
    if isinstance(collection, Mapping):
        return list(collection.items())
    return list(enumerate(collection))


def _map_collection(collection: Optional[Collection], fn):
    """Apply fn to every entry, keeping the dict or list shape."""
    if collection is None:
        return []
    if isinstance(collection, Mapping):
        return {key: fn(value) for key, value in collection.items()}
    return [fn(value) for value in collection]


@dataclass
class BufferViewDescription:
    """A byte range of a buffer."""
    buffer: Hashable
    byte_offset: int = 0
    byte_length: Optional[int] = None
    byte_stride: int = 0


@dataclass
class AccessorDescription:
    """
    Typed interpretation of a buffer view.

    byte_stride lives on the accessor in glTF 1.0 and on the buffer view in
    glTF 2.0; the accessor value wins when both are set.
    """
    buffer_view: Optional[Hashable]
    component_type: int
    type: Union[str, int]
    count: int
    byte_offset: int = 0
    byte_stride: int = 0
    normalized: bool = False


@dataclass
class SamplerDescription:
    """Input (time) and output (value) references plus interpolation."""
    input: Hashable
    output: Hashable
    interpolation: Optional[str] = None


@dataclass
class ChannelDescription:
    """Binds a sampler to one property of one node."""
    sampler: Hashable
    target_node: Hashable
    target_path: str


@dataclass
class AnimationDescription:
    """
    One glTF animation.

    parameters maps symbolic names to accessor IDs and is only used by
    glTF 1.0 assets.
    """
    channels: List[ChannelDescription] = field(default_factory=list)
    samplers: Collection = field(default_factory=list)
    parameters: Optional[Mapping[str, Hashable]] = None
    name: Optional[str] = None


@dataclass
class GltfDocument:
    """Accessors, buffers, nodes and animations of one glTF asset."""
    version: Optional[str] = None
    accessors: Collection = field(default_factory=list)
    buffer_views: Collection = field(default_factory=list)
    buffers: Collection = field(default_factory=list)
    nodes: Collection = field(default_factory=list)
    animations: Collection = field(default_factory=list)

    @property
    def schema_version(self) -> str:
        return normalize_version(self.version)

    def get_accessor(self, accessor_id: Hashable) -> Optional[AccessorDescription]:
        return lookup(self.accessors, accessor_id)

    def get_node(self, node_id: Hashable):
        return lookup(self.nodes, node_id)

    def has_node(self, node_id: Hashable) -> bool:
        return self.get_node(node_id) is not None

    def animation_entries(self):
        """(animation ID, AnimationDescription) pairs in document order."""
        return _entries(self.animations)

    def create_view(self, accessor_id: Hashable) -> TypedAccessorView:
        """
        Create a typed view over the data of an accessor.

        The view is restricted to the accessor's buffer view, so an accessor
        reaching past its buffer view fails even if the buffer is larger.

        Raises:
            SchemaError: If the accessor, buffer view or buffer is missing,
                or the accessor layout does not fit the data
        """
        accessor = self.get_accessor(accessor_id)
        if accessor is None:
            raise SchemaError(f"Unknown accessor: {accessor_id!r}")

        buffer_view = lookup(self.buffer_views, accessor.buffer_view)
        if buffer_view is None:
            raise SchemaError(
                f"Accessor {accessor_id!r} refers to unknown buffer view {accessor.buffer_view!r}"
            )
        buffer = lookup(self.buffers, buffer_view.buffer)
        if buffer is None:
            raise SchemaError(
                f"Buffer view {accessor.buffer_view!r} refers to unknown buffer {buffer_view.buffer!r}"
            )

        try:
            data = memoryview(buffer).cast('B')
        except TypeError:
            raise SchemaError(
                f"Buffer {buffer_view.buffer!r} does not hold binary data"
            ) from None

        start = buffer_view.byte_offset or 0
        byte_length = buffer_view.byte_length
        byte_stride = buffer_view.byte_stride or 0
        if not is_integer(start) or start < 0:
            raise SchemaError(
                f"Buffer view {accessor.buffer_view!r} has invalid byte offset {start!r}"
            )
        if byte_length is not None and (not is_integer(byte_length) or byte_length < 0):
            raise SchemaError(
                f"Buffer view {accessor.buffer_view!r} has invalid byte length {byte_length!r}"
            )
        if not is_integer(byte_stride) or byte_stride < 0:
            raise SchemaError(
                f"Buffer view {accessor.buffer_view!r} has invalid byte stride {byte_stride!r}"
            )
        if start > data.nbytes:
            raise SchemaError(
                f"Buffer view {accessor.buffer_view!r} starts beyond the end of its buffer"
            )
        if byte_length is not None:
            end = start + byte_length
            if end > data.nbytes:
                raise SchemaError(
                    f"Buffer view {accessor.buffer_view!r} exceeds its buffer"
                )
            data = data[start:end]
        else:
            data = data[start:]

        descriptor = AccessorDescriptor(
            count=accessor.count,
            component_type=accessor.component_type,
            components=accessor.type,
            byte_offset=accessor.byte_offset or 0,
            byte_stride=accessor.byte_stride or byte_stride,
            normalized=bool(accessor.normalized),
        )
        return TypedAccessorView(descriptor, data)


# ---------------------------------------------------------------------------
# pygltflib adapter
# ---------------------------------------------------------------------------

def document_from_gltf2(gltf: pygltflib.GLTF2) -> GltfDocument:
    """
    Build a GltfDocument from a loaded pygltflib GLTF2 object.

    Args:
        gltf: GLTF data

    Returns:
        Document sharing the node objects of the GLTF2 instance, so
        write-back callbacks update gltf.nodes directly
    """
    buffers = []
    for buffer in gltf.buffers:
        if buffer.uri:
            # External or data URI buffer
            buffers.append(gltf.get_data_from_buffer_uri(buffer.uri))
        else:
            # Embedded buffer (GLB)
            buffers.append(gltf.binary_blob())

    buffer_views = [
        BufferViewDescription(
            buffer=view.buffer,
            byte_offset=view.byteOffset or 0,
            byte_length=view.byteLength,
            byte_stride=view.byteStride or 0,
        )
        for view in gltf.bufferViews
    ]

    accessors = [
        AccessorDescription(
            buffer_view=accessor.bufferView,
            component_type=accessor.componentType,
            type=accessor.type,
            count=accessor.count,
            byte_offset=accessor.byteOffset or 0,
            normalized=bool(accessor.normalized),
        )
        for accessor in gltf.accessors
    ]

    animations = []
    for gltf_anim in gltf.animations:
        channels = [
            ChannelDescription(
                sampler=channel.sampler,
                target_node=channel.target.node,
                target_path=channel.target.path,
            )
            for channel in gltf_anim.channels
        ]
        samplers = [
            SamplerDescription(
                input=sampler.input,
                output=sampler.output,
                interpolation=sampler.interpolation,
            )
            for sampler in gltf_anim.samplers
        ]
        animations.append(AnimationDescription(
            channels=channels, samplers=samplers, name=gltf_anim.name
        ))

    version = gltf.asset.version if gltf.asset is not None else None
    return GltfDocument(
        version=version,
        accessors=accessors,
        buffer_views=buffer_views,
        buffers=buffers,
        nodes=gltf.nodes,
        animations=animations,
    )


# ---------------------------------------------------------------------------
# Raw JSON adapter (glTF 1.0 and 2.0)
# ---------------------------------------------------------------------------

def _buffer_view_from_json(data: Dict[str, Any]) -> BufferViewDescription:
    return BufferViewDescription(
        buffer=data.get("buffer"),
        byte_offset=data.get("byteOffset", 0),
        byte_length=data.get("byteLength"),
        byte_stride=data.get("byteStride", 0),
    )


def _accessor_from_json(data: Dict[str, Any]) -> AccessorDescription:
    return AccessorDescription(
        buffer_view=data.get("bufferView"),
        component_type=data.get("componentType"),
        type=data.get("type"),
        count=data.get("count"),
        byte_offset=data.get("byteOffset", 0),
        byte_stride=data.get("byteStride", 0),
        normalized=bool(data.get("normalized", False)),
    )


def _sampler_from_json(data: Dict[str, Any]) -> SamplerDescription:
    return SamplerDescription(
        input=data.get("input"),
        output=data.get("output"),
        interpolation=data.get("interpolation"),
    )


def _channel_from_json(data: Dict[str, Any]) -> ChannelDescription:
    target = data.get("target") or {}
    # glTF 1.0 names the node "id", glTF 2.0 names it "node"
    node = target.get("node", target.get("id"))
    return ChannelDescription(
        sampler=data.get("sampler"),
        target_node=node,
        target_path=target.get("path"),
    )


def _animation_from_json(data: Dict[str, Any]) -> AnimationDescription:
    return AnimationDescription(
        channels=[_channel_from_json(c) for c in data.get("channels", [])],
        samplers=_map_collection(data.get("samplers"), _sampler_from_json),
        parameters=data.get("parameters"),
        name=data.get("name"),
    )


def document_from_json(data: Dict[str, Any], buffers: Collection) -> GltfDocument:
    """
    Build a GltfDocument from a parsed glTF JSON object.

    Args:
        data: Parsed glTF JSON (either generation)
        buffers: Buffer bytes keyed like data["buffers"]

    Returns:
        Document whose nodes are the JSON node objects themselves
    """
    asset = data.get("asset") or {}
    return GltfDocument(
        version=asset.get("version"),
        accessors=_map_collection(data.get("accessors"), _accessor_from_json),
        buffer_views=_map_collection(data.get("bufferViews"), _buffer_view_from_json),
        buffers=buffers,
        nodes=data.get("nodes", []),
        animations=_map_collection(data.get("animations"), _animation_from_json),
    )
