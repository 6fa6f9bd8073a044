"""Shared fixtures for building in-memory glTF documents"""

import numpy as np
import pytest

from animlib.loaders.accessor_view import COMPONENT_DTYPES, ComponentType
from animlib.loaders.gltf_document import (
    AccessorDescription,
    AnimationDescription,
    BufferViewDescription,
    ChannelDescription,
    GltfDocument,
    SamplerDescription,
)


class SceneNode:
    """Minimal scene node exposing the three animated properties"""

    def __init__(self):
        self.translation = np.zeros(3)
        self.rotation = np.array([0.0, 0.0, 0.0, 1.0])
        self.scale = np.ones(3)


class DocumentBuilder:
    """
    Packs arrays into a single buffer and records accessors for them.

    With keyed=True, collections are dicts with string IDs (glTF 1.0 style).
    """

    def __init__(self, version="2.0", keyed=False):
        self.version = version
        self.keyed = keyed
        self.data = bytearray()
        self.accessors = {} if keyed else []
        self.buffer_views = {} if keyed else []
        self.nodes = {} if keyed else []

    def _store(self, collection, prefix, value):
        if self.keyed:
            key = f"{prefix}_{len(collection)}"
            collection[key] = value
            return key
        collection.append(value)
        return len(collection) - 1

    def add_accessor(self, values, accessor_type, component_type=ComponentType.FLOAT,
                     normalized=False):
        array = np.asarray(values, dtype=COMPONENT_DTYPES[component_type])
        while len(self.data) % 4:
            self.data.append(0)
        offset = len(self.data)
        raw = array.tobytes()
        self.data.extend(raw)

        buffer_id = "buffer_0" if self.keyed else 0
        view_id = self._store(self.buffer_views, "bufferView", BufferViewDescription(
            buffer=buffer_id, byte_offset=offset, byte_length=len(raw)
        ))
        count = array.shape[0] if array.ndim > 0 else 1
        return self._store(self.accessors, "accessor", AccessorDescription(
            buffer_view=view_id,
            component_type=component_type,
            type=accessor_type,
            count=count,
            normalized=normalized,
        ))

    def add_node(self, node=None):
        return self._store(self.nodes, "node", node if node is not None else SceneNode())

    def build(self, animations):
        buffers = {"buffer_0": bytes(self.data)} if self.keyed else [bytes(self.data)]
        return GltfDocument(
            version=self.version,
            accessors=self.accessors,
            buffer_views=self.buffer_views,
            buffers=buffers,
            nodes=self.nodes,
            animations=animations,
        )


def simple_animation(builder, times, values, accessor_type, path,
                     interpolation=None, node=None):
    """Build a one-channel animation referencing accessors directly"""
    time_acc = builder.add_accessor(times, "SCALAR")
    value_acc = builder.add_accessor(values, accessor_type)
    if node is None:
        node = builder.add_node()
    return AnimationDescription(
        channels=[ChannelDescription(sampler=0, target_node=node, target_path=path)],
        samplers=[SamplerDescription(input=time_acc, output=value_acc,
                                     interpolation=interpolation)],
        name="anim",
    )


@pytest.fixture
def builder():
    return DocumentBuilder()


@pytest.fixture
def legacy_builder():
    return DocumentBuilder(version="1.0", keyed=True)


@pytest.fixture
def make_animation():
    return simple_animation
