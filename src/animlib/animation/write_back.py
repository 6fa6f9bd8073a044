"""
Write-back

Callbacks that copy sampled values into scene node properties.
"""

from collections.abc import Mapping, MutableMapping, MutableSequence
from typing import Callable, Tuple

import numpy as np
from pyrr import Quaternion, Vector3

from .animation import AnimationTarget, TargetSelector

WriteBack = Callable[[float, Tuple[float, ...]], None]


def _fresh_value(path: AnimationTarget, values):
    if path is AnimationTarget.ROTATION:
        return Quaternion(values)  # (x, y, z, w)
    return Vector3(values)


def _copy_into(current, values) -> bool:
    """Copy values into an existing array or list of the same length."""
    if isinstance(current, np.ndarray):
        if current.shape == (len(values),) and current.flags.writeable:
            current[:] = values
            return True
        return False
    if isinstance(current, MutableSequence) and len(current) == len(values):
        current[:] = list(values)
        return True
    return False


def write_property(node, path: AnimationTarget, values):
    """
    Write a value into the translation, rotation or scale of a node.

    Existing arrays or lists are updated in place; otherwise the property is
    replaced by a pyrr Vector3 (translation, scale) or Quaternion (rotation).
    Mapping nodes (raw glTF JSON) are written by key.
    """
    name = path.value
    if isinstance(node, Mapping):
        current = node.get(name)
        if not _copy_into(current, values):
            if not isinstance(node, MutableMapping):
                raise TypeError(f"Cannot write '{name}' into a read-only mapping")
            node[name] = list(values)
        return

    current = getattr(node, name, None)
    if not _copy_into(current, values):
        setattr(node, name, _fresh_value(path, values))


def node_writer(node, target: TargetSelector) -> WriteBack:
    """
    Create a write-back callback for one node property.

    Args:
        node: Node object (anything exposing translation/rotation/scale)
        target: Selector naming the property to write

    Returns:
        Callback taking (elapsed_seconds, value_tuple)
    """
    path = target.path

    def write(elapsed: float, values: Tuple[float, ...]):
        write_property(node, path, values)

    return write
