"""
Animation

Resolved keyframe data for a single animated node property.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Hashable, Iterator, Tuple

import numpy as np


class InterpolationType(Enum):
    """Animation interpolation types."""
    STEP = "STEP"
    LINEAR = "LINEAR"
    SLERP = "SLERP"  # LINEAR on rotations


class AnimationTarget(Enum):
    """Animation target properties."""
    TRANSLATION = "translation"
    ROTATION = "rotation"
    SCALE = "scale"

    @property
    def arity(self) -> int:
        """Number of components of a value for this property."""
        return 4 if self is AnimationTarget.ROTATION else 3

    @classmethod
    def from_path(cls, path):
        """Return the target for a glTF channel path, or None if unsupported."""
        for target in cls:
            if target.value == path:
                return target
        return None


@dataclass(frozen=True)
class TargetSelector:
    """Which property of which node an animation writes to."""
    node: Hashable
    path: AnimationTarget

    def __repr__(self):
        return f"TargetSelector(node={self.node!r}, path={self.path.value})"


class Keyframe:
    """
    Single keyframe in an animation.

    Stores time and value for a specific property.
    """

    def __init__(self, time: float, value: Tuple[float, ...]):
        """
        Initialize keyframe.

        Args:
            time: Time in seconds
            value: Value at this time (3 components for T/S, 4 for R)
        """
        self.time = time
        self.value = value

    def __repr__(self):
        return f"Keyframe(t={self.time:.3f}, v={self.value})"


class AnimationUnit:
    """
    Keyframes of one channel, ready for sampling.

    Key times are strictly increasing and each value has the arity of the
    target property. Both arrays are copied on construction and made
    read-only.
    """

    def __init__(
        self,
        keys,
        values,
        interpolation: InterpolationType,
        target: TargetSelector
    ):
        """
        Initialize animation unit.

        Args:
            keys: Key times in seconds, shape (N,)
            values: Key values, shape (N, arity)
            interpolation: Interpolation method
            target: Node property written by this animation

        Raises:
            ValueError: If the keyframe data is empty, inconsistent or unordered
        """
        keys = np.array(keys, dtype=np.float64).reshape(-1)
        values = np.array(values, dtype=np.float64)
        arity = target.path.arity

        if len(keys) == 0:
            raise ValueError("Animation needs at least one keyframe")
        if values.ndim != 2 or values.shape[1] != arity:
            raise ValueError(
                f"Values for {target.path.value} need shape (N, {arity}), got {values.shape}"
            )
        if len(keys) != len(values):
            raise ValueError(
                f"Got {len(keys)} key times but {len(values)} values"
            )
        if not np.all(np.isfinite(keys)):
            raise ValueError("Key times must be finite")
        if np.any(np.diff(keys) <= 0.0):
            raise ValueError("Key times must be strictly increasing")
        if interpolation is InterpolationType.SLERP and target.path is not AnimationTarget.ROTATION:
            raise ValueError("SLERP interpolation is only valid for rotations")

        keys.flags.writeable = False
        values.flags.writeable = False
        self.keys = keys
        self.values = values
        self.interpolation = interpolation
        self.target = target

    @property
    def start_time(self) -> float:
        return float(self.keys[0])

    @property
    def end_time(self) -> float:
        return float(self.keys[-1])

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def arity(self) -> int:
        return self.values.shape[1]

    def __len__(self):
        return len(self.keys)

    def keyframe(self, index: int) -> Keyframe:
        """Get the keyframe at an index."""
        return Keyframe(float(self.keys[index]), tuple(float(v) for v in self.values[index]))

    def keyframes(self) -> Iterator[Keyframe]:
        for i in range(len(self.keys)):
            yield self.keyframe(i)

    def __repr__(self):
        return (
            f"AnimationUnit(target={self.target!r}, interpolation={self.interpolation.value}, "
            f"keyframes={len(self.keys)}, duration={self.duration:.2f}s)"
        )
