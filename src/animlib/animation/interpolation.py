"""
Interpolation

Sampling of animation units at arbitrary times.
"""

import math
from enum import Enum
from typing import Tuple

import numpy as np
from pyrr import quaternion

from ..config.settings import SLERP_EPSILON
from .animation import AnimationUnit, InterpolationType


class PlaybackPolicy(Enum):
    """Behavior for times outside the keyframe range."""
    ONCE = "once"
    LOOP = "loop"
    CLAMP_TO_LAST = "clamp_to_last"


def wrap_time(time: float, start: float, end: float, policy: PlaybackPolicy) -> float:
    """
    Map a time into [start, end] according to the playback policy.

    ONCE and CLAMP_TO_LAST clamp to the range. LOOP wraps with period
    end - start, so start + period maps back to start.
    """
    if policy is PlaybackPolicy.LOOP:
        period = end - start
        if period <= 0.0:
            return start
        offset = (time - start) % period
        # Float modulo of tiny negative offsets can round up to the period
        if offset >= period:
            offset = 0.0
        return start + offset
    return min(max(time, start), end)


def lerp(a: np.ndarray, b: np.ndarray, fraction: float) -> np.ndarray:
    """Componentwise linear interpolation."""
    return a * (1.0 - fraction) + b * fraction


def slerp(q0: np.ndarray, q1: np.ndarray, fraction: float, epsilon: float = SLERP_EPSILON) -> np.ndarray:
    """
    Spherical linear interpolation of two (x, y, z, w) quaternions.

    Follows the shorter arc, and blends linearly when the quaternions are
    closer than epsilon radians. The result is normalized.
    """
    q0 = np.asarray(q0, dtype=np.float64)
    q1 = np.asarray(q1, dtype=np.float64)
    if np.array_equal(q0, q1):
        return q0.copy()

    dot = float(quaternion.dot(q0, q1))
    if dot < 0.0:
        q1 = -q1
        dot = -dot

    angle = math.acos(min(dot, 1.0))
    if angle < epsilon:
        result = lerp(q0, q1, fraction)
    else:
        sin_angle = math.sin(angle)
        s0 = math.sin((1.0 - fraction) * angle) / sin_angle
        s1 = math.sin(fraction * angle) / sin_angle
        result = q0 * s0 + q1 * s1

    return quaternion.normalize(result)


def sample(unit: AnimationUnit, time: float, policy: PlaybackPolicy = PlaybackPolicy.ONCE) -> Tuple[float, ...]:
    """
    Sample an animation unit at a given time.

    Args:
        unit: Animation unit to sample
        time: Time in seconds
        policy: How times outside the keyframe range are mapped

    Returns:
        Value tuple with the arity of the unit's target property
    """
    keys = unit.keys
    values = unit.values

    if len(keys) == 1:
        return _as_tuple(values[0])

    t = wrap_time(time, unit.start_time, unit.end_time, policy)

    # Index of the last key <= t
    i = int(np.searchsorted(keys, t, side='right')) - 1
    if i < 0:
        return _as_tuple(values[0])
    if i >= len(keys) - 1 or t == keys[i]:
        return _as_tuple(values[i])

    if unit.interpolation is InterpolationType.STEP:
        return _as_tuple(values[i])

    k0 = keys[i]
    k1 = keys[i + 1]
    fraction = (t - k0) / (k1 - k0)

    if unit.interpolation is InterpolationType.SLERP:
        return _as_tuple(slerp(values[i], values[i + 1], fraction))
    return _as_tuple(lerp(values[i], values[i + 1], fraction))


def _as_tuple(value) -> Tuple[float, ...]:
    return tuple(float(v) for v in value)
