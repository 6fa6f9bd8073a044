"""
Accessor View

Typed, bounds-checked read access to glTF accessor data inside a byte buffer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, Tuple, Union

import numpy as np


class SchemaError(ValueError):
    """Raised when an accessor description cannot describe valid data."""


class OutOfRangeError(IndexError):
    """Raised when an accessor view is indexed outside its bounds."""


class ComponentType(IntEnum):
    """glTF accessor component types (GL enum values)."""
    BYTE = 5120
    UNSIGNED_BYTE = 5121
    SHORT = 5122
    UNSIGNED_SHORT = 5123
    UNSIGNED_INT = 5125
    FLOAT = 5126


# Little-endian, as required by glTF
COMPONENT_DTYPES = {
    ComponentType.BYTE: np.dtype('<i1'),
    ComponentType.UNSIGNED_BYTE: np.dtype('<u1'),
    ComponentType.SHORT: np.dtype('<i2'),
    ComponentType.UNSIGNED_SHORT: np.dtype('<u2'),
    ComponentType.UNSIGNED_INT: np.dtype('<u4'),
    ComponentType.FLOAT: np.dtype('<f4'),
}

COMPONENT_COUNTS = {
    'SCALAR': 1,
    'VEC2': 2,
    'VEC3': 3,
    'VEC4': 4,
    'MAT2': 4,
    'MAT3': 9,
    'MAT4': 16,
}

SUPPORTED_COMPONENT_COUNTS = frozenset((1, 2, 3, 4, 9, 16))

# Divisors used for normalized integer components
NORMALIZATION_DIVISORS = {
    ComponentType.BYTE: 127.0,
    ComponentType.UNSIGNED_BYTE: 255.0,
    ComponentType.SHORT: 32767.0,
    ComponentType.UNSIGNED_SHORT: 65535.0,
}

_SIGNED_TYPES = frozenset((ComponentType.BYTE, ComponentType.SHORT))


def is_integer(value) -> bool:
    """Whether value is a plain or numpy integer (bool excluded)."""
    return not isinstance(value, bool) and isinstance(value, (int, np.integer))


def to_component_type(value) -> ComponentType:
    """Convert a GL enum value to a ComponentType, raising SchemaError if unknown."""
    try:
        return ComponentType(int(value))
    except (TypeError, ValueError):
        raise SchemaError(f"Unsupported component type: {value!r}") from None


def to_component_count(value: Union[int, str]) -> int:
    """
    Convert an accessor type ("VEC3") or a plain count (3) to a component count.

    Raises:
        SchemaError: If the type or count is not supported
    """
    if isinstance(value, str):
        if value not in COMPONENT_COUNTS:
            raise SchemaError(f"Unsupported accessor type: {value!r}")
        count = COMPONENT_COUNTS[value]
    else:
        count = value
    if not is_integer(count):
        raise SchemaError(f"Unsupported components per element: {value!r}")
    if count not in SUPPORTED_COMPONENT_COUNTS:
        raise SchemaError(f"Unsupported components per element: {count}")
    return int(count)


@dataclass(frozen=True)
class AccessorDescriptor:
    """
    Layout of typed elements inside a byte buffer.

    byte_offset is absolute within the buffer handed to the view (buffer
    view offset plus accessor offset). A byte_stride of 0 means the elements
    are tightly packed.
    """
    count: int
    component_type: int
    components: Union[int, str]
    byte_offset: int = 0
    byte_stride: int = 0
    normalized: bool = False

    @property
    def component_size(self) -> int:
        return COMPONENT_DTYPES[to_component_type(self.component_type)].itemsize

    @property
    def element_size(self) -> int:
        return self.component_size * to_component_count(self.components)

    @property
    def effective_stride(self) -> int:
        return self.byte_stride or self.element_size


def has_float_components(descriptor) -> bool:
    """Whether the descriptor declares 32-bit float components."""
    if descriptor is None:
        return False
    try:
        return int(descriptor.component_type) == ComponentType.FLOAT
    except (TypeError, ValueError):
        return False


class TypedAccessorView:
    """
    Random-access float view of accessor data.

    The view wraps the buffer in a strided numpy array without copying it.
    Values are promoted to float on read; normalized integer components are
    rescaled to [0, 1] (unsigned) or [-1, 1] (signed). The backing buffer
    must stay alive and unchanged while the view is used.
    """

    def __init__(self, descriptor: AccessorDescriptor, buffer):
        """
        Initialize accessor view.

        Args:
            descriptor: Accessor layout
            buffer: Bytes-like object holding the data

        Raises:
            SchemaError: If the descriptor is inconsistent or exceeds the buffer
        """
        self.descriptor = descriptor
        self.component_type = to_component_type(descriptor.component_type)
        self.components_per_element = to_component_count(descriptor.components)
        self.normalized = bool(descriptor.normalized)

        count = descriptor.count
        offset = descriptor.byte_offset or 0
        stride = descriptor.byte_stride or 0

        if not is_integer(count) or count < 0:
            raise SchemaError(f"Invalid element count: {count!r}")
        if not is_integer(offset) or offset < 0:
            raise SchemaError(f"Invalid byte offset: {offset!r}")
        if not is_integer(stride) or stride < 0:
            raise SchemaError(f"Invalid byte stride: {stride!r}")

        dtype = COMPONENT_DTYPES[self.component_type]
        element_size = dtype.itemsize * self.components_per_element
        if stride and stride < element_size:
            raise SchemaError(
                f"Byte stride {stride} is smaller than the element size {element_size}"
            )
        if self.normalized and self.component_type not in NORMALIZATION_DIVISORS:
            raise SchemaError(
                f"Component type {self.component_type.name} cannot be normalized"
            )

        data = memoryview(buffer).cast('B')
        effective_stride = stride or element_size
        if count > 0:
            end = offset + (count - 1) * effective_stride + element_size
            if end > data.nbytes:
                raise SchemaError(
                    f"Accessor needs {end} bytes but the buffer holds {data.nbytes}"
                )
            self._raw = np.ndarray(
                shape=(count, self.components_per_element),
                dtype=dtype,
                buffer=data,
                offset=offset,
                strides=(effective_stride, dtype.itemsize),
            )
        else:
            if offset > data.nbytes:
                raise SchemaError(
                    f"Byte offset {offset} lies beyond the buffer size {data.nbytes}"
                )
            self._raw = np.empty((0, self.components_per_element), dtype=dtype)
        self._raw.flags.writeable = False
        self._count = int(count)

    def element_count(self) -> int:
        return self._count

    def __len__(self):
        return self._count

    def get(self, element_index: int, component_index: int = 0) -> float:
        """
        Read one component as a float.

        Raises:
            OutOfRangeError: If either index is outside the view
        """
        if not 0 <= element_index < self._count:
            raise OutOfRangeError(
                f"Element index {element_index} out of range for {self._count} elements"
            )
        if not 0 <= component_index < self.components_per_element:
            raise OutOfRangeError(
                f"Component index {component_index} out of range for "
                f"{self.components_per_element} components"
            )
        return self._convert(self._raw[element_index, component_index])

    def element(self, element_index: int) -> Tuple[float, ...]:
        """Read all components of one element."""
        return tuple(
            self.get(element_index, c) for c in range(self.components_per_element)
        )

    def __iter__(self) -> Iterator[Tuple[float, ...]]:
        for e in range(self._count):
            yield self.element(e)

    def to_array(self) -> np.ndarray:
        """Decode the whole view into a (count, components) float64 array."""
        values = self._raw.astype(np.float64)
        if self.normalized:
            values /= NORMALIZATION_DIVISORS[self.component_type]
            if self.component_type in _SIGNED_TYPES:
                np.maximum(values, -1.0, out=values)
        return values

    def _convert(self, raw) -> float:
        value = float(raw)
        if self.normalized:
            value /= NORMALIZATION_DIVISORS[self.component_type]
            if self.component_type in _SIGNED_TYPES:
                value = max(value, -1.0)
        return value

    def __repr__(self):
        return (
            f"TypedAccessorView(count={self._count}, "
            f"type={self.component_type.name}, components={self.components_per_element})"
        )
