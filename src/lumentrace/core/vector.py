"""Host-side 3-component vector value type.

Vector3 is the immutable value type used while building scenes and cameras
on the Python side: validation, bounding boxes, camera bases. Per-ray math
runs inside Taichi kernels on ``taichi.math.vec3`` instead (see core.ray).

Colors are Vector3 values too, conventionally with components in [0, 1]
once tone mapped.

Example:
    >>> from lumentrace.core.vector import Vector3
    >>> a = Vector3(1.0, 0.0, 0.0)
    >>> b = Vector3(0.0, 1.0, 0.0)
    >>> a.cross(b)
    Vector3(x=0.0, y=0.0, z=1.0)
    >>> (a + b).length()
    1.4142135623730951
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

import numpy as np

from lumentrace.errors import DegenerateVectorError

# Lengths below this are treated as zero when normalizing
ZERO_LENGTH_EPSILON = 1e-12

# Largest magnitude a float32 device field can hold
FLOAT32_MAX = float(np.finfo(np.float32).max)


def fits_float32(value: float) -> bool:
    """True if value is finite and stays finite when stored as float32."""
    return math.isfinite(value) and abs(value) <= FLOAT32_MAX


@dataclass(frozen=True)
class Vector3:
    """An immutable 3D vector (or RGB color).

    Attributes:
        x: First component (red for colors).
        y: Second component (green for colors).
        z: Third component (blue for colors).
    """

    x: float
    y: float
    z: float

    @classmethod
    def of(cls, value: Vector3 | Iterable[float]) -> Vector3:
        """Coerce a Vector3 or any 3-element iterable into a Vector3."""
        if isinstance(value, Vector3):
            return value
        components = tuple(float(c) for c in value)
        if len(components) != 3:
            raise ValueError(f"Expected 3 components, got {len(components)}")
        return cls(*components)

    @classmethod
    def zero(cls) -> Vector3:
        return cls(0.0, 0.0, 0.0)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __getitem__(self, axis: int) -> float:
        return (self.x, self.y, self.z)[axis]

    def __add__(self, other: Vector3) -> Vector3:
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3) -> Vector3:
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> Vector3:
        return Vector3(-self.x, -self.y, -self.z)

    def __mul__(self, scalar: float) -> Vector3:
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Vector3:
        return Vector3(self.x / scalar, self.y / scalar, self.z / scalar)

    def hadamard(self, other: Vector3) -> Vector3:
        """Componentwise product (used to attenuate colors)."""
        return Vector3(self.x * other.x, self.y * other.y, self.z * other.z)

    def dot(self, other: Vector3) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vector3) -> Vector3:
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length_squared(self) -> float:
        return self.dot(self)

    def length(self) -> float:
        return math.sqrt(self.length_squared())

    def is_finite(self) -> bool:
        """True if no component is NaN or infinite."""
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)

    def fits_float32(self) -> bool:
        """True if every component stays finite when stored as float32."""
        return fits_float32(self.x) and fits_float32(self.y) and fits_float32(self.z)

    def normalized(self) -> Vector3:
        """Return the unit vector in the same direction.

        Raises:
            DegenerateVectorError: If the vector is zero-length or non-finite.
                A NaN result is never returned.
        """
        if not self.is_finite():
            raise DegenerateVectorError(f"Cannot normalize non-finite vector {self}")
        length = self.length()
        if length < ZERO_LENGTH_EPSILON:
            raise DegenerateVectorError(f"Cannot normalize zero-length vector {self}")
        return self / length

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)
