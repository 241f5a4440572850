"""Shared pieces of the shape primitives.

ShapeKind is the closed set of primitive types; the integer values are what
the scene stores per shape and what the device-side dispatch switches on.
HitRecord is the struct every device intersection routine returns.
"""

from collections.abc import Iterable
from enum import IntEnum

import taichi as ti
import taichi.math as tm

from lumentrace.core.vector import Vector3, fits_float32
from lumentrace.errors import InvalidGeometryError

vec3 = tm.vec3


class ShapeKind(IntEnum):
    """Enumeration of supported primitive types."""

    SPHERE = 0
    PLANE = 1
    TRIANGLE = 2
    QUAD = 3


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: Unit surface normal, flipped to face the incoming ray.
            Only valid if hit == 1.
        front_face: 1 if the ray arrived from the outside (against the
            outward normal), 0 if it hit the back face.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def finish_hit(
    did_hit: ti.i32,
    t: ti.f32,
    point: vec3,
    outward_normal: vec3,
    ray_direction: vec3,
) -> HitRecord:
    """Build a HitRecord, orienting the normal against the ray.

    front_face is set when dot(ray_direction, outward_normal) < 0; the stored
    normal always faces the incoming ray. Misses (did_hit == 0) carry zeroed
    geometry.
    """
    front_face = 0
    normal = vec3(0.0, 0.0, 0.0)
    if did_hit == 1:
        if tm.dot(ray_direction, outward_normal) < 0.0:
            front_face = 1
            normal = outward_normal
        else:
            normal = -outward_normal
    return HitRecord(hit=did_hit, t=t, point=point, normal=normal, front_face=front_face)


def finite_vector(value: Vector3 | Iterable[float], what: str) -> Vector3:
    """Coerce a shape parameter to a finite Vector3.

    Raises:
        InvalidGeometryError: If the value is not 3 finite numbers.
    """
    try:
        vector = Vector3.of(value)
    except (TypeError, ValueError) as exc:
        raise InvalidGeometryError(f"{what} must be 3 numbers, got {value!r}") from exc
    if not vector.fits_float32():
        raise InvalidGeometryError(f"{what} must be finite in float32, got {vector}")
    return vector


def finite_scalar(value: float, what: str) -> float:
    """Coerce a shape parameter to a finite float.

    Raises:
        InvalidGeometryError: If the value is not a finite number.
    """
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidGeometryError(f"{what} must be a number, got {value!r}") from exc
    if not fits_float32(number):
        raise InvalidGeometryError(f"{what} must be finite in float32, got {number}")
    return number
