"""Infinite plane primitive.

A plane is defined by a point on it and a normal. It has no finite bounding
box, so scenes keep planes out of the BVH and test them in a linear pass
after traversal.

Ray-plane intersection:
    t = dot(point - ray_origin, normal) / dot(ray_direction, normal)
Rays parallel to the plane (|denominator| below a small epsilon) miss.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

import taichi as ti
import taichi.math as tm

from lumentrace.core.vector import ZERO_LENGTH_EPSILON, Vector3
from lumentrace.errors import InvalidGeometryError
from lumentrace.geometry.base import HitRecord, ShapeKind, finish_hit, finite_vector

if TYPE_CHECKING:
    from lumentrace.geometry.aabb import AABB
    from lumentrace.materials import Material

vec3 = tm.vec3

# |dot(direction, normal)| below this counts as parallel
PARALLEL_EPSILON = 1e-8


@dataclass(frozen=True)
class Plane:
    """An infinite plane.

    Attributes:
        point: Any point on the plane.
        normal: The outward normal. Stored normalized.
        material: The material of the surface.

    Raises:
        InvalidGeometryError: On construction, if the normal has zero length
            or any coordinate is non-finite.
    """

    point: Vector3 | Iterable[float]
    normal: Vector3 | Iterable[float]
    material: "Material"

    kind: ClassVar[ShapeKind] = ShapeKind.PLANE

    def __post_init__(self) -> None:
        object.__setattr__(self, "point", finite_vector(self.point, "plane point"))
        normal = finite_vector(self.normal, "plane normal")
        if normal.length_squared() <= ZERO_LENGTH_EPSILON:
            raise InvalidGeometryError(f"plane normal must be non-zero, got {normal}")
        object.__setattr__(self, "normal", normal.normalized())

    def bounding_box(self) -> "AABB | None":
        """Planes are unbounded."""
        return None

    def centroid(self) -> Vector3:
        return self.point

    def device_params(self) -> tuple[Vector3, Vector3, Vector3, float]:
        return self.point, self.normal, Vector3.zero(), 0.0


@ti.func
def hit_plane(
    ray_origin: vec3,
    ray_direction: vec3,
    point: vec3,
    normal: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-plane intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (need not be normalized).
        point: A point on the plane.
        normal: Unit outward normal of the plane.
        t_min: Lower bound (exclusive) of the valid interval.
        t_max: Upper bound (exclusive) of the valid interval.

    Returns:
        A HitRecord; hits from behind the normal are back-face hits.
    """
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)

    denom = tm.dot(ray_direction, normal)
    if ti.abs(denom) > PARALLEL_EPSILON:
        t = tm.dot(point - ray_origin, normal) / denom
        if t > t_min and t < t_max:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction

    return finish_hit(did_hit, hit_t, hit_point, normal, ray_direction)
