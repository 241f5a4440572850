"""Triangle primitive with Moller-Trumbore intersection.

The outward normal follows the winding order: normalize(cross(v1 - v0, v2 - v0)).

Moller-Trumbore solves
    origin + t * direction = (1 - u - v) * v0 + u * v1 + v * v2
with Cramer's rule and accepts the hit when u >= 0, v >= 0, u + v <= 1 and
t lies in (t_min, t_max).
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

import taichi as ti
import taichi.math as tm

from lumentrace.core.vector import ZERO_LENGTH_EPSILON, Vector3
from lumentrace.errors import InvalidGeometryError
from lumentrace.geometry.aabb import AABB
from lumentrace.geometry.base import HitRecord, ShapeKind, finish_hit, finite_vector

if TYPE_CHECKING:
    from lumentrace.materials import Material

vec3 = tm.vec3

# Determinants below this mean the ray is parallel to the triangle
DETERMINANT_EPSILON = 1e-10


@dataclass(frozen=True)
class Triangle:
    """A triangle given by three vertices.

    Attributes:
        v0: First vertex.
        v1: Second vertex.
        v2: Third vertex.
        material: The material of the surface.

    Raises:
        InvalidGeometryError: On construction, if the vertices are collinear
            (zero area) or any coordinate is non-finite.
    """

    v0: Vector3 | Iterable[float]
    v1: Vector3 | Iterable[float]
    v2: Vector3 | Iterable[float]
    material: "Material"

    kind: ClassVar[ShapeKind] = ShapeKind.TRIANGLE

    def __post_init__(self) -> None:
        for name in ("v0", "v1", "v2"):
            object.__setattr__(self, name, finite_vector(getattr(self, name), f"triangle {name}"))
        if self.normal_vector().length_squared() <= ZERO_LENGTH_EPSILON:
            raise InvalidGeometryError(
                f"triangle has zero area: {self.v0}, {self.v1}, {self.v2}"
            )

    def normal_vector(self) -> Vector3:
        """Unnormalized cross(v1 - v0, v2 - v0); its length is twice the area."""
        return (self.v1 - self.v0).cross(self.v2 - self.v0)

    def area(self) -> float:
        return 0.5 * self.normal_vector().length()

    def bounding_box(self) -> AABB:
        return AABB.from_points(self.v0, self.v1, self.v2).padded()

    def centroid(self) -> Vector3:
        return (self.v0 + self.v1 + self.v2) / 3.0

    def device_params(self) -> tuple[Vector3, Vector3, Vector3, float]:
        return self.v0, self.v1, self.v2, 0.0


@ti.func
def hit_triangle(
    ray_origin: vec3,
    ray_direction: vec3,
    v0: vec3,
    v1: vec3,
    v2: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-triangle intersection (Moller-Trumbore).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (need not be normalized).
        v0: First vertex.
        v1: Second vertex.
        v2: Third vertex.
        t_min: Lower bound (exclusive) of the valid interval.
        t_max: Upper bound (exclusive) of the valid interval.

    Returns:
        A HitRecord. Both faces are hit; front_face follows the winding.
    """
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)

    edge1 = v1 - v0
    edge2 = v2 - v0
    outward_normal = tm.normalize(tm.cross(edge1, edge2))

    pvec = tm.cross(ray_direction, edge2)
    det = tm.dot(edge1, pvec)

    if ti.abs(det) > DETERMINANT_EPSILON:
        inv_det = 1.0 / det
        tvec = ray_origin - v0
        u = tm.dot(tvec, pvec) * inv_det
        if u >= 0.0 and u <= 1.0:
            qvec = tm.cross(tvec, edge1)
            v = tm.dot(ray_direction, qvec) * inv_det
            if v >= 0.0 and u + v <= 1.0:
                t = tm.dot(edge2, qvec) * inv_det
                if t > t_min and t < t_max:
                    did_hit = 1
                    hit_t = t
                    hit_point = ray_origin + t * ray_direction

    return finish_hit(did_hit, hit_t, hit_point, outward_normal, ray_direction)
