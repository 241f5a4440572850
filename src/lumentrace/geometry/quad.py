"""Quad primitive with ray-quad intersection.

A quad is defined by:
- corner: A corner point of the quad
- u: Edge vector from the corner to an adjacent corner
- v: Edge vector from the corner to the other adjacent corner

The quad spans the parallelogram from corner to corner+u+v. The normal is
normalize(cross(u, v)), pointing in the direction given by the right-hand
rule. Quads make the walls and the area light of the Cornell box.

Ray-quad intersection uses the parametric plane test:
1. Find where the ray intersects the plane containing the quad
2. Check if the intersection point lies within the quad bounds

Example:
    >>> from lumentrace.geometry.quad import Quad
    >>> from lumentrace.materials import Lambertian
    >>> floor = Quad(corner=(0, 0, 0), u=(1, 0, 0), v=(0, 0, 1), material=Lambertian((0.7, 0.7, 0.7)))
    >>> floor.normal()
    Vector3(x=0.0, y=-1.0, z=0.0)
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

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@dataclass(frozen=True)
class Quad:
    """A quad (parallelogram) defined by a corner point and two edge vectors.

    The quad has vertices at corner, corner+u, corner+v, corner+u+v.

    Attributes:
        corner: The corner point of the quad.
        u: Edge vector from the corner to an adjacent corner.
        v: Edge vector from the corner to the other adjacent corner.
        material: The material of the surface.

    Raises:
        InvalidGeometryError: On construction, if u and v are parallel or
            zero (zero area) or any coordinate is non-finite.
    """

    corner: Vector3 | Iterable[float]
    u: Vector3 | Iterable[float]
    v: Vector3 | Iterable[float]
    material: "Material"

    kind: ClassVar[ShapeKind] = ShapeKind.QUAD

    def __post_init__(self) -> None:
        object.__setattr__(self, "corner", finite_vector(self.corner, "quad corner"))
        object.__setattr__(self, "u", finite_vector(self.u, "quad edge u"))
        object.__setattr__(self, "v", finite_vector(self.v, "quad edge v"))
        if self.u.cross(self.v).length_squared() <= ZERO_LENGTH_EPSILON:
            raise InvalidGeometryError(f"quad has zero area: u={self.u}, v={self.v}")

    def normal(self) -> Vector3:
        """Unit normal by the right-hand rule, cross(u, v)."""
        return self.u.cross(self.v).normalized()

    def area(self) -> float:
        return self.u.cross(self.v).length()

    def bounding_box(self) -> AABB:
        c = self.corner
        return AABB.from_points(c, c + self.u, c + self.v, c + self.u + self.v).padded()

    def centroid(self) -> Vector3:
        return self.corner + (self.u + self.v) * 0.5

    def device_params(self) -> tuple[Vector3, Vector3, Vector3, float]:
        return self.corner, self.u, self.v, 0.0


@ti.func
def _compute_quad_frame(u: vec3, v: vec3):
    """Compute the quad's plane normal and the helpers for its coordinates.

    A point P on the plane is P = corner + alpha * u + beta * v. With
    n = cross(u, v):
        w_u = cross(v, n) / dot(n, n)   so alpha = dot(w_u, P - corner)
        w_v = cross(n, u) / dot(n, n)   so beta  = dot(w_v, P - corner)

    Returns:
        Tuple of (normal, w_u, w_v).
    """
    n = tm.cross(u, v)
    n_dot_n = tm.dot(n, n)

    normal = vec3(0.0, 0.0, 0.0)
    w_u = vec3(0.0, 0.0, 0.0)
    w_v = vec3(0.0, 0.0, 0.0)

    # Quad.__post_init__ already rejects |u x v|^2 <= ZERO_LENGTH_EPSILON, so
    # only an exactly degenerate frame is left without helpers (never hits)
    if n_dot_n > 0.0:
        normal = n / ti.sqrt(n_dot_n)
        w_u = tm.cross(v, n) / n_dot_n
        w_v = tm.cross(n, u) / n_dot_n

    return normal, w_u, w_v


@ti.func
def hit_quad(
    ray_origin: vec3,
    ray_direction: vec3,
    corner: vec3,
    u: vec3,
    v: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-quad intersection.

    Uses parametric plane intersection followed by bounds checking:
    1. Compute where the ray hits the plane containing the quad
    2. Express the hit point in local coordinates (alpha, beta)
    3. Check 0 <= alpha <= 1 and 0 <= beta <= 1

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (need not be normalized).
        corner: The corner point of the quad.
        u: First edge vector.
        v: Second edge vector.
        t_min: Lower bound (exclusive) of the valid interval.
        t_max: Upper bound (exclusive) of the valid interval.

    Returns:
        A HitRecord. Check the hit field to determine if an intersection
        occurred.
    """
    normal, w_u, w_v = _compute_quad_frame(u, v)
    denom = tm.dot(normal, ray_direction)

    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)

    # Ray not parallel to plane
    if ti.abs(denom) > 1e-8:
        t = tm.dot(normal, corner - ray_origin) / denom
        if t > t_min and t < t_max:
            p = ray_origin + t * ray_direction
            offset = p - corner
            alpha = tm.dot(w_u, offset)
            beta = tm.dot(w_v, offset)
            if alpha >= 0.0 and alpha <= 1.0 and beta >= 0.0 and beta <= 1.0:
                did_hit = 1
                hit_t = t
                hit_point = p

    return finish_hit(did_hit, hit_t, hit_point, normal, ray_direction)
