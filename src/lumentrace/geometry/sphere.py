"""Sphere primitive with robust ray-sphere intersection.

The intersection follows Ray Tracing Gems (chapter 7): the discriminant is
taken from the distance between the center and the ray line instead of
b^2 - 4ac, and the roots come from the cancellation-free quadratic formula.

Example:
    >>> from lumentrace.geometry.sphere import Sphere
    >>> from lumentrace.materials import Lambertian
    >>> sphere = Sphere(center=(0, 0, -1), radius=0.5, material=Lambertian((0.5, 0.5, 0.5)))
    >>> sphere.bounding_box().maximum
    Vector3(x=0.5, y=0.5, z=-0.5)
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

import taichi as ti
import taichi.math as tm

from lumentrace.core.vector import Vector3
from lumentrace.errors import InvalidGeometryError
from lumentrace.geometry.aabb import AABB
from lumentrace.geometry.base import (
    HitRecord,
    ShapeKind,
    finish_hit,
    finite_scalar,
    finite_vector,
)

if TYPE_CHECKING:
    from lumentrace.materials import Material

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@dataclass(frozen=True)
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere.
        radius: The radius (strictly positive).
        material: The material of the surface.

    Raises:
        InvalidGeometryError: On construction, if the radius is not positive
            or any parameter is non-finite.
    """

    center: Vector3 | Iterable[float]
    radius: float
    material: "Material"

    kind: ClassVar[ShapeKind] = ShapeKind.SPHERE

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", finite_vector(self.center, "sphere center"))
        radius = finite_scalar(self.radius, "sphere radius")
        if radius <= 0.0:
            raise InvalidGeometryError(f"sphere radius must be positive, got {radius}")
        object.__setattr__(self, "radius", radius)

    def bounding_box(self) -> AABB:
        r = Vector3(self.radius, self.radius, self.radius)
        return AABB(self.center - r, self.center + r)

    def centroid(self) -> Vector3:
        return self.center

    def device_params(self) -> tuple[Vector3, Vector3, Vector3, float]:
        """(p0, p1, p2, radius) as stored in the scene's shape table."""
        return self.center, Vector3.zero(), Vector3.zero(), self.radius


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 with a numerically stable formula.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of the discriminant (h^2 - a*c, evaluated
            robustly by the caller).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant)) avoids cancellation
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Tangent ray through the origin-centered case
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        t0, t1 = t1, t0

    return t0, t1


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    center: vec3,
    radius: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    Solves |ray_origin + t * ray_direction - center|^2 = radius^2, i.e.

        a*t^2 + 2*h*t + c = 0
        a = dot(direction, direction)
        h = dot(direction, origin - center)
        c = dot(origin - center, origin - center) - radius^2

    and keeps the smaller root inside (t_min, t_max), falling back to the
    larger one (ray starting inside the sphere).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (need not be normalized).
        center: Sphere center.
        radius: Sphere radius.
        t_min: Lower bound (exclusive) of the valid interval.
        t_max: Upper bound (exclusive) of the valid interval.

    Returns:
        A HitRecord. The normal is (point - center) / radius, flipped to face
        the ray for back-face hits.
    """
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    outward_normal = vec3(0.0, 0.0, 0.0)

    oc = ray_origin - center
    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - radius * radius

    discriminant = -1.0
    if a > 0.0:
        # h^2 - a*c rewritten through the offset of the center from the ray
        # line; stays accurate when the origin is far from the sphere
        f = oc - (h / a) * ray_direction
        discriminant = a * (radius * radius - tm.dot(f, f))

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        t = t0
        valid = t > t_min and t < t_max
        if not valid:
            t = t1
            valid = t > t_min and t < t_max

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction
            outward_normal = (hit_point - center) / radius

    return finish_hit(did_hit, hit_t, hit_point, outward_normal, ray_direction)
