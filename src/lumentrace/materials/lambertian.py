"""Lambertian (ideal diffuse) material implementation.

The scattered direction is the hit normal plus a uniformly distributed unit
vector. Offsetting a point on the unit sphere by the normal yields a
cosine-weighted distribution over the hemisphere, which is exactly the
importance sampling distribution of the Lambertian BRDF:

    f_r = albedo / pi,  pdf = cos(theta) / pi,  f_r * cos(theta) / pdf = albedo

so the attenuation of every bounce is simply the albedo.

Example:
    >>> from lumentrace.materials.lambertian import Lambertian
    >>> red = Lambertian(albedo=(0.8, 0.1, 0.1))
    >>> # Inside a kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_lambertian(
    >>> #     albedo, normal, state
    >>> # )
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import ClassVar

import taichi as ti
import taichi.math as tm

from lumentrace.core.ray import near_zero, random_unit_vector
from lumentrace.core.vector import Vector3
from lumentrace.materials.base import MaterialKind, color_in_unit_range

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class Lambertian:
    """Lambertian (ideal diffuse) material properties.

    Attributes:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
    """

    albedo: Vector3 | Iterable[float]

    kind: ClassVar[MaterialKind] = MaterialKind.LAMBERTIAN

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", color_in_unit_range(self.albedo, "albedo"))

    def device_params(self) -> tuple[tuple[float, float, float], float]:
        """(color, scalar parameter) as stored in the scene's material table."""
        return self.albedo.as_tuple(), 0.0


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, state: ti.u32):
    """Sample a scattered direction for a Lambertian surface.

    Args:
        albedo: The diffuse reflectance color.
        normal: The unit surface normal facing the incoming ray.
        state: Random stream state.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter, new_state).
        Lambertian surfaces always scatter.
    """
    offset, rng = random_unit_vector(state)
    scattered_direction = normal + offset

    # The random vector can (almost) cancel the normal
    if near_zero(scattered_direction):
        scattered_direction = normal

    return scattered_direction, albedo, 1, rng
