"""Dielectric (glass/water) material implementation.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when the refraction ratio times sin(theta)
      exceeds 1

The material randomly chooses between reflection and refraction based on the
Schlick reflectance, which increases at grazing angles. Total internal
reflection is an ordinary branch of that choice, not an error.
"""

from dataclasses import dataclass
from typing import ClassVar

import taichi as ti
import taichi.math as tm

from lumentrace.core.ray import reflect, refract, safe_normalize, schlick_reflectance
from lumentrace.core.rng import next_float
from lumentrace.errors import InvalidMaterialError
from lumentrace.materials.base import MaterialKind, finite_parameter

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class Dielectric:
    """Dielectric material properties.

    Attributes:
        refractive_index: Index of refraction relative to the surrounding
            medium. Common values: water 1.33, glass 1.5, diamond 2.4.
    """

    refractive_index: float = 1.5

    kind: ClassVar[MaterialKind] = MaterialKind.DIELECTRIC

    def __post_init__(self) -> None:
        ior = finite_parameter(self.refractive_index, "refractive_index")
        if ior <= 0.0:
            raise InvalidMaterialError(f"refractive_index must be positive, got {ior}")
        object.__setattr__(self, "refractive_index", ior)

    def device_params(self) -> tuple[tuple[float, float, float], float]:
        return (1.0, 1.0, 1.0), self.refractive_index


@ti.func
def refraction_ratio_for(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """Effective ratio n_incident / n_transmitted.

    Entering the material (front_face == 1) the ratio is 1 / ior, leaving it
    the ratio is ior.
    """
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def cannot_refract(unit_direction: vec3, normal: vec3, refraction_ratio: ti.f32) -> ti.i32:
    """1 if Snell's law has no solution (total internal reflection)."""
    cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(ti.max(0.0, 1.0 - cos_theta * cos_theta))
    return refraction_ratio * sin_theta > 1.0


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Compute the scattered direction for a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal facing the incoming ray.
        front_face: 1 if the ray enters the material, 0 if it leaves.
        state: Random stream state.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter, new_state).
        Attenuation is white (no absorption) and did_scatter is always 1.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    unit_direction = safe_normalize(incident_direction)
    ratio = refraction_ratio_for(ior, front_face)

    cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)
    reflectance = schlick_reflectance(cos_theta, ratio)

    # The draw is always taken so the stream advances the same way on
    # every branch
    u, rng = next_float(state)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract(unit_direction, normal, ratio) or u < reflectance:
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, ratio)

    return safe_normalize(scattered_direction), attenuation, 1, rng
