"""Metal (specular reflective) material implementation.

Perfect metals (fuzz = 0) produce mirror reflections. Rough metals perturb
the mirror direction by fuzz times a random unit vector:

    scattered = reflect(unit(incident), normal) + fuzz * random_unit_vector()

The ray is absorbed when the perturbed direction points into the surface
(dot(scattered, normal) <= 0).
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import ClassVar

import taichi as ti
import taichi.math as tm

from lumentrace.core.ray import random_unit_vector, reflect, safe_normalize
from lumentrace.core.vector import Vector3
from lumentrace.errors import InvalidMaterialError
from lumentrace.materials.base import MaterialKind, color_in_unit_range, finite_parameter

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class Metal:
    """Metal material properties.

    Attributes:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: Roughness in [0, 1]. 0 = perfect mirror, 1 = maximum fuzz.
    """

    albedo: Vector3 | Iterable[float]
    fuzz: float = 0.0

    kind: ClassVar[MaterialKind] = MaterialKind.METAL

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", color_in_unit_range(self.albedo, "albedo"))
        fuzz = finite_parameter(self.fuzz, "fuzz")
        if fuzz < 0.0 or fuzz > 1.0:
            raise InvalidMaterialError(
                f"fuzz = {fuzz} is outside [0, 1]. "
                "Fuzz must be between 0 (perfect mirror) and 1 (maximum fuzz)."
            )
        object.__setattr__(self, "fuzz", fuzz)

    def device_params(self) -> tuple[tuple[float, float, float], float]:
        return self.albedo.as_tuple(), self.fuzz


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Compute the scattered direction for a metal surface.

    Args:
        albedo: The reflective color.
        fuzz: Roughness in [0, 1].
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal facing the incoming ray.
        state: Random stream state.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter, new_state):
        - scattered_direction: The normalized reflected direction, or zero
          when absorbed.
        - attenuation: The albedo.
        - did_scatter: 1 if the ray leaves above the surface, 0 if absorbed.
    """
    reflected = reflect(safe_normalize(incident_direction), normal)

    offset, rng = random_unit_vector(state)
    scattered_direction = safe_normalize(reflected + fuzz * offset)

    did_scatter = 1
    if tm.dot(scattered_direction, normal) <= 0.0:
        did_scatter = 0
        scattered_direction = vec3(0.0, 0.0, 0.0)

    return scattered_direction, albedo, did_scatter, rng
