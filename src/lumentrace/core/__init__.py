"""Core rendering module.

Components:
    vector: Host-side Vector3 value type
    ray: Ray data structure, vector helpers and random sampling
    rng: Counter-based per-sample random streams
    framebuffer: The rendered image container
    integrator: The trace loop and the tiled render kernel

All per-ray work runs in Taichi kernels. Random numbers come from explicit
stream states: every function that draws returns its advanced state, so no
two samples ever share a generator.
"""

from .framebuffer import Framebuffer
from .ray import (
    Ray,
    is_valid_direction,
    length_squared,
    near_zero,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    safe_normalize,
    schlick_reflectance,
    vec3,
)
from .rng import next_float, next_u32, seed_stream, wang_hash
from .vector import Vector3

# Note: integrator is NOT imported here to avoid circular imports with scene.
# Import it from lumentrace.core.integrator (or use lumentrace.render).

__all__ = [
    "Framebuffer",
    "Ray",
    "ray_at",
    "vec3",
    "length_squared",
    "is_valid_direction",
    "safe_normalize",
    "near_zero",
    "reflect",
    "refract",
    "schlick_reflectance",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "wang_hash",
    "seed_stream",
    "next_u32",
    "next_float",
    "Vector3",
]
