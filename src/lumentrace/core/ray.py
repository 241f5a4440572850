"""Ray data structure and vector utilities for Taichi kernels.

This module provides the Ray dataclass and the vector helpers used by every
intersection and scattering routine. Random sampling helpers take an explicit
stream state (see core.rng) and return the advanced state alongside the
sample, so no kernel ever touches a shared generator.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

from lumentrace.core.rng import next_float

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Squared lengths outside (MIN, MAX) are not normalized (zero, NaN or huge)
MIN_LENGTH_SQUARED = 1e-20
MAX_LENGTH_SQUARED = 1e30

# Rejection sampling gives up after this many draws
MAX_REJECTION_TRIES = 64


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            normalized.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point origin + t * direction."""
    return ray.origin + t * ray.direction


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length_squared(v: vec3) -> ti.f32:
    return tm.dot(v, v)


@ti.func
def is_valid_direction(v: vec3) -> ti.i32:
    """Check that a direction can be normalized.

    Returns:
        1 if the squared length is finite and above the zero threshold,
        0 for zero-length, NaN or overflowing vectors.
    """
    len2 = tm.dot(v, v)
    result = 0
    if len2 > MIN_LENGTH_SQUARED and len2 < MAX_LENGTH_SQUARED:
        result = 1
    return result


@ti.func
def safe_normalize(v: vec3) -> vec3:
    """Normalize a vector, returning the zero vector when that is impossible.

    The zero vector is an explicit sentinel: callers check it with
    near_zero() or is_valid_direction() instead of propagating NaN.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v, or (0, 0, 0).
    """
    result = vec3(0.0, 0.0, 0.0)
    if is_valid_direction(v) == 1:
        result = v / ti.sqrt(tm.dot(v, v))
    return result


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a unit normal.

    Computes incident - 2 (incident . normal) normal. For a unit incident
    vector the result is unit length and makes the same angle with the
    normal as the incident vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f32) -> vec3:
    """Refract a unit incident vector through a surface (Snell's law).

    Args:
        incident: The incoming direction (normalized).
        normal: The surface normal facing the incoming ray (normalized).
        eta: Ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction, or the zero vector under total internal
        reflection.
    """
    cos_i = -tm.dot(incident, normal)
    sin2_t = eta * eta * (1.0 - cos_i * cos_i)
    result = vec3(0.0, 0.0, 0.0)
    if sin2_t <= 1.0:
        cos_t = ti.sqrt(1.0 - sin2_t)
        result = eta * incident + (eta * cos_i - cos_t) * normal
    return result


@ti.func
def schlick_reflectance(cosine: ti.f32, refraction_ratio: ti.f32) -> ti.f32:
    """Approximate Fresnel reflectance with Schlick's formula.

    Args:
        cosine: Cosine of the angle between the incoming ray and the normal.
        refraction_ratio: Ratio of refractive indices across the surface.

    Returns:
        Reflectance in [0, 1].
    """
    r0 = (1.0 - refraction_ratio) / (1.0 + refraction_ratio)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling Utilities (explicit stream state)
# =============================================================================


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Draw a point uniformly inside the unit sphere by rejection sampling.

    Args:
        state: Current stream state.

    Returns:
        A tuple (point, new_state). The point has 0 < length < 1.
    """
    rng = state
    p = vec3(0.0, 0.0, 1e-3)
    found = 0
    for _ in range(MAX_REJECTION_TRIES):
        if found == 0:
            x, rng = next_float(rng)
            y, rng = next_float(rng)
            z, rng = next_float(rng)
            candidate = vec3(2.0 * x - 1.0, 2.0 * y - 1.0, 2.0 * z - 1.0)
            len2 = length_squared(candidate)
            if len2 > 1e-12 and len2 < 1.0:
                p = candidate
                found = 1
    return p, rng


@ti.func
def random_unit_vector(state: ti.u32):
    """Draw a unit vector uniformly distributed on the sphere.

    Returns:
        A tuple (direction, new_state).
    """
    p, rng = random_in_unit_sphere(state)
    return tm.normalize(p), rng


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Draw a point uniformly inside the unit disk in the xy-plane.

    Used for thin-lens defocus sampling.

    Returns:
        A tuple (point, new_state) with point = (x, y, 0), x^2 + y^2 < 1.
    """
    rng = state
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    for _ in range(MAX_REJECTION_TRIES):
        if found == 0:
            x, rng = next_float(rng)
            y, rng = next_float(rng)
            candidate = vec3(2.0 * x - 1.0, 2.0 * y - 1.0, 0.0)
            if candidate.x * candidate.x + candidate.y * candidate.y < 1.0:
                p = candidate
                found = 1
    return p, rng
