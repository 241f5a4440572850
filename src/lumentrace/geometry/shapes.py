"""Closed set of shape variants and the device-side dispatch over them.

Every shape is stored in the scene as (kind, p0, p1, p2, radius):

    SPHERE    p0 = center, radius
    PLANE     p0 = point, p1 = unit normal
    TRIANGLE  p0, p1, p2 = vertices
    QUAD      p0 = corner, p1 = u, p2 = v
"""

from typing import Union

import taichi as ti
import taichi.math as tm

from lumentrace.geometry.base import HitRecord, ShapeKind, finish_hit
from lumentrace.geometry.plane import Plane, hit_plane
from lumentrace.geometry.quad import Quad, hit_quad
from lumentrace.geometry.sphere import Sphere, hit_sphere
from lumentrace.geometry.triangle import Triangle, hit_triangle

vec3 = tm.vec3

Shape = Union[Sphere, Plane, Triangle, Quad]

SHAPE_TYPES = (Sphere, Plane, Triangle, Quad)


def is_shape(value) -> bool:
    return isinstance(value, SHAPE_TYPES)


@ti.func
def hit_shape(
    kind: ti.i32,
    p0: vec3,
    p1: vec3,
    p2: vec3,
    radius: ti.f32,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Intersect a ray with one stored shape, switching on its kind."""
    rec = finish_hit(0, 0.0, vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 0.0), ray_direction)
    if kind == int(ShapeKind.SPHERE):
        rec = hit_sphere(ray_origin, ray_direction, p0, radius, t_min, t_max)
    elif kind == int(ShapeKind.PLANE):
        rec = hit_plane(ray_origin, ray_direction, p0, p1, t_min, t_max)
    elif kind == int(ShapeKind.TRIANGLE):
        rec = hit_triangle(ray_origin, ray_direction, p0, p1, p2, t_min, t_max)
    elif kind == int(ShapeKind.QUAD):
        rec = hit_quad(ray_origin, ray_direction, p0, p1, p2, t_min, t_max)
    return rec
