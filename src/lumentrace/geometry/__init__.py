"""Geometry module for shape primitives and spatial acceleration.

Components:
    sphere: Sphere primitive with ray-sphere intersection
    plane: Infinite plane (unbounded, kept outside the BVH)
    triangle: Triangle primitive with Moller-Trumbore intersection
    quad: Parallelogram primitive (Cornell box walls and lights)
    shapes: The Shape union and the device-side dispatch
    aabb: Axis-aligned bounding boxes and the slab test
    bvh: Bounding volume hierarchy stored as an index arena

Every shape is a frozen dataclass validated on construction, paired with a
Taichi function that intersects a ray with it:

    rec = hit_sphere(ray_origin, ray_direction, center, radius, t_min, t_max)

The returned HitRecord holds the nearest t in (t_min, t_max), the hit point,
the normal facing the incoming ray and the front_face flag.
"""

from .aabb import AABB, aabb_hit
from .base import HitRecord, ShapeKind, finish_hit
from .bvh import BVH_LEAF_SIZE, BVH_STACK_SIZE, BVHArena, build_bvh
from .plane import Plane, hit_plane
from .quad import Quad, hit_quad
from .shapes import Shape, hit_shape, is_shape
from .sphere import Sphere, hit_sphere
from .triangle import Triangle, hit_triangle

__all__ = [
    "AABB",
    "aabb_hit",
    "HitRecord",
    "ShapeKind",
    "finish_hit",
    "BVH_LEAF_SIZE",
    "BVH_STACK_SIZE",
    "BVHArena",
    "build_bvh",
    "Shape",
    "hit_shape",
    "is_shape",
    "Sphere",
    "hit_sphere",
    "Plane",
    "hit_plane",
    "Triangle",
    "hit_triangle",
    "Quad",
    "hit_quad",
]
