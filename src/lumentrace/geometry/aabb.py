"""Axis-aligned bounding boxes.

The host-side AABB is used while building the BVH. The device-side
aabb_hit() is the slab test run during traversal.

Slab test: for each axis the ray enters the slab between min and max at
t0 = (min - origin) / direction and leaves at t1 = (max - origin) / direction.
The box is hit if the intersection of the three [t0, t1] intervals with
[t_min, t_max] is non-empty. Axis-parallel rays (direction component of zero)
are handled explicitly instead of relying on IEEE infinities.
"""

import math
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from lumentrace.core.vector import Vector3

vec3 = tm.vec3

# Direction components smaller than this are treated as parallel to the slab
PARALLEL_EPSILON = 1e-12

# Minimum box thickness; flat shapes (axis-aligned quads) are padded to it
MIN_EXTENT = 1e-4

# Relative margin around primitive boxes stored in the BVH. float32 hit tests
# can accept points a few ulps outside the exact bounds.
BOX_MARGIN = 1e-4


@dataclass(frozen=True)
class AABB:
    """An axis-aligned box. Invariant: minimum <= maximum componentwise.

    Attributes:
        minimum: The lower corner.
        maximum: The upper corner.
    """

    minimum: Vector3
    maximum: Vector3

    def __post_init__(self) -> None:
        for axis in range(3):
            if self.minimum[axis] > self.maximum[axis]:
                raise ValueError(
                    f"AABB minimum {self.minimum} exceeds maximum {self.maximum} on axis {axis}"
                )

    @classmethod
    def from_points(cls, *points: Vector3) -> "AABB":
        """Smallest box containing all points."""
        return cls(
            Vector3(
                min(p.x for p in points), min(p.y for p in points), min(p.z for p in points)
            ),
            Vector3(
                max(p.x for p in points), max(p.y for p in points), max(p.z for p in points)
            ),
        )

    def union(self, other: "AABB") -> "AABB":
        return AABB(
            Vector3(
                min(self.minimum.x, other.minimum.x),
                min(self.minimum.y, other.minimum.y),
                min(self.minimum.z, other.minimum.z),
            ),
            Vector3(
                max(self.maximum.x, other.maximum.x),
                max(self.maximum.y, other.maximum.y),
                max(self.maximum.z, other.maximum.z),
            ),
        )

    def padded(self, min_extent: float = MIN_EXTENT) -> "AABB":
        """Grow every axis thinner than min_extent to that thickness."""
        lo = list(self.minimum)
        hi = list(self.maximum)
        for axis in range(3):
            if hi[axis] - lo[axis] < min_extent:
                mid = 0.5 * (lo[axis] + hi[axis])
                lo[axis] = mid - 0.5 * min_extent
                hi[axis] = mid + 0.5 * min_extent
        return AABB(Vector3(*lo), Vector3(*hi))

    def expanded(self, relative: float = BOX_MARGIN) -> "AABB":
        """Grow every side by relative times the box's coordinate scale.

        The scale is the largest absolute coordinate of either corner, and at
        least 1, so boxes far from the origin get a proportionally wider
        margin.
        """
        scale = max(1.0, *(abs(c) for c in self.minimum), *(abs(c) for c in self.maximum))
        margin = relative * scale
        pad = Vector3(margin, margin, margin)
        return AABB(self.minimum - pad, self.maximum + pad)

    def contains(self, other: "AABB") -> bool:
        """True if other lies entirely inside this box."""
        return all(
            self.minimum[axis] <= other.minimum[axis] and other.maximum[axis] <= self.maximum[axis]
            for axis in range(3)
        )

    def centroid(self) -> Vector3:
        return (self.minimum + self.maximum) * 0.5

    def extent(self) -> Vector3:
        return self.maximum - self.minimum

    def hit(
        self,
        origin: Vector3,
        direction: Vector3,
        t_min: float = 0.0,
        t_max: float = math.inf,
    ) -> bool:
        """Host-side slab test, mirroring aabb_hit()."""
        lo = t_min
        hi = t_max
        for axis in range(3):
            o = origin[axis]
            d = direction[axis]
            if abs(d) < PARALLEL_EPSILON:
                if o < self.minimum[axis] or o > self.maximum[axis]:
                    return False
                continue
            t0 = (self.minimum[axis] - o) / d
            t1 = (self.maximum[axis] - o) / d
            if t0 > t1:
                t0, t1 = t1, t0
            lo = max(lo, t0)
            hi = min(hi, t1)
            if hi < lo:
                return False
        return True


@ti.func
def aabb_hit(
    box_min: vec3,
    box_max: vec3,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> ti.i32:
    """Test if a ray overlaps a box within [t_min, t_max].

    Args:
        box_min: Lower corner of the box.
        box_max: Upper corner of the box.
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (need not be normalized).
        t_min: Start of the valid interval.
        t_max: End of the valid interval (the current closest hit during
            traversal, which prunes boxes entered beyond it).

    Returns:
        1 if the interval of overlap is non-empty, 0 otherwise.
    """
    lo = t_min
    hi = t_max
    hit = 1
    for axis in ti.static(range(3)):
        o = ray_origin[axis]
        d = ray_direction[axis]
        if ti.abs(d) < PARALLEL_EPSILON:
            if o < box_min[axis] or o > box_max[axis]:
                hit = 0
        else:
            inv_d = 1.0 / d
            t0 = (box_min[axis] - o) * inv_d
            t1 = (box_max[axis] - o) * inv_d
            if inv_d < 0.0:
                t0, t1 = t1, t0
            lo = ti.max(lo, t0)
            hi = ti.min(hi, t1)
    if hi < lo:
        hit = 0
    return hit
