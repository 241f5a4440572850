"""Scene: shapes, materials, BVH and background in Taichi fields.

A Scene is immutable once built. build_scene() validates every shape and
material up front, so a bad input raises before any field is allocated.
The scene then owns:

    shape table     kind, p0, p1, p2, radius, material id per shape
    material table  kind, color, scalar parameter per distinct material
    BVH arena       bounded shapes only, boxes widened by BOX_MARGIN
                    so traversal never prunes a hit the linear scan keeps
    unbounded list  planes, tested linearly after BVH traversal
    background      kind, bottom and top colors

closest_hit() is the query the renderer calls per ray segment; it returns the
nearest hit over all shapes in (t_min, t_max). closest_hit_linear() answers
the same query by exhaustive search and serves as the reference for the BVH.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.geometry import Sphere
    >>> from lumentrace.materials import Lambertian
    >>> scene = build_scene([Sphere((0, 0, -1), 0.5, Lambertian((0.5, 0.5, 0.5)))])
    >>> result = scene.intersect([[0, 0, 0]], [[0, 0, -1]])
    >>> float(result["t"][0])
    0.5
"""

import logging
from collections.abc import Iterable, Sequence

import numpy as np
import taichi as ti
import taichi.math as tm

from lumentrace.core.ray import is_valid_direction
from lumentrace.core.vector import Vector3
from lumentrace.errors import InvalidGeometryError, InvalidMaterialError
from lumentrace.geometry.aabb import aabb_hit
from lumentrace.geometry.bvh import BVH_STACK_SIZE, BVHArena, build_bvh
from lumentrace.geometry.shapes import Shape, hit_shape, is_shape
from lumentrace.materials import Dielectric, Emissive, Lambertian, Material, Metal
from lumentrace.scene.background import (
    Background,
    GradientBackground,
    SolidBackground,
    background_radiance,
)

logger = logging.getLogger(__name__)

vec3 = tm.vec3

MATERIAL_TYPES = (Lambertian, Metal, Dielectric, Emissive)


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection.

    Attributes:
        hit: 1 if any shape was hit, 0 otherwise.
        t: Ray parameter of the closest hit.
        point: The intersection point.
        normal: Unit normal facing the incoming ray.
        front_face: 1 if the ray hit the outside of the surface.
        material_id: Index into the scene's material table, -1 on a miss.
        shape_index: Index of the hit shape in the scene's shape list, -1 on
            a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32
    shape_index: ti.i32


@ti.data_oriented
class Scene:
    """Field-backed scene. Build with build_scene()."""

    def __init__(
        self,
        shapes: Sequence[Shape],
        materials: Sequence[Material],
        material_ids: Sequence[int],
        background: Background,
        arena: BVHArena,
        bounded: Sequence[int],
        unbounded: Sequence[int],
    ):
        self.shapes = tuple(shapes)
        self.materials = tuple(materials)
        self.background = background
        self.bvh = arena
        self.bounded_indices = tuple(bounded)
        self.unbounded_indices = tuple(unbounded)

        n_shapes = max(len(self.shapes), 1)
        n_materials = max(len(self.materials), 1)
        n_nodes = max(arena.node_count, 1)
        n_prims = max(arena.prim_indices.shape[0], 1)
        n_unbounded = max(len(self.unbounded_indices), 1)

        # Shape table (structure of arrays)
        self.shape_kind = ti.field(dtype=ti.i32, shape=n_shapes)
        self.shape_p0 = ti.Vector.field(3, dtype=ti.f32, shape=n_shapes)
        self.shape_p1 = ti.Vector.field(3, dtype=ti.f32, shape=n_shapes)
        self.shape_p2 = ti.Vector.field(3, dtype=ti.f32, shape=n_shapes)
        self.shape_radius = ti.field(dtype=ti.f32, shape=n_shapes)
        self.shape_material = ti.field(dtype=ti.i32, shape=n_shapes)

        # Material table
        self.material_kind = ti.field(dtype=ti.i32, shape=n_materials)
        self.material_color = ti.Vector.field(3, dtype=ti.f32, shape=n_materials)
        self.material_param = ti.field(dtype=ti.f32, shape=n_materials)

        # BVH arena
        self.node_min = ti.Vector.field(3, dtype=ti.f32, shape=n_nodes)
        self.node_max = ti.Vector.field(3, dtype=ti.f32, shape=n_nodes)
        self.node_left = ti.field(dtype=ti.i32, shape=n_nodes)
        self.node_right = ti.field(dtype=ti.i32, shape=n_nodes)
        self.node_first = ti.field(dtype=ti.i32, shape=n_nodes)
        self.node_count = ti.field(dtype=ti.i32, shape=n_nodes)
        self.prim_indices = ti.field(dtype=ti.i32, shape=n_prims)

        self.unbounded = ti.field(dtype=ti.i32, shape=n_unbounded)
        self.num_shapes = ti.field(dtype=ti.i32, shape=())
        self.num_unbounded = ti.field(dtype=ti.i32, shape=())

        self.background_kind = ti.field(dtype=ti.i32, shape=())
        self.background_bottom = ti.Vector.field(3, dtype=ti.f32, shape=())
        self.background_top = ti.Vector.field(3, dtype=ti.f32, shape=())

        self._upload(material_ids)

    def _upload(self, material_ids: Sequence[int]) -> None:
        """Copy the host description into the Taichi fields."""
        n = len(self.shapes)
        if n > 0:
            kinds = np.zeros(n, dtype=np.int32)
            p0 = np.zeros((n, 3), dtype=np.float32)
            p1 = np.zeros((n, 3), dtype=np.float32)
            p2 = np.zeros((n, 3), dtype=np.float32)
            radii = np.zeros(n, dtype=np.float32)
            for i, shape in enumerate(self.shapes):
                a, b, c, r = shape.device_params()
                kinds[i] = int(shape.kind)
                p0[i] = a.as_tuple()
                p1[i] = b.as_tuple()
                p2[i] = c.as_tuple()
                radii[i] = r
            self.shape_kind.from_numpy(kinds)
            self.shape_p0.from_numpy(p0)
            self.shape_p1.from_numpy(p1)
            self.shape_p2.from_numpy(p2)
            self.shape_radius.from_numpy(radii)
            self.shape_material.from_numpy(np.asarray(material_ids, dtype=np.int32))

        for i, material in enumerate(self.materials):
            color, param = material.device_params()
            self.material_kind[i] = int(material.kind)
            self.material_color[i] = color
            self.material_param[i] = param

        arena = self.bvh
        self.node_min.from_numpy(arena.node_min)
        self.node_max.from_numpy(arena.node_max)
        self.node_left.from_numpy(arena.left)
        self.node_right.from_numpy(arena.right)
        self.node_first.from_numpy(arena.first)
        self.node_count.from_numpy(arena.count)
        # The arena indexes the bounded subset; store scene shape indices
        if arena.prim_indices.shape[0] > 0:
            bounded = np.asarray(self.bounded_indices, dtype=np.int32)
            self.prim_indices.from_numpy(bounded[arena.prim_indices])

        for i, shape_index in enumerate(self.unbounded_indices):
            self.unbounded[i] = shape_index
        self.num_shapes[None] = n
        self.num_unbounded[None] = len(self.unbounded_indices)

        bottom, top = self.background.device_params()
        self.background_kind[None] = int(self.background.kind)
        self.background_bottom[None] = bottom.as_tuple()
        self.background_top[None] = top.as_tuple()

    # -------------------------------------------------------------------------
    # Device-side queries
    # -------------------------------------------------------------------------

    @ti.func
    def _closest(self, ray_origin, ray_direction, t_min, t_max, use_bvh: ti.template()):
        closest_t = t_max
        best_shape = -1
        best_point = vec3(0.0, 0.0, 0.0)
        best_normal = vec3(0.0, 0.0, 0.0)
        best_front = 0

        # Zero, NaN or overflowing directions miss everything
        if is_valid_direction(ray_direction) == 1:
            if ti.static(use_bvh):
                stack = ti.Vector([0] * BVH_STACK_SIZE, dt=ti.i32)
                stack_ptr = 1
                while stack_ptr > 0:
                    stack_ptr -= 1
                    node = stack[stack_ptr]
                    if aabb_hit(
                        self.node_min[node],
                        self.node_max[node],
                        ray_origin,
                        ray_direction,
                        t_min,
                        closest_t,
                    ):
                        if self.node_left[node] < 0:
                            first = self.node_first[node]
                            for k in range(first, first + self.node_count[node]):
                                s = self.prim_indices[k]
                                rec = self._hit_shape_at(s, ray_origin, ray_direction, t_min, closest_t)
                                if rec.hit == 1:
                                    closest_t = rec.t
                                    best_shape = s
                                    best_point = rec.point
                                    best_normal = rec.normal
                                    best_front = rec.front_face
                        else:
                            stack[stack_ptr] = self.node_right[node]
                            stack[stack_ptr + 1] = self.node_left[node]
                            stack_ptr += 2

                for k in range(self.num_unbounded[None]):
                    s = self.unbounded[k]
                    rec = self._hit_shape_at(s, ray_origin, ray_direction, t_min, closest_t)
                    if rec.hit == 1:
                        closest_t = rec.t
                        best_shape = s
                        best_point = rec.point
                        best_normal = rec.normal
                        best_front = rec.front_face
            else:
                for s in range(self.num_shapes[None]):
                    rec = self._hit_shape_at(s, ray_origin, ray_direction, t_min, closest_t)
                    if rec.hit == 1:
                        closest_t = rec.t
                        best_shape = s
                        best_point = rec.point
                        best_normal = rec.normal
                        best_front = rec.front_face

        did_hit = 0
        material_id = -1
        hit_t = 0.0
        if best_shape >= 0:
            did_hit = 1
            material_id = self.shape_material[best_shape]
            hit_t = closest_t

        return SceneHitRecord(
            hit=did_hit,
            t=hit_t,
            point=best_point,
            normal=best_normal,
            front_face=best_front,
            material_id=material_id,
            shape_index=best_shape,
        )

    @ti.func
    def _hit_shape_at(self, s, ray_origin, ray_direction, t_min, t_max):
        return hit_shape(
            self.shape_kind[s],
            self.shape_p0[s],
            self.shape_p1[s],
            self.shape_p2[s],
            self.shape_radius[s],
            ray_origin,
            ray_direction,
            t_min,
            t_max,
        )

    @ti.func
    def closest_hit(self, ray_origin, ray_direction, t_min, t_max) -> SceneHitRecord:
        """Nearest hit in (t_min, t_max) using the BVH plus the unbounded list.

        Boxes entered beyond the closest hit found so far are skipped.
        """
        return self._closest(ray_origin, ray_direction, t_min, t_max, True)

    @ti.func
    def closest_hit_linear(self, ray_origin, ray_direction, t_min, t_max) -> SceneHitRecord:
        """Nearest hit in (t_min, t_max) by testing every shape."""
        return self._closest(ray_origin, ray_direction, t_min, t_max, False)

    @ti.func
    def background_at(self, direction):
        """Background radiance for a ray that left the scene."""
        return background_radiance(
            self.background_kind[None],
            self.background_bottom[None],
            self.background_top[None],
            direction,
        )

    # -------------------------------------------------------------------------
    # Host-side batch queries
    # -------------------------------------------------------------------------

    @ti.kernel
    def _intersect_kernel(
        self,
        origins: ti.types.ndarray(dtype=ti.f32, ndim=2),
        directions: ti.types.ndarray(dtype=ti.f32, ndim=2),
        t_min: ti.f32,
        t_max: ti.f32,
        accelerated: ti.template(),
        hit: ti.types.ndarray(dtype=ti.i32, ndim=1),
        t: ti.types.ndarray(dtype=ti.f32, ndim=1),
        shape_index: ti.types.ndarray(dtype=ti.i32, ndim=1),
        front_face: ti.types.ndarray(dtype=ti.i32, ndim=1),
        point: ti.types.ndarray(dtype=ti.f32, ndim=2),
        normal: ti.types.ndarray(dtype=ti.f32, ndim=2),
    ):
        for i in range(origins.shape[0]):
            o = vec3(origins[i, 0], origins[i, 1], origins[i, 2])
            d = vec3(directions[i, 0], directions[i, 1], directions[i, 2])
            rec = self._closest(o, d, t_min, t_max, accelerated)
            hit[i] = rec.hit
            t[i] = rec.t
            shape_index[i] = rec.shape_index
            front_face[i] = rec.front_face
            for axis in ti.static(range(3)):
                point[i, axis] = rec.point[axis]
                normal[i, axis] = rec.normal[axis]

    def intersect(
        self,
        origins,
        directions,
        t_min: float = 0.0,
        t_max: float = 1e30,
        accelerated: bool = True,
    ) -> dict[str, np.ndarray]:
        """Run a batch of closest-hit queries.

        Args:
            origins: (N, 3) ray origins.
            directions: (N, 3) ray directions (need not be normalized).
            t_min: Lower bound (exclusive) of the valid interval.
            t_max: Upper bound (exclusive) of the valid interval.
            accelerated: Use the BVH (True) or exhaustive search (False).

        Returns:
            A dict of NumPy arrays: hit (int32, N), t (float32, N),
            shape_index (int32, N, -1 on a miss), front_face (int32, N),
            point (float32, N x 3) and normal (float32, N x 3).
        """
        origins = np.ascontiguousarray(np.asarray(origins, dtype=np.float32).reshape(-1, 3))
        directions = np.ascontiguousarray(
            np.asarray(directions, dtype=np.float32).reshape(-1, 3)
        )
        if origins.shape != directions.shape:
            raise ValueError(
                f"origins {origins.shape} and directions {directions.shape} must match"
            )

        n = origins.shape[0]
        result = {
            "hit": np.zeros(n, dtype=np.int32),
            "t": np.zeros(n, dtype=np.float32),
            "shape_index": np.full(n, -1, dtype=np.int32),
            "front_face": np.zeros(n, dtype=np.int32),
            "point": np.zeros((n, 3), dtype=np.float32),
            "normal": np.zeros((n, 3), dtype=np.float32),
        }
        if n == 0:
            return result

        self._intersect_kernel(
            origins,
            directions,
            t_min,
            t_max,
            bool(accelerated),
            result["hit"],
            result["t"],
            result["shape_index"],
            result["front_face"],
            result["point"],
            result["normal"],
        )
        return result

    def background_color(self, direction: Vector3 | Iterable[float]) -> Vector3:
        """Host-side background radiance for a direction."""
        return self.background.evaluate(direction)

    @property
    def shape_count(self) -> int:
        return len(self.shapes)

    @property
    def material_count(self) -> int:
        return len(self.materials)

    def __repr__(self) -> str:
        return (
            f"Scene(shapes={len(self.shapes)}, materials={len(self.materials)}, "
            f"bvh_nodes={self.bvh.node_count}, unbounded={len(self.unbounded_indices)})"
        )


def build_scene(
    shapes: Iterable[Shape],
    background: Background | None = None,
) -> Scene:
    """Validate a scene description and upload it to Taichi fields.

    Shapes validate their own geometry on construction; this checks that
    every entry is a known shape with a known material. Equal materials are
    stored once.

    Args:
        shapes: The shapes of the scene. Shape i keeps index i in query
            results.
        background: Radiance for escaping rays (default: the white-to-blue
            GradientBackground).

    Returns:
        The built Scene.

    Raises:
        InvalidGeometryError: If an entry is not a shape.
        InvalidMaterialError: If a shape carries an unknown material.
    """
    shapes = list(shapes)
    if background is None:
        background = GradientBackground()
    if not isinstance(background, (SolidBackground, GradientBackground)):
        raise InvalidMaterialError(f"unsupported background {background!r}")

    materials: list[Material] = []
    material_index: dict[Material, int] = {}
    material_ids: list[int] = []
    bounded: list[int] = []
    unbounded: list[int] = []
    boxes = []

    for i, shape in enumerate(shapes):
        if not is_shape(shape):
            raise InvalidGeometryError(f"shape {i} is not a supported shape: {shape!r}")
        material = shape.material
        if not isinstance(material, MATERIAL_TYPES):
            raise InvalidMaterialError(f"shape {i} has unsupported material {material!r}")

        if material not in material_index:
            material_index[material] = len(materials)
            materials.append(material)
        material_ids.append(material_index[material])

        box = shape.bounding_box()
        if box is None:
            unbounded.append(i)
        else:
            bounded.append(i)
            boxes.append(box.expanded())

    arena = build_bvh(boxes)
    scene = Scene(shapes, materials, material_ids, background, arena, bounded, unbounded)

    logger.info(
        "Built scene: %d shapes (%d unbounded), %d materials, %d BVH nodes",
        len(shapes),
        len(unbounded),
        len(materials),
        arena.node_count,
    )
    return scene
