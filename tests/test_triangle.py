"""Unit tests for the triangle primitive.

Tests cover:
- Interior, edge-adjacent and exterior rays
- Front/back face orientation from the winding order
- Parallel rays and the valid t interval
- Construction and degenerate-triangle rejection
"""

import pytest
import taichi as ti

# Triangle in the z=0 plane, counter-clockwise seen from +z
V0 = (0.0, 0.0, 0.0)
V1 = (1.0, 0.0, 0.0)
V2 = (0.0, 1.0, 0.0)


def _triangle_hit(origin, direction, v0=V0, v1=V1, v2=V2, t_min=1e-4, t_max=1e30):
    from lumentrace.geometry.triangle import hit_triangle

    hit = ti.field(dtype=ti.i32, shape=())
    t = ti.field(dtype=ti.f32, shape=())
    point = ti.Vector.field(3, dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())
    front = ti.field(dtype=ti.i32, shape=())

    verts = ti.Vector.field(3, dtype=ti.f32, shape=3)
    verts[0] = v0
    verts[1] = v1
    verts[2] = v2

    @ti.kernel
    def test_kernel(
        ox: ti.f32, oy: ti.f32, oz: ti.f32,
        dx: ti.f32, dy: ti.f32, dz: ti.f32,
        lo: ti.f32, hi: ti.f32,
    ):
        rec = hit_triangle(
            ti.math.vec3(ox, oy, oz),
            ti.math.vec3(dx, dy, dz),
            verts[0],
            verts[1],
            verts[2],
            lo,
            hi,
        )
        hit[None] = rec.hit
        t[None] = rec.t
        point[None] = rec.point
        normal[None] = rec.normal
        front[None] = rec.front_face

    test_kernel(*origin, *direction, t_min, t_max)
    return hit[None], t[None], point[None], normal[None], front[None]


class TestTriangleIntersection:
    """Tests for hit_triangle()."""

    def test_hit_inside(self):
        hit, t, point, normal, front = _triangle_hit((0.25, 0.25, 1.0), (0, 0, -1))
        assert hit == 1
        assert abs(t - 1.0) < 1e-5
        assert abs(point[0] - 0.25) < 1e-5
        assert abs(point[1] - 0.25) < 1e-5
        assert abs(point[2]) < 1e-5
        assert front == 1
        assert abs(normal[2] - 1.0) < 1e-5

    def test_back_face_hit(self):
        """Triangles are two-sided; the normal is flipped toward the ray."""
        hit, t, _, normal, front = _triangle_hit((0.25, 0.25, -2.0), (0, 0, 1))
        assert hit == 1
        assert abs(t - 2.0) < 1e-5
        assert front == 0
        assert abs(normal[2] + 1.0) < 1e-5

    def test_miss_outside_hypotenuse(self):
        hit, _, _, _, _ = _triangle_hit((0.6, 0.6, 1.0), (0, 0, -1))
        assert hit == 0

    def test_miss_negative_barycentric(self):
        hit, _, _, _, _ = _triangle_hit((-0.1, 0.5, 1.0), (0, 0, -1))
        assert hit == 0

    def test_parallel_ray_misses(self):
        hit, _, _, _, _ = _triangle_hit((0.25, 0.25, 1.0), (1, 0, 0))
        assert hit == 0

    def test_behind_origin_misses(self):
        hit, _, _, _, _ = _triangle_hit((0.25, 0.25, 1.0), (0, 0, 1))
        assert hit == 0

    def test_t_max_excludes_hit(self):
        hit, _, _, _, _ = _triangle_hit((0.25, 0.25, 1.0), (0, 0, -1), t_max=0.5)
        assert hit == 0

    def test_oblique_hit(self):
        hit, t, point, _, _ = _triangle_hit((0.0, 0.0, 1.0), (0.2, 0.3, -1.0))
        assert hit == 1
        assert abs(t - 1.0) < 1e-5
        assert abs(point[0] - 0.2) < 1e-5
        assert abs(point[1] - 0.3) < 1e-5


class TestTriangleConstruction:
    """Tests for the host-side Triangle value."""

    def test_area_and_normal(self, gray):
        from lumentrace.core.vector import Vector3
        from lumentrace.geometry import Triangle

        tri = Triangle(V0, V1, V2, gray)
        assert tri.area() == pytest.approx(0.5)
        assert tri.normal_vector() == Vector3(0.0, 0.0, 1.0)
        assert tri.centroid().x == pytest.approx(1.0 / 3.0)

    def test_flat_bounding_box_is_padded(self, gray):
        from lumentrace.geometry import Triangle

        box = Triangle(V0, V1, V2, gray).bounding_box()
        assert box.maximum.z > box.minimum.z
        assert box.minimum.x == 0.0
        assert box.maximum.y == 1.0

    def test_collinear_vertices_raise(self, gray):
        from lumentrace.errors import InvalidGeometryError
        from lumentrace.geometry import Triangle

        with pytest.raises(InvalidGeometryError):
            Triangle((0, 0, 0), (1, 1, 1), (2, 2, 2), gray)

    def test_repeated_vertex_raises(self, gray):
        from lumentrace.errors import InvalidGeometryError
        from lumentrace.geometry import Triangle

        with pytest.raises(InvalidGeometryError):
            Triangle((0, 0, 0), (0, 0, 0), (0, 1, 0), gray)
