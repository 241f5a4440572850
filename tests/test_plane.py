"""Unit tests for the infinite plane primitive."""

import pytest
import taichi as ti


def _plane_hit(origin, direction, point, normal, t_min=1e-4, t_max=1e30):
    from lumentrace.geometry.plane import hit_plane

    hit = ti.field(dtype=ti.i32, shape=())
    t = ti.field(dtype=ti.f32, shape=())
    out_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
    front = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(
        ox: ti.f32, oy: ti.f32, oz: ti.f32,
        dx: ti.f32, dy: ti.f32, dz: ti.f32,
        px: ti.f32, py: ti.f32, pz: ti.f32,
        nx: ti.f32, ny: ti.f32, nz: ti.f32,
        lo: ti.f32, hi: ti.f32,
    ):
        rec = hit_plane(
            ti.math.vec3(ox, oy, oz),
            ti.math.vec3(dx, dy, dz),
            ti.math.vec3(px, py, pz),
            ti.math.vec3(nx, ny, nz),
            lo,
            hi,
        )
        hit[None] = rec.hit
        t[None] = rec.t
        out_normal[None] = rec.normal
        front[None] = rec.front_face

    test_kernel(*origin, *direction, *point, *normal, t_min, t_max)
    return hit[None], t[None], out_normal[None], front[None]


class TestPlaneIntersection:
    """Tests for hit_plane()."""

    def test_hit_from_front(self):
        hit, t, normal, front = _plane_hit((0, 5, 0), (0, -1, 0), (0, 0, 0), (0, 1, 0))
        assert hit == 1
        assert abs(t - 5.0) < 1e-5
        assert front == 1
        assert abs(normal[1] - 1.0) < 1e-6

    def test_hit_from_behind_flips_normal(self):
        hit, t, normal, front = _plane_hit((0, -2, 0), (0, 1, 0), (0, 0, 0), (0, 1, 0))
        assert hit == 1
        assert abs(t - 2.0) < 1e-5
        assert front == 0
        assert abs(normal[1] + 1.0) < 1e-6

    def test_parallel_ray_misses(self):
        hit, _, _, _ = _plane_hit((0, 1, 0), (1, 0, 0), (0, 0, 0), (0, 1, 0))
        assert hit == 0

    def test_plane_behind_ray_misses(self):
        hit, _, _, _ = _plane_hit((0, 1, 0), (0, 1, 0), (0, 0, 0), (0, 1, 0))
        assert hit == 0

    def test_oblique_hit_point(self):
        hit, t, _, _ = _plane_hit((0, 1, 0), (1, -1, 0), (0, 0, 0), (0, 1, 0))
        assert hit == 1
        assert abs(t - 1.0) < 1e-5


class TestPlaneConstruction:
    """Tests for the host-side Plane value."""

    def test_normal_is_normalized(self, gray):
        from lumentrace.geometry import Plane

        plane = Plane((0, 0, 0), (0, 3, 0), gray)
        assert plane.normal.y == 1.0

    def test_unbounded(self, gray):
        from lumentrace.geometry import Plane

        assert Plane((0, 0, 0), (0, 1, 0), gray).bounding_box() is None

    def test_zero_normal_raises(self, gray):
        from lumentrace.errors import InvalidGeometryError
        from lumentrace.geometry import Plane

        with pytest.raises(InvalidGeometryError):
            Plane((0, 0, 0), (0, 0, 0), gray)
