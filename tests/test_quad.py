"""Unit tests for quad intersection.

Tests cover:
- Ray hitting quad center (front and back face)
- Ray hitting quad at edges and corners
- Ray missing quad (outside bounds)
- Ray parallel to quad plane (no intersection)
- Very small quads that pass validation still intersect
- Cornell box wall orientations
- Host-side construction and validation
"""

import pytest
import taichi as ti


def _quad_hit(origin, direction, corner, u, v, t_min=1e-4, t_max=1e30):
    from lumentrace.geometry.quad import hit_quad

    hit = ti.field(dtype=ti.i32, shape=())
    t = ti.field(dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())
    front = ti.field(dtype=ti.i32, shape=())

    params = ti.Vector.field(3, dtype=ti.f32, shape=5)
    for i, value in enumerate((origin, direction, corner, u, v)):
        params[i] = value

    @ti.kernel
    def test_kernel(lo: ti.f32, hi: ti.f32):
        rec = hit_quad(params[0], params[1], params[2], params[3], params[4], lo, hi)
        hit[None] = rec.hit
        t[None] = rec.t
        normal[None] = rec.normal
        front[None] = rec.front_face

    test_kernel(t_min, t_max)
    return hit[None], t[None], normal[None], front[None]


# Unit square in the z=0 plane, normal +z
CORNER = (0.0, 0.0, 0.0)
U = (1.0, 0.0, 0.0)
V = (0.0, 1.0, 0.0)


class TestQuadIntersection:
    """Tests for hit_quad() against a unit square."""

    def test_hit_quad_center(self):
        hit, t, normal, front = _quad_hit((0.5, 0.5, 2.0), (0, 0, -1), CORNER, U, V)
        assert hit == 1
        assert abs(t - 2.0) < 1e-5
        assert front == 1
        assert abs(normal[2] - 1.0) < 1e-5

    def test_hit_quad_back_face(self):
        hit, t, normal, front = _quad_hit((0.5, 0.5, -3.0), (0, 0, 1), CORNER, U, V)
        assert hit == 1
        assert abs(t - 3.0) < 1e-5
        assert front == 0
        assert abs(normal[2] + 1.0) < 1e-5

    def test_hit_quad_edge(self):
        hit, _, _, _ = _quad_hit((1.0, 0.5, 1.0), (0, 0, -1), CORNER, U, V)
        assert hit == 1

    def test_hit_quad_corner(self):
        hit, _, _, _ = _quad_hit((0.0, 0.0, 1.0), (0, 0, -1), CORNER, U, V)
        assert hit == 1

    @pytest.mark.parametrize("x,y", [(1.1, 0.5), (0.5, -0.1), (-0.5, -0.5), (2.0, 2.0)])
    def test_miss_quad_outside_bounds(self, x, y):
        hit, _, _, _ = _quad_hit((x, y, 1.0), (0, 0, -1), CORNER, U, V)
        assert hit == 0

    def test_miss_quad_parallel_ray(self):
        hit, _, _, _ = _quad_hit((0.5, 0.5, 1.0), (1, 0, 0), CORNER, U, V)
        assert hit == 0

    def test_miss_quad_behind_ray(self):
        hit, _, _, _ = _quad_hit((0.5, 0.5, 1.0), (0, 0, 1), CORNER, U, V)
        assert hit == 0

    def test_t_max_boundary(self):
        hit, _, _, _ = _quad_hit((0.5, 0.5, 1.0), (0, 0, -1), CORNER, U, V, t_max=0.99)
        assert hit == 0

    def test_oblique_parallelogram(self):
        """A sheared quad hit away from the unit square's footprint."""
        hit, t, _, _ = _quad_hit(
            (1.2, 0.5, 1.0), (0, 0, -1), CORNER, (1.0, 0.0, 0.0), (1.0, 1.0, 0.0)
        )
        assert hit == 1
        assert abs(t - 1.0) < 1e-5

    def test_tiny_quad_is_hit(self):
        """A 3mm quad still gets a usable frame on the device."""
        hit, t, normal, _ = _quad_hit(
            (0, 0, 0), (0, 0, -1), (-0.0015, -0.0015, -1.0), (0.003, 0, 0), (0, 0.003, 0)
        )
        assert hit == 1
        assert abs(t - 1.0) < 1e-5
        assert abs(abs(normal[2]) - 1.0) < 1e-5


class TestQuadCornellBox:
    """Cornell box sized quads, as used by the preset."""

    def test_floor_quad(self):
        """Looking down onto the floor hits its front face."""
        hit, t, normal, front = _quad_hit(
            (277.5, 500.0, 277.5), (0, -1, 0), (0, 0, 0), (0, 0, 555), (555, 0, 0)
        )
        assert hit == 1
        assert abs(t - 500.0) < 1e-2
        assert abs(normal[1] - 1.0) < 1e-5
        assert front == 1

    def test_back_wall_quad(self):
        hit, t, normal, _ = _quad_hit(
            (277.5, 277.5, -800.0), (0, 0, 1), (0, 0, 555), (555, 0, 0), (0, 555, 0)
        )
        assert hit == 1
        assert abs(t - 1355.0) < 1e-1
        assert abs(normal[2] + 1.0) < 1e-5


class TestQuadConstruction:
    """Tests for the host-side Quad value."""

    def test_normal_and_area(self, gray):
        from lumentrace.core.vector import Vector3
        from lumentrace.geometry import Quad

        quad = Quad((0, 0, 0), (2, 0, 0), (0, 3, 0), gray)
        assert quad.normal() == Vector3(0.0, 0.0, 1.0)
        assert quad.area() == pytest.approx(6.0)
        assert quad.centroid() == Vector3(1.0, 1.5, 0.0)

    def test_bounding_box_contains_all_corners(self, gray):
        from lumentrace.geometry import Quad

        box = Quad((1, 1, 1), (0, 0, 2), (2, 0, 0), gray).bounding_box()
        assert box.minimum.x == 1.0 and box.maximum.x == 3.0
        assert box.minimum.z == 1.0 and box.maximum.z == 3.0
        assert box.maximum.y - box.minimum.y > 0.0

    def test_parallel_edges_raise(self, gray):
        from lumentrace.errors import InvalidGeometryError
        from lumentrace.geometry import Quad

        with pytest.raises(InvalidGeometryError):
            Quad((0, 0, 0), (1, 0, 0), (2, 0, 0), gray)

    def test_smallest_accepted_quad_renders(self, gray):
        """Any quad that passes validation is found by scene queries."""
        from lumentrace.core.vector import ZERO_LENGTH_EPSILON
        from lumentrace.geometry import Quad
        from lumentrace.scene import build_scene

        quad = Quad((-0.00075, -0.0005, -1.0), (0.0015, 0, 0), (0, 0.001, 0), gray)
        assert quad.area() ** 2 > ZERO_LENGTH_EPSILON
        scene = build_scene([quad])
        result = scene.intersect([[0, 0, 0]], [[0, 0, -1]], t_min=1e-4)
        assert result["hit"][0] == 1
        assert abs(result["t"][0] - 1.0) < 1e-5

    def test_zero_edge_raises(self, gray):
        from lumentrace.errors import InvalidGeometryError
        from lumentrace.geometry import Quad

        with pytest.raises(InvalidGeometryError):
            Quad((0, 0, 0), (0, 0, 0), (0, 1, 0), gray)
