"""Tests for the preset scenes.

Tests cover:
- Shape and material layout of each preset
- Letter grid geometry (glyph cells and the depth wave)
- Cornell box walls face into the box
- Registry lookup and unknown names
"""

import math

import pytest

from lumentrace.errors import ConfigurationError
from lumentrace.geometry import Quad, Sphere
from lumentrace.materials import Dielectric, Emissive, Lambertian, Metal
from lumentrace.scene.presets import (
    BOX_SIZE,
    LETTER_MAP,
    PRESETS,
    CornellBoxParams,
    cornell_box_shapes,
    letter_grid_shapes,
    load_preset,
    three_spheres_shapes,
)


class TestCornellBox:
    """Tests for cornell_box_shapes()."""

    def test_layout(self):
        shapes = cornell_box_shapes()
        assert len(shapes) == 9
        quads = [s for s in shapes if isinstance(s, Quad)]
        spheres = [s for s in shapes if isinstance(s, Sphere)]
        assert len(quads) == 6
        assert len(spheres) == 3
        assert sum(isinstance(s.material, Emissive) for s in shapes) == 1
        kinds = {type(s.material) for s in spheres}
        assert kinds == {Lambertian, Metal, Dielectric}

    def test_walls_face_inward(self):
        """Each wall's normal points toward the box center."""
        center = (BOX_SIZE / 2.0,) * 3
        for wall in cornell_box_shapes()[:5]:
            n = wall.normal()
            to_center = [center[k] - wall.centroid()[k] for k in range(3)]
            assert sum(n[k] * to_center[k] for k in range(3)) > 0.0

    def test_light_below_ceiling(self):
        light = next(s for s in cornell_box_shapes() if isinstance(s.material, Emissive))
        assert light.corner.y < BOX_SIZE
        assert light.normal().y == pytest.approx(-1.0)

    def test_spheres_rest_on_floor(self):
        for sphere in cornell_box_shapes()[6:]:
            assert sphere.center.y == pytest.approx(sphere.radius)

    def test_scaled_box(self):
        shapes = cornell_box_shapes(CornellBoxParams(box_size=1.0))
        for shape in shapes:
            box = shape.bounding_box()
            assert box.minimum.x >= -1e-3 and box.maximum.x <= 1.0 + 1e-3


class TestLetterGrid:
    """Tests for letter_grid_shapes()."""

    def test_one_sphere_per_cell(self):
        shapes = letter_grid_shapes()
        assert len(shapes) == len(LETTER_MAP) * len(LETTER_MAP[0]) == 54

    def test_glyph_materials(self):
        shapes = letter_grid_shapes()
        width = len(LETTER_MAP[0])
        for j, row in enumerate(LETTER_MAP):
            for i, cell in enumerate(row):
                material = shapes[j * width + i].material
                if cell == ".":
                    assert isinstance(material, Metal)
                else:
                    assert isinstance(material, Lambertian)

    def test_positions(self):
        shapes = letter_grid_shapes()
        width = len(LETTER_MAP[0])
        first = shapes[0]
        assert first.center.x == pytest.approx(-2.0)
        assert first.center.y == pytest.approx(1.25)
        assert first.center.z == pytest.approx(2.0)
        assert first.radius == 0.25

        # Background cells follow the sine wave in depth
        cell = shapes[1 * width + 5]
        assert LETTER_MAP[1][5] == "."
        assert cell.center.z == pytest.approx(2.0 + 0.8 * math.sin(6))

        # Glyph cells sit in a flat plane in front of the wave
        glyph = shapes[1 * width + 1]
        assert LETTER_MAP[1][1] == "g"
        assert glyph.center.z == pytest.approx(1.5)


class TestThreeSpheres:
    def test_layout(self):
        shapes = three_spheres_shapes()
        assert len(shapes) == 4
        assert shapes[0].radius == 100.0


class TestRegistry:
    """Tests for load_preset()."""

    @pytest.mark.parametrize("name", sorted(PRESETS))
    def test_every_preset_builds(self, name):
        scene, camera = load_preset(name, aspect_ratio=4.0 / 3.0)
        assert scene.shape_count > 0
        assert camera.aspect_ratio == pytest.approx(4.0 / 3.0)

    def test_cornell_box_has_black_background(self):
        scene, _ = load_preset("cornell_box")
        assert scene.background_color((0, 1, 0)).as_tuple() == (0.0, 0.0, 0.0)

    def test_unknown_preset_raises(self):
        with pytest.raises(ConfigurationError):
            load_preset("teapot")
