"""Ready-made scenes.

Each preset is a list of shapes plus a background and a camera placement:

    cornell_box     five walls, a ceiling light and three spheres (diffuse,
                    metal, glass), lit only by the light
    letter_grid     a 9 x 6 grid of small spheres; two letter glyphs are
                    picked out in green and red, the rest are mirror-like
                    and wave in depth
    three_spheres   diffuse, glass and fuzzed metal spheres on a large
                    ground sphere under a sky gradient

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.scene.presets import load_preset
    >>> scene, camera = load_preset("cornell_box", aspect_ratio=1.0)
    >>> scene.shape_count
    9
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable

from lumentrace.camera import Camera, make_camera
from lumentrace.errors import ConfigurationError
from lumentrace.geometry import Quad, Sphere
from lumentrace.geometry.shapes import Shape
from lumentrace.materials import Dielectric, Emissive, Lambertian, Metal
from lumentrace.scene.background import (
    Background,
    GradientBackground,
    SolidBackground,
)
from lumentrace.scene.scene import Scene, build_scene

# =============================================================================
# Cornell Box
# =============================================================================

# Classic Cornell box dimensions (approximately 555x555x555 units)
BOX_SIZE = 555.0

# Wall colors (normalized RGB values matching original Cornell box measurements)
RED_WALL_ALBEDO = (0.65, 0.05, 0.05)
GREEN_WALL_ALBEDO = (0.12, 0.45, 0.15)
WHITE_WALL_ALBEDO = (0.73, 0.73, 0.73)

LIGHT_EMISSION = (15.0, 15.0, 15.0)

DIFFUSE_SPHERE_ALBEDO = (0.73, 0.73, 0.73)
METAL_SPHERE_ALBEDO = (0.95, 0.93, 0.88)  # Silver reflectance
METAL_SPHERE_FUZZ = 0.3
GLASS_SPHERE_IOR = 1.5


@dataclass(frozen=True)
class CornellBoxParams:
    """Parameters for the Cornell box.

    Attributes:
        box_size: Edge length of the box.
        light_emission: Radiance of the ceiling light.
        left_wall_color: Albedo of the wall at x = 0.
        right_wall_color: Albedo of the wall at x = box_size.
        white_color: Albedo of the back wall, floor and ceiling.
    """

    box_size: float = BOX_SIZE
    light_emission: tuple[float, float, float] = LIGHT_EMISSION
    left_wall_color: tuple[float, float, float] = RED_WALL_ALBEDO
    right_wall_color: tuple[float, float, float] = GREEN_WALL_ALBEDO
    white_color: tuple[float, float, float] = WHITE_WALL_ALBEDO


def cornell_box_shapes(params: CornellBoxParams | None = None) -> list[Shape]:
    """Shapes of the Cornell box.

    The box spans 0..box_size on every axis with the front (z = 0) open:
    - X-axis: left to right
    - Y-axis: floor to ceiling
    - Z-axis: front to back, the camera looks toward +Z
    """
    if params is None:
        params = CornellBoxParams()
    size = params.box_size

    red = Lambertian(params.left_wall_color)
    green = Lambertian(params.right_wall_color)
    white = Lambertian(params.white_color)
    light = Emissive(params.light_emission)

    # Every wall normal, cross(u, v), points into the box
    shapes: list[Shape] = [
        # Left wall, YZ plane at x=0
        Quad((0.0, 0.0, 0.0), (0.0, size, 0.0), (0.0, 0.0, size), red),
        # Right wall, YZ plane at x=size
        Quad((size, 0.0, size), (0.0, size, 0.0), (0.0, 0.0, -size), green),
        # Back wall, XY plane at z=size
        Quad((0.0, 0.0, size), (0.0, size, 0.0), (size, 0.0, 0.0), white),
        # Floor, XZ plane at y=0
        Quad((0.0, 0.0, 0.0), (0.0, 0.0, size), (size, 0.0, 0.0), white),
        # Ceiling, XZ plane at y=size
        Quad((0.0, size, size), (0.0, 0.0, -size), (size, 0.0, 0.0), white),
    ]

    # Light sits just below the ceiling (classic light is ~130x105 units)
    light_width = 130.0 * size / BOX_SIZE
    light_depth = 105.0 * size / BOX_SIZE
    shapes.append(
        Quad(
            ((size - light_width) / 2.0, size - size / BOX_SIZE, (size - light_depth) / 2.0),
            (light_width, 0.0, 0.0),
            (0.0, 0.0, light_depth),
            light,
        )
    )

    # Three spheres resting on the floor
    radius = 80.0 * size / BOX_SIZE
    shapes.append(
        Sphere((size * 0.27, radius, size * 0.35), radius, Lambertian(DIFFUSE_SPHERE_ALBEDO))
    )
    shapes.append(
        Sphere(
            (size * 0.73, radius, size * 0.35),
            radius,
            Metal(METAL_SPHERE_ALBEDO, METAL_SPHERE_FUZZ),
        )
    )
    shapes.append(Sphere((size * 0.5, radius, size * 0.65), radius, Dielectric(GLASS_SPHERE_IOR)))
    return shapes


# =============================================================================
# Letter Grid
# =============================================================================

LETTER_MAP = (
    ".........",
    ".ggg.....",
    ".g...rrr.",
    ".g.g.r.r.",
    ".ggg.rrr.",
    ".........",
)

GRID_SPHERE_RADIUS = 0.25
GRID_SPACING = 0.5
GRID_DEPTH = 2.0
GRID_WAVE_AMPLITUDE = 0.8
LETTER_DEPTH_OFFSET = -0.5


def letter_grid_shapes() -> list[Shape]:
    """Spheres laid out from LETTER_MAP, row 0 at the top.

    Glyph cells ('g', 'r') sit in a flat plane pulled toward the camera; the
    rest ('.') follow z = GRID_DEPTH + 0.8 * sin(i + j).
    """
    mirror = Metal((0.6, 0.6, 0.6), fuzz=0.05)
    green = Lambertian((0.1, 1.0, 0.1))
    red = Lambertian((1.0, 0.1, 0.1))

    shapes: list[Shape] = []
    for j, row in enumerate(LETTER_MAP):
        for i, cell in enumerate(row):
            if cell == "g":
                material = green
                z = GRID_DEPTH + LETTER_DEPTH_OFFSET
            elif cell == "r":
                material = red
                z = GRID_DEPTH + LETTER_DEPTH_OFFSET
            else:
                material = mirror
                z = GRID_DEPTH + math.sin(i + j) * GRID_WAVE_AMPLITUDE
            center = (-2.0 + i * GRID_SPACING, 1.25 - j * GRID_SPACING, z)
            shapes.append(Sphere(center, GRID_SPHERE_RADIUS, material))
    return shapes


# =============================================================================
# Three Spheres
# =============================================================================


def three_spheres_shapes() -> list[Shape]:
    ground = Lambertian((0.8, 0.8, 0.0))
    return [
        Sphere((0.0, -100.5, -1.0), 100.0, ground),
        Sphere((0.0, 0.0, -1.0), 0.5, Lambertian((0.1, 0.2, 0.5))),
        Sphere((-1.0, 0.0, -1.0), 0.5, Dielectric(1.5)),
        Sphere((1.0, 0.0, -1.0), 0.5, Metal((0.8, 0.6, 0.2), fuzz=0.1)),
    ]


# =============================================================================
# Registry
# =============================================================================


@dataclass(frozen=True)
class Preset:
    """A named scene with its camera placement.

    Attributes:
        name: Registry key.
        shapes: Factory for the shape list.
        background: Background of the scene.
        camera: Keyword arguments for make_camera (aspect_ratio excluded).
    """

    name: str
    shapes: Callable[[], list[Shape]]
    background: Background
    camera: dict = field(default_factory=dict)

    def build(self, aspect_ratio: float = 1.0) -> tuple[Scene, Camera]:
        scene = build_scene(self.shapes(), self.background)
        camera = make_camera(aspect_ratio=aspect_ratio, **self.camera)
        return scene, camera


PRESETS: dict[str, Preset] = {
    "cornell_box": Preset(
        name="cornell_box",
        shapes=cornell_box_shapes,
        background=SolidBackground((0.0, 0.0, 0.0)),
        camera={
            # Outside the box, looking in through the open front
            "origin": (BOX_SIZE / 2.0, BOX_SIZE / 2.0, -800.0),
            "look_at": (BOX_SIZE / 2.0, BOX_SIZE / 2.0, BOX_SIZE / 2.0),
            "up": (0.0, 1.0, 0.0),
            "vfov": 40.0,
        },
    ),
    "letter_grid": Preset(
        name="letter_grid",
        shapes=letter_grid_shapes,
        background=GradientBackground(),
        camera={
            # The window x in [-2, 2], y in [-1.5, 1.5] at z = 0 seen from z = -5
            "origin": (0.0, 0.0, -5.0),
            "look_at": (0.0, 0.0, 0.0),
            "up": (0.0, 1.0, 0.0),
            "vfov": math.degrees(2.0 * math.atan(1.5 / 5.0)),
        },
    ),
    "three_spheres": Preset(
        name="three_spheres",
        shapes=three_spheres_shapes,
        background=GradientBackground(),
        camera={
            "origin": (0.0, 0.5, 1.5),
            "look_at": (0.0, 0.0, -1.0),
            "up": (0.0, 1.0, 0.0),
            "vfov": 50.0,
        },
    ),
}


def load_preset(name: str, aspect_ratio: float = 1.0) -> tuple[Scene, Camera]:
    """Build a preset scene and its camera.

    Raises:
        ConfigurationError: If the name is unknown.
    """
    try:
        preset = PRESETS[name]
    except KeyError:
        raise ConfigurationError(
            f"unknown preset {name!r}; choose one of {sorted(PRESETS)}"
        ) from None
    return preset.build(aspect_ratio)
