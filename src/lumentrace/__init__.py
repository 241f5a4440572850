"""Taichi-based recursive ray tracer.

This package renders scenes of spheres, planes, triangles and quads with
Lambertian, metal, dielectric and emissive materials. Per-ray work runs in
Taichi kernels on the CPU; the scene is stored as flat field arrays with a
BVH arena, and every pixel sample draws from its own deterministic random
stream so a fixed seed reproduces a render exactly.

Subpackages:
    core: Vectors, rays, random streams, the framebuffer and the integrator
    geometry: Shape primitives, bounding boxes and the BVH
    materials: Scattering models
    scene: Scene storage, backgrounds and preset scenes
    camera: Thin-lens camera
    preview: PNG export

Example:
    >>> import taichi as ti
    >>> import lumentrace as lt
    >>> ti.init(arch=ti.cpu)
    >>> scene = lt.build_scene(
    ...     [lt.Sphere((0, 0, -1), 0.5, lt.Lambertian((0.7, 0.3, 0.3)))],
    ...     lt.GradientBackground(),
    ... )
    >>> camera = lt.make_camera((0, 0, 0), (0, 0, -1), (0, 1, 0), 90.0, 2.0)
    >>> image = lt.render(scene, camera, 200, 100, 8, 10, seed=7)
    >>> lt.save_png(image, "sphere.png")
"""

from lumentrace.camera import Camera, make_camera
from lumentrace.config import RenderSettings, configure_logging
from lumentrace.core.framebuffer import Framebuffer
from lumentrace.core.integrator import Renderer, render
from lumentrace.core.vector import Vector3
from lumentrace.errors import (
    ConfigurationError,
    DegenerateCameraError,
    DegenerateVectorError,
    InvalidGeometryError,
    InvalidMaterialError,
    LumentraceError,
)
from lumentrace.geometry import AABB, Plane, Quad, Sphere, Triangle
from lumentrace.materials import Dielectric, Emissive, Lambertian, Metal
from lumentrace.preview import compute_rmse, image_to_uint8, save_png
from lumentrace.scene import (
    GradientBackground,
    Scene,
    SolidBackground,
    build_scene,
    load_preset,
)

__version__ = "0.1.0"

__all__ = [
    "Camera",
    "make_camera",
    "RenderSettings",
    "configure_logging",
    "Framebuffer",
    "Renderer",
    "render",
    "Vector3",
    "LumentraceError",
    "InvalidGeometryError",
    "InvalidMaterialError",
    "DegenerateCameraError",
    "DegenerateVectorError",
    "ConfigurationError",
    "AABB",
    "Sphere",
    "Plane",
    "Triangle",
    "Quad",
    "Lambertian",
    "Metal",
    "Dielectric",
    "Emissive",
    "GradientBackground",
    "SolidBackground",
    "Scene",
    "build_scene",
    "load_preset",
    "save_png",
    "image_to_uint8",
    "compute_rmse",
]
