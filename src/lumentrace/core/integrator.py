"""Path tracing integrator.

This module implements the render kernel: for every pixel it averages
samples_per_pixel jittered camera paths, each traced through the scene by
material-based scattering, then applies gamma and clamps.

The recursion

    trace(ray, 0)     = exhausted color (black by default)
    trace(ray, depth) = background(ray.direction)               on a miss
                      = emitted + attenuation * trace(scattered, depth - 1)
                                                                on a scatter
                      = emitted                                 on absorption

is evaluated as a loop carrying the path throughput (the product of the
attenuations so far), which gives the same sum term by term.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric, Emissive)
    - One independent random stream per (pixel, sample)
    - Rows rendered in tiles, one kernel launch per tile; the output does
      not depend on the tile size
    - NaN/Inf sample sums are replaced by zero before gamma correction

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.core.integrator import render
    >>> from lumentrace.scene.presets import load_preset
    >>>
    >>> scene, camera = load_preset("three_spheres", aspect_ratio=4 / 3)
    >>> image = render(scene, camera, width=64, height=48, samples_per_pixel=4,
    ...                max_depth=8, seed=1)
    >>> image.pixels.shape
    (48, 64, 3)
"""

import functools
import logging
import time
from typing import Callable, Optional

import numpy as np
import taichi as ti
import taichi.math as tm

from lumentrace.camera.thin_lens import Camera
from lumentrace.config import (
    DEFAULT_GAMMA,
    DEFAULT_T_MIN,
    DEFAULT_TILE_ROWS,
    ExhaustedPolicy,
    RenderSettings,
)
from lumentrace.core.framebuffer import Framebuffer
from lumentrace.core.rng import next_float, seed_stream
from lumentrace.materials import (
    MaterialKind,
    emitted,
    scatter_dielectric,
    scatter_lambertian,
    scatter_metal,
)
from lumentrace.scene.scene import Scene

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# Upper bound of the hit interval ("infinity")
T_MAX = 1e30

ProgressCallback = Callable[[int, int], None]

# Number of (scene, camera) pairs whose compiled Renderer render() keeps
RENDERER_CACHE_SIZE = 8


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    kind: ti.i32,
    color: vec3,
    param: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Dispatch to the scattering function of a material kind.

    Args:
        kind: The MaterialKind of the hit surface.
        color: The material color (albedo, or emission for emitters).
        param: The material scalar (fuzz for metal, index of refraction for
            dielectrics).
        incident_direction: The incoming ray direction.
        normal: The unit surface normal facing the incoming ray.
        front_face: 1 if the ray hit the outside of the surface.
        state: Random stream state.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter, new_state).
        Emissive surfaces never scatter.
    """
    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    rng = state

    if kind == int(MaterialKind.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter, rng = scatter_lambertian(
            color, normal, rng
        )
    elif kind == int(MaterialKind.METAL):
        scattered_direction, attenuation, did_scatter, rng = scatter_metal(
            color, param, incident_direction, normal, rng
        )
    elif kind == int(MaterialKind.DIELECTRIC):
        scattered_direction, attenuation, did_scatter, rng = scatter_dielectric(
            param, incident_direction, normal, front_face, rng
        )

    return scattered_direction, attenuation, did_scatter, rng


# =============================================================================
# Renderer
# =============================================================================


@ti.data_oriented
class Renderer:
    """Renders a fixed scene through a fixed camera.

    Kernels are compiled on the first render and reused afterwards, so a
    Renderer should be kept for repeated renders of the same scene.

    Args:
        scene: The scene to render.
        camera: The camera to render through.
    """

    def __init__(self, scene: Scene, camera: Camera):
        self.scene = scene
        self.camera = camera

    @ti.func
    def trace(
        self,
        ray_origin: vec3,
        ray_direction: vec3,
        max_depth: ti.i32,
        state: ti.u32,
        t_min: ti.f32,
        exhausted_mode: ti.i32,
        exhausted_color: vec3,
    ):
        """Estimate the radiance arriving along one ray.

        Args:
            ray_origin: The starting point of the ray.
            ray_direction: The direction of the ray (any length).
            max_depth: Number of ray segments that may still be traced.
            state: Random stream state.
            t_min: Lower bound of the hit interval.
            exhausted_mode: 1 to return the background along the last
                direction when the depth runs out, 0 to return
                exhausted_color.
            exhausted_color: Radiance of a depth-exhausted path.

        Returns:
            A tuple (radiance, new_state).
        """
        rng = state
        origin = ray_origin
        direction = ray_direction
        radiance = vec3(0.0, 0.0, 0.0)
        throughput = vec3(1.0, 1.0, 1.0)

        # Active flag for path continuation (no break in ti.func loops)
        active = 1

        for _ in range(max_depth):
            if active == 1:
                rec = self.scene.closest_hit(origin, direction, t_min, T_MAX)

                if rec.hit == 0:
                    radiance += throughput * self.scene.background_at(direction)
                    active = 0
                else:
                    material_id = rec.material_id
                    kind = self.scene.material_kind[material_id]
                    color = self.scene.material_color[material_id]
                    param = self.scene.material_param[material_id]

                    radiance += throughput * emitted(kind, color)

                    scattered_direction, attenuation, did_scatter, rng = _scatter_material(
                        kind, color, param, direction, rec.normal, rec.front_face, rng
                    )

                    if did_scatter == 0:
                        active = 0
                    else:
                        throughput *= attenuation
                        origin = rec.point
                        direction = scattered_direction

        # Depth budget ran out with the path still going
        if active == 1:
            if exhausted_mode == 1:
                radiance += throughput * self.scene.background_at(direction)
            else:
                radiance += throughput * exhausted_color

        return radiance, rng

    @ti.kernel
    def _render_rows(
        self,
        image: ti.types.ndarray(dtype=ti.f32, ndim=3),
        row_start: ti.i32,
        row_stop: ti.i32,
        width: ti.i32,
        height: ti.i32,
        samples: ti.i32,
        max_depth: ti.i32,
        seed: ti.u32,
        exhausted_mode: ti.i32,
        exhausted_r: ti.f32,
        exhausted_g: ti.f32,
        exhausted_b: ti.f32,
        inv_gamma: ti.f32,
        t_min: ti.f32,
    ):
        exhausted_color = vec3(exhausted_r, exhausted_g, exhausted_b)
        for y, x in ti.ndrange((row_start, row_stop), width):
            pixel_index = y * width + x
            total = vec3(0.0, 0.0, 0.0)

            for k in range(samples):
                rng = seed_stream(seed, pixel_index, k)

                # Sub-pixel jitter; row 0 is the top of the image
                jx, rng = next_float(rng)
                jy, rng = next_float(rng)
                s = (ti.cast(x, ti.f32) + jx) / ti.cast(width, ti.f32)
                t = 1.0 - (ti.cast(y, ti.f32) + jy) / ti.cast(height, ti.f32)

                origin, direction, rng = self.camera.get_ray(s, t, rng)
                radiance, rng = self.trace(
                    origin, direction, max_depth, rng, t_min, exhausted_mode, exhausted_color
                )
                total += radiance

            color = total / ti.cast(samples, ti.f32)

            for c in ti.static(range(3)):
                value = color[c]
                # Check for NaN/Inf and replace with zero
                if tm.isnan(value) or tm.isinf(value):
                    value = 0.0
                value = ti.max(value, 0.0)
                value = value**inv_gamma
                image[y, x, c] = ti.min(value, 1.0)

    def render(
        self,
        settings: RenderSettings,
        progress: Optional[ProgressCallback] = None,
    ) -> Framebuffer:
        """Render the scene.

        Args:
            settings: Image size, sampling and output parameters.
            progress: Called with (rows_done, total_rows) after every tile.

        Returns:
            The finished Framebuffer, every component in [0, 1].

        Raises:
            ConfigurationError: If the settings are invalid.
        """
        settings.validate()
        width = settings.width
        height = settings.height

        image = np.zeros((height, width, 3), dtype=np.float32)
        exhausted_mode = 1 if settings.exhausted_uses_background else 0
        er, eg, eb = settings.exhausted_color

        logger.info(
            "Rendering %dx%d, %d spp, max depth %d, seed %d",
            width,
            height,
            settings.samples_per_pixel,
            settings.max_depth,
            settings.seed,
        )
        start = time.perf_counter()

        for row_start in range(0, height, settings.tile_rows):
            row_stop = min(row_start + settings.tile_rows, height)
            self._render_rows(
                image,
                row_start,
                row_stop,
                width,
                height,
                settings.samples_per_pixel,
                settings.max_depth,
                settings.seed,
                exhausted_mode,
                er,
                eg,
                eb,
                1.0 / settings.gamma,
                settings.t_min,
            )
            logger.debug("Rendered rows %d-%d of %d", row_start, row_stop, height)
            if progress is not None:
                progress(row_stop, height)

        logger.info("Render finished in %.2fs", time.perf_counter() - start)
        return Framebuffer.from_array(image)


@functools.lru_cache(maxsize=RENDERER_CACHE_SIZE)
def cached_renderer(scene: Scene, camera: Camera) -> Renderer:
    """Return the Renderer that render() uses for this scene and camera.

    Taichi compiles a Renderer's kernels on its first render, so render()
    calls on the same pair share one instance. Scenes and cameras are
    immutable and hashed by identity. The most recent RENDERER_CACHE_SIZE
    pairs are kept alive.
    """
    return Renderer(scene, camera)


def render(
    scene: Scene,
    camera: Camera,
    width: int,
    height: int,
    samples_per_pixel: int,
    max_depth: int,
    seed: int,
    *,
    gamma: float = DEFAULT_GAMMA,
    exhausted: ExhaustedPolicy = (0.0, 0.0, 0.0),
    tile_rows: int = DEFAULT_TILE_ROWS,
    t_min: float = DEFAULT_T_MIN,
    progress: Optional[ProgressCallback] = None,
) -> Framebuffer:
    """Render a scene to a framebuffer.

    Repeated calls with the same scene and camera reuse one compiled
    Renderer (see cached_renderer).

    Args:
        scene: The scene to render.
        camera: The camera to render through.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Jittered samples averaged per pixel.
        max_depth: Maximum number of ray segments per sample.
        seed: Root seed; equal seeds give bit-identical images.
        gamma: Gamma applied at pixel write (2.0 = square root).
        exhausted: Radiance of depth-exhausted paths, an RGB tuple or
            "background".
        tile_rows: Rows per kernel launch.
        t_min: Lower bound of the hit interval.
        progress: Called with (rows_done, total_rows) after every tile.

    Returns:
        The finished Framebuffer.

    Raises:
        ConfigurationError: If any setting is invalid. Nothing is rendered.
    """
    settings = RenderSettings(
        width=width,
        height=height,
        samples_per_pixel=samples_per_pixel,
        max_depth=max_depth,
        seed=seed,
        gamma=gamma,
        t_min=t_min,
        tile_rows=tile_rows,
        exhausted=exhausted,
    )
    return cached_renderer(scene, camera).render(settings, progress=progress)
