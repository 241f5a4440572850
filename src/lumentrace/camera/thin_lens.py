"""Thin-lens camera model for primary ray generation.

The camera supports:
- Look-at positioning (origin, look_at, up)
- Vertical field of view in degrees
- Arbitrary aspect ratios
- Defocus blur through a finite aperture focused at a chosen distance

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from look_at toward origin (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport sits on the focus plane, focus_distance along -w. A ray for
normalized image coordinates (s, t) starts at a point on the lens disk
(radius aperture / 2) and passes through

    lower_left + s * horizontal + t * vertical

so every ray through the same (s, t) converges on the focus plane. With a
zero aperture this is a pinhole camera.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.camera import make_camera
    >>> camera = make_camera(
    ...     origin=(0.0, 0.0, 3.0),
    ...     look_at=(0.0, 0.0, 0.0),
    ...     up=(0.0, 1.0, 0.0),
    ...     vfov=60.0,
    ...     aspect_ratio=16.0 / 9.0,
    ... )
    >>> camera.focus_distance
    3.0
    >>> origin, direction = camera.primary_ray(0.5, 0.5)  # through the center
"""

import math
from collections.abc import Iterable

import taichi as ti
import taichi.math as tm

from lumentrace.core.ray import random_in_unit_disk
from lumentrace.core.vector import ZERO_LENGTH_EPSILON, Vector3, fits_float32
from lumentrace.errors import DegenerateCameraError

vec3 = tm.vec3

# cross(up, w) shorter than this means up is parallel to the view direction
PARALLEL_EPSILON = 1e-6


def _finite_vector(value: Vector3 | Iterable[float], what: str) -> Vector3:
    try:
        vector = Vector3.of(value)
    except (TypeError, ValueError) as exc:
        raise DegenerateCameraError(f"{what} must be 3 numbers, got {value!r}") from exc
    if not vector.fits_float32():
        raise DegenerateCameraError(f"{what} must be finite in float32, got {vector}")
    return vector


def _finite_scalar(value: float, what: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise DegenerateCameraError(f"{what} must be a number, got {value!r}") from exc
    if not fits_float32(number):
        raise DegenerateCameraError(f"{what} must be finite in float32, got {number}")
    return number


@ti.data_oriented
class Camera:
    """A thin-lens perspective camera. Construct with make_camera().

    Attributes:
        origin: Lens center in world space.
        u: Unit right vector.
        v: Unit up vector.
        w: Unit vector opposite the view direction.
        horizontal: Full viewport width vector on the focus plane.
        vertical: Full viewport height vector on the focus plane.
        lower_left: Lower-left corner of the viewport.
        lens_radius: Half the aperture; 0 for a pinhole.
        focus_distance: Distance from origin to the focus plane.
        vfov: Vertical field of view in degrees.
        aspect_ratio: Viewport width divided by height.
    """

    def __init__(
        self,
        origin: Vector3,
        u: Vector3,
        v: Vector3,
        w: Vector3,
        horizontal: Vector3,
        vertical: Vector3,
        lower_left: Vector3,
        lens_radius: float,
        focus_distance: float,
        vfov: float,
        aspect_ratio: float,
    ):
        self.origin = origin
        self.u = u
        self.v = v
        self.w = w
        self.horizontal = horizontal
        self.vertical = vertical
        self.lower_left = lower_left
        self.lens_radius = lens_radius
        self.focus_distance = focus_distance
        self.vfov = vfov
        self.aspect_ratio = aspect_ratio

        self._origin = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._u = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._v = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._lower_left = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._lens_radius = ti.field(dtype=ti.f32, shape=())

        self._origin[None] = origin.as_tuple()
        self._u[None] = u.as_tuple()
        self._v[None] = v.as_tuple()
        self._horizontal[None] = horizontal.as_tuple()
        self._vertical[None] = vertical.as_tuple()
        self._lower_left[None] = lower_left.as_tuple()
        self._lens_radius[None] = lens_radius

    @ti.func
    def get_ray(self, s: ti.f32, t: ti.f32, state: ti.u32):
        """Generate a primary ray through normalized image coordinates (s, t).

        s = 0 is the left edge and s = 1 the right edge; t = 0 is the bottom
        edge and t = 1 the top edge. Anti-aliasing jitter is applied by the
        caller through s and t.

        Args:
            s: Horizontal coordinate in [0, 1].
            t: Vertical coordinate in [0, 1].
            state: Random stream state (only drawn from when the lens has a
                non-zero radius).

        Returns:
            A tuple (origin, direction, new_state). The direction is not
            normalized.
        """
        rng = state
        offset = vec3(0.0, 0.0, 0.0)
        lens_radius = self._lens_radius[None]
        if lens_radius > 0.0:
            disk, rng = random_in_unit_disk(rng)
            rd = lens_radius * disk
            offset = self._u[None] * rd.x + self._v[None] * rd.y

        ray_origin = self._origin[None] + offset
        target = self._lower_left[None] + s * self._horizontal[None] + t * self._vertical[None]
        return ray_origin, target - ray_origin, rng

    def primary_ray(
        self,
        s: float,
        t: float,
        lens_point: tuple[float, float] = (0.0, 0.0),
    ) -> tuple[Vector3, Vector3]:
        """Host-side mirror of get_ray with an explicit lens sample.

        Args:
            s: Horizontal image coordinate in [0, 1].
            t: Vertical image coordinate in [0, 1].
            lens_point: A point of the unit disk; scaled by lens_radius.

        Returns:
            A tuple (origin, direction).
        """
        lx, ly = lens_point
        offset = self.u * (self.lens_radius * lx) + self.v * (self.lens_radius * ly)
        ray_origin = self.origin + offset
        target = self.lower_left + self.horizontal * s + self.vertical * t
        return ray_origin, target - ray_origin

    def __repr__(self) -> str:
        return (
            f"Camera(origin={self.origin.as_tuple()}, vfov={self.vfov}, "
            f"aspect_ratio={self.aspect_ratio}, lens_radius={self.lens_radius}, "
            f"focus_distance={self.focus_distance})"
        )


def make_camera(
    origin: Vector3 | Iterable[float],
    look_at: Vector3 | Iterable[float],
    up: Vector3 | Iterable[float],
    vfov: float,
    aspect_ratio: float,
    aperture: float = 0.0,
    focus_distance: float | None = None,
) -> Camera:
    """Create a camera from look-at parameters.

    Args:
        origin: Camera position.
        look_at: Point the camera looks at.
        up: Approximate up direction (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height, > 0.
        aperture: Lens diameter, >= 0 (0 = pinhole, no defocus).
        focus_distance: Distance to the plane of perfect focus, > 0.
            Defaults to |look_at - origin|.

    Returns:
        The Camera.

    Raises:
        DegenerateCameraError: If any parameter is out of range, origin and
            look_at coincide, or up is zero or parallel to the view direction.
    """
    origin = _finite_vector(origin, "origin")
    look_at = _finite_vector(look_at, "look_at")
    up = _finite_vector(up, "up")
    vfov = _finite_scalar(vfov, "vfov")
    aspect_ratio = _finite_scalar(aspect_ratio, "aspect_ratio")
    aperture = _finite_scalar(aperture, "aperture")

    if not 0.0 < vfov < 180.0:
        raise DegenerateCameraError(f"vfov must be in (0, 180) degrees, got {vfov}")
    if aspect_ratio <= 0.0:
        raise DegenerateCameraError(f"aspect_ratio must be positive, got {aspect_ratio}")
    if aperture < 0.0:
        raise DegenerateCameraError(f"aperture must be non-negative, got {aperture}")

    view = origin - look_at
    if view.length_squared() <= ZERO_LENGTH_EPSILON:
        raise DegenerateCameraError(f"origin and look_at coincide at {origin}")
    if up.length_squared() <= ZERO_LENGTH_EPSILON:
        raise DegenerateCameraError("up vector has zero length")

    if focus_distance is None:
        focus_distance = view.length()
    focus_distance = _finite_scalar(focus_distance, "focus_distance")
    if focus_distance <= 0.0:
        raise DegenerateCameraError(f"focus_distance must be positive, got {focus_distance}")

    w = view.normalized()
    side = up.normalized().cross(w)
    if side.length() < PARALLEL_EPSILON:
        raise DegenerateCameraError(f"up {up} is parallel to the view direction")
    u = side.normalized()
    v = w.cross(u)

    h = math.tan(math.radians(vfov) / 2.0)
    viewport_height = 2.0 * h
    viewport_width = aspect_ratio * viewport_height

    horizontal = u * (focus_distance * viewport_width)
    vertical = v * (focus_distance * viewport_height)
    lower_left = origin - horizontal / 2.0 - vertical / 2.0 - w * focus_distance

    return Camera(
        origin=origin,
        u=u,
        v=v,
        w=w,
        horizontal=horizontal,
        vertical=vertical,
        lower_left=lower_left,
        lens_radius=aperture / 2.0,
        focus_distance=focus_distance,
        vfov=vfov,
        aspect_ratio=aspect_ratio,
    )
