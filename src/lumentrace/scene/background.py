"""Background (sky) models.

The background is the radiance returned for rays that leave the scene.

    SolidBackground      one constant color
    GradientBackground   lerp(bottom, top, t) with t = 0.5 * (unit_dir.y + 1)

Directions that cannot be normalized evaluate at t = 0.5. Each model knows
how to evaluate itself on the host; the scene stores (kind, bottom, top) in
fields and evaluates the same formula on the device via background_radiance.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, Union

import taichi as ti
import taichi.math as tm

from lumentrace.core.ray import is_valid_direction
from lumentrace.core.vector import Vector3
from lumentrace.materials.base import non_negative_color

vec3 = tm.vec3


class BackgroundKind(IntEnum):
    SOLID = 0
    GRADIENT = 1


@dataclass(frozen=True)
class SolidBackground:
    """A constant background color.

    Attributes:
        color: RGB radiance, non-negative.
    """

    color: Vector3 | Iterable[float] = (0.0, 0.0, 0.0)

    kind: ClassVar[BackgroundKind] = BackgroundKind.SOLID

    def __post_init__(self) -> None:
        object.__setattr__(self, "color", non_negative_color(self.color, "background color"))

    def evaluate(self, direction: Vector3 | Iterable[float]) -> Vector3:
        return self.color

    def device_params(self) -> tuple[Vector3, Vector3]:
        return self.color, self.color


@dataclass(frozen=True)
class GradientBackground:
    """A vertical sky gradient from bottom (looking down) to top (looking up).

    Attributes:
        bottom: Color at unit_dir.y == -1.
        top: Color at unit_dir.y == +1.
    """

    bottom: Vector3 | Iterable[float] = (1.0, 1.0, 1.0)
    top: Vector3 | Iterable[float] = (0.5, 0.7, 1.0)

    kind: ClassVar[BackgroundKind] = BackgroundKind.GRADIENT

    def __post_init__(self) -> None:
        object.__setattr__(self, "bottom", non_negative_color(self.bottom, "gradient bottom"))
        object.__setattr__(self, "top", non_negative_color(self.top, "gradient top"))

    def evaluate(self, direction: Vector3 | Iterable[float]) -> Vector3:
        d = Vector3.of(direction)
        t = 0.5
        len2 = d.length_squared()
        if d.is_finite() and 1e-20 < len2 < 1e30:
            t = 0.5 * (d.y / len2**0.5 + 1.0)
        return self.bottom * (1.0 - t) + self.top * t

    def device_params(self) -> tuple[Vector3, Vector3]:
        return self.bottom, self.top


Background = Union[SolidBackground, GradientBackground]


@ti.func
def background_radiance(kind: ti.i32, bottom: vec3, top: vec3, direction: vec3) -> vec3:
    """Device-side evaluation of a stored background.

    For a solid background bottom == top, so the lerp below also covers it.
    """
    t = 0.5
    if kind == int(BackgroundKind.GRADIENT) and is_valid_direction(direction) == 1:
        t = 0.5 * (tm.normalize(direction).y + 1.0)
    return (1.0 - t) * bottom + t * top
