"""Emissive (light source) material.

Emissive surfaces never scatter; they contribute their color as emitted
radiance at every hit. Components may exceed 1 (HDR lights); the renderer
clamps after gamma correction.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import ClassVar

import taichi as ti
import taichi.math as tm

from lumentrace.core.vector import Vector3
from lumentrace.materials.base import MaterialKind, non_negative_color

vec3 = tm.vec3


@dataclass(frozen=True)
class Emissive:
    """Emissive material properties.

    Attributes:
        color: Emitted radiance (RGB, non-negative, may exceed 1).
    """

    color: Vector3 | Iterable[float]

    kind: ClassVar[MaterialKind] = MaterialKind.EMISSIVE

    def __post_init__(self) -> None:
        object.__setattr__(self, "color", non_negative_color(self.color, "color"))

    def device_params(self) -> tuple[tuple[float, float, float], float]:
        return self.color.as_tuple(), 0.0


@ti.func
def emitted(kind: ti.i32, color: vec3) -> vec3:
    """Radiance emitted by a material: its color if emissive, black otherwise."""
    result = vec3(0.0, 0.0, 0.0)
    if kind == int(MaterialKind.EMISSIVE):
        result = color
    return result
