"""Shared pieces of the material models.

MaterialKind is the closed set of scattering models. The scene stores one
(kind, color, parameter) triple per material and the integrator dispatches on
the kind inside the trace loop.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import IntEnum

from lumentrace.core.vector import Vector3, fits_float32
from lumentrace.errors import InvalidMaterialError


class MaterialKind(IntEnum):
    """Enumeration of supported material types."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2
    EMISSIVE = 3


def color_in_unit_range(value: Vector3 | Iterable[float], what: str) -> Vector3:
    """Coerce a reflectance color and check each component is in [0, 1].

    Raises:
        InvalidMaterialError: If the color is malformed or would violate
            energy conservation.
    """
    color = _color(value, what)
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise InvalidMaterialError(
                f"{what} component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
    return color


def non_negative_color(value: Vector3 | Iterable[float], what: str) -> Vector3:
    """Coerce an emission color; components may exceed 1 but not go negative.

    Raises:
        InvalidMaterialError: If any component is negative or non-finite.
    """
    color = _color(value, what)
    for i, component in enumerate(color):
        if component < 0.0:
            raise InvalidMaterialError(f"{what} component {i} = {component} is negative")
    return color


def _color(value: Vector3 | Iterable[float], what: str) -> Vector3:
    try:
        color = Vector3.of(value)
    except (TypeError, ValueError) as exc:
        raise InvalidMaterialError(f"{what} must be 3 numbers, got {value!r}") from exc
    if not color.fits_float32():
        raise InvalidMaterialError(f"{what} must be finite in float32, got {color}")
    return color


def finite_parameter(value: float, what: str) -> float:
    """Coerce a scalar material parameter to a finite float."""
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidMaterialError(f"{what} must be a number, got {value!r}") from exc
    if not fits_float32(number):
        raise InvalidMaterialError(f"{what} must be finite in float32, got {number}")
    return number
