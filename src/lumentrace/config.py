"""Render settings and logging setup.

RenderSettings gathers every knob of a render call in one frozen dataclass so
the values can be validated up front, before any Taichi kernel is launched.

Example:
    >>> from lumentrace.config import RenderSettings
    >>> settings = RenderSettings(width=320, height=240, samples_per_pixel=16)
    >>> settings.validate()
    >>> settings.aspect_ratio
    1.3333333333333333
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Literal, Union

from lumentrace.errors import ConfigurationError

# Minimum ray parameter for secondary hits (suppresses self-intersection)
DEFAULT_T_MIN = 1e-4

# Rows of pixels traced per kernel launch
DEFAULT_TILE_ROWS = 16

# Default gamma: 2.0 is the square-root transfer curve
DEFAULT_GAMMA = 2.0

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"

# Either an RGB color or "background" (re-use the sky for exhausted paths)
ExhaustedPolicy = Union[tuple[float, float, float], Literal["background"]]


@dataclass(frozen=True)
class RenderSettings:
    """Parameters controlling one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of jittered samples averaged per pixel.
        max_depth: Maximum number of ray segments traced per sample.
        seed: Root seed of the per-sample random streams, in [0, 2**32).
        gamma: Gamma applied once at pixel write (2.0 = square root).
        t_min: Lower bound of the valid hit interval.
        tile_rows: Rows per kernel launch. Does not change the output.
        exhausted: Radiance returned when the depth budget runs out. Either
            an RGB tuple (default black) or "background".
    """

    width: int = 256
    height: int = 256
    samples_per_pixel: int = 16
    max_depth: int = 10
    seed: int = 0
    gamma: float = DEFAULT_GAMMA
    t_min: float = DEFAULT_T_MIN
    tile_rows: int = DEFAULT_TILE_ROWS
    exhausted: ExhaustedPolicy = (0.0, 0.0, 0.0)

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    @property
    def exhausted_uses_background(self) -> bool:
        """True when depth-exhausted paths return the background color."""
        return isinstance(self.exhausted, str)

    @property
    def exhausted_color(self) -> tuple[float, float, float]:
        """The fixed depth-exhausted color (black under the background policy)."""
        if isinstance(self.exhausted, str):
            return (0.0, 0.0, 0.0)
        r, g, b = self.exhausted
        return (float(r), float(g), float(b))

    def validate(self) -> None:
        """Check every field.

        Raises:
            ConfigurationError: If any setting is out of range.
        """
        for name in ("width", "height", "samples_per_pixel", "tile_rows"):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")

        if not isinstance(self.max_depth, int) or self.max_depth < 0:
            raise ConfigurationError(
                f"max_depth must be a non-negative integer, got {self.max_depth!r}"
            )

        if not isinstance(self.seed, int) or not 0 <= self.seed < 2**32:
            raise ConfigurationError(f"seed must be an integer in [0, 2**32), got {self.seed!r}")

        if not math.isfinite(self.gamma) or self.gamma <= 0.0:
            raise ConfigurationError(f"gamma must be positive, got {self.gamma!r}")

        if not math.isfinite(self.t_min) or self.t_min <= 0.0:
            raise ConfigurationError(f"t_min must be positive, got {self.t_min!r}")

        if isinstance(self.exhausted, str):
            if self.exhausted != "background":
                raise ConfigurationError(
                    f"exhausted must be an RGB tuple or 'background', got {self.exhausted!r}"
                )
        else:
            if len(self.exhausted) != 3:
                raise ConfigurationError(
                    f"exhausted color must have 3 components, got {self.exhausted!r}"
                )
            for component in self.exhausted:
                if not math.isfinite(component) or component < 0.0:
                    raise ConfigurationError(
                        f"exhausted color components must be finite and >= 0, "
                        f"got {self.exhausted!r}"
                    )


def configure_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Attach a stream handler to the package logger.

    Intended for scripts. The library itself never configures logging.

    Args:
        level: Log level name or number.

    Returns:
        The ``lumentrace`` logger.
    """
    logger = logging.getLogger("lumentrace")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    for handler in logger.handlers:
        handler.setLevel(level)

    return logger
