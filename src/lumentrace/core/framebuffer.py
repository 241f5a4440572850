"""Framebuffer holding the final pixel colors of a render."""

from __future__ import annotations

import numpy as np
import numpy.typing as npt


class Framebuffer:
    """A width x height grid of RGB floats.

    Pixels are stored row-major in a float32 array of shape
    (height, width, 3), row 0 being the top of the image. After a render
    every component is gamma corrected and clamped to [0, 1].

    Each pixel is written exactly once, by the kernel launch that owns its
    row, so no synchronisation is needed on writes.
    """

    def __init__(self, width: int, height: int) -> None:
        self._pixels = np.zeros((height, width, 3), dtype=np.float32)

    @classmethod
    def from_array(cls, pixels: npt.ArrayLike) -> Framebuffer:
        """Wrap an existing (height, width, 3) array."""
        array = np.asarray(pixels, dtype=np.float32)
        if array.ndim != 3 or array.shape[2] != 3:
            raise ValueError(f"Expected an array of shape (H, W, 3), got {array.shape}")
        fb = cls(array.shape[1], array.shape[0])
        fb._pixels[...] = array
        return fb

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def pixels(self) -> npt.NDArray[np.float32]:
        """The underlying (height, width, 3) float32 array."""
        return self._pixels

    def pixel(self, x: int, y: int) -> tuple[float, float, float]:
        """Color of the pixel in column x, row y (row 0 = top)."""
        r, g, b = self._pixels[y, x]
        return (float(r), float(g), float(b))

    def to_uint8(self) -> npt.NDArray[np.uint8]:
        """Quantize to 8 bits per channel (values are already gamma corrected)."""
        clamped = np.clip(self._pixels, 0.0, 1.0)
        return (clamped * 255.0 + 0.5).astype(np.uint8)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Framebuffer):
            return NotImplemented
        return np.array_equal(self._pixels, other._pixels)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Framebuffer(width={self.width}, height={self.height})"
