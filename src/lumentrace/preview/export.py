"""Image export utilities for rendered framebuffers.

A Framebuffer already holds gamma corrected values in [0, 1], so export is
only quantization and encoding.

Supported formats:
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from lumentrace.preview.export import save_png
    >>> image = render(scene, camera, 320, 240, 16, 10, seed=0)
    >>> save_png(image, "output.png")
"""

from __future__ import annotations

import logging
import os
from typing import Union

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from lumentrace.core.framebuffer import Framebuffer

logger = logging.getLogger(__name__)

ImageLike = Union[Framebuffer, npt.NDArray[np.floating]]


def _as_array(image: ImageLike) -> npt.NDArray[np.float32]:
    if isinstance(image, Framebuffer):
        return image.pixels
    array = np.asarray(image, dtype=np.float32)
    if array.ndim != 3 or array.shape[2] != 3:
        raise ValueError(f"Expected an array of shape (H, W, 3), got {array.shape}")
    return array


def image_to_uint8(image: ImageLike) -> npt.NDArray[np.uint8]:
    """Quantize a [0, 1] float image to 8 bits per channel.

    Values are clamped to [0, 1] and rounded to the nearest level. NaNs map
    to 0.

    Args:
        image: A Framebuffer or an (H, W, 3) float array.

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    array = np.nan_to_num(_as_array(image), nan=0.0, posinf=1.0, neginf=0.0)
    clamped = np.clip(array, 0.0, 1.0)
    return (clamped * 255.0 + 0.5).astype(np.uint8)


def save_png(image: ImageLike, filepath: Union[str, os.PathLike]) -> None:
    """Save a framebuffer (or float array) as an 8-bit RGB PNG file.

    Args:
        image: A Framebuffer or an (H, W, 3) float array in [0, 1].
        filepath: Output file path (should end in .png).
    """
    image_uint8 = image_to_uint8(image)

    # Save using Pillow
    pil_image = PILImage.fromarray(image_uint8)
    pil_image.save(filepath, format="PNG")
    logger.info("Wrote %dx%d image to %s", image_uint8.shape[1], image_uint8.shape[0], filepath)


def load_png(filepath: Union[str, os.PathLike]) -> npt.NDArray[np.float32]:
    """Read an 8-bit PNG back as an (H, W, 3) float32 array in [0, 1]."""
    with PILImage.open(filepath) as pil_image:
        array = np.asarray(pil_image.convert("RGB"), dtype=np.float32)
    return array / 255.0


def compute_rmse(image_a: ImageLike, image_b: ImageLike) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image.
        image_b: Second image (must have the same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    a = _as_array(image_a)
    b = _as_array(image_b)
    if a.shape != b.shape:
        raise ValueError(f"Image shapes must match: {a.shape} vs {b.shape}")

    diff = a.astype(np.float64) - b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
