"""Unit tests for PNG export.

Tests cover:
- Quantization to 8 bits (clamping, rounding, NaN handling)
- PNG round trip through Pillow
- RMSE between images
"""

import numpy as np
import pytest

from lumentrace.core.framebuffer import Framebuffer
from lumentrace.preview import compute_rmse, image_to_uint8, load_png, save_png


class TestImageToUint8:
    """Tests for image_to_uint8()."""

    def test_levels(self):
        pixels = np.array([[[0.0, 0.5, 1.0]]], dtype=np.float32)
        out = image_to_uint8(pixels)
        assert out.dtype == np.uint8
        assert out.shape == (1, 1, 3)
        assert list(out[0, 0]) == [0, 128, 255]

    def test_clamps_and_handles_nan(self):
        pixels = np.array([[[-0.5, 2.0, np.nan]]], dtype=np.float32)
        assert list(image_to_uint8(pixels)[0, 0]) == [0, 255, 0]

    def test_accepts_framebuffer(self):
        fb = Framebuffer(4, 2)
        fb.pixels[1, 3] = (1.0, 0.0, 0.0)
        out = image_to_uint8(fb)
        assert out.shape == (2, 4, 3)
        assert list(out[1, 3]) == [255, 0, 0]

    def test_rejects_bad_shape(self):
        with pytest.raises(ValueError):
            image_to_uint8(np.zeros((4, 4)))


class TestPNGRoundTrip:
    """Tests for save_png() and load_png()."""

    def test_round_trip(self, tmp_path):
        rng = np.random.default_rng(0)
        pixels = rng.random((6, 8, 3)).astype(np.float32)
        path = tmp_path / "image.png"
        save_png(Framebuffer.from_array(pixels), path)

        loaded = load_png(path)
        assert loaded.shape == (6, 8, 3)
        assert loaded.dtype == np.float32
        # Quantization error is at most half a level
        assert np.abs(loaded - pixels).max() <= 0.5 / 255.0 + 1e-6

    def test_top_row_is_first(self, tmp_path):
        """Row 0 of the framebuffer is the top row of the file."""
        from PIL import Image

        fb = Framebuffer(2, 2)
        fb.pixels[0, :] = (1.0, 1.0, 1.0)
        path = tmp_path / "rows.png"
        save_png(fb, str(path))

        with Image.open(path) as img:
            assert img.size == (2, 2)
            assert img.mode == "RGB"
            assert img.getpixel((0, 0)) == (255, 255, 255)
            assert img.getpixel((0, 1)) == (0, 0, 0)


class TestComputeRMSE:
    """Tests for compute_rmse()."""

    def test_identical_images(self):
        a = np.full((3, 3, 3), 0.4, dtype=np.float32)
        assert compute_rmse(a, a.copy()) == 0.0

    def test_known_difference(self):
        a = np.zeros((2, 2, 3), dtype=np.float32)
        b = np.full((2, 2, 3), 0.5, dtype=np.float32)
        assert compute_rmse(a, b) == pytest.approx(0.5)

    def test_shape_mismatch_raises(self):
        with pytest.raises(ValueError):
            compute_rmse(np.zeros((2, 2, 3)), np.zeros((2, 3, 3)))
