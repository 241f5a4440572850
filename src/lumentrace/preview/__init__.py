"""Preview module for render output.

Components:
    export: PNG export through Pillow and image comparison helpers

Example:
    >>> from lumentrace.preview import save_png
    >>> save_png(framebuffer, "output.png")
"""

from lumentrace.preview.export import compute_rmse, image_to_uint8, load_png, save_png

__all__ = [
    "save_png",
    "load_png",
    "image_to_uint8",
    "compute_rmse",
]
