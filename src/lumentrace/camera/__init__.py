"""Camera module for view and ray generation.

Components:
    thin_lens: Perspective camera with optional defocus blur

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across the image
    t in [0, 1]: bottom to top across the image
"""

from .thin_lens import Camera, make_camera

__all__ = ["Camera", "make_camera"]
