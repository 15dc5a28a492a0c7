"""Camera module for primary ray generation.

Components:
    thin_lens: Look-at camera with vertical field of view, aspect ratio and
        thin-lens depth of field

Viewport coordinates are normalized:
    s in [0, 1]: left to right across the image
    t in [0, 1]: bottom to top across the image

setup_camera() computes the camera state on the Python side; get_ray() and
get_ray_jittered() are Taichi functions called per sample in the render
kernel.
"""

from .thin_lens import (
    ThinLensCamera,
    get_camera_info,
    get_ray,
    get_ray_jittered,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "setup_camera",
    "get_ray",
    "get_ray_jittered",
    "get_camera_info",
]
