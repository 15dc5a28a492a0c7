"""Core rendering module.

Components:
    ray: Ray data structure and vector/color algebra
    sampler: Per-pixel random number streams and sampling helpers
    integrator: Recursive color evaluation and the per-pixel render kernel
    renderer: Tiled parallel renderer, settings and pixel buffer

All compute-intensive operations are Taichi kernels and run on the CPU or
GPU backend chosen by ti.init().
"""

from .ray import (
    Ray,
    cross,
    degrees_to_radians,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    ray_at,
    reflect,
    refract,
    schlick_fresnel,
    vec3,
)
from .sampler import (
    MAX_STREAMS,
    random_float,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_range,
    random_unit_vector,
    seed_streams,
)

# Note: integrator and renderer are NOT imported here to avoid circular imports
# (they depend on the camera, materials and scene packages, which import core).
#
# For rendering, use:
#   from src.python.core.renderer import Renderer, RenderSettings

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_fresnel",
    "near_zero",
    "degrees_to_radians",
    "MAX_STREAMS",
    "seed_streams",
    "random_float",
    "random_range",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
]
