"""Geometry module for shape primitives.

This module provides geometric primitives and intersection algorithms:

Components:
    sphere: Sphere primitive with ray-sphere intersection

All intersection routines are implemented as Taichi functions (@ti.func)
so they can be called from the rendering kernels. Every primitive answers
the same closest-hit query:

    record = hit_shape(ray_origin, ray_direction, shape, t_min, t_max)

Scene-level dispatch over shape types lives in src.python.scene.intersection.
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_sphere, set_face_normal

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "set_face_normal",
]
