"""Sphere primitive with robust ray-sphere intersection.

This module provides a Sphere dataclass and intersection function using the
robust quadratic formula from Ray Tracing Gems to avoid floating-point
artifacts on large spheres (such as the ground sphere of radius 1000).

A sphere with a non-positive radius is degenerate: it never intersects and is
therefore invisible. This is not treated as an error.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.python.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. Values <= 0 never intersect.
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: Whether the ray intersected the sphere (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the sphere.
            Only valid if hit == 1.
        normal: The unit surface normal at the intersection point, oriented
            against the incoming ray. Only valid if hit == 1.
        front_face: Whether the ray hit the front face (1) or back face (0).
            Front face means the ray origin is outside the sphere.
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32



@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Roots of a*t^2 + 2*h*t + c = 0, smaller root first.

    Uses q = -(h + sign(h) * sqrt_d), t = q / a and t = c / q, so neither
    root is computed as the difference of two nearly equal numbers.
    """
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    near = 0.0
    far = 0.0
    if ti.abs(q) < 1e-10:
        # h and sqrt_d both vanish
        near = (-h - sqrt_d) / a
        far = (-h + sqrt_d) / a
    else:
        near = ti.min(q / a, c / q)
        far = ti.max(q / a, c / q)

    return near, far


@ti.func
def set_face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient a unit outward normal against the incoming ray.

    Returns:
        A tuple of (normal, front_face). front_face is 1 when the ray arrives
        from outside, in which case the normal is outward_normal unchanged.
    """
    normal = outward_normal
    front_face = 1
    if tm.dot(ray_direction, outward_normal) > 0.0:
        normal = -outward_normal
        front_face = 0
    return normal, front_face


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Closest intersection of a ray with a sphere.

    With oc = origin - center the hit distances solve

        a*t^2 + 2*h*t + c = 0
        a = dot(direction, direction)
        h = dot(direction, oc)
        c = dot(oc, oc) - radius^2

    The nearer root is taken when it lies in the open interval
    (t_min, t_max), otherwise the farther one.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to intersect.
        t_min: Exclusive lower bound for a valid hit, a small positive
            epsilon to avoid self-intersection.
        t_max: Exclusive upper bound for a valid hit.

    Returns:
        A HitRecord; hit is 0 when the ray misses.
    """
    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = h * h - a * c

    record = HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
    )

    if sphere.radius > 0.0 and a > 0.0 and discriminant >= 0.0:
        near, far = _solve_quadratic_robust(h, a, c, ti.sqrt(discriminant))
        root = near
        if root <= t_min or root >= t_max:
            root = far

        if t_min < root and root < t_max:
            point = ray_origin + root * ray_direction
            normal, front_face = set_face_normal(
                ray_direction, (point - sphere.center) / sphere.radius
            )
            record = HitRecord(
                hit=1, t=root, point=point, normal=normal, front_face=front_face
            )

    return record


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius inside a Taichi kernel."""
    return Sphere(center=center, radius=radius)
