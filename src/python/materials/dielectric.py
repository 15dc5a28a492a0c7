"""Dielectric (glass/water) material.

Dielectrics never absorb light. Each interaction either reflects or refracts:

    - Snell's law: n1 * sin(theta1) = n2 * sin(theta2)
    - Total internal reflection when (n1 / n2) * sin(theta1) > 1
    - Otherwise reflect with probability given by Schlick's approximation

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.python.materials.dielectric import add_dielectric_material
    >>> glass = add_dielectric_material(1.5)
    >>> # Inside a kernel:
    >>> # direction, attenuation = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face, stream
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from src.python.core.ray import reflect, refract, schlick_fresnel
from src.python.core.sampler import random_float

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def _refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    # Entering the material: n_air / n_material; leaving: the inverse
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def cannot_refract(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """Check for total internal reflection.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (must be normalized).
        normal: The unit surface normal facing the incoming ray.
        front_face: 1 if the ray arrives from outside the material.

    Returns:
        1 if no refracted direction exists, 0 otherwise.
    """
    refraction_ratio = _refraction_ratio(ior, front_face)
    cos_theta = tm.min(-tm.dot(incident_direction, normal), 1.0)
    sin_theta = ti.sqrt(tm.max(1.0 - cos_theta * cos_theta, 0.0))
    return 1 if refraction_ratio * sin_theta > 1.0 else 0


@ti.func
def fresnel_reflectance(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.f32:
    """Compute the Schlick reflectance for a unit incident direction."""
    refraction_ratio = _refraction_ratio(ior, front_face)
    cos_theta = tm.min(-tm.dot(incident_direction, normal), 1.0)
    return schlick_fresnel(cos_theta, refraction_ratio)


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Reflect or refract a ray at a dielectric boundary.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal facing the incoming ray.
        front_face: 1 if the ray arrives from outside the material.
        stream: The random stream of the calling pixel.

    Returns:
        A tuple of (scattered_direction, attenuation). The attenuation is
        always exactly (1, 1, 1); dielectrics always scatter.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    unit_direction = tm.normalize(incident_direction)
    refraction_ratio = _refraction_ratio(ior, front_face)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract(ior, unit_direction, normal, front_face):
        scattered_direction = reflect(unit_direction, normal)
    else:
        cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)
        if schlick_fresnel(cos_theta, refraction_ratio) > random_float(stream):
            scattered_direction = reflect(unit_direction, normal)
        else:
            scattered_direction = refract(unit_direction, normal, refraction_ratio)

    return scattered_direction, attenuation


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 1024

dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass).
            Must be >= 1.0.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If IOR is less than 1.0.
    """
    if ior < 1.0:
        raise ValueError(f"Index of refraction = {ior} is less than 1.0")

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Scatter off the registered dielectric material at material_idx.

    Returns:
        A tuple of (scattered_direction, attenuation).
    """
    ior = get_dielectric_ior(material_idx)
    return scatter_dielectric(ior, incident_direction, normal, front_face, stream)
