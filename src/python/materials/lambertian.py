"""Lambertian (diffuse) material.

A diffuse surface scatters every incoming ray. The scattered direction is the
surface normal plus a uniformly distributed random unit vector, which gives a
cosine-like distribution around the normal without explicit importance
sampling. The attenuation is always the albedo.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.python.materials.lambertian import add_lambertian_material
    >>> red = add_lambertian_material((0.7, 0.3, 0.3))
    >>> # Inside a kernel:
    >>> # direction, attenuation = scatter_lambertian(albedo, normal, stream)
"""

import taichi as ti
import taichi.math as tm

from src.python.core.ray import near_zero
from src.python.core.sampler import random_unit_vector

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, stream: ti.i32):
    """Scatter a ray off a diffuse surface.

    Args:
        albedo: The diffuse reflectance color.
        normal: The unit surface normal facing the incoming ray.
        stream: The random stream of the calling pixel.

    Returns:
        A tuple of (scattered_direction, attenuation). The direction is not
        normalized. Lambertian surfaces always scatter.
    """
    scattered_direction = normal + random_unit_vector(stream)

    # The random vector can nearly cancel the normal
    if near_zero(scattered_direction):
        scattered_direction = normal

    return scattered_direction, albedo


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 1024

lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials."""
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(f"Albedo component {i} = {component} is outside [0, 1]")

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, normal: vec3, stream: ti.i32):
    """Scatter off the registered Lambertian material at material_idx.

    Returns:
        A tuple of (scattered_direction, attenuation).
    """
    albedo = get_lambertian_albedo(material_idx)
    return scatter_lambertian(albedo, normal, stream)
