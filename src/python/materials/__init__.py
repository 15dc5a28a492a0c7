"""Materials module for surface scattering models.

Components:
    lambertian: Diffuse reflection (normal + random unit vector)
    metal: Mirror reflection with optional fuzz
    dielectric: Glass-like reflection/refraction with Schlick reflectance

Each material provides a scatter function taking the surface data and the
calling pixel's random stream, plus a per-type parameter registry:

    - add_*_material(): Validate and register parameters, returning an index
    - clear_*_materials(): Reset the registry
    - scatter_*_by_id(): Scatter using registered parameters

Materials are selected through the MaterialType tag table kept by
src.python.scene.manager. All scatter functions are Taichi functions.
"""

from .dielectric import (
    add_dielectric_material,
    cannot_refract,
    clear_dielectric_materials,
    fresnel_reflectance,
    get_dielectric_ior,
    get_dielectric_material_count,
    scatter_dielectric,
    scatter_dielectric_by_id,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Metal
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    # Dielectric
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ior",
    "fresnel_reflectance",
    "cannot_refract",
]
