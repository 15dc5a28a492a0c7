"""Taichi-based sphere path tracer.

This package renders scenes made of spheres on the CPU or GPU with Taichi:
- Recursive path tracing with a sky gradient background
- Lambertian, metal and dielectric materials
- Thin-lens camera with depth of field
- Tiled parallel rendering with deterministic per-pixel random streams
- Plain-text PPM (P3) and PNG output

Subpackages:
    core: Vector and ray algebra, random streams, integrator and renderer
    geometry: Sphere primitive and ray-sphere intersection
    materials: Scattering models and their parameter registries
    scene: Object table, scene manager and ready-made scenes
    camera: Thin-lens camera with ray generation
    output: Image writers
"""

__version__ = "0.1.0"
