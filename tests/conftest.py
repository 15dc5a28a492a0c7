"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene, material and render target state around each test."""
    # Import here so Taichi is initialized before fields are declared
    from src.python.core.integrator import clear_render_target
    from src.python.materials.dielectric import clear_dielectric_materials
    from src.python.materials.lambertian import clear_lambertian_materials
    from src.python.materials.metal import clear_metal_materials
    from src.python.scene.intersection import clear_scene
    from src.python.scene.manager import _clear_material_tracking

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        clear_render_target()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def seeded_streams():
    """Seed the first 1024 random streams with a fixed seed."""
    from src.python.core.sampler import seed_streams

    seed_streams(seed=1234, count=1024)
