"""Ready-made sphere scenes.

Two factories are provided, each returning a populated SceneManager and a
matching ThinLensCamera:

- create_random_scene(): the classic "final scene" of many small random
  spheres on a large ground sphere, with three large feature spheres (glass,
  diffuse and metal) and a shallow depth of field.
- create_showcase_scene(): one sphere of each material side by side on a
  yellowish ground sphere, viewed from above and to the left.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.python.scene.random_scene import create_random_scene
    >>> from src.python.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_random_scene(seed=42)
    >>> setup_camera(camera)
    >>> scene.get_sphere_count() <= 488
    True
"""

import numpy as np

from src.python.camera.thin_lens import ThinLensCamera
from src.python.scene.manager import SceneManager

# =============================================================================
# Random Scene Constants
# =============================================================================

GROUND_CENTER = (0.0, -1000.0, 0.0)
GROUND_RADIUS = 1000.0
GROUND_ALBEDO = (0.5, 0.5, 0.5)

# Small spheres sit on a (2 * GRID_EXTENT) x (2 * GRID_EXTENT) grid
GRID_EXTENT = 11
SMALL_RADIUS = 0.2

# Small spheres closer than this to the metal feature sphere are skipped
CLEARANCE_POINT = np.array([4.0, 0.2, 0.0])
CLEARANCE_DISTANCE = 0.9

# Material choice thresholds for small spheres
DIFFUSE_PROBABILITY = 0.8
METAL_PROBABILITY = 0.15

GLASS_IOR = 1.5

# Three large feature spheres
FEATURE_RADIUS = 1.0
GLASS_CENTER = (0.0, 1.0, 0.0)
DIFFUSE_CENTER = (-4.0, 1.0, 0.0)
DIFFUSE_ALBEDO = (0.4, 0.2, 0.1)
METAL_CENTER = (4.0, 1.0, 0.0)
METAL_ALBEDO = (0.7, 0.6, 0.5)


# =============================================================================
# Scene Factories
# =============================================================================


def create_random_scene(
    seed: int | None = None,
    aspect_ratio: float = 3.0 / 2.0,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the random "final scene".

    For every grid cell (a, b) with a, b in [-11, 11) a small sphere of
    radius 0.2 is placed near (a, 0.2, b). Its material is diffuse with
    probability 0.8 (albedo = random * random per channel), metal with
    probability 0.15 (albedo in [0.5, 1), fuzz in [0, 0.5)) and glass
    otherwise.

    Args:
        seed: Seed for the scene layout. None picks a fresh layout each call.
        aspect_ratio: Aspect ratio for the returned camera.

    Returns:
        A tuple of (SceneManager, ThinLensCamera). The camera sits at
        (13, 2, 3) looking at the origin with a 20 degree field of view,
        aperture 0.1 and focus distance 10.
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    scene.add_lambertian_sphere(GROUND_CENTER, GROUND_RADIUS, GROUND_ALBEDO)

    for a in range(-GRID_EXTENT, GRID_EXTENT):
        for b in range(-GRID_EXTENT, GRID_EXTENT):
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), SMALL_RADIUS, b + 0.9 * rng.random()])

            if np.linalg.norm(center - CLEARANCE_POINT) <= CLEARANCE_DISTANCE:
                continue

            center_tuple = (float(center[0]), float(center[1]), float(center[2]))
            if choose_mat < DIFFUSE_PROBABILITY:
                albedo = rng.random(3) * rng.random(3)
                scene.add_lambertian_sphere(center_tuple, SMALL_RADIUS, tuple(albedo.tolist()))
            elif choose_mat < DIFFUSE_PROBABILITY + METAL_PROBABILITY:
                albedo = rng.uniform(0.5, 1.0, size=3)
                fuzz = float(rng.uniform(0.0, 0.5))
                scene.add_metal_sphere(center_tuple, SMALL_RADIUS, tuple(albedo.tolist()), fuzz)
            else:
                scene.add_dielectric_sphere(center_tuple, SMALL_RADIUS, GLASS_IOR)

    scene.add_dielectric_sphere(GLASS_CENTER, FEATURE_RADIUS, GLASS_IOR)
    scene.add_lambertian_sphere(DIFFUSE_CENTER, FEATURE_RADIUS, DIFFUSE_ALBEDO)
    scene.add_metal_sphere(METAL_CENTER, FEATURE_RADIUS, METAL_ALBEDO, 0.0)

    camera = ThinLensCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )
    return scene, camera


def create_showcase_scene(
    aspect_ratio: float = 16.0 / 9.0,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create a small scene with one sphere of each material.

    The glass sphere on the left shares its material with a sphere of
    radius -0.4 at the same center. A non-positive radius never intersects,
    so that inner sphere is invisible.

    Args:
        aspect_ratio: Aspect ratio for the returned camera.

    Returns:
        A tuple of (SceneManager, ThinLensCamera). The camera sits at
        (-2, 2, 1) looking at (0, 0, -1) with a 40 degree field of view and
        no depth of field.
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material((0.8, 0.8, 0.0))
    center = scene.add_lambertian_material((0.1, 0.2, 0.5))
    glass = scene.add_dielectric_material(1.5)
    gold = scene.add_metal_material((0.8, 0.6, 0.2), fuzz=0.0)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((-1.0, 0.0, -1.0), -0.4, glass)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)

    lookfrom = (-2.0, 2.0, 1.0)
    lookat = (0.0, 0.0, -1.0)
    camera = ThinLensCamera(
        lookfrom=lookfrom,
        lookat=lookat,
        vup=(0.0, 1.0, 0.0),
        vfov=40.0,
        aspect_ratio=aspect_ratio,
        aperture=0.0,
        focus_dist=float(np.linalg.norm(np.subtract(lookfrom, lookat))),
    )
    return scene, camera
