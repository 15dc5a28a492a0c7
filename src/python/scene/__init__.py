"""Scene module for scene storage and ray-scene queries.

Components:
    intersection: Shape-tagged object table and closest-hit queries
    manager: SceneManager tying spheres to shared materials, with
        dictionary round-trip
    random_scene: Ready-made scenes (random final scene, showcase)

Scene data lives in Taichi fields in Structure-of-Arrays layout and is
read-only while a render kernel runs.
"""

from .intersection import (
    MAX_OBJECTS,
    MAX_SPHERES,
    SceneHitRecord,
    ShapeType,
    add_sphere,
    clear_scene,
    get_object_count,
    get_object_material_id,
    get_sphere_count,
    hit_object,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)
from .random_scene import create_random_scene, create_showcase_scene

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "ShapeType",
    "add_sphere",
    "clear_scene",
    "get_object_count",
    "get_object_material_id",
    "get_sphere_count",
    "hit_object",
    "intersect_scene",
    "MAX_OBJECTS",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Scene factories
    "create_random_scene",
    "create_showcase_scene",
]
