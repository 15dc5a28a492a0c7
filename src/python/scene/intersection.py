"""Scene-level object table and closest-hit queries.

The scene is an ordered table of objects. Each object carries a shape tag,
an index into that shape's parameter table, and a material ID. Queries walk
the whole table, dispatching on the tag and shrinking t_max to the best hit
found so far, so the returned record is always the closest one.

Only spheres exist today; the tag keeps the dispatch flat so another shape
type would be one more table and one more branch in hit_object.

The tables are Taichi fields and are read-only while a render kernel runs.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.python.scene.intersection import (
    ...     add_sphere, clear_scene, intersect_scene
    ... )
    >>> clear_scene()
    >>> add_sphere((0, 0, -1), 0.5, material_id=0)
    >>> add_sphere((0, -100.5, -1), 100.0, material_id=1)
    >>> # Use intersect_scene within a Taichi kernel
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from src.python.geometry.sphere import HitRecord, Sphere, hit_sphere

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


class ShapeType(IntEnum):
    """Shape tags stored in the object table."""

    SPHERE = 0


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: 1 if the ray intersected any object, 0 on a miss.
        t: The ray parameter of the closest intersection.
        point: The intersection point.
        normal: Unit surface normal facing the incoming ray.
        front_face: 1 if the ray arrived from outside the object.
        material_id: The material ID of the hit object, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


# Maximum number of objects supported in the scene
MAX_OBJECTS = 1024
MAX_SPHERES = 1024

# Object table: shape tag, index into the shape table, material
object_shape_types = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_shape_indices = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_material_ids = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
num_objects = ti.field(dtype=ti.i32, shape=())

# Sphere parameters: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove every object from the scene.

    Resets the counts to zero. Stale field data is overwritten as new
    objects are added.
    """
    num_objects[None] = 0
    num_spheres[None] = 0


def _add_object(shape_type: ShapeType, shape_index: int, material_id: int) -> int:
    idx = num_objects[None]
    if idx >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    object_shape_types[idx] = int(shape_type)
    object_shape_indices[idx] = shape_index
    object_material_ids[idx] = material_id
    num_objects[None] = idx + 1
    return idx


def add_sphere(center, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    A non-positive radius is accepted; such a sphere never intersects.

    Args:
        center: The center point of the sphere (any 3-sequence).
        radius: The radius of the sphere.
        material_id: The material ID to associate with this sphere.

    Returns:
        The index of the new object in the object table.

    Raises:
        RuntimeError: If the maximum number of spheres or objects is exceeded.
    """
    sphere_idx = num_spheres[None]
    if sphere_idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    object_idx = _add_object(ShapeType.SPHERE, sphere_idx, material_id)
    sphere_centers[sphere_idx] = [float(center[0]), float(center[1]), float(center[2])]
    sphere_radii[sphere_idx] = radius
    num_spheres[None] = sphere_idx + 1
    return object_idx


def get_object_count() -> int:
    """Get the number of objects in the scene."""
    return int(num_objects[None])


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_object_material_id(object_idx: int) -> int:
    """Get the material ID of an object (Python side)."""
    if object_idx < 0 or object_idx >= num_objects[None]:
        raise ValueError(f"Invalid object index: {object_idx}")
    return int(object_material_ids[object_idx])


@ti.func
def _make_miss_record() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def _to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        material_id=material_id,
    )


@ti.func
def hit_object(
    object_idx: ti.i32,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Intersect a ray with a single object, dispatching on its shape tag.

    Args:
        object_idx: Index into the object table.
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Exclusive lower bound for a valid hit.
        t_max: Exclusive upper bound for a valid hit.

    Returns:
        A SceneHitRecord for the object, or a miss record.
    """
    result = _make_miss_record()
    shape_type = object_shape_types[object_idx]
    shape_idx = object_shape_indices[object_idx]

    if shape_type == int(ShapeType.SPHERE):
        sphere = Sphere(center=sphere_centers[shape_idx], radius=sphere_radii[shape_idx])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)
        if rec.hit == 1:
            result = _to_scene_hit_record(rec, object_material_ids[object_idx])

    return result


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the closest intersection of a ray with the scene.

    Iterates every object in table order, narrowing the search interval to
    the closest hit so far.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Exclusive lower bound for a valid hit.
        t_max: Exclusive upper bound for a valid hit.

    Returns:
        The closest SceneHitRecord, or a miss record (hit == 0) if nothing
        was hit. An empty scene always misses.
    """
    closest_t = t_max
    result = _make_miss_record()

    for i in range(num_objects[None]):
        rec = hit_object(i, ray_origin, ray_direction, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec

    return result
