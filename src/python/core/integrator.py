"""Recursive color evaluation and the per-pixel sampling kernel.

A camera ray is followed through the scene: at each hit the material either
scatters it, multiplying the path color by its attenuation, or absorbs it.
A ray that escapes picks up the sky gradient. The recursive definition

    ray_color(ray, 0)     = black
    ray_color(ray, depth) = sky(ray)                                 on a miss
                          = attenuation * ray_color(scattered, depth - 1)
                          = black                                    if absorbed

is evaluated as a bounded loop carrying the running product of attenuations
(the throughput), since Taichi functions cannot recurse. The loop gives the
same value as the recursion.

Each pixel averages samples_per_pixel jittered camera rays, then the average
is gamma corrected (gamma 2), clamped to [0, 0.999] and scaled to a byte.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.python.core.integrator import (
    ...     get_pixel_buffer_numpy, render_rows, setup_render_target
    ... )
    >>> from src.python.core.sampler import seed_streams
    >>> setup_render_target(400, 225)
    >>> seed_streams(0, 400 * 225)
    >>> render_rows(0, 225, samples_per_pixel=10, max_depth=50)
    >>> pixels = get_pixel_buffer_numpy()  # (225, 400, 3) uint8
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.python.camera.thin_lens import get_ray_jittered
from src.python.materials.dielectric import scatter_dielectric_by_id
from src.python.materials.lambertian import scatter_lambertian_by_id
from src.python.materials.metal import scatter_metal_by_id
from src.python.scene.intersection import intersect_scene
from src.python.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Closest accepted hit distance; avoids re-hitting the surface a ray left
T_MIN = 1e-3
T_MAX = 1e10

# Sky gradient endpoints (horizon and zenith)
SKY_HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)

# Largest channel value before scaling to a byte
MAX_CHANNEL = 0.999

# =============================================================================
# Render Target (Image Buffers)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Averaged linear color per pixel, indexed (i, j) with j = 0 the bottom row
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Gamma corrected 8-bit color per pixel, same indexing
_pixel_buffer = ti.Vector.field(3, dtype=ti.u8, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Set the active image size and clear the buffers.

    Args:
        width: Image width in pixels, in [1, MAX_IMAGE_WIDTH].
        height: Image height in pixels, in [1, MAX_IMAGE_HEIGHT].

    Raises:
        ValueError: If either dimension is non-positive or too large.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _pixel_buffer.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Sky and Material Dispatch
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky color seen along a ray that hits nothing.

    Blends linearly from white at the horizon to light blue straight up,
    based on the y component of the unit direction.
    """
    unit_direction = tm.normalize(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * SKY_HORIZON_COLOR + t * SKY_ZENITH_COLOR


@ti.func
def scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Dispatch to the scatter function of the material's type.

    Args:
        material_id: The scene-wide material ID.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal facing the incoming ray.
        front_face: 1 if the ray arrived from outside the object.
        stream: The random stream of the calling pixel.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). Unknown
        material IDs absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation = scatter_lambertian_by_id(type_index, normal, stream)
        did_scatter = 1

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal, stream
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face, stream
        )
        did_scatter = 1

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def ray_color(origin: vec3, direction: vec3, max_depth: ti.i32, stream: ti.i32) -> vec3:
    """Color carried back along a ray with a budget of max_depth bounces.

    Args:
        origin: The ray origin.
        direction: The ray direction (any non-zero length).
        max_depth: Remaining recursion budget. 0 returns black.
        stream: The random stream of the calling pixel.

    Returns:
        The linear RGB color of the ray. Running out of budget or being
        absorbed gives black.
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction

    # Taichi has no recursion; the active flag ends the walk
    active = 1
    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * background_color(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = scatter_material(
                    rec.material_id, ray_direction, rec.normal, rec.front_face, stream
                )
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = rec.point
                    ray_direction = scattered_direction

    return color


@ti.func
def to_byte(channel: ti.f32) -> ti.i32:
    """Gamma correct (gamma 2), clamp and scale a linear channel to [0, 255]."""
    value = channel
    if tm.isnan(value):
        value = 0.0
    corrected = ti.sqrt(tm.max(value, 0.0))
    return ti.cast(256.0 * tm.clamp(corrected, 0.0, MAX_CHANNEL), ti.i32)


@ti.func
def sample_pixel(
    i: ti.i32,
    j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    stream: ti.i32,
) -> vec3:
    """Average samples_per_pixel jittered samples of pixel (i, j).

    NaN channels of the average are replaced by 0.
    """
    total = vec3(0.0, 0.0, 0.0)
    for _ in range(samples_per_pixel):
        ray = get_ray_jittered(i, j, width, height, stream)
        total += ray_color(ray.origin, ray.direction, max_depth, stream)

    color = total / ti.cast(samples_per_pixel, ti.f32)
    for c in ti.static(range(3)):
        if tm.isnan(color[c]):
            color[c] = 0.0
    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows_kernel(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
):
    # Outermost loop: parallel over every pixel of the band
    for row, i in ti.ndrange((row_start, row_end), width):
        # Image rows count from the top; buffer rows from the bottom
        j = height - 1 - row
        stream = row * width + i

        color = sample_pixel(i, j, width, height, samples_per_pixel, max_depth, stream)

        _color_buffer[i, j] = color
        for c in ti.static(range(3)):
            _pixel_buffer[i, j][c] = ti.cast(to_byte(color[c]), ti.u8)


@ti.kernel
def _trace_ray_kernel(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    max_depth: ti.i32,
    stream: ti.i32,
) -> vec3:
    return ray_color(vec3(ox, oy, oz), vec3(dx, dy, dz), max_depth, stream)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_rows(row_start: int, row_end: int, samples_per_pixel: int, max_depth: int) -> None:
    """Render image rows [row_start, row_end), counted from the top.

    Every pixel uses the random stream numbered row * width + column, so
    streams must have been seeded for width * height pixels.

    Raises:
        RuntimeError: If the render target has not been set up.
        ValueError: If the row range is outside the image.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    if not 0 <= row_start <= row_end <= height:
        raise ValueError(f"Row range [{row_start}, {row_end}) is outside [0, {height})")
    _render_rows_kernel(row_start, row_end, width, height, samples_per_pixel, max_depth)


def trace_ray_color(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int,
    stream: int = 0,
) -> tuple[float, float, float]:
    """Evaluate ray_color for a single ray (for inspection and tests).

    Returns:
        Tuple of (R, G, B) linear color values.
    """
    color = _trace_ray_kernel(
        origin[0], origin[1], origin[2],
        direction[0], direction[1], direction[2],
        max_depth, stream,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def get_pixel_buffer_numpy() -> npt.NDArray[np.uint8]:
    """Get the 8-bit image as a NumPy array.

    Returns:
        Array of shape (height, width, 3), dtype uint8, top row first.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()

    image = _pixel_buffer.to_numpy()[:width, :height, :]
    # (width, height, 3) with a bottom-left origin -> (height, width, 3) top-first
    image = np.flipud(np.transpose(image, (1, 0, 2)))
    return np.ascontiguousarray(image, dtype=np.uint8)


def get_linear_image_numpy() -> npt.NDArray[np.float32]:
    """Get the averaged linear colors (before gamma) as a NumPy array.

    Returns:
        Array of shape (height, width, 3), dtype float32, top row first.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()

    image = _color_buffer.to_numpy()[:width, :height, :]
    image = np.flipud(np.transpose(image, (1, 0, 2)))
    return np.ascontiguousarray(image, dtype=np.float32)
