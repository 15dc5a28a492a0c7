"""Independent random number streams for parallel sampling.

Every unit of parallel work (one pixel) owns a 32-bit generator state in
``_stream_states``. A stream is identified by an integer index and only the
thread rendering that pixel advances it, so no synchronization is needed and
no state is shared between workers.

The generator is a PCG-style linear congruential step with a permuted output
(RXS-M-XS). Stream k steps with its own odd increment 2k + 1, so every stream
walks a different sequence rather than a shifted window of one shared cycle.
Streams are seeded from a base seed and the stream index, which makes renders
reproducible for a fixed seed regardless of how Taichi schedules the work
across threads.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.python.core.sampler import seed_streams, random_float
    >>> seed_streams(seed=7, count=64 * 64)
    >>> # Inside a kernel: xi = random_float(stream)
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# One stream per pixel of the largest supported image (2048 x 2048)
MAX_STREAMS = 2048 * 2048

# LCG constants (multiplier from PCG, seeding increment from Numerical Recipes)
_LCG_MULTIPLIER = 747796405
_LCG_INCREMENT = 1013904223
_OUTPUT_MULTIPLIER = 277803737

# Rejection sampling cap for the unit sphere / disk samplers
_MAX_REJECTION_ITERATIONS = 100

_stream_states = ti.field(dtype=ti.u32, shape=MAX_STREAMS)


@ti.func
def _lcg_step(state: ti.u32, increment: ti.u32) -> ti.u32:
    return state * ti.u32(_LCG_MULTIPLIER) + increment


@ti.func
def _stream_increment(stream: ti.i32) -> ti.u32:
    # Must be odd for the full 2^32 period
    return (ti.cast(stream, ti.u32) << ti.u32(1)) | ti.u32(1)


@ti.func
def _permute(state: ti.u32) -> ti.u32:
    """RXS-M-XS output permutation of a 32-bit state."""
    word = ((state >> ((state >> ti.u32(28)) + ti.u32(4))) ^ state) * ti.u32(_OUTPUT_MULTIPLIER)
    return (word >> ti.u32(22)) ^ word


@ti.func
def hash_u32(value: ti.u32) -> ti.u32:
    """Hash a 32-bit integer into a well-mixed 32-bit integer."""
    return _permute(_lcg_step(value, ti.u32(_LCG_INCREMENT)))


@ti.kernel
def _seed_streams_kernel(seed: ti.u32, count: ti.i32):
    base = hash_u32(seed)
    for k in range(count):
        _stream_states[k] = hash_u32(base ^ ti.cast(k, ti.u32))


def seed_streams(seed: int, count: int) -> None:
    """Seed the first ``count`` streams from a base seed.

    Stream ``k`` is seeded with ``hash(hash(seed) ^ k)``, so each stream is
    independent of the others and reproducible for a given seed.

    Args:
        seed: Base seed. Only the low 32 bits are used.
        count: Number of streams to seed (normally width * height).

    Raises:
        ValueError: If count is negative or exceeds MAX_STREAMS.
    """
    if count < 0 or count > MAX_STREAMS:
        raise ValueError(f"Stream count {count} is outside [0, {MAX_STREAMS}]")
    _seed_streams_kernel(seed & 0xFFFFFFFF, count)


def get_stream_state(stream: int) -> int:
    """Get the raw generator state of a stream (for debugging and tests)."""
    return int(_stream_states[stream])


# =============================================================================
# Sampling Functions (Taichi, per-stream)
# =============================================================================


@ti.func
def random_float(stream: ti.i32) -> ti.f32:
    """Draw a uniform float in [0, 1) from the given stream.

    Advances the stream state by one step.
    """
    state = _stream_states[stream]
    _stream_states[stream] = _lcg_step(state, _stream_increment(stream))
    # Top 24 bits give every representable f32 step in [0, 1)
    return ti.cast(_permute(state) >> ti.u32(8), ti.f32) * (1.0 / 16777216.0)


@ti.func
def random_range(stream: ti.i32, low: ti.f32, high: ti.f32) -> ti.f32:
    """Draw a uniform float in [low, high) from the given stream."""
    return low + (high - low) * random_float(stream)


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a random point strictly inside the unit sphere.

    Uses rejection sampling from the enclosing cube.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(_MAX_REJECTION_ITERATIONS):
        if not found:
            p = vec3(
                random_range(stream, -1.0, 1.0),
                random_range(stream, -1.0, 1.0),
                random_range(stream, -1.0, 1.0),
            )
            if tm.dot(p, p) < 1.0:
                found = True
    return p


@ti.func
def random_unit_vector(stream: ti.i32) -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere."""
    p = random_in_unit_sphere(stream)
    result = vec3(0.0, 1.0, 0.0)
    # The origin itself cannot be normalized; keep the fallback direction
    if tm.dot(p, p) > 1e-12:
        result = tm.normalize(p)
    return result


@ti.func
def random_in_unit_disk(stream: ti.i32) -> vec3:
    """Generate a random point (x, y, 0) strictly inside the unit disk.

    Used to jitter the ray origin across the lens aperture.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(_MAX_REJECTION_ITERATIONS):
        if not found:
            p = vec3(
                random_range(stream, -1.0, 1.0),
                random_range(stream, -1.0, 1.0),
                0.0,
            )
            if p.x * p.x + p.y * p.y < 1.0:
                found = True
    return p
