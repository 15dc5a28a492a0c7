"""Tiled parallel renderer producing an 8-bit pixel buffer.

The Renderer wraps the integrator kernels with:
- Validated render settings (image size, samples, depth, seed, tile height)
- Deterministic per-pixel random streams, reseeded before every render
- Tile dispatch (bands of rows, top to bottom) with progress reporting
- Coarse cancellation checked between tiles

Each tile is one kernel launch whose outermost loop Taichi parallelizes
across all pixels of the band. Pixels only write their own buffer slot and
only advance their own random stream, so the image is the same for a given
seed regardless of backend or thread count.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.python.camera.thin_lens import setup_camera
    >>> from src.python.core.renderer import Renderer, RenderSettings
    >>> from src.python.scene.random_scene import create_showcase_scene
    >>>
    >>> scene, camera = create_showcase_scene()
    >>> setup_camera(camera)
    >>> settings = RenderSettings.from_aspect_ratio(400, 16 / 9, samples_per_pixel=20)
    >>> buffer = Renderer(settings).render()
    >>> buffer.pixels.shape
    (225, 400, 3)
"""

import logging
import threading
import time
from collections.abc import Callable, Generator, Iterator
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from src.python.core.integrator import (
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    get_linear_image_numpy,
    get_pixel_buffer_numpy,
    render_rows,
    setup_render_target,
)
from src.python.core.sampler import seed_streams

logger = logging.getLogger(__name__)

# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]


class RenderCancelledError(RuntimeError):
    """Raised when a render is cancelled before all tiles were dispatched."""


@dataclass(frozen=True)
class RenderSettings:
    """Image and sampling parameters for a render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Jittered samples averaged per pixel.
        max_depth: Maximum number of ray bounces. 0 renders black.
        seed: Base seed for the per-pixel random streams.
        rows_per_tile: Image rows rendered per kernel launch.

    Raises:
        ValueError: If any value is out of range.
    """

    width: int
    height: int
    samples_per_pixel: int = 10
    max_depth: int = 50
    seed: int = 0
    rows_per_tile: int = 16

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.rows_per_tile <= 0:
            raise ValueError(f"rows_per_tile must be positive, got {self.rows_per_tile}")

    @classmethod
    def from_aspect_ratio(cls, width: int, aspect_ratio: float, **kwargs) -> "RenderSettings":
        """Build settings whose height is int(width / aspect_ratio).

        Raises:
            ValueError: If aspect_ratio is not positive or the height rounds to 0.
        """
        if aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {aspect_ratio}")
        return cls(width=width, height=int(width / aspect_ratio), **kwargs)


@dataclass
class PixelBuffer:
    """A rendered 8-bit RGB image.

    Attributes:
        pixels: Array of shape (height, width, 3), dtype uint8, row-major with
            the top row first.
    """

    pixels: npt.NDArray[np.uint8]

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def iter_pixels(self) -> Iterator[tuple[int, int, int]]:
        """Yield (R, G, B) for every pixel, left to right, top to bottom."""
        for r, g, b in self.pixels.reshape(-1, 3):
            yield int(r), int(g), int(b)


class Renderer:
    """Renders the current scene through the current camera.

    The scene (src.python.scene) and camera (setup_camera) are global Taichi
    state and must be set up before calling render(). They are read-only
    while a render runs.

    Attributes:
        settings: The render settings.
    """

    def __init__(self, settings: RenderSettings) -> None:
        self.settings = settings

    def _tile_ranges(self) -> list[tuple[int, int]]:
        height = self.settings.height
        step = self.settings.rows_per_tile
        return [(start, min(start + step, height)) for start in range(0, height, step)]

    def _start(self) -> list[tuple[int, int]]:
        s = self.settings
        setup_render_target(s.width, s.height)
        seed_streams(s.seed, s.width * s.height)
        logger.info(
            "Rendering %dx%d, %d spp, max depth %d, seed %d",
            s.width, s.height, s.samples_per_pixel, s.max_depth, s.seed,
        )
        return self._tile_ranges()

    def _render_tile(self, row_start: int, row_end: int) -> None:
        s = self.settings
        render_rows(row_start, row_end, s.samples_per_pixel, s.max_depth)
        logger.debug("Rendered rows %d-%d", row_start, row_end - 1)

    def render_tiles(self) -> Generator[tuple[int, int], None, None]:
        """Render tile by tile, yielding progress after each tile.

        The image is complete once the generator is exhausted; read it with
        pixel_buffer(). Stopping iteration early leaves the remaining rows
        black.

        Yields:
            Tuple of (rows_done, total_rows).
        """
        for row_start, row_end in self._start():
            self._render_tile(row_start, row_end)
            yield row_end, self.settings.height

    def render(
        self,
        callback: ProgressCallback | None = None,
        cancel: threading.Event | None = None,
    ) -> PixelBuffer:
        """Render the full image.

        Args:
            callback: Optional callback called after each tile with
                (rows_done, total_rows).
            cancel: Optional event checked before each tile. Once set, no
                further tiles are dispatched.

        Returns:
            The finished PixelBuffer.

        Raises:
            RenderCancelledError: If cancel was set before the last tile
                was dispatched. No partial image is returned.
        """
        start = time.perf_counter()

        for row_start, row_end in self._start():
            if cancel is not None and cancel.is_set():
                logger.info("Render cancelled at row %d", row_start)
                raise RenderCancelledError(f"Render cancelled at row {row_start}")
            self._render_tile(row_start, row_end)
            if callback is not None:
                callback(row_end, self.settings.height)

        logger.info("Render finished in %.2fs", time.perf_counter() - start)
        return self.pixel_buffer()

    def pixel_buffer(self) -> PixelBuffer:
        """Get the current contents of the 8-bit image buffer."""
        return PixelBuffer(pixels=get_pixel_buffer_numpy())

    def linear_image(self) -> npt.NDArray[np.float32]:
        """Get the averaged linear colors (height, width, 3) before gamma."""
        return get_linear_image_numpy()

    def __repr__(self) -> str:
        s = self.settings
        return (
            f"Renderer(width={s.width}, height={s.height}, "
            f"samples_per_pixel={s.samples_per_pixel}, max_depth={s.max_depth})"
        )
