"""Image export for rendered pixel buffers.

Supported formats:
    - PPM P3 (plain text, written directly)
    - PNG and anything else Pillow can write, chosen by file suffix

The PPM layout is:

    P3
    <width> <height>
    255
    R G B          (one line per pixel, left to right, top to bottom)

Example:
    >>> from src.python.output.export import write_ppm
    >>> buffer = renderer.render()
    >>> write_ppm(buffer, "image.ppm")
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from src.python.core.renderer import PixelBuffer

logger = logging.getLogger(__name__)

PPM_MAX_VALUE = 255


def _pixels_of(buffer: PixelBuffer | npt.NDArray[np.uint8]) -> npt.NDArray[np.uint8]:
    pixels = getattr(buffer, "pixels", buffer)
    pixels = np.asarray(pixels)
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (height, width, 3), got {pixels.shape}")
    if pixels.dtype != np.uint8:
        raise ValueError(f"Expected uint8 pixels, got {pixels.dtype}")
    return pixels


def format_ppm(buffer: PixelBuffer | npt.NDArray[np.uint8]) -> str:
    """Format a pixel buffer as PPM P3 text.

    Args:
        buffer: A PixelBuffer or a (height, width, 3) uint8 array, top row
            first.

    Returns:
        The complete file contents, ending with a newline.

    Raises:
        ValueError: If the buffer does not have shape (height, width, 3) or
            its dtype is not uint8.
    """
    pixels = _pixels_of(buffer)
    height, width = pixels.shape[:2]

    lines = ["P3", f"{width} {height}", str(PPM_MAX_VALUE)]
    lines.extend(f"{r} {g} {b}" for r, g, b in pixels.reshape(-1, 3).tolist())
    return "\n".join(lines) + "\n"


def write_ppm(buffer: PixelBuffer | npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Write a pixel buffer to a PPM P3 file.

    The text is fully formatted first, then written to a temporary file in
    the target directory and moved into place. A failed write leaves any
    existing file at filepath untouched and no partial file behind.

    Raises:
        ValueError: If the buffer has the wrong shape or dtype.
        OSError: If the file cannot be written.
    """
    text = format_ppm(buffer)
    path = Path(filepath)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="ascii") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.info("Wrote %s", filepath)


def save_png(buffer: PixelBuffer | npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save a pixel buffer with Pillow (format chosen from the suffix).

    Raises:
        ValueError: If the buffer has the wrong shape or dtype, or Pillow
            does not know the suffix.
        OSError: If the file cannot be written.
    """
    pixels = _pixels_of(buffer)
    pil_image = PILImage.fromarray(pixels)
    pil_image.save(filepath)
    logger.info("Wrote %s", filepath)


def save_image(buffer: PixelBuffer | npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save a pixel buffer, writing PPM P3 for .ppm and using Pillow otherwise."""
    if Path(filepath).suffix.lower() == ".ppm":
        write_ppm(buffer, filepath)
    else:
        save_png(buffer, filepath)
