"""Output module for writing rendered images.

Components:
    export: Plain-text PPM (P3) and Pillow-backed PNG writers

Example:
    >>> from src.python.output import save_image
    >>> save_image(buffer, "final.ppm")  # PPM P3
    >>> save_image(buffer, "final.png")  # Pillow
"""

from .export import format_ppm, save_image, save_png, write_ppm

__all__ = [
    "format_ppm",
    "write_ppm",
    "save_png",
    "save_image",
]
