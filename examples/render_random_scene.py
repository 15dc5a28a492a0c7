#!/usr/bin/env python3
"""Render a sphere scene to a PPM (or PNG) image.

This script builds one of the ready-made scenes, sets up the camera, and
renders it tile by tile with a progress line on stdout.

Usage:
    python -m examples.render_random_scene [options]

Options:
    --width WIDTH               Image width in pixels (default: 400)
    --aspect-ratio RATIO        Width / height (default: scene default)
    --samples SAMPLES           Samples per pixel (default: 10)
    --max-depth DEPTH           Maximum ray bounces (default: 50)
    --seed SEED                 Seed for the scene layout and sampling (default: 0)
    --scene {random,showcase}   Scene to render (default: random)
    --rows-per-tile ROWS        Image rows per kernel launch (default: 16)
    --output OUTPUT             Output path; .ppm writes P3 text (default: image.ppm)
    --arch {cpu,gpu}            Taichi backend (default: gpu, falls back to cpu)
    --quiet                     Suppress progress output

Example:
    python -m examples.render_random_scene --width 300 --samples 20 --output final.png
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

import taichi as ti

SCENE_ASPECT_RATIOS = {
    "random": 3.0 / 2.0,
    "showcase": 16.0 / 9.0,
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sphere scene with the path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=None,
        help="Image width divided by height (default: 3:2 random, 16:9 showcase)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=10,
        help="Number of samples per pixel (default: 10)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum number of ray bounces (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for the scene layout and the sampling streams (default: 0)",
    )
    parser.add_argument(
        "--scene",
        choices=sorted(SCENE_ASPECT_RATIOS),
        default="random",
        help="Scene to render (default: random)",
    )
    parser.add_argument(
        "--rows-per-tile",
        type=int,
        default=16,
        help="Image rows rendered per kernel launch (default: 16)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="image.ppm",
        help="Output file path; .ppm writes plain P3 (default: image.ppm)",
    )
    parser.add_argument(
        "--arch",
        choices=["cpu", "gpu"],
        default="gpu",
        help="Taichi backend (default: gpu, falls back to cpu)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def render_scene(
    width: int = 400,
    aspect_ratio: float | None = None,
    num_samples: int = 10,
    max_depth: int = 50,
    seed: int = 0,
    scene_name: str = "random",
    rows_per_tile: int = 16,
    output_path: str = "image.ppm",
    quiet: bool = False,
) -> Path:
    """Render a scene and save it to a file.

    Args:
        width: Image width in pixels.
        aspect_ratio: Width / height. None uses the scene's default.
        num_samples: Samples per pixel.
        max_depth: Maximum ray bounces.
        seed: Seed for the scene layout and the per-pixel streams.
        scene_name: "random" or "showcase".
        rows_per_tile: Image rows per kernel launch.
        output_path: Output file path (.ppm for P3, otherwise Pillow).
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.python.camera.thin_lens import setup_camera
    from src.python.core.renderer import Renderer, RenderSettings
    from src.python.output.export import save_image
    from src.python.scene.random_scene import create_random_scene, create_showcase_scene

    if aspect_ratio is None:
        aspect_ratio = SCENE_ASPECT_RATIOS[scene_name]

    settings = RenderSettings.from_aspect_ratio(
        width,
        aspect_ratio,
        samples_per_pixel=num_samples,
        max_depth=max_depth,
        seed=seed,
        rows_per_tile=rows_per_tile,
    )

    if not quiet:
        print(f"Creating {scene_name} scene ({settings.width}x{settings.height})...")

    if scene_name == "random":
        scene, camera = create_random_scene(seed=seed, aspect_ratio=aspect_ratio)
    else:
        scene, camera = create_showcase_scene(aspect_ratio=aspect_ratio)

    setup_camera(camera)

    if not quiet:
        print(
            f"Rendering {scene.get_sphere_count()} spheres, "
            f"{num_samples} samples per pixel..."
        )

    start_time = time.time()

    def progress_callback(rows_done: int, total_rows: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (rows_done / total_rows) * 100 if total_rows > 0 else 0
            print(
                f"\r  Scanlines: {rows_done}/{total_rows} "
                f"({progress_pct:.1f}%) - {elapsed:.1f}s",
                end="",
                flush=True,
            )

    buffer = Renderer(settings).render(callback=progress_callback)

    if not quiet:
        print()  # Newline after progress

    output_file = Path(output_path)
    save_image(buffer, output_file)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    if args.arch == "gpu":
        # Use GPU if available, fall back to CPU
        try:
            ti.init(arch=ti.gpu)
            if not args.quiet:
                print("Using GPU backend")
        except Exception:
            ti.init(arch=ti.cpu)
            if not args.quiet:
                print("Using CPU backend")
    else:
        ti.init(arch=ti.cpu)
        if not args.quiet:
            print("Using CPU backend")

    try:
        render_scene(
            width=args.width,
            aspect_ratio=args.aspect_ratio,
            num_samples=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            scene_name=args.scene,
            rows_per_tile=args.rows_per_tile,
            output_path=args.output,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
