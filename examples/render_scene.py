#!/usr/bin/env python3
"""Render a sphere scene to a PPM or PNG image.

Usage:
    python -m examples.render_scene [options]

Options:
    --scene SCENE         "random", "three-spheres" or a JSON scene file (default: random)
    --width WIDTH         Image width in pixels (default: 400)
    --aspect-ratio RATIO  Width / height (default: the scene camera's)
    --samples SAMPLES     Samples per pixel (default: 50)
    --max-depth DEPTH     Maximum bounces per path (default: 50)
    --seed SEED           Seed for the scene layout and the pixel samples
    --output OUTPUT       Output path; ".ppm" writes P3, anything else PNG (default: image.ppm)
    --arch {cpu,gpu}      Taichi backend (default: cpu)
    --quiet               Suppress progress output

Example:
    python -m examples.render_scene --scene random --width 600 --samples 100 --seed 7
"""

from __future__ import annotations

import argparse
import dataclasses
import sys
import time
from pathlib import Path


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sphere scene with the path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        type=str,
        default="random",
        help="'random', 'three-spheres' or a JSON scene file (default: random)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=None,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=None,
        help="Image width / height (default: the scene camera's)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=None,
        help="Number of samples per pixel (default: 50)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Maximum number of bounces per path (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the scene layout and pixel sampling (default: random)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="image.ppm",
        help="Output file path (default: image.ppm)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def render_scene(args: argparse.Namespace) -> Path:
    """Build the requested scene, render it and write the image.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.rtweekend.camera.thin_lens import setup_camera
    from src.rtweekend.config import RenderSettings, load_scene_file
    from src.rtweekend.core.renderer import Renderer
    from src.rtweekend.scene.builders import create_random_scene, create_three_sphere_scene

    settings = RenderSettings(samples_per_pixel=50, seed=args.seed)
    if args.scene == "random":
        scene, camera = create_random_scene(seed=args.seed)
    elif args.scene == "three-spheres":
        scene, camera = create_three_sphere_scene()
    else:
        scene, camera, overrides = load_scene_file(args.scene)
        settings = settings.updated(overrides)
        if "aspect_ratio" in overrides:
            camera.aspect_ratio = settings.aspect_ratio

    # Command-line values win over scene-file values
    cli_values = {
        "image_width": args.width,
        "seed": args.seed,
        "samples_per_pixel": args.samples,
        "max_depth": args.max_depth,
    }
    settings = settings.updated({k: v for k, v in cli_values.items() if v is not None})
    aspect_ratio = args.aspect_ratio if args.aspect_ratio is not None else camera.aspect_ratio
    settings = dataclasses.replace(settings, aspect_ratio=aspect_ratio)
    camera.aspect_ratio = aspect_ratio

    setup_camera(camera)
    renderer = Renderer(settings)

    if not args.quiet:
        print(
            f"Scene: {args.scene} ({scene.get_sphere_count()} spheres, "
            f"{scene.get_material_count()} materials)"
        )
        print(
            f"Rendering {renderer.width}x{renderer.height}, "
            f"{settings.samples_per_pixel} samples per pixel, max depth {settings.max_depth}..."
        )

    start_time = time.time()

    def progress_callback(rows_done: int, rows_total: int) -> None:
        elapsed = time.time() - start_time
        progress_pct = (rows_done / rows_total) * 100 if rows_total > 0 else 0
        print(
            f"\r  Progress: {rows_done}/{rows_total} rows ({progress_pct:.1f}%) - {elapsed:.1f}s",
            end="",
            file=sys.stderr,
            flush=True,
        )

    output_file = renderer.render_to_file(
        args.output,
        callback=None if args.quiet else progress_callback,
    )

    total_time = time.time() - start_time
    if not args.quiet:
        print(file=sys.stderr)  # Newline after progress
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        from src.rtweekend.config import init_backend

        init_backend(args.arch)
        if not args.quiet:
            print(f"Using {args.arch.upper()} backend")

        render_scene(args)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
