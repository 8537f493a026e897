#!/usr/bin/env python3
"""Render a sphere scene to an image file.

Renders the built-in demo scene, or a scene loaded from a JSON render file,
and saves the result with Pillow.

Usage:
    python -m examples.render_spheres [options]

Options:
    --scene FILE        JSON render file (default: built-in demo scene)
    --width WIDTH       Image width in pixels (default: 400)
    --height HEIGHT     Image height in pixels (default: 225)
    --samples SAMPLES   Number of samples per pixel (default: 200)
    --depth DEPTH       Maximum ray segments per path (default: 50)
    --seed SEED         Random seed (default: 0)
    --output OUTPUT     Output file path (default: spheres.png)
    --batch-size SIZE   Samples per progress update (default: 10)
    --debug             Enable Taichi debug mode (kernel assertions)
    --cpu               Force the CPU backend
    --quiet             Suppress progress output

Example:
    python -m examples.render_spheres --width 320 --height 180 --samples 50
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_spheres")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sphere scene with the spheretrace path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="JSON render file; its render settings are overridden by explicit flags",
    )
    parser.add_argument("--width", type=int, default=None, help="Image width in pixels (default: 400)")
    parser.add_argument("--height", type=int, default=None, help="Image height in pixels (default: 225)")
    parser.add_argument(
        "--samples",
        type=int,
        default=None,
        help="Number of samples per pixel (default: 200)",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=None,
        help="Maximum ray segments per path (default: 50)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed (default: 0)")
    parser.add_argument(
        "--output",
        type=str,
        default="spheres.png",
        help="Output file path (default: spheres.png)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable Taichi debug mode so geometry faults stop the kernel",
    )
    parser.add_argument("--cpu", action="store_true", help="Force the CPU backend")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args(argv)


def render_spheres(args: argparse.Namespace) -> Path:
    """Build the scene, render it and save the image.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from spheretrace.config import RenderSettings, load_render_file
    from spheretrace.core.renderer import FrameRenderer
    from spheretrace.scene.demo import create_demo_scene
    from spheretrace.scene.manager import SceneManager

    overrides = {
        "width": args.width,
        "height": args.height,
        "samples_per_pixel": args.samples,
        "max_depth": args.depth,
        "seed": args.seed,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}

    if args.scene is not None:
        settings, camera, scene_data = load_render_file(args.scene)
        settings = RenderSettings.from_dict({**settings.to_dict(), **overrides})
        scene = SceneManager()
        scene.from_dict(scene_data)
        logger.info("Loaded %s: %d spheres", args.scene, scene.get_sphere_count())
    else:
        settings = RenderSettings.from_dict({"width": 400, "height": 225, **overrides})
        scene, camera = create_demo_scene()

    camera = camera.with_aspect_ratio(settings.aspect_ratio)
    renderer = FrameRenderer(settings, camera)

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not args.quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    sink = renderer.render(callback=progress_callback, batch_size=args.batch_size)

    if not args.quiet:
        print()  # Newline after progress

    output_file = Path(args.output)
    sink.save(output_file)

    logger.info("Saved to %s in %.2fs", output_file.absolute(), time.time() - start_time)
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    arch = ti.cpu if args.cpu else ti.gpu
    ti.init(arch=arch, debug=args.debug)

    try:
        render_spheres(args)
        return 0
    except (OSError, ValueError, RuntimeError) as e:
        logger.error("Error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
