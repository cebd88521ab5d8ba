#!/usr/bin/env python3
"""Render the procedural "many spheres" cover scene.

Usage:
    python examples/render_random_scene.py [options]

Options:
    --width WIDTH            Image width in pixels (default: 1200)
    --aspect-ratio RATIO     Width / height (default: 1.5)
    --samples SAMPLES        Samples per pixel (default: 500)
    --max-depth DEPTH        Maximum bounces per path (default: 50)
    --seed SEED              Seed for the scene layout and the render (default: 0)
    --output OUTPUT          Output path, .png or .ppm (default: image.png)
    --config CONFIG          JSON render configuration; flags override it
    --arch ARCH              Taichi backend: cpu, gpu, cuda, vulkan, metal (default: cpu)
    --rows-per-batch ROWS    Scanlines per progress update (default: 16)
    --ppm PPM                Also write a plain-text PPM copy of the image
    --debug                  Run Taichi in debug mode (kernel asserts, bounds checks)
    --quiet                  Suppress progress output

Example:
    python examples/render_random_scene.py --width 400 --samples 50 --output cover.ppm
    python examples/render_random_scene.py --width 400 --samples 50 --ppm image.ppm
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

logger = logging.getLogger("render_random_scene")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Options left unset (None) fall back to the configuration file, then to
    the RenderConfig defaults.
    """
    parser = argparse.ArgumentParser(
        description="Render the procedural many-spheres scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=None, help="Image width in pixels")
    parser.add_argument("--aspect-ratio", type=float, default=None, help="Width / height")
    parser.add_argument("--samples", type=int, default=None, help="Samples per pixel")
    parser.add_argument("--max-depth", type=int, default=None, help="Maximum bounces per path")
    parser.add_argument("--seed", type=int, default=None, help="Scene and render seed")
    parser.add_argument("--output", type=str, default=None, help="Output path (.png or .ppm)")
    parser.add_argument("--config", type=str, default=None, help="JSON render configuration")
    parser.add_argument(
        "--arch",
        type=str,
        default="cpu",
        help="Taichi backend: cpu, gpu, cuda, vulkan or metal (default: cpu)",
    )
    parser.add_argument(
        "--rows-per-batch",
        type=int,
        default=16,
        help="Scanlines per progress update (default: 16)",
    )
    parser.add_argument(
        "--ppm", type=str, default=None, help="Also write a plain-text PPM copy of the image"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Run Taichi in debug mode so kernel asserts are checked",
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace):
    """Merge the configuration file and command-line overrides."""
    # Lazy imports to allow Taichi initialization first
    from spheretrace.config import RenderConfig, load_config

    config = load_config(args.config) if args.config else RenderConfig()

    if args.width is not None:
        config.image_width = args.width
    if args.aspect_ratio is not None:
        config.aspect_ratio = args.aspect_ratio
        config.camera.aspect_ratio = args.aspect_ratio
    if args.samples is not None:
        config.samples_per_pixel = args.samples
    if args.max_depth is not None:
        config.max_depth = args.max_depth
    if args.seed is not None:
        config.seed = args.seed
    if args.output is not None:
        config.output = args.output

    config.validate()
    return config


def render_random_scene(
    config,
    rows_per_batch: int = 16,
    quiet: bool = False,
    ppm_output: str | Path | None = None,
) -> Path:
    """Build the scene, render it and save the image.

    When ppm_output is given, the same render is also written there as a
    plain-text PPM.

    Returns:
        Path to the saved image file.
    """
    from spheretrace.camera.thin_lens import setup_camera
    from spheretrace.core.renderer import Renderer
    from spheretrace.scene.random_scene import create_random_scene

    create_random_scene(seed=config.seed, aspect_ratio=config.aspect_ratio)
    setup_camera(config.camera)

    renderer = Renderer(config.image_width, config.image_height)
    start_time = time.time()

    def progress_callback(rows_done: int, total_rows: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            print(
                f"\r  Scanlines remaining: {total_rows - rows_done:5d} ({elapsed:.1f}s)",
                end="",
                flush=True,
            )

    renderer.render(
        samples=config.samples_per_pixel,
        max_depth=config.max_depth,
        seed=config.seed,
        rows_per_batch=rows_per_batch,
        callback=progress_callback,
    )

    if not quiet:
        print()  # Newline after progress

    output_file = Path(config.output)
    renderer.save(output_file)
    if ppm_output is not None:
        renderer.write_ppm(ppm_output)

    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        if ppm_output is not None:
            print(f"Saved PPM to: {Path(ppm_output).absolute()}")
        print(f"Total time: {time.time() - start_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from spheretrace.runtime import init_taichi

    try:
        init_taichi(args.arch, debug=args.debug, seed=args.seed or 0)
        config = build_config(args)
        render_random_scene(
            config,
            rows_per_batch=args.rows_per_batch,
            quiet=args.quiet,
            ppm_output=args.ppm,
        )
        return 0
    except Exception as e:
        logger.error(f"Render failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
