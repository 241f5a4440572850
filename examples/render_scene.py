#!/usr/bin/env python3
"""Render one of the preset scenes to a PNG file.

Usage:
    python examples/render_scene.py [options]

Options:
    --scene NAME        Preset to render: cornell_box, letter_grid,
                        three_spheres (default: three_spheres)
    --width WIDTH       Image width in pixels (default: 400)
    --height HEIGHT     Image height in pixels (default: 300)
    --samples SAMPLES   Number of samples per pixel (default: 32)
    --max-depth DEPTH   Maximum ray segments per sample (default: 10)
    --seed SEED         Root random seed (default: 0)
    --tile-rows ROWS    Rows per kernel launch (default: 16)
    --output OUTPUT     Output file path (default: <scene>.png)
    --quiet             Suppress progress output

Example:
    python examples/render_scene.py --scene cornell_box --width 256 --height 256 --samples 64
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti

from lumentrace import LumentraceError, configure_logging, render, save_png
from lumentrace.scene.presets import PRESETS, load_preset


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a preset scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=sorted(PRESETS),
        default="three_spheres",
        help="Preset to render (default: three_spheres)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=300,
        help="Image height in pixels (default: 300)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=32,
        help="Number of samples per pixel (default: 32)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=10,
        help="Maximum ray segments per sample (default: 10)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Root random seed (default: 0)",
    )
    parser.add_argument(
        "--tile-rows",
        type=int,
        default=16,
        help="Rows per kernel launch (default: 16)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output file path (default: <scene>.png)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_preset(
    name: str,
    width: int,
    height: int,
    samples: int,
    max_depth: int,
    seed: int,
    tile_rows: int,
    output_path: str,
    quiet: bool = False,
) -> Path:
    """Render a preset scene and save it.

    Returns:
        Path to the saved image file.
    """
    scene, camera = load_preset(name, aspect_ratio=width / height)

    start_time = time.time()

    def progress_callback(rows_done: int, total_rows: int) -> None:
        if not quiet:
            pct = 100.0 * rows_done / total_rows
            print(f"\r  Progress: {rows_done}/{total_rows} rows ({pct:.1f}%)", end="", flush=True)

    image = render(
        scene,
        camera,
        width,
        height,
        samples,
        max_depth,
        seed,
        tile_rows=tile_rows,
        progress=progress_callback,
    )
    if not quiet:
        print()  # Newline after progress

    output_file = Path(output_path)
    save_png(image, output_file)

    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {time.time() - start_time:.2f}s")
    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()
    configure_logging(logging.WARNING if args.quiet else logging.INFO)

    ti.init(arch=ti.cpu)

    try:
        render_preset(
            args.scene,
            width=args.width,
            height=args.height,
            samples=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            tile_rows=args.tile_rows,
            output_path=args.output or f"{args.scene}.png",
            quiet=args.quiet,
        )
        return 0
    except LumentraceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
