#!/usr/bin/env python3
"""
gridtiler - ESRI Grid Renderer

Reads an ESRI ASCII grid of heights and renders it as an 8-bit grayscale PNG.
The floor height is drawn white, the ceiling black. Without --floor/--ceiling
the bounds come from the grid's own min/max heights.

Usage:
    gridtiler-render --input tile.asc --output tile.png
    gridtiler-render -i tile.asc -o tile.png --floor 450 --ceiling 1200 -v

Requirements: numpy, Pillow (PIL)
"""

import argparse
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np
from PIL import Image

from gridtiler.esri_grid import Grid, GridError, read_grid
from gridtiler.shading import ShadeTracker, shade_array


logger = logging.getLogger(__name__)

# Widen derived bounds so the extreme heights stay inside (floor, ceiling)
EDGE_MARGIN = 0.1


class RenderError(GridError):
    """Invalid floor/ceiling for a render."""


@dataclass
class RenderSummary:
    """What a render produced, for reporting."""
    nrows: int
    ncols: int
    min_height: float
    max_height: float
    floor: float
    ceiling: float
    min_shade: Optional[int]
    max_shade: Optional[int]


def resolve_bounds(grid: Grid, floor: Optional[float] = None,
                   ceiling: Optional[float] = None) -> Tuple[float, float]:
    """Effective (floor, ceiling): explicit values win, else grid min/max widened by EDGE_MARGIN."""
    if floor is None:
        floor = grid.min_height - EDGE_MARGIN
    if ceiling is None:
        ceiling = grid.max_height + EDGE_MARGIN
    if not ceiling > floor:
        raise RenderError(f"ceiling ({ceiling}) must be greater than floor ({floor})")
    return float(floor), float(ceiling)


def render_grid(grid: Grid, floor: Optional[float] = None, ceiling: Optional[float] = None,
                tracker: Optional[ShadeTracker] = None, flip: bool = False) -> np.ndarray:
    """Shade every cell of the grid into a (nrows, ncols) uint8 pixel array.

    Image row r holds grid row r, so the first (northern) row of the file is
    the top of the image. flip=True mirrors the image vertically.
    """
    floor, ceiling = resolve_bounds(grid, floor, ceiling)
    heights = grid.heights
    pixels = np.zeros(grid.shape, dtype=np.uint8)

    # Bottom row first, each row shaded left to right in one pass
    for row in range(grid.nrows - 1, -1, -1):
        out_row = grid.nrows - 1 - row if flip else row
        pixels[out_row, :] = shade_array(floor, ceiling, heights[row], tracker)
        logger.debug("row %d shaded: %s", row, pixels[out_row, :])

    return pixels


def save_png(pixels: np.ndarray, path: Union[str, Path]) -> None:
    """Save a 2-D uint8 array as an 8-bit grayscale PNG."""
    if pixels.ndim != 2 or pixels.dtype != np.uint8:
        raise ValueError(f"expected 2-D uint8 pixels, got {pixels.ndim}-D {pixels.dtype}")
    img = Image.fromarray(pixels)
    img.save(path, format='PNG')


def print_banner(title: str, *lines: str) -> None:
    """Boxed heading used by the command line tools."""
    print(f"\n{'='*80}")
    print(title)
    for line in lines:
        print(line)
    print(f"{'='*80}\n")


class GridRenderer:
    """Grid file to PNG pipeline."""

    def __init__(self, input_path: Path, output_path: Path, floor: Optional[float] = None,
                 ceiling: Optional[float] = None, flip: bool = False):
        self.input_path = Path(input_path)
        self.output_path = Path(output_path)
        self.floor = floor
        self.ceiling = ceiling
        self.flip = flip
        self.tracker = ShadeTracker()

    def run(self) -> RenderSummary:
        """Parse, shade and encode. Nothing is written unless parsing and shading succeed."""
        start_time = time.time()

        print_banner("gridtiler renderer", f"Input:  {self.input_path}", f"Output: {self.output_path}")

        print("[1/3] Reading grid...")
        grid = read_grid(self.input_path)
        print(f"  [OK] {grid.ncols} x {grid.nrows} cells, cellsize {grid.cellsize}")
        print(f"  [OK] Height range: {grid.min_height:f} - {grid.max_height:f}")

        print("\n[2/3] Shading cells...")
        floor, ceiling = resolve_bounds(grid, self.floor, self.ceiling)
        print(f"  Floor {floor:f} ceiling {ceiling:f}")
        self.tracker.reset()
        pixels = render_grid(grid, floor, ceiling, self.tracker, flip=self.flip)
        print(f"  [OK] Shade range: {self.tracker.min_shade} - {self.tracker.max_shade}")

        print("\n[3/3] Encoding image...")
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        save_png(pixels, self.output_path)
        print(f"  [OK] Saved: {self.output_path} ({grid.ncols} x {grid.nrows})")

        elapsed = time.time() - start_time
        print(f"\nDone in {elapsed:.2f} seconds\n")

        return RenderSummary(
            nrows=grid.nrows,
            ncols=grid.ncols,
            min_height=grid.min_height,
            max_height=grid.max_height,
            floor=floor,
            ceiling=ceiling,
            min_shade=self.tracker.min_shade,
            max_shade=self.tracker.max_shade,
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='gridtiler - render an ESRI ASCII height grid as a grayscale PNG',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        '-i', '--input',
        type=Path,
        required=True,
        help='ESRI grid data file',
    )
    parser.add_argument(
        '-o', '--output',
        type=Path,
        required=True,
        help='.png results file',
    )
    parser.add_argument(
        '-f', '--floor',
        type=float,
        default=None,
        help=f'Minimum height expected, drawn white (default: grid minimum - {EDGE_MARGIN})',
    )
    parser.add_argument(
        '-c', '--ceiling',
        type=float,
        default=None,
        help=f'Maximum height expected, drawn black (default: grid maximum + {EDGE_MARGIN})',
    )
    parser.add_argument(
        '--flip',
        action='store_true',
        help='Mirror the image vertically (southern row at the top)',
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose mode: log every header field, line and shaded row',
    )
    return parser


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    if not args.input.exists():
        print(f"Error: Grid file not found: {args.input}")
        return 1

    renderer = GridRenderer(args.input, args.output, args.floor, args.ceiling, flip=args.flip)

    try:
        summary = renderer.run()
    except (GridError, OSError, ValueError) as e:
        print(f"\nError during rendering: {e}")
        return 1

    print(f"{summary.nrows} {summary.ncols} {summary.min_height:f} {summary.max_height:f} "
          f"{summary.min_shade} {summary.max_shade}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
