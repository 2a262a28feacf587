#!/usr/bin/env python3
"""
Generate a synthetic ESRI grid for testing the renderer.

The grid is a tilted plane: cell (i, j), counting rows and columns from 1,
has height i/2 + j/2, so it rises towards the south east corner.

Usage:
    gridtiler-generate --rows 1000 --cols 1000 --output tilt.asc
    gridtiler-generate --rows 4 --cols 4          # writes to stdout
"""

import argparse
import sys
from pathlib import Path

import numpy as np

from gridtiler.esri_grid import Grid, write_grid


DEFAULT_ROWS = 1000
DEFAULT_COLS = 1000
DEFAULT_XLLCORNER = 513000.0
DEFAULT_YLLCORNER = 152000.0
DEFAULT_CELLSIZE = 1.0
DEFAULT_NODATA = -9999


def tilted_heights(nrows: int, ncols: int) -> np.ndarray:
    """(nrows, ncols) float32 plane with height i/2 + j/2 at 1-based cell (i, j)."""
    i = np.arange(1, nrows + 1, dtype=np.float32)[:, np.newaxis]
    j = np.arange(1, ncols + 1, dtype=np.float32)[np.newaxis, :]
    return i / 2.0 + j / 2.0


def generate_tilted_grid(nrows: int = DEFAULT_ROWS, ncols: int = DEFAULT_COLS,
                         xllcorner: float = DEFAULT_XLLCORNER, yllcorner: float = DEFAULT_YLLCORNER,
                         cellsize: float = DEFAULT_CELLSIZE, nodata_value: int = DEFAULT_NODATA) -> Grid:
    """Build a Grid filled with the tilted plane."""
    return Grid.from_array(tilted_heights(nrows, ncols), xllcorner, yllcorner,
                           cellsize, nodata_value)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description='Generate a synthetic tilted-plane ESRI grid for testing'
    )
    parser.add_argument(
        '--rows',
        type=int,
        default=DEFAULT_ROWS,
        help=f'Number of rows (default: {DEFAULT_ROWS})'
    )
    parser.add_argument(
        '--cols',
        type=int,
        default=DEFAULT_COLS,
        help=f'Number of columns (default: {DEFAULT_COLS})'
    )
    parser.add_argument(
        '--xllcorner',
        type=float,
        default=DEFAULT_XLLCORNER,
        help=f'x map reference of the lower left corner (default: {DEFAULT_XLLCORNER:g})'
    )
    parser.add_argument(
        '--yllcorner',
        type=float,
        default=DEFAULT_YLLCORNER,
        help=f'y map reference of the lower left corner (default: {DEFAULT_YLLCORNER:g})'
    )
    parser.add_argument(
        '--cellsize',
        type=float,
        default=DEFAULT_CELLSIZE,
        help=f'Cell size in map units (default: {DEFAULT_CELLSIZE:g})'
    )
    parser.add_argument(
        '--nodata',
        type=int,
        default=DEFAULT_NODATA,
        help=f'NODATA_value written to the header (default: {DEFAULT_NODATA})'
    )
    parser.add_argument(
        '--output',
        type=Path,
        default=None,
        help='Output grid file (default: stdout)'
    )

    args = parser.parse_args(argv)
    if args.rows < 1 or args.cols < 1:
        parser.error('--rows and --cols must be at least 1')

    grid = generate_tilted_grid(args.rows, args.cols, args.xllcorner, args.yllcorner,
                                args.cellsize, args.nodata)

    if args.output is None:
        write_grid(grid, sys.stdout, precision=6)
        return 0

    args.output.parent.mkdir(parents=True, exist_ok=True)
    write_grid(grid, args.output, precision=6)
    print(f"[OK] Generated {args.output} ({args.cols} x {args.rows}, "
          f"elev range: {grid.min_height:g} - {grid.max_height:g})")
    return 0


if __name__ == '__main__':
    sys.exit(main())
