#!/usr/bin/env python3
"""
Validation script for renderer output.

Checks a rendered PNG against the grid it came from:
1. Image exists
2. Image is 8-bit grayscale (mode L)
3. Image size is ncols x nrows
4. Image is not flat (warning only)
5. Pixels match a fresh render of the grid with the same bounds

Usage:
    gridtiler-validate --grid tile.asc --image tile.png [--floor F] [--ceiling C] [--flip]
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np
from PIL import Image

from gridtiler.esri_grid import Grid, read_grid
from gridtiler.render_grid import print_banner, render_grid


class RenderValidator:
    """Validates a rendered image against its source grid."""

    def __init__(self, grid_path: Path, image_path: Path, floor: Optional[float] = None,
                 ceiling: Optional[float] = None, flip: bool = False):
        self.grid_path = Path(grid_path)
        self.image_path = Path(image_path)
        self.floor = floor
        self.ceiling = ceiling
        self.flip = flip
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.grid: Optional[Grid] = None
        self.pixels: Optional[np.ndarray] = None

    def validate(self) -> bool:
        """Run all validation checks. Returns True if all pass."""
        print_banner("gridtiler output validator", f"Grid:  {self.grid_path}", f"Image: {self.image_path}")

        checks = [
            ("Image exists", self._check_image_exists),
            ("Image format", self._check_image_format),
            ("Image dimensions", self._check_dimensions),
            ("Image contrast", self._check_contrast),
            ("Pixels match grid", self._check_pixels),
        ]

        failed = 0
        for i, (name, check_fn) in enumerate(checks, start=1):
            print(f"[{i}/{len(checks)}] {name}...", end=' ')
            try:
                ok = check_fn()
            except Exception as e:
                self.errors.append(f"{name}: {e}")
                ok = False
            print("[PASS]" if ok else "[FAIL]")
            failed += not ok

        print(f"\nPassed {len(checks) - failed}/{len(checks)}")
        for warning in self.warnings:
            print(f"  [!] {warning}")
        for error in self.errors:
            print(f"  [X] {error}")
        print("[OK] Image matches grid\n" if failed == 0 else f"[FAIL] {failed} check(s) failed\n")

        return failed == 0

    def _load_grid(self) -> Grid:
        if self.grid is None:
            self.grid = read_grid(self.grid_path)
        return self.grid

    def _check_image_exists(self) -> bool:
        if not self.image_path.exists():
            self.errors.append(f"Image not found: {self.image_path}")
            return False
        return True

    def _check_image_format(self) -> bool:
        """Image must be an 8-bit single channel PNG."""
        with Image.open(self.image_path) as img:
            if img.format != 'PNG':
                self.errors.append(f"Image format is {img.format}, expected PNG")
                return False
            if img.mode != 'L':
                self.errors.append(f"Image is {img.mode}, expected 8-bit grayscale ('L')")
                return False
            self.pixels = np.array(img)

        print(f"\n    Mode: L")
        return True

    def _check_dimensions(self) -> bool:
        """Image width/height must equal grid ncols/nrows."""
        grid = self._load_grid()
        if self.pixels is None:
            self.errors.append("No pixels loaded, skipping dimension check")
            return False

        h, w = self.pixels.shape
        print(f"\n    Image: {w} x {h}, grid: {grid.ncols} x {grid.nrows}")
        if (h, w) != grid.shape:
            self.errors.append(f"Image is {w} x {h}, expected {grid.ncols} x {grid.nrows}")
            return False
        return True

    def _check_contrast(self) -> bool:
        """A single shade across the whole image usually means a bad floor/ceiling."""
        if self.pixels is None:
            return False

        min_val = int(self.pixels.min())
        max_val = int(self.pixels.max())
        print(f"\n    Shade range: {min_val} - {max_val}")
        if min_val == max_val:
            self.warnings.append(f"Image is a single shade ({min_val})")
        return True

    def _check_pixels(self) -> bool:
        """Re-render the grid and compare pixel for pixel."""
        if self.pixels is None:
            return False

        grid = self._load_grid()
        expected = render_grid(grid, self.floor, self.ceiling, flip=self.flip)
        if expected.shape != self.pixels.shape:
            self.errors.append("Cannot compare pixels, shapes differ")
            return False

        mismatched = int(np.count_nonzero(expected != self.pixels))
        if mismatched:
            self.errors.append(f"{mismatched} of {expected.size} pixels differ from a fresh render")
            return False
        return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description='Validate gridtiler renderer output against its source grid'
    )
    parser.add_argument(
        '--grid',
        type=Path,
        required=True,
        help='ESRI grid file the image was rendered from'
    )
    parser.add_argument(
        '--image',
        type=Path,
        required=True,
        help='Rendered .png to validate'
    )
    parser.add_argument(
        '--floor',
        type=float,
        default=None,
        help='Floor used for the render (default: derived from the grid)'
    )
    parser.add_argument(
        '--ceiling',
        type=float,
        default=None,
        help='Ceiling used for the render (default: derived from the grid)'
    )
    parser.add_argument(
        '--flip',
        action='store_true',
        help='The image was rendered with --flip'
    )

    args = parser.parse_args(argv)

    if not args.grid.exists():
        print(f"Error: Grid file not found: {args.grid}")
        return 1

    validator = RenderValidator(args.grid, args.image, args.floor, args.ceiling, args.flip)
    success = validator.validate()

    return 0 if success else 1


if __name__ == '__main__':
    sys.exit(main())
