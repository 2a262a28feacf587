"""Render ESRI ASCII height grids as grayscale PNG images."""

from gridtiler.esri_grid import Grid, GridError, ParseError, parse_grid, read_grid, write_grid
from gridtiler.shading import ShadeTracker, shade, shade_array
from gridtiler.render_grid import RenderError, render_grid, resolve_bounds, save_png

__version__ = '0.1.0'
