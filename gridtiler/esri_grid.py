"""
ESRI ASCII grid reader and writer.

A grid file is plain text: six header lines followed by the height matrix.

    ncols 4
    nrows 4
    xllcorner    513000
    yllcorner    152000
    cellsize     1
    NODATA_value -9999
    500 500 500 500
    500 500 500 500
    1000 1000 1000 1000
    1000 1000 1000 1000

xllcorner/yllcorner give the map reference of the bottom left corner, cellsize
the width of a cell in map units. The first data row is the most northern line
of the grid, the last row the most southern.

Reading is lenient: a wrong header key or a data row with the wrong number of
columns is logged and skipped. Only unreadable numbers abort the parse.
"""

import logging
import math
from pathlib import Path
from typing import Iterable, Iterator, Optional, TextIO, Tuple, Union

import numpy as np


logger = logging.getLogger(__name__)

# Header fields in file order, with the type each value is parsed as
HEADER_FIELDS = (
    ('ncols', int),
    ('nrows', int),
    ('xllcorner', float),
    ('yllcorner', float),
    ('cellsize', float),
    ('NODATA_value', int),
)
HEADER_LINES = len(HEADER_FIELDS)


class GridError(Exception):
    """Base class for grid reading and rendering errors."""


class ParseError(GridError):
    """A grid file could not be parsed."""

    def __init__(self, message: str, source: str = '<stream>', line_num: Optional[int] = None):
        self.source = source
        self.line_num = line_num
        if line_num is not None:
            message = f"{source}:{line_num}: {message}"
        else:
            message = f"{source}: {message}"
        super().__init__(message)


class Grid:
    """Rectangular grid of float32 heights plus its header metadata."""

    def __init__(self, ncols: int, nrows: int, xllcorner: float = 0.0, yllcorner: float = 0.0,
                 cellsize: float = 1.0, nodata_value: int = -9999):
        if ncols < 1 or nrows < 1:
            raise ValueError(f"grid must have at least one row and column, got {nrows} x {ncols}")
        self.ncols = ncols
        self.nrows = nrows
        self.xllcorner = xllcorner
        self.yllcorner = yllcorner
        self.cellsize = cellsize
        self.nodata_value = nodata_value
        # Flat row-major buffer, cell (row, col) lives at row * ncols + col
        self._data = np.zeros(nrows * ncols, dtype=np.float32)
        self._min_height: Optional[float] = None
        self._max_height: Optional[float] = None

    @classmethod
    def from_array(cls, heights: np.ndarray, xllcorner: float = 0.0, yllcorner: float = 0.0,
                   cellsize: float = 1.0, nodata_value: int = -9999) -> 'Grid':
        """Build a grid from a 2-D array of heights, first row northernmost."""
        heights = np.asarray(heights, dtype=np.float32)
        if heights.ndim != 2:
            raise ValueError(f"expected a 2-D height array, got {heights.ndim}-D")
        nrows, ncols = heights.shape
        grid = cls(ncols, nrows, xllcorner, yllcorner, cellsize, nodata_value)
        grid._data[:] = heights.ravel()
        finite = grid._data[np.isfinite(grid._data)]
        if finite.size:
            grid._min_height = float(finite.min())
            grid._max_height = float(finite.max())
        return grid

    def __repr__(self) -> str:
        return (f"Grid(ncols={self.ncols}, nrows={self.nrows}, xllcorner={self.xllcorner}, "
                f"yllcorner={self.yllcorner}, cellsize={self.cellsize}, "
                f"nodata_value={self.nodata_value})")

    @property
    def shape(self) -> Tuple[int, int]:
        return self.nrows, self.ncols

    @property
    def has_samples(self) -> bool:
        """True once at least one finite height has been set."""
        return self._min_height is not None

    @property
    def min_height(self) -> float:
        """Smallest finite height set so far, 0.0 for an empty grid."""
        return 0.0 if self._min_height is None else self._min_height

    @property
    def max_height(self) -> float:
        """Largest finite height set so far, 0.0 for an empty grid."""
        return 0.0 if self._max_height is None else self._max_height

    @property
    def heights(self) -> np.ndarray:
        """Read-only (nrows, ncols) view of the height buffer."""
        view = self._data.reshape(self.nrows, self.ncols).view()
        view.flags.writeable = False
        return view

    def _in_range(self, row: int, col: int) -> bool:
        return 0 <= row < self.nrows and 0 <= col < self.ncols

    def height(self, row: int, col: int) -> float:
        """Height of cell (row, col)."""
        if not self._in_range(row, col):
            raise IndexError(f"cell ({row}, {col}) outside {self.nrows} x {self.ncols} grid")
        return float(self._data[row * self.ncols + col])

    def set_height(self, row: int, col: int, value: float) -> bool:
        """Set cell (row, col) and update the running min/max.

        Out of range cells are logged and ignored. Returns True if the value
        was stored.
        """
        if not self._in_range(row, col):
            logger.warning("set_height(%d, %d) - out of range for %d x %d grid",
                           row, col, self.nrows, self.ncols)
            return False

        idx = row * self.ncols + col
        self._data[idx] = value
        stored = float(self._data[idx])

        # NaN and infinities are stored but kept out of the running min/max
        if not math.isfinite(stored):
            return True
        if self._max_height is None or stored > self._max_height:
            self._max_height = stored
        if self._min_height is None or stored < self._min_height:
            self._min_height = stored
        return True

    def height_at_coordinate(self, x: float, y: float) -> Optional[float]:
        """Height of the cell containing map point (x, y), or None outside the grid."""
        if self.cellsize <= 0:
            return None
        col = math.floor((x - self.xllcorner) / self.cellsize)
        # Rows run north to south, the corner reference is the south edge
        row_from_south = math.floor((y - self.yllcorner) / self.cellsize)
        row = self.nrows - 1 - row_from_south
        if not self._in_range(row, col):
            return None
        return self.height(row, col)


def _normalize(line: str) -> str:
    """Trim a line and collapse internal whitespace runs to a single space."""
    return ' '.join(line.split())


def _read_header(lines: Iterator[str], source: str) -> dict:
    header = {}
    for line_num, (field_name, field_type) in enumerate(HEADER_FIELDS, start=1):
        try:
            raw = next(lines)
        except StopIteration:
            raise ParseError(f"unexpected end of file reading header field {field_name}",
                             source, line_num) from None

        line = _normalize(raw)
        logger.debug("%s: header line %d: %s", source, line_num, line)
        fields = line.split(' ')
        if fields[0] != field_name:
            logger.warning("%s:%d: expected %s, got %s", source, line_num, field_name, line)
        if len(fields) < 2:
            raise ParseError(f"header field {field_name} has no value", source, line_num)

        try:
            header[field_name] = field_type(fields[1])
        except ValueError:
            raise ParseError(f"bad {field_type.__name__} value for {field_name}: {fields[1]!r}",
                             source, line_num) from None
        logger.debug("%s: %s %s", source, field_name, header[field_name])

    for field_name in ('ncols', 'nrows'):
        if header[field_name] < 1:
            raise ParseError(f"{field_name} must be positive, got {header[field_name]}",
                             source, HEADER_FIELDS.index((field_name, int)) + 1)
    return header


def parse_grid(lines: Union[str, Iterable[str]], name: str = '<stream>') -> Grid:
    """Parse ESRI grid text from a string or an iterable of lines (a file object works)."""
    if isinstance(lines, str):
        lines = lines.splitlines()
    it = iter(lines)
    header = _read_header(it, name)

    grid = Grid(
        ncols=header['ncols'],
        nrows=header['nrows'],
        xllcorner=header['xllcorner'],
        yllcorner=header['yllcorner'],
        cellsize=header['cellsize'],
        nodata_value=header['NODATA_value'],
    )
    logger.info("%s: NODATA_value %d", name, grid.nodata_value)
    logger.info("%s: reading %d data lines", name, grid.nrows)

    lines_expected = grid.nrows + HEADER_LINES
    line_num = HEADER_LINES

    for row, raw in enumerate(it):
        line_num += 1
        if line_num > lines_expected:
            logger.warning("%s: too many lines - expected %d", name, lines_expected)
            break

        line = _normalize(raw)
        logger.debug("%s:%d: %s", name, line_num, line)
        numbers = line.split()

        if len(numbers) > grid.ncols:
            logger.warning("%s:%d: too many columns - got %d expected %d",
                           name, line_num, len(numbers), grid.ncols)
            continue
        if len(numbers) < grid.ncols:
            logger.warning("%s:%d: too few columns - got %d expected %d",
                           name, line_num, len(numbers), grid.ncols)
            continue

        for col, token in enumerate(numbers):
            try:
                value = float(token)
            except ValueError:
                raise ParseError(f"bad height {token!r} at row {row} column {col}",
                                 name, line_num) from None
            grid.set_height(row, col, value)

    if line_num < lines_expected:
        logger.warning("%s: too few lines - got %d expected %d", name, line_num, lines_expected)

    logger.debug("%s: min height %f max height %f", name, grid.min_height, grid.max_height)
    return grid


def read_grid(path: Union[str, Path]) -> Grid:
    """Read an ESRI grid file. OSError propagates if the file can't be opened.

    Undecodable bytes become U+FFFD, so a mangled header key only warns and a
    mangled number fails as a ParseError.
    """
    path = Path(path)
    logger.debug("read_grid: %s", path)
    with open(path, 'r', errors='replace') as f:
        return parse_grid(f, name=str(path))


def _format_number(value, precision: Optional[int] = None) -> str:
    if precision is not None:
        return f"{float(value):.{precision}f}"
    if not isinstance(value, np.floating):
        value = np.float64(value)
    # Shortest text that reads back to the same value, no trailing '.'
    return np.format_float_positional(value, trim='-')


def format_grid(grid: Grid, precision: Optional[int] = None) -> Iterator[str]:
    """Yield the lines of a grid in ESRI text format, newline terminated.

    Heights are written with `precision` decimals, or in their shortest exact
    form when precision is None.
    """
    yield f"ncols {grid.ncols}\n"
    yield f"nrows {grid.nrows}\n"
    yield f"xllcorner {_format_number(grid.xllcorner)}\n"
    yield f"yllcorner {_format_number(grid.yllcorner)}\n"
    yield f"cellsize {_format_number(grid.cellsize)}\n"
    yield f"NODATA_value {grid.nodata_value}\n"

    for row in grid.heights:
        yield ' '.join(_format_number(v, precision) for v in row) + '\n'


def write_grid(grid: Grid, out: Union[str, Path, TextIO], precision: Optional[int] = None) -> None:
    """Write a grid to a path or an open text stream."""
    if isinstance(out, (str, Path)):
        with open(out, 'w') as f:
            f.writelines(format_grid(grid, precision))
    else:
        out.writelines(format_grid(grid, precision))
