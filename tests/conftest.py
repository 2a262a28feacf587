import pytest


EXAMPLE_HEADER = """ncols 4
nrows 4
xllcorner    513000
yllcorner    152000
cellsize     1
NODATA_value -9999
"""

EXAMPLE_GRID = EXAMPLE_HEADER + """500 500 500 500
500 500 500 500
1000 1000 1000 1000
1000 1000 1000 1000
"""


@pytest.fixture
def example_header():
    return EXAMPLE_HEADER


@pytest.fixture
def example_text():
    return EXAMPLE_GRID


@pytest.fixture
def example_file(tmp_path):
    path = tmp_path / 'example.asc'
    path.write_text(EXAMPLE_GRID)
    return path
