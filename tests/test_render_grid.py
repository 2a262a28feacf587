import numpy as np
import pytest
from PIL import Image

from gridtiler.esri_grid import Grid, parse_grid, read_grid
from gridtiler.render_grid import (
    EDGE_MARGIN,
    GridRenderer,
    RenderError,
    main,
    render_grid,
    resolve_bounds,
    save_png,
)
from gridtiler.shading import ShadeTracker


def test_resolve_bounds_from_grid(example_file):
    grid = read_grid(example_file)
    floor, ceiling = resolve_bounds(grid)

    assert floor == pytest.approx(500 - EDGE_MARGIN)
    assert ceiling == pytest.approx(1000 + EDGE_MARGIN)


def test_resolve_bounds_overrides(example_file):
    grid = read_grid(example_file)

    assert resolve_bounds(grid, floor=0) == (0, pytest.approx(1000.1))
    assert resolve_bounds(grid, ceiling=2000) == (pytest.approx(499.9), 2000)
    assert resolve_bounds(grid, 100, 200) == (100, 200)


@pytest.mark.parametrize('floor, ceiling', [(500, 500), (1000, 0), (2000, None)])
def test_resolve_bounds_rejects_inverted(example_file, floor, ceiling):
    grid = read_grid(example_file)
    with pytest.raises(RenderError):
        resolve_bounds(grid, floor, ceiling)


def test_render_example(example_file):
    grid = read_grid(example_file)
    tracker = ShadeTracker()

    pixels = render_grid(grid, tracker=tracker)

    assert pixels.shape == (4, 4)
    assert pixels.dtype == np.uint8
    # Northern rows (first in the file) are low, so white, and at the top
    np.testing.assert_array_equal(pixels[:2], np.full((2, 4), 255))
    np.testing.assert_array_equal(pixels[2:], np.zeros((2, 4)))
    assert tracker.min_shade == 0
    assert tracker.max_shade == 255


def test_render_explicit_bounds(example_file):
    grid = read_grid(example_file)
    pixels = render_grid(grid, floor=0, ceiling=1000)

    assert pixels[0].tolist() == [127] * 4
    assert pixels[3].tolist() == [0] * 4


def test_render_flip(example_file):
    grid = read_grid(example_file)

    np.testing.assert_array_equal(render_grid(grid, flip=True), render_grid(grid)[::-1])


def test_render_non_square():
    grid = Grid.from_array([[0, 1, 2], [3, 4, 5]])
    pixels = render_grid(grid, floor=0, ceiling=5)

    assert pixels.shape == (2, 3)
    assert pixels[0, 0] == 255
    assert pixels[1, 2] == 0


def test_save_png(tmp_path):
    pixels = np.array([[0, 64, 128], [192, 255, 10]], dtype=np.uint8)
    path = tmp_path / 'out.png'

    save_png(pixels, path)

    with Image.open(path) as img:
        assert img.format == 'PNG'
        assert img.mode == 'L'
        assert img.size == (3, 2)
        np.testing.assert_array_equal(np.array(img), pixels)


def test_save_png_rejects_rgb(tmp_path):
    with pytest.raises(ValueError):
        save_png(np.zeros((2, 2, 3), dtype=np.uint8), tmp_path / 'out.png')


def test_grid_renderer(example_file, tmp_path):
    output = tmp_path / 'nested' / 'example.png'
    summary = GridRenderer(example_file, output).run()

    assert output.exists()
    assert (summary.nrows, summary.ncols) == (4, 4)
    assert summary.min_height == 500
    assert summary.max_height == 1000
    assert summary.min_shade == 0
    assert summary.max_shade == 255


def test_main(example_file, tmp_path):
    output = tmp_path / 'example.png'

    assert main(['-i', str(example_file), '-o', str(output), '-f', '0', '-c', '1000']) == 0

    with Image.open(output) as img:
        assert img.size == (4, 4)
        assert np.array(img)[0].tolist() == [127] * 4


def test_main_missing_input(tmp_path):
    output = tmp_path / 'out.png'
    assert main(['--input', str(tmp_path / 'missing.asc'), '--output', str(output)]) == 1
    assert not output.exists()


def test_main_parse_error_writes_nothing(example_header, tmp_path):
    source = tmp_path / 'bad.asc'
    source.write_text(example_header + "500 500 x 500\n")
    output = tmp_path / 'out.png'

    assert main(['-i', str(source), '-o', str(output)]) == 1
    assert not output.exists()


def test_main_bad_bounds(example_file, tmp_path):
    output = tmp_path / 'out.png'
    assert main(['-i', str(example_file), '-o', str(output), '--floor', '10', '--ceiling', '10']) == 1
    assert not output.exists()


def test_main_requires_paths():
    with pytest.raises(SystemExit):
        main([])


def test_render_grid_with_nan_cell(example_header):
    grid = parse_grid(example_header + "nan 1 1 1\n2 2 2 2\n3 3 3 3\n4 4 4 4\n")

    assert resolve_bounds(grid) == (pytest.approx(0.9), pytest.approx(4.1))
    pixels = render_grid(grid, floor=0, ceiling=4)
    assert pixels[0, 0] == 255
    assert pixels[3, 3] == 0
    assert render_grid(grid).shape == (4, 4)
