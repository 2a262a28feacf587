import numpy as np
from PIL import Image

from gridtiler.render_grid import GridRenderer, render_grid, save_png
from gridtiler.esri_grid import read_grid
from gridtiler.validate_output import RenderValidator, main


def test_valid_render(example_file, tmp_path):
    image = tmp_path / 'example.png'
    GridRenderer(example_file, image).run()

    validator = RenderValidator(example_file, image)
    assert validator.validate()
    assert validator.errors == []


def test_flat_image_warns(tmp_path):
    source = tmp_path / 'flat.asc'
    source.write_text("ncols 2\nnrows 2\nxllcorner 0\nyllcorner 0\ncellsize 1\n"
                      "NODATA_value -9999\n5 5\n5 5\n")
    image = tmp_path / 'flat.png'
    GridRenderer(source, image).run()

    validator = RenderValidator(source, image)
    assert validator.validate()
    assert any('single shade' in w for w in validator.warnings)


def test_tampered_pixels(example_file, tmp_path):
    pixels = render_grid(read_grid(example_file))
    pixels[1, 1] = 3
    image = tmp_path / 'tampered.png'
    save_png(pixels, image)

    validator = RenderValidator(example_file, image)
    assert not validator.validate()
    assert any('1 of 16 pixels' in e for e in validator.errors)


def test_flipped_render_needs_flip(example_file, tmp_path):
    image = tmp_path / 'flipped.png'
    GridRenderer(example_file, image, flip=True).run()

    assert not RenderValidator(example_file, image).validate()
    assert RenderValidator(example_file, image, flip=True).validate()


def test_wrong_size(example_file, tmp_path):
    image = tmp_path / 'small.png'
    save_png(np.zeros((2, 4), dtype=np.uint8), image)

    validator = RenderValidator(example_file, image)
    assert not validator.validate()
    assert any('expected 4 x 4' in e for e in validator.errors)


def test_wrong_mode(example_file, tmp_path):
    image = tmp_path / 'rgb.png'
    Image.new('RGB', (4, 4)).save(image)

    validator = RenderValidator(example_file, image)
    assert not validator.validate()
    assert any("expected 8-bit grayscale" in e for e in validator.errors)


def test_missing_image(example_file, tmp_path):
    validator = RenderValidator(example_file, tmp_path / 'missing.png')
    assert not validator.validate()


def test_main(example_file, tmp_path):
    image = tmp_path / 'example.png'
    GridRenderer(example_file, image, floor=0, ceiling=1000).run()

    assert main(['--grid', str(example_file), '--image', str(image),
                 '--floor', '0', '--ceiling', '1000']) == 0
    assert main(['--grid', str(example_file), '--image', str(image)]) == 1
    assert main(['--grid', str(tmp_path / 'missing.asc'), '--image', str(image)]) == 1


def test_report_lists_errors(example_file, tmp_path, capsys):
    image = tmp_path / 'small.png'
    save_png(np.zeros((2, 4), dtype=np.uint8), image)

    RenderValidator(example_file, image).validate()

    out = capsys.readouterr().out
    assert 'gridtiler output validator' in out
    assert 'Passed 3/5' in out
    assert '[X] Image is 4 x 2, expected 4 x 4' in out
