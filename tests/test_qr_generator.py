from io import BytesIO

import pytest
from PIL import Image

from models.qr_style import TRANSPARENT, LinearGradient, ModuleShape, StyleDescriptor
from utils.errors import RenderFailure
from utils.qr_generator import (
    build_matrix,
    compute_layout,
    encode_canvas,
    module_radii,
    paint_canvas,
)
from utils.qr_resolver import resolve_style

DATA = "https://go.example.com/test"


def _config(**fields):
    return resolve_style(StyleDescriptor(**fields), DATA)


def test_qr_generator_creates_png():
    canvas = paint_canvas(_config())
    data = encode_canvas(canvas, "png")
    image = Image.open(BytesIO(data))
    assert image.format == "PNG"
    assert image.size == (300, 300)


@pytest.mark.parametrize("shape", [s.value for s in ModuleShape])
def test_every_module_shape_renders(shape):
    canvas = paint_canvas(_config(module_shape=shape, preview_size_px=150))
    assert canvas.image.size == (150, 150)


def test_background_and_foreground_colors_are_painted():
    canvas = paint_canvas(_config(margin_px=10))
    # Rand = Hintergrund, linke obere Ecke des Finder-Rahmens = Eckfarbe
    assert canvas.image.getpixel((2, 2)) == (255, 255, 255, 255)
    x, y = canvas.layout.origin(0, 0)
    assert canvas.image.getpixel((x + 1, y + canvas.layout.dot * 3)) == (31, 41, 55, 255)


def test_transparent_background_keeps_alpha():
    canvas = paint_canvas(_config(background=TRANSPARENT))
    assert canvas.image.getpixel((1, 1))[3] == 0


def test_jpeg_is_flattened_onto_white():
    canvas = paint_canvas(_config(background=TRANSPARENT))
    image = Image.open(BytesIO(encode_canvas(canvas, "jpeg")))
    assert image.format == "JPEG"
    assert image.mode == "RGB"


def test_webp_export():
    canvas = paint_canvas(_config())
    assert Image.open(BytesIO(encode_canvas(canvas, "webp"))).format == "WEBP"


def test_svg_contains_gradient_and_paths():
    canvas = paint_canvas(_config(foreground=LinearGradient("#ff0000", "#0000ff", 90)))
    svg = encode_canvas(canvas, "svg").decode("utf-8")
    assert svg.startswith("<svg")
    assert "<linearGradient" in svg
    assert 'stop-color="#ff0000"' in svg
    assert 'fill-rule="evenodd"' in svg


def test_unknown_format_fails():
    canvas = paint_canvas(_config())
    with pytest.raises(RenderFailure):
        encode_canvas(canvas, "gif")


def test_too_small_canvas_fails():
    with pytest.raises(RenderFailure):
        compute_layout(count=57, width=100, height=100, margin=32)


def test_data_overflow_fails():
    with pytest.raises(RenderFailure):
        build_matrix("x" * 5000, "H")


def test_isolated_module_is_fully_rounded():
    matrix = [[False] * 21 for _ in range(21)]
    matrix[10][10] = True
    assert module_radii("rounded", matrix, 10, 10) == (0.35, 0.35, 0.35, 0.35)
    matrix[10][11] = True
    tl, tr, br, bl = module_radii("rounded", matrix, 10, 10)
    assert tr == 0.0 and br == 0.0
    assert tl == 0.35 and bl == 0.35
