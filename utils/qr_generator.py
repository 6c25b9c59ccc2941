# =============================================================================
# 🧠 QR-Code Generator – QR-Star Rendering-Engine
# -----------------------------------------------------------------------------
# Malt einen aufgelösten Stil (ResolvedQRConfig) als Raster (Pillow) oder als
# SVG-Pfade. Die Symbolkodierung übernimmt die qrcode-Bibliothek.
# =============================================================================

from __future__ import annotations

import base64
import logging
import math
from dataclasses import dataclass
from io import BytesIO
from typing import Iterator, List, Optional, Sequence, Tuple

import qrcode
from qrcode.exceptions import DataOverflowError
from PIL import Image, ImageDraw, ImageOps

from utils.colors import hex_to_rgba
from utils.errors import RenderFailure
from utils.qr_config import (
    CORNER_FRAME_RADIUS,
    ERROR_CORRECTION_LEVELS,
    MODULE_CORNER_RADII,
    PIL_FORMATS,
)
from utils.qr_resolver import Fill, GradientFill, ResolvedQRConfig

# ---------------------------------------------------------------------------
# ⚙️ Logging konfigurieren
# ---------------------------------------------------------------------------
logger = logging.getLogger(__name__)

FINDER_SIZE = 7
MAX_CANVAS_PX = 8192


@dataclass(frozen=True)
class QRLayout:
    count: int
    dot: int
    offset_x: int
    offset_y: int

    @property
    def qr_px(self) -> int:
        return self.count * self.dot

    def origin(self, row: int, col: int) -> Tuple[int, int]:
        return self.offset_x + col * self.dot, self.offset_y + row * self.dot


@dataclass
class QRCanvas:
    """A painted QR code: raster image plus everything needed for SVG."""

    config: ResolvedQRConfig
    matrix: List[List[bool]]
    layout: QRLayout
    image: Image.Image
    logo: Optional[Image.Image] = None


# ---------------------------------------------------------------------------
# 🧩 Matrix & Layout
# ---------------------------------------------------------------------------
def build_matrix(data: str, level: str) -> List[List[bool]]:
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECTION_LEVELS[level],
        box_size=1,
        border=0,
    )
    qr.add_data(data)
    try:
        qr.make(fit=True)
    except DataOverflowError as exc:
        raise RenderFailure("QR content is too long for a QR code") from exc
    return [[bool(cell) for cell in row] for row in qr.get_matrix()]


def compute_layout(count: int, width: int, height: int, margin: int) -> QRLayout:
    usable = min(width, height) - 2 * margin
    dot = usable // count if usable > 0 else 0
    if dot < 1:
        raise RenderFailure(f"{width}px is too small for a {count}x{count} QR code")
    qr_px = dot * count
    return QRLayout(
        count=count,
        dot=dot,
        offset_x=(width - qr_px) // 2,
        offset_y=(height - qr_px) // 2,
    )


def finder_origins(count: int) -> Tuple[Tuple[int, int], ...]:
    edge = count - FINDER_SIZE
    return ((0, 0), (0, edge), (edge, 0))


def in_finder(row: int, col: int, count: int) -> bool:
    edge = count - FINDER_SIZE
    return (row < FINDER_SIZE and (col < FINDER_SIZE or col >= edge)) or (
        row >= edge and col < FINDER_SIZE
    )


def body_modules(matrix: List[List[bool]]) -> Iterator[Tuple[int, int]]:
    count = len(matrix)
    for r, row in enumerate(matrix):
        for c, cell in enumerate(row):
            if cell and not in_finder(r, c, count):
                yield r, c


def module_radii(shape: str, matrix: List[List[bool]], row: int, col: int) -> Tuple[float, ...]:
    """Corner radii (fraction of a module) for one module, neighbor aware."""
    count = len(matrix)

    def dark(r: int, c: int) -> bool:
        return 0 <= r < count and 0 <= c < count and matrix[r][c] and not in_finder(r, c, count)

    top, right = dark(row - 1, col), dark(row, col + 1)
    bottom, left = dark(row + 1, col), dark(row, col - 1)
    free = (
        not top and not left,
        not top and not right,
        not bottom and not right,
        not bottom and not left,
    )
    base = MODULE_CORNER_RADII.get(shape, MODULE_CORNER_RADII["square"])
    return tuple(radius if is_free else 0.0 for radius, is_free in zip(base, free))


def gradient_line(size: Tuple[int, int], rotation_degrees: int) -> Tuple[float, float, float, float]:
    """Start/end point of a linear gradient spanning the whole canvas."""
    width, height = size
    theta = math.radians(rotation_degrees)
    cos, sin = math.cos(theta), math.sin(theta)
    half = (abs(width * cos) + abs(height * sin)) / 2
    cx, cy = width / 2, height / 2
    return (cx - cos * half, cy - sin * half, cx + cos * half, cy + sin * half)


# ---------------------------------------------------------------------------
# 🖌️ Raster
# ---------------------------------------------------------------------------
def _linear_gradient(fill: GradientFill, size: Tuple[int, int]) -> Image.Image:
    width, height = size
    theta = math.radians(fill.rotation_degrees)
    cos, sin = abs(math.cos(theta)), abs(math.sin(theta))
    span = max(1, int(math.ceil(max(width * cos + height * sin, width * sin + height * cos))))

    # 0 links → 255 rechts, dann um die Rotation im Uhrzeigersinn drehen
    ramp = Image.linear_gradient("L").rotate(90).resize((span, span), Image.Resampling.BILINEAR)
    if fill.rotation_degrees:
        ramp = ramp.rotate(-fill.rotation_degrees, resample=Image.Resampling.BICUBIC)
    left, top = (span - width) // 2, (span - height) // 2
    ramp = ramp.crop((left, top, left + width, top + height))

    start = Image.new("RGBA", size, hex_to_rgba(fill.start))
    end = Image.new("RGBA", size, hex_to_rgba(fill.end))
    return Image.composite(end, start, ramp)


def _fill_layer(fill: Fill, size: Tuple[int, int]) -> Image.Image:
    if isinstance(fill, GradientFill):
        return _linear_gradient(fill, size)
    return Image.new("RGBA", size, hex_to_rgba(fill.color))


def _paint_module(draw: ImageDraw.ImageDraw, box: Tuple[int, int, int, int], radii: Sequence[int]) -> None:
    x0, y0, x1, y1 = box
    draw.rectangle(box, fill=255)
    tl, tr, br, bl = radii
    if tl:
        draw.rectangle((x0, y0, x0 + tl - 1, y0 + tl - 1), fill=0)
        draw.pieslice((x0, y0, x0 + 2 * tl - 1, y0 + 2 * tl - 1), 180, 270, fill=255)
    if tr:
        draw.rectangle((x1 - tr + 1, y0, x1, y0 + tr - 1), fill=0)
        draw.pieslice((x1 - 2 * tr + 1, y0, x1, y0 + 2 * tr - 1), 270, 360, fill=255)
    if br:
        draw.rectangle((x1 - br + 1, y1 - br + 1, x1, y1), fill=0)
        draw.pieslice((x1 - 2 * br + 1, y1 - 2 * br + 1, x1, y1), 0, 90, fill=255)
    if bl:
        draw.rectangle((x0, y1 - bl + 1, x0 + bl - 1, y1), fill=0)
        draw.pieslice((x0, y1 - 2 * bl + 1, x0 + 2 * bl - 1, y1), 90, 180, fill=255)


def _paint_frame_shape(draw: ImageDraw.ImageDraw, box: Tuple[int, int, int, int], radius: float, fill: int) -> None:
    side = box[2] - box[0] + 1
    if radius >= 0.5:
        draw.ellipse(box, fill=fill)
    elif radius > 0:
        draw.rounded_rectangle(box, radius=int(round(side * radius)), fill=fill)
    else:
        draw.rectangle(box, fill=fill)


def _dots_mask(config: ResolvedQRConfig, matrix: List[List[bool]], layout: QRLayout) -> Image.Image:
    mask = Image.new("L", (config.width, config.height), 0)
    draw = ImageDraw.Draw(mask)
    shape = config.dots.shape.value
    d = layout.dot
    for row, col in body_modules(matrix):
        x, y = layout.origin(row, col)
        box = (x, y, x + d - 1, y + d - 1)
        if shape == "dots":
            draw.ellipse(box, fill=255)
            continue
        radii = [min(int(round(f * d)), d // 2) for f in module_radii(shape, matrix, row, col)]
        _paint_module(draw, box, radii)
    return mask


def _finder_masks(config: ResolvedQRConfig, layout: QRLayout) -> Tuple[Image.Image, Image.Image]:
    size = (config.width, config.height)
    frames = Image.new("L", size, 0)
    dots = Image.new("L", size, 0)
    frame_draw, dot_draw = ImageDraw.Draw(frames), ImageDraw.Draw(dots)
    frame_radius = CORNER_FRAME_RADIUS[config.corners_square.shape]
    dot_radius = CORNER_FRAME_RADIUS[config.corners_dot.shape]
    d = layout.dot
    for row, col in finder_origins(layout.count):
        x, y = layout.origin(row, col)
        _paint_frame_shape(frame_draw, (x, y, x + 7 * d - 1, y + 7 * d - 1), frame_radius, 255)
        _paint_frame_shape(frame_draw, (x + d, y + d, x + 6 * d - 1, y + 6 * d - 1), frame_radius, 0)
        _paint_frame_shape(dot_draw, (x + 2 * d, y + 2 * d, x + 5 * d - 1, y + 5 * d - 1), dot_radius, 255)
    return frames, dots


def _fit_logo(logo: Image.Image, layout: QRLayout, ratio: float) -> Optional[Image.Image]:
    box = int(layout.qr_px * ratio)
    if box < 1:
        return None
    return ImageOps.contain(logo.convert("RGBA"), (box, box), Image.Resampling.LANCZOS)


def paint_canvas(config: ResolvedQRConfig, logo: Optional[Image.Image] = None) -> QRCanvas:
    """
    Malt den QR-Code vollständig auf eine RGBA-Leinwand.
    Hintergrund → Module → Finder-Rahmen → Finder-Punkte → Logo.
    """
    width, height = config.width, config.height
    if not (1 <= width <= MAX_CANVAS_PX and 1 <= height <= MAX_CANVAS_PX):
        raise RenderFailure(f"Unsupported canvas size: {width}x{height}")

    matrix = build_matrix(config.data, config.error_correction.value)
    layout = compute_layout(len(matrix), width, height, config.margin)
    size = (width, height)

    try:
        if config.background.transparent:
            image = Image.new("RGBA", size, (0, 0, 0, 0))
        else:
            image = _fill_layer(config.background.fill, size)

        image = Image.composite(_fill_layer(config.dots.fill, size), image, _dots_mask(config, matrix, layout))

        frames, dots = _finder_masks(config, layout)
        image = Image.composite(Image.new("RGBA", size, hex_to_rgba(config.corners_square.color)), image, frames)
        image = Image.composite(Image.new("RGBA", size, hex_to_rgba(config.corners_dot.color)), image, dots)

        if logo is not None and config.logo is not None:
            fitted = _fit_logo(logo, layout, config.logo.size_ratio)
            if fitted is not None:
                pos = ((width - fitted.width) // 2, (height - fitted.height) // 2)
                image.alpha_composite(fitted, dest=pos)
    except (OSError, ValueError, MemoryError) as exc:
        raise RenderFailure(f"Rendering failed: {exc}") from exc

    logger.debug(f"🖌️ QR gemalt: {width}px, {layout.count} Module à {layout.dot}px")
    return QRCanvas(config=config, matrix=matrix, layout=layout, image=image, logo=logo)


# ---------------------------------------------------------------------------
# 🧾 SVG
# ---------------------------------------------------------------------------
def _n(value: float) -> str:
    return f"{round(value, 2):g}"


def _rounded_rect_path(x: float, y: float, w: float, h: float, radii: Sequence[float]) -> str:
    tl, tr, br, bl = radii
    d = [f"M{_n(x + tl)} {_n(y)}", f"H{_n(x + w - tr)}"]
    if tr:
        d.append(f"A{_n(tr)} {_n(tr)} 0 0 1 {_n(x + w)} {_n(y + tr)}")
    d.append(f"V{_n(y + h - br)}")
    if br:
        d.append(f"A{_n(br)} {_n(br)} 0 0 1 {_n(x + w - br)} {_n(y + h)}")
    d.append(f"H{_n(x + bl)}")
    if bl:
        d.append(f"A{_n(bl)} {_n(bl)} 0 0 1 {_n(x)} {_n(y + h - bl)}")
    d.append(f"V{_n(y + tl)}")
    if tl:
        d.append(f"A{_n(tl)} {_n(tl)} 0 0 1 {_n(x + tl)} {_n(y)}")
    d.append("Z")
    return "".join(d)


def _frame_path(x: float, y: float, side: float, radius: float) -> str:
    r = side * min(radius, 0.5)
    return _rounded_rect_path(x, y, side, side, (r, r, r, r))


def _svg_paint(fill: Fill, gradient_id: str, size: Tuple[int, int], defs: List[str]) -> str:
    if isinstance(fill, GradientFill):
        x1, y1, x2, y2 = gradient_line(size, fill.rotation_degrees)
        stops = "".join(
            f'<stop offset="{_n(offset)}" stop-color="{color}"/>' for offset, color in fill.stops
        )
        defs.append(
            f'<linearGradient id="{gradient_id}" gradientUnits="userSpaceOnUse" '
            f'x1="{_n(x1)}" y1="{_n(y1)}" x2="{_n(x2)}" y2="{_n(y2)}">{stops}</linearGradient>'
        )
        return f"url(#{gradient_id})"
    return fill.color


def _svg_logo(canvas: QRCanvas) -> str:
    if canvas.logo is None or canvas.config.logo is None:
        return ""
    fitted = _fit_logo(canvas.logo, canvas.layout, canvas.config.logo.size_ratio)
    if fitted is None:
        return ""
    buffer = BytesIO()
    fitted.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    x = (canvas.config.width - fitted.width) // 2
    y = (canvas.config.height - fitted.height) // 2
    return (
        f'<image x="{x}" y="{y}" width="{fitted.width}" height="{fitted.height}" '
        f'xlink:href="data:image/png;base64,{encoded}"/>'
    )


def render_svg(canvas: QRCanvas) -> str:
    config, layout = canvas.config, canvas.layout
    width, height = config.width, config.height
    size = (width, height)
    d = layout.dot

    defs: List[str] = []
    background = None
    if not config.background.transparent:
        background = _svg_paint(config.background.fill, "background-gradient", size, defs)
    dots_paint = _svg_paint(config.dots.fill, "dots-gradient", size, defs)

    shape = config.dots.shape.value
    body: List[str] = []
    for row, col in body_modules(canvas.matrix):
        x, y = layout.origin(row, col)
        if shape == "dots":
            body.append(_rounded_rect_path(x, y, d, d, (d / 2,) * 4))
        else:
            radii = [min(f * d, d / 2) for f in module_radii(shape, canvas.matrix, row, col)]
            body.append(_rounded_rect_path(x, y, d, d, radii))

    frame_radius = CORNER_FRAME_RADIUS[config.corners_square.shape]
    dot_radius = CORNER_FRAME_RADIUS[config.corners_dot.shape]
    frames: List[str] = []
    dots: List[str] = []
    for row, col in finder_origins(layout.count):
        x, y = layout.origin(row, col)
        frames.append(_frame_path(x, y, 7 * d, frame_radius))
        frames.append(_frame_path(x + d, y + d, 5 * d, frame_radius))
        dots.append(_frame_path(x + 2 * d, y + 2 * d, 3 * d, dot_radius))

    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink" '
        f'width="{width}" height="{height}" viewBox="0 0 {width} {height}">'
    ]
    if defs:
        parts.append("<defs>" + "".join(defs) + "</defs>")
    if background:
        parts.append(f'<rect x="0" y="0" width="{width}" height="{height}" fill="{background}"/>')
    parts.append(f'<path fill="{dots_paint}" d="{"".join(body)}"/>')
    parts.append(f'<path fill="{config.corners_square.color}" fill-rule="evenodd" d="{"".join(frames)}"/>')
    parts.append(f'<path fill="{config.corners_dot.color}" d="{"".join(dots)}"/>')
    parts.append(_svg_logo(canvas))
    parts.append("</svg>")
    return "".join(parts)


# ---------------------------------------------------------------------------
# 📦 Kodierung
# ---------------------------------------------------------------------------
def encode_canvas(canvas: QRCanvas, fmt: str) -> bytes:
    """Encodes a painted canvas as png / jpeg / webp / svg."""
    fmt = fmt.lower()
    if fmt == "svg":
        return render_svg(canvas).encode("utf-8")

    pil_format = PIL_FORMATS.get(fmt)
    if pil_format is None:
        raise RenderFailure(f"Unsupported export format: {fmt}")

    image = canvas.image
    if fmt == "jpeg":
        # JPEG kennt keinen Alphakanal → auf Weiß legen
        flat = Image.new("RGB", image.size, (255, 255, 255))
        flat.paste(image, mask=image.getchannel("A"))
        image = flat

    buffer = BytesIO()
    try:
        image.save(buffer, format=pil_format)
    except (OSError, KeyError, ValueError) as exc:
        raise RenderFailure(f"Could not encode {fmt}: {exc}") from exc

    if buffer.getbuffer().nbytes == 0:
        raise RenderFailure(f"Encoder produced no {fmt} data")
    return buffer.getvalue()


class QRStylingEngine:
    """Default rendering engine used by preview and export instances."""

    def paint(self, config: ResolvedQRConfig, logo: Optional[Image.Image] = None) -> QRCanvas:
        return paint_canvas(config, logo)

    def encode(self, canvas: QRCanvas, fmt: str) -> bytes:
        return encode_canvas(canvas, fmt)
