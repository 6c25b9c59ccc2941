# =============================================================================
# 🎨 models/qr_style.py
# -----------------------------------------------------------------------------
# Deklaratives Stilmodell eines QR-Codes: Farben (solid / linearer Verlauf /
# transparent), Modul- und Eckformen, Logo, Ränder und Fehlerkorrektur.
# Alle Objekte sind unveränderlich – Änderungen erzeugen neue Instanzen.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, ClassVar, Optional, Union

from utils.colors import normalize_hex


# ─────────────────────────────────────────────
# 🔠 Aufzählungen
# ─────────────────────────────────────────────
class ModuleShape(str, Enum):
    ROUNDED = "rounded"
    DOTS = "dots"
    CLASSY = "classy"
    CLASSY_ROUNDED = "classy-rounded"
    SQUARE = "square"
    EXTRA_ROUNDED = "extra-rounded"


class OuterCornerShape(str, Enum):
    DOT = "dot"
    SQUARE = "square"
    EXTRA_ROUNDED = "extra-rounded"


class InnerCornerShape(str, Enum):
    DOT = "dot"
    SQUARE = "square"


class ErrorCorrection(str, Enum):
    L = "L"
    M = "M"
    Q = "Q"
    H = "H"


# ─────────────────────────────────────────────
# 🌈 ColorSpec
# ─────────────────────────────────────────────
@dataclass(frozen=True)
class SolidColor:
    color: str
    mode: ClassVar[str] = "solid"

    def __post_init__(self) -> None:
        object.__setattr__(self, "color", normalize_hex(self.color))


@dataclass(frozen=True)
class LinearGradient:
    color_start: str
    color_end: str
    rotation_degrees: int = 0
    mode: ClassVar[str] = "linear"

    def __post_init__(self) -> None:
        object.__setattr__(self, "color_start", normalize_hex(self.color_start))
        object.__setattr__(self, "color_end", normalize_hex(self.color_end))
        object.__setattr__(self, "rotation_degrees", normalize_rotation(self.rotation_degrees))


@dataclass(frozen=True)
class TransparentColor:
    """Background-only sentinel; wins over any configured background."""

    mode: ClassVar[str] = "solid"
    color: ClassVar[str] = "transparent"


TRANSPARENT = TransparentColor()

ColorSpec = Union[SolidColor, LinearGradient]
BackgroundSpec = Union[SolidColor, LinearGradient, TransparentColor]


def normalize_rotation(value: Any) -> int:
    try:
        degrees = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return 0
    return degrees % 360


def clamp_number(value: Any, lo: float, hi: float) -> float:
    """Clamps into [lo, hi]; NaN lands on lo, infinities on the nearest bound."""
    number = float(value)
    if number != number:
        return lo
    return max(lo, min(number, hi))


# ─────────────────────────────────────────────
# 🎯 Override<T> = Inherited | Explicit(T)
# ─────────────────────────────────────────────
@dataclass(frozen=True)
class Inherited:
    """Corner color follows the foreground."""


INHERIT = Inherited()


@dataclass(frozen=True)
class Explicit:
    color: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "color", normalize_hex(self.color))


CornerColor = Union[Inherited, Explicit]


@dataclass(frozen=True)
class Logo:
    source_uri: str  # data-URI oder Remote-URL

    @property
    def is_data_uri(self) -> bool:
        return self.source_uri.startswith("data:")


# ─────────────────────────────────────────────
# 🧾 StyleDescriptor
# ─────────────────────────────────────────────
MARGIN_RANGE = (0, 32)
LOGO_SIZE_RANGE = (0.0, 0.5)

DEFAULT_FOREGROUND_COLOR = "#1f2937"
DEFAULT_FOREGROUND_COLOR_END = "#111827"
DEFAULT_BACKGROUND_COLOR = "#ffffff"
DEFAULT_BACKGROUND_COLOR_END = "#f3f4f6"


@dataclass(frozen=True)
class StyleDescriptor:
    preview_size_px: int = 300
    margin_px: int = 8
    foreground: ColorSpec = field(default_factory=lambda: SolidColor(DEFAULT_FOREGROUND_COLOR))
    background: BackgroundSpec = field(default_factory=lambda: SolidColor(DEFAULT_BACKGROUND_COLOR))
    logo: Optional[Logo] = None
    logo_size_ratio: float = 0.2
    module_shape: ModuleShape = ModuleShape.ROUNDED
    outer_corner_shape: OuterCornerShape = OuterCornerShape.SQUARE
    inner_corner_shape: InnerCornerShape = InnerCornerShape.DOT
    outer_corner_color: CornerColor = INHERIT
    inner_corner_color: CornerColor = INHERIT
    error_correction: ErrorCorrection = ErrorCorrection.Q

    def __post_init__(self) -> None:
        lo, hi = MARGIN_RANGE
        object.__setattr__(self, "margin_px", int(round(clamp_number(self.margin_px, lo, hi))))
        lo_f, hi_f = LOGO_SIZE_RANGE
        object.__setattr__(self, "logo_size_ratio", clamp_number(self.logo_size_ratio, lo_f, hi_f))
        object.__setattr__(self, "preview_size_px", int(self.preview_size_px))
        object.__setattr__(self, "module_shape", ModuleShape(self.module_shape))
        object.__setattr__(self, "outer_corner_shape", OuterCornerShape(self.outer_corner_shape))
        object.__setattr__(self, "inner_corner_shape", InnerCornerShape(self.inner_corner_shape))
        object.__setattr__(self, "error_correction", ErrorCorrection(self.error_correction))
        if isinstance(self.foreground, TransparentColor):
            raise ValueError("foreground cannot be transparent")

    def evolve(self, **changes: Any) -> "StyleDescriptor":
        return replace(self, **changes)
