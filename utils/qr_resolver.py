"""
utils/qr_resolver.py
────────────────────────────────────────────
Turns a StyleDescriptor (plus optional partial overrides) into a fully
resolved rendering configuration. Nothing is cached: the corner color
cascade is recomputed on every call, so foreground changes reach every
corner that is not explicitly overridden.
────────────────────────────────────────────
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Tuple, Union

from models.qr_style import (
    BackgroundSpec,
    ColorSpec,
    CornerColor,
    ErrorCorrection,
    Explicit,
    InnerCornerShape,
    LinearGradient,
    ModuleShape,
    OuterCornerShape,
    SolidColor,
    StyleDescriptor,
    TransparentColor,
)
from utils.qr_sizing import DEFAULT_SIZING, SizingPolicy


# ---------------------------------------------------------------------------
# 🧩 Aufgelöste Bausteine
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class SolidFill:
    color: str


@dataclass(frozen=True)
class GradientFill:
    rotation_degrees: int
    stops: Tuple[Tuple[float, str], ...]

    @property
    def start(self) -> str:
        return self.stops[0][1]

    @property
    def end(self) -> str:
        return self.stops[-1][1]


Fill = Union[SolidFill, GradientFill]


@dataclass(frozen=True)
class DotsOptions:
    shape: ModuleShape
    fill: Fill


@dataclass(frozen=True)
class CornerOptions:
    shape: str
    color: str


@dataclass(frozen=True)
class BackgroundOptions:
    fill: Optional[Fill]  # None = transparent

    @property
    def transparent(self) -> bool:
        return self.fill is None


@dataclass(frozen=True)
class LogoOptions:
    source_uri: str
    size_ratio: float
    anonymous: bool = True  # remote logos are fetched without credentials


@dataclass(frozen=True)
class ResolvedQRConfig:
    data: str
    width: int
    height: int
    margin: int
    error_correction: ErrorCorrection
    dots: DotsOptions
    corners_square: CornerOptions
    corners_dot: CornerOptions
    background: BackgroundOptions
    logo: Optional[LogoOptions]
    primary_foreground_color: str
    secondary_foreground_color: str

    def with_size(self, size_px: int) -> "ResolvedQRConfig":
        """Same configuration, width/height substituted (export instances)."""
        return replace(self, width=size_px, height=size_px)


# ---------------------------------------------------------------------------
# 🎨 Farb-Kaskade
# ---------------------------------------------------------------------------
def primary_foreground_color(fg: ColorSpec) -> str:
    return fg.color if isinstance(fg, SolidColor) else fg.color_start


def secondary_foreground_color(fg: ColorSpec) -> str:
    return fg.color if isinstance(fg, SolidColor) else fg.color_end


def resolve_corner_color(override: CornerColor, inherited: str) -> str:
    if isinstance(override, Explicit):
        return override.color
    return inherited


def build_fill(spec: ColorSpec) -> Fill:
    if isinstance(spec, LinearGradient):
        return GradientFill(
            rotation_degrees=spec.rotation_degrees,
            stops=((0.0, spec.color_start), (1.0, spec.color_end)),
        )
    return SolidFill(color=spec.color)


def build_background(spec: BackgroundSpec) -> BackgroundOptions:
    # Transparenz gewinnt immer, egal welcher Modus gesetzt ist
    if isinstance(spec, TransparentColor):
        return BackgroundOptions(fill=None)
    return BackgroundOptions(fill=build_fill(spec))


# ---------------------------------------------------------------------------
# 🧠 Hauptfunktion
# ---------------------------------------------------------------------------
def resolve_style(
    descriptor: StyleDescriptor,
    data: str,
    overrides: Optional[Mapping[str, Any]] = None,
    sizing: SizingPolicy = DEFAULT_SIZING,
) -> ResolvedQRConfig:
    """
    Resolves a descriptor for the payload `data`.

    `overrides` may name any StyleDescriptor field; they are applied before
    resolution. Width/height come from the clamped preview size.
    """
    if overrides:
        descriptor = descriptor.evolve(**dict(overrides))

    primary = primary_foreground_color(descriptor.foreground)
    secondary = secondary_foreground_color(descriptor.foreground)
    size = sizing.clamp_preview(descriptor.preview_size_px)

    logo = None
    if descriptor.logo is not None and descriptor.logo.source_uri:
        logo = LogoOptions(
            source_uri=descriptor.logo.source_uri,
            size_ratio=descriptor.logo_size_ratio,
        )

    return ResolvedQRConfig(
        data=data,
        width=size,
        height=size,
        margin=descriptor.margin_px,
        error_correction=descriptor.error_correction,
        dots=DotsOptions(shape=descriptor.module_shape, fill=build_fill(descriptor.foreground)),
        corners_square=CornerOptions(
            shape=OuterCornerShape(descriptor.outer_corner_shape).value,
            color=resolve_corner_color(descriptor.outer_corner_color, primary),
        ),
        corners_dot=CornerOptions(
            shape=InnerCornerShape(descriptor.inner_corner_shape).value,
            color=resolve_corner_color(descriptor.inner_corner_color, secondary),
        ),
        background=build_background(descriptor.background),
        logo=logo,
        primary_foreground_color=primary,
        secondary_foreground_color=secondary,
    )
