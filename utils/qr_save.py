# utils/qr_save.py
# =============================================================================
# ✅ Einheitliche Speicherlogik für den QR-Stil eines Links
# - StyleDescriptor / Editor-Zustand → `qrinfo` (nur aufgelöste Felder)
# - `qrinfo` → vollständiger Editor-Zustand (verlustfreier Round-Trip)
# - Standardwerte für jedes fehlende Feld
# =============================================================================

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Mapping, Union

from models.qr_style import (
    DEFAULT_BACKGROUND_COLOR,
    DEFAULT_BACKGROUND_COLOR_END,
    DEFAULT_FOREGROUND_COLOR,
    DEFAULT_FOREGROUND_COLOR_END,
    INHERIT,
    TRANSPARENT,
    ColorSpec,
    Explicit,
    LinearGradient,
    Logo,
    SolidColor,
    StyleDescriptor,
    TransparentColor,
    normalize_rotation,
)
from utils.colors import normalize_hex
from utils.errors import ValidationError
from utils.logo_loader import validate_logo_source
from utils.qr_config import QR_DEFAULT_STYLE
from utils.qr_schema import QRINFO_VERSION, ColorInfo, parse_qrinfo
from utils.qr_sizing import DEFAULT_SIZING


# =============================================================================
# 🧾 Editor-Zustand (alle sichtbaren Schalter des Bearbeiten-Dialogs)
# =============================================================================
@dataclass
class EditorState:
    size: int = QR_DEFAULT_STYLE["size"]
    margin: int = QR_DEFAULT_STYLE["margin"]
    dots_type: str = QR_DEFAULT_STYLE["module_style"]
    corners_square_type: str = QR_DEFAULT_STYLE["corner_square_style"]
    corners_dot_type: str = QR_DEFAULT_STYLE["corner_dot_style"]
    error_correction: str = QR_DEFAULT_STYLE["error_correction"]

    fg_mode: str = "solid"
    fg_color: str = DEFAULT_FOREGROUND_COLOR
    fg_color2: str = DEFAULT_FOREGROUND_COLOR_END
    fg_angle: int = 0

    bg_transparent: bool = False
    bg_mode: str = "solid"
    bg_color: str = DEFAULT_BACKGROUND_COLOR
    bg_color2: str = DEFAULT_BACKGROUND_COLOR_END
    bg_angle: int = 0

    logo: str = ""
    logo_size: float = QR_DEFAULT_STYLE["logo_size"]

    # "Match foreground" = kein Override gespeichert
    cs_match_fg: bool = True
    cd_match_fg: bool = True
    corners_square_color: str = DEFAULT_FOREGROUND_COLOR
    corners_dot_color: str = DEFAULT_FOREGROUND_COLOR_END

    # ---------------------------------------------------------------
    # 🔁 Editor-Zustand ↔ StyleDescriptor
    # ---------------------------------------------------------------
    def to_descriptor(self) -> StyleDescriptor:
        try:
            return StyleDescriptor(
                preview_size_px=DEFAULT_SIZING.clamp_preview(self.size),
                margin_px=self.margin,
                foreground=_color_spec(self.fg_mode, self.fg_color, self.fg_color2, self.fg_angle),
                background=(
                    TRANSPARENT
                    if self.bg_transparent
                    else _color_spec(self.bg_mode, self.bg_color, self.bg_color2, self.bg_angle)
                ),
                logo=Logo(self.logo) if self.logo else None,
                logo_size_ratio=self.logo_size,
                module_shape=self.dots_type,
                outer_corner_shape=self.corners_square_type,
                inner_corner_shape=self.corners_dot_type,
                outer_corner_color=INHERIT if self.cs_match_fg else Explicit(self.corners_square_color),
                inner_corner_color=INHERIT if self.cd_match_fg else Explicit(self.corners_dot_color),
                error_correction=self.error_correction,
            )
        except (TypeError, ValueError, OverflowError) as e:
            raise ValidationError(f"Invalid QR style: {e}") from e

    @classmethod
    def from_descriptor(cls, descriptor: StyleDescriptor) -> "EditorState":
        state = cls(
            size=descriptor.preview_size_px,
            margin=descriptor.margin_px,
            dots_type=descriptor.module_shape.value,
            corners_square_type=descriptor.outer_corner_shape.value,
            corners_dot_type=descriptor.inner_corner_shape.value,
            error_correction=descriptor.error_correction.value,
            logo=descriptor.logo.source_uri if descriptor.logo else "",
            logo_size=descriptor.logo_size_ratio,
        )

        fg = descriptor.foreground
        if isinstance(fg, LinearGradient):
            state.fg_mode, state.fg_color, state.fg_color2, state.fg_angle = (
                "linear", fg.color_start, fg.color_end, fg.rotation_degrees,
            )
        else:
            state.fg_color = fg.color

        bg = descriptor.background
        if isinstance(bg, TransparentColor):
            state.bg_transparent = True
        elif isinstance(bg, LinearGradient):
            state.bg_mode, state.bg_color, state.bg_color2, state.bg_angle = (
                "linear", bg.color_start, bg.color_end, bg.rotation_degrees,
            )
        else:
            state.bg_color = bg.color

        if isinstance(descriptor.outer_corner_color, Explicit):
            state.cs_match_fg = False
            state.corners_square_color = descriptor.outer_corner_color.color
        if isinstance(descriptor.inner_corner_color, Explicit):
            state.cd_match_fg = False
            state.corners_dot_color = descriptor.inner_corner_color.color
        return state

    # ---------------------------------------------------------------
    # ✏️ Teil-Updates aus dem Editor
    # ---------------------------------------------------------------
    def apply(self, changes: Mapping[str, Any]) -> "EditorState":
        known = {f.name for f in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ValidationError(f"Unknown editor field(s): {', '.join(unknown)}")
        if changes.get("logo"):
            validate_logo_source(changes["logo"])
        updated = replace(self, **dict(changes))
        # validiert den neuen Zustand, bevor er übernommen wird
        descriptor = updated.to_descriptor()
        updated.size = descriptor.preview_size_px
        updated.margin = descriptor.margin_px
        updated.logo_size = descriptor.logo_size_ratio
        updated.fg_angle = normalize_rotation(updated.fg_angle)
        updated.bg_angle = normalize_rotation(updated.bg_angle)
        return updated

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _color_spec(mode: str, color: str, color2: str, angle: Any) -> ColorSpec:
    if mode == "linear":
        return LinearGradient(color, color2, angle)
    if mode != "solid":
        raise ValueError(f"unknown color mode '{mode}'")
    return SolidColor(color)


def _color_to_wire(spec: Union[ColorSpec, TransparentColor]) -> Dict[str, Any]:
    if isinstance(spec, LinearGradient):
        return {
            "mode": "linear",
            "color1": spec.color_start,
            "color2": spec.color_end,
            "rotation": spec.rotation_degrees,
        }
    return {"mode": "solid", "color": spec.color}


def _apply_color_info(state: EditorState, prefix: str, info: ColorInfo, default: str, default_end: str) -> None:
    if info.mode == "linear":
        setattr(state, f"{prefix}_mode", "linear")
        setattr(state, f"{prefix}_color", normalize_hex(info.color1 or default))
        setattr(state, f"{prefix}_color2", normalize_hex(info.color2 or default_end))
        setattr(state, f"{prefix}_angle", normalize_rotation(info.rotation))
    else:
        setattr(state, f"{prefix}_color", normalize_hex(info.color or default))


# =============================================================================
# 💾 SPEICHERN
# =============================================================================
def to_persisted(source: Union[StyleDescriptor, EditorState]) -> Dict[str, Any]:
    """
    Serializes a descriptor (or editor state) into the `qrinfo` wire shape.
    Inherited corner colors and an absent logo are omitted.
    """
    descriptor = source.to_descriptor() if isinstance(source, EditorState) else source

    payload: Dict[str, Any] = {
        "version": QRINFO_VERSION,
        "size": DEFAULT_SIZING.clamp_preview(descriptor.preview_size_px),
        "margin": descriptor.margin_px,
        "foreground": _color_to_wire(descriptor.foreground),
        "background": _color_to_wire(descriptor.background),
        "logoSize": descriptor.logo_size_ratio,
        "dotsType": descriptor.module_shape.value,
        "cornersSquareType": descriptor.outer_corner_shape.value,
        "cornersDotType": descriptor.inner_corner_shape.value,
        "errorCorrection": descriptor.error_correction.value,
    }
    if descriptor.logo is not None:
        payload["logo"] = descriptor.logo.source_uri
    if isinstance(descriptor.outer_corner_color, Explicit):
        payload["cornersSquareColor"] = descriptor.outer_corner_color.color
    if isinstance(descriptor.inner_corner_color, Explicit):
        payload["cornersDotColor"] = descriptor.inner_corner_color.color
    return payload


# =============================================================================
# 📂 LADEN
# =============================================================================
def from_persisted(raw: Any) -> EditorState:
    """Rebuilds every editor toggle from a stored `qrinfo` (missing fields → defaults)."""
    info = parse_qrinfo(raw)
    state = EditorState(
        size=DEFAULT_SIZING.clamp_preview(info.size),
        margin=info.margin,
        dots_type=info.dots_type.value,
        corners_square_type=info.corners_square_type.value,
        corners_dot_type=info.corners_dot_type.value,
        error_correction=info.error_correction.value,
        logo=info.logo or "",
        logo_size=info.logo_size,
    )
    # Werte wie im Descriptor begrenzen, damit der Round-Trip stabil bleibt
    normalized = state.to_descriptor()
    state.margin = normalized.margin_px
    state.logo_size = normalized.logo_size_ratio

    _apply_color_info(state, "fg", info.foreground, DEFAULT_FOREGROUND_COLOR, DEFAULT_FOREGROUND_COLOR_END)
    if info.background.is_transparent:
        state.bg_transparent = True
    else:
        _apply_color_info(state, "bg", info.background, DEFAULT_BACKGROUND_COLOR, DEFAULT_BACKGROUND_COLOR_END)

    state.cs_match_fg = info.corners_square_color is None
    state.cd_match_fg = info.corners_dot_color is None
    if info.corners_square_color is not None:
        state.corners_square_color = normalize_hex(info.corners_square_color)
    if info.corners_dot_color is not None:
        state.corners_dot_color = normalize_hex(info.corners_dot_color)
    return state


def descriptor_from_persisted(raw: Any) -> StyleDescriptor:
    return from_persisted(raw).to_descriptor()
