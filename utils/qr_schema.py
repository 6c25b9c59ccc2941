# utils/qr_schema.py
"""
Versioniertes Schema für das `qrinfo`-Feld eines Links.
Fehlende oder ungültige Felder fallen auf die dokumentierten Standardwerte
zurück, statt die Validierung scheitern zu lassen.
"""

import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from models.qr_style import ErrorCorrection, InnerCornerShape, ModuleShape, OuterCornerShape
from utils.qr_config import QR_DEFAULT_STYLE

logger = logging.getLogger(__name__)

QRINFO_VERSION = 1


def _default_of(model: type, field_name: str) -> Any:
    field = model.model_fields[field_name]
    if field.default_factory is not None:
        return field.default_factory()
    return field.default


class ColorInfo(BaseModel):
    """Wire shape of a ColorSpec: solid `{mode, color}` or linear `{mode, color1, color2, rotation}`."""

    model_config = ConfigDict(extra="ignore")

    mode: str = "solid"
    color: Optional[str] = None
    color1: Optional[str] = None
    color2: Optional[str] = None
    rotation: Any = 0

    @field_validator("mode", mode="before")
    @classmethod
    def _known_mode(cls, v: Any) -> str:
        return v if v in ("solid", "linear") else "solid"

    @field_validator("color", "color1", "color2", mode="before")
    @classmethod
    def _color_string(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) and v.strip() else None

    @property
    def is_transparent(self) -> bool:
        return self.mode == "solid" and (self.color or "").strip().lower() == "transparent"


class QRInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    version: int = QRINFO_VERSION
    size: int = QR_DEFAULT_STYLE["size"]
    margin: int = QR_DEFAULT_STYLE["margin"]
    foreground: ColorInfo = Field(
        default_factory=lambda: ColorInfo(mode="solid", color=QR_DEFAULT_STYLE["fg"])
    )
    background: ColorInfo = Field(
        default_factory=lambda: ColorInfo(mode="solid", color=QR_DEFAULT_STYLE["bg"])
    )
    logo: Optional[str] = None
    logo_size: float = Field(QR_DEFAULT_STYLE["logo_size"], alias="logoSize")
    dots_type: ModuleShape = Field(ModuleShape(QR_DEFAULT_STYLE["module_style"]), alias="dotsType")
    corners_square_type: OuterCornerShape = Field(
        OuterCornerShape(QR_DEFAULT_STYLE["corner_square_style"]), alias="cornersSquareType"
    )
    corners_dot_type: InnerCornerShape = Field(
        InnerCornerShape(QR_DEFAULT_STYLE["corner_dot_style"]), alias="cornersDotType"
    )
    corners_square_color: Optional[str] = Field(None, alias="cornersSquareColor")
    corners_dot_color: Optional[str] = Field(None, alias="cornersDotColor")
    error_correction: ErrorCorrection = Field(
        ErrorCorrection(QR_DEFAULT_STYLE["error_correction"]), alias="errorCorrection"
    )

    # ---------------------------------------------------------------
    # 🔧 Tolerante Eingabe: ungültig → Standardwert
    # ---------------------------------------------------------------
    @field_validator("version", "size", "margin", mode="before")
    @classmethod
    def _int_or_default(cls, v: Any, info: ValidationInfo) -> int:
        try:
            return int(round(float(v)))
        except (TypeError, ValueError, OverflowError):
            return _default_of(cls, info.field_name)

    @field_validator("logo_size", mode="before")
    @classmethod
    def _float_or_default(cls, v: Any, info: ValidationInfo) -> float:
        try:
            return float(v)
        except (TypeError, ValueError):
            return _default_of(cls, info.field_name)

    @field_validator("foreground", "background", mode="before")
    @classmethod
    def _color_or_default(cls, v: Any, info: ValidationInfo) -> Any:
        return v if isinstance(v, (dict, ColorInfo)) else _default_of(cls, info.field_name)

    @field_validator("dots_type", "corners_square_type", "corners_dot_type", "error_correction", mode="before")
    @classmethod
    def _enum_or_default(cls, v: Any, info: ValidationInfo) -> Any:
        default = _default_of(cls, info.field_name)
        try:
            return type(default)(v)
        except ValueError:
            return default

    @field_validator("logo", "corners_square_color", "corners_dot_color", mode="before")
    @classmethod
    def _optional_string(cls, v: Any) -> Optional[str]:
        # leere Strings zählen wie "nicht gesetzt"
        return v if isinstance(v, str) and v.strip() else None


def parse_qrinfo(raw: Any) -> QRInfo:
    if not isinstance(raw, dict):
        raw = {}
    info = QRInfo.model_validate(raw)
    if info.version > QRINFO_VERSION:
        logger.warning(f"⚠️ Unbekannte qrinfo-Version {info.version} – lese best effort")
    return info
