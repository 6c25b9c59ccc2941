"""
utils/qr_config.py
────────────────────────────────────────────
Globale QR-Stilkonfiguration für QR-Star.

Definiert Standardwerte des Editors, Formen-Geometrie (Eckradien pro
Modulform) und die unterstützten Exportformate.
────────────────────────────────────────────
"""

from typing import Dict, Any, Tuple

from qrcode.constants import (
    ERROR_CORRECT_H,
    ERROR_CORRECT_L,
    ERROR_CORRECT_M,
    ERROR_CORRECT_Q,
)

from models.qr_style import (
    DEFAULT_BACKGROUND_COLOR,
    DEFAULT_FOREGROUND_COLOR,
    StyleDescriptor,
)

# ─────────────────────────────────────────────
# 🎨 STANDARDDESIGN (Editor-Reset)
# ─────────────────────────────────────────────
QR_DEFAULT_STYLE: Dict[str, Any] = {
    "size": 300,
    "margin": 8,
    "fg": DEFAULT_FOREGROUND_COLOR,
    "bg": DEFAULT_BACKGROUND_COLOR,
    "logo_size": 0.2,
    "module_style": "rounded",
    "corner_square_style": "square",
    "corner_dot_style": "dot",
    "error_correction": "Q",
}

# Größe, mit der ein neuer Link im Editor startet
NEW_LINK_PREVIEW_SIZE = 320

ERROR_CORRECTION_LEVELS: Dict[str, int] = {
    "L": ERROR_CORRECT_L,
    "M": ERROR_CORRECT_M,
    "Q": ERROR_CORRECT_Q,
    "H": ERROR_CORRECT_H,
}

# ─────────────────────────────────────────────
# 🔳 Formen-Geometrie
# ─────────────────────────────────────────────
# Eckradius (Anteil der Modulgröße) für (oben-links, oben-rechts,
# unten-rechts, unten-links). Gerundet wird nur eine freie Ecke, also eine,
# an deren beiden angrenzenden Seiten kein dunkles Nachbarmodul liegt.
MODULE_CORNER_RADII: Dict[str, Tuple[float, float, float, float]] = {
    "square": (0.0, 0.0, 0.0, 0.0),
    "rounded": (0.35, 0.35, 0.35, 0.35),
    "extra-rounded": (0.5, 0.5, 0.5, 0.5),
    "classy": (0.5, 0.0, 0.5, 0.0),
    "classy-rounded": (0.5, 0.25, 0.5, 0.25),
}

# Eckradius der 7×7 Finder-Rahmen bzw. 3×3 Finder-Punkte (Anteil der Kantenlänge)
CORNER_FRAME_RADIUS: Dict[str, float] = {
    "square": 0.0,
    "extra-rounded": 0.35,
    "dot": 0.5,
}

# ─────────────────────────────────────────────
# 📤 Exportformate
# ─────────────────────────────────────────────
EXPORT_MEDIA_TYPES: Dict[str, str] = {
    "png": "image/png",
    "svg": "image/svg+xml",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
}

PIL_FORMATS: Dict[str, str] = {
    "png": "PNG",
    "jpeg": "JPEG",
    "webp": "WEBP",
}


def default_descriptor(preview_size_px: int = QR_DEFAULT_STYLE["size"]) -> StyleDescriptor:
    """Descriptor used for new links and for 'reset appearance'."""
    return StyleDescriptor(preview_size_px=preview_size_px)
