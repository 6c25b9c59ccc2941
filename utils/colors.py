"""Hex color helpers shared by the style model and the rendering engine."""

from __future__ import annotations

import re
from typing import Any, Tuple

HEX_PATTERN = re.compile(r"^#[0-9a-f]{6}$")
FALLBACK_HEX = "#000000"


def normalize_hex(value: Any) -> str:
    """
    Normalizes any input to '#rrggbb'.

    Trims, lower-cases, adds the leading '#', expands '#abc' shorthand and
    falls back to '#000000' for everything that is still not a valid color.
    Never raises and is idempotent.
    """
    if not isinstance(value, str):
        return FALLBACK_HEX
    s = value.strip().lower()
    if not s:
        return FALLBACK_HEX
    if not s.startswith("#"):
        s = f"#{s}"
    if len(s) == 4:
        s = "#" + "".join(ch * 2 for ch in s[1:])
    if not HEX_PATTERN.match(s):
        return FALLBACK_HEX
    return s


def hex_to_rgba(value: str, alpha: int = 255) -> Tuple[int, int, int, int]:
    """Converts a color to an RGBA tuple (normalizing first)."""
    raw = normalize_hex(value).lstrip("#")
    r, g, b = (int(raw[i:i + 2], 16) for i in (0, 2, 4))
    return (r, g, b, alpha)
