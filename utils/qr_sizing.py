"""
utils/qr_sizing.py
────────────────────────────────────────────
Zwei unabhängige Größenbereiche:
- Vorschau (klein, interaktiv): 100–350 px
- Export (Druckqualität): 256–4000 px

Ein Wert aus dem einen Bereich wird nie in den anderen übernommen.
────────────────────────────────────────────
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class SizeDomain:
    name: str
    minimum: int
    maximum: int
    default: int

    def clamp(self, value: Any) -> int:
        try:
            size = int(round(float(value)))
        except (TypeError, ValueError, OverflowError):
            size = self.default
        return max(self.minimum, min(size, self.maximum))


PREVIEW_DOMAIN = SizeDomain("preview", minimum=100, maximum=350, default=300)
EXPORT_DOMAIN = SizeDomain("export", minimum=256, maximum=4000, default=1024)


@dataclass(frozen=True)
class SizingPolicy:
    preview: SizeDomain = PREVIEW_DOMAIN
    export: SizeDomain = EXPORT_DOMAIN

    def clamp_preview(self, value: Any) -> int:
        return self.preview.clamp(value)

    def clamp_export(self, value: Any) -> int:
        return self.export.clamp(value)


DEFAULT_SIZING = SizingPolicy()
