"""
utils/qr_engine.py
────────────────────────────────────────────
Zentrale QR-Engine für QR-Star.
- QRPreview: die sichtbare Live-Instanz (Vorschaugröße, max. 350 px)
- ExportPipeline: Export in png / svg / jpeg / webp
  - ohne Zielgröße → Bytes der Vorschau-Instanz
  - mit Zielgröße → eigene, losgelöste Render-Instanz, die nach dem
    Export immer wieder freigegeben wird
────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import base64
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from PIL import Image

from utils.errors import RenderFailure
from utils.logo_loader import load_logo
from utils.qr_config import EXPORT_MEDIA_TYPES
from utils.qr_generator import QRCanvas, QRStylingEngine
from utils.qr_resolver import ResolvedQRConfig
from utils.qr_sizing import DEFAULT_SIZING, SizingPolicy

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = tuple(EXPORT_MEDIA_TYPES)


class RenderEngine(Protocol):
    def paint(self, config: ResolvedQRConfig, logo: Optional[Image.Image] = None) -> QRCanvas: ...

    def encode(self, canvas: QRCanvas, fmt: str) -> bytes: ...


@dataclass(frozen=True)
class ExportArtifact:
    data: bytes
    format: str
    size_px: int

    @property
    def media_type(self) -> str:
        return EXPORT_MEDIA_TYPES[self.format]

    @property
    def filename(self) -> str:
        return f"qr.{self.format}"

    def as_data_url(self) -> str:
        return f"data:{self.media_type};base64,{base64.b64encode(self.data).decode('ascii')}"


# ---------------------------------------------------------------------------
# 🌳 Render-Baum ("Dokument"): welche Instanzen gerade eingehängt sind
# ---------------------------------------------------------------------------
class RenderTree:
    def __init__(self) -> None:
        self._attached: Dict[str, "QRRenderInstance"] = {}

    def attach(self, instance: "QRRenderInstance") -> None:
        self._attached[instance.instance_id] = instance

    def detach(self, instance: "QRRenderInstance") -> None:
        self._attached.pop(instance.instance_id, None)

    def __contains__(self, instance: object) -> bool:
        return getattr(instance, "instance_id", None) in self._attached

    def __len__(self) -> int:
        return len(self._attached)

    def offscreen_count(self) -> int:
        return sum(1 for inst in self._attached.values() if inst.offscreen)


class QRRenderInstance:
    """One rendering instance at a fixed configuration and size."""

    def __init__(self, config: ResolvedQRConfig, engine: RenderEngine, offscreen: bool = False) -> None:
        self.instance_id = uuid.uuid4().hex[:10]
        self.config = config
        self.offscreen = offscreen
        self._engine = engine
        self._canvas: Optional[QRCanvas] = None

    @property
    def size_px(self) -> int:
        return self.config.width

    @property
    def painted(self) -> bool:
        return self._canvas is not None

    async def paint(self) -> None:
        logo = None
        if self.config.logo is not None:
            logo = await load_logo(self.config.logo.source_uri)
        self._canvas = await asyncio.to_thread(self._engine.paint, self.config, logo)

    async def get_raw_data(self, fmt: str) -> bytes:
        if self._canvas is None:
            raise RenderFailure("QR code has not been rendered yet")
        return await asyncio.to_thread(self._engine.encode, self._canvas, fmt)

    def release(self) -> None:
        self._canvas = None


def _check_format(fmt: str) -> str:
    fmt = (fmt or "png").lower()
    if fmt not in SUPPORTED_FORMATS:
        raise RenderFailure(f"Unsupported export format: {fmt}")
    return fmt


class ExportPipeline:
    def __init__(
        self,
        tree: RenderTree,
        engine: Optional[RenderEngine] = None,
        sizing: SizingPolicy = DEFAULT_SIZING,
    ) -> None:
        self.tree = tree
        self.engine = engine or QRStylingEngine()
        self.sizing = sizing

    async def export(
        self,
        config: ResolvedQRConfig,
        fmt: str = "png",
        target_size_px: Optional[Any] = None,
        preview: Optional["QRPreview"] = None,
    ) -> ExportArtifact:
        fmt = _check_format(fmt)

        if target_size_px is None:
            if preview is None or preview.instance is None:
                raise RenderFailure("No rendered preview to export from")
            data = await preview.instance.get_raw_data(fmt)
            return ExportArtifact(data=data, format=fmt, size_px=preview.instance.size_px)

        size = self.sizing.clamp_export(target_size_px)
        instance = QRRenderInstance(config.with_size(size), self.engine, offscreen=True)
        self.tree.attach(instance)
        try:
            await instance.paint()
            data = await instance.get_raw_data(fmt)
        finally:
            self.tree.detach(instance)
            instance.release()

        logger.info(f"✅ QR exportiert: {fmt} @ {size}px ({len(data)} Bytes)")
        return ExportArtifact(data=data, format=fmt, size_px=size)


class QRPreview:
    """The visible live instance, always at the clamped preview size."""

    def __init__(self, pipeline: ExportPipeline) -> None:
        self.pipeline = pipeline
        self.instance: Optional[QRRenderInstance] = None

    @property
    def config(self) -> Optional[ResolvedQRConfig]:
        return self.instance.config if self.instance else None

    async def update(self, config: ResolvedQRConfig) -> None:
        size = self.pipeline.sizing.clamp_preview(config.width)
        instance = QRRenderInstance(config.with_size(size), self.pipeline.engine)
        await instance.paint()
        # erst nach erfolgreichem Malen austauschen
        self.detach()
        self.instance = instance
        self.pipeline.tree.attach(instance)

    async def export(self, fmt: str = "png", size_px: Optional[Any] = None) -> ExportArtifact:
        if self.instance is None:
            raise RenderFailure("No rendered preview to export from")
        return await self.pipeline.export(self.instance.config, fmt, size_px, preview=self)

    def detach(self) -> None:
        if self.instance is not None:
            self.pipeline.tree.detach(self.instance)
            self.instance.release()
            self.instance = None
