import base64
from typing import List

import pytest

from models.qr_style import StyleDescriptor
from utils.errors import RenderFailure
from utils.qr_engine import ExportPipeline, QRPreview, RenderTree
from utils.qr_resolver import resolve_style

DATA = "https://go.example.com/engine"


class RecordingEngine:
    """Engine-Attrappe: merkt sich jede Größe und prüft den Render-Baum."""

    def __init__(self, tree: RenderTree, fail_on_size: int = 0) -> None:
        self.tree = tree
        self.fail_on_size = fail_on_size
        self.painted: List[int] = []
        self.attached_while_painting: List[int] = []

    def paint(self, config, logo=None):
        self.attached_while_painting.append(self.tree.offscreen_count())
        if config.width == self.fail_on_size:
            raise RenderFailure("engine cannot paint this size")
        self.painted.append(config.width)
        return config

    def encode(self, canvas, fmt):
        return f"{fmt}:{canvas.width}".encode()


@pytest.fixture
def tree():
    return RenderTree()


@pytest.fixture
def engine(tree):
    return RecordingEngine(tree)


@pytest.fixture
def pipeline(tree, engine):
    return ExportPipeline(tree, engine=engine)


def _config(size=320):
    return resolve_style(StyleDescriptor(preview_size_px=size), DATA)


@pytest.mark.asyncio
async def test_preview_at_320_export_at_4000(pipeline, engine, tree):
    preview = QRPreview(pipeline)
    await preview.update(_config(320))

    artifact = await preview.export("png", 4000)

    assert artifact.size_px == 4000
    assert artifact.data == b"png:4000"
    assert engine.painted == [320, 4000]
    # Vorschau bleibt unverändert und eingehängt
    assert preview.instance.size_px == 320
    assert preview.instance in tree
    assert len(tree) == 1


@pytest.mark.asyncio
async def test_export_without_size_reuses_preview(pipeline, engine):
    preview = QRPreview(pipeline)
    await preview.update(_config(5000))

    artifact = await preview.export("svg")

    assert artifact.size_px == 350
    assert artifact.data == b"svg:350"
    assert engine.painted == [350]


@pytest.mark.asyncio
async def test_detached_instance_is_attached_during_paint_and_released(pipeline, engine, tree):
    await pipeline.export(_config(), "png", 1024)
    assert engine.attached_while_painting == [1]
    assert tree.offscreen_count() == 0
    assert len(tree) == 0


@pytest.mark.asyncio
async def test_failed_export_does_not_leak_instance(tree):
    engine = RecordingEngine(tree, fail_on_size=2048)
    pipeline = ExportPipeline(tree, engine=engine)
    preview = QRPreview(pipeline)
    await preview.update(_config())

    with pytest.raises(RenderFailure):
        await preview.export("png", 2048)

    assert tree.offscreen_count() == 0
    assert len(tree) == 1
    assert preview.instance.painted


@pytest.mark.asyncio
async def test_unknown_format_is_rejected(pipeline, engine):
    with pytest.raises(RenderFailure):
        await pipeline.export(_config(), "bmp", 512)
    assert engine.painted == []


@pytest.mark.asyncio
async def test_export_size_is_clamped(pipeline):
    small = await pipeline.export(_config(), "png", 10)
    huge = await pipeline.export(_config(), "png", 99999)
    assert (small.size_px, huge.size_px) == (256, 4000)


@pytest.mark.asyncio
async def test_export_without_preview_fails(pipeline):
    with pytest.raises(RenderFailure):
        await pipeline.export(_config(), "png")


@pytest.mark.asyncio
async def test_artifact_data_url(pipeline):
    artifact = await pipeline.export(_config(), "jpeg", 512)
    url = artifact.as_data_url()
    assert url.startswith("data:image/jpeg;base64,")
    assert base64.b64decode(url.split(",", 1)[1]) == b"jpeg:512"
    assert artifact.filename == "qr.jpeg"


@pytest.mark.asyncio
async def test_real_engine_export_png(tree):
    pipeline = ExportPipeline(tree)
    preview = QRPreview(pipeline)
    await preview.update(_config(200))
    artifact = await preview.export("png", 512)
    assert artifact.data.startswith(b"\x89PNG")
    assert artifact.media_type == "image/png"
    preview.detach()
    assert len(tree) == 0
