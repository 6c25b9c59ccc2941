# routes/links.py
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from auth_utils import require_token
from backend import get_backend
from routes.utils import artifact_response, get_pipeline, ok
from utils.api_client import BackendClient
from utils.link_editor import require_link_id
from utils.link_validation import short_url, validate_content_url, validate_link_id
from utils.qr_config import default_descriptor
from utils.qr_engine import ExportPipeline, QRPreview
from utils.qr_resolver import resolve_style
from utils.qr_save import descriptor_from_persisted, to_persisted
from utils.qr_sizing import EXPORT_DOMAIN

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard/links", tags=["Links"])


class CreateLinkIn(BaseModel):
    content: str
    linkid: Optional[str] = None
    qrinfo: Optional[Dict[str, Any]] = None


class DeleteLinkIn(BaseModel):
    linkid: str


# ─────────────────────────────────────────────
# 📋 Eigene Links
# ─────────────────────────────────────────────
@router.get("")
async def list_links(token: str = Depends(require_token), backend: BackendClient = Depends(get_backend)):
    links = await backend.list_links(token)
    return ok(
        [
            {**link.model_dump(by_alias=True), "shortUrl": short_url(link.id)}
            for link in links
        ]
    )


# ─────────────────────────────────────────────
# ➕ Link erstellen (ohne Editor)
# ─────────────────────────────────────────────
@router.post("/create")
async def create_link(
    payload: CreateLinkIn,
    token: str = Depends(require_token),
    backend: BackendClient = Depends(get_backend),
):
    linkid = validate_link_id(payload.linkid)
    content = validate_content_url(payload.content)
    # gespeichert wird immer die normalisierte Form
    descriptor = descriptor_from_persisted(payload.qrinfo) if payload.qrinfo else default_descriptor()
    result = await backend.create_link(token, content, to_persisted(descriptor), linkid=linkid)
    logger.info("✅ Link erstellt")
    return ok(result)


# ─────────────────────────────────────────────
# 🗑️ Link löschen
# ─────────────────────────────────────────────
@router.post("/delete")
async def delete_link(
    payload: DeleteLinkIn,
    token: str = Depends(require_token),
    backend: BackendClient = Depends(get_backend),
):
    linkid = require_link_id(payload.linkid)
    result = await backend.delete_link(token, linkid)
    logger.info(f"🗑️ Link gelöscht: {linkid}")
    return ok(result)


# ─────────────────────────────────────────────
# 🖼️ QR-Code eines gespeicherten Links exportieren
# ─────────────────────────────────────────────
@router.get("/{link_id}/qr")
async def export_link_qr(
    link_id: str,
    format: str = Query("png"),
    size: int = Query(EXPORT_DOMAIN.default),
    token: str = Depends(require_token),
    backend: BackendClient = Depends(get_backend),
    pipeline: ExportPipeline = Depends(get_pipeline),
):
    link_id = require_link_id(link_id)
    links = await backend.list_links(token)
    link = next((item for item in links if item.id == link_id), None)
    if link is None:
        raise HTTPException(status_code=404, detail="Link not found")

    config = resolve_style(descriptor_from_persisted(link.qrinfo or {}), short_url(link.id))
    preview = QRPreview(pipeline)
    try:
        await preview.update(config)
        artifact = await preview.export(format, size)
    finally:
        preview.detach()
    return artifact_response(artifact)
