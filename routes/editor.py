# routes/editor.py
"""
QR-Editor: Dialoge "Link erstellen" und "Link bearbeiten".
Jeder Dialog ist eine eigene Sitzung (editor_id); Speichern verwendet
ausschließlich den Zustand dieser Sitzung.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from pydantic import BaseModel

from auth_utils import Session, require_session, require_token
from backend import get_backend
from routes.utils import artifact_response, find_editor, get_editors, ok, read_logo_upload
from utils.api_client import BackendClient
from utils.link_editor import EditorRegistry, require_link_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard/editor", tags=["QR Editor"])


class OpenEditorIn(BaseModel):
    linkid: Optional[str] = None  # leer = neuer Link


# ─────────────────────────────────────────────
# 📂 Öffnen
# ─────────────────────────────────────────────
@router.post("/open")
async def open_editor(
    payload: OpenEditorIn,
    login: Session = Depends(require_session),
    backend: BackendClient = Depends(get_backend),
    editors: EditorRegistry = Depends(get_editors),
):
    link = None
    if payload.linkid:
        link_id = require_link_id(payload.linkid)
        links = await backend.list_links(login.token)
        link = next((item for item in links if item.id == link_id), None)
        if link is None:
            raise HTTPException(status_code=404, detail="Link not found")

    session = await editors.open(login.token, link, owner_expires_at=login.expires_at)
    logger.info(f"📝 Editor geöffnet: {session.editor_id}")
    return ok(session.to_dict())


# ─────────────────────────────────────────────
# ✏️ Ändern / Zurücksetzen / Logo
# ─────────────────────────────────────────────
@router.patch("/{editor_id}")
async def update_editor(
    editor_id: str,
    changes: Dict[str, Any],
    token: str = Depends(require_token),
    editors: EditorRegistry = Depends(get_editors),
):
    session = find_editor(editors, editor_id, token)
    await session.update(changes)
    return ok(session.to_dict())


@router.post("/{editor_id}/reset")
async def reset_editor(
    editor_id: str,
    token: str = Depends(require_token),
    editors: EditorRegistry = Depends(get_editors),
):
    session = find_editor(editors, editor_id, token)
    await session.reset_appearance()
    return ok(session.to_dict())


@router.post("/{editor_id}/logo")
async def upload_logo(
    editor_id: str,
    file: UploadFile = File(...),
    token: str = Depends(require_token),
    editors: EditorRegistry = Depends(get_editors),
):
    session = find_editor(editors, editor_id, token)
    await session.set_logo(await read_logo_upload(file))
    return ok(session.to_dict())


# ─────────────────────────────────────────────
# 🖼️ Vorschau & Export
# ─────────────────────────────────────────────
@router.get("/{editor_id}/preview")
async def preview(
    editor_id: str,
    format: str = Query("png"),
    token: str = Depends(require_token),
    editors: EditorRegistry = Depends(get_editors),
):
    session = find_editor(editors, editor_id, token)
    artifact = await session.export(format)
    return artifact_response(artifact, download=False)


@router.get("/{editor_id}/export")
async def export(
    editor_id: str,
    format: str = Query("png"),
    size: Optional[int] = Query(None),
    as_data_url: bool = Query(False),
    token: str = Depends(require_token),
    editors: EditorRegistry = Depends(get_editors),
):
    session = find_editor(editors, editor_id, token)
    artifact = await session.export(format, size if size is not None else session.export_size)
    if as_data_url:
        return ok({"dataUrl": artifact.as_data_url(), "size": artifact.size_px, "format": artifact.format})
    return artifact_response(artifact)


# ─────────────────────────────────────────────
# 💾 Speichern / Schließen
# ─────────────────────────────────────────────
@router.post("/{editor_id}/save")
async def save(
    editor_id: str,
    token: str = Depends(require_token),
    backend: BackendClient = Depends(get_backend),
    editors: EditorRegistry = Depends(get_editors),
):
    session = find_editor(editors, editor_id, token)
    result = await session.save(backend, token)
    editors.close(editor_id, token)
    return ok(result)


@router.delete("/{editor_id}")
async def close(
    editor_id: str,
    token: str = Depends(require_token),
    editors: EditorRegistry = Depends(get_editors),
):
    if not editors.close(editor_id, token):
        raise HTTPException(status_code=404, detail="Editor not found")
    return ok("Closed")
