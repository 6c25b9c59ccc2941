from __future__ import annotations

from typing import Any, Dict

from fastapi import HTTPException, Request, UploadFile
from fastapi.responses import Response

from utils.errors import QRStarError
from utils.link_editor import EditorRegistry, EditorSession
from utils.logo_loader import logo_to_data_uri
from utils.qr_engine import ExportArtifact, ExportPipeline

# --------------------------------------------------------------------------- #
# 📦 JSON-Envelope {error, message}
# --------------------------------------------------------------------------- #

def ok(message: Any = None) -> Dict[str, Any]:
    return {"error": False, "message": message}


def fail(error: QRStarError) -> Dict[str, Any]:
    return {"error": True, "message": error.message}


# --------------------------------------------------------------------------- #
# 🧠 App-Zustand (Render-Baum, Editoren)
# --------------------------------------------------------------------------- #

def get_pipeline(request: Request) -> ExportPipeline:
    return request.app.state.pipeline


def get_editors(request: Request) -> EditorRegistry:
    return request.app.state.editors


def find_editor(editors: EditorRegistry, editor_id: str, token: str) -> EditorSession:
    session = editors.get(editor_id, token)
    if session is None:
        raise HTTPException(status_code=404, detail="Editor not found")
    return session


# --------------------------------------------------------------------------- #
# 📤 Datei-Upload und Download
# --------------------------------------------------------------------------- #

async def read_logo_upload(file: UploadFile) -> str:
    """Liest ein hochgeladenes Logo und gibt es als data-URI zurück."""
    raw = await file.read()
    return logo_to_data_uri(raw, file.content_type)


def artifact_response(artifact: ExportArtifact, download: bool = True) -> Response:
    headers = {"X-QR-Size": str(artifact.size_px)}
    if download:
        headers["Content-Disposition"] = f'attachment; filename="{artifact.filename}"'
    return Response(content=artifact.data, media_type=artifact.media_type, headers=headers)
