# =============================================================================
# 🚀 QR-Star Dashboard – Hauptapplikation (main.py)
# =============================================================================

from __future__ import annotations

import logging
from typing import Dict, List

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from auth_utils import SESSION_LIFETIME_MS, current_token, session_store
from config import (
    LOG_LEVEL,
    SESSION_COOKIE_NAME,
    SESSION_HTTPS_ONLY,
    SESSION_SAME_SITE,
    SESSION_SECRET,
)
from routes.utils import fail
from utils.errors import QRStarError, SessionExpired
from utils.link_editor import EditorRegistry
from utils.qr_engine import ExportPipeline, RenderTree

# -------------------------------------------------------------------------
# 1️⃣ Logging
# -------------------------------------------------------------------------
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("qr_star")

# -------------------------------------------------------------------------
# 2️⃣ FastAPI App
# -------------------------------------------------------------------------
app = FastAPI(title="QR-Star", version="1.0")

# Render-Baum + Editor-Sitzungen leben für die Laufzeit des Prozesses
app.state.render_tree = RenderTree()
app.state.pipeline = ExportPipeline(app.state.render_tree)
app.state.editors = EditorRegistry(app.state.pipeline)

# -------------------------------------------------------------------------
# 3️⃣ Session Middleware
# -------------------------------------------------------------------------
app.add_middleware(
    SessionMiddleware,
    secret_key=SESSION_SECRET,
    max_age=SESSION_LIFETIME_MS // 1000,
    session_cookie=SESSION_COOKIE_NAME,
    same_site=SESSION_SAME_SITE,
    https_only=SESSION_HTTPS_ONLY,
)

# -------------------------------------------------------------------------
# 4️⃣ Fehlerbehandlung → JSON-Envelope
# -------------------------------------------------------------------------
@app.exception_handler(SessionExpired)
async def session_expired_handler(request: Request, exc: SessionExpired) -> JSONResponse:
    token = current_token(request)
    if token:
        request.app.state.editors.close_owner(token)
    session_store(request).clear()
    body = fail(exc)
    body["redirect"] = "/auth/login"
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(QRStarError)
async def qr_star_error_handler(request: Request, exc: QRStarError) -> JSONResponse:
    logger.warning(f"⚠️ {type(exc).__name__}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=fail(exc))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": True, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# -------------------------------------------------------------------------
# 5️⃣ Routen laden
# -------------------------------------------------------------------------
from routes import admin, auth, editor, links  # noqa: E402

app.include_router(auth.router)
app.include_router(links.router)
app.include_router(editor.router)
app.include_router(admin.router)


# -------------------------------------------------------------------------
# 6️⃣ Health / Debug
# -------------------------------------------------------------------------
@app.get("/health")
def health() -> Dict[str, object]:
    return {
        "status": "ok",
        "editors": len(app.state.editors),
        "attached_instances": len(app.state.render_tree),
    }


@app.get("/debug/routes")
def debug_routes() -> List[Dict[str, str]]:
    return [{"path": r.path, "name": r.name} for r in app.routes]
