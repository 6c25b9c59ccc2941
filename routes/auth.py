# routes/auth.py
import logging

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from auth_utils import current_token, require_token, session_store
from backend import get_backend
from routes.utils import get_editors, ok
from utils.api_client import BackendClient
from utils.errors import RemoteError, SessionExpired, ValidationError
from utils.link_editor import EditorRegistry

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────
# 🔐 Authentifizierungs-Router
# ─────────────────────────────────────────────
router = APIRouter(prefix="/auth", tags=["Authentication"])


class LoginIn(BaseModel):
    username: str
    password: str


# ─────────────────────────────────────────────
# 🔑 Login
# ─────────────────────────────────────────────
@router.post("/login")
async def login(request: Request, payload: LoginIn, backend: BackendClient = Depends(get_backend)):
    """Meldet beim Backend an und legt eine neue 24h-Session an."""
    if not payload.username.strip() or not payload.password:
        raise ValidationError("Username and password are required")

    token = await backend.authenticate(payload.username.strip(), payload.password)
    session = session_store(request).set_token(token, payload.username.strip())
    logger.info(f"✅ Login erfolgreich: {payload.username.strip()}")
    return ok({"expiresAt": session.expires_at})


# ─────────────────────────────────────────────
# 🚪 Logout
# ─────────────────────────────────────────────
@router.post("/logout")
async def logout(request: Request, editors: EditorRegistry = Depends(get_editors)):
    token = current_token(request)
    if token:
        editors.close_owner(token)
    session_store(request).clear()
    return ok("Logged out")


# ─────────────────────────────────────────────
# 👤 Aktueller Benutzer
# ─────────────────────────────────────────────
@router.get("/me")
async def me(token: str = Depends(require_token), backend: BackendClient = Depends(get_backend)):
    try:
        user = await backend.get_current_user(token)
    except RemoteError as e:
        # Backend kennt das Token nicht mehr → lokale Session verwerfen
        if e.status in (401, 403):
            raise SessionExpired() from e
        raise
    return ok(
        {
            "username": user.username,
            "level": user.level,
            "adminPanel": user.can_open_admin_panel,
            "siteAdmin": user.is_site_admin,
        }
    )
