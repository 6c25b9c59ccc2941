# routes/admin.py
"""
Admin-Panel. Ob eine Aktion erlaubt ist, entscheidet das Backend; die
Stufe des Benutzers steuert hier nur die Anzeige.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from auth_utils import require_token, session_store
from backend import get_backend
from routes.utils import ok
from utils import admin_panel
from utils.api_client import BackendClient

router = APIRouter(prefix="/dashboard/admin", tags=["Admin"])


class CreateUserIn(BaseModel):
    username: str
    password: str
    level: Optional[int] = 0


class DeleteUserIn(BaseModel):
    username: str


class ChangePasswordIn(BaseModel):
    username: str
    password: str


async def current_username(request: Request, backend: BackendClient, token: str) -> str:
    """Name aus der Session; fehlt er, fragt das Backend."""
    username = session_store(request).username()
    if username:
        return username
    return (await backend.get_current_user(token)).username


# ─────────────────────────────────────────────
# 📊 Alle Links + alle Benutzer (parallel)
# ─────────────────────────────────────────────
@router.get("/overview")
async def overview(token: str = Depends(require_token), backend: BackendClient = Depends(get_backend)):
    result = await admin_panel.load_all(backend, token)
    # Teilfehler blockieren nicht: Daten + Fehlermeldung gemeinsam
    return ok(result.to_dict())


# ─────────────────────────────────────────────
# 👤 Benutzerverwaltung
# ─────────────────────────────────────────────
@router.post("/users/create")
async def create_user(
    payload: CreateUserIn,
    token: str = Depends(require_token),
    backend: BackendClient = Depends(get_backend),
):
    result = await admin_panel.create_user(backend, token, payload.username, payload.password, payload.level)
    return ok(result if result is not None else "User created")


@router.post("/users/delete")
async def delete_user(
    request: Request,
    payload: DeleteUserIn,
    token: str = Depends(require_token),
    backend: BackendClient = Depends(get_backend),
):
    current = await current_username(request, backend, token)
    result = await admin_panel.delete_user(backend, token, current, payload.username)
    return ok(result)


@router.post("/users/password")
async def change_password(
    request: Request,
    payload: ChangePasswordIn,
    token: str = Depends(require_token),
    backend: BackendClient = Depends(get_backend),
):
    current = await current_username(request, backend, token)
    result = await admin_panel.change_password(backend, token, current, payload.username, payload.password)
    return ok(result)
