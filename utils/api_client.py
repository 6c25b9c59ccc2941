"""
utils/api_client.py
────────────────────────────────────────────
Asynchroner Client für das Link-/User-Backend.
Jede Antwort ist ein Envelope {error: bool, message: any}; Fehler
(error:true, Nicht-2xx, kaputtes JSON, Netzwerk) werden zu RemoteError.
Passwörter verlassen den Dienst nur gehasht.
────────────────────────────────────────────
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from auth_utils import hash_password_base64url
from config import BACKEND_TIMEOUT, BACKEND_URL
from models.link import Link, UserAccount
from utils.errors import RemoteError

logger = logging.getLogger(__name__)


def _error_message(message: Any, fallback: str) -> str:
    return message if isinstance(message, str) and message else fallback


class BackendClient:
    def __init__(self, http: httpx.AsyncClient) -> None:
        self.http = http

    @classmethod
    def create(cls, base_url: str = BACKEND_URL, **kwargs: Any) -> "BackendClient":
        return cls(httpx.AsyncClient(base_url=base_url, timeout=BACKEND_TIMEOUT, **kwargs))

    async def aclose(self) -> None:
        await self.http.aclose()

    # ---------------------------------------------------------------
    # 📡 Envelope
    # ---------------------------------------------------------------
    async def _request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[Dict[str, Any]] = None,
        fallback: str = "Request failed",
    ) -> Any:
        send_headers = dict(headers or {})
        if token is not None:
            send_headers["login"] = token
        if body is not None:
            # wie JSON.stringify: undefined-Felder fallen weg
            body = {k: v for k, v in body.items() if v is not None}

        try:
            response = await self.http.request(method, path, headers=send_headers, json=body)
        except httpx.HTTPError as e:
            logger.error(f"❌ Backend nicht erreichbar ({method} {path}): {e}")
            raise RemoteError(str(e) or "Network error") from e

        try:
            envelope = response.json()
        except ValueError as e:
            raise RemoteError(f"Invalid response from backend ({response.status_code})", response.status_code) from e

        if not isinstance(envelope, dict):
            raise RemoteError("Invalid response from backend", response.status_code)

        message = envelope.get("message")
        if envelope.get("error") or not response.is_success:
            logger.warning(f"⚠️ Backend-Fehler {method} {path}: {response.status_code}")
            raise RemoteError(_error_message(message, fallback), response.status_code)
        return message

    # ---------------------------------------------------------------
    # 👤 Benutzer
    # ---------------------------------------------------------------
    async def authenticate(self, username: str, password: str) -> str:
        message = await self._request(
            "GET",
            "/api/users/auth",
            headers={"username": username, "password": hash_password_base64url(password)},
            fallback="Login failed",
        )
        return str(message)

    async def get_current_user(self, token: str) -> UserAccount:
        message = await self._request("GET", "/api/users/me", token=token)
        return UserAccount.model_validate(message if isinstance(message, dict) else {})

    async def create_user(self, token: str, username: str, password: str, level: Optional[int] = None) -> Any:
        return await self._request(
            "POST",
            "/api/users/create",
            token=token,
            body={"username": username, "password": hash_password_base64url(password), "level": level},
            fallback="Failed to create user",
        )

    async def delete_user(self, token: str, username: str) -> Any:
        return await self._request(
            "POST", "/api/users/delete", token=token, body={"username": username}, fallback="Failed to delete user"
        )

    async def change_password(self, token: str, password: str, username: Optional[str] = None) -> Any:
        return await self._request(
            "POST",
            "/api/users/changepassword",
            token=token,
            body={"username": username, "password": hash_password_base64url(password)},
            fallback="Failed to change password",
        )

    # ---------------------------------------------------------------
    # 🔗 Links
    # ---------------------------------------------------------------
    async def create_link(
        self, token: str, content: str, qrinfo: Dict[str, Any], linkid: Optional[str] = None
    ) -> Any:
        return await self._request(
            "POST",
            "/api/links/create",
            token=token,
            body={"linkid": linkid, "content": content, "qrinfo": qrinfo},
            fallback="Failed to create link",
        )

    async def edit_link(
        self,
        token: str,
        linkid: str,
        content: Optional[str] = None,
        newlinkid: Optional[str] = None,
        qrinfo: Optional[Dict[str, Any]] = None,
    ) -> Any:
        return await self._request(
            "POST",
            "/api/links/edit",
            token=token,
            body={"linkid": linkid, "content": content, "newlinkid": newlinkid, "qrinfo": qrinfo},
            fallback="Failed to save",
        )

    async def delete_link(self, token: str, linkid: str) -> Any:
        return await self._request(
            "POST", "/api/links/delete", token=token, body={"linkid": linkid}, fallback="Failed to delete link"
        )

    async def list_links(self, token: str) -> List[Link]:
        message = await self._request("GET", "/api/links/list", token=token, fallback="Failed to load links")
        return _as_links(message)

    # ---------------------------------------------------------------
    # 🛡️ Site-Admin (Level 2)
    # ---------------------------------------------------------------
    async def admin_list_all_links(self, token: str) -> List[Link]:
        message = await self._request("GET", "/api/siteadmin/links/list", token=token, fallback="Failed to load links")
        return _as_links(message)

    async def admin_list_all_users(self, token: str) -> List[UserAccount]:
        message = await self._request("GET", "/api/siteadmin/users/list", token=token, fallback="Failed to load users")
        if not isinstance(message, list):
            raise RemoteError("Failed to load users")
        return [UserAccount.model_validate(u) for u in message if isinstance(u, dict)]


def _as_links(message: Any) -> List[Link]:
    if not isinstance(message, list):
        raise RemoteError("Failed to load links")
    return [Link.model_validate(item) for item in message if isinstance(item, dict) and "id" in item]
