"""
utils/admin_panel.py
────────────────────────────────────────────
Admin-Panel: Benutzerverwaltung und Site-Admin-Listen.
- Beide Listen werden parallel geladen; schlägt eine fehl, wird die andere
  trotzdem angezeigt und der erste Fehler gemeldet.
- Eigener Account: kein Löschen, kein Passwort-Reset über das Panel.
────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from models.link import Link, UserAccount
from utils.api_client import BackendClient
from utils.errors import PartialListFailure, QRStarError, ValidationError

logger = logging.getLogger(__name__)

SELF_DELETE_MESSAGE = "You cannot delete your own user."
SELF_PASSWORD_MESSAGE = "You cannot change your own password here. Use your account settings."


@dataclass
class AdminOverview:
    links: List[Link] = field(default_factory=list)
    users: List[UserAccount] = field(default_factory=list)
    error: Optional[PartialListFailure] = None

    def to_dict(self) -> dict:
        return {
            "links": [link.model_dump(by_alias=True) for link in self.links],
            "users": [user.model_dump() for user in self.users],
            "error": self.error.message if self.error else None,
            "failed": list(self.error.failed) if self.error else [],
        }


def _message(result: BaseException, fallback: str) -> str:
    if isinstance(result, QRStarError):
        return result.message
    return str(result) or fallback


async def load_all(backend: BackendClient, token: str) -> AdminOverview:
    links_result, users_result = await asyncio.gather(
        backend.admin_list_all_links(token),
        backend.admin_list_all_users(token),
        return_exceptions=True,
    )

    overview = AdminOverview()
    errors: List[str] = []
    failed: List[str] = []

    # Reihenfolge: Links vor Benutzern, der erste Fehler gewinnt
    if isinstance(links_result, BaseException):
        if not isinstance(links_result, Exception):
            raise links_result
        errors.append(_message(links_result, "Failed to load links"))
        failed.append("links")
    else:
        overview.links = links_result

    if isinstance(users_result, BaseException):
        if not isinstance(users_result, Exception):
            raise users_result
        errors.append(_message(users_result, "Failed to load users"))
        failed.append("users")
    else:
        overview.users = users_result

    if errors:
        logger.warning(f"⚠️ Admin-Listen teilweise nicht geladen: {', '.join(failed)}")
        overview.error = PartialListFailure(errors[0], tuple(failed))
    return overview


async def create_user(
    backend: BackendClient, token: str, username: str, password: str, level: Optional[int] = 0
) -> Any:
    username = (username or "").strip()
    if not username or not password:
        raise ValidationError("Username and password are required")
    result = await backend.create_user(token, username, password, level)
    logger.info(f"👤 Benutzer angelegt: {username}")
    return result


async def delete_user(backend: BackendClient, token: str, current_username: str, username: str) -> Any:
    if not username:
        raise ValidationError("Username is required")
    if username == current_username:
        raise ValidationError(SELF_DELETE_MESSAGE)
    result = await backend.delete_user(token, username)
    logger.info(f"🗑️ Benutzer gelöscht: {username}")
    return result


async def change_password(
    backend: BackendClient, token: str, current_username: str, username: str, password: str
) -> Any:
    if not username or not password:
        raise ValidationError("Username and password are required")
    if username == current_username:
        raise ValidationError(SELF_PASSWORD_MESSAGE)
    result = await backend.change_password(token, password, username=username)
    logger.info(f"🔑 Passwort geändert für: {username}")
    return result
