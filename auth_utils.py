# auth_utils.py
import base64
import hashlib
import json
import logging
import time
from dataclasses import dataclass
from typing import Callable, MutableMapping, Optional

from fastapi import Request

from utils.errors import SessionExpired

logger = logging.getLogger(__name__)

SESSION_KEY = "qr_session_v1"
USERNAME_KEY = "qr_username"
SESSION_LIFETIME_MS = 24 * 60 * 60 * 1000


# ---------------------------------------------------------------------
# 🔐 Passwort-Hash
# ---------------------------------------------------------------------
def hash_password_base64url(password: str) -> str:
    """SHA-256 über die UTF-8-Bytes, als base64url ohne Padding."""
    digest = hashlib.sha256(password.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


# ---------------------------------------------------------------------
# 🎟️ Session-Token
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class Session:
    token: str
    expires_at: int  # epoch-ms

    def is_valid(self, now_ms: int) -> bool:
        return now_ms < self.expires_at


def _now_ms() -> int:
    return int(time.time() * 1000)


class SessionStore:
    """
    Hält genau eine Session unter `qr_session_v1` in einem Key-Value-Speicher
    (im Dienst: das signierte Session-Cookie). Ein abgelaufener oder nicht
    lesbarer Eintrag wird beim nächsten Lesen entfernt.
    """

    def __init__(self, storage: MutableMapping, clock: Callable[[], int] = _now_ms) -> None:
        self.storage = storage
        self.clock = clock

    def set_token(self, token: str, username: Optional[str] = None) -> Session:
        session = Session(token=token, expires_at=self.clock() + SESSION_LIFETIME_MS)
        self.storage[SESSION_KEY] = json.dumps({"token": session.token, "expiresAt": session.expires_at})
        # eine neue Anmeldung ersetzt die alte vollständig
        self.storage.pop(USERNAME_KEY, None)
        if username:
            self.storage[USERNAME_KEY] = username
        return session

    def read(self) -> Optional[Session]:
        raw = self.storage.get(SESSION_KEY)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
            session = Session(token=str(data["token"]), expires_at=int(data["expiresAt"]))
        except (TypeError, ValueError, KeyError):
            logger.warning("⚠️ Ungültige Session im Speicher – wird entfernt")
            self.clear()
            return None
        if not session.token or not session.is_valid(self.clock()):
            self.clear()
            return None
        return session

    def get_valid_token(self) -> Optional[str]:
        session = self.read()
        return session.token if session else None

    def username(self) -> Optional[str]:
        if self.read() is None:
            return None
        return self.storage.get(USERNAME_KEY)

    def clear(self) -> None:
        self.storage.pop(SESSION_KEY, None)
        self.storage.pop(USERNAME_KEY, None)


# ---------------------------------------------------------------------
# 👤 Aktuelles Token (aus Session)
# ---------------------------------------------------------------------
def session_store(request: Request) -> SessionStore:
    return SessionStore(request.session)


def current_token(request: Request) -> Optional[str]:
    return session_store(request).get_valid_token()


def require_session(request: Request) -> Session:
    """FastAPI-Dependency: gültige Session oder SessionExpired."""
    session = session_store(request).read()
    if session is None:
        raise SessionExpired()
    return session


def require_token(request: Request) -> str:
    """FastAPI-Dependency: gültiges Token oder SessionExpired."""
    return require_session(request).token
