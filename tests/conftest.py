import json
import os
import sys
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from auth_utils import hash_password_base64url  # noqa: E402
from backend import get_backend  # noqa: E402
from main import app  # noqa: E402
from utils.api_client import BackendClient  # noqa: E402

BACKEND = "http://backend.test"


class FakeBackend:
    """In-Memory-Backend hinter httpx.MockTransport (Envelope {error, message})."""

    def __init__(self) -> None:
        self.users: Dict[str, Dict[str, Any]] = {
            "admin": {"password": hash_password_base64url("secret"), "level": 2},
            "alice": {"password": hash_password_base64url("wonderland"), "level": 0},
        }
        self.tokens: Dict[str, str] = {}
        self.links: List[Dict[str, Any]] = []
        self.requests: List[httpx.Request] = []
        self.failures: Dict[str, Tuple[int, Any]] = {}
        self._counter = 0

    # ---------------------------------------------------------------
    # 🔧 Test-Hilfen
    # ---------------------------------------------------------------
    def fail(self, path: str, message: Any = "Backend exploded", status: int = 500) -> None:
        self.failures[path] = (status, message)

    def login(self, username: str = "admin") -> str:
        self._counter += 1
        token = f"token-{username}-{self._counter}"
        self.tokens[token] = username
        return token

    def add_link(self, link_id: str, content: str = "https://example.com", qrinfo: Optional[dict] = None) -> dict:
        link = {
            "id": link_id,
            "content": content,
            "qrinfo": qrinfo,
            "clicks": 0,
            "createdAt": "2024-01-01T00:00:00Z",
            "updatedAt": "2024-01-01T00:00:00Z",
        }
        self.links.append(link)
        return link

    def calls(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    # ---------------------------------------------------------------
    # 📡 Endpunkte
    # ---------------------------------------------------------------
    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.failures:
            status, message = self.failures[path]
            return httpx.Response(status, json={"error": True, "message": message})

        body = json.loads(request.content) if request.content else {}

        if path == "/api/users/auth":
            user = self.users.get(request.headers.get("username", ""))
            if not user or user["password"] != request.headers.get("password"):
                return self._error("Invalid credentials", 401)
            return self._ok(self.login(request.headers["username"]))

        username = self.tokens.get(request.headers.get("login", ""))
        if username is None:
            return self._error("Invalid login", 401)

        if path == "/api/users/me":
            return self._ok({"username": username, "level": self.users[username]["level"]})
        if path == "/api/users/create":
            self.users[body["username"]] = {"password": body["password"], "level": body.get("level", 0)}
            return self._ok("User created")
        if path == "/api/users/delete":
            self.users.pop(body["username"], None)
            return self._ok("User deleted")
        if path == "/api/users/changepassword":
            self.users[body.get("username", username)]["password"] = body["password"]
            return self._ok("Password changed")
        if path == "/api/links/create":
            link_id = body.get("linkid") or f"auto{len(self.links) + 1}"
            if any(link["id"] == link_id for link in self.links):
                return self._error("linkid already exists", 409)
            self.add_link(link_id, body["content"], body.get("qrinfo"))
            return self._ok(link_id)
        if path == "/api/links/edit":
            link = next((l for l in self.links if l["id"] == body["linkid"]), None)
            if link is None:
                return self._error("Link not found", 404)
            if "content" in body:
                link["content"] = body["content"]
            if "qrinfo" in body:
                link["qrinfo"] = body["qrinfo"]
            if body.get("newlinkid"):
                link["id"] = body["newlinkid"]
            return self._ok("Link updated")
        if path == "/api/links/delete":
            self.links = [l for l in self.links if l["id"] != body["linkid"]]
            return self._ok("Link deleted")
        if path in ("/api/links/list", "/api/siteadmin/links/list"):
            return self._ok(list(self.links))
        if path == "/api/siteadmin/users/list":
            return self._ok([{"username": name, "level": u["level"]} for name, u in self.users.items()])
        return self._error("Not found", 404)

    @staticmethod
    def _ok(message: Any) -> httpx.Response:
        return httpx.Response(200, json={"error": False, "message": message})

    @staticmethod
    def _error(message: Any, status: int) -> httpx.Response:
        return httpx.Response(status, json={"error": True, "message": message})


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest_asyncio.fixture
async def backend_client(fake_backend):
    client = BackendClient(httpx.AsyncClient(base_url=BACKEND, transport=fake_backend.transport()))
    yield client
    await client.aclose()


@pytest.fixture
def app_client(fake_backend):
    """TestClient, dessen Backend-Aufrufe im FakeBackend landen."""

    async def override_get_backend():
        client = BackendClient(httpx.AsyncClient(base_url=BACKEND, transport=fake_backend.transport()))
        try:
            yield client
        finally:
            await client.aclose()

    app.dependency_overrides[get_backend] = override_get_backend
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.pop(get_backend, None)


@pytest.fixture
def logged_in(app_client):
    response = app_client.post("/auth/login", json={"username": "admin", "password": "secret"})
    assert response.status_code == 200, response.text
    return app_client


@pytest_asyncio.fixture
async def client():
    """Asynchroner Testclient direkt auf der ASGI-App."""
    transport = ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
