from __future__ import annotations

from io import BytesIO

from PIL import Image


# ─────────────────────────────────────────────
# 🔐 Login / Session
# ─────────────────────────────────────────────
def test_login_and_me(logged_in):
    response = logged_in.get("/auth/me")
    assert response.status_code == 200
    assert response.json()["message"] == {
        "username": "admin",
        "level": 2,
        "adminPanel": True,
        "siteAdmin": True,
    }


def test_login_failure_is_surfaced_verbatim(app_client):
    response = app_client.post("/auth/login", json={"username": "admin", "password": "wrong"})
    assert response.status_code == 502
    assert response.json() == {"error": True, "message": "Invalid credentials"}


def test_logout_clears_session(logged_in):
    assert logged_in.post("/auth/logout").status_code == 200
    assert logged_in.get("/dashboard/links").status_code == 401


# ─────────────────────────────────────────────
# 🔗 Links
# ─────────────────────────────────────────────
def test_create_list_delete_link(logged_in, fake_backend):
    response = logged_in.post(
        "/dashboard/links/create",
        json={"content": "https://example.com", "linkid": "promo", "qrinfo": {"dotsType": "dots"}},
    )
    assert response.status_code == 200
    assert fake_backend.links[0]["qrinfo"]["dotsType"] == "dots"
    assert fake_backend.links[0]["qrinfo"]["version"] == 1

    listed = logged_in.get("/dashboard/links").json()["message"]
    assert listed[0]["id"] == "promo"
    assert listed[0]["shortUrl"].endswith("/promo")

    assert logged_in.post("/dashboard/links/delete", json={"linkid": "promo"}).status_code == 200
    assert fake_backend.links == []


def test_invalid_link_never_reaches_backend(logged_in, fake_backend):
    response = logged_in.post("/dashboard/links/create", json={"content": "ftp://x", "linkid": "ok"})
    assert response.status_code == 400
    assert response.json()["message"] == "URL must start with http:// or https://"

    response = logged_in.post("/dashboard/links/create", json={"content": "https://x.com", "linkid": "a/b"})
    assert response.status_code == 400
    assert fake_backend.calls("/api/links/create") == []


def test_export_saved_link_qr(logged_in, fake_backend):
    fake_backend.add_link("abc", qrinfo={"dotsType": "square", "size": 200})
    response = logged_in.get("/dashboard/links/abc/qr", params={"format": "png", "size": 300})
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert 'filename="qr.png"' in response.headers["content-disposition"]
    assert Image.open(BytesIO(response.content)).size == (300, 300)


def test_export_unknown_link_is_404(logged_in):
    response = logged_in.get("/dashboard/links/missing/qr")
    assert response.status_code == 404
    assert response.json()["error"] is True


# ─────────────────────────────────────────────
# 📝 Editor
# ─────────────────────────────────────────────
def test_editor_flow(logged_in, fake_backend):
    fake_backend.add_link("abc", content="https://old.example.com")
    opened = logged_in.post("/dashboard/editor/open", json={"linkid": "abc"}).json()["message"]
    editor_id = opened["editor_id"]
    assert opened["mode"] == "edit"

    patched = logged_in.patch(
        f"/dashboard/editor/{editor_id}",
        json={"fg_mode": "linear", "fg_color2": "#ff0000", "content": "https://new.example.com"},
    )
    assert patched.status_code == 200
    assert patched.json()["message"]["state"]["fg_mode"] == "linear"

    preview = logged_in.get(f"/dashboard/editor/{editor_id}/preview", params={"format": "svg"})
    assert preview.headers["content-type"].startswith("image/svg+xml")

    exported = logged_in.get(
        f"/dashboard/editor/{editor_id}/export",
        params={"format": "webp", "size": 512, "as_data_url": True},
    ).json()["message"]
    assert exported["dataUrl"].startswith("data:image/webp;base64,")
    assert exported["size"] == 512

    assert logged_in.post(f"/dashboard/editor/{editor_id}/save").status_code == 200
    saved = fake_backend.links[0]
    assert saved["content"] == "https://new.example.com"
    assert saved["qrinfo"]["foreground"]["color2"] == "#ff0000"

    # gespeicherte Sitzung ist geschlossen
    assert logged_in.delete(f"/dashboard/editor/{editor_id}").status_code == 404


def test_editor_logo_upload_and_reset(logged_in):
    editor_id = logged_in.post("/dashboard/editor/open", json={}).json()["message"]["editor_id"]

    buffer = BytesIO()
    Image.new("RGBA", (16, 16), (255, 0, 0, 255)).save(buffer, format="PNG")
    response = logged_in.post(
        f"/dashboard/editor/{editor_id}/logo",
        files={"file": ("logo.png", buffer.getvalue(), "image/png")},
    )
    assert response.status_code == 200
    assert response.json()["message"]["state"]["logo"].startswith("data:image/png;base64,")

    reset = logged_in.post(f"/dashboard/editor/{editor_id}/reset").json()["message"]
    assert reset["state"]["logo"] == ""
    assert reset["state"]["size"] == 320


def test_editor_rejects_text_logo(logged_in):
    editor_id = logged_in.post("/dashboard/editor/open", json={}).json()["message"]["editor_id"]
    response = logged_in.post(
        f"/dashboard/editor/{editor_id}/logo",
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 400


def test_unknown_editor_is_404(logged_in):
    assert logged_in.get("/dashboard/editor/nope/preview").status_code == 404


def test_render_failure_is_422(logged_in):
    editor_id = logged_in.post("/dashboard/editor/open", json={}).json()["message"]["editor_id"]
    response = logged_in.get(f"/dashboard/editor/{editor_id}/export", params={"format": "bmp"})
    assert response.status_code == 422
    assert response.json()["error"] is True


# ─────────────────────────────────────────────
# 🛡️ Admin
# ─────────────────────────────────────────────
def test_admin_overview_partial_failure(logged_in, fake_backend):
    fake_backend.fail("/api/siteadmin/links/list", "links are down")
    response = logged_in.get("/dashboard/admin/overview")
    assert response.status_code == 200
    message = response.json()["message"]
    assert message["error"] == "links are down"
    assert message["failed"] == ["links"]
    assert {u["username"] for u in message["users"]} == {"admin", "alice"}


def test_admin_self_guards(logged_in, fake_backend):
    response = logged_in.post("/dashboard/admin/users/delete", json={"username": "admin"})
    assert response.status_code == 400
    assert response.json()["message"] == "You cannot delete your own user."

    response = logged_in.post("/dashboard/admin/users/password", json={"username": "admin", "password": "x"})
    assert response.status_code == 400
    assert fake_backend.calls("/api/users/delete") == []
    assert fake_backend.calls("/api/users/changepassword") == []


def test_admin_user_management(logged_in, fake_backend):
    assert logged_in.post(
        "/dashboard/admin/users/create", json={"username": "bob", "password": "pw", "level": 1}
    ).status_code == 200
    assert fake_backend.users["bob"]["level"] == 1

    assert logged_in.post(
        "/dashboard/admin/users/password", json={"username": "bob", "password": "new"}
    ).status_code == 200
    assert logged_in.post("/dashboard/admin/users/delete", json={"username": "bob"}).status_code == 200
    assert "bob" not in fake_backend.users


# ─────────────────────────────────────────────
# 🧯 Robustheit
# ─────────────────────────────────────────────
def test_backend_rejected_token_forces_relogin(logged_in, fake_backend):
    fake_backend.tokens.clear()

    response = logged_in.get("/auth/me")
    assert response.status_code == 401
    assert response.json()["redirect"] == "/auth/login"

    # lokale Session ist verworfen, kein weiterer Backend-Aufruf
    calls_before = len(fake_backend.requests)
    assert logged_in.get("/dashboard/links").status_code == 401
    assert len(fake_backend.requests) == calls_before


def test_patch_with_overflowing_number(logged_in):
    editor_id = logged_in.post("/dashboard/editor/open", json={}).json()["message"]["editor_id"]
    response = logged_in.patch(
        f"/dashboard/editor/{editor_id}",
        content=b'{"margin": 1e999, "fg_angle": 1e999}',
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 200
    state = response.json()["message"]["state"]
    assert state["margin"] == 32
    assert state["fg_angle"] == 0


def test_open_link_with_overflowing_rotation(logged_in, fake_backend):
    fake_backend.add_link(
        "abc",
        qrinfo={"foreground": {"mode": "linear", "color1": "#000000", "color2": "#ff0000", "rotation": "1e999"}},
    )
    response = logged_in.post("/dashboard/editor/open", json={"linkid": "abc"})
    assert response.status_code == 200
    assert response.json()["message"]["state"]["fg_angle"] == 0

    assert logged_in.get("/dashboard/links/abc/qr", params={"size": 256}).status_code == 200


def test_logout_closes_open_editors(logged_in, fake_backend):
    from main import app

    token = next(iter(fake_backend.tokens))
    ids = [
        logged_in.post("/dashboard/editor/open", json={}).json()["message"]["editor_id"]
        for _ in range(2)
    ]
    assert all(app.state.editors.get(editor_id, token) for editor_id in ids)

    assert logged_in.post("/auth/logout").status_code == 200
    assert all(app.state.editors.get(editor_id, token) is None for editor_id in ids)


def test_private_logo_host_is_never_fetched(logged_in, monkeypatch):
    import utils.logo_loader as logo_loader

    def no_network(*args, **kwargs):
        raise AssertionError("logo must not be fetched")

    editor_id = logged_in.post("/dashboard/editor/open", json={}).json()["message"]["editor_id"]
    monkeypatch.setattr(logo_loader.httpx, "AsyncClient", no_network)

    response = logged_in.patch(f"/dashboard/editor/{editor_id}", json={"logo": "http://10.0.0.1/admin"})
    assert response.status_code == 200
    assert response.json()["message"]["state"]["logo"] == "http://10.0.0.1/admin"
