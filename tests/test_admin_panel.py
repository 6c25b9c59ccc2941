import pytest

from utils import admin_panel
from utils.errors import PartialListFailure, ValidationError


@pytest.mark.asyncio
async def test_load_all_success(backend_client, fake_backend):
    fake_backend.add_link("abc")
    token = fake_backend.login("admin")

    overview = await admin_panel.load_all(backend_client, token)

    assert [l.id for l in overview.links] == ["abc"]
    assert {u.username for u in overview.users} == {"admin", "alice"}
    assert overview.error is None


@pytest.mark.asyncio
async def test_links_fail_users_still_shown(backend_client, fake_backend):
    fake_backend.fail("/api/siteadmin/links/list", "links are down")
    token = fake_backend.login("admin")

    overview = await admin_panel.load_all(backend_client, token)

    assert overview.links == []
    assert len(overview.users) == 2
    assert overview.error.message == "links are down"
    assert overview.error.failed == ("links",)


@pytest.mark.asyncio
async def test_users_fail_links_still_shown(backend_client, fake_backend):
    fake_backend.add_link("abc")
    fake_backend.fail("/api/siteadmin/users/list", "users are down")
    token = fake_backend.login("admin")

    overview = await admin_panel.load_all(backend_client, token)

    assert [l.id for l in overview.links] == ["abc"]
    assert overview.users == []
    assert overview.error.message == "users are down"


@pytest.mark.asyncio
async def test_first_error_wins(backend_client, fake_backend):
    fake_backend.fail("/api/siteadmin/links/list", "links first")
    fake_backend.fail("/api/siteadmin/users/list", "users second")
    token = fake_backend.login("admin")

    overview = await admin_panel.load_all(backend_client, token)

    assert isinstance(overview.error, PartialListFailure)
    assert overview.error.message == "links first"
    assert overview.error.failed == ("links", "users")
    assert overview.to_dict()["error"] == "links first"


@pytest.mark.asyncio
async def test_self_delete_is_blocked_before_request(backend_client, fake_backend):
    token = fake_backend.login("admin")
    with pytest.raises(ValidationError) as exc:
        await admin_panel.delete_user(backend_client, token, "admin", "admin")
    assert exc.value.message == admin_panel.SELF_DELETE_MESSAGE
    assert fake_backend.calls("/api/users/delete") == []


@pytest.mark.asyncio
async def test_self_password_reset_is_blocked_before_request(backend_client, fake_backend):
    token = fake_backend.login("admin")
    with pytest.raises(ValidationError) as exc:
        await admin_panel.change_password(backend_client, token, "admin", "admin", "pw")
    assert exc.value.message == admin_panel.SELF_PASSWORD_MESSAGE
    assert fake_backend.calls("/api/users/changepassword") == []


@pytest.mark.asyncio
async def test_delete_other_user(backend_client, fake_backend):
    token = fake_backend.login("admin")
    await admin_panel.delete_user(backend_client, token, "admin", "alice")
    assert "alice" not in fake_backend.users


@pytest.mark.asyncio
async def test_create_user_requires_fields(backend_client, fake_backend):
    token = fake_backend.login("admin")
    with pytest.raises(ValidationError):
        await admin_panel.create_user(backend_client, token, "  ", "pw")
    assert fake_backend.calls("/api/users/create") == []
