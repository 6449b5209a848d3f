import pytest

from sevadaan.core.permissions import Role


@pytest.mark.asyncio
async def test_root_health(client):
    res = await client.get("/")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_metrics_endpoint(client):
    res = await client.get("/api/metrics")
    assert res.status_code == 200

    data = res.json()

    # Check structure
    assert data["status"] == "Online"
    assert "cpu" in data
    assert "ram" in data
    assert data["database"] == "Connected"

    # Check data types
    assert isinstance(data["uptime"], int)
    assert isinstance(data["version"], str)
    assert isinstance(data["websocket_connections"], int)


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client):
    res = await client.get("/api/v1/does-not-exist")
    assert res.status_code == 404
    assert res.json()["success"] is False


@pytest.mark.asyncio
async def test_dashboard_is_role_specific(client, make_user, make_ngo, auth_headers):
    super_admin = await make_user(Role.SUPER_ADMIN)
    donor = await make_user(Role.DONOR)
    await make_ngo()

    platform = await client.get("/api/v1/dashboard/", headers=auth_headers(super_admin))
    assert platform.status_code == 200
    assert platform.json()["data"]["role"] == "SUPER_ADMIN"

    personal = await client.get("/api/v1/dashboard/", headers=auth_headers(donor))
    assert personal.status_code == 200
    assert personal.json()["data"]["role"] == "DONOR"
    assert personal.json()["data"]["unreadNotifications"] == 0


@pytest.mark.asyncio
async def test_admin_routes_require_super_admin(client, make_user, auth_headers):
    ngo_admin = await make_user(Role.NGO_ADMIN)
    super_admin = await make_user(Role.SUPER_ADMIN)

    denied = await client.get("/api/v1/admin/users", headers=auth_headers(ngo_admin))
    assert denied.status_code == 403

    allowed = await client.get("/api/v1/admin/users", headers=auth_headers(super_admin))
    assert allowed.status_code == 200
    assert allowed.json()["pagination"]["totalItems"] == 2
    assert all("password_hash" not in user for user in allowed.json()["data"])
