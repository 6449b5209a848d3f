from unittest.mock import patch

import pytest

TEST_PASSWORD = "password123"


async def _register(client, email="asha@example.com", role="DONOR"):
    return await client.post("/api/v1/auth/register", json={
        "name": "Asha Rao",
        "email": email,
        "password": "password123",
        "role": role,
    })


@pytest.mark.asyncio
async def test_register_and_me(client):
    res = await _register(client)
    assert res.status_code == 201

    data = res.json()["data"]
    assert data["user"]["email"] == "asha@example.com"
    assert data["user"]["role"] == "DONOR"
    assert "password_hash" not in data["user"]

    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["data"]["name"] == "Asha Rao"


@pytest.mark.asyncio
async def test_register_duplicate_email(client):
    await _register(client)
    res = await _register(client)
    assert res.status_code == 409
    assert res.json()["success"] is False


@pytest.mark.asyncio
async def test_register_privileged_role_rejected(client):
    res = await _register(client, role="SUPER_ADMIN")
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_login_wrong_password(client, make_user):
    user = await make_user()
    res = await client.post("/api/v1/auth/login", json={"email": user.email, "password": "not-the-password"})
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_login_success(client, make_user):
    user = await make_user()
    res = await client.post("/api/v1/auth/login", json={"email": user.email, "password": TEST_PASSWORD})
    assert res.status_code == 200
    assert res.json()["data"]["token_type"] == "bearer"


@pytest.mark.asyncio
async def test_refresh_rotates_tokens(client, make_user):
    user = await make_user()
    login = await client.post("/api/v1/auth/login", json={"email": user.email, "password": TEST_PASSWORD})
    old_refresh = login.json()["data"]["refresh_token"]

    res = await client.post("/api/v1/auth/refresh", json={"refresh_token": old_refresh})
    assert res.status_code == 200
    new_refresh = res.json()["data"]["refresh_token"]
    assert new_refresh != old_refresh

    # The rotated-out token is no longer honoured
    replay = await client.post("/api/v1/auth/refresh", json={"refresh_token": old_refresh})
    assert replay.status_code == 401


@pytest.mark.asyncio
async def test_protected_route_without_token(client):
    res = await client.get("/api/v1/auth/me")
    assert res.status_code == 401
    assert res.json()["success"] is False


@pytest.mark.asyncio
async def test_garbage_token(client):
    res = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_deactivated_user_is_rejected(client, db_session, make_user, auth_headers):
    user = await make_user()
    user.is_active = False
    db_session.add(user)
    await db_session.commit()

    res = await client.get("/api/v1/auth/me", headers=auth_headers(user))
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_forgot_password_same_answer_for_unknown_email(client, make_user):
    user = await make_user()
    known = await client.post("/api/v1/auth/forgot-password", json={"email": user.email})
    unknown = await client.post("/api/v1/auth/forgot-password", json={"email": "nobody@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()


@pytest.mark.asyncio
async def test_reset_password_flow(client, make_user):
    user = await make_user()
    with patch("sevadaan.services.auth_service.generate_otp", return_value="123456"):
        await client.post("/api/v1/auth/forgot-password", json={"email": user.email})

    wrong = await client.post("/api/v1/auth/reset-password", json={
        "email": user.email,
        "otp": "654321",
        "new_password": "brand-new-password",
    })
    assert wrong.status_code == 400

    res = await client.post("/api/v1/auth/reset-password", json={
        "email": user.email,
        "otp": "123456",
        "new_password": "brand-new-password",
    })
    assert res.status_code == 200

    login = await client.post("/api/v1/auth/login", json={"email": user.email, "password": "brand-new-password"})
    assert login.status_code == 200
