import pytest

from sevadaan.core.pagination import build_pagination
from sevadaan.models.notification import Notification


def test_pagination_first_page():
    page = build_pagination(total=45, page=1, limit=10)
    assert page == {
        "currentPage": 1,
        "totalPages": 5,
        "totalItems": 45,
        "itemsPerPage": 10,
        "hasNextPage": True,
        "hasPrevPage": False,
    }


def test_pagination_last_page():
    page = build_pagination(total=45, page=5, limit=10)
    assert page["hasNextPage"] is False
    assert page["hasPrevPage"] is True


def test_pagination_empty_result():
    page = build_pagination(total=0, page=1, limit=10)
    assert page["totalPages"] == 0
    assert page["hasNextPage"] is False
    assert page["hasPrevPage"] is False


@pytest.mark.asyncio
async def test_paginated_endpoint(client, db_session, make_user, auth_headers):
    user = await make_user()
    for i in range(12):
        db_session.add(Notification(user_id=user.id, title=f"Notice {i}", message="Hello"))
    await db_session.commit()

    res = await client.get("/api/v1/notifications/?page=3&limit=5", headers=auth_headers(user))
    assert res.status_code == 200

    body = res.json()
    assert len(body["data"]) == 2
    assert body["pagination"]["totalItems"] == 12
    assert body["pagination"]["totalPages"] == 3
    assert body["pagination"]["hasNextPage"] is False


@pytest.mark.asyncio
async def test_limit_above_maximum_is_rejected(client, make_user, auth_headers):
    user = await make_user()
    res = await client.get("/api/v1/notifications/?limit=500", headers=auth_headers(user))
    assert res.status_code == 400
    assert res.json()["success"] is False
