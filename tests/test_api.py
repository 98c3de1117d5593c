from datetime import datetime

import pytest


@pytest.mark.asyncio
async def test_health(async_client):
    response = await async_client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_create_link_defaults(async_client, make_user):
    user = await make_user("alice")
    response = await async_client.post(
        "/api/links/", json={"owner_id": user["id"], "title": "Site", "url": "https://x.com"}
    )
    assert response.status_code == 201
    link = response.json()
    assert link["order_index"] == 0
    assert link["click_count"] == 0
    assert link["is_active"] is True
    assert link["icon"] is None
    assert link["url"] == "https://x.com"
    assert link["owner_id"] == user["id"]
    datetime.fromisoformat(link["created_at"])


@pytest.mark.asyncio
async def test_order_index_assignment_sequence(make_user, make_link):
    user = await make_user("alice")
    assert (await make_link(user["id"]))["order_index"] == 0
    assert (await make_link(user["id"]))["order_index"] == 1
    assert (await make_link(user["id"], order_index=10))["order_index"] == 10
    assert (await make_link(user["id"]))["order_index"] == 11


@pytest.mark.asyncio
async def test_order_index_is_per_owner(make_user, make_link):
    alice = await make_user("alice")
    bob = await make_user("bob")
    await make_link(alice["id"])
    await make_link(alice["id"])
    assert (await make_link(bob["id"]))["order_index"] == 0


@pytest.mark.asyncio
async def test_create_link_unknown_owner(async_client):
    response = await async_client.post(
        "/api/links/", json={"owner_id": 999, "title": "Site", "url": "https://x.com"}
    )
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_update_link_absent_fields_untouched(async_client, make_user, make_link):
    user = await make_user("alice")
    link = await make_link(user["id"], icon="🔥")
    response = await async_client.patch(f"/api/links/{link['id']}", json={"title": "Blog"})
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Blog"
    assert body["icon"] == "🔥"
    assert body["url"] == link["url"]
    assert body["order_index"] == link["order_index"]


@pytest.mark.asyncio
async def test_update_link_explicit_null_clears_icon(async_client, make_user, make_link):
    user = await make_user("alice")
    link = await make_link(user["id"], icon="🔥")
    response = await async_client.patch(f"/api/links/{link['id']}", json={"icon": None})
    assert response.status_code == 200
    assert response.json()["icon"] is None
    assert response.json()["title"] == link["title"]


@pytest.mark.asyncio
async def test_update_link_null_title_rejected(async_client, make_user, make_link):
    user = await make_user("alice")
    link = await make_link(user["id"])
    response = await async_client.patch(f"/api/links/{link['id']}", json={"title": None})
    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


@pytest.mark.asyncio
async def test_update_link_refreshes_updated_at(async_client, make_user, make_link, monkeypatch):
    user = await make_user("alice")
    link = await make_link(user["id"])
    monkeypatch.setattr("api.links.utcnow", lambda: datetime(2030, 1, 1))
    response = await async_client.patch(f"/api/links/{link['id']}", json={})
    assert response.status_code == 200
    body = response.json()
    assert body["updated_at"].startswith("2030-01-01T00:00:00")
    assert body["created_at"] == link["created_at"]


@pytest.mark.asyncio
async def test_update_link_not_found(async_client):
    response = await async_client.patch("/api/links/999", json={"title": "x"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_link_keeps_other_positions(async_client, make_user, make_link):
    user = await make_user("alice")
    first = await make_link(user["id"], title="a")
    second = await make_link(user["id"], title="b")
    third = await make_link(user["id"], title="c")

    response = await async_client.delete(f"/api/links/{second['id']}")
    assert response.status_code == 200
    assert response.json() == {"success": True}

    listed = (await async_client.get(f"/api/users/{user['id']}/links")).json()
    assert [(l["id"], l["order_index"]) for l in listed] == [(first["id"], 0), (third["id"], 2)]

    profile = (await async_client.get("/api/profiles/alice")).json()
    assert second["id"] not in [l["id"] for l in profile["links"]]

    # следующая ссылка встаёт после максимума, дыра не заполняется
    assert (await make_link(user["id"]))["order_index"] == 3


@pytest.mark.asyncio
async def test_delete_link_not_found(async_client):
    response = await async_client.delete("/api/links/999")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_owner_links_ordered_with_inactive(async_client, make_user, make_link):
    user = await make_user("alice")
    late = await make_link(user["id"], title="late", order_index=5)
    early = await make_link(user["id"], title="early", order_index=1)
    tie = await make_link(user["id"], title="tie", order_index=1)
    await async_client.patch(f"/api/links/{late['id']}", json={"is_active": False})

    response = await async_client.get(f"/api/users/{user['id']}/links")
    assert response.status_code == 200
    assert [l["id"] for l in response.json()] == [early["id"], tie["id"], late["id"]]
    assert response.json()[2]["is_active"] is False


@pytest.mark.asyncio
async def test_list_owner_links_empty(async_client, make_user):
    user = await make_user("alice")
    response = await async_client.get(f"/api/users/{user['id']}/links")
    assert response.status_code == 200
    assert response.json() == []
