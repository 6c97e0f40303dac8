"""Integration tests for categories."""

import pytest
from httpx import AsyncClient

CATEGORIES = "/api/v1/categories"


@pytest.mark.asyncio
async def test_create_derives_emoji(auth_client: AsyncClient, create_category):
    category = await create_category("Groceries", "#FF6B6B")

    assert category["emoji"]
    assert category["color"] == "#FF6B6B"


@pytest.mark.asyncio
async def test_explicit_emoji_is_kept(auth_client: AsyncClient, api):
    response = await auth_client.post(CATEGORIES, json={"name": "Pets", "emoji": "🐶"})

    assert api.assert_success(response, 201)["data"]["emoji"] == "🐶"


@pytest.mark.asyncio
async def test_duplicate_name_is_rejected(auth_client: AsyncClient, api, create_category):
    await create_category("Rent")

    api.assert_error(await auth_client.post(CATEGORIES, json={"name": "Rent"}), 400)


@pytest.mark.asyncio
async def test_bad_color_is_422(auth_client: AsyncClient, api):
    api.assert_validation_error(await auth_client.post(CATEGORIES, json={"name": "X", "color": "red"}), field="color")


@pytest.mark.asyncio
async def test_update_list_delete(auth_client: AsyncClient, api, create_category):
    category = await create_category("Fun")

    updated = await auth_client.put(f"{CATEGORIES}/{category['id']}", json={"name": "Entertainment"})
    assert api.assert_success(updated)["data"]["name"] == "Entertainment"

    names = [c["name"] for c in api.assert_success(await auth_client.get(CATEGORIES))["data"]]
    assert names == ["Entertainment"]

    assert (await auth_client.delete(f"{CATEGORIES}/{category['id']}")).status_code == 204
    api.assert_error(await auth_client.get(f"{CATEGORIES}/{category['id']}"), 404, "RES_NOT_FOUND")


@pytest.mark.asyncio
async def test_migrate_emojis_when_nothing_missing(auth_client: AsyncClient, api, create_category):
    await create_category()

    body = api.assert_success(await auth_client.post(f"{CATEGORIES}/migrate-emojis"))

    assert body["data"]["migrated"] == 0
    assert body["message"] == "All categories already have emojis"
