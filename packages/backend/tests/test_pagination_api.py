"""Pagination over a realistic record set.

Learn: Overrides the `store` fixture with 153 generated records so
multi-page walks are meaningful. The property under test: pages of a
filtered listing never overlap, never exceed `limit`, and together
cover the whole filtered set.
"""

import pytest


@pytest.fixture()
def store(seeded_store):
    return seeded_store


async def _walk(client, **params) -> tuple[list[int], dict]:
    ids, page, first = [], 1, None
    while True:
        r = await client.get("/api/processes", params={**params, "page": page})
        assert r.status_code == 200
        body = r.json()
        first = first or body["pagination"]
        assert len(body["data"]) <= params["limit"]
        ids.extend(p["id"] for p in body["data"])
        if not body["pagination"]["hasNextPage"]:
            return ids, first
        page += 1


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [1, 7, 20, 100])
async def test_pages_cover_everything_once(client, store, limit):
    ids, pagination = await _walk(client, limit=limit)
    assert len(ids) == len(set(ids)) == len(store)
    assert pagination["totalItems"] == len(store)
    assert pagination["totalPages"] == -(-len(store) // limit)


@pytest.mark.asyncio
async def test_filtered_pages_cover_filtered_set(client, store):
    expected = {p.id for p in store.all() if p.status == "Failed" and p.environment == "Prod"}
    ids, pagination = await _walk(client, limit=5, status="Failed", environment="Prod")
    assert set(ids) == expected
    assert len(ids) == len(expected)
    assert pagination["totalItems"] == len(expected)


@pytest.mark.asyncio
async def test_default_order_is_newest_first(client):
    r = await client.get("/api/processes", params={"limit": 100})
    starts = [p["startTime"] for p in r.json()["data"]]
    assert starts == sorted(starts, reverse=True)


@pytest.mark.asyncio
async def test_sort_by_status_groups_statuses(client):
    r = await client.get("/api/processes", params={"limit": 100, "sortBy": "status", "sortOrder": "asc"})
    statuses = [p["status"] for p in r.json()["data"]]
    assert statuses == sorted(statuses)
