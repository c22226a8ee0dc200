from __future__ import annotations

import pytest

from vegbills.services.cache import PROVIDERS_ALL, VEGETABLES_ALL


@pytest.mark.asyncio
async def test_create_vegetable_defaults(client):
    resp = await client.post("/api/vegetables", json={"name": "Radish"})
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["name"] == "Radish"
    assert body["isAvailable"] is True
    assert body["hasFixedPrice"] is False
    assert body["fixedPrice"] is None


@pytest.mark.asyncio
async def test_fixed_price_requires_fixed_price_value(client):
    resp = await client.post("/api/vegetables", json={"name": "Potato", "hasFixedPrice": True})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Validation error"

    negative = await client.post("/api/vegetables", json={"name": "Potato", "hasFixedPrice": True, "fixedPrice": -1})
    assert negative.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_vegetable_name_rejected(client):
    assert (await client.post("/api/vegetables", json={"name": "Turnip"})).status_code == 201
    resp = await client.post("/api/vegetables", json={"name": "Turnip"})
    assert resp.status_code == 400
    assert resp.json()["details"][0]["field"] == "name"


@pytest.mark.asyncio
async def test_patch_merges_fields(client):
    created = (await client.post("/api/vegetables", json={"name": "Squash"})).json()

    resp = await client.patch(
        f"/api/vegetables/{created['id']}",
        json={"hasFixedPrice": True, "fixedPrice": "1.75"},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["name"] == "Squash"
    assert body["hasFixedPrice"] is True
    assert body["fixedPrice"] == "1.75"

    resp = await client.patch(f"/api/vegetables/{created['id']}", json={"isAvailable": False})
    assert resp.json()["isAvailable"] is False
    assert resp.json()["fixedPrice"] == "1.75"


@pytest.mark.asyncio
async def test_patch_clearing_fixed_price_flag_drops_price(client):
    created = (await client.post("/api/vegetables", json={"name": "Yam", "hasFixedPrice": True, "fixedPrice": 3})).json()
    resp = await client.patch(f"/api/vegetables/{created['id']}", json={"hasFixedPrice": False})
    assert resp.status_code == 200
    assert resp.json()["fixedPrice"] is None


@pytest.mark.asyncio
async def test_patch_rejects_fixed_price_without_value(client):
    created = (await client.post("/api/vegetables", json={"name": "Parsnip"})).json()
    resp = await client.patch(f"/api/vegetables/{created['id']}", json={"hasFixedPrice": True})
    assert resp.status_code == 400
    assert resp.json()["details"] == [
        {"field": "fixedPrice", "message": "fixedPrice must be provided when hasFixedPrice is true"},
    ]


@pytest.mark.asyncio
async def test_patch_rejects_explicit_nulls(client):
    created = (await client.post("/api/vegetables", json={"name": "Celery"})).json()
    resp = await client.patch(f"/api/vegetables/{created['id']}", json={"name": None, "isAvailable": None})
    assert resp.status_code == 400
    assert {d["field"] for d in resp.json()["details"]} == {"name", "isAvailable"}


@pytest.mark.asyncio
async def test_patch_unknown_vegetable_returns_404(client):
    resp = await client.patch("/api/vegetables/nope", json={"isAvailable": False})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_vegetable_writes_invalidate_listing(client, fake_redis):
    created = (await client.post("/api/vegetables", json={"name": "Artichoke"})).json()
    listed = await client.get("/api/vegetables")
    assert [v["name"] for v in listed.json()] == ["Artichoke"]
    assert VEGETABLES_ALL in fake_redis.store

    await client.patch(f"/api/vegetables/{created['id']}", json={"name": "Globe Artichoke"})
    assert VEGETABLES_ALL not in fake_redis.store
    assert [v["name"] for v in (await client.get("/api/vegetables")).json()] == ["Globe Artichoke"]


@pytest.mark.asyncio
async def test_providers_listing_cached_and_invalidated(client, provider, fake_redis):
    listed = await client.get("/api/providers")
    assert [p["name"] for p in listed.json()] == ["Acme"]
    assert PROVIDERS_ALL in fake_redis.store

    resp = await client.post("/api/providers", json={"name": "Baker", "mobile": "+15550101", "address": "1 Main St"})
    assert resp.status_code == 201
    assert PROVIDERS_ALL not in fake_redis.store
    assert [p["name"] for p in (await client.get("/api/providers")).json()] == ["Acme", "Baker"]


@pytest.mark.asyncio
async def test_provider_requires_mobile(client):
    resp = await client.post("/api/providers", json={"name": "NoPhone"})
    assert resp.status_code == 400
    assert resp.json()["details"][0]["field"] == "mobile"


@pytest.mark.asyncio
async def test_signers_unique_and_uncached(client, fake_redis):
    assert (await client.post("/api/signers", json={"name": "Jim"})).status_code == 201
    dup = await client.post("/api/signers", json={"name": "Jim"})
    assert dup.status_code == 400

    listed = await client.get("/api/signers")
    assert [s["name"] for s in listed.json()] == ["Jim"]
    assert not any(key.startswith("signer") for key in fake_redis.store)


@pytest.mark.asyncio
async def test_cache_admin_endpoints(client, provider, fake_redis):
    await client.get("/api/providers")
    await client.get("/api/vegetables")

    keys = await client.get("/api/cache/keys")
    assert keys.status_code == 200
    assert keys.json() == {"count": 2, "keys": [PROVIDERS_ALL, VEGETABLES_ALL]}

    cleared = await client.delete("/api/cache")
    assert cleared.json()["count"] == 2
    assert fake_redis.store == {}
    assert (await client.get("/api/cache/keys")).json() == {"count": 0, "keys": []}


@pytest.mark.asyncio
@pytest.mark.parametrize("fixed_price", ["0.001", "2.505", "100000.00"])
async def test_fixed_price_must_fit_money_column(client, fixed_price):
    resp = await client.post(
        "/api/vegetables",
        json={"name": "Saffron", "hasFixedPrice": True, "fixedPrice": fixed_price},
    )
    assert resp.status_code == 400
    assert resp.json()["details"][0]["field"] == "fixedPrice"
    assert (await client.get("/api/vegetables")).json() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("fixed_price", ["0.001", "2.505"])
async def test_patch_fixed_price_must_fit_money_column(client, fixed_price):
    created = (await client.post("/api/vegetables", json={"name": "Mint"})).json()
    resp = await client.patch(
        f"/api/vegetables/{created['id']}",
        json={"hasFixedPrice": True, "fixedPrice": fixed_price},
    )
    assert resp.status_code == 400
    listed = (await client.get("/api/vegetables")).json()
    assert listed[0]["hasFixedPrice"] is False


@pytest.mark.asyncio
async def test_two_decimal_fixed_price_round_trips(client, provider):
    created = await client.post("/api/vegetables", json={"name": "Mint", "hasFixedPrice": True, "fixedPrice": "2.55"})
    assert created.json()["fixedPrice"] == "2.55"
    bill = await client.post(
        "/api/bills",
        json={
            "providerId": provider["id"],
            "providerName": provider["name"],
            "items": [{"name": "Mint", "quantity": 1, "price": 1}],
        },
    )
    assert bill.status_code == 201
    assert bill.json()["items"][0]["price"] == "2.55"
