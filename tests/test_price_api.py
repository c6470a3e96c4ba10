"""Tests for the HTTP API."""

import pytest

from price_updater.config import settings


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_quote_endpoint(client):
    response = await client.post("/api/prices/quote", json={"product_id": 1, "quantity": 10})

    assert response.status_code == 200
    data = response.json()
    assert data["quantity"] == 10
    assert data["has_discount"] is True
    assert data["unit_price_raw"] == 80.0
    assert data["total_price_raw"] == 800.0
    assert data["savings_percent"] == 20
    assert data["unit_text"] == "товарів"
    assert data["rule_id"] == 1


@pytest.mark.asyncio
async def test_initial_price_uses_minimum_quantity(client):
    response = await client.get("/api/prices/2")

    assert response.status_code == 200
    data = response.json()
    assert data["quantity"] == 2
    assert data["unit_text"] == "мілілітри"
    assert data["cart_label"] == "До кошика 2 мілілітри (72 грн)"


@pytest.mark.asyncio
async def test_quote_unknown_product(client):
    response = await client.post("/api/prices/quote", json={"product_id": 999, "quantity": 1})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_quote_rejects_non_positive_quantity(client):
    response = await client.post("/api/prices/quote", json={"product_id": 1, "quantity": 0})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_rule_changes_invalidate_cached_rules(client):
    before = await client.post("/api/prices/quote", json={"product_id": 4, "quantity": 3})
    assert before.json()["has_discount"] is False

    created = await client.post(
        "/api/rules",
        json={
            "title": "Atomizers",
            "conditions": [{"kind": "product", "comparison": "include", "query": 4}],
            "brackets": [{"from": 2, "to": None, "type": "fixed_amount", "value": 2}],
        },
    )
    assert created.status_code == 201
    rule_id = created.json()["id"]

    after = await client.post("/api/prices/quote", json={"product_id": 4, "quantity": 3})
    assert after.json()["has_discount"] is True
    assert after.json()["unit_price_raw"] == 8.0
    assert after.json()["rule_id"] == rule_id

    disabled = await client.patch(f"/api/rules/{rule_id}", json={"enabled": False})
    assert disabled.status_code == 200

    again = await client.post("/api/prices/quote", json={"product_id": 4, "quantity": 3})
    assert again.json()["has_discount"] is False


@pytest.mark.asyncio
async def test_create_rule_rejects_malformed_records(client):
    response = await client.post(
        "/api/rules",
        json={"conditions": [{"kind": "brand", "query": 1}], "brackets": []},
    )
    assert response.status_code == 422

    response = await client.post(
        "/api/rules",
        json={"conditions": [], "brackets": [{"from": 1, "type": "percentage", "value": "lots"}]},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_rule_crud(client):
    listed = await client.get("/api/rules")
    assert [r["id"] for r in listed.json()] == [1, 2, 3]

    fetched = await client.get("/api/rules/2")
    assert fetched.json()["title"] == "Sale tag"

    deleted = await client.delete("/api/rules/2")
    assert deleted.status_code == 204

    missing = await client.get("/api/rules/2")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_create_and_quote_product(client):
    created = await client.post(
        "/api/products",
        json={"name": "Sample", "price": "55.50", "category_ids": [17], "min_quantity": 1},
    )
    assert created.status_code == 201
    product_id = created.json()["id"]

    quote = await client.get(f"/api/prices/{product_id}", params={"quantity": 5})
    assert quote.json()["unit_price_raw"] == pytest.approx(44.4)


@pytest.mark.asyncio
async def test_create_variation_requires_parent(client):
    response = await client.post(
        "/api/products",
        json={"price": "10", "product_type": "variation", "parent_id": 12345},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_product_uses_default_minimum(client, monkeypatch):
    monkeypatch.setattr(settings, "default_min_quantity", 5)

    created = await client.post("/api/products", json={"price": "40", "category_slugs": ["rozpyv"]})
    assert created.status_code == 201
    assert created.json()["min_quantity"] == 5

    quote = await client.get(f"/api/prices/{created.json()['id']}")
    assert quote.json()["quantity"] == 5
    assert quote.json()["unit_text"] == "мілілітрів"
