"""Tests for the product catalog HTTP endpoints."""

from __future__ import annotations

import asyncio
import uuid
from decimal import Decimal

import pytest

from src.services import product_store as product_store_module


def _payload(**overrides):
    payload = {
        "name": "Trail Runner",
        "description": "Lightweight running shoe",
        "category": "Shoes",
        "brand": "Stride",
        "price": "50.00",
        "stockQuantity": 5,
        "size": "42",
        "color": "Blue",
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_product_returns_created_with_location(client):
    response = await client.post("/products", json=_payload())

    assert response.status_code == 201
    data = response.json()
    assert uuid.UUID(data["id"])
    assert data["name"] == "Trail Runner"
    assert Decimal(data["price"]) == Decimal("50.00")
    assert data["stockQuantity"] == 5
    assert data["createdAt"]
    assert data["updatedAt"] is None
    assert response.headers["location"].endswith(f"/products/{data['id']}")


@pytest.mark.asyncio
async def test_get_product_round_trip(client):
    created = (await client.post("/products", json=_payload())).json()

    response = await client.get(f"/products/{created['id']}")

    assert response.status_code == 200
    assert response.json() == created


@pytest.mark.asyncio
async def test_create_product_lists_every_invalid_field(client, store):
    response = await client.post(
        "/products",
        json=_payload(name="", price=-1, stockQuantity=-5, color="c" * 51),
    )

    assert response.status_code == 400
    data = response.json()
    assert data["detail"] == "Validation failed."
    assert {error["field"] for error in data["errors"]} == {
        "name",
        "price",
        "stockQuantity",
        "color",
    }
    assert all(error["message"] for error in data["errors"])
    assert store.count() == 0


@pytest.mark.asyncio
async def test_create_product_rejects_blank_name(client, store):
    response = await client.post("/products", json=_payload(name="   "))

    assert response.status_code == 400
    assert [error["field"] for error in response.json()["errors"]] == ["name"]
    assert store.count() == 0


@pytest.mark.asyncio
async def test_create_product_missing_body_is_rejected(client):
    response = await client.post("/products")

    assert response.status_code == 400
    assert response.json()["errors"]


@pytest.mark.asyncio
async def test_get_unknown_product_returns_not_found(client):
    response = await client.get(f"/products/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json()["detail"] == "Product not found."


@pytest.mark.asyncio
async def test_list_products_filters_and_returns_empty_array(client):
    await client.post("/products", json=_payload(name="A", category="Shoes", brand="Stride"))
    await client.post("/products", json=_payload(name="B", category="Hats", brand="Stride"))
    await client.post("/products", json=_payload(name="C", category="shoes", brand="Peak"))

    shoes = await client.get("/products", params={"category": "SHOES"})
    stride_shoes = await client.get(
        "/products", params={"category": "shoes", "brand": "stride"}
    )
    bags = await client.get("/products", params={"category": "Bags"})

    assert [p["name"] for p in shoes.json()] == ["A", "C"]
    assert [p["name"] for p in stride_shoes.json()] == ["A"]
    assert bags.status_code == 200
    assert bags.json() == []


@pytest.mark.asyncio
async def test_update_product_merges_fields(client):
    created = (await client.post("/products", json=_payload())).json()

    response = await client.put(
        f"/products/{created['id']}",
        json={"name": "  ", "price": "0", "color": "Red"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == created["name"]
    assert Decimal(data["price"]) == Decimal("0")
    assert data["color"] == "Red"
    assert data["stockQuantity"] == created["stockQuantity"]
    assert data["createdAt"] == created["createdAt"]
    assert data["updatedAt"] is not None


@pytest.mark.asyncio
async def test_update_unknown_product_returns_not_found(client):
    response = await client.put(f"/products/{uuid.uuid4()}", json={"name": "Ghost"})

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_product_rejects_negative_stock(client):
    created = (await client.post("/products", json=_payload())).json()

    response = await client.put(f"/products/{created['id']}", json={"stockQuantity": -1})

    assert response.status_code == 400
    assert [error["field"] for error in response.json()["errors"]] == ["stockQuantity"]


@pytest.mark.asyncio
async def test_delete_product_then_not_found(client):
    created = (await client.post("/products", json=_payload())).json()

    first = await client.delete(f"/products/{created['id']}")
    second = await client.delete(f"/products/{created['id']}")
    lookup = await client.get(f"/products/{created['id']}")

    assert first.status_code == 204
    assert first.content == b""
    assert second.status_code == 404
    assert lookup.status_code == 404


@pytest.mark.asyncio
async def test_stats_endpoint(client):
    empty = (await client.get("/products/stats")).json()
    await client.post(
        "/products", json=_payload(name="A", price="50.00", stockQuantity=5)
    )
    await client.post(
        "/products", json=_payload(name="B", price="30.00", stockQuantity=20)
    )

    response = await client.get("/products/stats")

    assert empty["totalProducts"] == 0
    assert empty["totalByCategory"] == {}
    assert Decimal(empty["averagePrice"]) == 0
    assert response.status_code == 200
    data = response.json()
    assert data["totalProducts"] == 2
    assert data["totalByCategory"] == {"Shoes": 2}
    assert data["totalByBrand"] == {"Stride": 2}
    assert Decimal(data["averagePrice"]) == Decimal("40.00")
    assert data["totalStock"] == 25
    assert data["lowStockProducts"] == 1


@pytest.mark.asyncio
async def test_concurrent_creates_over_http(client):
    responses = await asyncio.gather(
        *(client.post("/products", json=_payload(name=f"Item {i}")) for i in range(20))
    )

    assert {response.status_code for response in responses} == {201}
    assert len({response.json()["id"] for response in responses}) == 20
    assert len((await client.get("/products")).json()) == 20


@pytest.mark.asyncio
async def test_internal_fault_hides_detail(client, monkeypatch):
    def _boom():
        raise RuntimeError("secret internal detail")

    monkeypatch.setattr(product_store_module, "uuid4", _boom)

    response = await client.post("/products", json=_payload())

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal error while creating product."}
    assert "secret" not in response.text
