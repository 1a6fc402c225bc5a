"""Tests for the public storefront."""

import pytest
from decimal import Decimal

from app.models.product import Product


@pytest.fixture
def catalog(db_session, test_category, test_product):
    products = [
        Product(name="Chilli Flakes", category_id=test_category.id, unit="kg", price=Decimal("410")),
        Product(name="Kashmiri Chilli", unit="kg", price=Decimal("620"), stock_quantity=Decimal("4")),
        Product(name="Discontinued Masala", unit="kg", price=Decimal("100"), active=False),
    ]
    db_session.add_all(products)
    db_session.commit()
    return products


def test_lists_only_active_products(client, catalog):
    names = [p["name"] for p in client.get("/api/v1/storefront/products").json()["items"]]
    assert "Discontinued Masala" not in names
    assert len(names) == 3


def test_hides_cost_and_stock_figures(client, catalog):
    item = client.get("/api/v1/storefront/products").json()["items"][0]
    assert "stock_quantity" not in item
    assert "min_stock" not in item
    assert set(item) >= {"id", "name", "price", "unit", "in_stock"}


def test_filters(client, catalog, test_category):
    by_category = client.get(f"/api/v1/storefront/products?category_id={test_category.id}").json()
    assert {p["name"] for p in by_category["items"]} == {"Chilli Flakes", "Red Chilli Powder"}

    in_stock = client.get("/api/v1/storefront/products?in_stock_only=true").json()
    assert [p["name"] for p in in_stock["items"]] == ["Kashmiri Chilli"]
    assert in_stock["items"][0]["in_stock"] is True


def test_search_puts_prefix_matches_first(client, catalog):
    res = client.get("/api/v1/storefront/products/search?q=chilli")
    assert res.status_code == 200
    names = [s["name"] for s in res.json()["suggestions"]]
    assert names == ["Chilli Flakes", "Kashmiri Chilli", "Red Chilli Powder"]


def test_search_respects_limit(client, catalog):
    res = client.get("/api/v1/storefront/products/search?q=chilli&limit=1")
    assert [s["name"] for s in res.json()["suggestions"]] == ["Chilli Flakes"]


def test_search_requires_query(client):
    assert client.get("/api/v1/storefront/products/search?q=").status_code == 422


def test_categories(client, test_category):
    data = client.get("/api/v1/storefront/categories").json()
    assert data["items"][0]["name"] == "Ground Spices"
