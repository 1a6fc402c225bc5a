"""Tests for the order lifecycle: storefront checkout, status changes, approval and delivery deduction."""

import pytest
from decimal import Decimal

from app.models.inventory import InventoryTransaction, TransactionType
from app.models.order import Order


@pytest.fixture
def placed_order(client, test_product):
    """A pending storefront order for 8 kg of the test product."""
    res = client.post("/api/v1/storefront/orders", json={
        "customer_name": "Meera Nair",
        "customer_phone": "+919812345678",
        "delivery_address": "12 MG Road, Kochi",
        "delivery_fee": "40",
        "items": [{"product_name": "Red Chilli Powder", "product_id": test_product.id, "quantity": "8"}],
    })
    assert res.status_code == 201
    return res.json()


def _set_status(client, order_id, status, **extra):
    return client.patch(f"/api/v1/orders/{order_id}/status", json={"status": status, **extra})


class TestCheckout:

    def test_order_starts_pending(self, placed_order):
        assert placed_order["status"] == "pending"
        assert placed_order["order_number"].startswith("ORD-")
        assert placed_order["inventory_deducted"] is False
        assert placed_order["order_source"] == "showcase"

    def test_prices_from_catalog(self, placed_order):
        assert Decimal(placed_order["subtotal"]) == Decimal("2560.00")
        assert Decimal(placed_order["total_amount"]) == Decimal("2600.00")
        assert Decimal(placed_order["items"][0]["unit_price"]) == Decimal("320.00")

    def test_checkout_does_not_touch_stock(self, client, db_session, fifo_batches, placed_order):
        assert db_session.query(InventoryTransaction).filter(
            InventoryTransaction.transaction_type == TransactionType.DEDUCTION.value
        ).count() == 0

    def test_order_numbers_increment(self, client, placed_order):
        second = client.post("/api/v1/storefront/orders", json={
            "customer_name": "Ravi", "customer_phone": "+919800011122",
            "items": [{"product_name": "Anything", "quantity": "1", "unit_price": "10"}],
        }).json()
        assert second["order_number"] != placed_order["order_number"]
        assert second["order_number"][:-3] == placed_order["order_number"][:-3]

    def test_line_without_price_rejected(self, client):
        res = client.post("/api/v1/storefront/orders", json={
            "customer_name": "Ravi", "customer_phone": "+919800011122",
            "items": [{"product_name": "Unknown Masala", "quantity": "1"}],
        })
        assert res.status_code == 400

    def test_empty_order_rejected(self, client):
        res = client.post("/api/v1/storefront/orders", json={
            "customer_name": "Ravi", "customer_phone": "+919800011122", "items": [],
        })
        assert res.status_code == 422


class TestStatusLifecycle:

    def test_forward_transition(self, client, placed_order):
        res = _set_status(client, placed_order["id"], "processing")
        assert res.status_code == 200
        body = res.json()
        assert body["order"]["status"] == "processing"
        assert body["inventory"] is None

    def test_backward_transition_rejected(self, client, placed_order):
        _set_status(client, placed_order["id"], "out_for_delivery")
        res = _set_status(client, placed_order["id"], "confirmed")
        assert res.status_code == 400

    def test_cancelled_is_terminal(self, client, placed_order):
        assert _set_status(client, placed_order["id"], "cancelled").status_code == 200
        assert _set_status(client, placed_order["id"], "delivered").status_code == 400

    def test_unknown_status_rejected(self, client, placed_order):
        assert _set_status(client, placed_order["id"], "shipped").status_code == 422

    def test_missing_order_404(self, client):
        assert _set_status(client, 4242, "confirmed").status_code == 404

    def test_payment_status_updated(self, client, placed_order):
        res = _set_status(client, placed_order["id"], "confirmed", payment_status="paid")
        assert res.json()["order"]["payment_status"] == "paid"

    def test_list_filters_by_status(self, client, placed_order):
        assert client.get("/api/v1/orders/?status=pending").json()["total"] == 1
        assert client.get("/api/v1/orders/?status=delivered").json()["total"] == 0
        assert client.get("/api/v1/orders/?search=Meera").json()["total"] == 1


class TestApproval:

    def test_approve_pending(self, client, placed_order):
        res = client.post(f"/api/v1/orders/{placed_order['id']}/approve", json={"approved_by": "Shop Manager"})
        assert res.status_code == 200
        data = res.json()
        assert data["status"] == "confirmed"
        assert data["approved_by"] == "Shop Manager"
        assert data["approved_at"] is not None

    def test_approve_twice_rejected(self, client, placed_order):
        client.post(f"/api/v1/orders/{placed_order['id']}/approve", json={"approved_by": "Shop Manager"})
        res = client.post(f"/api/v1/orders/{placed_order['id']}/approve", json={"approved_by": "Shop Manager"})
        assert res.status_code == 400


class TestDeliveryDeduction:

    def test_delivery_deducts_fifo(self, client, db_session, fifo_batches, placed_order):
        b1, b2 = fifo_batches
        res = _set_status(client, placed_order["id"], "delivered")
        assert res.status_code == 200
        body = res.json()
        assert body["order"]["inventory_deducted"] is True
        assert body["order"]["delivered_at"] is not None

        inventory = body["inventory"]
        assert inventory["success"] is True
        steps = inventory["deductions"][0]["batches"]
        assert [(s["batch_id"], Decimal(s["quantity"])) for s in steps] == [(b1.id, Decimal("5")), (b2.id, Decimal("3"))]

        db_session.expire_all()
        assert b1.quantity == Decimal("0")
        assert b2.quantity == Decimal("7")

    def test_delivering_twice_deducts_once(self, client, db_session, fifo_batches, placed_order):
        _set_status(client, placed_order["id"], "delivered")
        res = _set_status(client, placed_order["id"], "delivered")
        assert res.status_code == 200
        assert res.json()["inventory"] is None

        deductions = db_session.query(InventoryTransaction).filter(
            InventoryTransaction.transaction_type == TransactionType.DEDUCTION.value
        ).count()
        assert deductions == 2

    def test_shortfall_does_not_block_delivery(self, client, db_session, fifo_batches, test_product):
        order = client.post("/api/v1/storefront/orders", json={
            "customer_name": "Bulk Buyer", "customer_phone": "+919800099999",
            "items": [{"product_name": "Red Chilli Powder", "product_id": test_product.id, "quantity": "20"}],
        }).json()

        res = _set_status(client, order["id"], "delivered")
        assert res.status_code == 200
        inventory = res.json()["inventory"]
        assert Decimal(inventory["deductions"][0]["shortfall"]) == Decimal("5")
        assert inventory["warnings"]

        db_session.expire_all()
        assert test_product.stock_quantity == Decimal("0")
        assert db_session.get(Order, order["id"]).status == "delivered"

    def test_unmatched_line_skipped(self, client, fifo_batches):
        order = client.post("/api/v1/storefront/orders", json={
            "customer_name": "Ravi", "customer_phone": "+919800011122",
            "items": [{"product_name": "xyz123", "quantity": "1", "unit_price": "50"}],
        }).json()
        res = _set_status(client, order["id"], "delivered")
        inventory = res.json()["inventory"]
        assert inventory["deductions"] == []
        assert inventory["warnings"][0]["item"] == "xyz123"
