"""Tests for walk-in customer bills and their all-or-nothing stock deduction."""

from decimal import Decimal

from app.models.customer_bill import CustomerBill
from app.models.inventory import InventoryTransaction
from app.services.customer_bill_service import CustomerBillService
from app.services.inventory_deduction_service import InventoryDeductionService


def _bill(quantity="3", **item_extra):
    item = {
        "product_name": "Red Chilli Powder",
        "quantity": quantity,
        "price_per_kg": "320",
        "market_price_per_kg": "380",
    }
    item.update(item_extra)
    return {"client_name": "Lakshmi Stores", "client_mobile": "+919811122233", "items": [item]}


class TestCreateBill:

    def test_totals_and_savings(self, client, fifo_batches):
        res = client.post("/api/v1/customer-bills/", json=_bill())
        assert res.status_code == 201
        data = res.json()
        assert data["bill_number"].startswith("CUST-")
        assert Decimal(data["total_amount"]) == Decimal("960.00")
        assert Decimal(data["market_total"]) == Decimal("1140.00")
        assert Decimal(data["savings"]) == Decimal("180.00")
        assert data["item_count"] == 1

    def test_market_price_defaults_to_sale_price(self, client, fifo_batches):
        res = client.post("/api/v1/customer-bills/", json=_bill(market_price_per_kg=None))
        assert Decimal(res.json()["savings"]) == Decimal("0")

    def test_deducts_from_earliest_expiry(self, client, db_session, fifo_batches, test_product):
        b1, b2 = fifo_batches
        res = client.post("/api/v1/customer-bills/", json=_bill(quantity="6"))
        inventory = res.json()["inventory"]
        assert inventory["success"] is True
        steps = inventory["deductions"][0]["batches"]
        assert [s["batch_id"] for s in steps] == [b1.id, b2.id]

        db_session.expire_all()
        assert b1.quantity == Decimal("0")
        assert b1.status == "inactive"
        assert b2.quantity == Decimal("9")
        assert test_product.stock_quantity == Decimal("9")

    def test_resolved_product_recorded_on_line(self, client, fifo_batches, test_product):
        res = client.post("/api/v1/customer-bills/", json=_bill(product_name="mirchi"))
        assert res.status_code == 201
        assert res.json()["items"][0]["product_id"] == test_product.id

    def test_explicit_batches(self, client, db_session, fifo_batches, test_product):
        b1, b2 = fifo_batches
        res = client.post("/api/v1/customer-bills/", json=_bill(
            quantity="4",
            product_id=test_product.id,
            batches=[{"batch_id": b2.id, "quantity": "4"}],
        ))
        assert res.status_code == 201
        db_session.expire_all()
        assert b1.quantity == Decimal("5")
        assert b2.quantity == Decimal("6")

    def test_unmatched_item_billed_without_deduction(self, client, fifo_batches):
        res = client.post("/api/v1/customer-bills/", json=_bill(product_name="xyz123"))
        assert res.status_code == 201
        assert res.json()["inventory"]["deductions"] == []
        assert res.json()["inventory"]["warnings"][0]["item"] == "xyz123"

    def test_duplicate_bill_number_rejected(self, client, fifo_batches):
        payload = _bill(quantity="1")
        payload["bill_number"] = "CUST-MANUAL-1"
        assert client.post("/api/v1/customer-bills/", json=payload).status_code == 201
        assert client.post("/api/v1/customer-bills/", json=payload).status_code == 400


class TestBillRejection:

    def test_insufficient_stock_rejects_whole_bill(self, client, db_session, fifo_batches, test_product):
        b1, b2 = fifo_batches
        res = client.post("/api/v1/customer-bills/", json=_bill(quantity="20"))
        assert res.status_code == 409
        assert "Insufficient" in res.json()["detail"]

        assert db_session.query(CustomerBill).count() == 0
        assert db_session.query(InventoryTransaction).count() == 0
        db_session.expire_all()
        assert b1.quantity == Decimal("5")
        assert b2.quantity == Decimal("10")
        assert test_product.stock_quantity == Decimal("15")

    def test_failure_on_second_line_undoes_first(self, client, db_session, fifo_batches):
        b1, b2 = fifo_batches
        payload = _bill(quantity="2")
        payload["items"].append({"product_name": "Red Chilli Powder", "quantity": "50", "price_per_kg": "320"})
        res = client.post("/api/v1/customer-bills/", json=payload)
        assert res.status_code == 409
        db_session.expire_all()
        assert b1.quantity == Decimal("5")

    def test_invalid_batch_selection_conflicts(self, client, db_session, fifo_batches, test_product):
        b1, _ = fifo_batches
        res = client.post("/api/v1/customer-bills/", json=_bill(
            product_id=test_product.id,
            batches=[{"batch_id": b1.id, "quantity": "6"}],
        ))
        assert res.status_code == 409
        assert db_session.query(CustomerBill).count() == 0

    def test_selection_short_of_billed_quantity(self, client, db_session, fifo_batches, test_product):
        _, b2 = fifo_batches
        res = client.post("/api/v1/customer-bills/", json=_bill(
            quantity="10",
            product_id=test_product.id,
            batches=[{"batch_id": b2.id, "quantity": "1"}],
        ))
        assert res.status_code == 409
        assert "does not match" in res.json()["detail"]
        assert db_session.query(CustomerBill).count() == 0
        db_session.expire_all()
        assert b2.quantity == Decimal("10")

    def test_selection_checked_in_line_unit(self, client, db_session, fifo_batches, test_product):
        _, b2 = fifo_batches
        res = client.post("/api/v1/customer-bills/", json=_bill(
            quantity="500",
            unit="g",
            product_id=test_product.id,
            batches=[{"batch_id": b2.id, "quantity": "0.5"}],
        ))
        assert res.status_code == 201
        db_session.expire_all()
        assert b2.quantity == Decimal("9.5")

    def test_missing_client_name(self, client):
        payload = _bill()
        payload["client_name"] = ""
        assert client.post("/api/v1/customer-bills/", json=payload).status_code == 422


class TestBillQueries:

    def test_list_search_and_delete(self, client, fifo_batches):
        bill = client.post("/api/v1/customer-bills/", json=_bill(quantity="1")).json()

        assert client.get("/api/v1/customer-bills/?search=lakshmi").json()["total"] == 1
        assert client.get("/api/v1/customer-bills/?search=nobody").json()["total"] == 0
        assert client.get(f"/api/v1/customer-bills/{bill['id']}").status_code == 200

        assert client.delete(f"/api/v1/customer-bills/{bill['id']}").status_code == 204
        assert client.get(f"/api/v1/customer-bills/{bill['id']}").status_code == 404


def test_service_builds_or_accepts_deduction_service(db_session):
    assert isinstance(CustomerBillService(db_session).deductions, InventoryDeductionService)
    shared = InventoryDeductionService(db_session)
    assert CustomerBillService(db_session, shared).deductions is shared
