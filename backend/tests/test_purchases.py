"""Tests for recording supplier purchases and the batches they create."""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from app.models.inventory import BatchStatus, InventoryBatch, InventoryTransaction, TransactionType
from app.models.product import Product
from app.models.supplier import SupplierTransaction


def _purchase_payload(supplier_id=None, payment_status="credit", **extra):
    payload = {
        "supplier_id": supplier_id,
        "bill_number": "KST/2024/118",
        "purchase_date": "2024-03-01",
        "payment_status": payment_status,
        "items": [
            {"item_name": "Turmeric Powder", "quantity": "10", "unit": "kg", "rate": "150", "gst_percentage": "5"},
            {"item_name": "Cumin Seeds", "quantity": "4", "unit": "kg", "rate": "400",
             "expiry_date": "2025-01-31"},
        ],
    }
    payload.update(extra)
    return payload


class TestRecordPurchase:

    def test_credit_purchase_creates_batches_and_stock(self, client, db_session, test_supplier):
        res = client.post("/api/v1/purchases/", json=_purchase_payload(test_supplier.id))
        assert res.status_code == 201
        data = res.json()
        assert data["company_name"] == "Kerala Spice Traders"
        assert Decimal(data["total_amount"]) == Decimal("3100.00")
        assert Decimal(data["total_gst"]) == Decimal("75.00")
        assert Decimal(data["grand_total"]) == Decimal("3175.00")
        assert len(data["items"]) == 2

        batches = db_session.query(InventoryBatch).filter(InventoryBatch.purchase_id == data["id"]).all()
        assert len(batches) == 2
        assert all(b.status == BatchStatus.ACTIVE.value for b in batches)

        turmeric = db_session.query(Product).filter(Product.name == "Turmeric Powder").one()
        assert turmeric.stock_quantity == Decimal("10")
        receipts = db_session.query(InventoryTransaction).filter(
            InventoryTransaction.transaction_type == TransactionType.RECEIPT.value
        ).count()
        assert receipts == 2

    def test_default_and_explicit_expiry(self, client, db_session, test_supplier):
        res = client.post("/api/v1/purchases/", json=_purchase_payload(test_supplier.id))
        batches = {
            b.product.name: b
            for b in db_session.query(InventoryBatch).filter(InventoryBatch.purchase_id == res.json()["id"])
        }
        assert batches["Cumin Seeds"].expiry_date == date(2025, 1, 31)
        assert batches["Turmeric Powder"].expiry_date == date(2024, 3, 1) + timedelta(days=365)

    def test_batch_value_matches_unit_cost(self, client, db_session):
        res = client.post("/api/v1/purchases/", json=_purchase_payload(
            company_name="Walk-in Wholesaler",
            items=[{"item_name": "Star Anise", "quantity": "3", "unit": "kg", "rate": "3.335"}],
        ))
        assert res.status_code == 201
        batch = db_session.query(InventoryBatch).filter(InventoryBatch.purchase_id == res.json()["id"]).one()
        assert batch.unit_cost == Decimal("3.33")
        assert batch.total_value == batch.quantity * batch.unit_cost

    def test_credit_purchase_raises_supplier_balance(self, client, db_session, test_supplier):
        client.post("/api/v1/purchases/", json=_purchase_payload(test_supplier.id))
        db_session.refresh(test_supplier)
        assert test_supplier.balance_due == Decimal("3175.00")
        txns = db_session.query(SupplierTransaction).filter_by(supplier_id=test_supplier.id).all()
        assert [t.transaction_type for t in txns] == ["credit"]

    def test_paid_purchase_records_one_payment(self, client, db_session, test_supplier):
        res = client.post("/api/v1/purchases/", json=_purchase_payload(
            test_supplier.id, payment_status="paid", payment_mode="bank_transfer",
        ))
        assert res.status_code == 201

        txns = db_session.query(SupplierTransaction).filter_by(supplier_id=test_supplier.id).all()
        assert len(txns) == 1
        assert txns[0].transaction_type == "payment"
        assert txns[0].amount == Decimal("3175.00")
        assert txns[0].purchase_id == res.json()["id"]
        db_session.refresh(test_supplier)
        assert test_supplier.total_paid == Decimal("3175.00")
        assert test_supplier.balance_due == Decimal("0")

    def test_existing_product_matched_by_name(self, client, db_session, test_product):
        res = client.post("/api/v1/purchases/", json={
            "company_name": "Local Market",
            "items": [{"item_name": "red chilli powder", "quantity": "3", "rate": "280"}],
        })
        assert res.status_code == 201
        assert res.json()["items"][0]["product_id"] == test_product.id
        assert db_session.query(Product).count() == 1

    def test_quantities_converted_to_product_unit(self, client, db_session, test_product):
        client.post("/api/v1/purchases/", json={
            "company_name": "Local Market",
            "items": [{"item_name": "Red Chilli Powder", "product_id": test_product.id,
                       "quantity": "2500", "unit": "g", "rate": "0.30"}],
        })
        batch = db_session.query(InventoryBatch).filter_by(product_id=test_product.id).one()
        assert batch.quantity == Decimal("2.5")

    def test_unknown_supplier_404(self, client):
        res = client.post("/api/v1/purchases/", json=_purchase_payload(9999))
        assert res.status_code == 404

    def test_company_required_without_supplier(self, client):
        res = client.post("/api/v1/purchases/", json=_purchase_payload(None))
        assert res.status_code == 400

    def test_empty_items_rejected(self, client, test_supplier):
        res = client.post("/api/v1/purchases/", json=_purchase_payload(test_supplier.id, items=[]))
        assert res.status_code == 422

    def test_list_and_get(self, client, test_supplier):
        created = client.post("/api/v1/purchases/", json=_purchase_payload(test_supplier.id)).json()
        listing = client.get(f"/api/v1/purchases/?supplier_id={test_supplier.id}").json()
        assert listing["total"] == 1
        assert client.get(f"/api/v1/purchases/{created['id']}").json()["bill_number"] == "KST/2024/118"
        assert client.get(f"/api/v1/suppliers/{test_supplier.id}/purchases").json()["total"] == 1


class TestCancelPurchase:

    def test_cancel_reverses_stock_and_balance(self, client, db_session, test_supplier):
        purchase_id = client.post("/api/v1/purchases/", json=_purchase_payload(test_supplier.id)).json()["id"]

        res = client.delete(f"/api/v1/purchases/{purchase_id}")
        assert res.status_code == 204

        batches = db_session.query(InventoryBatch).filter_by(purchase_id=purchase_id).all()
        assert all(b.quantity == 0 and b.status == BatchStatus.INACTIVE.value for b in batches)
        turmeric = db_session.query(Product).filter(Product.name == "Turmeric Powder").one()
        assert turmeric.stock_quantity == Decimal("0")
        db_session.refresh(test_supplier)
        assert test_supplier.balance_due == Decimal("0")
        assert client.get(f"/api/v1/purchases/{purchase_id}").json()["status"] == "cancelled"

    def test_cancel_twice_conflicts(self, client, test_supplier):
        purchase_id = client.post("/api/v1/purchases/", json=_purchase_payload(test_supplier.id)).json()["id"]
        client.delete(f"/api/v1/purchases/{purchase_id}")
        assert client.delete(f"/api/v1/purchases/{purchase_id}").status_code == 409

    def test_cannot_cancel_after_sale(self, client, test_supplier):
        purchase_id = client.post("/api/v1/purchases/", json=_purchase_payload(test_supplier.id)).json()["id"]
        bill = client.post("/api/v1/customer-bills/", json={
            "client_name": "Walk-in",
            "items": [{"product_name": "Turmeric Powder", "quantity": "1", "price_per_kg": "200"}],
        })
        assert bill.status_code == 201
        assert client.delete(f"/api/v1/purchases/{purchase_id}").status_code == 409


class TestPurchaseHistory:

    def test_history_by_supplier_and_product(self, client, db_session, test_supplier):
        client.post("/api/v1/purchases/", json=_purchase_payload(test_supplier.id))
        client.post("/api/v1/purchases/", json={
            "company_name": "Local Market",
            "items": [{"item_name": "Turmeric Powder", "quantity": "2", "rate": "160"}],
        })
        turmeric = db_session.query(Product).filter(Product.name == "Turmeric Powder").one()

        everything = client.get("/api/v1/purchases/history").json()
        assert everything["total"] == 3

        by_supplier = client.get(f"/api/v1/purchases/history?supplier_id={test_supplier.id}").json()
        assert {e["item_name"] for e in by_supplier["items"]} == {"Turmeric Powder", "Cumin Seeds"}
        assert all(e["company_name"] == "Kerala Spice Traders" for e in by_supplier["items"])

        by_product = client.get(f"/api/v1/purchases/history?product_id={turmeric.id}").json()
        assert [e["company_name"] for e in by_product["items"]] == ["Local Market", "Kerala Spice Traders"]
        assert Decimal(by_product["items"][1]["rate"]) == Decimal("150")

        both = client.get(
            f"/api/v1/purchases/history?supplier_id={test_supplier.id}&product_id={turmeric.id}"
        ).json()
        assert both["total"] == 1
        assert both["items"][0]["bill_number"] == "KST/2024/118"

    def test_history_date_range_and_cancelled(self, client, test_supplier):
        purchase_id = client.post("/api/v1/purchases/", json=_purchase_payload(test_supplier.id)).json()["id"]
        assert client.get("/api/v1/purchases/history?start_date=2024-03-02").json()["total"] == 0
        assert client.get("/api/v1/purchases/history?end_date=2024-03-01").json()["total"] == 2

        client.delete(f"/api/v1/purchases/{purchase_id}")
        assert client.get("/api/v1/purchases/history").json()["total"] == 0
