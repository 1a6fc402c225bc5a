"""API tests for batches, the inventory ledger, alerts and the deduction tools."""

from datetime import date, timedelta
from decimal import Decimal


class TestBatches:

    def test_receive_batch_logs_receipt(self, client, db_session, test_product):
        res = client.post("/api/v1/inventory/batches", json={
            "product_id": test_product.id, "quantity": "12", "unit_cost": "250", "batch_number": "OPEN-1",
        })
        assert res.status_code == 201
        batch = res.json()
        assert batch["status"] == "active"
        assert Decimal(batch["total_value"]) == Decimal("3000.00")

        ledger = client.get(f"/api/v1/inventory/transactions?batch_id={batch['id']}").json()
        assert ledger["total"] == 1
        assert ledger["items"][0]["transaction_type"] == "receipt"
        db_session.expire_all()
        assert test_product.stock_quantity == Decimal("12")

    def test_default_expiry_applied(self, client, test_product):
        res = client.post("/api/v1/inventory/batches", json={
            "product_id": test_product.id, "quantity": "1", "purchase_date": "2024-05-01",
        })
        assert res.json()["expiry_date"] == (date(2024, 5, 1) + timedelta(days=365)).isoformat()

    def test_receive_for_unknown_product_404(self, client):
        res = client.post("/api/v1/inventory/batches", json={"product_id": 999, "quantity": "1"})
        assert res.status_code == 404

    def test_list_in_fifo_order(self, client, fifo_batches, test_product):
        b1, b2 = fifo_batches
        data = client.get(f"/api/v1/inventory/batches?product_id={test_product.id}").json()
        assert [b["id"] for b in data["items"]] == [b1.id, b2.id]

    def test_count_correction_is_an_adjustment(self, client, db_session, fifo_batches, test_product):
        _, b2 = fifo_batches
        res = client.patch(f"/api/v1/inventory/batches/{b2.id}", json={"quantity": "8", "notes": "Recount"})
        assert res.status_code == 200
        assert Decimal(res.json()["quantity"]) == Decimal("8")
        assert res.json()["notes"] == "Recount"

        ledger = client.get(f"/api/v1/inventory/transactions?batch_id={b2.id}").json()
        assert ledger["items"][0]["transaction_type"] == "adjustment"
        assert Decimal(ledger["items"][0]["quantity"]) == Decimal("-2")
        db_session.expire_all()
        assert test_product.stock_quantity == Decimal("13")

    def test_zero_count_deactivates(self, client, fifo_batches):
        b1, _ = fifo_batches
        res = client.patch(f"/api/v1/inventory/batches/{b1.id}", json={"quantity": "0"})
        assert res.json()["status"] == "inactive"
        again = client.patch(f"/api/v1/inventory/batches/{b1.id}", json={"quantity": "3"})
        assert again.status_code == 409


class TestAlerts:

    def test_low_stock(self, client, test_product, batch_factory):
        assert [p["id"] for p in client.get("/api/v1/inventory/alerts/low-stock").json()["items"]] == [test_product.id]
        batch_factory(test_product, "5")
        assert client.get("/api/v1/inventory/alerts/low-stock").json()["total"] == 0

    def test_expiring_window(self, client, test_product, batch_factory):
        today = date.today()
        batch_factory(test_product, "1", expiry=today - timedelta(days=2), number="OLD")
        batch_factory(test_product, "1", expiry=today + timedelta(days=10), number="SOON")
        batch_factory(test_product, "1", expiry=today + timedelta(days=200), number="LATER")

        items = client.get("/api/v1/inventory/alerts/expiring").json()["items"]
        assert [b["batch_number"] for b in items] == ["OLD", "SOON"]
        assert items[0]["is_expired"] is True
        assert items[1]["days_until_expiry"] == 10

        assert client.get("/api/v1/inventory/alerts/expiring?days=365").json()["total"] == 3


class TestDeductionTools:

    def test_plan_preview_does_not_move_stock(self, client, db_session, fifo_batches, test_product):
        b1, b2 = fifo_batches
        res = client.get(f"/api/v1/inventory/products/{test_product.id}/plan?quantity=8")
        assert res.status_code == 200
        plan = res.json()
        assert [s["batch_id"] for s in plan["steps"]] == [b1.id, b2.id]
        assert Decimal(plan["shortfall"]) == 0

        db_session.expire_all()
        assert b1.quantity == Decimal("5")

    def test_plan_reports_shortfall(self, client, fifo_batches, test_product):
        plan = client.get(f"/api/v1/inventory/products/{test_product.id}/plan?quantity=20").json()
        assert Decimal(plan["total"]) == Decimal("15")
        assert Decimal(plan["shortfall"]) == Decimal("5")

    def test_validate_selection(self, client, fifo_batches, test_product):
        b1, b2 = fifo_batches
        res = client.post("/api/v1/inventory/validate", json={"items": [{
            "product_id": test_product.id,
            "batches": [{"batch_id": b1.id, "quantity": "5"}, {"batch_id": b2.id, "quantity": "11"}],
        }]})
        assert res.status_code == 200
        data = res.json()
        assert data["is_valid"] is False
        checks = data["validation_results"][0]["batch_validations"]
        assert checks[0]["is_valid"] is True
        assert "Insufficient quantity" in checks[1]["error"]

    def test_match(self, client, test_product):
        res = client.post("/api/v1/inventory/match", json={"name": "mirchi"})
        assert res.status_code == 200
        assert res.json() == {
            "product_id": test_product.id,
            "product_name": "Red Chilli Powder",
            "score": 0.9,
            "method": "synonym",
        }

    def test_match_not_found(self, client, test_product):
        assert client.post("/api/v1/inventory/match", json={"name": "xyz123"}).status_code == 404
