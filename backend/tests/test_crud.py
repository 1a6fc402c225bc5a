"""Integration tests for CRUD endpoint cycles."""

from datetime import date
from decimal import Decimal

from app.models.supplier import SupplierTransaction


# ============== Health ==============

def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "healthy", "version": "1.0.0"}


# ============== Supplier CRUD ==============

class TestSupplierCRUD:
    """Full create-read-update-delete cycle for suppliers."""

    def test_create_supplier(self, client):
        res = client.post("/api/v1/suppliers/", json={
            "name": "Malabar Exports",
            "contact_phone": "555-0001",
            "contact_email": "sales@malabar.example.com",
            "gst_number": "32ABCDE1234F1Z5",
        })
        assert res.status_code == 201
        data = res.json()
        assert data["name"] == "Malabar Exports"
        assert data["id"] > 0
        assert Decimal(data["balance_due"]) == 0

    def test_invalid_email_rejected(self, client):
        res = client.post("/api/v1/suppliers/", json={"name": "Bad", "contact_email": "not-an-email"})
        assert res.status_code == 422

    def test_list_suppliers(self, client, test_supplier):
        res = client.get("/api/v1/suppliers/")
        assert res.status_code == 200
        data = res.json()
        assert data["total"] == 1
        assert data["items"][0]["name"] == "Kerala Spice Traders"
        assert data["has_more"] is False

    def test_search_suppliers(self, client, test_supplier):
        assert client.get("/api/v1/suppliers/?search=kerala").json()["total"] == 1
        assert client.get("/api/v1/suppliers/?search=nowhere").json()["total"] == 0

    def test_get_nonexistent_supplier_404(self, client):
        res = client.get("/api/v1/suppliers/99999")
        assert res.status_code == 404
        assert res.json()["detail"] == "Supplier not found"

    def test_full_crud_cycle(self, client):
        # Create
        res = client.post("/api/v1/suppliers/", json={"name": "Cycle Supplier"})
        assert res.status_code == 201
        supplier_id = res.json()["id"]

        # Update only the fields sent
        res = client.put(f"/api/v1/suppliers/{supplier_id}", json={"notes": "Pays on 30 days"})
        assert res.status_code == 200
        assert res.json()["name"] == "Cycle Supplier"
        assert res.json()["notes"] == "Pays on 30 days"

        # Delete (no history -> hard delete)
        res = client.delete(f"/api/v1/suppliers/{supplier_id}")
        assert res.status_code == 204
        assert client.get(f"/api/v1/suppliers/{supplier_id}").status_code == 404

    def test_delete_with_history_deactivates(self, client, db_session, test_supplier):
        db_session.add(SupplierTransaction(
            supplier_id=test_supplier.id, amount=Decimal("10"),
            transaction_date=date.today(), transaction_type="payment",
        ))
        db_session.commit()
        res = client.delete(f"/api/v1/suppliers/{test_supplier.id}")
        assert res.status_code == 204
        assert client.get(f"/api/v1/suppliers/{test_supplier.id}").json()["active"] is False

    def test_supplier_payment_reduces_balance(self, client, db_session, test_supplier):
        test_supplier.balance_due = Decimal("1000")
        db_session.commit()

        res = client.post(f"/api/v1/suppliers/{test_supplier.id}/payments", json={
            "amount": "400", "payment_mode": "upi",
        })
        assert res.status_code == 201
        assert res.json()["transaction_type"] == "payment"

        supplier = client.get(f"/api/v1/suppliers/{test_supplier.id}").json()
        assert Decimal(supplier["balance_due"]) == Decimal("600")
        assert Decimal(supplier["total_paid"]) == Decimal("400")

        txns = client.get(f"/api/v1/suppliers/{test_supplier.id}/transactions").json()
        assert txns["total"] == 1

    def test_overpayment_clamps_balance_at_zero(self, client, db_session, test_supplier):
        test_supplier.balance_due = Decimal("100")
        db_session.commit()
        client.post(f"/api/v1/suppliers/{test_supplier.id}/payments", json={"amount": "150"})
        db_session.refresh(test_supplier)
        assert test_supplier.balance_due == Decimal("0")

    def test_payment_for_foreign_purchase_rejected(self, client, test_supplier):
        res = client.post(f"/api/v1/suppliers/{test_supplier.id}/payments", json={
            "amount": "10", "purchase_id": 4242,
        })
        assert res.status_code == 400


# ============== Category CRUD ==============

class TestCategoryCRUD:

    def test_create_and_list(self, client):
        res = client.post("/api/v1/categories/", json={"name": "Whole Spices"})
        assert res.status_code == 201
        assert client.get("/api/v1/categories/").json()["total"] == 1

    def test_duplicate_rejected(self, client, test_category):
        res = client.post("/api/v1/categories/", json={"name": test_category.name})
        assert res.status_code == 409

    def test_delete_uncategorizes_products(self, client, db_session, test_category, test_product):
        res = client.delete(f"/api/v1/categories/{test_category.id}")
        assert res.status_code == 204
        db_session.expire_all()
        assert client.get(f"/api/v1/products/{test_product.id}").json()["category_id"] is None


# ============== Product CRUD ==============

class TestProductCRUD:
    """Full CRUD cycle for products."""

    def test_create_product(self, client, test_category):
        res = client.post("/api/v1/products/", json={
            "name": "Garam Masala",
            "category_id": test_category.id,
            "price": "540.00",
            "unit": "kg",
        })
        assert res.status_code == 201
        data = res.json()
        assert data["name"] == "Garam Masala"
        assert Decimal(data["stock_quantity"]) == 0

    def test_duplicate_name_rejected(self, client, test_product):
        res = client.post("/api/v1/products/", json={"name": test_product.name})
        assert res.status_code == 409

    def test_unknown_category_rejected(self, client):
        res = client.post("/api/v1/products/", json={"name": "Hing", "category_id": 999})
        assert res.status_code == 400

    def test_list_products(self, client, test_product):
        res = client.get("/api/v1/products/")
        assert res.status_code == 200
        assert res.json()["total"] == 1

    def test_update_product(self, client, test_product):
        res = client.put(f"/api/v1/products/{test_product.id}", json={"price": "299.50"})
        assert res.status_code == 200
        assert Decimal(res.json()["price"]) == Decimal("299.50")
        assert res.json()["name"] == "Red Chilli Powder"

    def test_rename_to_existing_rejected(self, client, db_session, test_product):
        client.post("/api/v1/products/", json={"name": "Haldi"})
        res = client.put(f"/api/v1/products/{test_product.id}", json={"name": "Haldi"})
        assert res.status_code == 409

    def test_delete_product_without_batches(self, client, test_product):
        assert client.delete(f"/api/v1/products/{test_product.id}").status_code == 204
        assert client.get(f"/api/v1/products/{test_product.id}").status_code == 404

    def test_delete_product_with_batches_deactivates(self, client, test_product, fifo_batches):
        assert client.delete(f"/api/v1/products/{test_product.id}").status_code == 204
        assert client.get(f"/api/v1/products/{test_product.id}").json()["active"] is False

    def test_stock_adjustment(self, client, test_product):
        res = client.post(f"/api/v1/products/{test_product.id}/stock-adjustment", json={
            "stock_quantity": "12.5", "reason": "Shelf count",
        })
        assert res.status_code == 200
        assert Decimal(res.json()["stock_quantity"]) == Decimal("12.5")

    def test_average_price_over_active_batches(self, client, db_session, test_product, batch_factory):
        batch_factory(test_product, "5", unit_cost="200.00", number="AVG-1")
        batch_factory(test_product, "5", unit_cost="250.00", number="AVG-2")
        spent = batch_factory(test_product, "1", unit_cost="900.00", number="AVG-OLD")
        spent.status = "inactive"
        db_session.commit()

        res = client.get(f"/api/v1/products/{test_product.id}/average-price")
        assert res.status_code == 200
        data = res.json()
        assert Decimal(data["average_price"]) == Decimal("225.00")
        assert data["batch_count"] == 2

    def test_average_price_without_batches_404(self, client, test_product):
        res = client.get(f"/api/v1/products/{test_product.id}/average-price")
        assert res.status_code == 404
