"""Pytest configuration and fixtures."""

import os

# Keep the application engine off the developer's database file
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from datetime import date
from decimal import Decimal
from typing import Generator

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.session import configure_sqlite, get_db
from app.main import app
# Import all models to ensure they're registered with Base.metadata
from app.models import *
from app.models.caterer import Caterer
from app.models.inventory import BatchStatus, InventoryBatch
from app.models.product import Category, Product
from app.models.supplier import Supplier

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    # Disable rate limiters during tests to avoid flaky failures
    from app.core.rate_limit import limiter as global_limiter
    from app.core.rate_limit import public_limiter
    global_limiter.enabled = False
    public_limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    global_limiter.enabled = True
    public_limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture
def test_supplier(db_session: Session) -> Supplier:
    """Create a test supplier."""
    supplier = Supplier(
        name="Kerala Spice Traders",
        contact_phone="+919876543210",
        contact_email="orders@keralaspice.example.com",
    )
    db_session.add(supplier)
    db_session.commit()
    db_session.refresh(supplier)
    return supplier


@pytest.fixture
def test_category(db_session: Session) -> Category:
    category = Category(name="Ground Spices")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def test_product(db_session: Session, test_category: Category) -> Product:
    """Create a test product."""
    product = Product(
        name="Red Chilli Powder",
        category_id=test_category.id,
        unit="kg",
        price=Decimal("320.00"),
        market_price=Decimal("380.00"),
        min_stock=Decimal("2"),
        active=True,
    )
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product


def make_batch(
    db: Session,
    product: Product,
    quantity: str,
    expiry: date = None,
    purchased: date = date(2024, 1, 1),
    unit_cost: str = "100.00",
    number: str = None,
) -> InventoryBatch:
    """Add an active batch and keep the product's cached stock in step."""
    qty = Decimal(quantity)
    batch = InventoryBatch(
        product_id=product.id,
        batch_number=number or f"B-{product.id}-{expiry or 'none'}-{quantity}",
        quantity=qty,
        unit_cost=Decimal(unit_cost),
        total_value=qty * Decimal(unit_cost),
        expiry_date=expiry,
        purchase_date=purchased,
        status=BatchStatus.ACTIVE.value,
    )
    db.add(batch)
    product.stock_quantity = (product.stock_quantity or Decimal("0")) + qty
    db.commit()
    db.refresh(batch)
    return batch


@pytest.fixture
def batch_factory(db_session: Session):
    def _make(product: Product, quantity: str, **kwargs) -> InventoryBatch:
        return make_batch(db_session, product, quantity, **kwargs)
    return _make


@pytest.fixture
def fifo_batches(db_session: Session, test_product: Product):
    """Two batches of the same product: B1 expires first."""
    b1 = make_batch(db_session, test_product, "5", expiry=date(2024, 1, 1), number="B1")
    b2 = make_batch(db_session, test_product, "10", expiry=date(2024, 6, 1), number="B2")
    return b1, b2


@pytest.fixture
def test_caterer(db_session: Session) -> Caterer:
    caterer = Caterer(name="Annapurna Caterers", phone="+919800000001", credit_limit=Decimal("50000"))
    db_session.add(caterer)
    db_session.commit()
    db_session.refresh(caterer)
    return caterer
