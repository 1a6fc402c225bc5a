"""Supplier routes: CRUD plus the vendor ledger."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status

from app.api.errors import not_found
from app.core.rate_limit import limiter
from app.core.responses import list_response, paginated_response, paginate_query
from app.db.session import DbSession
from app.models.inventory import InventoryBatch
from app.models.purchase import Purchase
from app.models.supplier import Supplier, SupplierTransaction
from app.schemas.purchase import PurchaseResponse
from app.schemas.supplier import (
    SupplierCreate,
    SupplierPaymentCreate,
    SupplierResponse,
    SupplierTransactionResponse,
    SupplierUpdate,
)
from app.services.purchase_service import PurchaseService

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_supplier(db, supplier_id: int) -> Supplier:
    supplier = db.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise not_found("Supplier")
    return supplier


@router.get("/")
@limiter.limit("60/minute")
def list_suppliers(
    request: Request,
    db: DbSession,
    search: Optional[str] = None,
    active_only: bool = False,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    """List suppliers, optionally filtered by name."""
    query = db.query(Supplier)
    if search:
        query = query.filter(Supplier.name.ilike(f"%{search}%"))
    if active_only:
        query = query.filter(Supplier.active.is_(True))
    items, total = paginate_query(query.order_by(Supplier.name), skip, limit)
    return paginated_response(items, total, skip, limit, schema=SupplierResponse)


@router.get("/{supplier_id}", response_model=SupplierResponse)
@limiter.limit("60/minute")
def get_supplier(request: Request, supplier_id: int, db: DbSession):
    """Get a specific supplier."""
    return _get_supplier(db, supplier_id)


@router.post("/", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_supplier(request: Request, body: SupplierCreate, db: DbSession):
    """Create a new supplier."""
    supplier = Supplier(**body.model_dump())
    db.add(supplier)
    db.commit()
    db.refresh(supplier)
    return supplier


@router.put("/{supplier_id}", response_model=SupplierResponse)
@limiter.limit("30/minute")
def update_supplier(request: Request, supplier_id: int, body: SupplierUpdate, db: DbSession):
    """Update a supplier."""
    supplier = _get_supplier(db, supplier_id)

    update_data = body.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(supplier, field, value)

    db.commit()
    db.refresh(supplier)
    return supplier


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_supplier(request: Request, supplier_id: int, db: DbSession):
    """Delete a supplier with no history, otherwise deactivate it."""
    supplier = _get_supplier(db, supplier_id)
    has_history = (
        db.query(InventoryBatch.id).filter(InventoryBatch.supplier_id == supplier_id).first()
        or db.query(Purchase.id).filter(Purchase.supplier_id == supplier_id).first()
        or db.query(SupplierTransaction.id).filter(SupplierTransaction.supplier_id == supplier_id).first()
    )
    if has_history:
        supplier.active = False
        logger.info(f"Supplier {supplier_id} has history; deactivated instead of deleted")
    else:
        db.delete(supplier)
    db.commit()


@router.post(
    "/{supplier_id}/payments",
    response_model=SupplierTransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit("30/minute")
def record_supplier_payment(request: Request, supplier_id: int, body: SupplierPaymentCreate, db: DbSession):
    """Record a payment made to the supplier."""
    supplier = _get_supplier(db, supplier_id)
    if body.purchase_id is not None:
        purchase = db.get(Purchase, body.purchase_id)
        if purchase is None or purchase.supplier_id != supplier_id:
            raise HTTPException(status_code=400, detail="Purchase does not belong to this supplier")
    txn = PurchaseService(db).record_supplier_payment(supplier, body)
    db.commit()
    db.refresh(txn)
    return txn


@router.get("/{supplier_id}/transactions")
@limiter.limit("60/minute")
def list_supplier_transactions(request: Request, supplier_id: int, db: DbSession):
    """Vendor ledger for one supplier, newest first."""
    _get_supplier(db, supplier_id)
    txns = db.query(SupplierTransaction).filter(
        SupplierTransaction.supplier_id == supplier_id
    ).order_by(SupplierTransaction.transaction_date.desc(), SupplierTransaction.id.desc()).limit(500).all()
    return list_response(txns, schema=SupplierTransactionResponse)


@router.get("/{supplier_id}/purchases")
@limiter.limit("60/minute")
def list_supplier_purchases(request: Request, supplier_id: int, db: DbSession):
    """Purchases received from one supplier."""
    _get_supplier(db, supplier_id)
    purchases = db.query(Purchase).filter(
        Purchase.supplier_id == supplier_id
    ).order_by(Purchase.purchase_date.desc(), Purchase.id.desc()).limit(500).all()
    return list_response(purchases, schema=PurchaseResponse)
