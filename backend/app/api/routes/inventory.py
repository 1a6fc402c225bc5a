"""Inventory routes: batches, ledger, alerts and deduction previews."""

import logging
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from sqlalchemy import func, nulls_last

from app.api.errors import deduction_http_error, not_found
from app.core.config import settings
from app.core.rate_limit import limiter
from app.core.responses import list_response, paginated_response, paginate_query
from app.db.session import DbSession
from app.models.inventory import BatchStatus, InventoryBatch, InventoryTransaction, ReferenceType
from app.models.product import Product
from app.models.supplier import Supplier
from app.schemas.inventory import (
    BatchCreate,
    BatchResponse,
    BatchUpdate,
    InventoryTransactionResponse,
    MatchRequest,
    ValidationRequest,
)
from app.schemas.product import ProductResponse
from app.services.inventory_deduction_service import (
    BatchSelection,
    BatchSelector,
    InventoryDeductionError,
    LedgerUpdater,
    MONEY_PLACES,
    expiring_batches,
)
from app.services.product_matcher import get_product_matcher

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_batch(db, batch_id: int) -> InventoryBatch:
    batch = db.query(InventoryBatch).filter(InventoryBatch.id == batch_id).first()
    if not batch:
        raise not_found("Batch")
    return batch


# ==================== BATCHES ====================

@router.get("/batches")
@limiter.limit("60/minute")
def list_batches(
    request: Request,
    db: DbSession,
    product_id: Optional[int] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    """List batches in FIFO order (soonest expiry first)."""
    query = db.query(InventoryBatch)
    if product_id is not None:
        query = query.filter(InventoryBatch.product_id == product_id)
    if status_filter:
        query = query.filter(InventoryBatch.status == status_filter)
    query = query.order_by(
        nulls_last(InventoryBatch.expiry_date.asc()), InventoryBatch.purchase_date.asc(), InventoryBatch.id.asc()
    )
    items, total = paginate_query(query, skip, limit)
    return paginated_response(items, total, skip, limit, schema=BatchResponse)


@router.get("/batches/{batch_id}", response_model=BatchResponse)
@limiter.limit("60/minute")
def get_batch(request: Request, batch_id: int, db: DbSession):
    return _get_batch(db, batch_id)


@router.post("/batches", response_model=BatchResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def receive_batch(request: Request, body: BatchCreate, db: DbSession):
    """Receive stock outside of a purchase bill (opening stock, transfers in)."""
    product = db.get(Product, body.product_id)
    if not product:
        raise not_found("Product")
    if body.supplier_id is not None and not db.get(Supplier, body.supplier_id):
        raise not_found("Supplier")

    purchase_date = body.purchase_date or date.today()
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    batch = InventoryBatch(
        product_id=product.id,
        supplier_id=body.supplier_id,
        batch_number=body.batch_number or f"BATCH-M-{stamp}-{product.id}",
        quantity=body.quantity,
        unit_cost=body.unit_cost,
        total_value=(body.quantity * body.unit_cost).quantize(MONEY_PLACES),
        expiry_date=body.expiry_date or purchase_date + timedelta(days=settings.default_batch_shelf_life_days),
        purchase_date=purchase_date,
        status=BatchStatus.ACTIVE.value,
        barcode=body.barcode,
        notes=body.notes,
    )
    db.add(batch)
    db.flush()
    LedgerUpdater(db).record_receipt(batch, ReferenceType.MANUAL)
    db.commit()
    db.refresh(batch)
    logger.info(f"Received batch {batch.batch_number}: {batch.quantity} {product.unit} of '{product.name}'")
    return batch


@router.patch("/batches/{batch_id}", response_model=BatchResponse)
@limiter.limit("30/minute")
def update_batch(request: Request, batch_id: int, body: BatchUpdate, db: DbSession):
    """Correct a batch after a count; quantity changes go through the ledger."""
    batch = _get_batch(db, batch_id)
    update_data = body.model_dump(exclude_unset=True)

    quantity = update_data.pop("quantity", None)
    if quantity is not None and quantity != batch.quantity:
        try:
            LedgerUpdater(db).adjust(batch, quantity)
        except InventoryDeductionError as e:
            db.rollback()
            raise deduction_http_error(e)

    for field, value in update_data.items():
        setattr(batch, field, value)

    db.commit()
    db.refresh(batch)
    return batch


# ==================== LEDGER ====================

@router.get("/transactions")
@limiter.limit("60/minute")
def list_transactions(
    request: Request,
    db: DbSession,
    product_id: Optional[int] = None,
    batch_id: Optional[int] = None,
    reference_type: Optional[ReferenceType] = None,
    reference_id: Optional[int] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    """Inventory audit trail, newest first."""
    query = db.query(InventoryTransaction)
    if product_id is not None:
        query = query.filter(InventoryTransaction.product_id == product_id)
    if batch_id is not None:
        query = query.filter(InventoryTransaction.batch_id == batch_id)
    if reference_type is not None:
        query = query.filter(InventoryTransaction.reference_type == reference_type.value)
    if reference_id is not None:
        query = query.filter(InventoryTransaction.reference_id == reference_id)
    items, total = paginate_query(query.order_by(InventoryTransaction.id.desc()), skip, limit)
    return paginated_response(items, total, skip, limit, schema=InventoryTransactionResponse)


# ==================== ALERTS ====================

@router.get("/alerts/low-stock")
@limiter.limit("60/minute")
def low_stock_alerts(request: Request, db: DbSession):
    """Active products at or below their minimum (or the global default)."""
    threshold = func.coalesce(Product.min_stock, settings.low_stock_threshold)
    products = db.query(Product).filter(
        Product.active.is_(True),
        Product.stock_quantity <= threshold,
    ).order_by(Product.stock_quantity.asc(), Product.name).all()
    return list_response(products, schema=ProductResponse)


@router.get("/alerts/expiring")
@limiter.limit("60/minute")
def expiring_alerts(
    request: Request,
    db: DbSession,
    days: Optional[int] = Query(None, ge=0, le=3650),
):
    """Active batches expiring within ``days`` (default from settings)."""
    today = date.today()
    window = days if days is not None else settings.expiry_alert_days
    batches = expiring_batches(db, window, today)
    items = []
    for b in batches:
        data = BatchResponse.model_validate(b).model_dump(mode="json")
        data["days_until_expiry"] = (b.expiry_date - today).days
        data["is_expired"] = b.expiry_date < today
        items.append(data)
    return list_response(items)


# ==================== DEDUCTION TOOLS ====================

@router.get("/products/{product_id}/plan")
@limiter.limit("60/minute")
def preview_plan(
    request: Request,
    product_id: int,
    db: DbSession,
    quantity: Decimal = Query(..., gt=0),
):
    """Show which batches a deduction would draw from, without changing stock."""
    if not db.get(Product, product_id):
        raise not_found("Product")
    plan = BatchSelector(db).plan(product_id, quantity)
    return plan.to_dict()


@router.post("/validate")
@limiter.limit("60/minute")
def validate_selection(request: Request, body: ValidationRequest, db: DbSession):
    """Check explicit batch selections before a bill is submitted."""
    selector = BatchSelector(db)
    results = []
    for item in body.items:
        batch_results = selector.validate(
            item.product_id,
            [BatchSelection(batch_id=b.batch_id, quantity=b.quantity) for b in item.batches],
        )
        results.append({
            "product_id": item.product_id,
            "is_valid": all(r["is_valid"] for r in batch_results),
            "batch_validations": batch_results,
        })
    return {"is_valid": all(r["is_valid"] for r in results), "validation_results": results}


@router.post("/match")
@limiter.limit("60/minute")
def match_product(request: Request, body: MatchRequest, db: DbSession):
    """Resolve a free-text name the same way order delivery does."""
    matcher = get_product_matcher(body.threshold)
    candidates = db.query(Product).filter(Product.active.is_(True)).order_by(Product.id).all()
    result = matcher.best_match(body.name, candidates)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No product matches '{body.name}'")
    return {
        "product_id": result.product.id,
        "product_name": result.product.name,
        "score": round(result.score, 4),
        "method": result.method,
    }
