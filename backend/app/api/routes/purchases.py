"""Purchase routes: goods received from suppliers."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from sqlalchemy.exc import SQLAlchemyError

from app.api.errors import deduction_http_error, not_found
from app.core.rate_limit import limiter
from app.core.responses import paginated_response, paginate_query
from app.db.session import DbSession
from app.models.purchase import Purchase, PurchaseItem
from app.models.supplier import Supplier
from app.schemas.purchase import PurchaseCreate, PurchaseHistoryEntry, PurchaseResponse
from app.services.inventory_deduction_service import InventoryDeductionError
from app.services.purchase_service import PurchaseService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
@limiter.limit("60/minute")
def list_purchases(
    request: Request,
    db: DbSession,
    supplier_id: Optional[int] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    query = db.query(Purchase)
    if supplier_id is not None:
        query = query.filter(Purchase.supplier_id == supplier_id)
    items, total = paginate_query(query.order_by(Purchase.purchase_date.desc(), Purchase.id.desc()), skip, limit)
    return paginated_response(items, total, skip, limit, schema=PurchaseResponse)


@router.get("/history")
@limiter.limit("60/minute")
def purchase_history(
    request: Request,
    db: DbSession,
    supplier_id: Optional[int] = None,
    product_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    """Purchased lines across suppliers, newest first. Cancelled purchases are left out."""
    query = (
        db.query(PurchaseItem, Purchase)
        .join(Purchase, PurchaseItem.purchase_id == Purchase.id)
        .filter(Purchase.status != "cancelled")
    )
    if supplier_id is not None:
        query = query.filter(Purchase.supplier_id == supplier_id)
    if product_id is not None:
        query = query.filter(PurchaseItem.product_id == product_id)
    if start_date:
        query = query.filter(Purchase.purchase_date >= start_date)
    if end_date:
        query = query.filter(Purchase.purchase_date <= end_date)

    query = query.order_by(Purchase.purchase_date.desc(), Purchase.id.desc(), PurchaseItem.id)
    rows, total = paginate_query(query, skip, limit)
    entries = [
        PurchaseHistoryEntry(
            purchase_id=purchase.id,
            purchase_date=purchase.purchase_date,
            supplier_id=purchase.supplier_id,
            company_name=purchase.company_name,
            bill_number=purchase.bill_number,
            item_id=item.id,
            product_id=item.product_id,
            item_name=item.item_name,
            quantity=item.quantity,
            unit=item.unit,
            rate=item.rate,
            amount=item.amount,
        ).model_dump(mode="json")
        for item, purchase in rows
    ]
    return paginated_response(entries, total, skip, limit)


@router.get("/{purchase_id}", response_model=PurchaseResponse)
@limiter.limit("60/minute")
def get_purchase(request: Request, purchase_id: int, db: DbSession):
    purchase = db.query(Purchase).filter(Purchase.id == purchase_id).first()
    if not purchase:
        raise not_found("Purchase")
    return purchase


@router.post("/", response_model=PurchaseResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_purchase(request: Request, body: PurchaseCreate, db: DbSession):
    """Record a supplier bill; each line becomes a new inventory batch."""
    supplier = None
    if body.supplier_id is not None:
        supplier = db.get(Supplier, body.supplier_id)
        if not supplier:
            raise not_found("Supplier")

    service = PurchaseService(db)
    try:
        result = service.create_purchase(body, supplier)
        if result.pending_payment is not None:
            service.record_pending_payment(result.pending_payment)
        db.commit()
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except InventoryDeductionError as e:
        db.rollback()
        raise deduction_http_error(e)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to record purchase: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to record purchase")

    db.refresh(result.purchase)
    return result.purchase


@router.delete("/{purchase_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def cancel_purchase(request: Request, purchase_id: int, db: DbSession):
    """Cancel a purchase whose stock is untouched, reversing its batches."""
    purchase = db.query(Purchase).filter(Purchase.id == purchase_id).first()
    if not purchase:
        raise not_found("Purchase")
    try:
        PurchaseService(db).cancel_purchase(purchase)
        db.commit()
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except InventoryDeductionError as e:
        db.rollback()
        raise deduction_http_error(e)
