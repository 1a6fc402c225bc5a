"""Admin order routes: listing, status changes and approval."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from sqlalchemy.exc import SQLAlchemyError

from app.api.errors import not_found
from app.core.rate_limit import limiter
from app.core.responses import paginated_response, paginate_query
from app.db.session import DbSession
from app.models.order import Order, OrderStatus
from app.schemas.order import OrderApprove, OrderResponse, OrderStatusUpdate
from app.services.order_service import InvalidTransitionError, OrderService

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_order(db, order_id: int) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise not_found("Order")
    return order


@router.get("/")
@limiter.limit("60/minute")
def list_orders(
    request: Request,
    db: DbSession,
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    """List orders, newest first. ``search`` matches order number, name or phone."""
    query = db.query(Order)
    if status_filter is not None:
        query = query.filter(Order.status == status_filter.value)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            Order.order_number.ilike(pattern)
            | Order.customer_name.ilike(pattern)
            | Order.customer_phone.ilike(pattern)
        )
    items, total = paginate_query(query.order_by(Order.created_at.desc(), Order.id.desc()), skip, limit)
    return paginated_response(items, total, skip, limit, schema=OrderResponse)


@router.get("/{order_id}", response_model=OrderResponse)
@limiter.limit("60/minute")
def get_order(request: Request, order_id: int, db: DbSession):
    return _get_order(db, order_id)


@router.patch("/{order_id}/status")
@limiter.limit("30/minute")
def update_order_status(request: Request, order_id: int, body: OrderStatusUpdate, db: DbSession):
    """Move an order along its lifecycle.

    Delivery deducts stock once; the deduction report is returned under
    ``inventory`` and its problems do not block the status change.
    """
    order = _get_order(db, order_id)
    try:
        result = OrderService(db).update_status(order, body.status, body.payment_status, body.notes)
        db.commit()
    except InvalidTransitionError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update order {order_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update order")

    db.refresh(order)
    return {
        "order": OrderResponse.model_validate(order).model_dump(mode="json"),
        "inventory": result["inventory"],
    }


@router.post("/{order_id}/approve", response_model=OrderResponse)
@limiter.limit("30/minute")
def approve_order(request: Request, order_id: int, body: OrderApprove, db: DbSession):
    order = _get_order(db, order_id)
    try:
        OrderService(db).approve(order, body.approved_by)
        db.commit()
    except InvalidTransitionError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    db.refresh(order)
    return order
