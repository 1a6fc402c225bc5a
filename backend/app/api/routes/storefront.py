"""Public storefront routes (no authentication).

Only active products are exposed and only customer-facing fields.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status

from app.core.rate_limit import public_limiter
from app.core.responses import list_response
from app.db.session import DbSession
from app.models.product import Category, Product
from app.schemas.order import OrderCreate, OrderResponse
from app.schemas.product import CategoryResponse, PublicProductResponse
from app.services.order_service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/categories")
@public_limiter.limit("120/minute")
def list_categories(request: Request, db: DbSession):
    categories = db.query(Category).order_by(Category.name).all()
    return list_response(categories, schema=CategoryResponse)


@router.get("/products")
@public_limiter.limit("120/minute")
def list_products(
    request: Request,
    db: DbSession,
    q: Optional[str] = None,
    category_id: Optional[int] = None,
    in_stock_only: bool = False,
):
    query = db.query(Product).filter(Product.active.is_(True))
    if q:
        query = query.filter(Product.name.ilike(f"%{q}%"))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if in_stock_only:
        query = query.filter(Product.stock_quantity > 0)
    products = query.order_by(Product.name).limit(500).all()
    return list_response(products, schema=PublicProductResponse)


@router.get("/products/search")
@public_limiter.limit("120/minute")
def search_suggestions(
    request: Request,
    db: DbSession,
    q: str = Query(..., min_length=1, max_length=100),
    limit: int = Query(8, ge=1, le=20),
):
    """Type-ahead suggestions: names starting with ``q`` first, then containing it."""
    prefix = db.query(Product).filter(
        Product.active.is_(True), Product.name.ilike(f"{q}%")
    ).order_by(Product.name).limit(limit).all()
    seen = {p.id for p in prefix}
    rest = []
    if len(prefix) < limit:
        rest = [
            p for p in db.query(Product).filter(
                Product.active.is_(True), Product.name.ilike(f"%{q}%")
            ).order_by(Product.name).limit(limit * 2).all()
            if p.id not in seen
        ][: limit - len(prefix)]
    return {"suggestions": [{"id": p.id, "name": p.name, "price": str(p.price), "unit": p.unit}
                            for p in prefix + rest]}


@router.post("/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
@public_limiter.limit("10/minute")
def place_order(request: Request, body: OrderCreate, db: DbSession):
    """Checkout. Orders start pending; stock moves only on delivery."""
    try:
        order = OrderService(db).create_order(body)
        db.commit()
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    db.refresh(order)
    return order
