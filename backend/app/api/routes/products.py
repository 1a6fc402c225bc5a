"""Product catalog routes."""

import logging
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from sqlalchemy import func

from app.api.errors import not_found
from app.core.rate_limit import limiter
from app.core.responses import paginated_response, paginate_query
from app.db.session import DbSession
from app.models.inventory import BatchStatus, InventoryBatch
from app.models.product import Category, Product
from app.schemas.product import ProductCreate, ProductResponse, ProductUpdate, StockAdjustment

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_product(db, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise not_found("Product")
    return product


def _check_unique_name(db, name: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Product).filter(Product.name == name)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Product name already exists")


def _check_category(db, category_id: Optional[int]) -> None:
    if category_id is not None and not db.get(Category, category_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category not found")


@router.get("/")
@limiter.limit("60/minute")
def list_products(
    request: Request,
    db: DbSession,
    search: Optional[str] = None,
    category_id: Optional[int] = None,
    active_only: bool = False,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    """List products with optional name search and category filter."""
    query = db.query(Product)
    if search:
        query = query.filter(Product.name.ilike(f"%{search}%"))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if active_only:
        query = query.filter(Product.active.is_(True))
    items, total = paginate_query(query.order_by(Product.name), skip, limit)
    return paginated_response(items, total, skip, limit, schema=ProductResponse)


@router.get("/{product_id}", response_model=ProductResponse)
@limiter.limit("60/minute")
def get_product(request: Request, product_id: int, db: DbSession):
    return _get_product(db, product_id)


@router.get("/{product_id}/average-price")
@limiter.limit("60/minute")
def get_average_price(request: Request, product_id: int, db: DbSession):
    """Mean unit cost across the product's active batches."""
    product = _get_product(db, product_id)
    average, batch_count = (
        db.query(func.avg(InventoryBatch.unit_cost), func.count(InventoryBatch.id))
        .filter(
            InventoryBatch.product_id == product_id,
            InventoryBatch.status == BatchStatus.ACTIVE.value,
        )
        .one()
    )
    if not batch_count:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No price data available for this product")
    return {
        "product_id": product.id,
        "product_name": product.name,
        "average_price": str(Decimal(str(average)).quantize(Decimal("0.01"))),
        "batch_count": batch_count,
    }


@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_product(request: Request, body: ProductCreate, db: DbSession):
    """Create a product. Stock starts at zero and grows through batches."""
    _check_unique_name(db, body.name)
    _check_category(db, body.category_id)
    product = Product(**body.model_dump())
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@router.put("/{product_id}", response_model=ProductResponse)
@limiter.limit("30/minute")
def update_product(request: Request, product_id: int, body: ProductUpdate, db: DbSession):
    product = _get_product(db, product_id)

    update_data = body.model_dump(exclude_unset=True)
    if "name" in update_data:
        _check_unique_name(db, update_data["name"], exclude_id=product_id)
    if "category_id" in update_data:
        _check_category(db, update_data["category_id"])
    for field, value in update_data.items():
        setattr(product, field, value)

    db.commit()
    db.refresh(product)
    return product


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_product(request: Request, product_id: int, db: DbSession):
    """Delete a product without batches; otherwise deactivate it."""
    product = _get_product(db, product_id)
    if db.query(InventoryBatch.id).filter(InventoryBatch.product_id == product_id).first():
        product.active = False
        logger.info(f"Product {product_id} has batches; deactivated instead of deleted")
    else:
        db.delete(product)
    db.commit()


@router.post("/{product_id}/stock-adjustment", response_model=ProductResponse)
@limiter.limit("30/minute")
def adjust_stock(request: Request, product_id: int, body: StockAdjustment, db: DbSession):
    """Overwrite the cached stock figure after a physical count."""
    product = _get_product(db, product_id)
    logger.info(
        f"Stock adjustment for '{product.name}': {product.stock_quantity} -> {body.stock_quantity}"
        f"{' (' + body.reason + ')' if body.reason else ''}"
    )
    product.stock_quantity = body.stock_quantity
    db.commit()
    db.refresh(product)
    return product
