"""Category routes."""

from fastapi import APIRouter, HTTPException, Request, status

from app.api.errors import not_found
from app.core.rate_limit import limiter
from app.core.responses import list_response
from app.db.session import DbSession
from app.models.product import Category, Product
from app.schemas.product import CategoryCreate, CategoryResponse

router = APIRouter()


@router.get("/")
@limiter.limit("60/minute")
def list_categories(request: Request, db: DbSession):
    categories = db.query(Category).order_by(Category.name).all()
    return list_response(categories, schema=CategoryResponse)


@router.get("/{category_id}", response_model=CategoryResponse)
@limiter.limit("60/minute")
def get_category(request: Request, category_id: int, db: DbSession):
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise not_found("Category")
    return category


@router.post("/", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_category(request: Request, body: CategoryCreate, db: DbSession):
    if db.query(Category).filter(Category.name == body.name).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Category already exists")
    category = Category(**body.model_dump())
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_category(request: Request, category_id: int, db: DbSession):
    """Delete a category; its products become uncategorized."""
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise not_found("Category")
    db.query(Product).filter(Product.category_id == category_id).update(
        {Product.category_id: None}, synchronize_session=False
    )
    db.delete(category)
    db.commit()
