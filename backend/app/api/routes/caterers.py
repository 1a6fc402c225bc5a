"""Caterer account routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Query, Request, status

from app.api.errors import not_found
from app.core.rate_limit import limiter
from app.core.responses import list_response, paginated_response, paginate_query
from app.db.session import DbSession
from app.models.caterer import Caterer, CatererPayment, Distribution
from app.schemas.caterer import (
    CatererCreate,
    CatererPaymentResponse,
    CatererResponse,
    CatererUpdate,
    DistributionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_caterer(db, caterer_id: int) -> Caterer:
    caterer = db.query(Caterer).filter(Caterer.id == caterer_id).first()
    if not caterer:
        raise not_found("Caterer")
    return caterer


@router.get("/")
@limiter.limit("60/minute")
def list_caterers(
    request: Request,
    db: DbSession,
    search: Optional[str] = None,
    with_balance: bool = False,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    """List caterers; ``with_balance`` limits to accounts that owe money."""
    query = db.query(Caterer)
    if search:
        query = query.filter(Caterer.name.ilike(f"%{search}%"))
    if with_balance:
        query = query.filter(Caterer.balance_due > 0)
    items, total = paginate_query(query.order_by(Caterer.name), skip, limit)
    return paginated_response(items, total, skip, limit, schema=CatererResponse)


@router.get("/{caterer_id}", response_model=CatererResponse)
@limiter.limit("60/minute")
def get_caterer(request: Request, caterer_id: int, db: DbSession):
    return _get_caterer(db, caterer_id)


@router.post("/", response_model=CatererResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_caterer(request: Request, body: CatererCreate, db: DbSession):
    caterer = Caterer(**body.model_dump())
    db.add(caterer)
    db.commit()
    db.refresh(caterer)
    return caterer


@router.put("/{caterer_id}", response_model=CatererResponse)
@limiter.limit("30/minute")
def update_caterer(request: Request, caterer_id: int, body: CatererUpdate, db: DbSession):
    caterer = _get_caterer(db, caterer_id)

    update_data = body.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(caterer, field, value)

    db.commit()
    db.refresh(caterer)
    return caterer


@router.delete("/{caterer_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_caterer(request: Request, caterer_id: int, db: DbSession):
    """Delete a caterer without bills; otherwise deactivate it."""
    caterer = _get_caterer(db, caterer_id)
    if db.query(Distribution.id).filter(Distribution.caterer_id == caterer_id).first():
        caterer.active = False
        logger.info(f"Caterer {caterer_id} has bills; deactivated instead of deleted")
    else:
        db.delete(caterer)
    db.commit()


@router.get("/{caterer_id}/distributions")
@limiter.limit("60/minute")
def list_caterer_distributions(request: Request, caterer_id: int, db: DbSession):
    _get_caterer(db, caterer_id)
    bills = db.query(Distribution).filter(
        Distribution.caterer_id == caterer_id
    ).order_by(Distribution.distribution_date.desc(), Distribution.id.desc()).limit(500).all()
    return list_response(bills, schema=DistributionResponse)


@router.get("/{caterer_id}/payments")
@limiter.limit("60/minute")
def list_caterer_payments(request: Request, caterer_id: int, db: DbSession):
    _get_caterer(db, caterer_id)
    payments = db.query(CatererPayment).filter(
        CatererPayment.caterer_id == caterer_id
    ).order_by(CatererPayment.payment_date.desc(), CatererPayment.id.desc()).limit(500).all()
    return list_response(payments, schema=CatererPaymentResponse)
