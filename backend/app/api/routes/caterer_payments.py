"""Caterer payment routes."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status

from app.api.errors import not_found
from app.core.rate_limit import limiter
from app.core.responses import paginated_response, paginate_query
from app.db.session import DbSession
from app.models.caterer import Caterer, CatererPayment
from app.schemas.caterer import CatererPaymentCreate, CatererPaymentResponse
from app.services.caterer_billing_service import CatererBillingService

router = APIRouter()


@router.get("/")
@limiter.limit("60/minute")
def list_payments(
    request: Request,
    db: DbSession,
    caterer_id: Optional[int] = None,
    distribution_id: Optional[int] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    query = db.query(CatererPayment)
    if caterer_id is not None:
        query = query.filter(CatererPayment.caterer_id == caterer_id)
    if distribution_id is not None:
        query = query.filter(CatererPayment.distribution_id == distribution_id)
    query = query.order_by(CatererPayment.payment_date.desc(), CatererPayment.id.desc())
    items, total = paginate_query(query, skip, limit)
    return paginated_response(items, total, skip, limit, schema=CatererPaymentResponse)


@router.post("/", response_model=CatererPaymentResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def record_payment(request: Request, body: CatererPaymentCreate, db: DbSession):
    """Record money received; reduces the caterer balance and, if given, the bill balance."""
    caterer = db.get(Caterer, body.caterer_id)
    if not caterer:
        raise not_found("Caterer")
    try:
        payment = CatererBillingService(db).record_payment(caterer, body)
        db.commit()
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    db.refresh(payment)
    return payment
