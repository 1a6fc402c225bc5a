"""Caterer bill (distribution) routes."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from sqlalchemy.exc import SQLAlchemyError

from app.api.errors import deduction_http_error, not_found
from app.core.rate_limit import limiter
from app.core.responses import paginated_response, paginate_query
from app.db.session import DbSession
from app.models.caterer import Caterer, Distribution
from app.schemas.caterer import DistributionCreate, DistributionResponse, DistributionStatusUpdate
from app.services.caterer_billing_service import CatererBillingService
from app.services.inventory_deduction_service import InventoryDeductionError

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_distribution(db, distribution_id: int) -> Distribution:
    distribution = db.query(Distribution).filter(Distribution.id == distribution_id).first()
    if not distribution:
        raise not_found("Distribution")
    return distribution


@router.get("/")
@limiter.limit("60/minute")
def list_distributions(
    request: Request,
    db: DbSession,
    caterer_id: Optional[int] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    query = db.query(Distribution)
    if caterer_id is not None:
        query = query.filter(Distribution.caterer_id == caterer_id)
    if status_filter:
        query = query.filter(Distribution.status == status_filter)
    query = query.order_by(Distribution.distribution_date.desc(), Distribution.id.desc())
    items, total = paginate_query(query, skip, limit)
    return paginated_response(items, total, skip, limit, schema=DistributionResponse)


@router.get("/{distribution_id}", response_model=DistributionResponse)
@limiter.limit("60/minute")
def get_distribution(request: Request, distribution_id: int, db: DbSession):
    return _get_distribution(db, distribution_id)


@router.post("/", status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_distribution(request: Request, body: DistributionCreate, db: DbSession):
    """Bill a caterer. The bill and its stock deduction commit together or not at all."""
    caterer = db.get(Caterer, body.caterer_id)
    if not caterer:
        raise not_found("Caterer")
    if not caterer.active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Caterer is inactive")

    try:
        result = CatererBillingService(db).create_distribution(caterer, body)
        db.commit()
    except InventoryDeductionError as e:
        db.rollback()
        logger.warning(f"Caterer bill for caterer {caterer.id} rejected: {e}")
        raise deduction_http_error(e)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to create caterer bill: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create bill")

    distribution = result["distribution"]
    db.refresh(distribution)
    data = DistributionResponse.model_validate(distribution).model_dump(mode="json")
    data["inventory"] = result["inventory"]
    return data


@router.patch("/{distribution_id}/status", response_model=DistributionResponse)
@limiter.limit("30/minute")
def update_distribution_status(
    request: Request, distribution_id: int, body: DistributionStatusUpdate, db: DbSession
):
    distribution = _get_distribution(db, distribution_id)
    CatererBillingService(db).set_status(distribution, body.status)
    db.commit()
    db.refresh(distribution)
    return distribution
