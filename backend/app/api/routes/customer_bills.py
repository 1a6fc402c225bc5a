"""Walk-in customer bill routes."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from sqlalchemy.exc import SQLAlchemyError

from app.api.errors import deduction_http_error, not_found
from app.core.rate_limit import limiter
from app.core.responses import paginated_response, paginate_query
from app.db.session import DbSession
from app.models.customer_bill import CustomerBill
from app.schemas.customer_bill import CustomerBillCreate, CustomerBillResponse
from app.services.customer_bill_service import CustomerBillService
from app.services.inventory_deduction_service import InventoryDeductionError

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_bill(db, bill_id: int) -> CustomerBill:
    bill = db.query(CustomerBill).filter(CustomerBill.id == bill_id).first()
    if not bill:
        raise not_found("Bill")
    return bill


@router.get("/")
@limiter.limit("60/minute")
def list_bills(
    request: Request,
    db: DbSession,
    search: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    query = db.query(CustomerBill)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            CustomerBill.bill_number.ilike(pattern)
            | CustomerBill.client_name.ilike(pattern)
            | CustomerBill.client_mobile.ilike(pattern)
        )
    if date_from:
        query = query.filter(CustomerBill.bill_date >= date_from)
    if date_to:
        query = query.filter(CustomerBill.bill_date <= date_to)
    query = query.order_by(CustomerBill.bill_date.desc(), CustomerBill.id.desc())
    items, total = paginate_query(query, skip, limit)
    return paginated_response(items, total, skip, limit, schema=CustomerBillResponse)


@router.get("/{bill_id}", response_model=CustomerBillResponse)
@limiter.limit("60/minute")
def get_bill(request: Request, bill_id: int, db: DbSession):
    return _get_bill(db, bill_id)


@router.post("/", status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_bill(request: Request, body: CustomerBillCreate, db: DbSession):
    """Create a bill; a failed stock deduction rejects the whole bill."""
    try:
        result = CustomerBillService(db).create_bill(body)
        db.commit()
    except InventoryDeductionError as e:
        db.rollback()
        logger.warning(f"Customer bill for '{body.client_name}' rejected: {e}")
        raise deduction_http_error(e)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to create customer bill: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create bill")

    bill = result["bill"]
    db.refresh(bill)
    data = CustomerBillResponse.model_validate(bill).model_dump(mode="json")
    data["inventory"] = result["inventory"]
    return data


@router.delete("/{bill_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_bill(request: Request, bill_id: int, db: DbSession):
    """Remove a bill record. Stock already deducted stays in the ledger."""
    bill = _get_bill(db, bill_id)
    bill_number = bill.bill_number
    db.delete(bill)
    db.commit()
    logger.info(f"Deleted customer bill {bill_number}")
