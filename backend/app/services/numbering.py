"""Human-readable document numbers: ``{PREFIX}-YYYYMMDD-NNN``."""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

BILL_PREFIX_CATERER = "CB"
BILL_PREFIX_CUSTOMER = "CUST"
ORDER_PREFIX = "ORD"


def next_document_number(db: Session, column, prefix: str, on: Optional[date] = None) -> str:
    """Next free number for the day, counting existing rows on *column*."""
    on = on or date.today()
    stem = f"{prefix}-{on.strftime('%Y%m%d')}-"
    seq = db.query(column).filter(column.like(f"{stem}%")).count() + 1
    while True:
        candidate = f"{stem}{seq:03d}"
        if db.query(column).filter(column == candidate).first() is None:
            return candidate
        seq += 1
