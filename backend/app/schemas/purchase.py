"""Purchase schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class PurchaseItemCreate(BaseModel):
    item_name: str = Field(..., min_length=1, max_length=255)
    product_id: Optional[int] = None
    quantity: Decimal = Field(..., gt=0)
    unit: str = "kg"
    rate: Decimal = Field(..., ge=0)
    gst_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    expiry_date: Optional[date] = None


class PurchaseCreate(BaseModel):
    supplier_id: Optional[int] = None
    company_name: Optional[str] = None
    bill_number: Optional[str] = None
    purchase_date: Optional[date] = None
    payment_status: Literal["paid", "credit"] = "credit"
    payment_mode: Optional[str] = None
    notes: Optional[str] = None
    items: List[PurchaseItemCreate] = Field(..., min_length=1)


class PurchaseItemResponse(BaseModel):
    id: int
    product_id: Optional[int] = None
    item_name: str
    quantity: Decimal
    unit: str
    rate: Decimal
    gst_percentage: Decimal
    gst_amount: Decimal
    amount: Decimal
    expiry_date: Optional[date] = None

    model_config = {"from_attributes": True}


class PurchaseResponse(BaseModel):
    id: int
    supplier_id: Optional[int] = None
    company_name: str
    bill_number: Optional[str] = None
    purchase_date: date
    total_amount: Decimal
    total_gst: Decimal
    grand_total: Decimal
    payment_status: str
    payment_mode: Optional[str] = None
    status: str
    notes: Optional[str] = None
    created_at: datetime
    items: List[PurchaseItemResponse] = []

    model_config = {"from_attributes": True}


class PurchaseHistoryEntry(BaseModel):
    """One purchased line with the bill it arrived on."""

    purchase_id: int
    purchase_date: date
    supplier_id: Optional[int] = None
    company_name: str
    bill_number: Optional[str] = None
    item_id: int
    product_id: Optional[int] = None
    item_name: str
    quantity: Decimal
    unit: str
    rate: Decimal
    amount: Decimal
