"""Customer bill schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from app.schemas.inventory import BatchSelectionIn


class CustomerBillItemCreate(BaseModel):
    product_name: str = Field(..., min_length=1, max_length=255)
    product_id: Optional[int] = None
    quantity: Decimal = Field(..., gt=0)
    unit: str = "kg"
    price_per_kg: Decimal = Field(..., ge=0)
    market_price_per_kg: Optional[Decimal] = Field(default=None, ge=0)
    batches: List[BatchSelectionIn] = []


class CustomerBillCreate(BaseModel):
    bill_number: Optional[str] = None
    bill_date: Optional[date] = None
    client_name: str = Field(..., min_length=1, max_length=255)
    client_mobile: Optional[str] = None
    client_email: Optional[EmailStr] = None
    client_address: Optional[str] = None
    payment_method: str = "cash"
    notes: Optional[str] = None
    items: List[CustomerBillItemCreate] = Field(..., min_length=1)


class CustomerBillItemResponse(BaseModel):
    id: int
    product_id: Optional[int] = None
    product_name: str
    quantity: Decimal
    unit: str
    price_per_kg: Decimal
    market_price_per_kg: Optional[Decimal] = None
    total: Decimal

    model_config = {"from_attributes": True}


class CustomerBillResponse(BaseModel):
    id: int
    bill_number: str
    bill_date: date
    client_name: str
    client_mobile: Optional[str] = None
    client_email: Optional[str] = None
    client_address: Optional[str] = None
    total_amount: Decimal
    market_total: Decimal
    savings: Decimal
    item_count: int
    payment_method: str
    status: str
    notes: Optional[str] = None
    created_at: datetime
    items: List[CustomerBillItemResponse] = []

    model_config = {"from_attributes": True}
