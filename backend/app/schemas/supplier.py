"""Supplier schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from app.models.supplier import SupplierTransactionType


class SupplierBase(BaseModel):
    """Base supplier schema."""

    name: str = Field(..., min_length=1, max_length=255)
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    address: Optional[str] = None
    gst_number: Optional[str] = None
    credit_limit: Decimal = Field(default=Decimal("0"), ge=0)
    notes: Optional[str] = None


class SupplierCreate(SupplierBase):
    """Supplier creation schema."""

    pass


class SupplierUpdate(BaseModel):
    """Supplier update schema."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    address: Optional[str] = None
    gst_number: Optional[str] = None
    credit_limit: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = None
    active: Optional[bool] = None


class SupplierResponse(SupplierBase):
    """Supplier response schema."""

    id: int
    balance_due: Decimal
    total_paid: Decimal
    active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SupplierPaymentCreate(BaseModel):
    """Payment made to a supplier."""

    amount: Decimal = Field(..., gt=0)
    transaction_date: Optional[date] = None
    payment_mode: Optional[str] = "cash"
    purchase_id: Optional[int] = None
    notes: Optional[str] = None


class SupplierTransactionResponse(BaseModel):
    id: int
    supplier_id: int
    purchase_id: Optional[int] = None
    amount: Decimal
    transaction_date: date
    transaction_type: SupplierTransactionType
    payment_mode: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
