"""Caterer, distribution, payment and reminder schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from app.schemas.inventory import BatchSelectionIn


class CatererBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    gst_number: Optional[str] = None
    credit_limit: Decimal = Field(default=Decimal("0"), ge=0)


class CatererCreate(CatererBase):
    pass


class CatererUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    gst_number: Optional[str] = None
    credit_limit: Optional[Decimal] = Field(default=None, ge=0)
    active: Optional[bool] = None


class CatererResponse(CatererBase):
    id: int
    balance_due: Decimal
    total_billed: Decimal
    total_paid: Decimal
    total_orders: int
    active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class DistributionItemCreate(BaseModel):
    item_name: str = Field(..., min_length=1, max_length=255)
    product_id: Optional[int] = None
    quantity: Decimal = Field(..., gt=0)
    unit: str = "kg"
    rate: Decimal = Field(..., ge=0)
    gst_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    batches: List[BatchSelectionIn] = []


class DistributionCreate(BaseModel):
    caterer_id: int
    bill_number: Optional[str] = None
    distribution_date: Optional[date] = None
    due_date: Optional[date] = None
    amount_paid: Decimal = Field(default=Decimal("0"), ge=0)
    payment_mode: Optional[str] = None
    notes: Optional[str] = None
    items: List[DistributionItemCreate] = Field(..., min_length=1)


class DistributionItemResponse(BaseModel):
    id: int
    product_id: Optional[int] = None
    item_name: str
    quantity: Decimal
    unit: str
    rate: Decimal
    gst_percentage: Decimal
    gst_amount: Decimal
    amount: Decimal

    model_config = {"from_attributes": True}


class DistributionResponse(BaseModel):
    id: int
    bill_number: str
    caterer_id: int
    distribution_date: date
    total_amount: Decimal
    total_gst: Decimal
    grand_total: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    payment_mode: Optional[str] = None
    due_date: Optional[date] = None
    status: str
    notes: Optional[str] = None
    created_at: datetime
    items: List[DistributionItemResponse] = []

    model_config = {"from_attributes": True}


class DistributionStatusUpdate(BaseModel):
    status: Literal["active", "partial", "paid"]


class CatererPaymentCreate(BaseModel):
    caterer_id: int
    distribution_id: Optional[int] = None
    amount: Decimal = Field(..., gt=0)
    payment_date: Optional[date] = None
    payment_mode: str = "cash"
    notes: Optional[str] = None


class CatererPaymentResponse(BaseModel):
    id: int
    caterer_id: int
    distribution_id: Optional[int] = None
    amount: Decimal
    payment_date: date
    payment_mode: str
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ReminderCreate(BaseModel):
    caterer_id: int
    distribution_id: Optional[int] = None
    amount: Decimal = Field(..., gt=0)
    original_due_date: date
    reminder_date: Optional[date] = None
    notes: Optional[str] = None


class ReminderUpdate(BaseModel):
    reminder_date: Optional[date] = None
    next_reminder_date: Optional[date] = None
    status: Optional[Literal["pending", "sent", "resolved"]] = None
    notes: Optional[str] = None


class ReminderResponse(BaseModel):
    id: int
    caterer_id: int
    distribution_id: Optional[int] = None
    amount: Decimal
    original_due_date: date
    reminder_date: date
    next_reminder_date: Optional[date] = None
    status: str
    is_read: bool
    notes: Optional[str] = None

    model_config = {"from_attributes": True}
