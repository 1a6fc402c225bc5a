"""Inventory batch and ledger schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class BatchCreate(BaseModel):
    """Manually receive a batch (outside of a purchase bill)."""

    product_id: int
    supplier_id: Optional[int] = None
    batch_number: Optional[str] = None
    quantity: Decimal = Field(..., gt=0)
    unit_cost: Decimal = Field(default=Decimal("0"), ge=0)
    expiry_date: Optional[date] = None
    purchase_date: Optional[date] = None
    barcode: Optional[str] = None
    notes: Optional[str] = None


class BatchUpdate(BaseModel):
    """Counted quantity correction and metadata edits."""

    quantity: Optional[Decimal] = Field(default=None, ge=0)
    expiry_date: Optional[date] = None
    barcode: Optional[str] = None
    notes: Optional[str] = None


class BatchResponse(BaseModel):
    id: int
    product_id: int
    supplier_id: Optional[int] = None
    purchase_id: Optional[int] = None
    batch_number: str
    quantity: Decimal
    unit_cost: Decimal
    total_value: Decimal
    expiry_date: Optional[date] = None
    purchase_date: date
    status: str
    barcode: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class InventoryTransactionResponse(BaseModel):
    id: int
    ts: datetime
    batch_id: int
    product_id: int
    transaction_type: str
    quantity: Decimal
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class BatchSelectionIn(BaseModel):
    batch_id: int
    quantity: Decimal = Field(..., gt=0)


class ValidationItem(BaseModel):
    product_id: int
    batches: List[BatchSelectionIn]


class ValidationRequest(BaseModel):
    items: List[ValidationItem] = Field(..., min_length=1)


class MatchRequest(BaseModel):
    name: str = Field(..., min_length=1)
    threshold: Optional[float] = Field(default=None, gt=0, le=1)
