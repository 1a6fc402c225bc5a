"""Product and category schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryResponse(CategoryCreate):
    id: int

    model_config = {"from_attributes": True}


class ProductBase(BaseModel):
    """Base product schema."""

    name: str = Field(..., min_length=1, max_length=255)
    category_id: Optional[int] = None
    unit: str = "kg"
    price: Decimal = Field(default=Decimal("0"), ge=0)
    market_price: Optional[Decimal] = Field(default=None, ge=0)
    description: Optional[str] = None
    min_stock: Optional[Decimal] = Field(default=None, ge=0)
    active: bool = True


class ProductCreate(ProductBase):
    """Product creation schema."""

    pass


class ProductUpdate(BaseModel):
    """Product update schema. Stock is not editable here."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    category_id: Optional[int] = None
    unit: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    market_price: Optional[Decimal] = Field(default=None, ge=0)
    description: Optional[str] = None
    min_stock: Optional[Decimal] = Field(default=None, ge=0)
    active: Optional[bool] = None


class ProductResponse(ProductBase):
    """Product response schema."""

    id: int
    stock_quantity: Decimal
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PublicProductResponse(BaseModel):
    """Storefront view of a product; no cost or stock figures."""

    id: int
    name: str
    category_id: Optional[int] = None
    unit: str
    price: Decimal
    market_price: Optional[Decimal] = None
    description: Optional[str] = None
    in_stock: bool

    model_config = {"from_attributes": True}


class StockAdjustment(BaseModel):
    """Set the cached stock figure after a physical count."""

    stock_quantity: Decimal = Field(..., ge=0)
    reason: Optional[str] = None
