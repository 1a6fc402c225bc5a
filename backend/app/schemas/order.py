"""Order schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from app.models.order import OrderSource, OrderStatus, PaymentMethod, PaymentStatus


class OrderItemCreate(BaseModel):
    product_name: str = Field(..., min_length=1, max_length=255)
    product_id: Optional[int] = None
    quantity: Decimal = Field(..., gt=0)
    unit: str = "kg"
    unit_price: Optional[Decimal] = Field(default=None, ge=0)


class OrderCreate(BaseModel):
    """Storefront checkout payload."""

    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: str = Field(..., min_length=5, max_length=50)
    customer_email: Optional[EmailStr] = None
    delivery_address: Optional[str] = None
    delivery_fee: Decimal = Field(default=Decimal("0"), ge=0)
    payment_method: PaymentMethod = PaymentMethod.CASH_ON_DELIVERY
    order_source: OrderSource = OrderSource.SHOWCASE
    notes: Optional[str] = None
    items: List[OrderItemCreate] = Field(..., min_length=1)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    payment_status: Optional[PaymentStatus] = None
    notes: Optional[str] = None


class OrderApprove(BaseModel):
    approved_by: str = Field(..., min_length=1, max_length=255)


class OrderItemResponse(BaseModel):
    id: int
    product_id: Optional[int] = None
    product_name: str
    quantity: Decimal
    unit: str
    unit_price: Decimal
    total_price: Decimal

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    id: int
    order_number: str
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    delivery_address: Optional[str] = None
    subtotal: Decimal
    delivery_fee: Decimal
    total_amount: Decimal
    status: str
    payment_status: str
    payment_method: str
    order_source: str
    notes: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    inventory_deducted: bool
    created_at: datetime
    items: List[OrderItemResponse] = []

    model_config = {"from_attributes": True}
