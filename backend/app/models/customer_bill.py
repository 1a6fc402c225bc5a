"""Walk-in customer bill models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, Money, Quantity, TimestampMixin


class CustomerBill(Base, TimestampMixin):
    """Counter sale to a retail customer."""

    __tablename__ = "customer_bills"

    id: Mapped[int] = mapped_column(primary_key=True)
    bill_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    bill_date: Mapped[date] = mapped_column(Date, nullable=False)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_mobile: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    client_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    client_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    total_amount: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)
    market_total: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)
    savings: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)
    item_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(30), default="cash", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="paid", nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    items: Mapped[list["CustomerBillItem"]] = relationship(
        "CustomerBillItem", back_populates="bill", cascade="all, delete-orphan", order_by="CustomerBillItem.id"
    )


class CustomerBillItem(Base):
    """Line on a customer bill."""

    __tablename__ = "customer_bill_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    bill_id: Mapped[int] = mapped_column(
        ForeignKey("customer_bills.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True
    )
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Quantity, nullable=False)
    unit: Mapped[str] = mapped_column(String(20), default="kg", nullable=False)
    price_per_kg: Mapped[Decimal] = mapped_column(Money, nullable=False)
    market_price_per_kg: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    total: Mapped[Decimal] = mapped_column(Money, nullable=False)

    bill: Mapped["CustomerBill"] = relationship("CustomerBill", back_populates="items")
