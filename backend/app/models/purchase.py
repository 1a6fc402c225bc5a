"""Purchase (goods received) models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, Money, Quantity, TimestampMixin


class Purchase(Base, TimestampMixin):
    """A supplier bill for goods received into stock."""

    __tablename__ = "purchases"

    id: Mapped[int] = mapped_column(primary_key=True)
    supplier_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True, index=True
    )
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    bill_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)
    total_gst: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)
    grand_total: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)
    payment_status: Mapped[str] = mapped_column(String(20), default="credit", nullable=False)  # paid, credit
    payment_mode: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="received", nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    supplier: Mapped[Optional["Supplier"]] = relationship("Supplier", back_populates="purchases")
    items: Mapped[list["PurchaseItem"]] = relationship(
        "PurchaseItem", back_populates="purchase", cascade="all, delete-orphan", order_by="PurchaseItem.id"
    )


class PurchaseItem(Base):
    """Line on a supplier bill."""

    __tablename__ = "purchase_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    purchase_id: Mapped[int] = mapped_column(
        ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True
    )
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Quantity, nullable=False)
    unit: Mapped[str] = mapped_column(String(20), default="kg", nullable=False)
    rate: Mapped[Decimal] = mapped_column(Money, nullable=False)
    gst_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=0, nullable=False)
    gst_amount: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    purchase: Mapped["Purchase"] = relationship("Purchase", back_populates="items")


# Forward references
from app.models.supplier import Supplier
