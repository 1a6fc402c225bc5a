"""Supplier and vendor ledger models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, BalanceMixin, Money, TimestampMixin


class SupplierTransactionType(str, Enum):
    """Direction of a vendor ledger entry."""

    PAYMENT = "payment"  # Money paid to the supplier
    CREDIT = "credit"  # Goods taken on credit


class Supplier(Base, TimestampMixin, BalanceMixin):
    """Vendor we buy spices from."""

    __tablename__ = "suppliers"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    contact_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    gst_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    batches: Mapped[list["InventoryBatch"]] = relationship("InventoryBatch", back_populates="supplier")
    purchases: Mapped[list["Purchase"]] = relationship("Purchase", back_populates="supplier")
    transactions: Mapped[list["SupplierTransaction"]] = relationship(
        "SupplierTransaction", back_populates="supplier", order_by="SupplierTransaction.id"
    )


class SupplierTransaction(Base, TimestampMixin):
    """Vendor ledger entry: a payment made or credit taken."""

    __tablename__ = "supplier_transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    supplier_id: Mapped[int] = mapped_column(Integer, ForeignKey("suppliers.id"), nullable=False, index=True)
    purchase_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("purchases.id", ondelete="SET NULL"), nullable=True, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(20), nullable=False)  # payment, credit
    payment_mode: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    supplier: Mapped["Supplier"] = relationship("Supplier", back_populates="transactions")


# Forward references
from app.models.inventory import InventoryBatch
from app.models.purchase import Purchase
