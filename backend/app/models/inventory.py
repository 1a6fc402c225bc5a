"""Batch inventory models: InventoryBatch and InventoryTransaction."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, Money, Quantity, TimestampMixin


class BatchStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"  # Fully consumed; never reactivated


class TransactionType(str, Enum):
    """Kinds of inventory ledger rows."""

    DEDUCTION = "deduction"  # Stock consumed by a sale
    RECEIPT = "receipt"  # Goods received into a batch
    ADJUSTMENT = "adjustment"  # Manual correction


class ReferenceType(str, Enum):
    """What caused an inventory ledger row."""

    ORDER_DELIVERY = "order_delivery"
    CUSTOMER_BILL = "customer_bill"
    CATERER_BILL = "caterer_bill"
    PURCHASE = "purchase"
    MANUAL = "manual"


class InventoryBatch(Base, TimestampMixin):
    """A received lot of one product with its own cost and expiry."""

    __tablename__ = "inventory_batches"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_batch_quantity_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    supplier_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True, index=True
    )
    purchase_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("purchases.id", ondelete="SET NULL"), nullable=True, index=True
    )
    batch_number: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    quantity: Mapped[Decimal] = mapped_column(Quantity, nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)
    total_value: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)
    expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True, index=True)
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=BatchStatus.ACTIVE.value, nullable=False, index=True)
    barcode: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    # Optimistic lock: every flush is UPDATE ... WHERE id = ? AND version = ?
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    product: Mapped["Product"] = relationship("Product", back_populates="batches")
    supplier: Mapped[Optional["Supplier"]] = relationship("Supplier", back_populates="batches")
    transactions: Mapped[list["InventoryTransaction"]] = relationship(
        "InventoryTransaction", back_populates="batch", order_by="InventoryTransaction.id"
    )

    @property
    def is_active(self) -> bool:
        return self.status == BatchStatus.ACTIVE.value


class InventoryTransaction(Base):
    """Append-only ledger of batch quantity changes."""

    __tablename__ = "inventory_transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    ts: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    batch_id: Mapped[int] = mapped_column(
        ForeignKey("inventory_batches.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    transaction_type: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Quantity, nullable=False)
    reference_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    reference_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    batch: Mapped["InventoryBatch"] = relationship("InventoryBatch", back_populates="transactions")


# Forward references
from app.models.product import Product
from app.models.supplier import Supplier
