"""Caterer accounts, billing (distributions), payments and reminders."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, BalanceMixin, Money, Quantity, TimestampMixin


class DistributionStatus(str, Enum):
    ACTIVE = "active"  # Nothing paid yet
    PARTIAL = "partial"
    PAID = "paid"


class ReminderStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    RESOLVED = "resolved"


class Caterer(Base, TimestampMixin, BalanceMixin):
    """Wholesale customer billed on account."""

    __tablename__ = "caterers"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    contact_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    gst_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    total_billed: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)
    total_orders: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    distributions: Mapped[list["Distribution"]] = relationship("Distribution", back_populates="caterer")
    payments: Mapped[list["CatererPayment"]] = relationship("CatererPayment", back_populates="caterer")


class Distribution(Base, TimestampMixin):
    """Bill issued to a caterer."""

    __tablename__ = "distributions"

    id: Mapped[int] = mapped_column(primary_key=True)
    bill_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    caterer_id: Mapped[int] = mapped_column(
        ForeignKey("caterers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    distribution_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)
    total_gst: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)
    grand_total: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)
    balance_due: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)
    payment_mode: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=DistributionStatus.ACTIVE.value, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    caterer: Mapped["Caterer"] = relationship("Caterer", back_populates="distributions")
    items: Mapped[list["DistributionItem"]] = relationship(
        "DistributionItem", back_populates="distribution", cascade="all, delete-orphan",
        order_by="DistributionItem.id",
    )
    reminders: Mapped[list["PaymentReminder"]] = relationship("PaymentReminder", back_populates="distribution")


class DistributionItem(Base):
    """Line on a caterer bill."""

    __tablename__ = "distribution_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    distribution_id: Mapped[int] = mapped_column(
        ForeignKey("distributions.id", ondelete="CASCADE"), nullable=False, index=True
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

    distribution: Mapped["Distribution"] = relationship("Distribution", back_populates="items")


class CatererPayment(Base, TimestampMixin):
    """Money received from a caterer, optionally against one bill."""

    __tablename__ = "caterer_payments"

    id: Mapped[int] = mapped_column(primary_key=True)
    caterer_id: Mapped[int] = mapped_column(
        ForeignKey("caterers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    distribution_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("distributions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_mode: Mapped[str] = mapped_column(String(50), default="cash", nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    caterer: Mapped["Caterer"] = relationship("Caterer", back_populates="payments")


class PaymentReminder(Base, TimestampMixin):
    """Follow-up for an outstanding caterer balance."""

    __tablename__ = "payment_reminders"

    id: Mapped[int] = mapped_column(primary_key=True)
    caterer_id: Mapped[int] = mapped_column(
        ForeignKey("caterers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    distribution_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("distributions.id", ondelete="CASCADE"), nullable=True, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    original_due_date: Mapped[date] = mapped_column(Date, nullable=False)
    reminder_date: Mapped[date] = mapped_column(Date, nullable=False)
    next_reminder_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=ReminderStatus.PENDING.value, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    caterer: Mapped["Caterer"] = relationship("Caterer")
    distribution: Mapped[Optional["Distribution"]] = relationship("Distribution", back_populates="reminders")

    def computed_status(self, today: date) -> str:
        """Urgency label shown on the reminders board."""
        if self.status == ReminderStatus.RESOLVED.value:
            return "resolved"
        if self.original_due_date < today:
            return "overdue"
        if self.original_due_date == today:
            return "due_today"
        if self.reminder_date <= today:
            return "pending"
        return "upcoming"
