"""SQLAlchemy declarative base and common utilities."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Numeric, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Quantities are tracked to the gram for kg-denominated spices
Quantity = Numeric(12, 3)
Money = Numeric(12, 2)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class BalanceMixin:
    """Running account totals shared by suppliers and caterers."""

    credit_limit: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)
    balance_due: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)
    total_paid: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)

    def apply_payment(self, amount: Decimal) -> None:
        """Record a payment, never letting the balance go below zero."""
        self.total_paid = (self.total_paid or Decimal("0")) + amount
        self.balance_due = max(Decimal("0"), (self.balance_due or Decimal("0")) - amount)
