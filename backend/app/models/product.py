"""Product catalog models."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, Money, Quantity, TimestampMixin


class Category(Base, TimestampMixin):
    """Product grouping shown on the storefront."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    products: Mapped[list["Product"]] = relationship("Product", back_populates="category")


class Product(Base, TimestampMixin):
    """Product in the catalog."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    category_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    unit: Mapped[str] = mapped_column(String(20), default="kg", nullable=False)  # kg, g, l, pcs
    price: Mapped[Decimal] = mapped_column(Money, default=0, nullable=False)
    market_price: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Cached sum of active batch quantities; written by inventory services only
    stock_quantity: Mapped[Decimal] = mapped_column(Quantity, default=0, nullable=False)
    min_stock: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    category: Mapped[Optional["Category"]] = relationship("Category", back_populates="products")
    batches: Mapped[list["InventoryBatch"]] = relationship("InventoryBatch", back_populates="product")

    @property
    def in_stock(self) -> bool:
        return (self.stock_quantity or 0) > 0

    @property
    def is_low_stock(self) -> bool:
        return self.min_stock is not None and (self.stock_quantity or 0) <= self.min_stock


# Forward references
from app.models.inventory import InventoryBatch
