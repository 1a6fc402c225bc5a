"""Order Service - storefront intake and the admin order lifecycle.

Status flow::

    pending -> confirmed -> processing -> out_for_delivery -> delivered

Any non-terminal order can be cancelled. Skipping forward is allowed (walk-in orders go straight to delivered);
delivered and cancelled are terminal. Entering ``delivered`` runs the
inventory deduction exactly once per order.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.models.order import Order, OrderItem, OrderStatus, PaymentStatus
from app.models.product import Product
from app.schemas.order import OrderCreate
from app.services.inventory_deduction_service import MONEY_PLACES, InventoryDeductionService
from app.services.numbering import ORDER_PREFIX, next_document_number

logger = logging.getLogger(__name__)

_FORWARD = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
]
TERMINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


class InvalidTransitionError(ValueError):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move order from '{current}' to '{requested}'")


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    if current in TERMINAL_STATUSES:
        return False
    if target == OrderStatus.CANCELLED:
        return True
    return _FORWARD.index(target) > _FORWARD.index(current)


class OrderService:
    """Creates orders and moves them through their lifecycle."""

    def __init__(self, db: Session, deduction_service: Optional[InventoryDeductionService] = None):
        self.db = db
        self._deductions = deduction_service

    @property
    def deductions(self) -> InventoryDeductionService:
        if self._deductions is None:
            self._deductions = InventoryDeductionService(self.db)
        return self._deductions

    def create_order(self, data: OrderCreate) -> Order:
        """Price each line and persist a pending order."""
        order = Order(
            order_number=next_document_number(self.db, Order.order_number, ORDER_PREFIX),
            customer_name=data.customer_name,
            customer_phone=data.customer_phone,
            customer_email=data.customer_email,
            delivery_address=data.delivery_address,
            delivery_fee=data.delivery_fee,
            payment_method=data.payment_method.value,
            order_source=data.order_source.value,
            notes=data.notes,
        )

        subtotal = Decimal("0")
        for item in data.items:
            product = self.db.get(Product, item.product_id) if item.product_id else None
            if item.product_id and product is None:
                raise ValueError(f"Product {item.product_id} not found")
            unit_price = item.unit_price if item.unit_price is not None else (product.price if product else None)
            if unit_price is None:
                raise ValueError(f"No price for '{item.product_name}'")

            line_total = (item.quantity * unit_price).quantize(MONEY_PLACES)
            subtotal += line_total
            order.items.append(OrderItem(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                unit=item.unit,
                unit_price=unit_price,
                total_price=line_total,
            ))

        order.subtotal = subtotal
        order.total_amount = subtotal + data.delivery_fee
        self.db.add(order)
        self.db.flush()
        logger.info(f"Order {order.order_number} placed via {order.order_source}: total {order.total_amount}")
        return order

    def update_status(
        self,
        order: Order,
        status: OrderStatus,
        payment_status: Optional[PaymentStatus] = None,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Apply a status change; delivery deducts stock once.

        Deduction problems never block the status change; they come back in
        the ``inventory`` part of the result.
        """
        current = OrderStatus(order.status)
        if status != current and not can_transition(current, status):
            raise InvalidTransitionError(current.value, status.value)

        order.status = status.value
        if payment_status is not None:
            order.payment_status = payment_status.value
        if notes:
            order.notes = notes

        inventory = None
        if status == OrderStatus.DELIVERED and not order.inventory_deducted:
            order.delivered_at = datetime.now(timezone.utc)
            inventory = self.deductions.deduct_for_order(order)
            order.inventory_deducted = True
            if inventory["errors"]:
                logger.error(f"Order {order.order_number} delivered with deduction errors: {inventory['errors']}")

        self.db.flush()
        logger.info(f"Order {order.order_number}: {current.value} -> {status.value}")
        return {"order": order, "inventory": inventory}

    def approve(self, order: Order, approved_by: str) -> Order:
        if order.status != OrderStatus.PENDING.value:
            raise InvalidTransitionError(order.status, OrderStatus.CONFIRMED.value)
        order.status = OrderStatus.CONFIRMED.value
        order.approved_by = approved_by
        order.approved_at = datetime.now(timezone.utc)
        self.db.flush()
        logger.info(f"Order {order.order_number} approved by {approved_by}")
        return order
