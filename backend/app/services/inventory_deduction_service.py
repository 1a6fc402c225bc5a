"""Inventory Deduction Service - consumes batch stock when goods leave the shop.

Triggered from two places:
1. An order transitions to ``delivered``.
2. A customer bill or caterer bill (distribution) is created.

Flow per line item:
    a. Resolve the product (explicit product_id, else ProductMatcher on the name)
    b. Convert the line unit to the product unit (g -> kg, ml -> l)
    c. BatchSelector builds a FIFO-by-freshness plan
       (earliest expiry, then earliest purchase date, then lowest id)
    d. LedgerUpdater applies the plan: batch quantity/value/status, one
       InventoryTransaction per batch touched, product stock decrement

Failure policy differs by trigger:
- Order delivery runs each line in its own savepoint. A failing line is rolled
  back and reported; the remaining lines and the status change still go through.
  A shortfall deducts what is available and is reported as a warning.
- Bill creation is all-or-nothing. Explicit batch selections are validated up
  front, a shortfall raises InsufficientInventoryError, and the caller rolls
  back the bill together with every deduction made so far.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import nulls_last
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.models.inventory import (
    BatchStatus,
    InventoryBatch,
    InventoryTransaction,
    ReferenceType,
    TransactionType,
)
from app.models.order import Order
from app.models.product import Product
from app.services.product_matcher import ProductMatcher, get_product_matcher

logger = logging.getLogger(__name__)

QTY_PLACES = Decimal("0.001")
MONEY_PLACES = Decimal("0.01")

# Unit conversion factors (convert TO base unit)
UNIT_CONVERSIONS = {
    # Weight: base unit = g
    "kg": Decimal("1000"),
    "g": Decimal("1"),
    "gm": Decimal("1"),
    "gms": Decimal("1"),
    "mg": Decimal("0.001"),
    "lb": Decimal("453.592"),
    "oz": Decimal("28.3495"),

    # Volume: base unit = ml
    "l": Decimal("1000"),
    "ml": Decimal("1"),

    # Count: base unit = pcs
    "pcs": Decimal("1"),
    "packet": Decimal("1"),
    "pack": Decimal("1"),
}

# Unit type groups (for compatibility checking)
WEIGHT_UNITS = {"kg", "g", "gm", "gms", "mg", "lb", "oz"}
VOLUME_UNITS = {"l", "ml"}
COUNT_UNITS = {"pcs", "packet", "pack"}


class InventoryDeductionError(Exception):
    """Base class for deduction failures."""


class NoMatchFoundError(InventoryDeductionError):
    """No catalog product scored at or above the match threshold."""

    def __init__(self, item_name: str):
        self.item_name = item_name
        super().__init__(f"No product matches '{item_name}'")


class InsufficientInventoryError(InventoryDeductionError):
    """Raised when active batches cannot cover a required quantity."""

    def __init__(self, product_name: str, product_id: int, available: Decimal, needed: Decimal, unit: str):
        self.product_name = product_name
        self.product_id = product_id
        self.available = available
        self.needed = needed
        self.unit = unit
        super().__init__(
            f"Insufficient stock for '{product_name}': need {needed} {unit}, have {available} {unit}"
        )


class UnitConversionError(InventoryDeductionError):
    """Raised when unit conversion between incompatible types is attempted."""

    def __init__(self, from_unit: str, to_unit: str, product_name: str = ""):
        self.from_unit = from_unit
        self.to_unit = to_unit
        self.product_name = product_name
        super().__init__(
            f"Cannot convert '{from_unit}' to '{to_unit}' for product '{product_name}'"
        )


class InvalidBatchSelectionError(InventoryDeductionError):
    """An explicit batch selection failed validation."""

    def __init__(self, batch_id: int, reason: str):
        self.batch_id = batch_id
        self.reason = reason
        super().__init__(f"Batch {batch_id}: {reason}")


class PersistenceFailure(InventoryDeductionError):
    """The store rejected a ledger write; the enclosing transaction must roll back."""


class ConcurrentBatchUpdateError(PersistenceFailure):
    """Another transaction changed the batch between read and write."""

    def __init__(self, batch_id: int):
        self.batch_id = batch_id
        super().__init__(f"Batch {batch_id} was modified concurrently")


@dataclass
class DeductionStep:
    batch_id: int
    quantity: Decimal


@dataclass
class DeductionPlan:
    """Ordered (batch, quantity) pairs covering a required quantity."""

    product_id: int
    required: Decimal
    steps: List[DeductionStep] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((s.quantity for s in self.steps), Decimal("0"))

    @property
    def shortfall(self) -> Decimal:
        return max(Decimal("0"), self.required - self.total)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "required": str(self.required),
            "total": str(self.total),
            "shortfall": str(self.shortfall),
            "steps": [{"batch_id": s.batch_id, "quantity": str(s.quantity)} for s in self.steps],
        }


@dataclass
class BatchSelection:
    """Caller-chosen batch and quantity for a bill line."""

    batch_id: int
    quantity: Decimal


@dataclass
class DeductionLine:
    """One line to deduct: free-text name plus optional explicit overrides."""

    item_name: str
    quantity: Decimal
    unit: Optional[str] = None
    product_id: Optional[int] = None
    batches: List[BatchSelection] = field(default_factory=list)


def _to_decimal(value: Any) -> Decimal:
    return Decimal(str(value))


def get_unit_type(unit: str) -> str:
    """Get the type of unit (weight, volume, count)."""
    unit = unit.lower().strip()
    if unit in WEIGHT_UNITS:
        return "weight"
    if unit in VOLUME_UNITS:
        return "volume"
    if unit in COUNT_UNITS:
        return "count"
    return "unknown"


def convert_units(qty: Decimal, from_unit: str, to_unit: str, product_name: str = "") -> Decimal:
    """Convert quantity between units of the same kind."""
    from_unit = (from_unit or to_unit).lower().strip()
    to_unit = to_unit.lower().strip()

    if from_unit == to_unit:
        return qty

    from_type = get_unit_type(from_unit)
    if from_type == "unknown" or from_type != get_unit_type(to_unit):
        raise UnitConversionError(from_unit, to_unit, product_name)

    base_qty = qty * UNIT_CONVERSIONS[from_unit]
    return (base_qty / UNIT_CONVERSIONS[to_unit]).quantize(QTY_PLACES)


class BatchSelector:
    """Builds FIFO-by-freshness deduction plans over active batches."""

    def __init__(self, db: Session):
        self.db = db

    def active_batches(self, product_id: int) -> List[InventoryBatch]:
        """Active batches with stock, soonest expiry first.

        Batches without an expiry date sort after dated ones.
        """
        return (
            self.db.query(InventoryBatch)
            .filter(
                InventoryBatch.product_id == product_id,
                InventoryBatch.status == BatchStatus.ACTIVE.value,
                InventoryBatch.quantity > 0,
            )
            .order_by(
                nulls_last(InventoryBatch.expiry_date.asc()),
                InventoryBatch.purchase_date.asc(),
                InventoryBatch.id.asc(),
            )
            .all()
        )

    def available_quantity(self, product_id: int) -> Decimal:
        return sum((b.quantity for b in self.active_batches(product_id)), Decimal("0"))

    def plan(self, product_id: int, required_quantity: Decimal) -> DeductionPlan:
        """Greedy walk over active batches until the requirement is met.

        The plan covers at most what is available; any remainder is exposed as
        ``plan.shortfall`` and it is up to the caller whether that is fatal.
        """
        required = _to_decimal(required_quantity)
        plan = DeductionPlan(product_id=product_id, required=required)

        remaining = required
        for batch in self.active_batches(product_id):
            if remaining <= 0:
                break
            take = min(remaining, batch.quantity)
            plan.steps.append(DeductionStep(batch_id=batch.id, quantity=take))
            remaining -= take

        return plan

    def validate(self, product_id: int, selections: List[BatchSelection]) -> List[Dict[str, Any]]:
        """Check explicit selections without touching stock.

        Returns one result dict per selection with ``is_valid`` and ``error``.
        """
        results = []
        for sel in selections:
            required = _to_decimal(sel.quantity)
            batch = self.db.get(InventoryBatch, sel.batch_id)
            error = None
            available = Decimal("0")
            if batch is None:
                error = "Batch not found"
            else:
                available = batch.quantity
                if batch.product_id != product_id:
                    error = "Batch belongs to a different product"
                elif not batch.is_active:
                    error = "Batch is inactive"
                elif required <= 0:
                    error = "Quantity must be positive"
                elif required > batch.quantity:
                    error = f"Insufficient quantity. Available: {batch.quantity}, Required: {required}"
            results.append({
                "batch_id": sel.batch_id,
                "is_valid": error is None,
                "available_quantity": str(available),
                "required_quantity": str(required),
                "error": error,
            })
        return results

    def plan_from_selection(self, product_id: int, selections: List[BatchSelection]) -> DeductionPlan:
        """Turn validated explicit selections into a plan, raising on the first invalid one."""
        for result in self.validate(product_id, selections):
            if not result["is_valid"]:
                raise InvalidBatchSelectionError(result["batch_id"], result["error"])
        steps = [DeductionStep(batch_id=s.batch_id, quantity=_to_decimal(s.quantity)) for s in selections]
        plan = DeductionPlan(product_id=product_id, required=sum((s.quantity for s in steps), Decimal("0")))
        plan.steps = steps
        return plan


class LedgerUpdater:
    """Applies deduction plans and records every batch movement."""

    def __init__(self, db: Session):
        self.db = db

    def apply(
        self,
        plan: DeductionPlan,
        reference_type: ReferenceType,
        reference_id: Optional[int],
        note: Optional[str] = None,
    ) -> List[InventoryTransaction]:
        """Deduct each planned quantity from its batch.

        Batch writes are version-checked; a lost race raises
        ConcurrentBatchUpdateError and nothing from this call is kept once the
        caller rolls back.
        """
        transactions = []
        try:
            for step in plan.steps:
                batch = self.db.get(InventoryBatch, step.batch_id)
                if batch is None:
                    raise PersistenceFailure(f"Batch {step.batch_id} not found")
                if not batch.is_active or step.quantity > batch.quantity:
                    product = batch.product
                    raise InsufficientInventoryError(
                        product.name, product.id, batch.quantity if batch.is_active else Decimal("0"),
                        step.quantity, product.unit,
                    )

                new_qty = (batch.quantity - step.quantity).quantize(QTY_PLACES)
                batch.quantity = new_qty
                batch.total_value = (new_qty * batch.unit_cost).quantize(MONEY_PLACES)
                if new_qty == 0:
                    batch.status = BatchStatus.INACTIVE.value

                txn = InventoryTransaction(
                    batch_id=batch.id,
                    product_id=batch.product_id,
                    transaction_type=TransactionType.DEDUCTION.value,
                    quantity=step.quantity,
                    reference_type=reference_type.value,
                    reference_id=reference_id,
                    notes=note or f"Deducted {step.quantity} from batch {batch.batch_number}",
                )
                self.db.add(txn)
                self.db.flush()
                transactions.append(txn)

            self._decrement_product_stock(plan.product_id, plan.total)
            self.db.flush()
        except StaleDataError as e:
            batch_id = step.batch_id if plan.steps else 0
            logger.warning(f"Concurrent update on batch {batch_id}: {e}")
            raise ConcurrentBatchUpdateError(batch_id) from e
        except SQLAlchemyError as e:
            logger.error(f"Ledger write failed for product {plan.product_id}: {e}", exc_info=True)
            raise PersistenceFailure(str(e)) from e

        return transactions

    def _decrement_product_stock(self, product_id: int, quantity: Decimal) -> None:
        product = self.db.get(Product, product_id)
        if product is None:
            return
        current = product.stock_quantity or Decimal("0")
        product.stock_quantity = max(Decimal("0"), current - quantity)

    def record_receipt(
        self,
        batch: InventoryBatch,
        reference_type: ReferenceType,
        reference_id: Optional[int] = None,
        note: Optional[str] = None,
    ) -> InventoryTransaction:
        """Log a newly received batch and add it to product stock."""
        txn = InventoryTransaction(
            batch_id=batch.id,
            product_id=batch.product_id,
            transaction_type=TransactionType.RECEIPT.value,
            quantity=batch.quantity,
            reference_type=reference_type.value,
            reference_id=reference_id,
            notes=note or f"Received batch {batch.batch_number}",
        )
        self.db.add(txn)
        product = self.db.get(Product, batch.product_id)
        if product is not None:
            product.stock_quantity = (product.stock_quantity or Decimal("0")) + batch.quantity
        return txn

    def adjust(self, batch: InventoryBatch, new_quantity: Decimal, note: Optional[str] = None) -> InventoryTransaction:
        """Set a batch to a counted quantity, logging the delta."""
        if not batch.is_active:
            raise InvalidBatchSelectionError(batch.id, "Batch is inactive")
        new_quantity = _to_decimal(new_quantity).quantize(QTY_PLACES)
        if new_quantity < 0:
            raise InvalidBatchSelectionError(batch.id, "Quantity cannot be negative")

        delta = new_quantity - batch.quantity
        batch.quantity = new_quantity
        batch.total_value = (new_quantity * batch.unit_cost).quantize(MONEY_PLACES)
        if new_quantity == 0:
            batch.status = BatchStatus.INACTIVE.value

        txn = InventoryTransaction(
            batch_id=batch.id,
            product_id=batch.product_id,
            transaction_type=TransactionType.ADJUSTMENT.value,
            quantity=delta,
            reference_type=ReferenceType.MANUAL.value,
            notes=note or f"Adjusted batch {batch.batch_number} to {new_quantity}",
        )
        self.db.add(txn)
        product = self.db.get(Product, batch.product_id)
        if product is not None:
            product.stock_quantity = max(Decimal("0"), (product.stock_quantity or Decimal("0")) + delta)
        return txn


class InventoryDeductionService:
    """Name matching + batch selection + ledger update for sales."""

    def __init__(self, db: Session, matcher: Optional[ProductMatcher] = None):
        self.db = db
        self.matcher = matcher or get_product_matcher()
        self.selector = BatchSelector(db)
        self.ledger = LedgerUpdater(db)

    # ===== RESOLUTION =====

    def resolve_product(self, item_name: str, product_id: Optional[int] = None) -> Tuple[Product, float]:
        """Return (product, match score). An explicit product id scores 1.0."""
        if product_id:
            product = self.db.get(Product, product_id)
            if product is not None:
                return product, 1.0

        candidates = self.db.query(Product).filter(Product.active.is_(True)).order_by(Product.id).all()
        result = self.matcher.best_match(item_name, candidates)
        if result is None:
            raise NoMatchFoundError(item_name)
        return result.product, result.score

    # ===== LINE DEDUCTION =====

    def deduct_line(
        self,
        line: DeductionLine,
        reference_type: ReferenceType,
        reference_id: Optional[int],
        strict: bool = False,
    ) -> Dict[str, Any]:
        """Deduct stock for one line; returns a summary dict.

        With ``strict`` a shortfall raises InsufficientInventoryError before any
        batch is touched.
        """
        if line.batches:
            product = self.db.get(Product, line.product_id) if line.product_id else None
            if product is None:
                product, score = self.resolve_product(line.item_name, line.product_id)
            else:
                score = 1.0
            required = self._check_selection_covers_line(line, product)
            plan = self.selector.plan_from_selection(product.id, line.batches)
        else:
            product, score = self.resolve_product(line.item_name, line.product_id)
            required = convert_units(_to_decimal(line.quantity), line.unit or product.unit, product.unit, product.name)
            plan = self.selector.plan(product.id, required)
            if plan.shortfall > 0 and strict:
                raise InsufficientInventoryError(product.name, product.id, plan.total, required, product.unit)

        if plan.shortfall > 0:
            logger.warning(
                f"Shortfall for '{product.name}' ({reference_type.value} {reference_id}): "
                f"needed {required} {product.unit}, deducting {plan.total}"
            )

        note = f"{reference_type.value.replace('_', ' ').title()} #{reference_id}: {line.item_name}"
        self.ledger.apply(plan, reference_type, reference_id, note=note)
        logger.info(
            f"Deducted {plan.total} {product.unit} of '{product.name}' across {len(plan.steps)} batch(es) "
            f"for {reference_type.value} {reference_id}"
        )

        return {
            "item_name": line.item_name,
            "product_id": product.id,
            "product_name": product.name,
            "match_score": round(score, 4),
            "required": str(required),
            "deducted": str(plan.total),
            "shortfall": str(plan.shortfall),
            "unit": product.unit,
            "batches": [{"batch_id": s.batch_id, "quantity": str(s.quantity)} for s in plan.steps],
        }

    # ===== TRIGGERS =====

    def deduct_for_order(self, order: Order) -> Dict[str, Any]:
        """Deduct stock for a delivered order, continuing past failing lines.

        Each line runs inside its own savepoint so one bad line cannot leave
        partial state behind for the others. Nothing is committed here.
        """
        results = {
            "success": True,
            "deductions": [],
            "errors": [],
            "warnings": [],
        }

        for item in order.items:
            line = DeductionLine(
                item_name=item.product_name,
                quantity=item.quantity,
                unit=item.unit,
                product_id=item.product_id,
            )
            savepoint = self.db.begin_nested()
            try:
                outcome = self.deduct_line(line, ReferenceType.ORDER_DELIVERY, order.id)
                savepoint.commit()
            except (NoMatchFoundError, UnitConversionError) as e:
                savepoint.rollback()
                logger.info(f"Order {order.order_number}: skipping '{item.product_name}': {e}")
                results["warnings"].append({"item": item.product_name, "warning": str(e)})
                continue
            except (InventoryDeductionError, SQLAlchemyError) as e:
                savepoint.rollback()
                logger.error(f"Order {order.order_number}: deduction failed for '{item.product_name}': {e}")
                results["errors"].append({"item": item.product_name, "error": str(e)})
                results["success"] = False
                continue

            results["deductions"].append(outcome)
            if Decimal(outcome["shortfall"]) > 0:
                results["warnings"].append({
                    "item": item.product_name,
                    "warning": f"Shortfall of {outcome['shortfall']} {outcome['unit']} for '{outcome['product_name']}'",
                })

        return results

    def validate_lines(self, lines: List[DeductionLine]) -> None:
        """Validate every explicit selection before any stock moves."""
        for line in lines:
            if not line.batches:
                continue
            if line.product_id is None:
                raise InvalidBatchSelectionError(line.batches[0].batch_id, "product_id is required with batches")
            product = self.db.get(Product, line.product_id)
            if product is None:
                raise InvalidBatchSelectionError(line.batches[0].batch_id, "Product not found")
            for result in self.selector.validate(line.product_id, line.batches):
                if not result["is_valid"]:
                    raise InvalidBatchSelectionError(result["batch_id"], result["error"])
            self._check_selection_covers_line(line, product)

    def _check_selection_covers_line(self, line: DeductionLine, product: Product) -> Decimal:
        """Selected batch quantities must add up to the line quantity in the product unit."""
        required = convert_units(_to_decimal(line.quantity), line.unit or product.unit, product.unit, product.name)
        selected = sum((_to_decimal(s.quantity) for s in line.batches), Decimal("0"))
        if selected != required:
            raise InvalidBatchSelectionError(
                line.batches[0].batch_id,
                f"Selected {selected} {product.unit} does not match billed {required} {product.unit}",
            )
        return required

    def deduct_for_bill(
        self,
        lines: List[DeductionLine],
        reference_type: ReferenceType,
        reference_id: int,
    ) -> Dict[str, Any]:
        """All-or-nothing deduction for a customer or caterer bill.

        Unmatched names are skipped with a warning. Every other failure
        propagates so the caller can roll back the bill.
        """
        self.validate_lines(lines)

        results = {"success": True, "deductions": [], "warnings": []}
        for line in lines:
            try:
                outcome = self.deduct_line(line, reference_type, reference_id, strict=True)
            except NoMatchFoundError as e:
                logger.info(f"{reference_type.value} {reference_id}: skipping '{line.item_name}': {e}")
                results["warnings"].append({"item": line.item_name, "warning": str(e)})
                continue
            results["deductions"].append(outcome)
        return results


def get_inventory_deduction_service(db: Session) -> InventoryDeductionService:
    """Factory function to get inventory deduction service."""
    return InventoryDeductionService(db)


def expiring_batches(db: Session, within_days: int, today: Optional[date] = None) -> List[InventoryBatch]:
    """Active batches expiring within the given window (including already expired)."""
    today = today or date.today()
    cutoff = today + timedelta(days=within_days)
    return (
        db.query(InventoryBatch)
        .filter(
            InventoryBatch.status == BatchStatus.ACTIVE.value,
            InventoryBatch.expiry_date.isnot(None),
            InventoryBatch.expiry_date <= cutoff,
        )
        .order_by(InventoryBatch.expiry_date.asc())
        .all()
    )
