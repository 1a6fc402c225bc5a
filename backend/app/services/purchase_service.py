"""Purchase Service - goods received from suppliers.

Recording a purchase:
1. Resolve each line to a product (explicit id, else exact name, else a new
   catalog entry is created for it)
2. Create one active InventoryBatch per line and log a receipt transaction
3. Raise the product's cached stock
4. Update the supplier account: credit purchases add to balance_due, paid
   purchases produce a PendingSupplierPayment that the caller records

Nothing here commits; the route owns the transaction.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.inventory import BatchStatus, InventoryBatch, InventoryTransaction, ReferenceType, TransactionType
from app.models.product import Product
from app.models.purchase import Purchase, PurchaseItem
from app.models.supplier import Supplier, SupplierTransaction, SupplierTransactionType
from app.schemas.purchase import PurchaseCreate
from app.schemas.supplier import SupplierPaymentCreate
from app.services.inventory_deduction_service import (
    MONEY_PLACES,
    LedgerUpdater,
    convert_units,
)

logger = logging.getLogger(__name__)


@dataclass
class PendingSupplierPayment:
    """Payment owed to the vendor ledger for a purchase paid on receipt."""

    supplier_id: int
    purchase_id: int
    amount: Decimal
    transaction_date: date
    payment_mode: Optional[str] = None


@dataclass
class PurchaseResult:
    purchase: Purchase
    pending_payment: Optional[PendingSupplierPayment] = None


def _money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_PLACES)


class PurchaseService:
    """Records supplier bills and the stock they bring in."""

    def __init__(self, db: Session):
        self.db = db
        self.ledger = LedgerUpdater(db)

    def _product_for_line(self, item_name: str, product_id: Optional[int], unit: str, rate: Decimal) -> Product:
        if product_id:
            product = self.db.get(Product, product_id)
            if product is None:
                raise ValueError(f"Product {product_id} not found")
            return product

        product = self.db.query(Product).filter(
            func.lower(Product.name) == item_name.strip().lower()
        ).first()
        if product:
            return product

        product = Product(name=item_name.strip(), unit=unit.lower(), price=rate, stock_quantity=Decimal("0"))
        self.db.add(product)
        self.db.flush()
        logger.info(f"Created product '{product.name}' (id={product.id}) from purchase line")
        return product

    def create_purchase(self, data: PurchaseCreate, supplier: Optional[Supplier] = None) -> PurchaseResult:
        company_name = data.company_name or (supplier.name if supplier else None)
        if not company_name:
            raise ValueError("company_name is required when no supplier is given")

        purchase_date = data.purchase_date or date.today()
        purchase = Purchase(
            supplier_id=supplier.id if supplier else None,
            company_name=company_name,
            bill_number=data.bill_number,
            purchase_date=purchase_date,
            payment_status=data.payment_status,
            payment_mode=data.payment_mode,
            notes=data.notes,
        )
        self.db.add(purchase)
        self.db.flush()

        stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        default_expiry = purchase_date + timedelta(days=settings.default_batch_shelf_life_days)
        total = Decimal("0")
        total_gst = Decimal("0")

        for line in data.items:
            product = self._product_for_line(line.item_name, line.product_id, line.unit, line.rate)
            amount = _money(line.quantity * line.rate)
            gst_amount = _money(amount * line.gst_percentage / Decimal("100"))
            total += amount
            total_gst += gst_amount

            purchase.items.append(PurchaseItem(
                product_id=product.id,
                item_name=line.item_name,
                quantity=line.quantity,
                unit=line.unit,
                rate=line.rate,
                gst_percentage=line.gst_percentage,
                gst_amount=gst_amount,
                amount=amount,
                expiry_date=line.expiry_date,
            ))

            stock_qty = convert_units(line.quantity, line.unit, product.unit, product.name)
            unit_cost = _money(amount / stock_qty) if stock_qty > 0 else Decimal("0")
            batch = InventoryBatch(
                product_id=product.id,
                supplier_id=purchase.supplier_id,
                purchase_id=purchase.id,
                batch_number=f"BATCH-{purchase.id}-{stamp}-{product.id}",
                quantity=stock_qty,
                unit_cost=unit_cost,
                total_value=_money(stock_qty * unit_cost),
                expiry_date=line.expiry_date or default_expiry,
                purchase_date=purchase_date,
                status=BatchStatus.ACTIVE.value,
            )
            self.db.add(batch)
            self.db.flush()
            self.ledger.record_receipt(batch, ReferenceType.PURCHASE, purchase.id)

        purchase.total_amount = total
        purchase.total_gst = total_gst
        purchase.grand_total = total + total_gst

        pending = None
        if supplier is not None:
            if data.payment_status == "credit":
                supplier.balance_due = (supplier.balance_due or Decimal("0")) + purchase.grand_total
                self.db.add(SupplierTransaction(
                    supplier_id=supplier.id,
                    purchase_id=purchase.id,
                    amount=purchase.grand_total,
                    transaction_date=purchase_date,
                    transaction_type=SupplierTransactionType.CREDIT.value,
                    notes=f"Purchase {purchase.bill_number or purchase.id} on credit",
                ))
            else:
                pending = PendingSupplierPayment(
                    supplier_id=supplier.id,
                    purchase_id=purchase.id,
                    amount=purchase.grand_total,
                    transaction_date=purchase_date,
                    payment_mode=data.payment_mode,
                )

        self.db.flush()
        logger.info(
            f"Recorded purchase {purchase.id} from '{company_name}': "
            f"{len(data.items)} line(s), grand total {purchase.grand_total}"
        )
        return PurchaseResult(purchase=purchase, pending_payment=pending)

    def record_pending_payment(self, pending: PendingSupplierPayment) -> SupplierTransaction:
        """Write the vendor ledger entry for a purchase paid on receipt."""
        supplier = self.db.get(Supplier, pending.supplier_id)
        if supplier is None:
            raise ValueError(f"Supplier {pending.supplier_id} not found")
        supplier.total_paid = (supplier.total_paid or Decimal("0")) + pending.amount

        txn = SupplierTransaction(
            supplier_id=pending.supplier_id,
            purchase_id=pending.purchase_id,
            amount=pending.amount,
            transaction_date=pending.transaction_date,
            transaction_type=SupplierTransactionType.PAYMENT.value,
            payment_mode=pending.payment_mode,
            notes=f"Payment for purchase {pending.purchase_id}",
        )
        self.db.add(txn)
        self.db.flush()
        return txn

    def record_supplier_payment(self, supplier: Supplier, data: SupplierPaymentCreate) -> SupplierTransaction:
        """Payment against the supplier's running balance."""
        supplier.apply_payment(data.amount)
        txn = SupplierTransaction(
            supplier_id=supplier.id,
            purchase_id=data.purchase_id,
            amount=data.amount,
            transaction_date=data.transaction_date or date.today(),
            transaction_type=SupplierTransactionType.PAYMENT.value,
            payment_mode=data.payment_mode,
            notes=data.notes,
        )
        self.db.add(txn)
        self.db.flush()
        return txn

    def cancel_purchase(self, purchase: Purchase) -> None:
        """Reverse a purchase whose stock has not been sold yet.

        Batches are zeroed through the ledger rather than deleted, so their
        receipt rows stay valid.
        """
        if purchase.status == "cancelled":
            raise ValueError("Purchase is already cancelled")

        batches = self.db.query(InventoryBatch).filter(InventoryBatch.purchase_id == purchase.id).all()
        batch_ids = [b.id for b in batches]
        if batch_ids:
            consumed = self.db.query(InventoryTransaction).filter(
                InventoryTransaction.batch_id.in_(batch_ids),
                InventoryTransaction.transaction_type == TransactionType.DEDUCTION.value,
            ).count()
            if consumed:
                raise ValueError("Stock from this purchase has already been sold")

        for batch in batches:
            if batch.is_active:
                self.ledger.adjust(batch, Decimal("0"), note=f"Purchase {purchase.id} cancelled")

        if purchase.supplier_id:
            supplier = self.db.get(Supplier, purchase.supplier_id)
            if supplier is not None:
                if purchase.payment_status == "credit":
                    supplier.balance_due = max(Decimal("0"), supplier.balance_due - purchase.grand_total)
                else:
                    supplier.total_paid = max(Decimal("0"), supplier.total_paid - purchase.grand_total)

        purchase.status = "cancelled"
        self.db.flush()
        logger.info(f"Cancelled purchase {purchase.id}")
