"""Caterer billing: distributions, payments and payment reminders."""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.caterer import (
    Caterer,
    CatererPayment,
    Distribution,
    DistributionItem,
    DistributionStatus,
    PaymentReminder,
    ReminderStatus,
)
from app.models.inventory import ReferenceType
from app.schemas.caterer import CatererPaymentCreate, DistributionCreate, ReminderCreate
from app.services.inventory_deduction_service import (
    MONEY_PLACES,
    BatchSelection,
    DeductionLine,
    InventoryDeductionService,
)
from app.services.numbering import BILL_PREFIX_CATERER, next_document_number

logger = logging.getLogger(__name__)


def _status_for(balance_due: Decimal, amount_paid: Decimal) -> str:
    if balance_due <= 0:
        return DistributionStatus.PAID.value
    if amount_paid > 0:
        return DistributionStatus.PARTIAL.value
    return DistributionStatus.ACTIVE.value


class CatererBillingService:
    """Creates caterer bills and keeps caterer balances in step with payments."""

    def __init__(self, db: Session, deduction_service: Optional[InventoryDeductionService] = None):
        self.db = db
        self.deductions = deduction_service or InventoryDeductionService(db)

    # ===== DISTRIBUTIONS =====

    def create_distribution(self, caterer: Caterer, data: DistributionCreate) -> Dict[str, Any]:
        """Create a bill, deduct its stock and update the caterer account.

        Stock deduction is all-or-nothing: any InventoryDeductionError
        propagates and the caller must roll back.
        """
        bill_date = data.distribution_date or date.today()
        bill_number = data.bill_number or next_document_number(
            self.db, Distribution.bill_number, BILL_PREFIX_CATERER, bill_date
        )
        if self.db.query(Distribution).filter(Distribution.bill_number == bill_number).first():
            raise ValueError(f"Bill number {bill_number} already exists")

        distribution = Distribution(
            bill_number=bill_number,
            caterer_id=caterer.id,
            distribution_date=bill_date,
            due_date=data.due_date,
            payment_mode=data.payment_mode,
            notes=data.notes,
        )

        total = Decimal("0")
        total_gst = Decimal("0")
        for item in data.items:
            amount = (item.quantity * item.rate).quantize(MONEY_PLACES)
            gst_amount = (amount * item.gst_percentage / Decimal("100")).quantize(MONEY_PLACES)
            total += amount
            total_gst += gst_amount
            distribution.items.append(DistributionItem(
                product_id=item.product_id,
                item_name=item.item_name,
                quantity=item.quantity,
                unit=item.unit,
                rate=item.rate,
                gst_percentage=item.gst_percentage,
                gst_amount=gst_amount,
                amount=amount,
            ))

        grand_total = total + total_gst
        amount_paid = min(data.amount_paid, grand_total)
        distribution.total_amount = total
        distribution.total_gst = total_gst
        distribution.grand_total = grand_total
        distribution.amount_paid = amount_paid
        distribution.balance_due = grand_total - amount_paid
        distribution.status = _status_for(distribution.balance_due, amount_paid)
        self.db.add(distribution)
        self.db.flush()

        lines = [
            DeductionLine(
                item_name=item.item_name,
                quantity=item.quantity,
                unit=item.unit,
                product_id=item.product_id,
                batches=[BatchSelection(batch_id=b.batch_id, quantity=b.quantity) for b in item.batches],
            )
            for item in data.items
        ]
        inventory = self.deductions.deduct_for_bill(lines, ReferenceType.CATERER_BILL, distribution.id)

        # Back-fill product ids resolved by the matcher
        resolved = {d["item_name"]: d["product_id"] for d in inventory["deductions"]}
        for item in distribution.items:
            if item.product_id is None and item.item_name in resolved:
                item.product_id = resolved[item.item_name]

        caterer.total_billed = (caterer.total_billed or Decimal("0")) + grand_total
        caterer.total_orders = (caterer.total_orders or 0) + 1
        caterer.balance_due = (caterer.balance_due or Decimal("0")) + grand_total

        if amount_paid > 0:
            self.db.add(CatererPayment(
                caterer_id=caterer.id,
                distribution_id=distribution.id,
                amount=amount_paid,
                payment_date=bill_date,
                payment_mode=data.payment_mode or "cash",
                notes=f"Paid at billing ({bill_number})",
            ))
            caterer.apply_payment(amount_paid)

        if distribution.balance_due > 0 and data.due_date:
            self.db.add(PaymentReminder(
                caterer_id=caterer.id,
                distribution_id=distribution.id,
                amount=distribution.balance_due,
                original_due_date=data.due_date,
                reminder_date=data.due_date,
                next_reminder_date=data.due_date + timedelta(days=settings.reminder_interval_days),
                notes=f"Balance on {bill_number}",
            ))

        self.db.flush()
        logger.info(
            f"Created caterer bill {bill_number} for caterer {caterer.id}: "
            f"grand total {grand_total}, paid {amount_paid}"
        )
        return {"distribution": distribution, "inventory": inventory}

    def set_status(self, distribution: Distribution, status: str) -> Distribution:
        distribution.status = status
        if status == DistributionStatus.PAID.value:
            self._resolve_reminders(distribution.id)
        self.db.flush()
        return distribution

    # ===== PAYMENTS =====

    def record_payment(self, caterer: Caterer, data: CatererPaymentCreate) -> CatererPayment:
        """Apply a payment to the caterer and, if given, to one bill."""
        distribution = None
        if data.distribution_id is not None:
            distribution = self.db.get(Distribution, data.distribution_id)
            if distribution is None or distribution.caterer_id != caterer.id:
                raise ValueError("Distribution not found for this caterer")

        payment = CatererPayment(
            caterer_id=caterer.id,
            distribution_id=data.distribution_id,
            amount=data.amount,
            payment_date=data.payment_date or date.today(),
            payment_mode=data.payment_mode,
            notes=data.notes,
        )
        self.db.add(payment)
        caterer.apply_payment(data.amount)

        if distribution is not None:
            distribution.amount_paid = (distribution.amount_paid or Decimal("0")) + data.amount
            distribution.balance_due = max(Decimal("0"), distribution.grand_total - distribution.amount_paid)
            distribution.status = _status_for(distribution.balance_due, distribution.amount_paid)
            if distribution.status == DistributionStatus.PAID.value:
                self._resolve_reminders(distribution.id)
            else:
                for reminder in self._open_reminders(distribution.id):
                    reminder.amount = distribution.balance_due

        self.db.flush()
        logger.info(f"Recorded payment of {data.amount} from caterer {caterer.id}")
        return payment

    # ===== REMINDERS =====

    def _open_reminders(self, distribution_id: int) -> List[PaymentReminder]:
        return self.db.query(PaymentReminder).filter(
            PaymentReminder.distribution_id == distribution_id,
            PaymentReminder.status != ReminderStatus.RESOLVED.value,
        ).all()

    def _resolve_reminders(self, distribution_id: int) -> None:
        for reminder in self._open_reminders(distribution_id):
            reminder.status = ReminderStatus.RESOLVED.value
            reminder.next_reminder_date = None

    def create_reminder(self, data: ReminderCreate) -> PaymentReminder:
        reminder = PaymentReminder(
            caterer_id=data.caterer_id,
            distribution_id=data.distribution_id,
            amount=data.amount,
            original_due_date=data.original_due_date,
            reminder_date=data.reminder_date or data.original_due_date,
            next_reminder_date=(data.reminder_date or data.original_due_date)
            + timedelta(days=settings.reminder_interval_days),
            notes=data.notes,
        )
        self.db.add(reminder)
        self.db.flush()
        return reminder

    def mark_sent(self, reminder: PaymentReminder, today: Optional[date] = None) -> PaymentReminder:
        """Roll a reminder forward after the caterer has been contacted."""
        today = today or date.today()
        reminder.status = ReminderStatus.SENT.value
        reminder.reminder_date = today
        reminder.next_reminder_date = today + timedelta(days=settings.reminder_interval_days)
        self.db.flush()
        return reminder
