"""Walk-in customer bills."""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.models.customer_bill import CustomerBill, CustomerBillItem
from app.models.inventory import ReferenceType
from app.schemas.customer_bill import CustomerBillCreate
from app.services.inventory_deduction_service import (
    MONEY_PLACES,
    BatchSelection,
    DeductionLine,
    InventoryDeductionService,
)
from app.services.numbering import BILL_PREFIX_CUSTOMER, next_document_number

logger = logging.getLogger(__name__)


class CustomerBillService:
    def __init__(self, db: Session, deduction_service: Optional[InventoryDeductionService] = None):
        self.db = db
        self.deductions = deduction_service or InventoryDeductionService(db)

    def create_bill(self, data: CustomerBillCreate) -> Dict[str, Any]:
        """Create the bill and deduct its stock in the caller's transaction.

        Any InventoryDeductionError other than an unmatched name propagates;
        the caller rolls back the bill with it.
        """
        bill_date = data.bill_date or date.today()
        bill_number = data.bill_number or next_document_number(
            self.db, CustomerBill.bill_number, BILL_PREFIX_CUSTOMER, bill_date
        )
        if self.db.query(CustomerBill).filter(CustomerBill.bill_number == bill_number).first():
            raise ValueError(f"Bill number {bill_number} already exists")

        bill = CustomerBill(
            bill_number=bill_number,
            bill_date=bill_date,
            client_name=data.client_name,
            client_mobile=data.client_mobile,
            client_email=data.client_email,
            client_address=data.client_address,
            payment_method=data.payment_method,
            notes=data.notes,
        )

        total = Decimal("0")
        market_total = Decimal("0")
        for item in data.items:
            line_total = (item.quantity * item.price_per_kg).quantize(MONEY_PLACES)
            market_rate = item.market_price_per_kg if item.market_price_per_kg is not None else item.price_per_kg
            total += line_total
            market_total += (item.quantity * market_rate).quantize(MONEY_PLACES)
            bill.items.append(CustomerBillItem(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                unit=item.unit,
                price_per_kg=item.price_per_kg,
                market_price_per_kg=item.market_price_per_kg,
                total=line_total,
            ))

        bill.total_amount = total
        bill.market_total = market_total
        bill.savings = max(Decimal("0"), market_total - total)
        bill.item_count = len(data.items)
        self.db.add(bill)
        self.db.flush()

        lines = [
            DeductionLine(
                item_name=item.product_name,
                quantity=item.quantity,
                unit=item.unit,
                product_id=item.product_id,
                batches=[BatchSelection(batch_id=b.batch_id, quantity=b.quantity) for b in item.batches],
            )
            for item in data.items
        ]
        inventory = self.deductions.deduct_for_bill(lines, ReferenceType.CUSTOMER_BILL, bill.id)

        resolved = {d["item_name"]: d["product_id"] for d in inventory["deductions"]}
        for item in bill.items:
            if item.product_id is None and item.product_name in resolved:
                item.product_id = resolved[item.product_name]

        self.db.flush()
        logger.info(f"Created customer bill {bill_number}: total {total}, {bill.item_count} item(s)")
        return {"bill": bill, "inventory": inventory}
