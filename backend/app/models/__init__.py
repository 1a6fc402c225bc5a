"""SQLAlchemy models."""

from app.models.supplier import Supplier, SupplierTransaction, SupplierTransactionType
from app.models.product import Category, Product
from app.models.inventory import (
    InventoryBatch,
    InventoryTransaction,
    BatchStatus,
    TransactionType,
    ReferenceType,
)
from app.models.purchase import Purchase, PurchaseItem
from app.models.caterer import (
    Caterer,
    Distribution,
    DistributionItem,
    CatererPayment,
    PaymentReminder,
    DistributionStatus,
    ReminderStatus,
)
from app.models.order import Order, OrderItem, OrderStatus, PaymentStatus, PaymentMethod, OrderSource
from app.models.customer_bill import CustomerBill, CustomerBillItem

__all__ = [
    "Supplier",
    "SupplierTransaction",
    "SupplierTransactionType",
    "Category",
    "Product",
    "InventoryBatch",
    "InventoryTransaction",
    "BatchStatus",
    "TransactionType",
    "ReferenceType",
    "Purchase",
    "PurchaseItem",
    "Caterer",
    "Distribution",
    "DistributionItem",
    "CatererPayment",
    "PaymentReminder",
    "DistributionStatus",
    "ReminderStatus",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "PaymentMethod",
    "OrderSource",
    "CustomerBill",
    "CustomerBillItem",
]
