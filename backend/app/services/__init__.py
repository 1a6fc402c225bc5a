# Services module

from app.services.product_matcher import (
    ProductMatcher,
    MatcherConfig,
    MatchResult,
    get_product_matcher,
)
from app.services.inventory_deduction_service import (
    InventoryDeductionService,
    BatchSelector,
    LedgerUpdater,
    DeductionLine,
    DeductionPlan,
    InventoryDeductionError,
    InsufficientInventoryError,
    InvalidBatchSelectionError,
    ConcurrentBatchUpdateError,
    PersistenceFailure,
)
from app.services.purchase_service import PurchaseService, PurchaseResult
from app.services.caterer_billing_service import CatererBillingService
from app.services.customer_bill_service import CustomerBillService
from app.services.order_service import OrderService, InvalidTransitionError

__all__ = [
    "ProductMatcher",
    "MatcherConfig",
    "MatchResult",
    "get_product_matcher",
    "InventoryDeductionService",
    "BatchSelector",
    "LedgerUpdater",
    "DeductionLine",
    "DeductionPlan",
    "InventoryDeductionError",
    "InsufficientInventoryError",
    "InvalidBatchSelectionError",
    "ConcurrentBatchUpdateError",
    "PersistenceFailure",
    "PurchaseService",
    "PurchaseResult",
    "CatererBillingService",
    "CustomerBillService",
    "OrderService",
    "InvalidTransitionError",
]
