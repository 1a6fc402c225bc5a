"""API routes."""

from fastapi import APIRouter

from app.api.routes import (
    caterer_payments,
    caterers,
    categories,
    customer_bills,
    distributions,
    inventory,
    orders,
    products,
    purchases,
    reminders,
    storefront,
    suppliers,
)

api_router = APIRouter()

# Back office
api_router.include_router(suppliers.router, prefix="/suppliers", tags=["suppliers"])
api_router.include_router(categories.router, prefix="/categories", tags=["catalog"])
api_router.include_router(products.router, prefix="/products", tags=["catalog", "stock"])
api_router.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
api_router.include_router(purchases.router, prefix="/purchases", tags=["purchases"])

# Caterer accounts
api_router.include_router(caterers.router, prefix="/caterers", tags=["caterers"])
api_router.include_router(distributions.router, prefix="/distributions", tags=["caterers", "billing"])
api_router.include_router(caterer_payments.router, prefix="/caterer-payments", tags=["caterers", "payments"])
api_router.include_router(reminders.router, prefix="/payment-reminders", tags=["caterers", "reminders"])

# Sales
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(customer_bills.router, prefix="/customer-bills", tags=["billing"])

# Public storefront (no auth)
api_router.include_router(storefront.router, prefix="/storefront", tags=["storefront"])
