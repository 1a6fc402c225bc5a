"""Translate service-layer errors into HTTP responses."""

import logging

from fastapi import HTTPException, status

from app.services.inventory_deduction_service import (
    ConcurrentBatchUpdateError,
    InsufficientInventoryError,
    InvalidBatchSelectionError,
    InventoryDeductionError,
    PersistenceFailure,
)

logger = logging.getLogger(__name__)

_CONFLICTS = (InsufficientInventoryError, InvalidBatchSelectionError, ConcurrentBatchUpdateError)


def deduction_http_error(exc: InventoryDeductionError) -> HTTPException:
    """409 for stock conflicts, 500 for storage failures, 400 otherwise."""
    if isinstance(exc, _CONFLICTS):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, PersistenceFailure):
        logger.error(f"Inventory persistence failure: {exc}")
        return HTTPException(status_code=500, detail="Failed to update inventory")
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def not_found(entity: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{entity} not found")
