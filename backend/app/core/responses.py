"""Standardized API response helpers.

List endpoints return ``{"items": [...], "total": <int>}``; paginated ones add
``skip``, ``limit`` and ``has_more``. Single-item endpoints return the object
directly.
"""

from typing import Optional

from pydantic import BaseModel


def _dump(items: list, schema: Optional[type[BaseModel]]) -> list:
    if schema is None:
        return items
    return [schema.model_validate(item).model_dump(mode="json") for item in items]


def list_response(
    items: list,
    total: Optional[int] = None,
    schema: Optional[type[BaseModel]] = None,
) -> dict:
    """Wrap a list in the standard envelope, serializing ORM rows through *schema*."""
    return {
        "items": _dump(items, schema),
        "total": total if total is not None else len(items),
    }


def paginated_response(
    items: list,
    total: int,
    skip: int = 0,
    limit: int = 50,
    schema: Optional[type[BaseModel]] = None,
) -> dict:
    """Wrap a page of results in the standard envelope."""
    return {
        "items": _dump(items, schema),
        "total": total,
        "skip": skip,
        "limit": limit,
        "has_more": (skip + len(items)) < total,
    }


def paginate_query(query, skip: int = 0, limit: int = 50):
    """Apply offset pagination to a SQLAlchemy query.

    Returns:
        Tuple of (page items, total count before pagination)
    """
    total = query.count()
    items = query.offset(skip).limit(limit).all()
    return items, total
