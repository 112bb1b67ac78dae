"""API response helpers.

List endpoints return a consistent envelope:
    {"items": [...], "total": <int>}

Single-item endpoints return the object directly (no wrapper).
"""

from typing import Iterable, Optional, Type

from pydantic import BaseModel


def list_response(
    items: Iterable,
    total: Optional[int] = None,
    schema: Optional[Type[BaseModel]] = None,
) -> dict:
    """Wrap a list in the standard envelope.

    Args:
        items: ORM rows or already serialized items.
        total: Total count (defaults to len(items) when the full list is returned).
        schema: Response schema used to serialize ORM rows.

    Returns:
        {"items": items, "total": total}
    """
    if schema is not None:
        items = [schema.model_validate(item) for item in items]
    else:
        items = list(items)
    return {
        "items": items,
        "total": total if total is not None else len(items),
    }
