"""Discrepancy detection between ordered and received quantities."""

from typing import Any, Iterable


def has_discrepancy(quantity_received: int, quantity_ordered: int) -> bool:
    return quantity_received != quantity_ordered


def discrepancy_count(lines: Iterable[Any]) -> int:
    """Count lines flagged with a discrepancy.

    Accepts ORM rows, schema objects or plain dicts carrying ``has_discrepancy``.
    """
    count = 0
    for line in lines:
        flag = line.get("has_discrepancy") if isinstance(line, dict) else getattr(line, "has_discrepancy", False)
        if flag:
            count += 1
    return count


def discrepancy_message(count: int) -> str:
    if count == 0:
        return "All received quantities match the ordered quantities"
    noun = "item" if count == 1 else "items"
    return f"{count} {noun} with quantity discrepancies"
