"""Document number generation for purchase orders, receipts and assets.

Numbers look like ``PO-2026-0007``: prefix, year, and a per-year sequence
one above the highest already stored. When generation fails the caller gets a
timestamp-based fallback such as ``PO482913`` so the business operation can
still proceed.
"""

import logging
import time
from datetime import date
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.equipment import EquipmentAsset
from app.models.order import PurchaseOrder
from app.models.receiving import StockReceipt

logger = logging.getLogger(__name__)

PO_PREFIX = "PO"
RECEIPT_PREFIX = "REC"
ASSET_PREFIX = "AST"


def fallback_number(prefix: str) -> str:
    """Prefix followed by the last six digits of the epoch in milliseconds."""
    return f"{prefix}{str(int(time.time() * 1000))[-6:]}"


def _parse_sequence(number: str, stem: str) -> Optional[int]:
    if not number.startswith(stem):
        return None
    tail = number[len(stem):]
    return int(tail) if tail.isdigit() else None


class NumberingService:
    """Generates sequential document numbers from existing rows."""

    def __init__(self, db: Session, today: Optional[Callable[[], date]] = None):
        self.db = db
        self._today = today or date.today

    def next_number(self, prefix: str, column) -> str:
        """Next ``<prefix>-<year>-<seq>`` for the given unique number column."""
        stem = f"{prefix}-{self._today().year}-"
        existing = self.db.execute(select(column).where(column.like(f"{stem}%"))).scalars().all()
        sequences = [s for s in (_parse_sequence(n, stem) for n in existing) if s is not None]
        return f"{stem}{max(sequences, default=0) + 1:04d}"

    def _generate(self, prefix: str, column) -> str:
        try:
            return self.next_number(prefix, column)
        except Exception as e:
            number = fallback_number(prefix)
            logger.warning(f"{prefix} number generation failed ({e}), using fallback {number}")
            return number

    def generate_po_number(self) -> str:
        return self._generate(PO_PREFIX, PurchaseOrder.po_number)

    def generate_receipt_number(self) -> str:
        return self._generate(RECEIPT_PREFIX, StockReceipt.receipt_number)

    def generate_asset_number(self) -> str:
        return self._generate(ASSET_PREFIX, EquipmentAsset.asset_number)
