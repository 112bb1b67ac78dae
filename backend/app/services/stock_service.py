"""Stock Service - the only place on-hand quantities change.

Stock goes up through receiving (``receive_into_stock``) and manual stock-in,
and down through issuance (``issue_stock``). Each change writes an activity
entry and, for batch-tracked items, a batch record.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.models.inventory import InventoryBatch, InventoryItem
from app.services.activity_service import ActivityAction, log_activity

logger = logging.getLogger(__name__)


class ItemNotFoundError(LookupError):
    """Raised when an inventory item does not exist."""

    def __init__(self, item_id: int):
        self.item_id = item_id
        super().__init__(f"Inventory item {item_id} not found")


class StockQuantityError(ValueError):
    """Raised when a stock quantity is not a valid amount for the operation."""


class InsufficientStockError(Exception):
    """Raised when an issuance asks for more than is on hand."""

    def __init__(self, item_name: str, item_id: int, available: int, requested: int, unit: str):
        self.item_name = item_name
        self.item_id = item_id
        self.available = available
        self.requested = requested
        self.unit = unit
        super().__init__(
            f"Cannot issue {requested} {unit} of '{item_name}'. Only {available} available."
        )


@dataclass
class StockChange:
    """Before/after view of one on-hand update."""

    item_id: int
    item_name: str
    quantity: int
    old_stock: int
    new_stock: int
    unit: str
    batch_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class StockService:
    """Service for incrementing and decrementing on-hand stock."""

    def __init__(self, db: Session):
        self.db = db

    def get_item(self, item_id: int) -> InventoryItem:
        item = self.db.query(InventoryItem).filter(InventoryItem.id == item_id).first()
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    def _record_batch(
        self,
        item: InventoryItem,
        quantity: int,
        batch_number: str,
        lot_number: Optional[str] = None,
        manufacture_date: Optional[date] = None,
        expiry_date: Optional[date] = None,
        unit_cost: Optional[Decimal] = None,
        supplier_id: Optional[int] = None,
    ) -> InventoryBatch:
        batch = InventoryBatch(
            inventory_item_id=item.id,
            batch_number=batch_number,
            lot_number=lot_number,
            manufacture_date=manufacture_date,
            expiry_date=expiry_date,
            quantity_received=quantity,
            quantity_remaining=quantity,
            unit_cost=unit_cost if unit_cost is not None else item.unit_price,
            supplier_id=supplier_id or item.supplier_id,
            received_date=date.today(),
        )
        self.db.add(batch)
        self.db.flush()
        return batch

    # ===== STOCK IN =====

    def receive_into_stock(
        self,
        item_id: int,
        quantity: int,
        user_name: Optional[str] = None,
        batch_number: Optional[str] = None,
        lot_number: Optional[str] = None,
        manufacture_date: Optional[date] = None,
        expiry_date: Optional[date] = None,
        unit_cost: Optional[Decimal] = None,
        supplier_id: Optional[int] = None,
    ) -> StockChange:
        """Add a received quantity to an item's on-hand stock and commit.

        Reads the current on-hand value, increments it by ``quantity`` and
        persists it. Never decrements. Raises on failure after rolling back;
        callers running the receiving workflow treat that as best-effort.
        """
        if quantity < 0:
            raise StockQuantityError("Received quantity cannot be negative")

        try:
            item = self.get_item(item_id)
            old_stock = item.current_stock or 0
            item.current_stock = old_stock + quantity
            item.last_restocked = date.today()

            batch = None
            if item.track_batches and batch_number and quantity > 0:
                batch = self._record_batch(
                    item, quantity, batch_number,
                    lot_number=lot_number,
                    manufacture_date=manufacture_date,
                    expiry_date=expiry_date,
                    unit_cost=unit_cost,
                    supplier_id=supplier_id,
                )

            log_activity(
                self.db, ActivityAction.STOCK_ADDED, item.name, user_name,
                item_id=item.id, quantity=f"{quantity} {item.unit_of_measurement}",
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Stock in: {item.name} {old_stock} -> {item.current_stock} (+{quantity})")
        return StockChange(
            item_id=item.id,
            item_name=item.name,
            quantity=quantity,
            old_stock=old_stock,
            new_stock=item.current_stock,
            unit=item.unit_of_measurement,
            batch_id=batch.id if batch else None,
        )

    def stock_in(
        self,
        item_id: int,
        quantity: int,
        unit_price: Optional[Decimal] = None,
        supplier_id: Optional[int] = None,
        batch_number: Optional[str] = None,
        expiry_date: Optional[date] = None,
        user_name: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> StockChange:
        """Manual stock-in outside a receipt; may also refresh price and supplier."""
        if quantity <= 0:
            raise StockQuantityError("Quantity received must be greater than zero")

        item = self.get_item(item_id)
        if unit_price:
            item.unit_price = unit_price
        if supplier_id:
            item.supplier_id = supplier_id
        change = self.receive_into_stock(
            item_id,
            quantity,
            user_name=user_name,
            batch_number=batch_number,
            expiry_date=expiry_date,
            unit_cost=unit_price,
            supplier_id=supplier_id,
        )
        if notes:
            logger.info(f"Stock in note for {change.item_name}: {notes}")
        return change

    # ===== STOCK OUT =====

    def issue_stock(
        self,
        item_id: int,
        quantity: int,
        issued_to: Optional[str] = None,
        usage_type: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> StockChange:
        """Issue stock for use, refusing to go below zero."""
        if quantity <= 0:
            raise StockQuantityError("Quantity issued must be greater than zero")

        item = self.get_item(item_id)
        old_stock = item.current_stock or 0
        if quantity > old_stock:
            raise InsufficientStockError(item.name, item.id, old_stock, quantity, item.unit_of_measurement)

        item.current_stock = old_stock - quantity
        usage = f" ({usage_type})" if usage_type else ""
        log_activity(
            self.db, ActivityAction.STOCK_USED, item.name, issued_to,
            item_id=item.id, quantity=f"{quantity} {item.unit_of_measurement}{usage}"[:100],
        )
        self.db.commit()

        logger.info(
            f"Stock out: {item.name} {old_stock} -> {item.current_stock} (-{quantity}){usage}"
            f"{f' notes={notes}' if notes else ''}"
        )
        return StockChange(
            item_id=item.id,
            item_name=item.name,
            quantity=quantity,
            old_stock=old_stock,
            new_stock=item.current_stock,
            unit=item.unit_of_measurement,
        )
