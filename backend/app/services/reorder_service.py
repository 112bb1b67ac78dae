"""Reorder service: replenishment orders for items left at or below minimum.

Flow, run once per received line after its stock update:
1. Skip unless auto-reorder is enabled in the configuration snapshot.
2. Skip if the new on-hand quantity is above the item's minimum.
3. Skip if an open purchase order (not received or cancelled) already
   includes the item.
4. Size the order to restock to the maximum, or fall back to twice the
   minimum when no usable maximum is configured.
5. Create a pending purchase order with a single line, if the item has a
   supplier.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.inventory import InventoryItem
from app.models.order import POStatus, PurchaseOrder, PurchaseOrderItem, TERMINAL_PO_STATUSES
from app.services.activity_service import ActivityAction, log_activity
from app.services.numbering_service import NumberingService
from app.services.system_config_service import ReorderSettings

logger = logging.getLogger(__name__)


def reorder_quantity(on_hand: int, minimum_stock: Optional[int], maximum_stock: Optional[int]) -> int:
    """Quantity needed to restock an item.

    >>> reorder_quantity(3, 10, 50)
    47
    >>> reorder_quantity(1, 4, None)
    8
    >>> reorder_quantity(0, 0, None)
    2
    """
    if maximum_stock and maximum_stock > on_hand:
        return maximum_stock - on_hand
    return (minimum_stock or 1) * 2


@dataclass
class ReorderOutcome:
    """What the evaluator decided for one item."""

    item_id: int
    item_name: str
    new_on_hand: int
    action: str  # disabled, above_minimum, already_covered, no_supplier, created
    purchase_order_id: Optional[int] = None
    po_number: Optional[str] = None
    quantity: int = 0

    @property
    def created(self) -> bool:
        return self.action == "created"

    @property
    def notification(self) -> Optional[str]:
        if not self.created:
            return None
        return f"Auto purchase order {self.po_number} was created for {self.item_name}."


class ReorderService:
    """Evaluates received items against their minimum and creates replenishment orders."""

    def __init__(self, db: Session, numbering: Optional[NumberingService] = None):
        self.db = db
        self.numbering = numbering or NumberingService(db)

    def has_open_order(self, inventory_item_id: int) -> bool:
        """True if any non-terminal purchase order already includes the item."""
        stmt = (
            select(func.count(PurchaseOrderItem.id))
            .join(PurchaseOrder, PurchaseOrderItem.purchase_order_id == PurchaseOrder.id)
            .where(
                PurchaseOrderItem.inventory_item_id == inventory_item_id,
                PurchaseOrder.status.not_in(TERMINAL_PO_STATUSES),
            )
        )
        return (self.db.execute(stmt).scalar() or 0) > 0

    def evaluate(
        self,
        item: InventoryItem,
        old_on_hand: int,
        received_quantity: int,
        config: ReorderSettings,
    ) -> ReorderOutcome:
        """Decide whether a received item needs a replenishment order, and create it.

        Args:
            item: The catalog item that was just received.
            old_on_hand: On-hand quantity before this receipt line was applied.
            received_quantity: Quantity added by this receipt line.
            config: Configuration snapshot taken once for the whole receipt.

        Returns:
            ReorderOutcome describing the decision.
        """
        new_on_hand = old_on_hand + received_quantity
        outcome = ReorderOutcome(item_id=item.id, item_name=item.name, new_on_hand=new_on_hand, action="disabled")

        if not config.auto_reorder:
            return outcome

        if new_on_hand > (item.minimum_stock or 0):
            outcome.action = "above_minimum"
            return outcome

        if self.has_open_order(item.id):
            outcome.action = "already_covered"
            logger.info(f"Reorder skipped for {item.name}: open purchase order exists")
            return outcome

        qty = reorder_quantity(new_on_hand, item.minimum_stock, item.maximum_stock)
        if qty <= 0 or not item.supplier_id:
            outcome.action = "no_supplier"
            logger.info(f"Reorder skipped for {item.name}: no supplier configured")
            return outcome

        po = self._create_reorder(item, qty)
        outcome.action = "created"
        outcome.purchase_order_id = po.id
        outcome.po_number = po.po_number
        outcome.quantity = qty
        logger.info(f"Auto-reorder {po.po_number}: {qty} x {item.name} (on hand {new_on_hand})")
        return outcome

    def _create_reorder(self, item: InventoryItem, qty: int) -> PurchaseOrder:
        unit_price = item.unit_price or Decimal("0")
        po_number = self.numbering.generate_po_number()
        try:
            po = PurchaseOrder(
                po_number=po_number,
                supplier_id=item.supplier_id,
                status=POStatus.PENDING,
                total_amount=unit_price * qty,
                notes=f"Auto-reorder for {item.name}",
            )
            self.db.add(po)
            self.db.flush()

            self.db.add(PurchaseOrderItem(
                purchase_order_id=po.id,
                inventory_item_id=item.id,
                item_code=item.sku,
                item_description=item.name,
                quantity=qty,
                unit_price=unit_price,
                total_price=unit_price * qty,
                unit_of_measure=item.unit_of_measurement,
            ))
            log_activity(
                self.db, ActivityAction.STOCK_ALERT, item.name, "System",
                item_id=item.id, quantity=f"{qty} {item.unit_of_measurement} reordered",
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(po)
        return po
