"""Purchase order management: creation, editing and manual status changes.

The receiving workflow sets ``received`` directly; the transitions below
only govern changes made by staff from the purchase order screens.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from app.models.order import POStatus, PurchaseOrder, PurchaseOrderItem, TERMINAL_PO_STATUSES
from app.models.supplier import Supplier
from app.services.numbering_service import NumberingService

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    POStatus.PENDING: {POStatus.APPROVED, POStatus.CANCELLED},
    POStatus.APPROVED: {POStatus.ORDERED, POStatus.CANCELLED},
    POStatus.ORDERED: {POStatus.RECEIVED, POStatus.CANCELLED},
    POStatus.RECEIVED: set(),
    POStatus.CANCELLED: set(),
}

UPDATABLE_FIELDS = (
    "expected_delivery_date", "requested_by", "authorized_by", "payment_terms",
    "shipping_method", "delivery_address", "notes",
)


class PurchaseOrderNotFoundError(LookupError):
    pass


class PurchaseOrderValidationError(ValueError):
    pass


class InvalidStatusTransitionError(Exception):
    """Raised when a manual status change is not allowed from the current status."""

    def __init__(self, current: POStatus, target: POStatus):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change purchase order status from '{current.value}' to '{target.value}'")


class PurchaseOrderService:
    """Service for purchase orders."""

    def __init__(self, db: Session, numbering: Optional[NumberingService] = None):
        self.db = db
        self.numbering = numbering or NumberingService(db)

    def get(self, po_id: int) -> PurchaseOrder:
        po = (
            self.db.query(PurchaseOrder)
            .options(selectinload(PurchaseOrder.items))
            .filter(PurchaseOrder.id == po_id)
            .first()
        )
        if po is None:
            raise PurchaseOrderNotFoundError(f"Purchase order {po_id} not found")
        return po

    def list_orders(
        self,
        status: Optional[POStatus] = None,
        supplier_id: Optional[int] = None,
        receivable: bool = False,
        limit: int = 200,
    ) -> List[PurchaseOrder]:
        query = self.db.query(PurchaseOrder).options(selectinload(PurchaseOrder.items))
        if status:
            query = query.filter(PurchaseOrder.status == status)
        if supplier_id:
            query = query.filter(PurchaseOrder.supplier_id == supplier_id)
        if receivable:
            query = query.filter(PurchaseOrder.status.not_in(TERMINAL_PO_STATUSES))
        return query.order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc()).limit(limit).all()

    def create_order(self, data: Dict[str, Any], items: List[Dict[str, Any]]) -> PurchaseOrder:
        """Create a pending purchase order and its items in one commit."""
        supplier_id = data.get("supplier_id")
        if not supplier_id:
            raise PurchaseOrderValidationError("Please select a supplier")
        if self.db.query(Supplier.id).filter(Supplier.id == supplier_id).first() is None:
            raise PurchaseOrderNotFoundError(f"Supplier {supplier_id} not found")
        if not items:
            raise PurchaseOrderValidationError("Please add at least one item")

        lines = []
        total = Decimal("0")
        for index, item in enumerate(items, start=1):
            quantity = item.get("quantity") or 0
            unit_price = Decimal(str(item.get("unit_price") or 0))
            if quantity <= 0:
                raise PurchaseOrderValidationError(f"Item {index}: quantity must be greater than zero")
            if unit_price < 0:
                raise PurchaseOrderValidationError(f"Item {index}: unit price cannot be negative")
            line_total = unit_price * quantity
            total += line_total
            lines.append(PurchaseOrderItem(
                inventory_item_id=item.get("inventory_item_id"),
                item_code=item.get("item_code"),
                item_description=item.get("item_description"),
                category=item.get("category"),
                quantity=quantity,
                unit_price=unit_price,
                total_price=line_total,
                unit_of_measure=item.get("unit_of_measure"),
                remarks=item.get("remarks"),
            ))

        po = PurchaseOrder(
            po_number=self.numbering.generate_po_number(),
            supplier_id=supplier_id,
            status=POStatus.PENDING,
            total_amount=total,
            items=lines,
            **{k: data.get(k) for k in UPDATABLE_FIELDS if data.get(k) is not None},
        )
        if data.get("order_date"):
            po.order_date = data["order_date"]
        try:
            self.db.add(po)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception("Failed to create purchase order")
            raise
        self.db.refresh(po)
        logger.info(f"Purchase order {po.po_number} created with {len(lines)} items, total {total}")
        return po

    def update(self, po_id: int, changes: Dict[str, Any]) -> PurchaseOrder:
        po = self.get(po_id)
        for field in UPDATABLE_FIELDS:
            if field in changes:
                setattr(po, field, changes[field])
        self.db.commit()
        self.db.refresh(po)
        return po

    def transition(self, po_id: int, target: POStatus) -> PurchaseOrder:
        po = self.get(po_id)
        if target not in ALLOWED_TRANSITIONS[po.status]:
            raise InvalidStatusTransitionError(po.status, target)
        previous = po.status
        po.status = target
        self.db.commit()
        self.db.refresh(po)
        logger.info(f"Purchase order {po.po_number}: {previous.value} -> {target.value}")
        return po

    def delete(self, po_id: int) -> None:
        po = self.get(po_id)
        if po.status != POStatus.PENDING:
            raise PurchaseOrderValidationError(
                f"Only pending purchase orders can be deleted (status is '{po.status.value}')"
            )
        self.db.delete(po)
        self.db.commit()
        logger.info(f"Purchase order {po.po_number} deleted")
