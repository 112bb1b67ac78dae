"""Stock Receiving Service - records deliveries and reconciles them with stock.

Flow for a new receipt:
1. Validate header and lines (nothing is written on failure)
2. Resolve ordered quantities from the linked purchase order, if any
3. Commit the receipt header
4. Commit the receipt lines; on failure delete the header again
5. Mark the linked purchase order as received
6. For each line with a catalog item:
   a. Add the received quantity to on-hand stock
   b. Evaluate auto-reorder against the new on-hand quantity

Steps 3 and 4 are all-or-nothing through a compensating delete. Steps 5 and 6
are best-effort: a failure is logged and reported on the result, and the
remaining lines are still processed. Nothing is retried.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.inventory import InventoryItem
from app.models.order import POStatus, PurchaseOrder, PurchaseOrderItem
from app.models.receiving import StockReceipt, StockReceiptItem
from app.models.supplier import Supplier
from app.schemas.receiving import StockReceiptCreate, StockReceiptUpdate
from app.services.discrepancy_service import has_discrepancy
from app.services.numbering_service import NumberingService
from app.services.reorder_service import ReorderService
from app.services.stock_service import StockService
from app.services.system_config_service import ReorderSettings, load_reorder_settings

logger = logging.getLogger(__name__)

DESCRIPTIVE_LINE_FIELDS = (
    "batch_number", "lot_number", "manufacture_date", "expiry_date",
    "condition", "storage_location", "remarks",
)


class ReceiptValidationError(ValueError):
    """Raised when a receipt is rejected before anything is persisted."""


class ReceiptNotFoundError(LookupError):
    """Raised when a referenced receipt, supplier, purchase order or item does not exist."""


class ReceiptPersistenceError(Exception):
    """Raised when the receipt header or its lines could not be stored."""

    def __init__(self, message: str, receipt_number: Optional[str] = None):
        self.receipt_number = receipt_number
        super().__init__(message)


@dataclass
class ReceiptResult:
    """Receipt plus everything the best-effort steps reported."""

    receipt: StockReceipt
    stock_updates: List[Dict[str, Any]] = field(default_factory=list)
    purchase_orders_created: List[Dict[str, Any]] = field(default_factory=list)
    notifications: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def discrepancy_count(self) -> int:
        return self.receipt.discrepancy_count


class StockReceivingService:
    """Service for recording stock receipts."""

    def __init__(
        self,
        db: Session,
        numbering: Optional[NumberingService] = None,
        stock: Optional[StockService] = None,
        reorder: Optional[ReorderService] = None,
        edit_adjusts_stock: Optional[bool] = None,
    ):
        self.db = db
        self.numbering = numbering or NumberingService(db)
        self.stock = stock or StockService(db)
        self.reorder = reorder or ReorderService(db, self.numbering)
        self.edit_adjusts_stock = (
            settings.receipt_edit_adjusts_stock if edit_adjusts_stock is None else edit_adjusts_stock
        )

    # ===== LOOKUPS =====

    def get_receipt(self, receipt_id: int) -> StockReceipt:
        receipt = self.db.query(StockReceipt).filter(StockReceipt.id == receipt_id).first()
        if receipt is None:
            raise ReceiptNotFoundError(f"Stock receipt {receipt_id} not found")
        return receipt

    def _get_purchase_order(self, po_id: int) -> PurchaseOrder:
        po = self.db.query(PurchaseOrder).filter(PurchaseOrder.id == po_id).first()
        if po is None:
            raise ReceiptNotFoundError(f"Purchase order {po_id} not found")
        return po

    def list_receipts(
        self,
        supplier_id: Optional[int] = None,
        purchase_order_id: Optional[int] = None,
        limit: int = 100,
    ) -> List[StockReceipt]:
        query = self.db.query(StockReceipt)
        if supplier_id:
            query = query.filter(StockReceipt.supplier_id == supplier_id)
        if purchase_order_id:
            query = query.filter(StockReceipt.purchase_order_id == purchase_order_id)
        return query.order_by(StockReceipt.receipt_date.desc(), StockReceipt.id.desc()).limit(limit).all()

    def prefill_from_purchase_order(self, po_id: int) -> Dict[str, Any]:
        """Candidate receipt lines for a purchase order, received defaulting to ordered."""
        po = self._get_purchase_order(po_id)
        lines = []
        for po_item in po.items:
            lines.append({
                "purchase_order_item_id": po_item.id,
                "inventory_item_id": po_item.inventory_item_id,
                "item_name": (
                    po_item.inventory_item.name if po_item.inventory_item
                    else po_item.item_description or "Unknown Item"
                ),
                "quantity_ordered": po_item.quantity,
                "quantity_received": po_item.quantity,
                "unit_of_measure": po_item.unit_of_measure or "units",
                "has_discrepancy": False,
            })
        return {
            "purchase_order_id": po.id,
            "po_number": po.po_number,
            "supplier_id": po.supplier_id,
            "items": lines,
        }

    # ===== CREATE =====

    def validate(self, data: StockReceiptCreate) -> None:
        """Reject incomplete receipts before any write."""
        if not data.supplier_id:
            raise ReceiptValidationError("Please select a supplier")
        if not data.receipt_date:
            raise ReceiptValidationError("Please provide a receipt date")
        if not data.items:
            raise ReceiptValidationError(
                "No items to receive. Select a purchase order with items or add items manually"
            )

    def _resolve_lines(self, data: StockReceiptCreate, po: Optional[PurchaseOrder]) -> List[Dict[str, Any]]:
        """Turn submitted lines into row values with ordered quantity and discrepancy set."""
        po_items: List[PurchaseOrderItem] = list(po.items) if po else []
        by_id = {poi.id: poi for poi in po_items}
        rows = []

        for index, line in enumerate(data.items):
            po_item: Optional[PurchaseOrderItem] = None
            if po is not None:
                if line.purchase_order_item_id is not None:
                    po_item = by_id.get(line.purchase_order_item_id)
                    if po_item is None:
                        raise ReceiptValidationError(
                            f"Purchase order item {line.purchase_order_item_id} "
                            f"does not belong to purchase order {po.po_number}"
                        )
                elif index < len(po_items):
                    po_item = po_items[index]
                ordered = po_item.quantity if po_item else 0
            else:
                # Freehand receipt: compare against what the form says was ordered
                ordered = line.quantity_ordered if line.quantity_ordered is not None else line.quantity_received

            inventory_item_id = line.inventory_item_id
            if inventory_item_id is None and po_item is not None:
                inventory_item_id = po_item.inventory_item_id

            rows.append({
                "inventory_item_id": inventory_item_id,
                "purchase_order_item_id": po_item.id if po_item else None,
                "quantity_ordered": ordered,
                "quantity_received": line.quantity_received,
                "has_discrepancy": has_discrepancy(line.quantity_received, ordered),
                "unit_of_measure": line.unit_of_measure or (po_item.unit_of_measure if po_item else None) or "units",
                "unit_cost": line.unit_cost if line.unit_cost is not None else (po_item.unit_price if po_item else None),
                "batch_number": line.batch_number or None,
                "lot_number": line.lot_number or None,
                "manufacture_date": line.manufacture_date,
                "expiry_date": line.expiry_date,
                "condition": line.condition,
                "storage_location": line.storage_location or None,
                "remarks": line.remarks or None,
            })
        return rows

    def _check_inventory_items(self, rows: List[Dict[str, Any]]) -> None:
        wanted = {row["inventory_item_id"] for row in rows if row["inventory_item_id"] is not None}
        if not wanted:
            return
        found = {item_id for (item_id,) in self.db.query(InventoryItem.id).filter(InventoryItem.id.in_(wanted))}
        missing = sorted(wanted - found)
        if missing:
            raise ReceiptNotFoundError(
                f"Inventory item(s) {', '.join(str(i) for i in missing)} not found"
            )

    def _insert_header(self, data: StockReceiptCreate) -> StockReceipt:
        receipt_number = self.numbering.generate_receipt_number()
        receipt = StockReceipt(
            receipt_number=receipt_number,
            purchase_order_id=data.purchase_order_id,
            supplier_id=data.supplier_id,
            receipt_date=data.receipt_date,
            received_by=data.received_by or None,
            notes=data.notes or "",
        )
        try:
            self.db.add(receipt)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.exception(f"Failed to create stock receipt header {receipt_number}")
            raise ReceiptPersistenceError("Failed to create stock receipt", receipt_number) from e
        self.db.refresh(receipt)
        return receipt

    def _insert_items(self, receipt: StockReceipt, rows: List[Dict[str, Any]]) -> None:
        for row in rows:
            self.db.add(StockReceiptItem(stock_receipt_id=receipt.id, **row))
        self.db.commit()

    def _compensate(self, receipt_id: int, receipt_number: str) -> None:
        """Delete a header whose lines could not be stored."""
        try:
            self.db.query(StockReceipt).filter(StockReceipt.id == receipt_id).delete(
                synchronize_session=False
            )
            self.db.commit()
            logger.warning(f"Rolled back stock receipt {receipt_number} after line insert failure")
        except Exception:
            self.db.rollback()
            logger.critical(f"Compensating delete failed, stock receipt {receipt_number} has no items")
            raise

    def _mark_purchase_order_received(
        self, po: PurchaseOrder, rows: List[Dict[str, Any]], result: ReceiptResult
    ) -> None:
        """Set the linked order to received, whatever the discrepancies."""
        received_by_po_item: Dict[int, int] = {}
        for row in rows:
            if row["purchase_order_item_id"] is not None:
                key = row["purchase_order_item_id"]
                received_by_po_item[key] = received_by_po_item.get(key, 0) + row["quantity_received"]
        try:
            po.status = POStatus.RECEIVED
            for po_item in po.items:
                if po_item.id in received_by_po_item:
                    po_item.received_quantity = (po_item.received_quantity or 0) + received_by_po_item[po_item.id]
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating purchase order {po.id} status: {e}")
            result.warnings.append(f"Purchase order status could not be updated: {e}")

    def _apply_stock_and_reorder(
        self, rows: List[Dict[str, Any]], config: ReorderSettings, user_name: Optional[str], result: ReceiptResult
    ) -> None:
        for row in rows:
            item_id = row["inventory_item_id"]
            if item_id is None:
                continue

            try:
                change = self.stock.receive_into_stock(
                    item_id,
                    row["quantity_received"],
                    user_name=user_name,
                    batch_number=row["batch_number"],
                    lot_number=row["lot_number"],
                    manufacture_date=row["manufacture_date"],
                    expiry_date=row["expiry_date"],
                    unit_cost=row["unit_cost"],
                )
            except Exception as e:
                logger.exception(f"Stock update failed for inventory item {item_id}")
                result.errors.append(f"Stock update failed for inventory item {item_id}: {e}")
                continue
            result.stock_updates.append(change.to_dict())

            if not config.auto_reorder:
                continue
            try:
                item = self.stock.get_item(item_id)
                outcome = self.reorder.evaluate(item, change.old_stock, change.quantity, config)
            except Exception as e:
                self.db.rollback()
                logger.exception(f"Auto-reorder evaluation failed for inventory item {item_id}")
                result.errors.append(f"Auto-reorder failed for {change.item_name}: {e}")
                continue
            if outcome.created:
                result.purchase_orders_created.append({
                    "purchase_order_id": outcome.purchase_order_id,
                    "po_number": outcome.po_number,
                    "inventory_item_id": outcome.item_id,
                    "quantity": outcome.quantity,
                })
                result.notifications.append(outcome.notification)

    def create_receipt(
        self, data: StockReceiptCreate, config: Optional[ReorderSettings] = None
    ) -> ReceiptResult:
        """Record a delivery and reconcile it with stock.

        Args:
            data: Header fields and line items from the receiving form.
            config: Configuration snapshot; read from the database when omitted.

        Returns:
            ReceiptResult with the stored receipt and best-effort outcomes.

        Raises:
            ReceiptValidationError: incomplete input or supplier not matching the
                purchase order, nothing written.
            ReceiptNotFoundError: unknown supplier, purchase order or inventory item.
            ReceiptPersistenceError: header or lines could not be stored.
        """
        self.validate(data)

        if self.db.query(Supplier.id).filter(Supplier.id == data.supplier_id).first() is None:
            raise ReceiptNotFoundError(f"Supplier {data.supplier_id} not found")
        po = self._get_purchase_order(data.purchase_order_id) if data.purchase_order_id else None
        if po is not None and po.supplier_id is not None and po.supplier_id != data.supplier_id:
            raise ReceiptValidationError(f"Supplier does not match purchase order {po.po_number}")
        rows = self._resolve_lines(data, po)
        self._check_inventory_items(rows)

        if config is None:
            config = load_reorder_settings(self.db)

        receipt = self._insert_header(data)
        receipt_id, receipt_number = receipt.id, receipt.receipt_number
        try:
            self._insert_items(receipt, rows)
        except Exception as e:
            self.db.rollback()
            logger.exception(f"Failed to create items for stock receipt {receipt_number}")
            self._compensate(receipt_id, receipt_number)
            raise ReceiptPersistenceError("Failed to create stock receipt items", receipt_number) from e

        result = ReceiptResult(receipt=receipt)
        if po is not None:
            self._mark_purchase_order_received(po, rows, result)

        self._apply_stock_and_reorder(rows, config, data.received_by, result)

        self.db.refresh(receipt)
        result.receipt = receipt
        count = result.discrepancy_count
        suffix = " with discrepancies noted" if count else ""
        result.notifications.insert(0, f"Stock receipt {receipt_number} created successfully{suffix}")
        logger.info(
            f"Stock receipt {receipt_number}: {len(rows)} lines, {count} discrepancies, "
            f"{len(result.purchase_orders_created)} auto-reorders, {len(result.errors)} errors"
        )
        return result

    # ===== EDIT =====

    def update_receipt(self, receipt_id: int, data: StockReceiptUpdate) -> ReceiptResult:
        """Edit a receipt in place, matching lines by position.

        Only received quantities and descriptive fields change; the
        discrepancy flag is recomputed. On-hand stock is left alone unless
        ``edit_adjusts_stock`` is enabled, and even then never decremented.
        """
        receipt = self.get_receipt(receipt_id)
        result = ReceiptResult(receipt=receipt)

        if data.receipt_date is not None:
            receipt.receipt_date = data.receipt_date
        if data.received_by is not None:
            receipt.received_by = data.received_by
        if data.notes is not None:
            receipt.notes = data.notes

        stored_items = list(receipt.items)
        if len(data.items) > len(stored_items):
            result.warnings.append(
                f"{len(data.items) - len(stored_items)} extra line(s) ignored; "
                "lines cannot be added to an existing receipt"
            )

        deltas = []
        for stored, incoming in zip(stored_items, data.items):
            old_qty = stored.quantity_received
            stored.quantity_received = incoming.quantity_received
            stored.has_discrepancy = has_discrepancy(stored.quantity_received, stored.quantity_ordered)
            for name in DESCRIPTIVE_LINE_FIELDS:
                if name in incoming.model_fields_set:
                    setattr(stored, name, getattr(incoming, name))
            if stored.inventory_item_id is not None and stored.quantity_received != old_qty:
                deltas.append((stored.inventory_item_id, stored.quantity_received - old_qty))

        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.exception(f"Failed to update stock receipt {receipt_id}")
            raise ReceiptPersistenceError("Failed to update stock receipt") from e

        if deltas and not self.edit_adjusts_stock:
            result.warnings.append("On-hand stock was not adjusted for edited quantities")
        elif deltas:
            for item_id, delta in deltas:
                if delta < 0:
                    result.warnings.append(
                        f"Received quantity for inventory item {item_id} was reduced by {-delta}; "
                        "on-hand stock was not decremented"
                    )
                    continue
                try:
                    change = self.stock.receive_into_stock(item_id, delta, user_name=receipt.received_by)
                except Exception as e:
                    logger.exception(f"Stock adjustment failed for inventory item {item_id}")
                    result.errors.append(f"Stock adjustment failed for inventory item {item_id}: {e}")
                    continue
                result.stock_updates.append(change.to_dict())

        self.db.refresh(receipt)
        result.receipt = receipt
        logger.info(f"Stock receipt {receipt.receipt_number} updated ({len(deltas)} quantity changes)")
        return result
