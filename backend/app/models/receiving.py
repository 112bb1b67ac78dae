"""Stock receipt models: one header per delivery, one line per received item."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean, Date, Enum as SQLEnum, ForeignKey, Integer, Numeric, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, CreatedAtMixin


class ItemCondition(str, Enum):
    """Condition of goods at receipt."""

    GOOD = "good"
    DAMAGED = "damaged"
    EXPIRED = "expired"


class StockReceipt(Base, CreatedAtMixin):
    """A physical delivery event, optionally against a purchase order."""

    __tablename__ = "stock_receipts"

    id: Mapped[int] = mapped_column(primary_key=True)
    receipt_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    purchase_order_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("purchase_orders.id", ondelete="SET NULL"), nullable=True, index=True
    )
    supplier_id: Mapped[int] = mapped_column(
        ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    receipt_date: Mapped[date] = mapped_column(Date, nullable=False)
    received_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Relationships
    supplier: Mapped["Supplier"] = relationship("Supplier")
    purchase_order: Mapped[Optional["PurchaseOrder"]] = relationship("PurchaseOrder")
    items: Mapped[list["StockReceiptItem"]] = relationship(
        "StockReceiptItem",
        back_populates="receipt",
        cascade="all, delete-orphan",
        order_by="StockReceiptItem.id",
    )

    @property
    def discrepancy_count(self) -> int:
        from app.services.discrepancy_service import discrepancy_count

        return discrepancy_count(self.items)


class StockReceiptItem(Base):
    """A single received line on a stock receipt."""

    __tablename__ = "stock_receipt_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    stock_receipt_id: Mapped[int] = mapped_column(
        ForeignKey("stock_receipts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    inventory_item_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("inventory_items.id", ondelete="SET NULL"), nullable=True, index=True
    )
    purchase_order_item_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("purchase_order_items.id", ondelete="SET NULL"), nullable=True
    )
    quantity_ordered: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    quantity_received: Mapped[int] = mapped_column(Integer, nullable=False)
    has_discrepancy: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    unit_of_measure: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    unit_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    batch_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    lot_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    manufacture_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    condition: Mapped[ItemCondition] = mapped_column(
        SQLEnum(ItemCondition), default=ItemCondition.GOOD, nullable=False
    )
    storage_location: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    remarks: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Relationships
    receipt: Mapped["StockReceipt"] = relationship("StockReceipt", back_populates="items")
    inventory_item: Mapped[Optional["InventoryItem"]] = relationship("InventoryItem")


# Forward references
from app.models.supplier import Supplier
from app.models.order import PurchaseOrder
from app.models.inventory import InventoryItem
