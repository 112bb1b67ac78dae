"""Catalog item and batch models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean, CheckConstraint, Date, ForeignKey, Integer, Numeric, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, CreatedAtMixin, TimestampMixin


class InventoryCategory(Base, CreatedAtMixin):
    """Item category. Top-level categories group sub-categories one level deep."""

    __tablename__ = "inventory_categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    parent_category_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("inventory_categories.id", ondelete="RESTRICT"), nullable=True, index=True
    )

    parent: Mapped[Optional["InventoryCategory"]] = relationship(
        "InventoryCategory", remote_side=[id], back_populates="subcategories"
    )
    subcategories: Mapped[list["InventoryCategory"]] = relationship(
        "InventoryCategory", back_populates="parent", order_by="InventoryCategory.name"
    )
    items: Mapped[list["InventoryItem"]] = relationship("InventoryItem", back_populates="category")


class InventoryItem(Base, TimestampMixin):
    """A stocked catalog item with on-hand, minimum and maximum quantities."""

    __tablename__ = "inventory_items"
    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="stock_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    sku: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    barcode: Mapped[Optional[str]] = mapped_column(String(50), unique=True, index=True, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("inventory_categories.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    current_stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    minimum_stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    maximum_stock: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, nullable=False)
    unit_of_measurement: Mapped[str] = mapped_column(String(20), default="units", nullable=False)
    supplier_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True, index=True
    )
    location: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    track_batches: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_restocked: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True, index=True)
    # Days before expiry_date at which the item counts as expiring soon
    alert_expiry_days: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Relationships
    supplier: Mapped[Optional["Supplier"]] = relationship("Supplier", back_populates="inventory_items")
    category: Mapped[Optional["InventoryCategory"]] = relationship("InventoryCategory", back_populates="items")
    batches: Mapped[list["InventoryBatch"]] = relationship(
        "InventoryBatch", back_populates="inventory_item", cascade="all, delete-orphan"
    )

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.minimum_stock


class InventoryBatch(Base, CreatedAtMixin):
    """A received batch/lot of a batch-tracked item."""

    __tablename__ = "inventory_batches"

    id: Mapped[int] = mapped_column(primary_key=True)
    inventory_item_id: Mapped[int] = mapped_column(
        ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    batch_number: Mapped[str] = mapped_column(String(100), nullable=False)
    lot_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    manufacture_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True, index=True)
    quantity_received: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity_remaining: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    supplier_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True
    )
    received_date: Mapped[date] = mapped_column(Date, nullable=False)
    inventory_item: Mapped["InventoryItem"] = relationship("InventoryItem", back_populates="batches")


# Forward references
from app.models.supplier import Supplier
