"""Stock receiving schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from app.models.receiving import ItemCondition


class ReceiptLineBase(BaseModel):
    """Descriptive fields of a received line."""

    batch_number: Optional[str] = None
    lot_number: Optional[str] = None
    manufacture_date: Optional[date] = None
    expiry_date: Optional[date] = None
    condition: ItemCondition = ItemCondition.GOOD
    storage_location: Optional[str] = None
    remarks: Optional[str] = None


class ReceiptLineCreate(ReceiptLineBase):
    """A line submitted with a new receipt.

    ``quantity_ordered`` is ignored when the receipt references a purchase
    order; it is then taken from the matching purchase order item.
    """

    inventory_item_id: Optional[int] = None
    purchase_order_item_id: Optional[int] = None
    quantity_received: int = Field(ge=0)
    quantity_ordered: Optional[int] = Field(default=None, ge=0)
    unit_of_measure: Optional[str] = None
    unit_cost: Optional[Decimal] = Field(default=None, ge=0)


class ReceiptLineUpdate(ReceiptLineBase):
    """A line submitted when editing a receipt, matched by position."""

    quantity_received: int = Field(ge=0)


class StockReceiptCreate(BaseModel):
    """New receipt: header fields plus line items.

    Missing supplier, date or items are reported by the receiving service as
    validation errors rather than schema errors, so the form gets one
    consistent message format.
    """

    purchase_order_id: Optional[int] = None
    supplier_id: Optional[int] = None
    receipt_date: Optional[date] = None
    received_by: Optional[str] = None
    notes: Optional[str] = None
    items: List[ReceiptLineCreate] = []


class StockReceiptUpdate(BaseModel):
    receipt_date: Optional[date] = None
    received_by: Optional[str] = None
    notes: Optional[str] = None
    items: List[ReceiptLineUpdate] = []


class StockReceiptItemResponse(ReceiptLineBase):
    id: int
    inventory_item_id: Optional[int] = None
    purchase_order_item_id: Optional[int] = None
    quantity_ordered: int
    quantity_received: int
    has_discrepancy: bool
    unit_of_measure: Optional[str] = None
    unit_cost: Optional[Decimal] = None

    model_config = {"from_attributes": True}


class StockReceiptResponse(BaseModel):
    id: int
    receipt_number: str
    purchase_order_id: Optional[int] = None
    supplier_id: int
    receipt_date: date
    received_by: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    discrepancy_count: int
    items: List[StockReceiptItemResponse] = []

    model_config = {"from_attributes": True}


class ReceiptResultResponse(BaseModel):
    """Outcome of a receipt submission or edit."""

    receipt: StockReceiptResponse
    discrepancy_count: int
    stock_updates: List[dict] = []
    purchase_orders_created: List[dict] = []
    notifications: List[str] = []
    warnings: List[str] = []
    errors: List[str] = []


class CandidateLine(BaseModel):
    """A line being edited in the receiving form, before submission."""

    quantity_received: int = Field(ge=0)
    quantity_ordered: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def default_ordered(self):
        if self.quantity_ordered is None:
            self.quantity_ordered = self.quantity_received
        return self


class DiscrepancyCheckRequest(BaseModel):
    items: List[CandidateLine]


class DiscrepancyCheckResponse(BaseModel):
    flags: List[bool]
    discrepancy_count: int
    message: str


class PrefillLine(BaseModel):
    purchase_order_item_id: int
    inventory_item_id: Optional[int] = None
    item_name: str
    quantity_ordered: int
    quantity_received: int
    unit_of_measure: str
    condition: ItemCondition = ItemCondition.GOOD
    has_discrepancy: bool = False


class PrefillResponse(BaseModel):
    purchase_order_id: int
    po_number: str
    supplier_id: Optional[int] = None
    items: List[PrefillLine]
