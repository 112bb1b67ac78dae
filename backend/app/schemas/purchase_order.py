"""Purchase order schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.order import POStatus


class PurchaseOrderItemCreate(BaseModel):
    inventory_item_id: Optional[int] = None
    item_code: Optional[str] = None
    item_description: Optional[str] = None
    category: Optional[str] = None
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    unit_of_measure: Optional[str] = None
    remarks: Optional[str] = None


class PurchaseOrderItemResponse(BaseModel):
    id: int
    inventory_item_id: Optional[int] = None
    item_code: Optional[str] = None
    item_description: Optional[str] = None
    category: Optional[str] = None
    quantity: int
    received_quantity: Optional[int] = None
    unit_price: Decimal
    total_price: Decimal
    unit_of_measure: Optional[str] = None
    remarks: Optional[str] = None

    model_config = {"from_attributes": True}


class PurchaseOrderCreate(BaseModel):
    """New purchase order with its items."""

    supplier_id: int
    order_date: Optional[date] = None
    expected_delivery_date: Optional[date] = None
    requested_by: Optional[str] = None
    authorized_by: Optional[str] = None
    payment_terms: Optional[str] = None
    shipping_method: Optional[str] = None
    delivery_address: Optional[str] = None
    notes: Optional[str] = None
    items: List[PurchaseOrderItemCreate] = []


class PurchaseOrderUpdate(BaseModel):
    """Descriptive fields only; items and status are not edited here."""

    expected_delivery_date: Optional[date] = None
    requested_by: Optional[str] = None
    authorized_by: Optional[str] = None
    payment_terms: Optional[str] = None
    shipping_method: Optional[str] = None
    delivery_address: Optional[str] = None
    notes: Optional[str] = None


class StatusChangeRequest(BaseModel):
    status: POStatus


class PurchaseOrderResponse(BaseModel):
    id: int
    po_number: str
    supplier_id: Optional[int] = None
    status: POStatus
    total_amount: Decimal
    order_date: date
    expected_delivery_date: Optional[date] = None
    requested_by: Optional[str] = None
    authorized_by: Optional[str] = None
    payment_terms: Optional[str] = None
    shipping_method: Optional[str] = None
    delivery_address: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    items: List[PurchaseOrderItemResponse] = []

    model_config = {"from_attributes": True}
