"""Inventory item, category, batch and stock movement schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class InventoryCategoryBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    parent_category_id: Optional[int] = None


class InventoryCategoryCreate(InventoryCategoryBase):
    pass


class InventoryCategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    parent_category_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v):
        if v is None:
            raise ValueError("name cannot be null")
        return v


class InventoryCategoryResponse(InventoryCategoryBase):
    id: int
    created_at: datetime

    model_config = {"from_attributes": True}


class InventoryCategoryTree(InventoryCategoryResponse):
    """Top-level category with its sub-categories."""

    subcategories: List[InventoryCategoryResponse] = []


class InventoryItemBase(BaseModel):
    """Fields shared by item create and response."""

    name: str = Field(min_length=1, max_length=255)
    sku: Optional[str] = None
    barcode: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[int] = None
    minimum_stock: int = Field(default=0, ge=0)
    maximum_stock: Optional[int] = Field(default=None, ge=0)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    unit_of_measurement: str = "units"
    supplier_id: Optional[int] = None
    location: Optional[str] = None
    track_batches: bool = False
    expiry_date: Optional[date] = None
    alert_expiry_days: Optional[int] = Field(default=None, ge=0)


class InventoryItemCreate(InventoryItemBase):
    """Item creation schema. ``current_stock`` is the initial count."""

    current_stock: int = Field(default=0, ge=0)


class InventoryItemUpdate(BaseModel):
    """Item update schema. On-hand stock only changes through stock-in and stock-out."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    sku: Optional[str] = None
    barcode: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[int] = None
    minimum_stock: Optional[int] = Field(default=None, ge=0)
    maximum_stock: Optional[int] = Field(default=None, ge=0)
    unit_price: Optional[Decimal] = Field(default=None, ge=0)
    unit_of_measurement: Optional[str] = None
    supplier_id: Optional[int] = None
    location: Optional[str] = None
    track_batches: Optional[bool] = None
    expiry_date: Optional[date] = None
    alert_expiry_days: Optional[int] = Field(default=None, ge=0)

    # Omitted means unchanged; an explicit null would violate NOT NULL
    @field_validator("name", "minimum_stock", "unit_price", "unit_of_measurement", "track_batches")
    @classmethod
    def required_not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class InventoryItemResponse(InventoryItemBase):
    id: int
    current_stock: int
    is_low_stock: bool
    last_restocked: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class InventoryBatchResponse(BaseModel):
    id: int
    inventory_item_id: int
    batch_number: str
    lot_number: Optional[str] = None
    manufacture_date: Optional[date] = None
    expiry_date: Optional[date] = None
    quantity_received: int
    quantity_remaining: int
    unit_cost: Optional[Decimal] = None
    supplier_id: Optional[int] = None
    received_date: date

    model_config = {"from_attributes": True}


class StockInRequest(BaseModel):
    """Manual stock-in outside a receipt."""

    quantity: int = Field(gt=0)
    unit_price: Optional[Decimal] = Field(default=None, ge=0)
    supplier_id: Optional[int] = None
    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None
    received_by: Optional[str] = None
    notes: Optional[str] = None


class StockOutRequest(BaseModel):
    """Issuance of stock for use."""

    quantity: int = Field(gt=0)
    issued_to: Optional[str] = None
    usage_type: Optional[str] = None  # patient_care, procedure, expired, damaged
    notes: Optional[str] = None


class StockChangeResponse(BaseModel):
    item_id: int
    item_name: str
    quantity: int
    old_stock: int
    new_stock: int
    unit: str
    batch_id: Optional[int] = None


class ActivityLogResponse(BaseModel):
    id: int
    action: str
    item_id: Optional[int] = None
    item_name: str
    quantity: Optional[str] = None
    user_name: str
    created_at: datetime

    model_config = {"from_attributes": True}


class StockAlertResponse(BaseModel):
    type: str  # low_stock, expired, expiring_soon
    item_id: int
    item_name: str
    message: str
    current_stock: Optional[int] = None
    minimum_stock: Optional[int] = None
    expiry_date: Optional[date] = None
    days_remaining: Optional[int] = None


class AlertSweepResponse(BaseModel):
    alerts: List[StockAlertResponse]
    total: int
    logged: int
    suppressed: int
