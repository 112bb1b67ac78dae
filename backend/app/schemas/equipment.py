"""Equipment asset and maintenance schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.equipment import EquipmentStatus


class EquipmentBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    category: str = Field(min_length=1, max_length=100)
    brand: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    location: Optional[str] = None
    status: EquipmentStatus = EquipmentStatus.ACTIVE
    purchase_date: Optional[date] = None
    purchase_price: Optional[Decimal] = Field(default=None, ge=0)
    warranty_start_date: Optional[date] = None
    warranty_end_date: Optional[date] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_warranty(self):
        if self.warranty_start_date and self.warranty_end_date and self.warranty_end_date < self.warranty_start_date:
            raise ValueError("Warranty end date must be on or after the start date")
        return self


class EquipmentCreate(EquipmentBase):
    pass


class EquipmentUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    category: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    location: Optional[str] = None
    status: Optional[EquipmentStatus] = None
    purchase_date: Optional[date] = None
    purchase_price: Optional[Decimal] = Field(default=None, ge=0)
    warranty_start_date: Optional[date] = None
    warranty_end_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("name", "category", "status")
    @classmethod
    def required_not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class MaintenanceCreate(BaseModel):
    maintenance_date: date
    maintenance_type: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=1000)
    performed_by: Optional[str] = None
    cost: Optional[Decimal] = Field(default=None, ge=0)
    next_maintenance_date: Optional[date] = None
    notes: Optional[str] = None


class MaintenanceUpdate(BaseModel):
    maintenance_date: Optional[date] = None
    maintenance_type: Optional[str] = None
    description: Optional[str] = None
    performed_by: Optional[str] = None
    cost: Optional[Decimal] = Field(default=None, ge=0)
    next_maintenance_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("maintenance_date", "maintenance_type", "description")
    @classmethod
    def required_not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class MaintenanceResponse(MaintenanceCreate):
    id: int
    equipment_id: int
    created_at: datetime

    model_config = {"from_attributes": True}


class EquipmentResponse(EquipmentBase):
    id: int
    asset_number: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EquipmentDetailResponse(EquipmentResponse):
    maintenance_records: List[MaintenanceResponse] = []
