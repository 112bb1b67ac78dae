"""System configuration schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SystemConfigurationResponse(BaseModel):
    id: int
    clinic_name: Optional[str] = None
    currency: Optional[str] = None
    auto_reorder: bool
    low_stock_threshold: int
    expiry_warning_days: int
    updated_at: datetime

    model_config = {"from_attributes": True}


class SystemConfigurationUpdate(BaseModel):
    """Partial update; omitted fields keep their current value."""
    clinic_name: Optional[str] = Field(default=None, max_length=255)
    currency: Optional[str] = Field(default=None, max_length=10)
    auto_reorder: Optional[bool] = None
    low_stock_threshold: Optional[int] = Field(default=None, ge=0)
    expiry_warning_days: Optional[int] = Field(default=None, ge=0)
