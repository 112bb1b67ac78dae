"""Equipment asset and maintenance models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Date, Enum as SQLEnum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, CreatedAtMixin, TimestampMixin


class EquipmentStatus(str, Enum):
    """Lifecycle status of an equipment asset."""

    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"
    DISPOSED = "disposed"


class EquipmentAsset(Base, TimestampMixin):
    """A tracked piece of clinical equipment."""

    __tablename__ = "equipment_assets"

    id: Mapped[int] = mapped_column(primary_key=True)
    asset_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    brand: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    model: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    serial_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[EquipmentStatus] = mapped_column(
        SQLEnum(EquipmentStatus), default=EquipmentStatus.ACTIVE, nullable=False
    )
    purchase_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    purchase_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    warranty_start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    warranty_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    maintenance_records: Mapped[list["MaintenanceRecord"]] = relationship(
        "MaintenanceRecord",
        back_populates="equipment",
        cascade="all, delete-orphan",
        order_by="MaintenanceRecord.maintenance_date.desc()",
    )


class MaintenanceRecord(Base, CreatedAtMixin):
    """A maintenance event performed on an equipment asset."""

    __tablename__ = "equipment_maintenance"

    id: Mapped[int] = mapped_column(primary_key=True)
    equipment_id: Mapped[int] = mapped_column(
        ForeignKey("equipment_assets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    maintenance_date: Mapped[date] = mapped_column(Date, nullable=False)
    maintenance_type: Mapped[str] = mapped_column(String(100), nullable=False)  # preventive, repair, calibration
    description: Mapped[str] = mapped_column(String(1000), nullable=False)
    performed_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    next_maintenance_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True, index=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    equipment: Mapped["EquipmentAsset"] = relationship("EquipmentAsset", back_populates="maintenance_records")
