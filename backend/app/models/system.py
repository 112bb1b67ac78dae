"""System-wide configuration and activity log models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class SystemConfiguration(Base, TimestampMixin):
    """Singleton row of clinic-wide settings."""

    __tablename__ = "system_configuration"

    id: Mapped[int] = mapped_column(primary_key=True)
    clinic_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    currency: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    auto_reorder: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    low_stock_threshold: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    expiry_warning_days: Mapped[int] = mapped_column(Integer, default=30, nullable=False)


class ActivityLog(Base):
    """Human-readable stock activity feed shown on the dashboard."""

    __tablename__ = "activity_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    item_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)  # e.g. "10 boxes"
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
