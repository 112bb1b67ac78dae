"""System configuration access.

The configuration is a singleton row. Operations that depend on it read a
``ReorderSettings`` snapshot once and pass it down explicitly, so a single
receipt is evaluated against one consistent view of the settings.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.system import SystemConfiguration

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("clinic_name", "currency", "auto_reorder", "low_stock_threshold", "expiry_warning_days")


@dataclass(frozen=True)
class ReorderSettings:
    """Snapshot of the settings the reorder evaluator depends on."""

    auto_reorder: bool = False


def get_or_create_configuration(db: Session) -> SystemConfiguration:
    """Return the singleton configuration row, creating it from defaults if missing."""
    config = db.query(SystemConfiguration).order_by(SystemConfiguration.id).first()
    if config is None:
        config = SystemConfiguration(
            clinic_name=settings.default_clinic_name,
            currency=settings.default_currency,
            auto_reorder=settings.auto_reorder_default,
            low_stock_threshold=settings.low_stock_threshold_default,
            expiry_warning_days=settings.expiry_warning_days_default,
        )
        db.add(config)
        db.commit()
        db.refresh(config)
        logger.info("Created default system configuration")
    return config


def load_reorder_settings(db: Session) -> ReorderSettings:
    config = get_or_create_configuration(db)
    return ReorderSettings(auto_reorder=bool(config.auto_reorder))


def update_configuration(db: Session, changes: Dict[str, Any]) -> SystemConfiguration:
    """Apply the given field changes to the singleton row and commit."""
    config = get_or_create_configuration(db)
    for field in UPDATABLE_FIELDS:
        if field in changes and changes[field] is not None:
            setattr(config, field, changes[field])
    db.commit()
    db.refresh(config)
    logger.info(f"System configuration updated: {sorted(k for k in changes if k in UPDATABLE_FIELDS)}")
    return config
