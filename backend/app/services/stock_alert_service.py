"""Stock Alert Service - low stock and expiry alerts for catalog items.

A sweep walks every catalog item and:
- logs a ``Stock Alert`` activity entry for items at or below their minimum
- logs an ``Item Expired`` activity entry for items whose expiry date has passed
- reports (without logging) items expiring within their alert window

An item gets at most one entry of each kind per 24 hours, so running the sweep
on every dashboard load does not flood the activity feed.

Usage:
    from app.services.stock_alert_service import StockAlertService

    report = StockAlertService(db).sweep(expiry_warning_days=30)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.inventory import InventoryItem
from app.models.system import ActivityLog
from app.services.activity_service import ActivityAction, log_activity

logger = logging.getLogger(__name__)

ALERT_INTERVAL = timedelta(hours=24)
SYSTEM_USER = "System"


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


@dataclass
class AlertReport:
    alerts: List[Dict[str, Any]] = field(default_factory=list)
    logged: int = 0
    suppressed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alerts": self.alerts,
            "total": len(self.alerts),
            "logged": self.logged,
            "suppressed": self.suppressed,
        }


class StockAlertService:
    """Generates low-stock, expired and expiring-soon alerts."""

    def __init__(self, db: Session, now: Optional[Callable[[], datetime]] = None):
        self.db = db
        self._now = now or (lambda: datetime.now(timezone.utc))

    def _last_alerted(self) -> Dict[Tuple[str, int], datetime]:
        """Most recent alert time per (action, item)."""
        rows = (
            self.db.query(ActivityLog.action, ActivityLog.item_id, func.max(ActivityLog.created_at))
            .filter(
                ActivityLog.action.in_([ActivityAction.STOCK_ALERT.value, ActivityAction.ITEM_EXPIRED.value]),
                ActivityLog.item_id.isnot(None),
            )
            .group_by(ActivityLog.action, ActivityLog.item_id)
            .all()
        )
        return {(action, item_id): _as_utc(latest) for action, item_id, latest in rows if latest}

    def _due(self, last: Dict[Tuple[str, int], datetime], action: ActivityAction, item_id: int) -> bool:
        previous = last.get((action.value, item_id))
        return previous is None or self._now() - previous > ALERT_INTERVAL

    def sweep(self, expiry_warning_days: int) -> AlertReport:
        """Check every item and log the alerts that are due.

        Args:
            expiry_warning_days: Expiring-soon window for items without
                their own ``alert_expiry_days``.

        Returns:
            AlertReport listing every current alert and how many were logged.
        """
        report = AlertReport()
        last = self._last_alerted()
        today = self._now().date()

        for item in self.db.query(InventoryItem).order_by(InventoryItem.name).all():
            if item.current_stock <= item.minimum_stock:
                report.alerts.append({
                    "type": "low_stock",
                    "item_id": item.id,
                    "item_name": item.name,
                    "current_stock": item.current_stock,
                    "minimum_stock": item.minimum_stock,
                    "message": f"{item.name} is at or below minimum stock "
                               f"({item.current_stock}/{item.minimum_stock} {item.unit_of_measurement})",
                })
                if self._due(last, ActivityAction.STOCK_ALERT, item.id):
                    log_activity(
                        self.db, ActivityAction.STOCK_ALERT, item.name, SYSTEM_USER, item_id=item.id,
                        quantity=f"{item.current_stock}/{item.minimum_stock} {item.unit_of_measurement}",
                    )
                    report.logged += 1
                else:
                    report.suppressed += 1

            if item.expiry_date is None:
                continue
            if item.expiry_date <= today:
                report.alerts.append({
                    "type": "expired",
                    "item_id": item.id,
                    "item_name": item.name,
                    "expiry_date": item.expiry_date.isoformat(),
                    "message": f"{item.name} expired on {item.expiry_date.isoformat()}",
                })
                if self._due(last, ActivityAction.ITEM_EXPIRED, item.id):
                    log_activity(
                        self.db, ActivityAction.ITEM_EXPIRED, item.name, SYSTEM_USER, item_id=item.id,
                        quantity=f"Expired on {item.expiry_date.isoformat()}",
                    )
                    report.logged += 1
                else:
                    report.suppressed += 1
            else:
                window = item.alert_expiry_days if item.alert_expiry_days is not None else expiry_warning_days
                days_left = (item.expiry_date - today).days
                if days_left <= window:
                    report.alerts.append({
                        "type": "expiring_soon",
                        "item_id": item.id,
                        "item_name": item.name,
                        "expiry_date": item.expiry_date.isoformat(),
                        "days_remaining": days_left,
                        "message": f"{item.name} expires in {days_left} day(s)",
                    })

        if report.logged:
            self.db.commit()
        logger.info(
            f"Alert sweep: {len(report.alerts)} alerts, {report.logged} logged, {report.suppressed} suppressed"
        )
        return report
