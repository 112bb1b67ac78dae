"""Activity log service.

Writes entries to the activity feed for stock-affecting operations. Entries
are added to the caller's session so they commit (or roll back) together
with the change they describe.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.system import ActivityLog

logger = logging.getLogger("activity")

DEFAULT_USER = "Staff User"


class ActivityAction(str, Enum):
    STOCK_ADDED = "Stock Added"
    STOCK_USED = "Stock Used"
    NEW_ITEM_ADDED = "New Item Added"
    STOCK_ALERT = "Stock Alert"
    ITEM_UPDATED = "Item Updated"
    ITEM_EXPIRED = "Item Expired"
    ITEM_DELETED = "Item Deleted"


def log_activity(
    db: Session,
    action: ActivityAction,
    item_name: str,
    user_name: Optional[str] = None,
    item_id: Optional[int] = None,
    quantity: Optional[str] = None,
) -> ActivityLog:
    """Add an activity entry to the session without committing.

    Args:
        db: The caller's session; the entry is written on its next commit.
        action: What happened to the item.
        item_name: Display name of the item.
        user_name: Who performed the action (defaults to a generic staff user).
        item_id: ID of the inventory item, when there is one.
        quantity: Free-text quantity such as "10 boxes".
    """
    entry = ActivityLog(
        action=action.value,
        item_id=item_id,
        item_name=item_name[:255],
        quantity=quantity,
        user_name=(user_name or DEFAULT_USER)[:255],
        created_at=datetime.now(timezone.utc),
    )
    db.add(entry)
    logger.info(f"{action.value}: {item_name} {quantity or ''} by {entry.user_name}".rstrip())
    return entry


def recent_activity(db: Session, limit: int = 50, action: Optional[str] = None) -> List[ActivityLog]:
    query = db.query(ActivityLog)
    if action:
        query = query.filter(ActivityLog.action == action)
    return query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit).all()
