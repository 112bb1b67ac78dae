"""SQLAlchemy models."""

from app.models.supplier import Supplier
from app.models.inventory import InventoryCategory, InventoryItem, InventoryBatch
from app.models.order import PurchaseOrder, PurchaseOrderItem, POStatus, TERMINAL_PO_STATUSES
from app.models.receiving import StockReceipt, StockReceiptItem, ItemCondition
from app.models.system import SystemConfiguration, ActivityLog
from app.models.equipment import EquipmentAsset, MaintenanceRecord, EquipmentStatus

__all__ = [
    "Supplier",
    "InventoryCategory",
    "InventoryItem",
    "InventoryBatch",
    "PurchaseOrder",
    "PurchaseOrderItem",
    "POStatus",
    "TERMINAL_PO_STATUSES",
    "StockReceipt",
    "StockReceiptItem",
    "ItemCondition",
    "SystemConfiguration",
    "ActivityLog",
    "EquipmentAsset",
    "MaintenanceRecord",
    "EquipmentStatus",
]
