# Services module

from app.services.stock_receiving_service import (
    StockReceivingService,
    ReceiptResult,
    ReceiptValidationError,
    ReceiptNotFoundError,
    ReceiptPersistenceError,
)
from app.services.stock_service import (
    StockService,
    StockChange,
    InsufficientStockError,
)
from app.services.reorder_service import (
    ReorderService,
    ReorderOutcome,
    reorder_quantity,
)
from app.services.purchase_order_service import (
    PurchaseOrderService,
    InvalidStatusTransitionError,
)
from app.services.numbering_service import NumberingService
from app.services.system_config_service import ReorderSettings, load_reorder_settings
