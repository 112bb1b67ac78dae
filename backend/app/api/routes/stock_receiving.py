"""Stock receiving routes.

Submitting a receipt records it, updates on-hand stock for each line and may
create replenishment purchase orders. The response carries the outcome of
those follow-up steps; a 201 means the receipt itself is stored even when
``errors`` is not empty.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request, status

from app.core.rate_limit import limiter
from app.core.responses import list_response
from app.db.session import DbSession
from app.schemas.receiving import (
    DiscrepancyCheckRequest,
    DiscrepancyCheckResponse,
    PrefillResponse,
    ReceiptResultResponse,
    StockReceiptCreate,
    StockReceiptResponse,
    StockReceiptUpdate,
)
from app.services.discrepancy_service import discrepancy_message, has_discrepancy
from app.services.stock_receiving_service import (
    ReceiptNotFoundError,
    ReceiptPersistenceError,
    ReceiptResult,
    ReceiptValidationError,
    StockReceivingService,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _result_response(result: ReceiptResult) -> ReceiptResultResponse:
    return ReceiptResultResponse(
        receipt=StockReceiptResponse.model_validate(result.receipt),
        discrepancy_count=result.discrepancy_count,
        stock_updates=result.stock_updates,
        purchase_orders_created=result.purchase_orders_created,
        notifications=result.notifications,
        warnings=result.warnings,
        errors=result.errors,
    )


@router.get("/")
@limiter.limit("60/minute")
def list_receipts(
    request: Request,
    db: DbSession,
    supplier_id: Optional[int] = None,
    purchase_order_id: Optional[int] = None,
):
    receipts = StockReceivingService(db).list_receipts(
        supplier_id=supplier_id, purchase_order_id=purchase_order_id
    )
    return list_response(receipts, schema=StockReceiptResponse)


@router.post("/discrepancy-check", response_model=DiscrepancyCheckResponse)
@limiter.limit("120/minute")
def discrepancy_check(request: Request, data: DiscrepancyCheckRequest):
    """Flag lines whose received quantity differs from ordered, without saving anything."""
    flags = [has_discrepancy(line.quantity_received, line.quantity_ordered) for line in data.items]
    count = sum(flags)
    return DiscrepancyCheckResponse(flags=flags, discrepancy_count=count, message=discrepancy_message(count))


@router.get("/prefill/{po_id}", response_model=PrefillResponse)
@limiter.limit("60/minute")
def prefill(request: Request, po_id: int, db: DbSession):
    """Candidate receipt lines for a purchase order."""
    try:
        return StockReceivingService(db).prefill_from_purchase_order(po_id)
    except ReceiptNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{receipt_id}", response_model=StockReceiptResponse)
@limiter.limit("60/minute")
def get_receipt(request: Request, receipt_id: int, db: DbSession):
    try:
        return StockReceivingService(db).get_receipt(receipt_id)
    except ReceiptNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/", response_model=ReceiptResultResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_receipt(request: Request, data: StockReceiptCreate, db: DbSession):
    """Record a stock receipt."""
    try:
        result = StockReceivingService(db).create_receipt(data)
    except ReceiptValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ReceiptNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ReceiptPersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return _result_response(result)


@router.put("/{receipt_id}", response_model=ReceiptResultResponse)
@limiter.limit("30/minute")
def update_receipt(request: Request, receipt_id: int, data: StockReceiptUpdate, db: DbSession):
    """Edit a stored receipt's quantities and descriptive fields."""
    try:
        result = StockReceivingService(db).update_receipt(receipt_id, data)
    except ReceiptNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ReceiptPersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return _result_response(result)
