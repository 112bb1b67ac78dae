"""Purchase order routes."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status

from app.core.rate_limit import limiter
from app.core.responses import list_response
from app.db.session import DbSession
from app.models.order import POStatus
from app.schemas.purchase_order import (
    PurchaseOrderCreate,
    PurchaseOrderResponse,
    PurchaseOrderUpdate,
    StatusChangeRequest,
)
from app.services.purchase_order_service import (
    InvalidStatusTransitionError,
    PurchaseOrderNotFoundError,
    PurchaseOrderService,
    PurchaseOrderValidationError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
@limiter.limit("60/minute")
def list_purchase_orders(
    request: Request,
    db: DbSession,
    status_filter: Optional[POStatus] = Query(None, alias="status"),
    supplier_id: Optional[int] = None,
    receivable: bool = False,
):
    """List purchase orders. ``receivable=true`` limits to orders still awaiting delivery."""
    orders = PurchaseOrderService(db).list_orders(
        status=status_filter, supplier_id=supplier_id, receivable=receivable
    )
    return list_response(orders, schema=PurchaseOrderResponse)


@router.get("/{po_id}", response_model=PurchaseOrderResponse)
@limiter.limit("60/minute")
def get_purchase_order(request: Request, po_id: int, db: DbSession):
    try:
        return PurchaseOrderService(db).get(po_id)
    except PurchaseOrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/", response_model=PurchaseOrderResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_purchase_order(request: Request, data: PurchaseOrderCreate, db: DbSession):
    """Create a pending purchase order with its items."""
    header = data.model_dump(exclude={"items"})
    items = [item.model_dump() for item in data.items]
    try:
        return PurchaseOrderService(db).create_order(header, items)
    except PurchaseOrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PurchaseOrderValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.put("/{po_id}", response_model=PurchaseOrderResponse)
@limiter.limit("30/minute")
def update_purchase_order(request: Request, po_id: int, data: PurchaseOrderUpdate, db: DbSession):
    try:
        return PurchaseOrderService(db).update(po_id, data.model_dump(exclude_unset=True))
    except PurchaseOrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{po_id}/status", response_model=PurchaseOrderResponse)
@limiter.limit("30/minute")
def change_status(request: Request, po_id: int, data: StatusChangeRequest, db: DbSession):
    """Move an order along pending, approved, ordered and received, or cancel it."""
    try:
        return PurchaseOrderService(db).transition(po_id, data.status)
    except PurchaseOrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStatusTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{po_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_purchase_order(request: Request, po_id: int, db: DbSession):
    try:
        PurchaseOrderService(db).delete(po_id)
    except PurchaseOrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PurchaseOrderValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
