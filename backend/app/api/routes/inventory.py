"""Inventory routes: catalog items, categories, stock movements, batches, alerts and activity."""

import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from app.core.rate_limit import limiter
from app.core.responses import list_response
from app.db.session import DbSession
from app.models.inventory import InventoryBatch, InventoryCategory, InventoryItem
from app.models.supplier import Supplier
from app.schemas.inventory import (
    ActivityLogResponse,
    AlertSweepResponse,
    InventoryBatchResponse,
    InventoryCategoryCreate,
    InventoryCategoryResponse,
    InventoryCategoryTree,
    InventoryCategoryUpdate,
    InventoryItemCreate,
    InventoryItemResponse,
    InventoryItemUpdate,
    StockChangeResponse,
    StockInRequest,
    StockOutRequest,
)
from app.services.activity_service import ActivityAction, log_activity, recent_activity
from app.services.category_service import (
    CategoryNotFoundError,
    CategoryService,
    CategoryValidationError,
)
from app.services.stock_service import (
    InsufficientStockError,
    ItemNotFoundError,
    StockQuantityError,
    StockService,
)
from app.services.stock_alert_service import StockAlertService
from app.services.system_config_service import get_or_create_configuration

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_item_or_404(db, item_id: int) -> InventoryItem:
    item = db.query(InventoryItem).filter(InventoryItem.id == item_id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Inventory item not found")
    return item


def _check_supplier(db, supplier_id: Optional[int]) -> None:
    if supplier_id and not db.query(Supplier.id).filter(Supplier.id == supplier_id).first():
        raise HTTPException(status_code=404, detail="Supplier not found")


def _check_category(db, category_id: Optional[int]) -> None:
    if category_id and not db.query(InventoryCategory.id).filter(InventoryCategory.id == category_id).first():
        raise HTTPException(status_code=404, detail="Category not found")


# ==================== ITEMS ====================

@router.get("/items")
@limiter.limit("60/minute")
def list_items(
    request: Request,
    db: DbSession,
    category_id: Optional[int] = None,
    supplier_id: Optional[int] = None,
    search: Optional[str] = None,
    limit: int = Query(500, ge=1, le=1000),
):
    """List catalog items."""
    query = db.query(InventoryItem)
    if category_id:
        query = query.filter(InventoryItem.category_id == category_id)
    if supplier_id:
        query = query.filter(InventoryItem.supplier_id == supplier_id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            InventoryItem.name.ilike(pattern),
            InventoryItem.sku.ilike(pattern),
            InventoryItem.barcode.ilike(pattern),
        ))
    total = query.count()
    items = query.order_by(InventoryItem.name).limit(limit).all()
    return list_response(items, total, schema=InventoryItemResponse)


@router.get("/items/{item_id}", response_model=InventoryItemResponse)
@limiter.limit("60/minute")
def get_item(request: Request, item_id: int, db: DbSession):
    return _get_item_or_404(db, item_id)


@router.post("/items", response_model=InventoryItemResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_item(request: Request, data: InventoryItemCreate, db: DbSession):
    """Create a catalog item with its initial stock count."""
    _check_supplier(db, data.supplier_id)
    _check_category(db, data.category_id)
    item = InventoryItem(**data.model_dump())
    if item.current_stock:
        item.last_restocked = date.today()
    try:
        db.add(item)
        db.flush()
        log_activity(
            db, ActivityAction.NEW_ITEM_ADDED, item.name,
            item_id=item.id, quantity=f"{item.current_stock} {item.unit_of_measurement}",
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="An item with this barcode already exists")
    db.refresh(item)
    logger.info(f"Inventory item created: {item.name} (id={item.id}, stock={item.current_stock})")
    return item


@router.put("/items/{item_id}", response_model=InventoryItemResponse)
@limiter.limit("30/minute")
def update_item(request: Request, item_id: int, data: InventoryItemUpdate, db: DbSession):
    """Update item details. On-hand stock is not editable here."""
    item = _get_item_or_404(db, item_id)
    changes = data.model_dump(exclude_unset=True)
    _check_supplier(db, changes.get("supplier_id"))
    _check_category(db, changes.get("category_id"))
    for field, value in changes.items():
        setattr(item, field, value)
    try:
        log_activity(db, ActivityAction.ITEM_UPDATED, item.name, item_id=item.id)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="An item with this barcode already exists")
    db.refresh(item)
    return item


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_item(request: Request, item_id: int, db: DbSession):
    item = _get_item_or_404(db, item_id)
    log_activity(db, ActivityAction.ITEM_DELETED, item.name, item_id=item.id)
    db.delete(item)
    db.commit()
    logger.info(f"Inventory item deleted: {item_id}")


# ==================== STOCK MOVEMENTS ====================

@router.post("/items/{item_id}/stock-in", response_model=StockChangeResponse)
@limiter.limit("30/minute")
def stock_in(request: Request, item_id: int, data: StockInRequest, db: DbSession):
    """Add stock outside a receipt (opening balances, returns, donations)."""
    _check_supplier(db, data.supplier_id)
    try:
        change = StockService(db).stock_in(
            item_id,
            data.quantity,
            unit_price=data.unit_price,
            supplier_id=data.supplier_id,
            batch_number=data.batch_number,
            expiry_date=data.expiry_date,
            user_name=data.received_by,
            notes=data.notes,
        )
    except ItemNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StockQuantityError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return change.to_dict()


@router.post("/items/{item_id}/stock-out", response_model=StockChangeResponse)
@limiter.limit("30/minute")
def stock_out(request: Request, item_id: int, data: StockOutRequest, db: DbSession):
    """Issue stock for use."""
    try:
        change = StockService(db).issue_stock(
            item_id,
            data.quantity,
            issued_to=data.issued_to,
            usage_type=data.usage_type,
            notes=data.notes,
        )
    except ItemNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (StockQuantityError, InsufficientStockError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return change.to_dict()


# ==================== ALERTS ====================

@router.get("/low-stock")
@limiter.limit("60/minute")
def low_stock(request: Request, db: DbSession):
    """Items at or below their minimum stock level."""
    items = (
        db.query(InventoryItem)
        .filter(InventoryItem.current_stock <= InventoryItem.minimum_stock)
        .order_by(InventoryItem.current_stock, InventoryItem.name)
        .all()
    )
    return list_response(items, schema=InventoryItemResponse)


@router.get("/expiring-batches")
@limiter.limit("60/minute")
def expiring_batches(request: Request, db: DbSession, days: Optional[int] = Query(None, ge=0)):
    """Batches with stock left that expire within the warning window."""
    if days is None:
        days = get_or_create_configuration(db).expiry_warning_days
    cutoff = date.today() + timedelta(days=days)
    batches = (
        db.query(InventoryBatch)
        .filter(
            InventoryBatch.quantity_remaining > 0,
            InventoryBatch.expiry_date.isnot(None),
            InventoryBatch.expiry_date <= cutoff,
        )
        .order_by(InventoryBatch.expiry_date)
        .all()
    )
    return list_response(batches, schema=InventoryBatchResponse)


@router.get("/items/{item_id}/batches")
@limiter.limit("60/minute")
def item_batches(request: Request, item_id: int, db: DbSession):
    item = _get_item_or_404(db, item_id)
    return list_response(item.batches, schema=InventoryBatchResponse)


@router.get("/activity")
@limiter.limit("60/minute")
def activity(
    request: Request,
    db: DbSession,
    limit: int = Query(50, ge=1, le=500),
    action: Optional[str] = None,
):
    """Recent stock activity, newest first."""
    entries = recent_activity(db, limit=limit, action=action)
    return list_response(entries, schema=ActivityLogResponse)


@router.post("/alerts/sweep", response_model=AlertSweepResponse)
@limiter.limit("30/minute")
def alert_sweep(request: Request, db: DbSession):
    """Log due low-stock and expiry alerts and return every current alert."""
    config = get_or_create_configuration(db)
    return StockAlertService(db).sweep(config.expiry_warning_days).to_dict()


# ==================== CATEGORIES ====================

@router.get("/categories", response_model=list[InventoryCategoryTree])
@limiter.limit("60/minute")
def list_categories(request: Request, db: DbSession):
    """Top-level categories, each with its sub-categories."""
    return CategoryService(db).list_tree()


@router.post("/categories", response_model=InventoryCategoryResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_category(request: Request, data: InventoryCategoryCreate, db: DbSession):
    try:
        return CategoryService(db).create(data.model_dump())
    except CategoryNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CategoryValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/categories/{category_id}", response_model=InventoryCategoryResponse)
@limiter.limit("30/minute")
def update_category(request: Request, category_id: int, data: InventoryCategoryUpdate, db: DbSession):
    try:
        return CategoryService(db).update(category_id, data.model_dump(exclude_unset=True))
    except CategoryNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CategoryValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_category(request: Request, category_id: int, db: DbSession):
    """Delete a category that has no sub-categories and no items."""
    try:
        CategoryService(db).delete(category_id)
    except CategoryNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CategoryValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
