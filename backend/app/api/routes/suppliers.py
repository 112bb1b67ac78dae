"""Supplier routes."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from sqlalchemy.exc import IntegrityError

from app.core.rate_limit import limiter
from app.core.responses import list_response
from app.db.session import DbSession
from app.models.supplier import Supplier
from app.schemas.supplier import SupplierCreate, SupplierResponse, SupplierUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_supplier_or_404(db, supplier_id: int) -> Supplier:
    supplier = db.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise HTTPException(status_code=404, detail="Supplier not found")
    return supplier


@router.get("/")
@limiter.limit("60/minute")
def list_suppliers(
    request: Request,
    db: DbSession,
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
):
    """List suppliers by name, optionally filtered by status or a name search."""
    query = db.query(Supplier)
    if status_filter:
        query = query.filter(Supplier.status == status_filter)
    if search:
        query = query.filter(Supplier.name.ilike(f"%{search}%"))
    suppliers = query.order_by(Supplier.name).limit(500).all()
    return list_response(suppliers, schema=SupplierResponse)


@router.get("/{supplier_id}", response_model=SupplierResponse)
@limiter.limit("60/minute")
def get_supplier(request: Request, supplier_id: int, db: DbSession):
    return _get_supplier_or_404(db, supplier_id)


@router.post("/", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_supplier(request: Request, data: SupplierCreate, db: DbSession):
    """Create a new supplier."""
    supplier = Supplier(**data.model_dump())
    db.add(supplier)
    db.commit()
    db.refresh(supplier)
    logger.info(f"Supplier created: {supplier.name} (id={supplier.id})")
    return supplier


@router.put("/{supplier_id}", response_model=SupplierResponse)
@limiter.limit("30/minute")
def update_supplier(request: Request, supplier_id: int, data: SupplierUpdate, db: DbSession):
    """Update a supplier."""
    supplier = _get_supplier_or_404(db, supplier_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(supplier, field, value)
    db.commit()
    db.refresh(supplier)
    return supplier


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_supplier(request: Request, supplier_id: int, db: DbSession):
    """Delete a supplier. Suppliers referenced by stock receipts cannot be deleted."""
    supplier = _get_supplier_or_404(db, supplier_id)
    try:
        db.delete(supplier)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=400,
            detail="Supplier has stock receipts and cannot be deleted; mark it inactive instead",
        )
