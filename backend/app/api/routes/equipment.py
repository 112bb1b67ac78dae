"""Equipment asset and maintenance routes."""

import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status

from app.core.rate_limit import limiter
from app.core.responses import list_response
from app.db.session import DbSession
from app.models.equipment import EquipmentAsset, EquipmentStatus, MaintenanceRecord
from app.schemas.equipment import (
    EquipmentCreate,
    EquipmentDetailResponse,
    EquipmentResponse,
    EquipmentUpdate,
    MaintenanceCreate,
    MaintenanceResponse,
    MaintenanceUpdate,
)
from app.services.numbering_service import NumberingService

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_asset_or_404(db, equipment_id: int) -> EquipmentAsset:
    asset = db.query(EquipmentAsset).filter(EquipmentAsset.id == equipment_id).first()
    if not asset:
        raise HTTPException(status_code=404, detail="Equipment not found")
    return asset


def _get_record_or_404(db, equipment_id: int, record_id: int) -> MaintenanceRecord:
    record = db.query(MaintenanceRecord).filter(
        MaintenanceRecord.id == record_id,
        MaintenanceRecord.equipment_id == equipment_id,
    ).first()
    if not record:
        raise HTTPException(status_code=404, detail="Maintenance record not found")
    return record


# ==================== ASSETS ====================

@router.get("/")
@limiter.limit("60/minute")
def list_equipment(
    request: Request,
    db: DbSession,
    status_filter: Optional[EquipmentStatus] = Query(None, alias="status"),
    category: Optional[str] = None,
):
    query = db.query(EquipmentAsset)
    if status_filter:
        query = query.filter(EquipmentAsset.status == status_filter)
    if category:
        query = query.filter(EquipmentAsset.category == category)
    assets = query.order_by(EquipmentAsset.name).limit(500).all()
    return list_response(assets, schema=EquipmentResponse)


@router.get("/maintenance/due")
@limiter.limit("60/minute")
def maintenance_due(request: Request, db: DbSession, days: int = Query(30, ge=0, le=365)):
    """Maintenance records whose next maintenance date falls within ``days`` (overdue included)."""
    cutoff = date.today() + timedelta(days=days)
    records = (
        db.query(MaintenanceRecord)
        .join(EquipmentAsset, MaintenanceRecord.equipment_id == EquipmentAsset.id)
        .filter(
            MaintenanceRecord.next_maintenance_date.isnot(None),
            MaintenanceRecord.next_maintenance_date <= cutoff,
            EquipmentAsset.status.in_([EquipmentStatus.ACTIVE, EquipmentStatus.MAINTENANCE]),
        )
        .order_by(MaintenanceRecord.next_maintenance_date)
        .all()
    )
    return list_response([
        {
            **MaintenanceResponse.model_validate(r).model_dump(),
            "asset_number": r.equipment.asset_number,
            "equipment_name": r.equipment.name,
            "overdue": r.next_maintenance_date < date.today(),
        }
        for r in records
    ])


@router.get("/{equipment_id}", response_model=EquipmentDetailResponse)
@limiter.limit("60/minute")
def get_equipment(request: Request, equipment_id: int, db: DbSession):
    return _get_asset_or_404(db, equipment_id)


@router.post("/", response_model=EquipmentResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_equipment(request: Request, data: EquipmentCreate, db: DbSession):
    """Register an equipment asset with a generated asset number."""
    asset = EquipmentAsset(
        asset_number=NumberingService(db).generate_asset_number(),
        **data.model_dump(),
    )
    db.add(asset)
    db.commit()
    db.refresh(asset)
    logger.info(f"Equipment registered: {asset.asset_number} {asset.name}")
    return asset


@router.put("/{equipment_id}", response_model=EquipmentResponse)
@limiter.limit("30/minute")
def update_equipment(request: Request, equipment_id: int, data: EquipmentUpdate, db: DbSession):
    asset = _get_asset_or_404(db, equipment_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(asset, field, value)
    db.commit()
    db.refresh(asset)
    return asset


@router.delete("/{equipment_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_equipment(request: Request, equipment_id: int, db: DbSession):
    asset = _get_asset_or_404(db, equipment_id)
    db.delete(asset)
    db.commit()


# ==================== MAINTENANCE ====================

@router.post(
    "/{equipment_id}/maintenance",
    response_model=MaintenanceResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit("30/minute")
def add_maintenance(request: Request, equipment_id: int, data: MaintenanceCreate, db: DbSession):
    _get_asset_or_404(db, equipment_id)
    record = MaintenanceRecord(equipment_id=equipment_id, **data.model_dump())
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@router.put("/{equipment_id}/maintenance/{record_id}", response_model=MaintenanceResponse)
@limiter.limit("30/minute")
def update_maintenance(
    request: Request, equipment_id: int, record_id: int, data: MaintenanceUpdate, db: DbSession
):
    record = _get_record_or_404(db, equipment_id, record_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(record, field, value)
    db.commit()
    db.refresh(record)
    return record


@router.delete("/{equipment_id}/maintenance/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_maintenance(request: Request, equipment_id: int, record_id: int, db: DbSession):
    record = _get_record_or_404(db, equipment_id, record_id)
    db.delete(record)
    db.commit()
