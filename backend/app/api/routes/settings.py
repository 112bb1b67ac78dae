"""System settings routes."""

from fastapi import APIRouter, Request

from app.core.rate_limit import limiter
from app.db.session import DbSession
from app.schemas.system import SystemConfigurationResponse, SystemConfigurationUpdate
from app.services.system_config_service import get_or_create_configuration, update_configuration

router = APIRouter()


@router.get("/system", response_model=SystemConfigurationResponse)
@limiter.limit("60/minute")
def get_system_settings(request: Request, db: DbSession):
    """Clinic-wide settings, created with defaults on first read."""
    return get_or_create_configuration(db)


@router.put("/system", response_model=SystemConfigurationResponse)
@limiter.limit("30/minute")
def update_system_settings(request: Request, data: SystemConfigurationUpdate, db: DbSession):
    return update_configuration(db, data.model_dump(exclude_unset=True))
