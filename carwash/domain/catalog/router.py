"""Catalog router - /services"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_roles
from ...database import get_db
from ...models import User
from ...shared.enums import Role, VehicleType
from .schemas import (
    WashServiceCreate,
    WashServiceResponse,
    WashServiceUpdate,
    wash_service_response,
)
from .service import CatalogService

router = APIRouter(prefix="/services", tags=["Services"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


@router.get("", response_model=list[WashServiceResponse])
async def list_services(
    vehicle_type: Optional[VehicleType] = Query(None, alias="vehicleType"),
    include_inactive: bool = Query(False, alias="includeInactive"),
    current_user: User = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
):
    """Active services ordered by vehicle type; admins may include inactive ones"""
    include_inactive = include_inactive and current_user.role_enum == Role.ADMIN
    return [wash_service_response(s) for s in service.list_services(vehicle_type, include_inactive)]


@router.get("/{service_id}", response_model=WashServiceResponse)
async def get_service(
    service_id: str,
    _: User = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
):
    return wash_service_response(service.get_service(service_id))


@router.post("", response_model=WashServiceResponse, status_code=status.HTTP_201_CREATED)
async def create_service(
    data: WashServiceCreate,
    _: User = Depends(require_roles(Role.ADMIN)),
    service: CatalogService = Depends(get_catalog_service),
):
    return wash_service_response(service.create_service(data))


@router.put("/{service_id}", response_model=WashServiceResponse)
async def update_service(
    service_id: str,
    data: WashServiceUpdate,
    _: User = Depends(require_roles(Role.ADMIN)),
    service: CatalogService = Depends(get_catalog_service),
):
    return wash_service_response(service.update_service(service_id, data))


@router.delete("/{service_id}")
async def delete_service(
    service_id: str,
    _: User = Depends(require_roles(Role.ADMIN)),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.delete_service(service_id)
