"""Vehicle router"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...auth import require_roles
from ...database import get_db
from ...models import User
from ...shared.enums import Role
from .schemas import VehicleCreate, VehicleResponse, VehicleUpdate, vehicle_response
from .service import VehicleService

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])

owner_or_admin = require_roles(Role.CLIENT, Role.ADMIN)


def get_vehicle_service(db: Session = Depends(get_db)) -> VehicleService:
    return VehicleService(db)


@router.get("", response_model=list[VehicleResponse])
async def list_vehicles(
    owner_id: Optional[str] = Query(None, alias="ownerId"),
    include_inactive: bool = Query(False, alias="includeInactive"),
    current_user: User = Depends(owner_or_admin),
    service: VehicleService = Depends(get_vehicle_service),
):
    vehicles = service.list_vehicles(current_user, owner_id, include_inactive)
    return [vehicle_response(v) for v in vehicles]


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    data: VehicleCreate,
    current_user: User = Depends(owner_or_admin),
    service: VehicleService = Depends(get_vehicle_service),
):
    return vehicle_response(service.create_vehicle(data, current_user))


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: str,
    current_user: User = Depends(owner_or_admin),
    service: VehicleService = Depends(get_vehicle_service),
):
    return vehicle_response(service.get_vehicle(vehicle_id, current_user))


@router.put("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_id: str,
    data: VehicleUpdate,
    current_user: User = Depends(owner_or_admin),
    service: VehicleService = Depends(get_vehicle_service),
):
    return vehicle_response(service.update_vehicle(vehicle_id, data, current_user))


@router.post("/{vehicle_id}/deactivate", response_model=VehicleResponse)
async def deactivate_vehicle(
    vehicle_id: str,
    current_user: User = Depends(owner_or_admin),
    service: VehicleService = Depends(get_vehicle_service),
):
    return vehicle_response(service.deactivate_vehicle(vehicle_id, current_user))


@router.delete("/{vehicle_id}")
async def delete_vehicle(
    vehicle_id: str,
    current_user: User = Depends(owner_or_admin),
    service: VehicleService = Depends(get_vehicle_service),
):
    return service.delete_vehicle(vehicle_id, current_user)
