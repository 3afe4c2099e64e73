"""Washer directory router"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_roles
from ...database import get_db
from ...models import User
from ...shared.enums import Role
from .schemas import AvailabilityResponse, AvailabilityUpdate, NearbyWasher, WasherStatsResponse
from .service import WasherService

router = APIRouter(prefix="/washers", tags=["Washers"])


def get_washer_service(db: Session = Depends(get_db)) -> WasherService:
    return WasherService(db)


@router.get("/nearby", response_model=list[NearbyWasher])
async def nearby_washers(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius: Optional[float] = Query(None, gt=0, allow_inf_nan=False),
    _: User = Depends(require_roles(Role.CLIENT, Role.ADMIN)),
    service: WasherService = Depends(get_washer_service),
):
    """Available washers near a point, nearest first (radius defaults to 10 km)"""
    return service.find_nearby(latitude, longitude, radius)


@router.post("/availability", response_model=AvailabilityResponse)
async def set_availability(
    data: AvailabilityUpdate,
    current_user: User = Depends(require_roles(Role.WASHER)),
    service: WasherService = Depends(get_washer_service),
):
    washer = service.set_availability(current_user, data)
    return AvailabilityResponse(
        id=washer.id,
        isAvailable=washer.is_available,
        latitude=washer.latitude,
        longitude=washer.longitude,
    )


@router.get("/{washer_id}/stats", response_model=WasherStatsResponse)
async def washer_stats(
    washer_id: str,
    _: User = Depends(get_current_user),
    service: WasherService = Depends(get_washer_service),
):
    return service.stats(washer_id)
