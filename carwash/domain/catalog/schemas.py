"""Catalog schemas - the wash services clients can book"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ...shared.enums import VehicleType


class WashServiceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    price: float = Field(gt=0)
    duration: int = Field(gt=0)  # Minutes
    vehicleType: VehicleType
    isActive: bool = True


class WashServiceUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, gt=0)
    duration: Optional[int] = Field(default=None, gt=0)
    vehicleType: Optional[VehicleType] = None
    isActive: Optional[bool] = None


class WashServiceResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: float
    duration: int
    vehicleType: VehicleType
    isActive: bool
    createdAt: Optional[datetime] = None


def wash_service_response(service) -> WashServiceResponse:
    return WashServiceResponse(
        id=service.id,
        name=service.name,
        description=service.description,
        price=service.price,
        duration=service.duration,
        vehicleType=service.vehicle_type,
        isActive=service.is_active,
        createdAt=service.created_at,
    )
