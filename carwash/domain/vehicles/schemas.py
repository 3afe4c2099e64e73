"""Vehicle domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.enums import VehicleType
from ...shared.validators import normalize_plate


class VehicleCreate(BaseModel):
    brand: str = Field(min_length=1, max_length=100)
    model: str = Field(min_length=1, max_length=100)
    plate: str
    vehicleType: VehicleType
    color: Optional[str] = None
    year: Optional[int] = Field(default=None, ge=1900, le=2100)
    ownerId: Optional[str] = None  # Admin only

    @field_validator("plate")
    @classmethod
    def check_plate(cls, v):
        return normalize_plate(v)


class VehicleUpdate(BaseModel):
    brand: Optional[str] = Field(default=None, min_length=1, max_length=100)
    model: Optional[str] = Field(default=None, min_length=1, max_length=100)
    plate: Optional[str] = None
    vehicleType: Optional[VehicleType] = None
    color: Optional[str] = None
    year: Optional[int] = Field(default=None, ge=1900, le=2100)
    isActive: Optional[bool] = None

    @field_validator("plate")
    @classmethod
    def check_plate(cls, v):
        if v is None:
            return v
        return normalize_plate(v)


class VehicleResponse(BaseModel):
    id: str
    ownerId: str
    brand: str
    model: str
    plate: str
    vehicleType: VehicleType
    color: Optional[str] = None
    year: Optional[int] = None
    isActive: bool
    createdAt: Optional[datetime] = None


def vehicle_response(vehicle) -> VehicleResponse:
    return VehicleResponse(
        id=vehicle.id,
        ownerId=vehicle.owner_id,
        brand=vehicle.brand,
        model=vehicle.model,
        plate=vehicle.plate,
        vehicleType=vehicle.vehicle_type,
        color=vehicle.color,
        year=vehicle.year,
        isActive=vehicle.is_active,
        createdAt=vehicle.created_at,
    )
