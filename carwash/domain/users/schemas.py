"""User domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, StrictFloat, StrictInt, field_validator

from ...shared.enums import Role
from ...shared.validators import (
    validate_email,
    validate_latitude,
    validate_longitude,
    validate_phone,
)

Coordinate = Optional[StrictFloat | StrictInt]


class RegisterRequest(BaseModel):
    email: str
    password: str = Field(min_length=8, max_length=128)
    name: str = Field(min_length=1, max_length=255)
    phone: Optional[str] = None
    address: Optional[str] = None
    role: Role = Role.CLIENT

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class AdminUserCreate(RegisterRequest):
    """Admin-created account; any role, washers may start with a location"""

    latitude: Coordinate = None
    longitude: Coordinate = None

    @field_validator("latitude")
    @classmethod
    def check_latitude(cls, v):
        return validate_latitude(v)

    @field_validator("longitude")
    @classmethod
    def check_longitude(cls, v):
        return validate_longitude(v)


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone: Optional[str] = None
    address: Optional[str] = None
    currentPassword: Optional[str] = None
    newPassword: Optional[str] = Field(default=None, min_length=8, max_length=128)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class AdminUserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone: Optional[str] = None
    address: Optional[str] = None
    isActive: Optional[bool] = None
    isAvailable: Optional[bool] = None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class LocationUpdate(BaseModel):
    latitude: StrictFloat | StrictInt
    longitude: StrictFloat | StrictInt

    @field_validator("latitude")
    @classmethod
    def check_latitude(cls, v):
        return validate_latitude(v)

    @field_validator("longitude")
    @classmethod
    def check_longitude(cls, v):
        return validate_longitude(v)


class UserResponse(BaseModel):
    id: str
    role: Role
    email: str
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    isAvailable: bool
    rating: float
    completedServices: int
    isActive: bool
    createdAt: Optional[datetime] = None


class UserSummary(BaseModel):
    """Contact card embedded in reservations and jobs"""

    id: str
    name: str
    email: str
    phone: Optional[str] = None
    rating: Optional[float] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class UserListResponse(BaseModel):
    users: list[UserResponse]
    total: int


def user_response(user) -> UserResponse:
    return UserResponse(
        id=user.id,
        role=user.role,
        email=user.email,
        name=user.name,
        phone=user.phone,
        address=user.address,
        latitude=user.latitude,
        longitude=user.longitude,
        isAvailable=user.is_available,
        rating=user.rating or 0.0,
        completedServices=user.completed_services or 0,
        isActive=user.is_active,
        createdAt=user.created_at,
    )


def user_summary(user) -> Optional[UserSummary]:
    if user is None:
        return None
    return UserSummary(
        id=user.id,
        name=user.name,
        email=user.email,
        phone=user.phone,
        rating=user.rating if user.role == Role.WASHER.value else None,
    )
