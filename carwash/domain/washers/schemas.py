"""Washer directory schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, StrictBool, StrictFloat, StrictInt, field_validator

from ...shared.validators import validate_latitude, validate_longitude


class NearbyWasher(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    latitude: float
    longitude: float
    rating: float
    completedServices: int
    distance: float  # km, one decimal
    isAvailable: bool  # False while any job is IN_PROGRESS


class AvailabilityUpdate(BaseModel):
    isAvailable: Optional[StrictBool] = None  # Omitted → toggle
    latitude: Optional[StrictFloat | StrictInt] = None
    longitude: Optional[StrictFloat | StrictInt] = None

    @field_validator("latitude")
    @classmethod
    def check_latitude(cls, v):
        return validate_latitude(v)

    @field_validator("longitude")
    @classmethod
    def check_longitude(cls, v):
        return validate_longitude(v)


class AvailabilityResponse(BaseModel):
    id: str
    isAvailable: bool
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class RecentRating(BaseModel):
    stars: int
    comment: Optional[str] = None
    date: Optional[datetime] = None


class WasherStatsResponse(BaseModel):
    washerId: str
    name: str
    rating: float
    completedServices: int
    totalJobs: int
    completedJobs: int
    completionRate: int  # Percent
    averageRating: float
    totalRatings: int
    recentRatings: list[RecentRating]
