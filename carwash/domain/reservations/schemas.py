"""Reservation domain schemas"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, StrictFloat, StrictInt, field_validator, model_validator

from ...shared.enums import ReservationStatus
from ...shared.validators import validate_latitude, validate_longitude, validate_schedule_time
from ..catalog.schemas import WashServiceResponse, wash_service_response
from ..users.schemas import UserSummary, user_summary
from ..vehicles.schemas import VehicleResponse, vehicle_response

Coordinate = Optional[StrictFloat | StrictInt]


class LocationFields(BaseModel):
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

    @model_validator(mode="after")
    def coordinates_together(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self


class ReservationCreate(LocationFields):
    vehicleId: str = Field(min_length=1)
    serviceId: str = Field(min_length=1)
    scheduledDate: date
    scheduledTime: str
    address: Optional[str] = None
    notes: Optional[str] = None
    userId: Optional[str] = None  # Admin booking on behalf of a client

    @field_validator("scheduledTime")
    @classmethod
    def check_time(cls, v):
        return validate_schedule_time(v)


class ReservationUpdate(LocationFields):
    vehicleId: Optional[str] = None
    serviceId: Optional[str] = None
    scheduledDate: Optional[date] = None
    scheduledTime: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("scheduledTime")
    @classmethod
    def check_time(cls, v):
        if v is None:
            return v
        return validate_schedule_time(v)


class StatusUpdate(BaseModel):
    status: ReservationStatus


class RatingSummary(BaseModel):
    id: str
    stars: int
    comment: Optional[str] = None
    createdAt: Optional[datetime] = None


class ProofSummary(BaseModel):
    beforePhotos: list[str]
    afterPhotos: list[str]
    notes: Optional[str] = None
    updatedAt: Optional[datetime] = None


class PaymentSummary(BaseModel):
    totalAmount: float
    totalPaid: float
    balance: float
    isPaid: bool


class ReservationResponse(BaseModel):
    id: str
    userId: str
    vehicleId: str
    serviceId: str
    washerId: Optional[str] = None
    status: ReservationStatus
    scheduledDate: date
    scheduledTime: str
    totalAmount: float
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    notes: Optional[str] = None
    estimatedArrival: Optional[datetime] = None
    startedAt: Optional[datetime] = None
    servicedAt: Optional[datetime] = None
    paidAt: Optional[datetime] = None
    completedAt: Optional[datetime] = None
    cancelledAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    vehicle: Optional[VehicleResponse] = None
    service: Optional[WashServiceResponse] = None
    client: Optional[UserSummary] = None
    washer: Optional[UserSummary] = None
    distance: Optional[float] = None  # km, only on location-filtered job lists


class ReservationDetailResponse(ReservationResponse):
    rating: Optional[RatingSummary] = None
    proof: Optional[ProofSummary] = None
    payment: Optional[PaymentSummary] = None


class ReservationListResponse(BaseModel):
    reservations: list[ReservationResponse]
    total: int
    limit: int
    offset: int


class ReservationStats(BaseModel):
    total: int
    byStatus: dict[str, int]


def reservation_fields(reservation) -> dict:
    return dict(
        id=reservation.id,
        userId=reservation.user_id,
        vehicleId=reservation.vehicle_id,
        serviceId=reservation.service_id,
        washerId=reservation.washer_id,
        status=reservation.status,
        scheduledDate=reservation.scheduled_date,
        scheduledTime=reservation.scheduled_time,
        totalAmount=reservation.total_amount,
        address=reservation.address,
        latitude=reservation.latitude,
        longitude=reservation.longitude,
        notes=reservation.notes,
        estimatedArrival=reservation.estimated_arrival,
        startedAt=reservation.started_at,
        servicedAt=reservation.serviced_at,
        paidAt=reservation.paid_at,
        completedAt=reservation.completed_at,
        cancelledAt=reservation.cancelled_at,
        createdAt=reservation.created_at,
        vehicle=vehicle_response(reservation.vehicle) if reservation.vehicle else None,
        service=wash_service_response(reservation.service) if reservation.service else None,
        client=user_summary(reservation.client),
        washer=user_summary(reservation.washer),
    )


def reservation_response(reservation, distance: Optional[float] = None) -> ReservationResponse:
    return ReservationResponse(**reservation_fields(reservation), distance=distance)


def reservation_detail_response(reservation, total_paid: float) -> ReservationDetailResponse:
    rating = reservation.rating
    proof = reservation.proof
    return ReservationDetailResponse(
        **reservation_fields(reservation),
        rating=RatingSummary(
            id=rating.id, stars=rating.stars, comment=rating.comment, createdAt=rating.created_at
        )
        if rating
        else None,
        proof=ProofSummary(
            beforePhotos=proof.before_photos or [],
            afterPhotos=proof.after_photos or [],
            notes=proof.notes,
            updatedAt=proof.updated_at,
        )
        if proof
        else None,
        payment=payment_summary(reservation.total_amount, total_paid),
    )


def payment_summary(total_amount: float, total_paid: float) -> PaymentSummary:
    return PaymentSummary(
        totalAmount=total_amount,
        totalPaid=total_paid,
        balance=max(0.0, round(total_amount - total_paid, 2)),
        isPaid=total_paid >= total_amount,
    )
