"""Reservation router - FastAPI endpoints for bookings"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_roles
from ...config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from ...database import get_db
from ...models import User
from ...services.notification_service import NotificationSink, get_notification_sink
from ...shared.enums import ReservationStatus, Role
from .schemas import (
    ReservationCreate,
    ReservationDetailResponse,
    ReservationListResponse,
    ReservationStats,
    ReservationUpdate,
    StatusUpdate,
    reservation_detail_response,
    reservation_response,
)
from .service import ReservationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reservations", tags=["Reservations"])


def get_reservation_service(
    db: Session = Depends(get_db),
    notifier: NotificationSink = Depends(get_notification_sink),
) -> ReservationService:
    """Dependency injection for ReservationService"""
    return ReservationService(db, notifier)


def detail(service: ReservationService, reservation) -> ReservationDetailResponse:
    return reservation_detail_response(reservation, service.total_paid(reservation.id))


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.post("", response_model=ReservationDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    data: ReservationCreate,
    current_user: User = Depends(require_roles(Role.CLIENT, Role.ADMIN)),
    service: ReservationService = Depends(get_reservation_service),
):
    return detail(service, service.create_reservation(data, current_user))


@router.get("", response_model=ReservationListResponse)
async def list_reservations(
    status_filter: Optional[ReservationStatus] = Query(None, alias="status"),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    service: ReservationService = Depends(get_reservation_service),
):
    """Clients see their own bookings, washers their assigned jobs, admins everything"""
    reservations, total = service.list_reservations(current_user, status_filter, limit, offset)
    return ReservationListResponse(
        reservations=[reservation_response(r) for r in reservations],
        total=total,
        limit=min(limit, MAX_PAGE_LIMIT),
        offset=offset,
    )


@router.get("/stats", response_model=ReservationStats)
async def reservation_stats(
    current_user: User = Depends(get_current_user),
    service: ReservationService = Depends(get_reservation_service),
):
    return service.stats(current_user)


@router.get("/{reservation_id}", response_model=ReservationDetailResponse)
async def get_reservation(
    reservation_id: str,
    current_user: User = Depends(get_current_user),
    service: ReservationService = Depends(get_reservation_service),
):
    return detail(service, service.get_reservation(reservation_id, current_user))


@router.put("/{reservation_id}", response_model=ReservationDetailResponse)
async def update_reservation(
    reservation_id: str,
    data: ReservationUpdate,
    current_user: User = Depends(require_roles(Role.CLIENT, Role.ADMIN)),
    service: ReservationService = Depends(get_reservation_service),
):
    return detail(service, service.update_reservation(reservation_id, data, current_user))


@router.patch("/{reservation_id}/status", response_model=ReservationDetailResponse)
async def change_status(
    reservation_id: str,
    data: StatusUpdate,
    current_user: User = Depends(get_current_user),
    service: ReservationService = Depends(get_reservation_service),
):
    return detail(service, service.change_status(reservation_id, data.status, current_user))


@router.delete("/{reservation_id}")
async def delete_reservation(
    reservation_id: str,
    current_user: User = Depends(require_roles(Role.CLIENT, Role.ADMIN)),
    service: ReservationService = Depends(get_reservation_service),
):
    return service.delete_reservation(reservation_id, current_user)
