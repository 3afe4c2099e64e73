"""Job router - washer job discovery and workflow endpoints"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_roles
from ...database import get_db
from ...models import User
from ...services.notification_service import NotificationSink, get_notification_sink
from ...shared.enums import ReservationStatus, Role
from ..reservations.schemas import ReservationResponse, reservation_response
from .schemas import AcceptJobRequest, EtaUpdate, JobListResponse
from .service import JobService

router = APIRouter(prefix="/jobs", tags=["Jobs"])

washer_only = require_roles(Role.WASHER)


def get_job_service(
    db: Session = Depends(get_db),
    notifier: NotificationSink = Depends(get_notification_sink),
) -> JobService:
    return JobService(db, notifier)


@router.get("", response_model=JobListResponse)
async def list_jobs(
    status: ReservationStatus = Query(ReservationStatus.PENDING),
    latitude: Optional[float] = Query(None, ge=-90, le=90),
    longitude: Optional[float] = Query(None, ge=-180, le=180),
    radius: Optional[float] = Query(None, gt=0, allow_inf_nan=False),
    current_user: User = Depends(require_roles(Role.WASHER, Role.ADMIN)),
    service: JobService = Depends(get_job_service),
):
    jobs = service.list_jobs(current_user, status, latitude, longitude, radius)
    return JobListResponse(
        jobs=[reservation_response(job, distance) for job, distance in jobs], total=len(jobs)
    )


@router.get("/mine", response_model=JobListResponse)
async def my_jobs(
    status: Optional[ReservationStatus] = Query(None),
    current_user: User = Depends(washer_only),
    service: JobService = Depends(get_job_service),
):
    jobs = service.my_jobs(current_user, status)
    return JobListResponse(jobs=[reservation_response(j) for j in jobs], total=len(jobs))


@router.post("/{reservation_id}/accept", response_model=ReservationResponse)
async def accept_job(
    reservation_id: str,
    data: Optional[AcceptJobRequest] = Body(None),
    current_user: User = Depends(washer_only),
    service: JobService = Depends(get_job_service),
):
    eta = data.estimatedArrival if data else None
    return reservation_response(service.accept(reservation_id, current_user, eta))


@router.post("/{reservation_id}/start", response_model=ReservationResponse)
async def start_job(
    reservation_id: str,
    current_user: User = Depends(washer_only),
    service: JobService = Depends(get_job_service),
):
    return reservation_response(service.start(reservation_id, current_user))


@router.post("/{reservation_id}/complete", response_model=ReservationResponse)
async def complete_job(
    reservation_id: str,
    current_user: User = Depends(washer_only),
    service: JobService = Depends(get_job_service),
):
    return reservation_response(service.complete(reservation_id, current_user))


@router.put("/{reservation_id}/eta", response_model=ReservationResponse)
async def update_eta(
    reservation_id: str,
    data: EtaUpdate,
    current_user: User = Depends(washer_only),
    service: JobService = Depends(get_job_service),
):
    return reservation_response(service.update_eta(reservation_id, current_user, data.estimatedArrival))


@router.post("/{reservation_id}/cancel", response_model=ReservationResponse)
async def cancel_job(
    reservation_id: str,
    current_user: User = Depends(require_roles(Role.WASHER, Role.ADMIN)),
    service: JobService = Depends(get_job_service),
):
    return reservation_response(service.cancel(reservation_id, current_user))
