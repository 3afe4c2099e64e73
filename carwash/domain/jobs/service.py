"""
Job service - washer job discovery and the assignment workflow

Every state change goes through ``reservations.lifecycle`` so that a losing
racer sees a zero-row UPDATE instead of overwriting the winner. On failure
the row is re-read only to pick the right error.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Reservation, User
from ...services.notification_service import NotificationSink
from ...shared.enums import NotificationType, ReservationStatus, Role
from ...shared.errors import Conflict, Forbidden, NotFound, ValidationFailed
from ...shared.geo import display_distance
from ..reservations import lifecycle
from .repository import JobRepository

logger = logging.getLogger(__name__)


class JobService:
    def __init__(self, db: Session, notifier: Optional[NotificationSink] = None):
        self.db = db
        self.repo = JobRepository()
        self.notifier = notifier or NotificationSink(db)

    # ============================================================================
    # DISCOVERY
    # ============================================================================

    def list_jobs(
        self,
        user: User,
        status: ReservationStatus = ReservationStatus.PENDING,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        radius: Optional[float] = None,
    ) -> list[tuple[Reservation, Optional[float]]]:
        """
        PENDING lists unclaimed jobs; any other status lists the caller's own
        jobs in that status (every washer's for admins). With a location the
        list is narrowed to jobs within ``radius`` km, nearest first.
        """
        if status == ReservationStatus.PENDING:
            jobs = self.repo.open_jobs(self.db)
        else:
            washer_id = None if user.role_enum == Role.ADMIN else user.id
            jobs = self.repo.assigned_jobs(self.db, washer_id, status.value)

        if latitude is None and longitude is None:
            return [(job, None) for job in jobs]
        if latitude is None or longitude is None:
            raise ValidationFailed("latitude and longitude must be provided together")

        located = []
        for job in jobs:
            if job.latitude is None or job.longitude is None:
                continue
            distance = display_distance(latitude, longitude, job.latitude, job.longitude)
            if radius is None or distance <= radius:
                located.append((job, distance))
        located.sort(key=lambda pair: pair[1])
        return located

    def my_jobs(self, washer: User, status: Optional[ReservationStatus] = None) -> list[Reservation]:
        return self.repo.assigned_jobs(self.db, washer.id, status.value if status else None)

    # ============================================================================
    # WORKFLOW
    # ============================================================================

    def _get_assigned(self, reservation_id: str, washer: User) -> Reservation:
        job = self.repo.get_job(self.db, reservation_id)
        if not job:
            raise NotFound("Job not found")
        if job.washer_id != washer.id:
            raise Forbidden("This job is not assigned to you")
        return job

    def accept(
        self, reservation_id: str, washer: User, estimated_arrival: Optional[datetime] = None
    ) -> Reservation:
        """First acceptor wins: PENDING and unassigned → CONFIRMED for ``washer``"""
        if not lifecycle.claim(self.db, reservation_id, washer.id, estimated_arrival):
            self.db.rollback()
            job = self.repo.get_job(self.db, reservation_id)
            if not job:
                raise NotFound("Job not found")
            if job.washer_id:
                logger.info(f"⚠️ Washer {washer.id} lost the race for {reservation_id}")
                raise Conflict(
                    "This job is already assigned to another washer", code="ALREADY_ASSIGNED"
                )
            raise Conflict(
                f"Job is not available (status {job.status})", code="JOB_NOT_AVAILABLE"
            )

        self.db.commit()
        job = self.repo.get_job(self.db, reservation_id)
        logger.info(f"✅ Washer {washer.id} accepted reservation {reservation_id}")

        self.notifier.notify(
            job.user_id,
            "Washer assigned",
            f"{washer.name} accepted your wash for {job.scheduled_date} at {job.scheduled_time}.",
            NotificationType.WASHER_ASSIGNED,
            action_url=f"/reservations/{job.id}",
            metadata={
                "reservationId": job.id,
                "washerId": washer.id,
                "washerName": washer.name,
                "washerRating": washer.rating,
                "estimatedArrival": estimated_arrival.isoformat() if estimated_arrival else None,
            },
        )
        self.notifier.notify(
            washer.id,
            "New job assigned",
            f"You have a wash on {job.scheduled_date} at {job.scheduled_time}"
            + (f" at {job.address}." if job.address else "."),
            NotificationType.INFO,
            action_url=f"/jobs/{job.id}",
            metadata={"reservationId": job.id},
        )
        return job

    def start(self, reservation_id: str, washer: User) -> Reservation:
        job = self._get_assigned(reservation_id, washer)
        if not lifecycle.start(self.db, job.id, washer.id):
            raise Conflict(
                f"Only CONFIRMED jobs can be started (status {job.status})",
                code="INVALID_TRANSITION",
            )

        self.db.commit()
        job = self.repo.get_job(self.db, reservation_id)
        logger.info(f"🚿 Washer {washer.id} started reservation {reservation_id}")
        self.notifier.notify(
            job.user_id,
            "Service started",
            f"{washer.name} has started washing your vehicle.",
            NotificationType.SERVICE_STARTED,
            action_url=f"/reservations/{job.id}",
            metadata={"reservationId": job.id},
        )
        return job

    def complete(self, reservation_id: str, washer: User) -> Reservation:
        job = self._get_assigned(reservation_id, washer)
        if job.status != ReservationStatus.IN_PROGRESS.value:
            raise Conflict(
                f"Only IN_PROGRESS jobs can be completed (status {job.status})",
                code="INVALID_TRANSITION",
            )
        if not lifecycle.mark_serviced(self.db, job.id, washer.id):
            self.db.rollback()
            raise Conflict("Job was already completed", code="INVALID_TRANSITION")

        self.db.commit()
        job = self.repo.get_job(self.db, reservation_id)
        self.notifier.notify(
            job.user_id,
            "Service completed",
            "Your vehicle is ready. You can now rate your washer.",
            NotificationType.SERVICE_COMPLETED,
            action_url=f"/reservations/{job.id}",
            metadata={"reservationId": job.id},
        )
        return job

    def update_eta(self, reservation_id: str, washer: User, eta: datetime) -> Reservation:
        job = self._get_assigned(reservation_id, washer)
        if not self.repo.set_estimated_arrival(self.db, job.id, washer.id, eta):
            raise Conflict(
                f"ETA can only change while the job is active (status {job.status})",
                code="INVALID_TRANSITION",
            )

        self.db.commit()
        job = self.repo.get_job(self.db, reservation_id)
        self.notifier.notify(
            job.user_id,
            "Washer on the way",
            f"{washer.name} expects to arrive at {eta.strftime('%H:%M')}.",
            NotificationType.WASHER_ON_WAY,
            action_url=f"/reservations/{job.id}",
            metadata={"reservationId": job.id, "estimatedArrival": eta.isoformat()},
        )
        return job

    def cancel(self, reservation_id: str, user: User) -> Reservation:
        """Assigned washer or admin drops a PENDING/CONFIRMED job"""
        if user.role_enum == Role.ADMIN:
            job = self.repo.get_job(self.db, reservation_id)
            if not job:
                raise NotFound("Job not found")
        else:
            job = self._get_assigned(reservation_id, user)

        if not lifecycle.cancel(self.db, job.id):
            raise Conflict(
                f"Only PENDING or CONFIRMED jobs can be cancelled (status {job.status})",
                code="INVALID_TRANSITION",
            )

        self.db.commit()
        job = self.repo.get_job(self.db, reservation_id)
        logger.info(f"❌ Reservation {reservation_id} cancelled by {user.role} {user.id}")
        self.notifier.notify(
            job.user_id,
            "Reservation cancelled",
            f"Your wash for {job.scheduled_date} at {job.scheduled_time} was cancelled.",
            NotificationType.RESERVATION_CANCELLED,
            action_url=f"/reservations/{job.id}",
            metadata={"reservationId": job.id, "cancelledBy": user.role},
        )
        return job
