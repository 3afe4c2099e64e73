"""Reservation service - booking, visibility, status changes and deletion"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...config import MAX_PAGE_LIMIT
from ...models import Reservation, User
from ...services.notification_service import NotificationSink
from ...shared.enums import (
    NotificationType,
    PaymentStatus,
    ReservationStatus,
    Role,
    can_transition,
)
from ...shared.errors import Conflict, Forbidden, NotFound, ValidationFailed
from ..catalog.repository import CatalogRepository
from ..users.repository import UserRepository
from ..vehicles.repository import VehicleRepository
from . import lifecycle
from .repository import ReservationRepository
from .schemas import ReservationCreate, ReservationUpdate

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = (ReservationStatus.COMPLETED.value, ReservationStatus.CANCELLED.value)


def scope_for(user: User) -> dict:
    """Repository filter limiting a listing to what ``user`` may see"""
    role = user.role_enum
    if role == Role.CLIENT:
        return {"user_id": user.id}
    if role == Role.WASHER:
        return {"washer_id": user.id}
    if role == Role.ADMIN:
        return {}
    raise Forbidden(f"Unsupported role {role}")


def can_view(user: User, reservation: Reservation) -> bool:
    role = user.role_enum
    if role == Role.ADMIN:
        return True
    if role == Role.CLIENT:
        return reservation.user_id == user.id
    if role == Role.WASHER:
        # Assigned jobs, plus open jobs a washer may still claim
        return reservation.washer_id == user.id or (
            reservation.washer_id is None
            and reservation.status == ReservationStatus.PENDING.value
        )
    return False


class ReservationService:
    """Service layer for reservation business logic"""

    def __init__(self, db: Session, notifier: Optional[NotificationSink] = None):
        self.db = db
        self.repo = ReservationRepository()
        self.notifier = notifier or NotificationSink(db)

    # ============================================================================
    # CORE CRUD OPERATIONS
    # ============================================================================

    def _resolve_client(self, data: ReservationCreate, user: User) -> User:
        if user.role_enum != Role.ADMIN:
            return user
        if not data.userId:
            raise ValidationFailed("userId is required when an admin books a reservation")
        client = UserRepository.get_by_id(self.db, data.userId)
        if not client or client.role_enum != Role.CLIENT:
            raise NotFound("Client not found")
        return client

    def _check_vehicle(self, vehicle_id: str, client_id: str):
        vehicle = VehicleRepository.get_vehicle(self.db, vehicle_id)
        if not vehicle:
            raise NotFound("Vehicle not found")
        if vehicle.owner_id != client_id:
            raise Forbidden("Vehicle does not belong to this client")
        if not vehicle.is_active:
            raise ValidationFailed("Vehicle is inactive")
        return vehicle

    def _check_service(self, service_id: str):
        service = CatalogRepository.get_service(self.db, service_id)
        if not service or not service.is_active:
            raise NotFound("Service not found")
        return service

    def create_reservation(self, data: ReservationCreate, user: User) -> Reservation:
        """Book a service; the price is snapshotted into total_amount"""
        client = self._resolve_client(data, user)
        service = self._check_service(data.serviceId)
        self._check_vehicle(data.vehicleId, client.id)

        reservation = self.repo.create_reservation(
            self.db,
            user_id=client.id,
            vehicle_id=data.vehicleId,
            service_id=service.id,
            status=ReservationStatus.PENDING.value,
            scheduled_date=data.scheduledDate,
            scheduled_time=data.scheduledTime,
            total_amount=service.price,
            address=data.address,
            latitude=data.latitude,
            longitude=data.longitude,
            notes=data.notes,
        )
        logger.info(
            f"📅 Reservation {reservation.id} created for client {client.id} "
            f"({service.name}, {reservation.total_amount})"
        )
        return self.repo.get_reservation(self.db, reservation.id)

    def list_reservations(
        self, user: User, status: Optional[ReservationStatus], limit: int, offset: int
    ) -> tuple[list[Reservation], int]:
        return self.repo.list_reservations(
            self.db,
            status=status.value if status else None,
            limit=min(limit, MAX_PAGE_LIMIT),
            offset=offset,
            **scope_for(user),
        )

    def get_reservation(self, reservation_id: str, user: User) -> Reservation:
        reservation = self.repo.get_reservation(self.db, reservation_id)
        if not reservation:
            raise NotFound("Reservation not found")
        if not can_view(user, reservation):
            raise Forbidden("You do not have access to this reservation")
        return reservation

    def total_paid(self, reservation_id: str) -> float:
        return self.repo.total_paid(self.db, reservation_id)

    def stats(self, user: User) -> dict:
        counts = self.repo.count_by_status(self.db, **scope_for(user))
        by_status = {s.value: counts.get(s.value, 0) for s in ReservationStatus}
        return {"total": sum(by_status.values()), "byStatus": by_status}

    def update_reservation(
        self, reservation_id: str, data: ReservationUpdate, user: User
    ) -> Reservation:
        """
        Edit booking details. Admins may edit any open reservation; the owning
        client only while it is still PENDING. Changing the service
        re-snapshots the price.
        """
        reservation = self.get_reservation(reservation_id, user)
        role = user.role_enum
        if role == Role.WASHER:
            raise Forbidden("Washers cannot edit reservations")
        if reservation.status in TERMINAL_STATUSES:
            raise Conflict(
                f"Cannot edit a {reservation.status} reservation", code="INVALID_TRANSITION"
            )
        if role == Role.CLIENT and reservation.status != ReservationStatus.PENDING.value:
            raise Conflict(
                "Reservation can only be edited while PENDING", code="INVALID_TRANSITION"
            )

        updates = {
            "scheduled_date": data.scheduledDate,
            "scheduled_time": data.scheduledTime,
            "address": data.address,
            "latitude": data.latitude,
            "longitude": data.longitude,
            "notes": data.notes,
        }
        if data.vehicleId and data.vehicleId != reservation.vehicle_id:
            updates["vehicle_id"] = self._check_vehicle(data.vehicleId, reservation.user_id).id
        if data.serviceId and data.serviceId != reservation.service_id:
            service = self._check_service(data.serviceId)
            updates["service_id"] = service.id
            updates["total_amount"] = service.price

        self.repo.update_reservation(self.db, reservation, **updates)
        logger.info(f"✏️ Reservation {reservation_id} updated by {user.role} {user.id}")
        if "total_amount" in updates:
            self._settle_after_repricing(reservation_id)
        return self.repo.get_reservation(self.db, reservation_id)

    def _settle_after_repricing(self, reservation_id: str) -> None:
        """Re-run payment coverage against the new total"""
        reservation = self.repo.get_reservation(self.db, reservation_id)
        total_paid = self.repo.total_paid(self.db, reservation_id)

        if total_paid < reservation.total_amount:
            if lifecycle.clear_paid(self.db, reservation_id):
                self.db.commit()
                logger.info(
                    f"💳 Reservation {reservation_id} repriced above {total_paid}, paid_at cleared"
                )
            return

        first = lifecycle.mark_paid(self.db, reservation_id)
        self.db.commit()
        if first:
            self.notifier.notify(
                reservation.user_id,
                "Payment received",
                f"Your payments of {total_paid:.2f} now cover your wash.",
                NotificationType.PAYMENT_RECEIVED,
                action_url=f"/reservations/{reservation_id}",
                metadata={"reservationId": reservation_id, "totalPaid": total_paid},
            )

    def delete_reservation(self, reservation_id: str, user: User) -> dict:
        reservation = self.get_reservation(reservation_id, user)
        if user.role_enum == Role.WASHER:
            raise Forbidden("Washers cannot delete reservations")

        completed_payments = self.repo.count_payments(
            self.db, reservation.id, PaymentStatus.COMPLETED.value
        )
        if completed_payments:
            raise Conflict(
                "Reservation has completed payments and cannot be deleted",
                code="RESERVATION_HAS_PAYMENTS",
                details={"completedPayments": completed_payments},
            )

        self.repo.delete_reservation(self.db, reservation)
        logger.info(f"🗑️ Reservation {reservation_id} deleted by {user.role} {user.id}")
        return {"message": "Reservation deleted"}

    # ============================================================================
    # STATUS CHANGES
    # ============================================================================

    def change_status(
        self, reservation_id: str, target: ReservationStatus, user: User
    ) -> Reservation:
        reservation = self.get_reservation(reservation_id, user)
        role = user.role_enum

        if role == Role.CLIENT:
            if target != ReservationStatus.CANCELLED:
                raise Forbidden("Clients can only cancel reservations")
            changed = lifecycle.cancel(self.db, reservation.id)
        elif role == Role.WASHER:
            raise Forbidden("Washers change job status through the /jobs endpoints")
        elif role == Role.ADMIN:
            changed = self._admin_transition(reservation, target)
        else:
            raise Forbidden(f"Unsupported role {role}")

        if not changed:
            current = self.repo.get_reservation(self.db, reservation.id)
            raise Conflict(
                f"Cannot move reservation from {current.status} to {target.value}",
                code="INVALID_TRANSITION",
            )

        self.db.commit()
        updated = self.repo.get_reservation(self.db, reservation.id)
        logger.info(f"🔄 Reservation {reservation.id} → {updated.status} by {user.role} {user.id}")

        if target == ReservationStatus.CANCELLED:
            self._notify_cancelled(updated, user)
        return updated

    def _admin_transition(self, reservation: Reservation, target: ReservationStatus) -> bool:
        current = ReservationStatus(reservation.status)
        if not can_transition(current, target):
            return False
        if target == ReservationStatus.CONFIRMED:
            raise Conflict(
                "Reservations are confirmed when a washer accepts them", code="INVALID_TRANSITION"
            )
        if target == ReservationStatus.CANCELLED:
            return lifecycle.cancel(self.db, reservation.id)
        if target == ReservationStatus.IN_PROGRESS:
            if not reservation.washer_id:
                raise Conflict("No washer assigned", code="JOB_NOT_AVAILABLE")
            return lifecycle.start(self.db, reservation.id, reservation.washer_id)
        if target == ReservationStatus.COMPLETED:
            return lifecycle.mark_serviced(self.db, reservation.id, reservation.washer_id)
        return False

    def _notify_cancelled(self, reservation: Reservation, actor: User) -> None:
        recipients = {reservation.user_id, reservation.washer_id} - {None, actor.id}
        for recipient in recipients:
            self.notifier.notify(
                recipient,
                "Reservation cancelled",
                f"The reservation for {reservation.scheduled_date} at "
                f"{reservation.scheduled_time} has been cancelled.",
                NotificationType.RESERVATION_CANCELLED,
                action_url=f"/reservations/{reservation.id}",
                metadata={"reservationId": reservation.id, "cancelledBy": actor.role},
            )
