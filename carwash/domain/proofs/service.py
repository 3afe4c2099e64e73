"""Service proof service - before/after photos that close out a wash"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...models import ServiceProof, User
from ...services.notification_service import NotificationSink
from ...shared.enums import NotificationType, ReservationStatus, Role
from ...shared.errors import Conflict, Forbidden, NotFound
from ..reservations import lifecycle
from ..reservations.repository import ReservationRepository
from .repository import ProofRepository
from .schemas import ProofUpload

logger = logging.getLogger(__name__)

PROOF_STATUSES = (ReservationStatus.IN_PROGRESS.value, ReservationStatus.COMPLETED.value)


class ProofService:
    def __init__(self, db: Session, notifier: Optional[NotificationSink] = None):
        self.db = db
        self.repo = ProofRepository()
        self.notifier = notifier or NotificationSink(db)

    def upload(self, data: ProofUpload, washer: User) -> ServiceProof:
        """
        Store proof photos for the washer's job.

        The first upload also marks the job serviced (crediting the washer and
        notifying the client); later uploads only replace the photos.
        """
        reservation = ReservationRepository.get_reservation(self.db, data.reservationId)
        if not reservation:
            raise NotFound("Reservation not found")
        if reservation.washer_id != washer.id:
            raise Forbidden("This job is not assigned to you")
        if reservation.status not in PROOF_STATUSES:
            raise Conflict(
                f"Proof can only be uploaded for IN_PROGRESS or COMPLETED jobs (status {reservation.status})",
                code="INVALID_TRANSITION",
            )

        proof = self.repo.upsert(
            self.db, reservation.id, data.beforePhotos, data.afterPhotos, data.notes
        )
        first_service = lifecycle.mark_serviced(self.db, reservation.id, washer.id)
        self.db.commit()
        self.db.refresh(proof)
        logger.info(
            f"📸 Proof stored for reservation {reservation.id} (first={first_service})"
        )

        if first_service:
            self.notifier.notify(
                reservation.user_id,
                "Service completed",
                "Your washer uploaded before/after photos of your vehicle.",
                NotificationType.SERVICE_COMPLETED,
                action_url=f"/reservations/{reservation.id}",
                metadata={"reservationId": reservation.id, "proofId": proof.id},
            )
        return proof

    def get_proof(self, reservation_id: str, user: User) -> ServiceProof:
        reservation = ReservationRepository.get_reservation(self.db, reservation_id)
        if not reservation:
            raise NotFound("Reservation not found")
        if user.role_enum != Role.ADMIN and user.id not in (
            reservation.user_id,
            reservation.washer_id,
        ):
            raise Forbidden("Not allowed to view this proof")

        proof = self.repo.get_by_reservation(self.db, reservation_id)
        if not proof:
            raise NotFound("Service proof not found")
        return proof

    def delete_proof(self, reservation_id: str) -> dict:
        proof = self.repo.get_by_reservation(self.db, reservation_id)
        if not proof:
            raise NotFound("Service proof not found")
        self.repo.delete(self.db, proof)
        logger.info(f"🗑️ Proof for reservation {reservation_id} deleted")
        return {"message": "Service proof deleted", "reservationId": reservation_id}
