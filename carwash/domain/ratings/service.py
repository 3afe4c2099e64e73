"""Rating service - one rating per completed reservation, washer mean kept current"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Rating, User
from ...services.notification_service import NotificationSink
from ...shared.enums import NotificationType, ReservationStatus, Role
from ...shared.errors import Conflict, Forbidden, NotFound
from ...shared.geo import round_half_up
from ..reservations.repository import ReservationRepository
from ..washers.repository import WasherRepository
from .repository import RatingRepository

logger = logging.getLogger(__name__)


class RatingService:
    def __init__(self, db: Session, notifier: Optional[NotificationSink] = None):
        self.db = db
        self.repo = RatingRepository()
        self.notifier = notifier or NotificationSink(db)

    def rate(
        self, reservation_id: str, stars: int, comment: Optional[str], client: User
    ) -> Rating:
        reservation = ReservationRepository.get_reservation(self.db, reservation_id)
        if not reservation:
            raise NotFound("Reservation not found")
        if reservation.user_id != client.id:
            raise Forbidden("Only the client of this reservation can rate it")
        if reservation.status != ReservationStatus.COMPLETED.value:
            raise Conflict(
                f"Only COMPLETED reservations can be rated (status {reservation.status})",
                code="INVALID_TRANSITION",
            )
        if not reservation.washer_id:
            raise Conflict("Reservation has no washer to rate", code="JOB_NOT_AVAILABLE")
        if self.repo.get_by_reservation(self.db, reservation_id):
            raise Conflict("This reservation has already been rated", code="ALREADY_RATED")

        washer_id = reservation.washer_id
        try:
            rating = self.repo.add_rating(
                self.db,
                reservation_id=reservation_id,
                user_id=client.id,
                washer_id=washer_id,
                stars=stars,
                comment=comment,
            )
        except IntegrityError:
            self.db.rollback()
            raise Conflict("This reservation has already been rated", code="ALREADY_RATED")

        average = self.repo.recompute_washer_rating(self.db, washer_id)
        self.db.commit()
        self.db.refresh(rating)
        logger.info(
            f"⭐ Reservation {reservation_id} rated {stars}/5, washer {washer_id} now {average:.2f}"
        )

        self.notifier.notify(
            washer_id,
            "New rating",
            f"{client.name} rated your service {stars}/5.",
            NotificationType.RATING_RECEIVED,
            action_url=f"/ratings/washer/{washer_id}",
            metadata={"reservationId": reservation_id, "stars": stars},
        )
        return rating

    def for_reservation(self, reservation_id: str, user: User) -> Rating:
        reservation = ReservationRepository.get_reservation(self.db, reservation_id)
        if not reservation:
            raise NotFound("Reservation not found")
        if user.role_enum != Role.ADMIN and user.id not in (
            reservation.user_id,
            reservation.washer_id,
        ):
            raise Forbidden("Not allowed to view this rating")

        rating = self.repo.get_by_reservation(self.db, reservation_id)
        if not rating:
            raise NotFound("Rating not found")
        return rating

    def for_washer(self, washer_id: str) -> dict:
        if not WasherRepository.get_washer(self.db, washer_id):
            raise NotFound("Washer not found")

        ratings = self.repo.list_for_washer(self.db, washer_id)
        distribution = {str(star): 0 for star in range(1, 6)}
        for rating in ratings:
            distribution[str(rating.stars)] += 1
        average = sum(r.stars for r in ratings) / len(ratings) if ratings else 0.0

        return {
            "washerId": washer_id,
            "ratings": ratings,
            "total": len(ratings),
            "average": round_half_up(average),
            "starDistribution": distribution,
        }
