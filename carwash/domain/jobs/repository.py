"""Job repository - queries over reservations from the washer's side"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Reservation
from ...shared.enums import ReservationStatus


class JobRepository:
    @staticmethod
    def _ordered(query):
        return query.options(
            joinedload(Reservation.vehicle),
            joinedload(Reservation.service),
            joinedload(Reservation.client),
            joinedload(Reservation.washer),
        ).order_by(Reservation.scheduled_date.asc(), Reservation.scheduled_time.asc())

    @staticmethod
    def open_jobs(db: Session) -> list[Reservation]:
        """PENDING reservations no washer has claimed yet"""
        query = db.query(Reservation).filter(
            Reservation.status == ReservationStatus.PENDING.value,
            Reservation.washer_id.is_(None),
        )
        return JobRepository._ordered(query).all()

    @staticmethod
    def assigned_jobs(
        db: Session, washer_id: Optional[str], status: Optional[str] = None
    ) -> list[Reservation]:
        """Jobs assigned to ``washer_id``; ``None`` means every assigned job"""
        query = db.query(Reservation)
        if washer_id:
            query = query.filter(Reservation.washer_id == washer_id)
        else:
            query = query.filter(Reservation.washer_id.isnot(None))
        if status:
            query = query.filter(Reservation.status == status)
        return JobRepository._ordered(query).all()

    @staticmethod
    def get_job(db: Session, reservation_id: str) -> Optional[Reservation]:
        return (
            db.query(Reservation)
            .options(joinedload(Reservation.client), joinedload(Reservation.washer))
            .filter(Reservation.id == reservation_id)
            .first()
        )

    @staticmethod
    def set_estimated_arrival(db: Session, reservation_id: str, washer_id: str, eta) -> bool:
        updated = (
            db.query(Reservation)
            .filter(
                Reservation.id == reservation_id,
                Reservation.washer_id == washer_id,
                Reservation.status.in_(
                    (ReservationStatus.CONFIRMED.value, ReservationStatus.IN_PROGRESS.value)
                ),
            )
            .update({"estimated_arrival": eta}, synchronize_session=False)
        )
        return updated == 1
