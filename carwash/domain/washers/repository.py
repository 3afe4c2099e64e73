"""Washer directory repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Rating, Reservation, User
from ...shared.enums import ReservationStatus, Role


class WasherRepository:
    @staticmethod
    def get_washer(db: Session, washer_id: str) -> Optional[User]:
        return (
            db.query(User)
            .filter(User.id == washer_id, User.role == Role.WASHER.value)
            .first()
        )

    @staticmethod
    def available_washers(db: Session) -> list[User]:
        """Active washers that have switched availability on"""
        return (
            db.query(User)
            .filter(
                User.role == Role.WASHER.value,
                User.is_active.is_(True),
                User.is_available.is_(True),
            )
            .all()
        )

    @staticmethod
    def busy_washer_ids(db: Session, washer_ids: list[str]) -> set[str]:
        """Washers among ``washer_ids`` with at least one IN_PROGRESS job"""
        if not washer_ids:
            return set()
        rows = (
            db.query(Reservation.washer_id)
            .filter(
                Reservation.washer_id.in_(washer_ids),
                Reservation.status == ReservationStatus.IN_PROGRESS.value,
            )
            .distinct()
            .all()
        )
        return {row[0] for row in rows}

    @staticmethod
    def job_counts(db: Session, washer_id: str) -> tuple[int, int]:
        """(all assigned jobs, completed jobs)"""
        total = db.query(Reservation).filter(Reservation.washer_id == washer_id).count()
        completed = (
            db.query(Reservation)
            .filter(
                Reservation.washer_id == washer_id,
                Reservation.status == ReservationStatus.COMPLETED.value,
            )
            .count()
        )
        return total, completed

    @staticmethod
    def ratings_for(db: Session, washer_id: str) -> list[Rating]:
        return (
            db.query(Rating)
            .filter(Rating.washer_id == washer_id)
            .order_by(Rating.created_at.desc())
            .all()
        )
