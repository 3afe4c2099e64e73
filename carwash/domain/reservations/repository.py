"""Reservation repository - Database operations for reservations"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Payment, Reservation
from ...shared.enums import PaymentStatus


class ReservationRepository:
    """Repository for reservation database operations"""

    @staticmethod
    def _with_relations(query):
        return query.options(
            joinedload(Reservation.vehicle),
            joinedload(Reservation.service),
            joinedload(Reservation.client),
            joinedload(Reservation.washer),
        )

    @staticmethod
    def get_reservation(db: Session, reservation_id: str) -> Optional[Reservation]:
        return (
            ReservationRepository._with_relations(db.query(Reservation))
            .filter(Reservation.id == reservation_id)
            .first()
        )

    @staticmethod
    def list_reservations(
        db: Session,
        user_id: Optional[str] = None,
        washer_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Reservation], int]:
        query = db.query(Reservation)
        if user_id:
            query = query.filter(Reservation.user_id == user_id)
        if washer_id:
            query = query.filter(Reservation.washer_id == washer_id)
        if status:
            query = query.filter(Reservation.status == status)

        total = query.count()
        reservations = (
            ReservationRepository._with_relations(query)
            .order_by(Reservation.scheduled_date.desc(), Reservation.scheduled_time.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return reservations, total

    @staticmethod
    def count_by_status(
        db: Session, user_id: Optional[str] = None, washer_id: Optional[str] = None
    ) -> dict[str, int]:
        query = db.query(Reservation.status, func.count(Reservation.id))
        if user_id:
            query = query.filter(Reservation.user_id == user_id)
        if washer_id:
            query = query.filter(Reservation.washer_id == washer_id)
        return dict(query.group_by(Reservation.status).all())

    @staticmethod
    def create_reservation(db: Session, **reservation_data) -> Reservation:
        reservation = Reservation(**reservation_data)
        db.add(reservation)
        db.commit()
        db.refresh(reservation)
        return reservation

    @staticmethod
    def update_reservation(db: Session, reservation: Reservation, **updates) -> Reservation:
        for key, value in updates.items():
            if value is not None and hasattr(reservation, key):
                setattr(reservation, key, value)
        db.commit()
        db.refresh(reservation)
        return reservation

    # Payment aggregates used by reconciliation and the delete guard

    @staticmethod
    def total_paid(db: Session, reservation_id: str) -> float:
        total = (
            db.query(func.coalesce(func.sum(Payment.amount), 0.0))
            .filter(
                Payment.reservation_id == reservation_id,
                Payment.status == PaymentStatus.COMPLETED.value,
            )
            .scalar()
        )
        return float(total or 0.0)

    @staticmethod
    def count_payments(db: Session, reservation_id: str, status: str) -> int:
        return (
            db.query(Payment)
            .filter(Payment.reservation_id == reservation_id, Payment.status == status)
            .count()
        )

    @staticmethod
    def delete_reservation(db: Session, reservation: Reservation) -> None:
        """Delete the reservation; its uncompleted payments, rating and proof cascade"""
        db.delete(reservation)
        db.commit()
