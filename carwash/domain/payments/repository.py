"""Payment repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Payment, Reservation, utcnow
from ...shared.enums import PaymentStatus


class PaymentRepository:
    @staticmethod
    def list_payments(
        db: Session,
        reservation_id: Optional[str] = None,
        user_id: Optional[str] = None,
        washer_id: Optional[str] = None,
    ) -> list[Payment]:
        query = db.query(Payment).join(Reservation, Payment.reservation_id == Reservation.id)
        if reservation_id:
            query = query.filter(Payment.reservation_id == reservation_id)
        if user_id:
            query = query.filter(Reservation.user_id == user_id)
        if washer_id:
            query = query.filter(Reservation.washer_id == washer_id)
        return query.order_by(Payment.created_at.desc()).all()

    @staticmethod
    def create_payment(db: Session, **payment_data) -> Payment:
        payment = Payment(**payment_data)
        db.add(payment)
        db.commit()
        db.refresh(payment)
        return payment

    @staticmethod
    def get_by_transaction(db: Session, transaction_id: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.transaction_id == transaction_id).first()

    @staticmethod
    def complete_pending(db: Session, transaction_id: str) -> int:
        """PENDING → COMPLETED for the gateway session; returns the matched row count"""
        return (
            db.query(Payment)
            .filter(
                Payment.transaction_id == transaction_id,
                Payment.status == PaymentStatus.PENDING.value,
            )
            .update(
                {"status": PaymentStatus.COMPLETED.value, "updated_at": utcnow()},
                synchronize_session=False,
            )
        )
