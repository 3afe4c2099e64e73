"""
Payment service - direct payments, gateway checkout and reconciliation

A gateway payment is counted exactly once: the PENDING → COMPLETED flip is a
conditional UPDATE keyed by the session id, and only the call that wins it
reconciles the reservation. Verifying a session again, or receiving the
webhook after a verify, is a no-op.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Payment, Reservation, User
from ...services.notification_service import NotificationSink
from ...services.payment_gateway import PaymentGatewayError, StripeCheckoutGateway
from ...shared.enums import NotificationType, PaymentMethod, PaymentStatus, ReservationStatus, Role
from ...shared.errors import Conflict, Forbidden, NotFound, UpstreamUnavailable, ValidationFailed
from ..reservations import lifecycle
from ..reservations.repository import ReservationRepository
from ..reservations.schemas import PaymentSummary, payment_summary
from ..reservations.service import can_view
from .repository import PaymentRepository
from .schemas import PaymentCreate

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED_EVENT = "checkout.session.completed"


class PaymentService:
    def __init__(
        self,
        db: Session,
        notifier: Optional[NotificationSink] = None,
        gateway: Optional[StripeCheckoutGateway] = None,
    ):
        self.db = db
        self.repo = PaymentRepository()
        self.notifier = notifier or NotificationSink(db)
        self.gateway = gateway

    def _payable_reservation(self, reservation_id: str, user: User) -> Reservation:
        reservation = ReservationRepository.get_reservation(self.db, reservation_id)
        if not reservation:
            raise NotFound("Reservation not found")

        role = user.role_enum
        if role == Role.CLIENT:
            if reservation.user_id != user.id:
                raise Forbidden("Not your reservation")
        elif role != Role.ADMIN:
            raise Forbidden("Only the client or an admin can pay for a reservation")

        if reservation.status == ReservationStatus.CANCELLED.value:
            raise Conflict("Cannot pay for a cancelled reservation", code="INVALID_TRANSITION")
        return reservation

    # ============================================================================
    # QUERIES
    # ============================================================================

    def list_payments(self, user: User, reservation_id: Optional[str] = None) -> list[Payment]:
        role = user.role_enum
        if role == Role.CLIENT:
            return self.repo.list_payments(self.db, reservation_id, user_id=user.id)
        elif role == Role.WASHER:
            return self.repo.list_payments(self.db, reservation_id, washer_id=user.id)
        return self.repo.list_payments(self.db, reservation_id)

    def summary(self, reservation_id: str, user: User) -> PaymentSummary:
        reservation = ReservationRepository.get_reservation(self.db, reservation_id)
        if not reservation:
            raise NotFound("Reservation not found")
        if not can_view(user, reservation):
            raise Forbidden("Not allowed to view this reservation")
        return payment_summary(
            reservation.total_amount, ReservationRepository.total_paid(self.db, reservation_id)
        )

    # ============================================================================
    # PAYMENTS
    # ============================================================================

    def record_payment(self, data: PaymentCreate, user: User) -> Payment:
        """Record money already received (cash, transfer, ...) and reconcile"""
        reservation = self._payable_reservation(data.reservationId, user)
        payment = self.repo.create_payment(
            self.db,
            reservation_id=reservation.id,
            amount=float(data.amount),
            status=PaymentStatus.COMPLETED.value,
            payment_method=data.paymentMethod.value,
            transaction_id=data.transactionId,
            notes=data.notes,
        )
        logger.info(
            f"💵 Payment {payment.id} of {payment.amount} recorded for reservation {reservation.id}"
        )
        self.reconcile(reservation.id)
        self.db.refresh(payment)
        return payment

    async def create_checkout(self, reservation_id: str, user: User) -> dict:
        reservation = self._payable_reservation(reservation_id, user)
        total_paid = ReservationRepository.total_paid(self.db, reservation.id)
        balance = round(reservation.total_amount - total_paid, 2)
        if balance <= 0:
            raise ValidationFailed("Nothing left to pay for this reservation")

        description = reservation.service.name if reservation.service else "Car wash"
        try:
            session = await self.gateway.create_checkout_session(
                reservation.id, balance, description, customer_email=user.email
            )
        except PaymentGatewayError as e:
            raise UpstreamUnavailable(f"Payment gateway unavailable: {e}")

        payment = self.repo.create_payment(
            self.db,
            reservation_id=reservation.id,
            amount=balance,
            status=PaymentStatus.PENDING.value,
            payment_method=PaymentMethod.CARD.value,
            transaction_id=session["id"],
        )
        return {"sessionId": session["id"], "url": session.get("url"), "payment": payment}

    async def verify_session(self, session_id: str, user: User) -> dict:
        payment = self.repo.get_by_transaction(self.db, session_id)
        if not payment:
            raise NotFound("Payment session not found")
        if user.role_enum != Role.ADMIN and payment.reservation.user_id != user.id:
            raise Forbidden("Not your payment")

        try:
            gateway_status = await self.gateway.get_session_status(session_id)
        except PaymentGatewayError as e:
            raise UpstreamUnavailable(f"Payment gateway unavailable: {e}")

        reconciled = False
        if gateway_status == "paid":
            reconciled = self.complete_session(session_id)
        return {"success": gateway_status == "paid", "status": gateway_status, "reconciled": reconciled}

    def complete_session(self, session_id: str) -> bool:
        """Flip the session's PENDING payment to COMPLETED; True only for the caller that did it"""
        payment = self.repo.get_by_transaction(self.db, session_id)
        if not payment:
            return False
        reservation_id = payment.reservation_id

        if self.repo.complete_pending(self.db, session_id) == 0:
            self.db.rollback()
            logger.info(f"ℹ️ Session {session_id} already completed, nothing to reconcile")
            return False

        self.db.commit()
        logger.info(f"✅ Payment session {session_id} completed")
        self.reconcile(reservation_id)
        return True

    def handle_webhook_event(self, event: dict) -> None:
        event_type = event.get("type")
        if event_type != CHECKOUT_COMPLETED_EVENT:
            logger.info(f"🔍 Ignoring webhook event {event_type}")
            return

        session = (event.get("data") or {}).get("object") or {}
        session_id = session.get("id")
        if not session_id:
            raise ValidationFailed("Webhook event has no session id")
        if session.get("payment_status", "paid") != "paid":
            logger.info(f"⏳ Session {session_id} completed but not paid yet")
            return
        if not self.complete_session(session_id):
            logger.info(f"🔍 Webhook for session {session_id} had no pending payment")

    # ============================================================================
    # RECONCILIATION
    # ============================================================================

    def reconcile(self, reservation_id: str) -> bool:
        """
        Mark the reservation paid once completed payments cover its total.

        Returns True only when this call stamped it paid; the client is
        notified on that first stamp only.
        """
        reservation = ReservationRepository.get_reservation(self.db, reservation_id)
        if not reservation:
            return False

        total_paid = ReservationRepository.total_paid(self.db, reservation_id)
        if total_paid < reservation.total_amount:
            logger.info(
                f"💳 Reservation {reservation_id} paid {total_paid}/{reservation.total_amount}"
            )
            return False

        first = lifecycle.mark_paid(self.db, reservation_id)
        self.db.commit()
        if not first:
            return False

        reservation = ReservationRepository.get_reservation(self.db, reservation_id)
        self.notifier.notify(
            reservation.user_id,
            "Payment received",
            f"We received your payment of {total_paid:.2f} for your wash.",
            NotificationType.PAYMENT_RECEIVED,
            action_url=f"/reservations/{reservation_id}",
            metadata={"reservationId": reservation_id, "totalPaid": total_paid},
        )
        return True
