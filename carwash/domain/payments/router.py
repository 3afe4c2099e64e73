"""Payment router - direct payments, Stripe checkout, verification and webhook"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from ... import config
from ...auth import get_current_user, require_roles
from ...database import get_db
from ...models import User
from ...services.notification_service import NotificationSink, get_notification_sink
from ...services.payment_gateway import StripeCheckoutGateway, get_payment_gateway
from ...shared.enums import Role
from ...shared.errors import ValidationFailed
from ...webhook_security import verify_stripe_webhook
from ..reservations.schemas import PaymentSummary
from .schemas import (
    CheckoutRequest,
    CheckoutResponse,
    PaymentCreate,
    PaymentListResponse,
    PaymentResponse,
    VerifyRequest,
    VerifyResponse,
    payment_response,
)
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(
    db: Session = Depends(get_db),
    notifier: NotificationSink = Depends(get_notification_sink),
    gateway: StripeCheckoutGateway = Depends(get_payment_gateway),
) -> PaymentService:
    return PaymentService(db, notifier, gateway)


@router.get("", response_model=PaymentListResponse)
async def list_payments(
    reservation_id: Optional[str] = Query(None, alias="reservationId"),
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    payments = service.list_payments(current_user, reservation_id)
    return PaymentListResponse(payments=[payment_response(p) for p in payments], total=len(payments))


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    data: PaymentCreate,
    current_user: User = Depends(require_roles(Role.CLIENT, Role.ADMIN)),
    service: PaymentService = Depends(get_payment_service),
):
    return payment_response(service.record_payment(data, current_user))


@router.post("/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def create_checkout(
    data: CheckoutRequest,
    current_user: User = Depends(require_roles(Role.CLIENT)),
    service: PaymentService = Depends(get_payment_service),
):
    """Open a gateway checkout for the reservation's outstanding balance"""
    checkout = await service.create_checkout(data.reservationId, current_user)
    return CheckoutResponse(
        sessionId=checkout["sessionId"],
        url=checkout["url"],
        payment=payment_response(checkout["payment"]),
    )


@router.post("/verify", response_model=VerifyResponse)
async def verify_payment(
    data: VerifyRequest,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return await service.verify_session(data.sessionId, current_user)


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    service: PaymentService = Depends(get_payment_service),
):
    """
    Stripe webhook receiver.

    The raw body is checked against the Stripe-Signature header before it is
    parsed; unsigned or stale deliveries are rejected with 400.
    """
    raw_body = await verify_stripe_webhook(request, config.STRIPE_WEBHOOK_SECRET)
    try:
        event = json.loads(raw_body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationFailed("Invalid webhook payload") from e

    logger.info(f"📥 Stripe webhook {event.get('type')} ({event.get('id')})")
    service.handle_webhook_event(event)
    return {"received": True}


@router.get("/summary/{reservation_id}", response_model=PaymentSummary)
async def payment_summary(
    reservation_id: str,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return service.summary(reservation_id, current_user)
