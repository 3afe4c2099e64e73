"""Payment schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, StrictFloat, StrictInt

from ...shared.enums import PaymentMethod, PaymentStatus


class PaymentCreate(BaseModel):
    reservationId: str = Field(min_length=1)
    amount: StrictFloat | StrictInt = Field(gt=0)
    paymentMethod: PaymentMethod = PaymentMethod.CASH
    transactionId: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None


class CheckoutRequest(BaseModel):
    reservationId: str = Field(min_length=1)


class VerifyRequest(BaseModel):
    sessionId: str = Field(min_length=1)


class PaymentResponse(BaseModel):
    id: str
    reservationId: str
    amount: float
    status: PaymentStatus
    paymentMethod: PaymentMethod
    transactionId: Optional[str] = None
    notes: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class PaymentListResponse(BaseModel):
    payments: list[PaymentResponse]
    total: int


class CheckoutResponse(BaseModel):
    sessionId: str
    url: Optional[str] = None
    payment: PaymentResponse


class VerifyResponse(BaseModel):
    success: bool
    status: str  # Gateway payment_status
    reconciled: bool  # This call moved the payment to COMPLETED


def payment_response(payment) -> PaymentResponse:
    return PaymentResponse(
        id=payment.id,
        reservationId=payment.reservation_id,
        amount=payment.amount,
        status=payment.status,
        paymentMethod=payment.payment_method,
        transactionId=payment.transaction_id,
        notes=payment.notes,
        createdAt=payment.created_at,
        updatedAt=payment.updated_at,
    )
