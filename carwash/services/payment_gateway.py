"""
Stripe Checkout client

Only the two calls the reconciliation flow needs: create a checkout session
for an amount, and read back a session's payment status.
"""

import logging
from typing import Optional

import httpx

from ..config import FRONTEND_URL, PAYMENT_CURRENCY, STRIPE_API_BASE, STRIPE_SECRET_KEY

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """Raised when the gateway is unreachable, misconfigured or rejects a call"""


class StripeCheckoutGateway:
    def __init__(
        self,
        api_key: Optional[str] = STRIPE_SECRET_KEY,
        api_base: str = STRIPE_API_BASE,
        currency: str = PAYMENT_CURRENCY,
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.currency = currency
        self.timeout = timeout

    async def _request(self, method: str, path: str, data: Optional[dict] = None) -> dict:
        if not self.api_key:
            raise PaymentGatewayError("STRIPE_SECRET_KEY not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method,
                    f"{self.api_base}{path}",
                    data=data,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Stripe request {method} {path} failed: {e}")
            raise PaymentGatewayError(str(e)) from e

        if response.status_code >= 400:
            logger.error(f"❌ Stripe {method} {path} returned HTTP {response.status_code}")
            raise PaymentGatewayError(f"Gateway returned HTTP {response.status_code}")
        return response.json()

    async def create_checkout_session(
        self,
        reservation_id: str,
        amount: float,
        description: str,
        customer_email: Optional[str] = None,
    ) -> dict:
        """Returns ``{"id": session_id, "url": checkout_url}``"""
        data = {
            "mode": "payment",
            "line_items[0][price_data][currency]": self.currency,
            "line_items[0][price_data][unit_amount]": str(round(amount * 100)),  # Minor units
            "line_items[0][price_data][product_data][name]": description,
            "line_items[0][quantity]": "1",
            "success_url": f"{FRONTEND_URL}/payments/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{FRONTEND_URL}/payments/cancelled?reservation={reservation_id}",
            "metadata[reservationId]": reservation_id,
        }
        if customer_email:
            data["customer_email"] = customer_email

        session = await self._request("POST", "/checkout/sessions", data)
        logger.info(f"✅ Checkout session {session['id']} created for reservation {reservation_id}")
        return {"id": session["id"], "url": session.get("url")}

    async def get_session_status(self, session_id: str) -> str:
        """Return the session's ``payment_status`` (``paid``, ``unpaid``, ``no_payment_required``)"""
        session = await self._request("GET", f"/checkout/sessions/{session_id}")
        return session.get("payment_status", "unpaid")


def get_payment_gateway() -> StripeCheckoutGateway:
    return StripeCheckoutGateway()
