# ================================================================
# services/payment_service.py: Stripe Checkout gateway
# ================================================================
import json
import logging
from dataclasses import dataclass
from typing import Optional

import stripe

from core.config import settings
from core.exceptions import InvalidSignatureError, UpstreamError

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


@dataclass
class CheckoutSession:
    id: str
    url: str


class StripeGateway:
    """
    Thin adapter over the Stripe SDK: one-time Checkout sessions for invoices
    and signature verification of webhook deliveries.
    """

    def __init__(
        self,
        api_key: Optional[str],
        webhook_secret: Optional[str],
        currency: str = "usd",
        tolerance: int = 300,
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.currency = currency
        self.tolerance = tolerance

    def create_checkout_session(self, invoice_id: int, amount_cents: int, description: str) -> CheckoutSession:
        if not self.api_key:
            raise UpstreamError("Payment gateway is not configured.", detail="STRIPE_SECRET_KEY is not set")

        metadata = {"invoice_id": str(invoice_id)}
        try:
            checkout_session = stripe.checkout.Session.create(
                api_key=self.api_key,
                mode="payment",
                payment_method_types=["card"],
                line_items=[{
                    "quantity": 1,
                    "price_data": {
                        "currency": self.currency,
                        "unit_amount": amount_cents,
                        "product_data": {"name": description},
                    },
                }],
                success_url=settings.STRIPE_SUCCESS_URL,
                cancel_url=settings.STRIPE_CANCEL_URL,
                client_reference_id=str(invoice_id),
                metadata=metadata,
                payment_intent_data={"metadata": metadata},
            )
        except stripe.StripeError as e:
            logger.error("❌ Stripe session creation failed for invoice %s: %s", invoice_id, e)
            raise UpstreamError("Checkout failed.", detail=str(e))

        logger.info("✅ Stripe checkout session %s created for invoice %s", checkout_session.id, invoice_id)
        return CheckoutSession(id=checkout_session.id, url=checkout_session.url)

    def verify_event(self, payload: bytes, sig_header: Optional[str]) -> dict:
        """Check the signature over the raw body, then parse it. Nothing is trusted before that."""
        if not self.webhook_secret:
            raise UpstreamError("Webhook secret not configured.")
        if not sig_header:
            raise InvalidSignatureError("Missing signature")

        try:
            body = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(body, sig_header, self.webhook_secret, self.tolerance)
        except (UnicodeDecodeError, stripe.SignatureVerificationError) as e:
            logger.warning("❌ Webhook signature verification failed: %s", e)
            raise InvalidSignatureError("Webhook signature verification failed")

        try:
            return json.loads(body)
        except ValueError:
            raise InvalidSignatureError("Invalid payload")


payment_gateway = StripeGateway(
    api_key=settings.STRIPE_SECRET_KEY,
    webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
    currency=settings.STRIPE_CURRENCY,
    tolerance=settings.STRIPE_WEBHOOK_TOLERANCE,
)


def get_payment_gateway() -> StripeGateway:
    return payment_gateway
