# routes/payment.py
import logging

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from core.database import get_session
from core.security import Principal, get_current_principal
from schemas.payment_schema import CheckoutSessionRequest, CheckoutSessionResponse, WebhookAck
from services import invoice_service
from services.payment_service import StripeGateway, get_payment_gateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stripe", tags=["Payments"])


# ==================================================================
#  💳 Hosted checkout for an invoice
# ==================================================================
@router.post("/checkout", response_model=CheckoutSessionResponse)
def create_checkout(
    data: CheckoutSessionRequest,
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    """404 for an unknown invoice, 400 once paid, otherwise the hosted checkout URL"""
    checkout = invoice_service.create_checkout_session(session, principal, data.invoice_id, gateway)
    return CheckoutSessionResponse(url=checkout.url, session_id=checkout.id)


# ==================================================================
#  🔔 Stripe webhook (unauthenticated; trusted only after signature check)
# ==================================================================
@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    session: Session = Depends(get_session),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    return invoice_service.handle_webhook(session, payload, sig_header, gateway)
