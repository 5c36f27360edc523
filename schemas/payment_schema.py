# payment_schema.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime


# ---------------------------
# Checkout
# ---------------------------
class CheckoutSessionRequest(BaseModel):
    invoice_id: Optional[int] = Field(default=None, alias="invoiceId")

    model_config = ConfigDict(populate_by_name=True)


class CheckoutSessionResponse(BaseModel):
    url: str
    session_id: str


# ---------------------------
# Webhook
# ---------------------------
class WebhookAck(BaseModel):
    received: bool = True
    event_type: Optional[str] = None
    invoice_id: Optional[int] = None


class WebhookEventRead(BaseModel):
    id: int
    stripe_event_id: str
    event_type: str
    processed: bool
    processing_error: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
