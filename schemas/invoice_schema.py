# invoice_schema.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime

from models.models import ClientInvoiceStatus, InvoiceStatus


class InvoiceCreate(BaseModel):
    project_id: Optional[int] = None
    is_deposit: bool = False
    # used only when the project has no price of its own
    amount: Optional[int] = Field(default=None, description="Amount in cents")


class InvoiceRead(BaseModel):
    id: int
    invoice_number: Optional[str] = None
    project_id: Optional[int] = None
    project_name: Optional[str] = None
    client_id: int
    business_name: Optional[str] = None
    client_name: Optional[str] = None
    amount: int
    status: InvoiceStatus
    is_deposit: bool
    project_total_cents: Optional[int] = None
    deposit_percent_used: Optional[int] = None
    bill_to_name: Optional[str] = None
    bill_to_email: Optional[str] = None
    bill_to_position: Optional[str] = None
    bill_to_address: Optional[str] = None
    checkout_url: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClientInvoiceRead(BaseModel):
    """Invoice as shown to the client, in the payment gateway's status vocabulary."""

    id: int
    invoice_number: Optional[str] = None
    project_id: Optional[int] = None
    project_name: Optional[str] = None
    amount_cents: int
    currency: str
    status: ClientInvoiceStatus
    is_deposit: bool
    checkout_url: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: datetime
