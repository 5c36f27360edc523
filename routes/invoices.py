from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from core.database import get_session
from core.security import Principal, get_current_principal, require_admin
from models.models import ClientInvoiceStatus, InvoiceStatus
from schemas.invoice_schema import ClientInvoiceRead, InvoiceCreate, InvoiceRead
from schemas.payment_schema import WebhookEventRead
from services import invoice_service
from services.access import require_confirmation

router = APIRouter(tags=["Invoices"])


# ==================================================================
#  🧾 Admin
# ==================================================================
@router.post("/", response_model=InvoiceRead, status_code=201)
def create_invoice(
    data: InvoiceCreate,
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    invoice = invoice_service.create_invoice(session, principal, data.project_id, data.is_deposit, data.amount)
    return invoice_service.to_invoice_read(invoice)


@router.get("/", response_model=List[InvoiceRead])
def get_invoices(
    status: Optional[InvoiceStatus] = Query(None),
    client_id: Optional[int] = Query(None),
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    invoices = invoice_service.list_invoices(session, principal, status=status, client_id=client_id)
    return [invoice_service.to_invoice_read(i) for i in invoices]


# ==================================================================
#  👤 Client view (gateway status vocabulary)
# ==================================================================
@router.get("/mine", response_model=List[ClientInvoiceRead])
def get_my_invoices(
    status: Optional[ClientInvoiceStatus] = Query(None),
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
):
    canonical = invoice_service.from_gateway_status(status) if status is not None else None
    invoices = invoice_service.list_invoices(session, principal, status=canonical)
    return [invoice_service.to_client_invoice_read(i) for i in invoices]


@router.get("/mine/{invoice_id}", response_model=ClientInvoiceRead)
def get_my_invoice(
    invoice_id: int,
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
):
    invoice = invoice_service.get_invoice(session, principal, invoice_id)
    return invoice_service.to_client_invoice_read(invoice)


@router.get("/webhook-events", response_model=List[WebhookEventRead])
def get_webhook_events(
    limit: int = Query(50, ge=1, le=500),
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return invoice_service.list_webhook_events(session, principal, limit=limit)


@router.get("/{invoice_id}", response_model=InvoiceRead)
def get_invoice(
    invoice_id: int,
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return invoice_service.to_invoice_read(invoice_service.get_invoice(session, principal, invoice_id))


@router.post("/{invoice_id}/send", response_model=InvoiceRead)
def send_invoice(
    invoice_id: int,
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """draft -> sent; rejected for anything else"""
    invoice = invoice_service.send_invoice(session, principal, invoice_id)
    return invoice_service.to_invoice_read(invoice)


@router.delete("/{invoice_id}", status_code=204)
def delete_invoice(
    invoice_id: int,
    confirm: str = Query(..., description="Type DELETE to confirm"),
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    require_confirmation(confirm)
    invoice_service.delete_invoice(session, principal, invoice_id)
