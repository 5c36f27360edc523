# ================================================================
# services/invoice_service.py: invoice lifecycle
#
#   draft ──send / checkout──▶ sent ──verified webhook──▶ paid
#
# `paid` is terminal and only the verified webhook handler can reach it.
# ================================================================
import logging
from typing import List, Optional

from sqlalchemy import desc, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from core.config import settings
from core.exceptions import (
    AlreadyPaidError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    UpstreamError,
    ValidationError,
)
from core.security import Principal
from models.models import ClientInvoiceStatus, Invoice, InvoiceStatus, Project, WebhookEvent, utc_now
from schemas.invoice_schema import ClientInvoiceRead, InvoiceRead
from schemas.payment_schema import WebhookAck
from services.access import commit_or_raise, require_admin
from services.payment_service import CHECKOUT_COMPLETED, CheckoutSession, StripeGateway

logger = logging.getLogger(__name__)

OUTSTANDING_STATUSES = (InvoiceStatus.DRAFT.value, InvoiceStatus.SENT.value)

_TO_CLIENT_STATUS = {
    InvoiceStatus.DRAFT: ClientInvoiceStatus.DRAFT,
    InvoiceStatus.SENT: ClientInvoiceStatus.OPEN,
    InvoiceStatus.PAID: ClientInvoiceStatus.PAID,
}
_FROM_GATEWAY_STATUS = {
    ClientInvoiceStatus.DRAFT: InvoiceStatus.DRAFT,
    ClientInvoiceStatus.OPEN: InvoiceStatus.SENT,
    ClientInvoiceStatus.PAID: InvoiceStatus.PAID,
}


# ================================================================
# 🔁 Status vocabularies
# ================================================================
def to_client_status(status: str) -> ClientInvoiceStatus:
    return _TO_CLIENT_STATUS[InvoiceStatus(status)]


def from_gateway_status(status: str) -> InvoiceStatus:
    """Map a gateway-native status onto the canonical one. void/uncollectible have no counterpart."""
    try:
        return _FROM_GATEWAY_STATUS[ClientInvoiceStatus(status)]
    except (KeyError, ValueError):
        raise InvalidStateError(f"Invoice status '{status}' is not supported.")


# ================================================================
# 🧮 Amounts
# ================================================================
def compute_invoice_amount(
    price_cents: Optional[int],
    deposit_percent: Optional[int],
    is_deposit: bool,
    override: Optional[int] = None,
) -> int:
    """
    Deposit: price * pct / 100 rounded half up, pct falling back to the
    default deposit percent. Full invoice: the project price, or the admin
    override when the project has no price.
    """
    if is_deposit:
        if price_cents is None:
            raise ValidationError("Project has no price to take a deposit from.", field="is_deposit")
        pct = deposit_percent if deposit_percent is not None else settings.DEFAULT_DEPOSIT_PERCENT
        amount = (price_cents * pct + 50) // 100
    else:
        amount = price_cents if price_cents is not None else override

    if amount is None or amount <= 0:
        raise ValidationError("Invoice amount must be greater than zero.", field="amount")
    return amount


def format_invoice_number(invoice: Invoice) -> str:
    return f"INV-{invoice.created_at.year}-{invoice.id:05d}"


# ================================================================
# 📄 Projections
# ================================================================
def to_invoice_read(invoice: Invoice) -> InvoiceRead:
    client = invoice.client
    return InvoiceRead(
        **invoice.model_dump(exclude={"status"}),
        status=InvoiceStatus(invoice.status),
        project_name=invoice.project.name if invoice.project else None,
        business_name=client.business_name if client else None,
        client_name=client.name if client else None,
    )


def to_client_invoice_read(invoice: Invoice) -> ClientInvoiceRead:
    return ClientInvoiceRead(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        project_id=invoice.project_id,
        project_name=invoice.project.name if invoice.project else None,
        amount_cents=invoice.amount,
        currency=settings.STRIPE_CURRENCY,
        status=to_client_status(invoice.status),
        is_deposit=invoice.is_deposit,
        checkout_url=invoice.checkout_url,
        paid_at=invoice.paid_at,
        created_at=invoice.created_at,
    )


# ================================================================
# 🔎 Reads
# ================================================================
def get_invoice(session: Session, principal: Principal, invoice_id: int) -> Invoice:
    invoice = session.get(Invoice, invoice_id)
    if not invoice:
        raise NotFoundError("Invoice not found")
    if not principal.is_admin:
        # drafts are not visible to clients yet
        if invoice.status == InvoiceStatus.DRAFT.value:
            raise NotFoundError("Invoice not found")
        if invoice.client_id != principal.user_id:
            raise PermissionDeniedError("Not authorized to access this invoice")
    return invoice


def list_invoices(
    session: Session,
    principal: Principal,
    status: Optional[InvoiceStatus] = None,
    client_id: Optional[int] = None,
    project_id: Optional[int] = None,
) -> List[Invoice]:
    query = select(Invoice)
    if principal.is_admin:
        if client_id is not None:
            query = query.where(Invoice.client_id == client_id)
    else:
        query = query.where(
            Invoice.client_id == principal.user_id,
            Invoice.status != InvoiceStatus.DRAFT.value,
        )
    if status is not None:
        query = query.where(Invoice.status == InvoiceStatus(status).value)
    if project_id is not None:
        query = query.where(Invoice.project_id == project_id)
    return list(session.exec(query.order_by(desc(Invoice.created_at), desc(Invoice.id))).all())


def outstanding_invoices(session: Session, client_id: int) -> List[Invoice]:
    return list(session.exec(
        select(Invoice)
        .where(Invoice.client_id == client_id, Invoice.status.in_(OUTSTANDING_STATUSES))
        .order_by(desc(Invoice.created_at), desc(Invoice.id))
    ).all())


# ================================================================
# ✍️ Mutations
# ================================================================
def create_invoice(
    session: Session,
    principal: Principal,
    project_id: Optional[int],
    is_deposit: bool = False,
    amount_override: Optional[int] = None,
) -> Invoice:
    require_admin(principal)
    if project_id is None:
        raise ValidationError("Select a project for this invoice.", field="project_id")

    project = session.get(Project, project_id)
    if not project:
        raise NotFoundError("Project not found")
    if project.client_id is None or project.client is None:
        raise ValidationError("Project has no client to bill.", field="project_id")

    amount = compute_invoice_amount(project.price_cents, project.deposit_percent, is_deposit, amount_override)
    client = project.client

    invoice = Invoice(
        project_id=project.id,
        client_id=client.id,
        amount=amount,
        status=InvoiceStatus.DRAFT.value,
        is_deposit=is_deposit,
        project_total_cents=project.price_cents if project.price_cents is not None else amount,
        deposit_percent_used=(
            (project.deposit_percent if project.deposit_percent is not None else settings.DEFAULT_DEPOSIT_PERCENT)
            if is_deposit else None
        ),
        bill_to_name=client.business_name or client.name,
        bill_to_email=client.email,
        bill_to_position=client.position,
        bill_to_address=client.address,
    )
    session.add(invoice)
    try:
        session.flush()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("❌ Failed to create invoice for project %s: %s", project_id, e)
        raise UpstreamError("Failed to create invoice", detail=str(e))

    invoice.invoice_number = format_invoice_number(invoice)
    commit_or_raise(session, "Failed to create invoice")
    session.refresh(invoice)
    logger.info("✅ Invoice %s created for project %s (%d cents)", invoice.invoice_number, project_id, amount)
    return invoice


def send_invoice(session: Session, principal: Principal, invoice_id: int) -> Invoice:
    require_admin(principal)
    invoice = get_invoice(session, principal, invoice_id)
    if invoice.status == InvoiceStatus.PAID.value:
        raise AlreadyPaidError("Invoice is already paid.")
    if invoice.status != InvoiceStatus.DRAFT.value:
        raise InvalidStateError("Only draft invoices can be sent.")

    invoice.status = InvoiceStatus.SENT.value
    invoice.updated_at = utc_now()
    session.add(invoice)
    commit_or_raise(session, "Failed to send invoice")
    session.refresh(invoice)
    logger.info("📨 Invoice %s sent", invoice.invoice_number)
    return invoice


def delete_invoice(session: Session, principal: Principal, invoice_id: int) -> None:
    require_admin(principal)
    invoice = get_invoice(session, principal, invoice_id)
    session.delete(invoice)
    commit_or_raise(session, "Failed to delete invoice")
    logger.info("🗑️ Invoice %s deleted", invoice_id)


# ================================================================
# 💳 Checkout
# ================================================================
def _checkout_description(invoice: Invoice) -> str:
    label = invoice.invoice_number or f"Invoice {invoice.id}"
    if invoice.project:
        label = f"{label} · {invoice.project.name}"
    if invoice.is_deposit:
        label = f"{label} (deposit)"
    return label


def create_checkout_session(
    session: Session,
    principal: Principal,
    invoice_id: Optional[int],
    gateway: StripeGateway,
) -> CheckoutSession:
    """
    Start (or restart) hosted checkout for an invoice. Calling again before
    payment issues a fresh session and overwrites the stored one.
    """
    if invoice_id is None:
        raise ValidationError("Missing invoiceId", field="invoice_id")
    invoice = get_invoice(session, principal, invoice_id)
    if invoice.status == InvoiceStatus.PAID.value:
        raise AlreadyPaidError("Invoice already paid")

    checkout = gateway.create_checkout_session(invoice.id, invoice.amount, _checkout_description(invoice))

    invoice.stripe_checkout_session_id = checkout.id
    invoice.checkout_url = checkout.url
    invoice.status = InvoiceStatus.SENT.value
    invoice.updated_at = utc_now()
    session.add(invoice)
    commit_or_raise(session, "Failed to save checkout session")
    return checkout


# ================================================================
# 🔔 Webhook
# ================================================================
def _invoice_id_from(event_object: dict) -> Optional[int]:
    raw = (event_object.get("metadata") or {}).get("invoice_id")
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning("⚠️ Ignoring non-numeric invoice_id in webhook metadata: %r", raw)
        return None


def mark_invoice_paid(session: Session, invoice_id: int, payment_intent_id: Optional[str]) -> bool:
    """
    Conditional update: only rows not yet paid change, so redeliveries keep
    the original paid_at. Returns whether a row was updated. Does not commit.
    """
    now = utc_now()
    result = session.exec(
        update(Invoice)
        .where(Invoice.id == invoice_id, Invoice.status != InvoiceStatus.PAID.value)
        .values(
            status=InvoiceStatus.PAID.value,
            paid_at=now,
            stripe_payment_intent_id=payment_intent_id,
            updated_at=now,
        )
    )
    return result.rowcount > 0


def handle_webhook(session: Session, payload: bytes, sig_header: Optional[str], gateway: StripeGateway) -> WebhookAck:
    event = gateway.verify_event(payload, sig_header)

    event_id = event.get("id")
    event_type = event.get("type")
    logger.info("🔔 Stripe webhook received: %s (%s)", event_type, event_id)

    record = None
    if event_id:
        record = session.exec(select(WebhookEvent).where(WebhookEvent.stripe_event_id == event_id)).first()
        if record and record.processed:
            logger.info("Webhook event %s already processed, skipping", event_id)
            return WebhookAck(event_type=event_type)
        if record is None:
            record = WebhookEvent(
                stripe_event_id=event_id,
                event_type=event_type or "unknown",
                payload=payload.decode("utf-8"),
            )
            session.add(record)

    invoice_id = None
    if event_type == CHECKOUT_COMPLETED:
        event_object = (event.get("data") or {}).get("object") or {}
        invoice_id = _invoice_id_from(event_object)
        if invoice_id is None:
            logger.warning("⚠️ checkout.session.completed without invoice_id metadata")
        else:
            try:
                updated = mark_invoice_paid(session, invoice_id, event_object.get("payment_intent"))
            except SQLAlchemyError as e:
                session.rollback()
                logger.error("❌ Failed to mark invoice %s paid: %s", invoice_id, e)
                raise UpstreamError("Failed to record payment", detail=str(e))
            if updated:
                logger.info("💰 Invoice %s marked as paid", invoice_id)
            else:
                logger.info("Invoice %s already paid or missing, nothing to update", invoice_id)

    if record is not None:
        record.processed = True
        session.add(record)

    try:
        session.commit()
    except IntegrityError:
        # a concurrent delivery of the same event recorded it first
        session.rollback()
        logger.info("Webhook event %s recorded concurrently, skipping", event_id)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("❌ Failed to record webhook %s: %s", event_id, e)
        raise UpstreamError("Failed to record payment", detail=str(e))

    return WebhookAck(event_type=event_type, invoice_id=invoice_id)


def list_webhook_events(session: Session, principal: Principal, limit: int = 50) -> List[WebhookEvent]:
    require_admin(principal)
    return list(session.exec(
        select(WebhookEvent).order_by(desc(WebhookEvent.created_at), desc(WebhookEvent.id)).limit(limit)
    ).all())
