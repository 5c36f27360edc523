# routes/clients.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from core.database import get_session
from core.security import Principal, require_admin
from schemas.client_schema import (
    ClientDetail,
    ClientProvisionRequest,
    ClientProvisionResponse,
    ClientUpdate,
    ContactCreate,
    ContactRead,
    ContactUpdate,
)
from schemas.user_schema import UserRead
from services import client_service
from services.access import require_confirmation
from services.email_service import EmailService, get_email_service

# provisioning keeps its public path; everything else lives under /clients
provision_router = APIRouter(prefix="/api/clients", tags=["Clients"])
router = APIRouter(tags=["Clients"])


# ==================================================================
#  🆕 Provision a client account
# ==================================================================
@provision_router.post("/create", response_model=ClientProvisionResponse)
def create_client(
    data: ClientProvisionRequest,
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
    mailer: EmailService = Depends(get_email_service),
):
    user, invited = client_service.provision_client(session, principal, data, mailer)
    return ClientProvisionResponse(user_id=user.id, invited=invited)


# ==================================================================
#  👥 Clients
# ==================================================================
@router.get("/", response_model=List[UserRead])
def get_clients(
    search: Optional[str] = Query(None),
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return client_service.list_clients(session, principal, search)


@router.get("/{client_id}", response_model=ClientDetail)
def get_client(
    client_id: int,
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """Profile, contacts, projects and outstanding invoices in one payload"""
    return client_service.get_client_detail(session, principal, client_id)


@router.patch("/{client_id}", response_model=UserRead)
def update_client(
    client_id: int,
    data: ClientUpdate,
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return client_service.update_client(session, principal, client_id, data)


@router.delete("/{client_id}", status_code=204)
def delete_client(
    client_id: int,
    confirm: str = Query(..., description="Type DELETE to confirm"),
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    require_confirmation(confirm)
    client_service.delete_client(session, principal, client_id)


# ==================================================================
#  📇 Contacts
# ==================================================================
@router.get("/{client_id}/contacts", response_model=List[ContactRead])
def get_contacts(
    client_id: int,
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return client_service.list_contacts(session, principal, client_id)


@router.post("/{client_id}/contacts", response_model=ContactRead, status_code=201)
def add_contact(
    client_id: int,
    data: ContactCreate,
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return client_service.add_contact(session, principal, client_id, data)


@router.patch("/{client_id}/contacts/{contact_id}", response_model=ContactRead)
def update_contact(
    client_id: int,
    contact_id: int,
    data: ContactUpdate,
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return client_service.update_contact(session, principal, client_id, contact_id, data)


@router.delete("/{client_id}/contacts/{contact_id}", status_code=204)
def delete_contact(
    client_id: int,
    contact_id: int,
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    client_service.delete_contact(session, principal, client_id, contact_id)
