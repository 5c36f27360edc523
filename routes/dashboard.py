from fastapi import APIRouter, Depends
from sqlmodel import Session

from core.database import get_session
from core.security import Principal, get_current_principal, require_admin, require_client
from schemas.client_schema import AdminDashboard, ClientDashboard
from schemas.user_schema import UserRead
from services import client_service

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/admin", response_model=AdminDashboard)
def admin_dashboard(
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return client_service.admin_dashboard(session, principal)


@router.get("/client", response_model=ClientDashboard)
def client_dashboard(
    principal: Principal = Depends(require_client),
    session: Session = Depends(get_session),
):
    """Projects plus what changed since the last visit"""
    return client_service.whats_new(session, principal)


@router.post("/client/seen", response_model=UserRead)
def mark_seen(
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
):
    return client_service.touch_last_seen(session, principal)
