import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from core.database import get_session
from core.security import create_token_for_user, get_current_user, verify_password
from models.models import User
from schemas.user_schema import AcceptInvitation, TokenResponse, UserLogin, UserRead
from services import client_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(access_token=create_token_for_user(user), user=UserRead.model_validate(user))


# ==========================================================
# ✅ Login
# ==========================================================
@router.post("/login", response_model=TokenResponse)
def login(credentials: UserLogin, session: Session = Depends(get_session)):
    """Authenticate an admin or client and return a bearer token"""
    db_user = session.exec(select(User).where(User.email == credentials.email.lower())).first()

    if not db_user or not verify_password(credentials.password, db_user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password.")

    if not db_user.is_active:
        raise HTTPException(status_code=403, detail="Your account is inactive. Contact your admin.")

    logger.info("✅ Login successful for user %s", db_user.id)
    return _token_response(db_user)


# ==========================================================
# ✅ Accept invitation: invited client chooses a password
# ==========================================================
@router.post("/accept-invitation", response_model=TokenResponse)
def accept_invitation(data: AcceptInvitation, session: Session = Depends(get_session)):
    user = client_service.accept_invitation(session, data.token, data.password)
    return _token_response(user)


# ==========================================================
# ✅ Get Current Authenticated User
# ==========================================================
@router.get("/me", response_model=UserRead)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's information"""
    return current_user
