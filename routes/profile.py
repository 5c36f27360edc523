# routes/profile.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlmodel import Session

from core.database import get_session
from core.security import Principal, get_current_principal
from core.storage import BlobStorage, get_blob_storage
from schemas.user_schema import ProfileRead, ProfileUpdate
from services import client_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["Profile"])


# ==================================================================
#  ✅  Get Current User Profile
# ==================================================================
@router.get("/me", response_model=ProfileRead)
def get_my_profile(
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
    storage: BlobStorage = Depends(get_blob_storage),
):
    """Return the current user's profile, with a short-lived avatar URL."""
    user = client_service.get_profile(session, principal)
    return client_service.to_profile_read(user, storage)


# ==================================================================
#  ✅ Update Current User Profile (With Avatar Upload)
# ==================================================================
@router.put("/me", response_model=ProfileRead)
async def update_my_profile(
    name: Optional[str] = Form(None),
    business_name: Optional[str] = Form(None),
    position: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
    storage: BlobStorage = Depends(get_blob_storage),
):
    update_data = {
        "name": name,
        "business_name": business_name,
        "position": position,
        "phone": phone,
        "address": address,
    }
    # Remove None fields
    update_data = {k: v for k, v in update_data.items() if v is not None}

    user = client_service.update_profile(session, principal, ProfileUpdate(**update_data))
    if file and file.filename:
        contents = await file.read()
        user = client_service.upload_avatar(session, principal, storage, file.filename, contents)

    logger.info("✅ Profile updated for user %s", principal.user_id)
    return client_service.to_profile_read(user, storage)
