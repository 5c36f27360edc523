from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from core.database import get_session
from core.security import Principal, get_current_principal, require_admin
from core.storage import BlobStorage, get_blob_storage
from schemas.document_schema import DocumentPreview, DocumentRead, DocumentUpdate
from services import document_service
from services.access import require_confirmation

router = APIRouter(tags=["Documents"])


# ==================================================================
#  👁️ Preview: iframe URL for links, signed URL for uploads
# ==================================================================
@router.get("/{document_id}/preview", response_model=DocumentPreview)
def preview_document(
    document_id: int,
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
    storage: BlobStorage = Depends(get_blob_storage),
):
    return document_service.get_preview(session, principal, storage, document_id)


@router.patch("/{document_id}", response_model=DocumentRead)
def rename_document(
    document_id: int,
    data: DocumentUpdate,
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return document_service.rename_document(session, principal, document_id, data.title)


@router.delete("/{document_id}", status_code=204)
def delete_document(
    document_id: int,
    confirm: str = Query(..., description="Type DELETE to confirm"),
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
    storage: BlobStorage = Depends(get_blob_storage),
):
    require_confirmation(confirm)
    document_service.delete_document(session, principal, storage, document_id)
