from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from core.storage import BlobStorage, get_blob_storage

router = APIRouter(prefix="/storage", tags=["Storage"])


@router.get("/signed/{token}")
def download_signed(token: str, storage: BlobStorage = Depends(get_blob_storage)):
    """Serve a blob named by a signed URL token. The token is the only credential."""
    path = storage.resolve_signed_token(token)
    return FileResponse(path)
