# core/storage.py
"""
Filesystem blob store with bucket semantics.

Objects live under STORAGE_DIR/<bucket>/<path>. They are never served
directly; callers hand out short-lived signed URLs whose token is a JWT
naming the bucket, the object path and the expiry.
"""
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from jose import JWTError, jwt

from core.config import settings
from core.exceptions import NotFoundError, PermissionDeniedError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)

SIGNED_URL_PURPOSE = "blob"


class BlobStorage:
    def __init__(self, root: str, base_url: str, secret_key: str, algorithm: str = "HS256"):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        self.secret_key = secret_key
        self.algorithm = algorithm

    # ------------------------
    # Paths
    # ------------------------
    def _object_path(self, bucket: str, path: str) -> Path:
        bucket_dir = (self.root / bucket).resolve()
        target = (bucket_dir / path).resolve()
        if bucket_dir not in target.parents:
            raise ValidationError("Invalid storage path.", field="storage_path")
        return target

    def exists(self, bucket: str, path: str) -> bool:
        return self._object_path(bucket, path).is_file()

    # ------------------------
    # Write / delete
    # ------------------------
    def upload(self, bucket: str, path: str, data: bytes) -> str:
        target = self._object_path(bucket, path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.error("❌ Blob upload failed for %s/%s: %s", bucket, path, e)
            raise UpstreamError("Failed to upload file.", detail=str(e))
        logger.info("📦 Stored blob %s/%s (%d bytes)", bucket, path, len(data))
        return path

    def remove(self, bucket: str, path: str) -> None:
        target = self._object_path(bucket, path)
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            logger.error("❌ Blob delete failed for %s/%s: %s", bucket, path, e)
            raise UpstreamError("Failed to delete file.", detail=str(e))
        logger.info("🗑️ Removed blob %s/%s", bucket, path)

    # ------------------------
    # Signed URLs
    # ------------------------
    def create_signed_url(self, bucket: str, path: str, expires_in: Optional[int] = None) -> str:
        if not self.exists(bucket, path):
            raise NotFoundError("File not found in storage.")
        seconds = expires_in or settings.SIGNED_URL_EXPIRE_SECONDS
        token = jwt.encode(
            {
                "purpose": SIGNED_URL_PURPOSE,
                "bucket": bucket,
                "path": path,
                "exp": datetime.now(timezone.utc) + timedelta(seconds=seconds),
            },
            self.secret_key,
            algorithm=self.algorithm,
        )
        return f"{self.base_url}/storage/signed/{token}"

    def resolve_signed_token(self, token: str) -> Path:
        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            raise PermissionDeniedError("Signed URL is invalid or expired.")
        if claims.get("purpose") != SIGNED_URL_PURPOSE:
            raise PermissionDeniedError("Signed URL is invalid or expired.")

        target = self._object_path(claims["bucket"], claims["path"])
        if not target.is_file():
            raise NotFoundError("File not found in storage.")
        return target


blob_storage = BlobStorage(
    root=settings.STORAGE_DIR,
    base_url=settings.BACKEND_URL,
    secret_key=settings.SECRET_KEY,
    algorithm=settings.ALGORITHM,
)


def get_blob_storage() -> BlobStorage:
    return blob_storage
