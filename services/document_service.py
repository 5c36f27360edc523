# services/document_service.py
"""
Project documents: external links rendered in an iframe, or uploads kept in
the project-files bucket and previewed through signed URLs.
"""
import logging
import re
import uuid
from typing import List, Optional

from sqlalchemy import desc
from sqlmodel import Session, select

from core.config import settings
from core.exceptions import NotFoundError, UpstreamError, ValidationError
from core.security import Principal
from core.storage import BlobStorage
from models.models import ProjectDocument, utc_now
from schemas.document_schema import DocumentPreview
from services.access import commit_or_raise, get_project_for, require_admin
from services.document_preview import (
    LINK_FILE_TYPE,
    infer_file_type,
    is_http_url,
    normalize_embed_url,
    preview_kind,
)

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(filename: Optional[str]) -> str:
    name = _UNSAFE_FILENAME_CHARS.sub("_", (filename or "").strip()).strip("._")
    return name or "file"


def _get_document(session: Session, principal: Principal, document_id: int) -> ProjectDocument:
    document = session.get(ProjectDocument, document_id)
    if not document:
        raise NotFoundError("Document not found")
    get_project_for(session, principal, document.project_id)
    return document


def list_documents(session: Session, principal: Principal, project_id: int) -> List[ProjectDocument]:
    get_project_for(session, principal, project_id)
    return list(session.exec(
        select(ProjectDocument)
        .where(ProjectDocument.project_id == project_id)
        .order_by(desc(ProjectDocument.created_at), desc(ProjectDocument.id))
    ).all())


def create_link_document(session: Session, principal: Principal, project_id: int, title: str, embed_url: str) -> ProjectDocument:
    require_admin(principal)
    get_project_for(session, principal, project_id)

    title = (title or "").strip()
    embed_url = (embed_url or "").strip()
    if not title:
        raise ValidationError("Document title is required.", field="title")
    if not is_http_url(embed_url):
        raise ValidationError("Link must be an http(s) URL.", field="embed_url")

    document = ProjectDocument(project_id=project_id, title=title, embed_url=embed_url, file_type=LINK_FILE_TYPE)
    session.add(document)
    commit_or_raise(session, "Failed to add document")
    session.refresh(document)
    logger.info("✅ Link document %s added to project %s", document.id, project_id)
    return document


def upload_document(
    session: Session,
    principal: Principal,
    storage: BlobStorage,
    project_id: int,
    title: Optional[str],
    filename: Optional[str],
    content_type: Optional[str],
    data: bytes,
) -> ProjectDocument:
    """Store the blob first, then the row. A failed insert removes the blob again."""
    require_admin(principal)
    get_project_for(session, principal, project_id)
    if not data:
        raise ValidationError("Uploaded file is empty.", field="file")

    bucket = settings.PROJECT_FILES_BUCKET
    path = f"{project_id}/{uuid.uuid4().hex}-{safe_filename(filename)}"
    storage.upload(bucket, path, data)

    document = ProjectDocument(
        project_id=project_id,
        title=(title or "").strip() or (filename or "Untitled"),
        storage_path=path,
        file_type=infer_file_type(content_type, filename),
        size_bytes=len(data),
    )
    session.add(document)
    try:
        commit_or_raise(session, "Failed to save document")
    except (ValidationError, UpstreamError):
        storage.remove(bucket, path)
        raise

    session.refresh(document)
    logger.info("✅ Uploaded document %s (%s, %d bytes)", document.id, document.file_type, len(data))
    return document


def get_preview(session: Session, principal: Principal, storage: BlobStorage, document_id: int) -> DocumentPreview:
    document = _get_document(session, principal, document_id)
    if document.embed_url:
        return DocumentPreview(document_id=document.id, kind="embed", url=normalize_embed_url(document.embed_url))

    url = storage.create_signed_url(settings.PROJECT_FILES_BUCKET, document.storage_path)
    return DocumentPreview(document_id=document.id, kind=preview_kind(document.file_type), url=url)


def rename_document(session: Session, principal: Principal, document_id: int, title: str) -> ProjectDocument:
    require_admin(principal)
    document = _get_document(session, principal, document_id)
    title = (title or "").strip()
    if not title:
        raise ValidationError("Document title is required.", field="title")
    document.title = title
    document.updated_at = utc_now()
    session.add(document)
    commit_or_raise(session, "Failed to rename document")
    session.refresh(document)
    return document


def delete_document(session: Session, principal: Principal, storage: BlobStorage, document_id: int) -> None:
    """Blob first (uploads only), then the row."""
    require_admin(principal)
    document = _get_document(session, principal, document_id)
    if document.storage_path:
        storage.remove(settings.PROJECT_FILES_BUCKET, document.storage_path)

    session.delete(document)
    commit_or_raise(session, "Failed to delete document")
    logger.info("🗑️ Document %s deleted", document_id)
