# services/access.py
"""
Principal-scoped row access. Admins see everything; a client sees only rows
hanging off projects and invoices they own.
"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from core.exceptions import NotFoundError, PermissionDeniedError, UpstreamError, ValidationError
from core.security import Principal
from models.models import Project

logger = logging.getLogger(__name__)


def require_admin(principal: Principal) -> None:
    if not principal.is_admin:
        raise PermissionDeniedError("Admin privileges required")


def get_project_for(session: Session, principal: Principal, project_id: int) -> Project:
    project = session.get(Project, project_id)
    if not project:
        raise NotFoundError("Project not found")
    if not principal.is_admin and project.client_id != principal.user_id:
        raise PermissionDeniedError("Not authorized to access this project")
    return project


def commit_or_raise(session: Session, failure_message: str) -> None:
    """Commit, or roll back and convert the database error into the app taxonomy."""
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.error("❌ %s: %s", failure_message, e)
        raise ValidationError(failure_message, detail=str(e.orig))
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("❌ %s: %s", failure_message, e)
        raise UpstreamError(failure_message, detail=str(e))


CONFIRMATION_PHRASE = "DELETE"


def require_confirmation(confirm: str) -> None:
    """Destructive routes make the caller type the confirmation phrase."""
    if (confirm or "").strip() != CONFIRMATION_PHRASE:
        raise ValidationError(f"Type {CONFIRMATION_PHRASE} to confirm.", field="confirm")
