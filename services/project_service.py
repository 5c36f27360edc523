# services/project_service.py
import logging
from typing import List, Optional

from sqlalchemy import desc
from sqlmodel import Session, select

from core.exceptions import ValidationError
from core.security import Principal
from core.storage import BlobStorage
from core.config import settings
from models.models import Project, ProjectPhase, User, UserRole, utc_now
from schemas.project_schema import (
    PhaseRead,
    ProgressRead,
    ProjectCreate,
    ProjectDetail,
    ProjectRead,
    ProjectUpdate,
)
from schemas.task_schema import TaskRead
from services.access import commit_or_raise, get_project_for, require_admin
from services.progress import build_progress, phase_percent, sort_phases

logger = logging.getLogger(__name__)

DEFAULT_PHASES = ["Decode", "Align", "Systemize", "Activate", "Steward"]


# ================================================================
#  Projections
# ================================================================
def to_project_read(project: Project) -> ProjectRead:
    client = project.client
    return ProjectRead(
        id=project.id,
        name=project.name,
        client_id=project.client_id,
        client_name=(client.business_name or client.name) if client else None,
        price_cents=project.price_cents,
        deposit_percent=project.deposit_percent,
        last_viewed_at=project.last_viewed_at,
        created_at=project.created_at,
        updated_at=project.updated_at,
    )


def to_phase_read(phase: ProjectPhase) -> PhaseRead:
    tasks = sorted(phase.tasks or [], key=lambda t: (t.created_at, t.id))
    return PhaseRead(
        id=phase.id,
        project_id=phase.project_id,
        title=phase.title,
        step_order=phase.step_order,
        done=sum(1 for t in tasks if t.is_done),
        total=len(tasks),
        percent=phase_percent(phase),
        tasks=[TaskRead.model_validate(t) for t in tasks],
    )


def to_project_detail(project: Project) -> ProjectDetail:
    phases = sort_phases(project.phases)
    return ProjectDetail(
        **to_project_read(project).model_dump(),
        brief_content=project.brief_content,
        phases=[to_phase_read(p) for p in phases],
        progress=ProgressRead.model_validate(build_progress(phases)),
    )


# ================================================================
#  Helpers
# ================================================================
def _validate_client(session: Session, client_id: Optional[int]) -> None:
    if client_id is None:
        return
    client = session.get(User, client_id)
    if not client or client.role != UserRole.CLIENT.value:
        raise ValidationError("Selected client does not exist.", field="client_id")


# ================================================================
#  Operations
# ================================================================
def create_project(session: Session, principal: Principal, data: ProjectCreate) -> Project:
    require_admin(principal)
    name = data.name.strip()
    if not name:
        raise ValidationError("Project name is required.", field="name")
    _validate_client(session, data.client_id)

    project = Project(
        name=name,
        client_id=data.client_id,
        price_cents=data.price_cents,
        deposit_percent=data.deposit_percent,
        brief_content=data.brief_content,
    )
    session.add(project)

    titles = DEFAULT_PHASES if data.phase_titles is None else [t.strip() for t in data.phase_titles if t.strip()]
    for index, title in enumerate(titles, start=1):
        project.phases.append(ProjectPhase(title=title, step_order=index))

    commit_or_raise(session, "Failed to create project")
    session.refresh(project)
    logger.info("✅ Project %s created with %d phases", project.id, len(titles))
    return project


def list_projects(session: Session, principal: Principal, client_id: Optional[int] = None) -> List[Project]:
    query = select(Project)
    if principal.is_admin:
        if client_id is not None:
            query = query.where(Project.client_id == client_id)
    else:
        query = query.where(Project.client_id == principal.user_id)
    return list(session.exec(query.order_by(desc(Project.created_at), desc(Project.id))).all())


def get_project(session: Session, principal: Principal, project_id: int) -> Project:
    return get_project_for(session, principal, project_id)


def update_project(session: Session, principal: Principal, project_id: int, data: ProjectUpdate) -> Project:
    require_admin(principal)
    project = get_project_for(session, principal, project_id)

    update_data = data.model_dump(exclude_unset=True)
    if "name" in update_data:
        update_data["name"] = (update_data["name"] or "").strip()
        if not update_data["name"]:
            raise ValidationError("Project name is required.", field="name")
    if "client_id" in update_data:
        _validate_client(session, update_data["client_id"])

    for key, value in update_data.items():
        setattr(project, key, value)
    project.updated_at = utc_now()

    session.add(project)
    commit_or_raise(session, "Failed to update project")
    session.refresh(project)
    return project


def update_brief(session: Session, principal: Principal, project_id: int, brief_content: Optional[str]) -> Project:
    return update_project(session, principal, project_id, ProjectUpdate(brief_content=brief_content))


def mark_viewed(session: Session, principal: Principal, project_id: int) -> Project:
    project = get_project_for(session, principal, project_id)
    project.last_viewed_at = utc_now()
    session.add(project)
    commit_or_raise(session, "Failed to update project")
    session.refresh(project)
    return project


def delete_project(session: Session, principal: Principal, project_id: int, storage: BlobStorage) -> None:
    """Delete the project; phases, tasks, notes, todos and documents cascade. Uploaded blobs go too."""
    require_admin(principal)
    project = get_project_for(session, principal, project_id)
    blob_paths = [d.storage_path for d in project.documents if d.storage_path]

    session.delete(project)
    commit_or_raise(session, "Failed to delete project")
    logger.info("🗑️ Project %s deleted", project_id)

    for path in blob_paths:
        storage.remove(settings.PROJECT_FILES_BUCKET, path)
