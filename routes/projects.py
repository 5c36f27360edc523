# routes/projects.py
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, File, Form, Query, UploadFile
from sqlmodel import Session

from core.database import get_session
from core.security import Principal, get_current_principal, require_admin
from core.storage import BlobStorage, get_blob_storage
from schemas.document_schema import DocumentLinkCreate, DocumentRead
from schemas.invoice_schema import InvoiceRead
from schemas.project_schema import (
    PhaseBatchRequest,
    PhaseBatchResult,
    PhaseRead,
    ProgressRead,
    ProjectCreate,
    ProjectDetail,
    ProjectRead,
    ProjectUpdate,
)
from schemas.task_schema import TaskCreate, TaskRead, TodoCreate, TodoRead
from services import document_service, invoice_service, phase_service, project_service, task_service, todo_service
from services.access import require_confirmation
from services.progress import build_progress, sort_phases

router = APIRouter(tags=["Projects"])


# ==================================================================
#  ✅ Projects
# ==================================================================
@router.post("/", response_model=ProjectDetail, status_code=201)
def create_project(
    data: ProjectCreate,
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    project = project_service.create_project(session, principal, data)
    return project_service.to_project_detail(project)


@router.get("/", response_model=List[ProjectRead])
def get_projects(
    client_id: Optional[int] = Query(None),
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
):
    """Admins see every project (optionally one client's); clients see their own"""
    projects = project_service.list_projects(session, principal, client_id=client_id)
    return [project_service.to_project_read(p) for p in projects]


@router.get("/{project_id}", response_model=ProjectDetail)
def get_project(
    project_id: int,
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
):
    project = project_service.get_project(session, principal, project_id)
    return project_service.to_project_detail(project)


@router.patch("/{project_id}", response_model=ProjectDetail)
def update_project(
    project_id: int,
    data: ProjectUpdate,
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    project = project_service.update_project(session, principal, project_id, data)
    return project_service.to_project_detail(project)


@router.put("/{project_id}/brief", response_model=ProjectDetail)
def update_brief(
    project_id: int,
    brief_content: Optional[str] = Body(None, embed=True),
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """Replace the rich-text brief; null clears it"""
    project = project_service.update_brief(session, principal, project_id, brief_content)
    return project_service.to_project_detail(project)


@router.post("/{project_id}/viewed", response_model=ProjectRead)
def mark_project_viewed(
    project_id: int,
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
):
    project = project_service.mark_viewed(session, principal, project_id)
    return project_service.to_project_read(project)


@router.delete("/{project_id}", status_code=204)
def delete_project(
    project_id: int,
    confirm: str = Query(..., description="Type DELETE to confirm"),
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
    storage: BlobStorage = Depends(get_blob_storage),
):
    require_confirmation(confirm)
    project_service.delete_project(session, principal, project_id, storage)


# ==================================================================
#  📈 Progress & phases
# ==================================================================
@router.get("/{project_id}/progress", response_model=ProgressRead)
def get_progress(
    project_id: int,
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
):
    project = project_service.get_project(session, principal, project_id)
    return ProgressRead.model_validate(build_progress(project.phases))


@router.get("/{project_id}/phases", response_model=List[PhaseRead])
def get_phases(
    project_id: int,
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
):
    project = project_service.get_project(session, principal, project_id)
    return [project_service.to_phase_read(p) for p in sort_phases(project.phases)]


@router.put("/{project_id}/phases", response_model=PhaseBatchResult)
def save_phases(
    project_id: int,
    data: PhaseBatchRequest,
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """Apply a whole phase-settings batch; phases that still own tasks come back in `rejected`"""
    return phase_service.apply_phase_batch(session, principal, project_id, data.phases)


@router.post("/{project_id}/phases/{phase_id}/tasks", response_model=TaskRead, status_code=201)
def add_task(
    project_id: int,
    phase_id: int,
    data: TaskCreate,
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return task_service.add_task(session, principal, project_id, phase_id, data.title)


# ==================================================================
#  📝 Todos
# ==================================================================
@router.get("/{project_id}/todos", response_model=List[TodoRead])
def get_todos(
    project_id: int,
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
):
    return todo_service.list_todos(session, principal, project_id)


@router.post("/{project_id}/todos", response_model=TodoRead, status_code=201)
def add_todo(
    project_id: int,
    data: TodoCreate,
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
):
    return todo_service.add_todo(session, principal, project_id, data.text)


# ==================================================================
#  📎 Documents
# ==================================================================
@router.get("/{project_id}/documents", response_model=List[DocumentRead])
def get_documents(
    project_id: int,
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
):
    return document_service.list_documents(session, principal, project_id)


@router.post("/{project_id}/documents/link", response_model=DocumentRead, status_code=201)
def add_link_document(
    project_id: int,
    data: DocumentLinkCreate,
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return document_service.create_link_document(session, principal, project_id, data.title, data.embed_url)


@router.post("/{project_id}/documents/upload", response_model=DocumentRead, status_code=201)
async def upload_document(
    project_id: int,
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
    storage: BlobStorage = Depends(get_blob_storage),
):
    data = await file.read()
    return document_service.upload_document(
        session, principal, storage, project_id, title, file.filename, file.content_type, data
    )


# ==================================================================
#  🧾 Invoices of a project
# ==================================================================
@router.get("/{project_id}/invoices", response_model=List[InvoiceRead])
def get_project_invoices(
    project_id: int,
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    project_service.get_project(session, principal, project_id)
    invoices = invoice_service.list_invoices(session, principal, project_id=project_id)
    return [invoice_service.to_invoice_read(i) for i in invoices]
