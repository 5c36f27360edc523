from typing import List

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from core.database import get_session
from core.security import Principal, get_current_principal, require_admin
from schemas.task_schema import TaskDueDateUpdate, TaskNoteRead, TaskRead, TaskToggle
from services import task_service
from services.access import require_confirmation

router = APIRouter(tags=["Tasks"])


# ==================================================================
#  ✅ Toggle done (admin or owning client)
# ==================================================================
@router.patch("/{task_id}/toggle", response_model=TaskRead)
def toggle_task(
    task_id: int,
    data: TaskToggle,
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
):
    """Returns the stored row; callers replace their optimistic copy with it"""
    return task_service.toggle_task(session, principal, task_id, data.is_done, data.note)


@router.patch("/{task_id}/due-date", response_model=TaskRead)
def set_due_date(
    task_id: int,
    data: TaskDueDateUpdate,
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return task_service.set_due_date(session, principal, task_id, data.due_date)


@router.get("/{task_id}/notes", response_model=List[TaskNoteRead])
def get_task_notes(
    task_id: int,
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
):
    return task_service.list_notes(session, principal, task_id)


@router.delete("/{task_id}", status_code=204)
def delete_task(
    task_id: int,
    confirm: str = Query(..., description="Type DELETE to confirm"),
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    require_confirmation(confirm)
    task_service.delete_task(session, principal, task_id)
