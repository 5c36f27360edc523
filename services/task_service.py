# services/task_service.py
import logging
from datetime import date
from typing import List, Optional

from sqlmodel import Session, select

from core.exceptions import NotFoundError, ValidationError
from core.security import Principal
from models.models import ProjectPhase, ProjectTask, TaskNote, utc_now
from services.access import commit_or_raise, get_project_for, require_admin

logger = logging.getLogger(__name__)


def _get_task(session: Session, principal: Principal, task_id: int) -> ProjectTask:
    task = session.get(ProjectTask, task_id)
    if not task:
        raise NotFoundError("Task not found")
    get_project_for(session, principal, task.project_id)
    return task


def add_task(session: Session, principal: Principal, project_id: int, phase_id: int, title: str) -> ProjectTask:
    require_admin(principal)
    get_project_for(session, principal, project_id)

    title = (title or "").strip()
    if not title:
        raise ValidationError("Task title is required.", field="title")

    phase = session.get(ProjectPhase, phase_id)
    if not phase or phase.project_id != project_id:
        raise NotFoundError("Phase not found in this project")

    task = ProjectTask(project_id=project_id, phase_id=phase_id, title=title)
    session.add(task)
    commit_or_raise(session, "Failed to add task")
    session.refresh(task)
    logger.info("✅ Task %s added to phase %s", task.id, phase_id)
    return task


def toggle_task(
    session: Session,
    principal: Principal,
    task_id: int,
    is_done: Optional[bool] = None,
    note: Optional[str] = None,
) -> ProjectTask:
    """
    Set (or flip, when `is_done` is None) a task's done flag.

    A completion note is stored only when a client marks an undone task as
    done and supplies non-blank text. Admin toggles and un-completions never
    record a note. The task update and the note share one commit.
    """
    task = _get_task(session, principal, task_id)
    was_done = task.is_done
    task.is_done = (not was_done) if is_done is None else is_done
    task.updated_at = utc_now()
    session.add(task)

    text = (note or "").strip()
    if principal.is_client and not was_done and task.is_done and text:
        session.add(TaskNote(
            project_id=task.project_id,
            task_id=task.id,
            note=text,
            created_by=principal.role,
        ))

    commit_or_raise(session, "Failed to update task")
    session.refresh(task)
    return task


def set_due_date(session: Session, principal: Principal, task_id: int, due_date: Optional[date]) -> ProjectTask:
    require_admin(principal)
    task = _get_task(session, principal, task_id)
    task.due_date = due_date
    task.updated_at = utc_now()
    session.add(task)
    commit_or_raise(session, "Failed to update due date")
    session.refresh(task)
    return task


def delete_task(session: Session, principal: Principal, task_id: int) -> None:
    require_admin(principal)
    task = _get_task(session, principal, task_id)
    session.delete(task)
    commit_or_raise(session, "Failed to delete task")
    logger.info("🗑️ Task %s deleted", task_id)


def list_notes(session: Session, principal: Principal, task_id: int) -> List[TaskNote]:
    task = _get_task(session, principal, task_id)
    return list(session.exec(
        select(TaskNote).where(TaskNote.task_id == task.id).order_by(TaskNote.created_at, TaskNote.id)
    ).all())
