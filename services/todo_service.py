# services/todo_service.py
import logging
from typing import List, Optional

from sqlalchemy import desc
from sqlmodel import Session, select

from core.exceptions import NotFoundError, ValidationError
from core.security import Principal
from models.models import ProjectTodo, utc_now
from services.access import commit_or_raise, get_project_for

logger = logging.getLogger(__name__)


def _get_todo(session: Session, principal: Principal, todo_id: int) -> ProjectTodo:
    todo = session.get(ProjectTodo, todo_id)
    if not todo:
        raise NotFoundError("Todo not found")
    get_project_for(session, principal, todo.project_id)
    return todo


def list_todos(session: Session, principal: Principal, project_id: int) -> List[ProjectTodo]:
    get_project_for(session, principal, project_id)
    return list(session.exec(
        select(ProjectTodo)
        .where(ProjectTodo.project_id == project_id)
        .order_by(desc(ProjectTodo.created_at), desc(ProjectTodo.id))
    ).all())


def add_todo(session: Session, principal: Principal, project_id: int, text: str) -> ProjectTodo:
    get_project_for(session, principal, project_id)
    text = (text or "").strip()
    if not text:
        raise ValidationError("Todo text is required.", field="text")

    todo = ProjectTodo(project_id=project_id, text=text)
    session.add(todo)
    commit_or_raise(session, "Failed to add todo")
    session.refresh(todo)
    return todo


def toggle_todo(session: Session, principal: Principal, todo_id: int, is_done: Optional[bool] = None) -> ProjectTodo:
    todo = _get_todo(session, principal, todo_id)
    todo.is_done = (not todo.is_done) if is_done is None else is_done
    todo.completed_at = utc_now() if todo.is_done else None
    session.add(todo)
    commit_or_raise(session, "Failed to update todo")
    session.refresh(todo)
    return todo


def delete_todo(session: Session, principal: Principal, todo_id: int) -> None:
    todo = _get_todo(session, principal, todo_id)
    session.delete(todo)
    commit_or_raise(session, "Failed to delete todo")
    logger.info("🗑️ Todo %s deleted", todo_id)
