from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlmodel import Session

from core.database import get_session
from core.security import Principal, get_current_principal
from schemas.task_schema import TodoRead
from services import todo_service

router = APIRouter(tags=["Todos"])


@router.patch("/{todo_id}/toggle", response_model=TodoRead)
def toggle_todo(
    todo_id: int,
    is_done: Optional[bool] = Body(None, embed=True),
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
):
    return todo_service.toggle_todo(session, principal, todo_id, is_done)


@router.delete("/{todo_id}", status_code=204)
def delete_todo(
    todo_id: int,
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
):
    todo_service.delete_todo(session, principal, todo_id)
