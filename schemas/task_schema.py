# task_schema.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import date, datetime


class TaskCreate(BaseModel):
    title: str = Field(..., max_length=300)


class TaskToggle(BaseModel):
    is_done: Optional[bool] = None  # None flips the current value
    note: Optional[str] = Field(default=None, max_length=2000)


class TaskDueDateUpdate(BaseModel):
    due_date: Optional[date] = None


class TaskRead(BaseModel):
    id: int
    project_id: int
    phase_id: int
    title: str
    is_done: bool
    due_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskNoteRead(BaseModel):
    id: int
    project_id: int
    task_id: int
    note: str
    created_by: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Todos
class TodoCreate(BaseModel):
    text: str = Field(..., max_length=2000)


class TodoRead(BaseModel):
    id: int
    project_id: int
    text: str
    is_done: bool
    completed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
