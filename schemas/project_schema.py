# project_schema.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import datetime

from schemas.task_schema import TaskRead


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    client_id: Optional[int] = None
    price_cents: Optional[int] = Field(default=None, ge=0)
    deposit_percent: Optional[int] = Field(default=None, ge=0, le=100)
    brief_content: Optional[str] = None
    # None seeds the default phase list; [] creates a project without phases
    phase_titles: Optional[List[str]] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    client_id: Optional[int] = None
    price_cents: Optional[int] = Field(default=None, ge=0)
    deposit_percent: Optional[int] = Field(default=None, ge=0, le=100)
    brief_content: Optional[str] = None


class ProjectRead(BaseModel):
    id: int
    name: str
    client_id: Optional[int] = None
    client_name: Optional[str] = None
    price_cents: Optional[int] = None
    deposit_percent: Optional[int] = None
    last_viewed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------
# Phases & progress
# ---------------------------
class PhaseRead(BaseModel):
    id: int
    project_id: int
    title: str
    step_order: int
    done: int = 0
    total: int = 0
    percent: int = 0
    tasks: List[TaskRead] = Field(default_factory=list)


class PhaseProgressRead(BaseModel):
    phase_id: int
    title: str
    step_order: int
    done: int
    total: int
    percent: int

    model_config = ConfigDict(from_attributes=True)


class ProgressRead(BaseModel):
    done: int
    total: int
    percent: int
    phases: List[PhaseProgressRead] = Field(default_factory=list)
    current_phase_id: Optional[int] = None
    current_phase_title: Optional[str] = None
    current_phase_done: int = 0
    current_phase_total: int = 0

    model_config = ConfigDict(from_attributes=True)


class ProjectDetail(ProjectRead):
    brief_content: Optional[str] = None
    phases: List[PhaseRead] = Field(default_factory=list)
    progress: ProgressRead


class PhaseEdit(BaseModel):
    """One row of the phase settings view. No id means a new phase."""

    id: Optional[int] = None
    title: str = Field(..., min_length=1, max_length=200)
    step_order: int
    delete: bool = False


class PhaseBatchRequest(BaseModel):
    phases: List[PhaseEdit]


class PhaseRejection(BaseModel):
    phase_id: int
    title: str
    reason: str


class PhaseBatchResult(BaseModel):
    phases: List[PhaseRead] = Field(default_factory=list)
    rejected: List[PhaseRejection] = Field(default_factory=list)
