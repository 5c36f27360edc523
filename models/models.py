# models/models.py
from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional

from sqlalchemy import CheckConstraint, Column, DateTime, Text
from sqlalchemy.types import TypeDecorator
from sqlmodel import Field, Relationship, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC in and out. SQLite drops the offset, so reads are re-tagged as UTC."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


# ============================================================
# ENUMS
# ============================================================
class UserRole(str, Enum):
    ADMIN = "admin"
    CLIENT = "client"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"


class ClientInvoiceStatus(str, Enum):
    """Gateway-native vocabulary shown on the client surface."""

    DRAFT = "draft"
    OPEN = "open"
    PAID = "paid"
    VOID = "void"
    UNCOLLECTIBLE = "uncollectible"


# ============================================================
# USER / CLIENT PROFILE (shares its id with the auth identity)
# ============================================================
class User(SQLModel, table=True):
    __tablename__ = "user"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True, max_length=255, nullable=False)
    password_hash: Optional[str] = Field(default=None)
    role: str = Field(default=UserRole.CLIENT.value, max_length=20, index=True)
    is_active: bool = Field(default=True)

    name: Optional[str] = Field(default=None, max_length=150)
    business_name: Optional[str] = Field(default=None, max_length=200)
    position: Optional[str] = Field(default=None, max_length=150)
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=500)
    avatar_path: Optional[str] = Field(default=None, max_length=500)

    last_seen_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)

    contacts: List["ClientContact"] = Relationship(
        back_populates="client",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    projects: List["Project"] = Relationship(back_populates="client")
    invoices: List["Invoice"] = Relationship(back_populates="client")
    invitations: List["Invitation"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


# ============================================================
# CLIENT CONTACTS
# ============================================================
class ClientContact(SQLModel, table=True):
    __tablename__ = "client_contact"

    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: int = Field(foreign_key="user.id", index=True, nullable=False)
    name: Optional[str] = Field(default=None, max_length=150)
    position: Optional[str] = Field(default=None, max_length=150)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    is_primary: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)

    client: Optional[User] = Relationship(back_populates="contacts")


# ============================================================
# INVITATION (password-less provisioning)
# ============================================================
class Invitation(SQLModel, table=True):
    __tablename__ = "invitation"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(max_length=255, index=True, nullable=False)
    token: str = Field(max_length=255, unique=True, index=True, nullable=False)
    user_id: int = Field(foreign_key="user.id", index=True)
    expires_at: datetime = Field(sa_type=UTCDateTime)
    accepted: bool = Field(default=False)
    accepted_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)

    user: Optional[User] = Relationship(back_populates="invitations")


# ============================================================
# PROJECT
# ============================================================
class Project(SQLModel, table=True):
    __tablename__ = "project"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=200)
    client_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    brief_content: Optional[str] = Field(default=None, sa_column=Column(Text))
    price_cents: Optional[int] = Field(default=None, ge=0)
    deposit_percent: Optional[int] = Field(default=None, ge=0, le=100)
    last_viewed_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)

    client: Optional[User] = Relationship(back_populates="projects")
    phases: List["ProjectPhase"] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "ProjectPhase.step_order"},
    )
    tasks: List["ProjectTask"] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    todos: List["ProjectTodo"] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    documents: List["ProjectDocument"] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    invoices: List["Invoice"] = Relationship(back_populates="project")


# ============================================================
# PHASE ("step")
# ============================================================
class ProjectPhase(SQLModel, table=True):
    __tablename__ = "project_step"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="project.id", index=True, nullable=False)
    title: str = Field(max_length=200)
    step_order: int = Field(default=1, index=True)

    project: Optional[Project] = Relationship(back_populates="phases")
    # phases that still own tasks are never deleted, so nothing to cascade or nullify
    tasks: List["ProjectTask"] = Relationship(
        back_populates="phase",
        sa_relationship_kwargs={"passive_deletes": "all"},
    )


# ============================================================
# TASK (belongs to a phase)
# ============================================================
class ProjectTask(SQLModel, table=True):
    __tablename__ = "project_step_task"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="project.id", index=True, nullable=False)
    phase_id: int = Field(foreign_key="project_step.id", index=True, nullable=False)
    title: str = Field(max_length=300)
    is_done: bool = Field(default=False)
    due_date: Optional[date] = None
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)

    project: Optional[Project] = Relationship(back_populates="tasks")
    phase: Optional[ProjectPhase] = Relationship(back_populates="tasks")
    notes: List["TaskNote"] = Relationship(
        back_populates="task",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class TaskNote(SQLModel, table=True):
    """Append-only completion note. Rows are never edited."""

    __tablename__ = "project_task_note"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="project.id", index=True, nullable=False)
    task_id: int = Field(foreign_key="project_step_task.id", index=True, nullable=False)
    note: str = Field(max_length=2000)
    created_by: str = Field(max_length=20)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)

    task: Optional[ProjectTask] = Relationship(back_populates="notes")


# ============================================================
# TODO (client-authored note, independent of phases)
# ============================================================
class ProjectTodo(SQLModel, table=True):
    __tablename__ = "project_todo"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="project.id", index=True, nullable=False)
    text: str = Field(max_length=2000)
    is_done: bool = Field(default=False)
    completed_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)

    project: Optional[Project] = Relationship(back_populates="todos")


# ============================================================
# DOCUMENT (link XOR upload)
# ============================================================
class ProjectDocument(SQLModel, table=True):
    __tablename__ = "project_document"
    __table_args__ = (
        CheckConstraint(
            "(embed_url IS NULL) <> (storage_path IS NULL)",
            name="ck_document_link_xor_upload",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="project.id", index=True, nullable=False)
    title: str = Field(max_length=300)
    embed_url: Optional[str] = Field(default=None, max_length=2000)
    storage_path: Optional[str] = Field(default=None, max_length=1000)
    file_type: Optional[str] = Field(default=None, max_length=150)
    size_bytes: Optional[int] = None
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)

    project: Optional[Project] = Relationship(back_populates="documents")


# ============================================================
# INVOICE
# ============================================================
class Invoice(SQLModel, table=True):
    __tablename__ = "invoice"

    id: Optional[int] = Field(default=None, primary_key=True)
    invoice_number: Optional[str] = Field(default=None, unique=True, index=True, max_length=50)
    project_id: Optional[int] = Field(default=None, foreign_key="project.id", index=True)
    client_id: int = Field(foreign_key="user.id", index=True, nullable=False)

    amount: int = Field(gt=0, description="Minor currency units (cents)")
    status: str = Field(default=InvoiceStatus.DRAFT.value, max_length=20, index=True)

    # creation-time snapshots, immutable afterwards
    is_deposit: bool = Field(default=False)
    project_total_cents: Optional[int] = None
    deposit_percent_used: Optional[int] = None
    bill_to_name: Optional[str] = Field(default=None, max_length=200)
    bill_to_email: Optional[str] = Field(default=None, max_length=255)
    bill_to_position: Optional[str] = Field(default=None, max_length=150)
    bill_to_address: Optional[str] = Field(default=None, max_length=500)

    stripe_checkout_session_id: Optional[str] = Field(default=None, max_length=255, index=True)
    checkout_url: Optional[str] = Field(default=None, max_length=2000)
    stripe_payment_intent_id: Optional[str] = Field(default=None, max_length=255)
    paid_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)

    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)

    project: Optional[Project] = Relationship(back_populates="invoices")
    client: Optional[User] = Relationship(back_populates="invoices")


# ============================================================
# WEBHOOK EVENT LOG
# ============================================================
class WebhookEvent(SQLModel, table=True):
    __tablename__ = "webhook_event"

    id: Optional[int] = Field(default=None, primary_key=True)
    stripe_event_id: str = Field(unique=True, index=True, max_length=255)
    event_type: str = Field(max_length=100, index=True)
    payload: str = Field(sa_column=Column(Text, nullable=False))
    processed: bool = Field(default=False)
    processing_error: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
