# client_schema.py
from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import List, Literal, Optional, Union
from datetime import datetime

from schemas.invoice_schema import InvoiceRead
from schemas.project_schema import ProjectRead
from schemas.user_schema import UserRead


# ---------------------------
# Provisioning
# ---------------------------
class ClientProvisionRequest(BaseModel):
    # plain str so a missing or blank email is reported as a 400, not a 422
    email: Optional[str] = None
    temp_password: Optional[str] = Field(default=None, alias="tempPassword")
    name: Optional[str] = Field(default=None, max_length=150)
    business_name: Optional[str] = Field(default=None, max_length=200)
    position: Optional[str] = Field(default=None, max_length=150)
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=500)

    model_config = ConfigDict(populate_by_name=True)


class ClientProvisionResponse(BaseModel):
    ok: bool = True
    user_id: int
    invited: bool = False


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=150)
    business_name: Optional[str] = Field(default=None, max_length=200)
    position: Optional[str] = Field(default=None, max_length=150)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=500)


# ---------------------------
# Contacts
# ---------------------------
class ContactCreate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=150)
    position: Optional[str] = Field(default=None, max_length=150)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    is_primary: bool = False


class ContactUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=150)
    position: Optional[str] = Field(default=None, max_length=150)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    is_primary: Optional[bool] = None


class ContactRead(BaseModel):
    id: int
    client_id: int
    name: Optional[str] = None
    position: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    is_primary: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClientDetail(BaseModel):
    client: UserRead
    display_name: str
    primary_contact: Optional[ContactRead] = None
    contacts: List[ContactRead] = Field(default_factory=list)
    projects: List[ProjectRead] = Field(default_factory=list)
    outstanding_invoices: List[InvoiceRead] = Field(default_factory=list)


# ---------------------------
# Dashboards
# ---------------------------
class WhatsNewDoc(BaseModel):
    type: Literal["doc"] = "doc"
    project_id: int
    title: str
    ts: datetime
    doc_id: int


class WhatsNewTask(BaseModel):
    type: Literal["task"] = "task"
    project_id: int
    title: str
    ts: datetime
    task_id: int


class WhatsNewTodo(BaseModel):
    type: Literal["todo"] = "todo"
    project_id: int
    text: str
    ts: datetime
    todo_id: int


WhatsNewItem = Union[WhatsNewDoc, WhatsNewTask, WhatsNewTodo]


class ClientDashboard(BaseModel):
    since: datetime
    projects: List[ProjectRead] = Field(default_factory=list)
    whats_new: List[WhatsNewItem] = Field(default_factory=list)


class AdminDashboard(BaseModel):
    client_count: int
    project_count: int
    outstanding_invoice_count: int
    outstanding_total_cents: int
    recent_projects: List[ProjectRead] = Field(default_factory=list)
