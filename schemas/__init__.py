from .user_schema import UserLogin, AcceptInvitation, TokenResponse, UserRead, ProfileUpdate, ProfileRead, UserRole
from .task_schema import TaskCreate, TaskToggle, TaskDueDateUpdate, TaskRead, TaskNoteRead, TodoCreate, TodoRead
from .project_schema import (
    ProjectCreate, ProjectUpdate, ProjectRead, ProjectDetail,
    PhaseRead, PhaseProgressRead, ProgressRead,
    PhaseEdit, PhaseBatchRequest, PhaseRejection, PhaseBatchResult,
)
from .document_schema import DocumentLinkCreate, DocumentUpdate, DocumentRead, DocumentPreview
from .invoice_schema import InvoiceCreate, InvoiceRead, ClientInvoiceRead
from .payment_schema import CheckoutSessionRequest, CheckoutSessionResponse, WebhookAck, WebhookEventRead
from .client_schema import (
    ClientProvisionRequest, ClientProvisionResponse, ClientUpdate,
    ContactCreate, ContactUpdate, ContactRead, ClientDetail,
    WhatsNewDoc, WhatsNewTask, WhatsNewTodo, WhatsNewItem,
    ClientDashboard, AdminDashboard,
)

__all__ = [
    # User / Auth
    "UserLogin", "AcceptInvitation", "TokenResponse", "UserRead", "ProfileUpdate", "ProfileRead", "UserRole",

    # Task / Todo
    "TaskCreate", "TaskToggle", "TaskDueDateUpdate", "TaskRead", "TaskNoteRead", "TodoCreate", "TodoRead",

    # Project
    "ProjectCreate", "ProjectUpdate", "ProjectRead", "ProjectDetail",
    "PhaseRead", "PhaseProgressRead", "ProgressRead",
    "PhaseEdit", "PhaseBatchRequest", "PhaseRejection", "PhaseBatchResult",

    # Document
    "DocumentLinkCreate", "DocumentUpdate", "DocumentRead", "DocumentPreview",

    # Invoice / Payment
    "InvoiceCreate", "InvoiceRead", "ClientInvoiceRead",
    "CheckoutSessionRequest", "CheckoutSessionResponse", "WebhookAck", "WebhookEventRead",

    # Client
    "ClientProvisionRequest", "ClientProvisionResponse", "ClientUpdate",
    "ContactCreate", "ContactUpdate", "ContactRead", "ClientDetail",
    "WhatsNewDoc", "WhatsNewTask", "WhatsNewTodo", "WhatsNewItem",
    "ClientDashboard", "AdminDashboard",
]
