# services/client_service.py
import logging
import uuid
from datetime import datetime, timedelta
from pathlib import PurePosixPath
from typing import List, Optional, Tuple

from pydantic import validate_email
from sqlalchemy import desc, func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from core.config import settings
from core.exceptions import (
    AppError,
    InvalidStateError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from core.security import Principal, generate_invitation_token, hash_password
from core.storage import BlobStorage
from models.models import (
    ClientContact,
    Invitation,
    Invoice,
    Project,
    ProjectDocument,
    ProjectTask,
    ProjectTodo,
    User,
    UserRole,
    utc_now,
)
from schemas.client_schema import (
    AdminDashboard,
    ClientDashboard,
    ClientDetail,
    ClientProvisionRequest,
    ClientUpdate,
    ContactCreate,
    ContactRead,
    ContactUpdate,
    WhatsNewDoc,
    WhatsNewTask,
    WhatsNewTodo,
)
from schemas.user_schema import ProfileRead, ProfileUpdate, UserRead
from services.access import commit_or_raise, require_admin
from services.email_service import EmailService
from services.invoice_service import OUTSTANDING_STATUSES, outstanding_invoices, to_invoice_read
from services.project_service import list_projects, to_project_read

logger = logging.getLogger(__name__)

WHATS_NEW_LIMIT = 20
RECENT_PROJECTS_LIMIT = 5
AVATAR_EXTENSIONS = {".jpg", ".jpeg", ".png"}
AVATAR_MAX_BYTES = 5 * 1024 * 1024

PROFILE_FIELDS = ("name", "business_name", "position", "phone", "address")


def display_name(user: User) -> str:
    return user.business_name or user.name or user.email


# ================================================================
# 🆕 Provisioning
# ================================================================
def _commit_step(session: Session, failure_message: str) -> None:
    """Provisioning steps each fail with their own 500."""
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("❌ %s: %s", failure_message, e)
        raise UpstreamError(failure_message, detail=str(e))


def _undo_identity(session: Session, user_id: int) -> None:
    """Compensating action when a later provisioning step fails."""
    try:
        user = session.get(User, user_id)
        if user:
            session.delete(user)
            session.commit()
            logger.info("↩️ Rolled back identity %s after failed provisioning", user_id)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("❌ Could not roll back identity %s; manual cleanup needed", user_id)


def provision_client(
    session: Session,
    principal: Principal,
    data: ClientProvisionRequest,
    mailer: EmailService,
) -> Tuple[User, bool]:
    """
    Create a client account. With a usable temporary password the identity is
    active right away; otherwise an invitation email lets the client choose a
    password. Returns the user and whether an invitation was sent.
    """
    require_admin(principal)
    raw_email = (data.email or "").strip()
    if not raw_email:
        raise ValidationError("Missing email", field="email")
    try:
        _, email = validate_email(raw_email)
    except ValueError as e:
        raise ValidationError("Invalid email", field="email", detail=str(e))
    email = email.lower()

    if session.exec(select(User).where(User.email == email)).first():
        raise UpstreamError("Failed to create user", detail=f"A user with email {email} already exists.")

    # only the length check ignores surrounding whitespace; the password is kept as typed
    temp_password = data.temp_password or ""
    invited = len(temp_password.strip()) < settings.MIN_TEMP_PASSWORD_LENGTH

    # 1. identity
    user = User(
        email=email,
        role=UserRole.CLIENT.value,
        password_hash=None if invited else hash_password(temp_password),
    )
    session.add(user)
    _commit_step(session, "Failed to create user")
    session.refresh(user)
    user_id = user.id

    try:
        if invited:
            invitation = Invitation(
                email=email,
                token=generate_invitation_token(),
                user_id=user_id,
                expires_at=utc_now() + timedelta(days=settings.INVITATION_VALID_DAYS),
            )
            session.add(invitation)
            _commit_step(session, "Failed to invite user")
            link = f"{settings.FRONTEND_URL}/accept-invitation?token={invitation.token}"
            mailer.send_invitation_email(email, link, data.name or data.business_name or "there")

        # 2. profile
        for field in PROFILE_FIELDS:
            value = getattr(data, field)
            if value is not None:
                setattr(user, field, value.strip() or None)
        user.role = UserRole.CLIENT.value
        user.updated_at = utc_now()
        session.add(user)
        _commit_step(session, "Failed to write profile")

        # 3. primary contact
        session.add(ClientContact(
            client_id=user_id,
            name=user.name,
            position=user.position,
            email=email,
            phone=user.phone,
            is_primary=True,
        ))
        _commit_step(session, "Failed to create contact")
    except AppError:
        _undo_identity(session, user_id)
        raise

    session.refresh(user)
    logger.info("✅ Client %s provisioned (%s)", user_id, "invited" if invited else "temp password")
    return user, invited


def accept_invitation(session: Session, token: str, password: str) -> User:
    invitation = session.exec(select(Invitation).where(Invitation.token == token)).first()
    if not invitation:
        raise NotFoundError("Invitation not found")
    if invitation.accepted:
        raise InvalidStateError("Invitation has already been used.")
    if invitation.expires_at < utc_now():
        raise InvalidStateError("Invitation has expired.")
    if len(password.strip()) < settings.MIN_TEMP_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {settings.MIN_TEMP_PASSWORD_LENGTH} characters.", field="password"
        )

    user = session.get(User, invitation.user_id)
    if not user:
        raise NotFoundError("User not found")

    user.password_hash = hash_password(password)
    user.updated_at = utc_now()
    invitation.accepted = True
    invitation.accepted_at = utc_now()
    session.add(user)
    session.add(invitation)
    commit_or_raise(session, "Failed to accept invitation")
    session.refresh(user)
    logger.info("✅ Invitation accepted by user %s", user.id)
    return user


# ================================================================
# 👥 Clients
# ================================================================
def _get_client(session: Session, client_id: int) -> User:
    client = session.get(User, client_id)
    if not client or client.role != UserRole.CLIENT.value:
        raise NotFoundError("Client not found")
    return client


def list_clients(session: Session, principal: Principal, search: Optional[str] = None) -> List[User]:
    require_admin(principal)
    query = select(User).where(User.role == UserRole.CLIENT.value)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.where(
            func.lower(User.email).like(pattern)
            | func.lower(func.coalesce(User.name, "")).like(pattern)
            | func.lower(func.coalesce(User.business_name, "")).like(pattern)
        )
    return list(session.exec(query.order_by(User.business_name, User.name, User.id)).all())


def list_contacts(session: Session, principal: Principal, client_id: int) -> List[ClientContact]:
    require_admin(principal)
    _get_client(session, client_id)
    return list(session.exec(
        select(ClientContact)
        .where(ClientContact.client_id == client_id)
        .order_by(desc(ClientContact.is_primary), ClientContact.created_at, ClientContact.id)
    ).all())


def get_client_detail(session: Session, principal: Principal, client_id: int) -> ClientDetail:
    require_admin(principal)
    client = _get_client(session, client_id)
    contacts = [ContactRead.model_validate(c) for c in list_contacts(session, principal, client_id)]
    return ClientDetail(
        client=UserRead.model_validate(client),
        display_name=display_name(client),
        primary_contact=next((c for c in contacts if c.is_primary), None),
        contacts=contacts,
        projects=[to_project_read(p) for p in list_projects(session, principal, client_id=client_id)],
        outstanding_invoices=[to_invoice_read(i) for i in outstanding_invoices(session, client_id)],
    )


def update_client(session: Session, principal: Principal, client_id: int, data: ClientUpdate) -> User:
    require_admin(principal)
    client = _get_client(session, client_id)

    update_data = data.model_dump(exclude_unset=True)
    if "email" in update_data:
        if not update_data["email"]:
            raise ValidationError("Email cannot be empty.", field="email")
        update_data["email"] = str(update_data["email"]).strip().lower()
        taken = session.exec(
            select(User).where(User.email == update_data["email"], User.id != client_id)
        ).first()
        if taken:
            raise ValidationError("A user with this email already exists.", field="email")

    for key, value in update_data.items():
        setattr(client, key, value)
    client.updated_at = utc_now()

    session.add(client)
    commit_or_raise(session, "Failed to update client")
    session.refresh(client)
    return client


def delete_client(session: Session, principal: Principal, client_id: int) -> None:
    """Contacts and invitations go with the client; projects are left unassigned."""
    require_admin(principal)
    client = _get_client(session, client_id)
    if session.exec(select(Invoice.id).where(Invoice.client_id == client_id)).first() is not None:
        raise InvalidStateError("Client has invoices. Delete them before deleting the client.")

    for project in list(client.projects):
        project.client_id = None
        session.add(project)
    session.delete(client)
    commit_or_raise(session, "Failed to delete client")
    logger.info("🗑️ Client %s deleted", client_id)


# ================================================================
# 📇 Contacts
# ================================================================
def _clear_primary(session: Session, client_id: int, keep_id: Optional[int] = None) -> None:
    others = session.exec(
        select(ClientContact).where(ClientContact.client_id == client_id, ClientContact.is_primary == True)  # noqa: E712
    ).all()
    for contact in others:
        if contact.id != keep_id:
            contact.is_primary = False
            session.add(contact)


def _get_contact(session: Session, client_id: int, contact_id: int) -> ClientContact:
    contact = session.get(ClientContact, contact_id)
    if not contact or contact.client_id != client_id:
        raise NotFoundError("Contact not found")
    return contact


def add_contact(session: Session, principal: Principal, client_id: int, data: ContactCreate) -> ClientContact:
    require_admin(principal)
    _get_client(session, client_id)
    if data.is_primary:
        _clear_primary(session, client_id)

    contact = ClientContact(client_id=client_id, **data.model_dump())
    session.add(contact)
    commit_or_raise(session, "Failed to add contact")
    session.refresh(contact)
    return contact


def update_contact(
    session: Session, principal: Principal, client_id: int, contact_id: int, data: ContactUpdate
) -> ClientContact:
    require_admin(principal)
    contact = _get_contact(session, client_id, contact_id)
    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("is_primary"):
        _clear_primary(session, client_id, keep_id=contact.id)

    for key, value in update_data.items():
        if key == "is_primary" and value is None:
            continue
        setattr(contact, key, value)

    session.add(contact)
    commit_or_raise(session, "Failed to update contact")
    session.refresh(contact)
    return contact


def delete_contact(session: Session, principal: Principal, client_id: int, contact_id: int) -> None:
    require_admin(principal)
    contact = _get_contact(session, client_id, contact_id)
    session.delete(contact)
    commit_or_raise(session, "Failed to delete contact")


# ================================================================
# 🙋 Profile (self-service)
# ================================================================
def _get_self(session: Session, principal: Principal) -> User:
    user = session.get(User, principal.user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def to_profile_read(user: User, storage: BlobStorage) -> ProfileRead:
    avatar_url = None
    if user.avatar_path and storage.exists(settings.AVATARS_BUCKET, user.avatar_path):
        avatar_url = storage.create_signed_url(settings.AVATARS_BUCKET, user.avatar_path)
    return ProfileRead(**UserRead.model_validate(user).model_dump(), avatar_url=avatar_url)


def get_profile(session: Session, principal: Principal) -> User:
    return _get_self(session, principal)


def update_profile(session: Session, principal: Principal, data: ProfileUpdate) -> User:
    user = _get_self(session, principal)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(user, key, value)
    user.updated_at = utc_now()
    session.add(user)
    commit_or_raise(session, "Failed to update profile")
    session.refresh(user)
    return user


def upload_avatar(
    session: Session,
    principal: Principal,
    storage: BlobStorage,
    filename: Optional[str],
    data: bytes,
) -> User:
    suffix = PurePosixPath(filename or "").suffix.lower()
    if suffix not in AVATAR_EXTENSIONS:
        raise ValidationError("Avatar must be a .jpg, .jpeg or .png image.", field="file")
    if not data:
        raise ValidationError("Uploaded file is empty.", field="file")
    if len(data) > AVATAR_MAX_BYTES:
        raise ValidationError("Avatar must be 5 MB or smaller.", field="file")

    user = _get_self(session, principal)
    previous = user.avatar_path
    path = f"{user.id}/avatar-{uuid.uuid4().hex}{suffix}"
    storage.upload(settings.AVATARS_BUCKET, path, data)

    user.avatar_path = path
    user.updated_at = utc_now()
    session.add(user)
    try:
        commit_or_raise(session, "Failed to save avatar")
    except (ValidationError, UpstreamError):
        storage.remove(settings.AVATARS_BUCKET, path)
        raise

    if previous:
        storage.remove(settings.AVATARS_BUCKET, previous)
    session.refresh(user)
    return user


# ================================================================
# 📰 Dashboards
# ================================================================
def whats_new(session: Session, principal: Principal) -> ClientDashboard:
    """Activity on the caller's projects since their last visit, newest first."""
    user = _get_self(session, principal)
    since: datetime = user.last_seen_at or (utc_now() - timedelta(days=settings.WHATS_NEW_FALLBACK_DAYS))

    projects = list_projects(session, principal)
    project_ids = [p.id for p in projects]
    items = []
    if project_ids:
        docs = session.exec(
            select(ProjectDocument)
            .where(ProjectDocument.project_id.in_(project_ids), ProjectDocument.created_at >= since)
            .order_by(desc(ProjectDocument.created_at))
            .limit(WHATS_NEW_LIMIT)
        ).all()
        tasks = session.exec(
            select(ProjectTask)
            .where(ProjectTask.project_id.in_(project_ids), ProjectTask.updated_at >= since)
            .order_by(desc(ProjectTask.updated_at))
            .limit(WHATS_NEW_LIMIT)
        ).all()
        todos = session.exec(
            select(ProjectTodo)
            .where(ProjectTodo.project_id.in_(project_ids), ProjectTodo.created_at >= since)
            .order_by(desc(ProjectTodo.created_at))
            .limit(WHATS_NEW_LIMIT)
        ).all()

        items.extend(WhatsNewDoc(project_id=d.project_id, title=d.title, ts=d.created_at, doc_id=d.id) for d in docs)
        items.extend(WhatsNewTask(project_id=t.project_id, title=t.title, ts=t.updated_at, task_id=t.id) for t in tasks)
        items.extend(WhatsNewTodo(project_id=t.project_id, text=t.text, ts=t.created_at, todo_id=t.id) for t in todos)
        items.sort(key=lambda item: item.ts, reverse=True)

    return ClientDashboard(since=since, projects=[to_project_read(p) for p in projects], whats_new=items)


def touch_last_seen(session: Session, principal: Principal) -> User:
    user = _get_self(session, principal)
    user.last_seen_at = utc_now()
    session.add(user)
    commit_or_raise(session, "Failed to update last seen")
    session.refresh(user)
    return user


def admin_dashboard(session: Session, principal: Principal) -> AdminDashboard:
    require_admin(principal)
    client_count = session.exec(
        select(func.count()).select_from(User).where(User.role == UserRole.CLIENT.value)
    ).one()
    project_count = session.exec(select(func.count()).select_from(Project)).one()
    outstanding_count, outstanding_total = session.exec(
        select(func.count(Invoice.id), func.coalesce(func.sum(Invoice.amount), 0))
        .where(Invoice.status.in_(OUTSTANDING_STATUSES))
    ).one()
    recent = session.exec(
        select(Project).order_by(desc(Project.created_at), desc(Project.id)).limit(RECENT_PROJECTS_LIMIT)
    ).all()

    return AdminDashboard(
        client_count=client_count,
        project_count=project_count,
        outstanding_invoice_count=outstanding_count,
        outstanding_total_cents=outstanding_total,
        recent_projects=[to_project_read(p) for p in recent],
    )
