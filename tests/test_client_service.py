from datetime import timedelta

import pytest
from sqlmodel import select

from conftest import FakeMailer, principal_for
from core.exceptions import InvalidStateError, NotFoundError, UpstreamError, ValidationError
from core.security import verify_password
from models.models import ClientContact, Invitation, Project, ProjectDocument, User, utc_now
from schemas.client_schema import ClientProvisionRequest, ContactCreate, ContactUpdate
from services import client_service, invoice_service


def provision(session, admin, mailer, **fields):
    return client_service.provision_client(session, admin, ClientProvisionRequest(**fields), mailer)


# --- provisioning ------------------------------------------------------------

def test_provision_with_temp_password(session, admin, mailer):
    user, invited = provision(
        session, admin, mailer,
        email="New@Example.com", temp_password="secret1", name="Nia", business_name="Nia Studio", phone="555",
    )
    assert invited is False
    assert mailer.sent == []
    assert user.email == "new@example.com"
    assert user.role == "client"
    assert verify_password("secret1", user.password_hash)
    assert (user.name, user.business_name, user.phone) == ("Nia", "Nia Studio", "555")

    contact = session.exec(select(ClientContact).where(ClientContact.client_id == user.id)).one()
    assert contact.is_primary and contact.email == "new@example.com" and contact.name == "Nia"


@pytest.mark.parametrize("temp_password", [None, "", "short", "     x"])
def test_provision_without_usable_password_sends_invite(session, admin, mailer, temp_password):
    user, invited = provision(session, admin, mailer, email="invitee@example.com", temp_password=temp_password)
    assert invited is True
    assert user.password_hash is None

    invitation = session.exec(select(Invitation).where(Invitation.user_id == user.id)).one()
    assert mailer.sent[0][0] == "invitee@example.com"
    assert invitation.token in mailer.sent[0][1]


def test_provision_requires_email(session, admin, mailer):
    with pytest.raises(ValidationError):
        provision(session, admin, mailer, temp_password="secret1")


def test_provision_duplicate_email_fails_identity_step(session, admin, mailer, client_user):
    with pytest.raises(UpstreamError) as exc:
        provision(session, admin, mailer, email=client_user.email.upper(), temp_password="secret1")
    assert exc.value.message == "Failed to create user"
    assert len(session.exec(select(User).where(User.email == client_user.email)).all()) == 1


@pytest.mark.parametrize("email", ["", "   "])
def test_provision_blank_email_is_missing(session, admin, mailer, email):
    with pytest.raises(ValidationError) as exc:
        provision(session, admin, mailer, email=email, temp_password="secret1")
    assert exc.value.message == "Missing email"


def test_provision_rejects_malformed_email(session, admin, mailer):
    with pytest.raises(ValidationError):
        provision(session, admin, mailer, email="not-an-email", temp_password="secret1")


def test_temp_password_is_stored_as_typed(session, admin, mailer):
    user, invited = provision(session, admin, mailer, email="padded@example.com", temp_password=" secret1 ")
    assert invited is False
    assert verify_password(" secret1 ", user.password_hash)
    assert not verify_password("secret1", user.password_hash)


def test_failed_invite_rolls_back_identity(session, admin):
    with pytest.raises(UpstreamError):
        provision(session, admin, FakeMailer(fail=True), email="ghost@example.com")
    assert session.exec(select(User).where(User.email == "ghost@example.com")).first() is None


def test_accept_invitation(session, admin, mailer):
    user, _ = provision(session, admin, mailer, email="invitee@example.com")
    token = session.exec(select(Invitation).where(Invitation.user_id == user.id)).one().token

    accepted = client_service.accept_invitation(session, token, "new-password")
    assert verify_password("new-password", accepted.password_hash)

    with pytest.raises(InvalidStateError):
        client_service.accept_invitation(session, token, "again-password")
    with pytest.raises(NotFoundError):
        client_service.accept_invitation(session, "nope", "new-password")


def test_expired_invitation(session, admin, mailer):
    user, _ = provision(session, admin, mailer, email="late@example.com")
    invitation = session.exec(select(Invitation).where(Invitation.user_id == user.id)).one()
    invitation.expires_at = utc_now() - timedelta(minutes=1)
    session.add(invitation)
    session.commit()

    with pytest.raises(InvalidStateError):
        client_service.accept_invitation(session, invitation.token, "new-password")


# --- clients & contacts ------------------------------------------------------

def test_primary_contact_is_unique(session, admin, client_user):
    first = client_service.add_contact(session, admin, client_user.id, ContactCreate(name="A", is_primary=True))
    second = client_service.add_contact(session, admin, client_user.id, ContactCreate(name="B", is_primary=True))
    third = client_service.add_contact(session, admin, client_user.id, ContactCreate(name="C"))

    contacts = client_service.list_contacts(session, admin, client_user.id)
    assert [c.id for c in contacts] == [second.id, first.id, third.id]
    assert [c.is_primary for c in contacts] == [True, False, False]

    client_service.update_contact(session, admin, client_user.id, third.id, ContactUpdate(is_primary=True))
    contacts = client_service.list_contacts(session, admin, client_user.id)
    assert [c.id for c in contacts if c.is_primary] == [third.id]


def test_client_detail(session, admin, project, client_user):
    invoice = invoice_service.create_invoice(session, admin, project.id)
    detail = client_service.get_client_detail(session, admin, client_user.id)

    assert detail.display_name == "Bakery Co"
    assert [p.id for p in detail.projects] == [project.id]
    assert [i.id for i in detail.outstanding_invoices] == [invoice.id]


def test_delete_client_with_invoices_is_refused(session, admin, project, client_user):
    invoice_service.create_invoice(session, admin, project.id)
    with pytest.raises(InvalidStateError):
        client_service.delete_client(session, admin, client_user.id)


def test_delete_client_unassigns_projects(session, admin, project, client_user):
    client_id, project_id = client_user.id, project.id
    client_service.add_contact(session, admin, client_id, ContactCreate(name="A"))
    client_service.delete_client(session, admin, client_id)

    assert session.get(User, client_id) is None
    assert session.get(Project, project_id).client_id is None
    assert session.exec(select(ClientContact).where(ClientContact.client_id == client_id)).all() == []


# --- profile -----------------------------------------------------------------

def test_avatar_upload_validation(session, client_principal, storage):
    with pytest.raises(ValidationError):
        client_service.upload_avatar(session, client_principal, storage, "face.gif", b"GIF")
    with pytest.raises(ValidationError):
        client_service.upload_avatar(
            session, client_principal, storage, "face.png", b"x" * (client_service.AVATAR_MAX_BYTES + 1)
        )


def test_avatar_replaces_previous(session, client_principal, storage):
    first = client_service.upload_avatar(session, client_principal, storage, "a.png", b"one").avatar_path
    user = client_service.upload_avatar(session, client_principal, storage, "b.JPG", b"two")

    assert not storage.exists("avatars", first)
    assert user.avatar_path.endswith(".jpg")
    profile = client_service.to_profile_read(user, storage)
    assert profile.avatar_url.startswith("http://testserver/storage/signed/")


# --- dashboards --------------------------------------------------------------

def test_whats_new_since_last_seen(session, client_principal, client_user, project, other_client):
    session.add(ProjectDocument(project_id=project.id, title="Old", embed_url="https://x.test",
                                created_at=utc_now() - timedelta(days=30)))
    session.add(ProjectDocument(project_id=project.id, title="Fresh", embed_url="https://x.test"))
    foreign = Project(name="Not mine", client_id=other_client.id)
    session.add(foreign)
    session.commit()
    session.add(ProjectDocument(project_id=foreign.id, title="Foreign", embed_url="https://x.test"))
    session.commit()

    dashboard = client_service.whats_new(session, client_principal)
    titles = [getattr(item, "title", None) for item in dashboard.whats_new if item.type == "doc"]
    assert titles == ["Fresh"]
    assert any(item.type == "task" for item in dashboard.whats_new)

    client_service.touch_last_seen(session, client_principal)
    assert client_service.whats_new(session, client_principal).whats_new == []


def test_whats_new_caps_each_list(session, client_principal, project):
    for i in range(25):
        session.add(ProjectDocument(project_id=project.id, title=f"Doc {i}", embed_url="https://x.test"))
    session.commit()

    items = client_service.whats_new(session, client_principal).whats_new
    assert len([i for i in items if i.type == "doc"]) == client_service.WHATS_NEW_LIMIT


def test_admin_dashboard(session, admin, project, other_client):
    invoice_service.create_invoice(session, admin, project.id)
    invoice_service.create_invoice(session, admin, project.id, is_deposit=True)

    summary = client_service.admin_dashboard(session, admin)
    assert summary.client_count == 2
    assert summary.project_count == 1
    assert summary.outstanding_invoice_count == 2
    assert summary.outstanding_total_cents == 15000
    assert [p.id for p in summary.recent_projects] == [project.id]
