"""Pytest fixtures for the client portal backend."""
import hashlib
import hmac
import os
import time
from pathlib import Path

# settings are read at import time
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["SENDGRID_API_KEY"] = ""
os.environ["MAIL_FROM"] = ""
os.environ["BACKEND_URL"] = "http://testserver"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

import models.models  # noqa: E402,F401
from core.database import get_session  # noqa: E402
from core.exceptions import UpstreamError  # noqa: E402
from core.security import Principal, create_token_for_user, hash_password  # noqa: E402
from core.storage import BlobStorage, get_blob_storage  # noqa: E402
from main import app  # noqa: E402
from models.models import Project, ProjectPhase, ProjectTask, User, UserRole  # noqa: E402
from services.email_service import get_email_service  # noqa: E402
from services.payment_service import CheckoutSession, StripeGateway, get_payment_gateway  # noqa: E402

WEBHOOK_SECRET = "whsec_test_secret"


# ------------------------------------------------------------------
# Doubles for the outside world
# ------------------------------------------------------------------
class FakeGateway(StripeGateway):
    """Real webhook verification, canned checkout sessions."""

    def __init__(self):
        super().__init__(api_key="sk_test_dummy", webhook_secret=WEBHOOK_SECRET)
        self.sessions = []

    def create_checkout_session(self, invoice_id, amount_cents, description):
        self.sessions.append((invoice_id, amount_cents, description))
        n = len(self.sessions)
        return CheckoutSession(id=f"cs_test_{n}", url=f"https://checkout.stripe.test/pay/cs_test_{n}")


class FakeMailer:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send_invitation_email(self, to_email, invitation_link, client_name="there"):
        if self.fail:
            raise UpstreamError("Failed to invite user", detail="sendgrid down")
        self.sent.append((to_email, invitation_link, client_name))


def stripe_signature(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    ts = timestamp or int(time.time())
    digest = hmac.new(secret.encode(), f"{ts}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


# ------------------------------------------------------------------
# Database & storage
# ------------------------------------------------------------------
@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    try:
        yield engine
    finally:
        SQLModel.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def storage(tmp_path: Path):
    return BlobStorage(
        root=str(tmp_path / "blobs"),
        base_url="http://testserver",
        secret_key="test-secret-key",
    )


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def mailer():
    return FakeMailer()


# ------------------------------------------------------------------
# Seed rows
# ------------------------------------------------------------------
@pytest.fixture()
def admin_user(session):
    user = User(email="admin@example.com", name="Ada Admin", role=UserRole.ADMIN.value,
                password_hash=hash_password("admin-pass"))
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture()
def client_user(session):
    user = User(
        email="owner@example.com",
        name="Dana Owner",
        business_name="Bakery Co",
        position="Owner",
        address="1 Main St",
        role=UserRole.CLIENT.value,
        password_hash=hash_password("client-pass"),
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture()
def other_client(session):
    user = User(email="other@example.com", name="Other", role=UserRole.CLIENT.value)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def principal_for(user: User) -> Principal:
    return Principal(user_id=user.id, role=user.role, email=user.email)


@pytest.fixture()
def admin(admin_user):
    return principal_for(admin_user)


@pytest.fixture()
def client_principal(client_user):
    return principal_for(client_user)


@pytest.fixture()
def project(session, client_user):
    """A priced project with two phases; the first owns one task."""
    project = Project(name="Website", client_id=client_user.id, price_cents=10000, deposit_percent=50)
    session.add(project)
    session.commit()
    session.refresh(project)

    first = ProjectPhase(project_id=project.id, title="Decode", step_order=1)
    second = ProjectPhase(project_id=project.id, title="Align", step_order=2)
    session.add(first)
    session.add(second)
    session.commit()
    session.refresh(first)
    session.add(ProjectTask(project_id=project.id, phase_id=first.id, title="Kickoff"))
    session.commit()
    session.refresh(project)
    return project


# ------------------------------------------------------------------
# HTTP client
# ------------------------------------------------------------------
@pytest.fixture()
def api(session, storage, gateway, mailer):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_blob_storage] = lambda: storage
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_email_service] = lambda: mailer
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_token_for_user(user)}"}


@pytest.fixture()
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture()
def client_headers(client_user):
    return auth_headers(client_user)
