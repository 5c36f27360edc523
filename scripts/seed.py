# scripts/seed.py

import os
import sys
import argparse

from dotenv import load_dotenv
from sqlmodel import Session, select

# Ensure root path for relative imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# ✅ Load environment variables before settings are read
load_dotenv()

from core.database import create_db_and_tables, engine  # noqa: E402
from core.security import Principal, hash_password  # noqa: E402
from models.models import ClientContact, Project, ProjectTask, User, UserRole  # noqa: E402
from schemas.project_schema import ProjectCreate  # noqa: E402
from services.project_service import create_project  # noqa: E402


def _ensure_admin(session: Session, email: str, password: str, name: str) -> User:
    admin_user = session.exec(select(User).where(User.email == email)).first()
    if not admin_user:
        admin_user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=UserRole.ADMIN.value,
            is_active=True,
        )
        session.add(admin_user)
        session.commit()
        session.refresh(admin_user)
        print(f"✅ Added admin {email}")
    return admin_user


def seed_dev_data():
    """Seed development database with an admin, a demo client and one project."""
    print("🌱 Seeding development data...")
    create_db_and_tables()

    with Session(engine) as session:
        # -----------------------------
        # 👑 Admin User
        # -----------------------------
        admin_user = _ensure_admin(session, "admin@demo.com", "admin123", "Admin User")

        # -----------------------------
        # 👤 Demo Client + primary contact
        # -----------------------------
        client = session.exec(select(User).where(User.email == "client@demo.com")).first()
        if not client:
            client = User(
                name="Dana Client",
                business_name="Demo Bakery Co.",
                position="Owner",
                email="client@demo.com",
                password_hash=hash_password("client123"),
                role=UserRole.CLIENT.value,
                is_active=True,
            )
            session.add(client)
            session.commit()
            session.refresh(client)
            session.add(ClientContact(
                client_id=client.id,
                name=client.name,
                position=client.position,
                email=client.email,
                is_primary=True,
            ))
            session.commit()
            print("✅ Added demo client")

        # -----------------------------
        # 📁 Demo Project with default phases
        # -----------------------------
        project = session.exec(select(Project).where(Project.name == "Brand Refresh")).first()
        if not project:
            principal = Principal(user_id=admin_user.id, role=admin_user.role, email=admin_user.email)
            project = create_project(session, principal, ProjectCreate(
                name="Brand Refresh",
                client_id=client.id,
                price_cents=1_000_000,
                deposit_percent=50,
            ))
            first_phase = project.phases[0]
            for title in ("Kickoff call", "Brand questionnaire"):
                session.add(ProjectTask(project_id=project.id, phase_id=first_phase.id, title=title))
            session.commit()
            print("✅ Added demo project")

    print("🌱 Development data seeding complete.")


def seed_staging_data():
    """Seed staging database with minimal safe data."""
    print("🌱 Seeding staging data...")
    create_db_and_tables()

    with Session(engine) as session:
        _ensure_admin(session, "staging-admin@agency.example", "staging123", "Staging Admin")

    print("🌱 Staging data seeding complete.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the client portal database.")
    parser.add_argument(
        "--env",
        choices=["dev", "staging"],
        default="dev",
        help="Select environment to seed (dev or staging)",
    )
    args = parser.parse_args()

    if args.env == "dev":
        seed_dev_data()
    elif args.env == "staging":
        seed_staging_data()
