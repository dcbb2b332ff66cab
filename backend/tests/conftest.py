"""
ProjectRepo Backend - Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the whole suite.
How:   Each test gets a fresh in-memory SQLite database (aiosqlite), a
       temporary storage root, a recording mailer and services wired to
       them. API tests use an httpx AsyncClient over ASGITransport with the
       app's dependencies overridden to point at the same fixtures.

Fixture Hierarchy (all function-scoped):
    db_engine ── session_factory ── db_session
                                 └─ test_client (dependency overrides)
    storage_root ── file_service ── project_service
    mailer (RecordingMailer) ─────┘
    users, classlist_entry, make_project, auth_headers
"""

import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

# Settings are read at import time: configure them before importing projectrepo
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="projectrepo_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SMTP_HOST"] = ""
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["AUTH_RATE_LIMIT_REQUESTS"] = "10000"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from projectrepo.database import Base, get_db_session
from projectrepo.models.enums import ProjectStatus, UserRole
from projectrepo.models.notification import Notification  # noqa: F401
from projectrepo.models.project import Comment, Project  # noqa: F401
from projectrepo.models.user import ClasslistEntry, PendingRegistration, User  # noqa: F401
from projectrepo.security import RequestContext, create_access_token, get_password_hash
from projectrepo.services.file_service import FileService
from projectrepo.services.mailer import Mailer
from projectrepo.services.notification_service import NotificationService
from projectrepo.services.project_service import ProjectService
from projectrepo.services.registration_service import RegistrationService

PDF_BYTES = (
    b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n"
    b"1 0 obj\n<< /Type /Catalog /Pages 2 0 R >>\nendobj\n"
    b"2 0 obj\n<< /Type /Pages /Kids [] /Count 0 >>\nendobj\n"
    b"trailer\n<< /Root 1 0 R >>\n%%EOF\n"
)

DEFAULT_PASSWORD = "secret123"


# ══════════════════════════════════════════════════════════════════════════
# Test doubles
# ══════════════════════════════════════════════════════════════════════════


@dataclass
class SentEmail:
    to: str
    subject: str
    html: str


class RecordingMailer(Mailer):
    """Keeps every message instead of sending it. `fail=True` simulates a transport outage."""

    transport_name = "recording"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[SentEmail] = []

    async def send(self, to: str, subject: str, html: str) -> bool:
        self.sent.append(SentEmail(to=to, subject=subject, html=html))
        return not self.fail

    def to(self, address: str) -> List[SentEmail]:
        return [m for m in self.sent if m.to == address]


@dataclass
class Users:
    student: User
    other_student: User
    supervisor: User
    other_supervisor: User
    admin: User
    all: List[User] = field(default_factory=list)


def context_for(user: User) -> RequestContext:
    return RequestContext(id=user.id, role=UserRole(user.role), name=user.name, matricule=user.matricule)


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Collaborators
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def file_service(temp_storage):
    return FileService(storage_root=temp_storage)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def project_service(mailer, file_service):
    return ProjectService(mailer=mailer, files=file_service, notifications=NotificationService())


@pytest.fixture
def registration_service(mailer):
    return RegistrationService(mailer=mailer)


@pytest.fixture
def pdf_bytes():
    return PDF_BYTES


# ══════════════════════════════════════════════════════════════════════════
# Seed data
# ══════════════════════════════════════════════════════════════════════════


@pytest_asyncio.fixture
async def users(db_session):
    password_hash = get_password_hash(DEFAULT_PASSWORD)

    def make(matricule, name, role, email):
        return User(matricule=matricule, name=name, role=role.value, email=email, password_hash=password_hash)

    seeded = Users(
        student=make("CE/2020/010", "Ada Student", UserRole.STUDENT, "ada@uni.edu"),
        other_student=make("CE/2020/011", "Ben Student", UserRole.STUDENT, "ben@uni.edu"),
        supervisor=make("STAFF/001", "Dr. Grace Hopper", UserRole.SUPERVISOR, "grace@uni.edu"),
        other_supervisor=make("STAFF/002", "Dr. Alan Turing", UserRole.SUPERVISOR, "alan@uni.edu"),
        admin=make("ADMIN/001", "Root Admin", UserRole.ADMIN, "admin@uni.edu"),
    )
    seeded.all = [seeded.student, seeded.other_student, seeded.supervisor, seeded.other_supervisor, seeded.admin]
    db_session.add_all(seeded.all)
    await db_session.commit()
    return seeded


@pytest_asyncio.fixture
async def classlist_entry(db_session):
    entry = ClasslistEntry(
        matricule="CE/2020/001",
        student_name="Chidi Okafor",
        student_email="chidi@uni.edu",
    )
    db_session.add(entry)
    await db_session.commit()
    return entry


@pytest.fixture
def make_project(db_session):
    """Insert a project directly in a given status (bypassing the lifecycle)."""

    async def _make(
        student: User,
        supervisor: Optional[User],
        status: ProjectStatus = ProjectStatus.PENDING_REVIEW,
        title: str = "Distributed Ledger for Land Records",
        published_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        **kwargs,
    ) -> Project:
        now = datetime.now(timezone.utc)
        if status == ProjectStatus.PUBLISHED and published_at is None:
            published_at = now
        project = Project(
            title=title,
            abstract=kwargs.pop("abstract", "An abstract long enough to be accepted by validation."),
            student_id=student.id,
            supervisor_id=supervisor.id if supervisor else None,
            status=status.value,
            draft_file_ref=kwargs.pop("draft_file_ref", "project_drafts/2025/01/01/draft.pdf"),
            final_file_ref=kwargs.pop(
                "final_file_ref",
                "project_finals/2025/01/01/final.pdf" if status == ProjectStatus.PUBLISHED else None,
            ),
            published_at=published_at,
            created_at=kwargs.pop("created_at", now - timedelta(days=1)),
            updated_at=updated_at or now,
            **kwargs,
        )
        db_session.add(project)
        await db_session.commit()
        return project

    return _make


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(context_for(user))}"}

    return _headers


@pytest_asyncio.fixture
async def test_client(session_factory, project_service, registration_service, file_service, mailer):
    """
    HTTPX AsyncClient talking to the app in-process.

    Route dependencies are overridden so requests share the test database,
    storage root and recording mailer.
    """
    from projectrepo import dependencies
    from projectrepo.main import app
    from projectrepo.services.admin_service import AdminService

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[dependencies.get_project_service] = lambda: project_service
    app.dependency_overrides[dependencies.get_registration_service] = lambda: registration_service
    app.dependency_overrides[dependencies.get_admin_service] = lambda: AdminService(projects=project_service)
    app.dependency_overrides[dependencies.get_file_service] = lambda: file_service
    app.dependency_overrides[dependencies.get_mailer] = lambda: mailer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
