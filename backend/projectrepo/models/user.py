"""
ProjectRepo Backend - Identity SQLAlchemy Models
=================================================

What:  ORM models for accounts and the registration allowlist.
Who:   Used by the auth, registration and admin services; read by Alembic.

Tables:
    users                  - accounts (students, supervisors, admins)
    classlist              - admin-curated allowlist of matricules
    pending_registrations  - short-lived OTP records, one per matricule

Timestamps are UTC with timezone. Matricule (enrollment identifier) is the
natural login key and is unique in all three tables.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from projectrepo.database import Base
from projectrepo.models.enums import UserRole


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    An authenticated principal.

    Lifecycle:
        - Created by an admin (any role) or by a verified self-registration
          (always STUDENT)
        - Role changed only through the admin endpoints
        - Deleted by an admin once no project references the account
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    matricule: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=False,
        comment="Enrollment identifier used to log in",
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Contact address for notices. Copied from the classlist entry on
    # self-registration; optional for admin-created accounts.
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserRole.STUDENT.value,
        server_default=text("'STUDENT'"),
        comment="STUDENT, SUPERVISOR or ADMIN",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, matricule='{self.matricule}', role='{self.role}')>"


class ClasslistEntry(Base):
    """One allowlisted student. Self-registration is only possible for these matricules."""

    __tablename__ = "classlist"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    matricule: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    student_name: Mapped[str] = mapped_column(String(255), nullable=False)
    student_email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<ClasslistEntry(matricule='{self.matricule}')>"


class PendingRegistration(Base):
    """
    A registration waiting for its one-time code.

    Lifecycle:
        1. Upserted by register/start (a new code replaces the previous one)
        2. Deleted by a successful register/verify
        3. Otherwise ignored once `expires_at` has passed
    """

    __tablename__ = "pending_registrations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    matricule: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    otp: Mapped[str] = mapped_column(String(16), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<PendingRegistration(matricule='{self.matricule}', expires_at='{self.expires_at}')>"
