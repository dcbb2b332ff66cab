"""
ProjectRepo Backend - Project SQLAlchemy Models
================================================

What:  ORM models for project submissions and supervisor feedback.
Who:   Used by ProjectService; read by Alembic.

Table Design:
    - status: VARCHAR holding a ProjectStatus value. Every change goes through
      a conditional UPDATE guarded by the expected current status.
    - draft_file_ref / final_file_ref: storage references returned by
      FileService, never raw bytes.
    - view_count / download_count: monotonic counters, best-effort increments.
    - published_at: set exactly once, by the final publish step.

Indexes:
    (status, published_at)  - public repository listing
    (supervisor_id, status) - supervisor review queue
    (student_id)            - "my projects"
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from projectrepo.database import Base
from projectrepo.models.enums import ProjectStatus
from projectrepo.models.user import utcnow


class Project(Base):
    """
    A student's project submission moving through the review lifecycle.

    Ownership:
        student_id is the single owner; supervisor_id is the assigned reviewer
        (nullable so an account deletion cannot leave a dangling reference).
    """

    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    abstract: Mapped[str] = mapped_column(Text, nullable=False)

    report_type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Free-form category chosen at submission, upper-cased",
    )

    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    supervisor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=ProjectStatus.DRAFT.value,
        server_default=text("'DRAFT'"),
    )

    draft_file_ref: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    final_file_ref: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    view_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    download_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_projects_status_published_at", "status", "published_at"),
        Index("idx_projects_supervisor_status", "supervisor_id", "status"),
        Index("idx_projects_student", "student_id"),
    )

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, status='{self.status}', title='{self.title[:30]}')>"


class Comment(Base):
    """Supervisor feedback attached to a project, read in creation order."""

    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
