"""
ProjectRepo Backend - Project Request/Response Schemas
=======================================================

What:  The API contract for submissions, reviews and the public repository.
How:   Submission and resubmission arrive as multipart forms (they carry a
       PDF), so their text fields are validated in ProjectService rather
       than by a body model here. JSON bodies (approve, reject) are modeled.

File references are never returned raw; they are exposed as
`/api/files/<ref>` URLs.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from projectrepo.models.enums import ProjectStatus


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ApproveRequest(BaseModel):
    comment: Optional[str] = Field(
        default=None,
        max_length=5000,
        description="Optional note for the student, stored as an approval comment",
    )


class RejectRequest(BaseModel):
    # Blank feedback is rejected by the service so the check also covers
    # whitespace-only input.
    comments: str = Field(default="", max_length=5000, description="Required revision feedback")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class CommentResponse(BaseModel):
    id: uuid.UUID
    author_id: uuid.UUID
    author_name: Optional[str] = None
    content: str
    created_at: datetime


class ProjectSummary(BaseModel):
    """
    Compact representation for lists (repository, my projects, review queue).

    `allowed_actions` lists the lifecycle actions currently possible from the
    project's status; it is filled in for the owner's and reviewer's views.
    """
    id: uuid.UUID
    title: str
    report_type: Optional[str] = None
    status: ProjectStatus
    student_id: uuid.UUID
    student_name: Optional[str] = None
    supervisor_id: Optional[uuid.UUID] = None
    supervisor_name: Optional[str] = None
    view_count: int = 0
    download_count: int = 0
    created_at: datetime
    updated_at: datetime
    published_at: Optional[datetime] = None
    allowed_actions: List[str] = Field(default_factory=list)


class ProjectDetail(ProjectSummary):
    abstract: str
    draft_url: Optional[str] = None
    final_url: Optional[str] = None
    comments: List[CommentResponse] = Field(default_factory=list)


class ProjectActionResponse(BaseModel):
    """Returned by every lifecycle action (submit, approve, reject, resubmit, publish)."""
    message: str
    project_id: uuid.UUID
    status: ProjectStatus


class SupervisorOption(BaseModel):
    id: uuid.UUID
    name: str


class RepositoryFilters(BaseModel):
    supervisors: List[SupervisorOption]
    years: List[int] = Field(description="Distinct publication years, newest first")


class ProjectListResponse(BaseModel):
    projects: List[ProjectSummary]
    total_count: int


class CountResponse(BaseModel):
    count: int
