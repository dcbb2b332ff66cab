"""
ProjectRepo Backend - Project Route Handlers
=============================================

What:  Submission, review and publication actions; project reads with view
       and download tracking; listings and repository search.
Who:   Student dashboard, supervisor review pages, public repository.

Request Flow (multipart actions: submit, resubmit, publish):
    1. FastAPI parses the form and the optional UploadFile
    2. The file is read into memory (size bounded by FileService)
    3. ProjectService validates, stores, transitions and notifies
    4. The upload is closed in `finally`

Static paths (/projects/mine, /projects/repository, ...) are declared before
/projects/{project_id} so they are matched first.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from projectrepo.database import get_db_session
from projectrepo.dependencies import get_project_service, get_request_context, require_roles
from projectrepo.exceptions import ValidationError
from projectrepo.models.enums import UserRole
from projectrepo.schemas.common import ErrorResponse
from projectrepo.schemas.project import (
    ApproveRequest,
    CommentResponse,
    CountResponse,
    ProjectActionResponse,
    ProjectDetail,
    ProjectListResponse,
    ProjectSummary,
    RejectRequest,
    RepositoryFilters,
    SupervisorOption,
)
from projectrepo.security import RequestContext
from projectrepo.services.project_service import ProjectService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Projects"])

ACTION_ERRORS = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    401: {"description": "Not authenticated or wrong role", "model": ErrorResponse},
    403: {"description": "Not permitted in the project's current state", "model": ErrorResponse},
    404: {"description": "Project not found", "model": ErrorResponse},
}

require_student = require_roles(UserRole.STUDENT)
require_supervisor = require_roles(UserRole.SUPERVISOR)


def _parse_uuid(value: Optional[str], field: str) -> Optional[UUID]:
    if not value:
        return None
    try:
        return UUID(value)
    except ValueError:
        raise ValidationError(f"Invalid {field}.", field=field)


async def _read_upload(file: Optional[UploadFile]):
    """Returns (filename, content, declared size); all None when no file was sent."""
    if file is None:
        return None, None, None
    content = await file.read()
    logger.info("Received upload: filename=%s, size=%d bytes", file.filename or "unknown", len(content))
    return file.filename or "upload.pdf", content, file.size


# ══════════════════════════════════════════════════════════════════════════
# Lifecycle actions
# ══════════════════════════════════════════════════════════════════════════


@router.post(
    "/projects",
    status_code=201,
    response_model=ProjectActionResponse,
    responses=ACTION_ERRORS,
    summary="Submit a new project draft for review",
)
async def submit_project(
    title: str = Form(default=""),
    abstract: str = Form(default=""),
    supervisor_id: str = Form(default=""),
    report_type: Optional[str] = Form(default=None),
    file: Optional[UploadFile] = File(default=None, description="Draft report (PDF)"),
    context: RequestContext = Depends(require_student),
    db: AsyncSession = Depends(get_db_session),
    service: ProjectService = Depends(get_project_service),
) -> ProjectActionResponse:
    try:
        filename, content, size = await _read_upload(file)
        return await service.submit(
            db,
            context,
            title=title,
            abstract=abstract,
            supervisor_id=_parse_uuid(supervisor_id, "supervisor_id"),
            filename=filename,
            content=content,
            content_length=size,
            report_type=report_type,
        )
    finally:
        if file is not None:
            await file.close()


@router.post(
    "/projects/{project_id}/approve",
    response_model=ProjectActionResponse,
    responses=ACTION_ERRORS,
    summary="Approve a pending draft",
)
async def approve_project(
    project_id: UUID,
    body: Optional[ApproveRequest] = None,
    context: RequestContext = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db_session),
    service: ProjectService = Depends(get_project_service),
) -> ProjectActionResponse:
    return await service.approve(db, context, project_id, comment=body.comment if body else None)


@router.post(
    "/projects/{project_id}/reject",
    response_model=ProjectActionResponse,
    responses=ACTION_ERRORS,
    summary="Reject a pending draft with feedback",
)
async def reject_project(
    project_id: UUID,
    body: RejectRequest,
    context: RequestContext = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db_session),
    service: ProjectService = Depends(get_project_service),
) -> ProjectActionResponse:
    return await service.reject(db, context, project_id, body.comments)


@router.post(
    "/projects/{project_id}/resubmit",
    response_model=ProjectActionResponse,
    responses=ACTION_ERRORS,
    summary="Resubmit a rejected project with a new draft",
)
async def resubmit_project(
    project_id: UUID,
    file: Optional[UploadFile] = File(default=None, description="Revised draft (PDF)"),
    context: RequestContext = Depends(require_student),
    db: AsyncSession = Depends(get_db_session),
    service: ProjectService = Depends(get_project_service),
) -> ProjectActionResponse:
    try:
        filename, content, size = await _read_upload(file)
        return await service.resubmit(db, context, project_id, filename, content, size)
    finally:
        if file is not None:
            await file.close()


@router.post(
    "/projects/{project_id}/publish",
    response_model=ProjectActionResponse,
    responses=ACTION_ERRORS,
    summary="Publish the final report of an approved project",
    description="The uploaded PDF becomes the final report; without one the approved draft is published.",
)
async def publish_project(
    project_id: UUID,
    file: Optional[UploadFile] = File(default=None, description="Final report (PDF, optional)"),
    context: RequestContext = Depends(require_student),
    db: AsyncSession = Depends(get_db_session),
    service: ProjectService = Depends(get_project_service),
) -> ProjectActionResponse:
    try:
        filename, content, size = await _read_upload(file)
        return await service.publish_final(db, context, project_id, filename, content, size)
    finally:
        if file is not None:
            await file.close()


# ══════════════════════════════════════════════════════════════════════════
# Listings
# ══════════════════════════════════════════════════════════════════════════


@router.get(
    "/projects/repository",
    response_model=ProjectListResponse,
    summary="Search published projects",
)
async def search_repository(
    response: Response,
    q: Optional[str] = Query(default=None, max_length=200, description="Title, student or supervisor name, or year"),
    supervisor_id: Optional[UUID] = Query(default=None),
    year: Optional[int] = Query(default=None, ge=1900, le=9999),
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db_session),
    service: ProjectService = Depends(get_project_service),
) -> ProjectListResponse:
    result = await service.search_repository(db, q=q, supervisor_id=supervisor_id, year=year)
    response.headers["X-Total-Count"] = str(result.total_count)
    return result


@router.get("/projects/repository/filters", response_model=RepositoryFilters)
async def repository_filters(
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db_session),
    service: ProjectService = Depends(get_project_service),
) -> RepositoryFilters:
    return await service.repository_filters(db)


@router.get("/projects/mine", response_model=List[ProjectSummary], summary="The caller's own projects")
async def my_projects(
    context: RequestContext = Depends(require_student),
    db: AsyncSession = Depends(get_db_session),
    service: ProjectService = Depends(get_project_service),
) -> List[ProjectSummary]:
    return await service.my_projects(db, context)


@router.get("/projects/review-queue", response_model=List[ProjectSummary], summary="Drafts awaiting the caller's review")
async def review_queue(
    context: RequestContext = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db_session),
    service: ProjectService = Depends(get_project_service),
) -> List[ProjectSummary]:
    return await service.review_queue(db, context)


@router.get("/projects/pending-review-count", response_model=CountResponse)
async def pending_review_count(
    context: RequestContext = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db_session),
    service: ProjectService = Depends(get_project_service),
) -> CountResponse:
    return CountResponse(count=await service.pending_review_count(db, context))


@router.get("/projects/supervised", response_model=List[ProjectSummary], summary="Published projects the caller supervised")
async def supervised_projects(
    context: RequestContext = Depends(require_supervisor),
    db: AsyncSession = Depends(get_db_session),
    service: ProjectService = Depends(get_project_service),
) -> List[ProjectSummary]:
    return await service.supervised(db, context)


@router.get("/supervisors", response_model=List[SupervisorOption], tags=["Supervisors"])
async def list_supervisors(
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db_session),
    service: ProjectService = Depends(get_project_service),
) -> List[SupervisorOption]:
    return await service.list_supervisors(db)


# ══════════════════════════════════════════════════════════════════════════
# Single project
# ══════════════════════════════════════════════════════════════════════════


@router.get(
    "/projects/{project_id}",
    response_model=ProjectDetail,
    responses={404: {"description": "Project not found", "model": ErrorResponse}},
    summary="Project detail (counts a view when published)",
)
async def get_project(
    project_id: UUID,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db_session),
    service: ProjectService = Depends(get_project_service),
) -> ProjectDetail:
    return await service.get_project(db, context, project_id)


@router.get(
    "/projects/{project_id}/download",
    status_code=307,
    responses={
        307: {"description": "Redirect to the report file"},
        404: {"description": "Project not found", "model": ErrorResponse},
    },
    summary="Download the report (counts a download when published)",
)
async def download_project(
    project_id: UUID,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db_session),
    service: ProjectService = Depends(get_project_service),
) -> RedirectResponse:
    url = await service.download(db, context, project_id)
    return RedirectResponse(url=url, status_code=307)


@router.get("/projects/{project_id}/comments", response_model=List[CommentResponse])
async def project_comments(
    project_id: UUID,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db_session),
    service: ProjectService = Depends(get_project_service),
) -> List[CommentResponse]:
    return await service.list_comments(db, context, project_id)
