"""
ProjectRepo Backend - Administration Route Handlers
====================================================

What:  User accounts, the enrollment classlist and the project overview.
Who:   Admin pages. Every route here requires the ADMIN role (401 otherwise);
       the check is a router-level dependency.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from projectrepo.database import get_db_session
from projectrepo.dependencies import get_admin_service, require_admin
from projectrepo.schemas.admin import (
    ClasslistEntryRequest,
    ClasslistEntryResponse,
    PasswordResetRequest,
    UserCreateRequest,
    UserResponse,
    UserUpdateRequest,
)
from projectrepo.schemas.common import ErrorResponse
from projectrepo.schemas.project import ProjectSummary
from projectrepo.security import RequestContext
from projectrepo.services.admin_service import AdminService

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
    responses={401: {"description": "Admin role required", "model": ErrorResponse}},
)


# ── Users ─────────────────────────────────────────────────────────────────

@router.get("/users", response_model=List[UserResponse])
async def list_users(
    db: AsyncSession = Depends(get_db_session),
    service: AdminService = Depends(get_admin_service),
) -> List[UserResponse]:
    return await service.list_users(db)


@router.post(
    "/users",
    status_code=201,
    response_model=UserResponse,
    responses={409: {"description": "Matricule or email taken", "model": ErrorResponse}},
)
async def create_user(
    body: UserCreateRequest,
    db: AsyncSession = Depends(get_db_session),
    service: AdminService = Depends(get_admin_service),
) -> UserResponse:
    return await service.create_user(db, body)


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    service: AdminService = Depends(get_admin_service),
) -> UserResponse:
    return await service.get_user(db, user_id)


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    body: UserUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
    service: AdminService = Depends(get_admin_service),
) -> UserResponse:
    return await service.update_user(db, user_id, body)


@router.post("/users/{user_id}/password", status_code=204, response_class=Response)
async def reset_password(
    user_id: UUID,
    body: PasswordResetRequest,
    db: AsyncSession = Depends(get_db_session),
    service: AdminService = Depends(get_admin_service),
) -> Response:
    await service.reset_password(db, user_id, body)
    return Response(status_code=204)


@router.delete(
    "/users/{user_id}",
    status_code=204,
    response_class=Response,
    responses={
        400: {"description": "Cannot delete own account", "model": ErrorResponse},
        409: {"description": "User still referenced by projects", "model": ErrorResponse},
    },
)
async def delete_user(
    user_id: UUID,
    context: RequestContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    service: AdminService = Depends(get_admin_service),
) -> Response:
    await service.delete_user(db, context, user_id)
    return Response(status_code=204)


# ── Classlist ─────────────────────────────────────────────────────────────

@router.get("/classlist", response_model=List[ClasslistEntryResponse])
async def list_classlist(
    db: AsyncSession = Depends(get_db_session),
    service: AdminService = Depends(get_admin_service),
) -> List[ClasslistEntryResponse]:
    return await service.list_classlist(db)


@router.post(
    "/classlist",
    status_code=201,
    response_model=ClasslistEntryResponse,
    responses={409: {"description": "Matricule or email already listed", "model": ErrorResponse}},
)
async def create_classlist_entry(
    body: ClasslistEntryRequest,
    db: AsyncSession = Depends(get_db_session),
    service: AdminService = Depends(get_admin_service),
) -> ClasslistEntryResponse:
    return await service.create_classlist_entry(db, body)


@router.put("/classlist/{entry_id}", response_model=ClasslistEntryResponse)
async def update_classlist_entry(
    entry_id: UUID,
    body: ClasslistEntryRequest,
    db: AsyncSession = Depends(get_db_session),
    service: AdminService = Depends(get_admin_service),
) -> ClasslistEntryResponse:
    return await service.update_classlist_entry(db, entry_id, body)


@router.delete("/classlist/{entry_id}", status_code=204, response_class=Response)
async def delete_classlist_entry(
    entry_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    service: AdminService = Depends(get_admin_service),
) -> Response:
    await service.delete_classlist_entry(db, entry_id)
    return Response(status_code=204)


# ── Projects ──────────────────────────────────────────────────────────────

@router.get("/projects", response_model=List[ProjectSummary])
async def list_projects(
    db: AsyncSession = Depends(get_db_session),
    service: AdminService = Depends(get_admin_service),
) -> List[ProjectSummary]:
    return await service.list_projects(db)
