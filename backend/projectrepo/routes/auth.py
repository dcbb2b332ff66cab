"""
ProjectRepo Backend - Authentication Route Handlers
====================================================

What:  Login, two-step self-registration, the caller's identity and the
       caller's navigation links.
Who:   Login and registration pages; every page shell (me, navigation).

All /api/auth/* paths share the tighter auth rate limit bucket.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from projectrepo.database import get_db_session
from projectrepo.dependencies import get_auth_service, get_registration_service, get_request_context
from projectrepo.schemas.auth import (
    LoginRequest,
    RegisterStartRequest,
    RegisterStartResponse,
    RegisterVerifyRequest,
    SessionUser,
    TokenResponse,
)
from projectrepo.schemas.common import ErrorResponse, NavLink
from projectrepo.security import RequestContext
from projectrepo.services.auth_service import AuthService
from projectrepo.services.navigation import navigation_for
from projectrepo.services.registration_service import RegistrationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/auth/login",
    response_model=TokenResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Log in with matricule and password",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    return await service.login(db, body.matricule, body.password)


@router.post(
    "/auth/register/start",
    status_code=202,
    response_model=RegisterStartResponse,
    responses={
        400: {"description": "Invalid input", "model": ErrorResponse},
        403: {"description": "Matricule not on the classlist", "model": ErrorResponse},
        409: {"description": "Account already exists", "model": ErrorResponse},
    },
    summary="Start registration and email a verification code",
)
async def register_start(
    body: RegisterStartRequest,
    db: AsyncSession = Depends(get_db_session),
    service: RegistrationService = Depends(get_registration_service),
) -> RegisterStartResponse:
    """
    Emails a one-time code to the address the classlist holds for the
    matricule. Calling again replaces the previous code.
    """
    return await service.start(db, body)


@router.post(
    "/auth/register/verify",
    status_code=201,
    response_model=SessionUser,
    responses={
        400: {"description": "Invalid or expired code", "model": ErrorResponse},
        409: {"description": "Account already exists", "model": ErrorResponse},
    },
    summary="Verify the code and create the student account",
)
async def register_verify(
    body: RegisterVerifyRequest,
    db: AsyncSession = Depends(get_db_session),
    service: RegistrationService = Depends(get_registration_service),
) -> SessionUser:
    return await service.verify(db, body)


@router.get("/auth/me", response_model=SessionUser, summary="The authenticated caller")
async def me(context: RequestContext = Depends(get_request_context)) -> SessionUser:
    return SessionUser(id=context.id, name=context.name, role=context.role, matricule=context.matricule)


@router.get("/navigation", response_model=List[NavLink], summary="Navigation links for the caller's role")
async def navigation(context: RequestContext = Depends(get_request_context)) -> List[NavLink]:
    return navigation_for(context.role)
