"""
ProjectRepo Backend - FastAPI Dependencies
===========================================

What:  Resolves the caller (RequestContext) from the bearer token and hands
       route handlers their service instances.
How:   `get_request_context` decodes the token; `require_roles(...)` builds a
       dependency that additionally checks the role. Service getters return
       the module singletons and are overridden in tests
       (`app.dependency_overrides`).
"""

from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from projectrepo.exceptions import AuthenticationError
from projectrepo.models.enums import UserRole
from projectrepo.security import RequestContext, decode_access_token
from projectrepo.services.admin_service import AdminService, admin_service
from projectrepo.services.auth_service import AuthService, auth_service
from projectrepo.services.file_service import FileService, file_service
from projectrepo.services.mailer import Mailer, mailer
from projectrepo.services.notification_service import NotificationService, notification_service
from projectrepo.services.project_service import ProjectService, project_service
from projectrepo.services.registration_service import RegistrationService, registration_service

# auto_error=False: a missing header is reported through our own 401 envelope
bearer_scheme = HTTPBearer(auto_error=False)


async def get_request_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> RequestContext:
    """
    Raises:
        AuthenticationError: no bearer token, or the token does not verify.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")
    return decode_access_token(credentials.credentials)


def require_roles(*roles: UserRole) -> Callable:
    """Dependency factory: the caller must hold one of `roles` (401 otherwise)."""

    async def dependency(context: RequestContext = Depends(get_request_context)) -> RequestContext:
        if context.role not in roles:
            raise AuthenticationError(
                "Unauthorized",
                context={"required": [r.value for r in roles], "actual": context.role.value},
            )
        return context

    return dependency


require_admin = require_roles(UserRole.ADMIN)


# ── Service getters ───────────────────────────────────────────────────────

def get_project_service() -> ProjectService:
    return project_service


def get_registration_service() -> RegistrationService:
    return registration_service


def get_auth_service() -> AuthService:
    return auth_service


def get_admin_service() -> AdminService:
    return admin_service


def get_notification_service() -> NotificationService:
    return notification_service


def get_file_service() -> FileService:
    return file_service


def get_mailer() -> Mailer:
    return mailer
