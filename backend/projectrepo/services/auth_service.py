"""
ProjectRepo Backend - Authentication Service
=============================================

What:  Credential check and session issuance.
Who:   POST /api/auth/login.

Unknown matricule and wrong password produce the same error, and both paths
run one bcrypt comparison so response timing does not reveal which failed.
"""

import logging
from functools import lru_cache

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projectrepo.exceptions import AuthenticationError
from projectrepo.models.enums import UserRole
from projectrepo.models.user import User
from projectrepo.schemas.auth import SessionUser, TokenResponse
from projectrepo.security import (
    RequestContext,
    create_access_token,
    get_password_hash,
    verify_password,
)

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return get_password_hash("not-a-real-password")


class AuthService:

    async def authenticate(self, db: AsyncSession, matricule: str, password: str) -> SessionUser:
        """
        Raises:
            AuthenticationError("Invalid credentials"): unknown user or wrong password.
        """
        result = await db.execute(select(User).where(User.matricule == matricule.strip()))
        user = result.scalar_one_or_none()

        if user is None:
            verify_password(password, _dummy_hash())
            logger.info("Login failed: unknown matricule")
            raise AuthenticationError("Invalid credentials")

        if not verify_password(password, user.password_hash):
            logger.info("Login failed: wrong password for user %s", user.id)
            raise AuthenticationError("Invalid credentials")

        logger.info("User %s logged in (role=%s)", user.id, user.role)
        return SessionUser(id=user.id, name=user.name, role=UserRole(user.role), matricule=user.matricule)

    async def login(self, db: AsyncSession, matricule: str, password: str) -> TokenResponse:
        user = await self.authenticate(db, matricule, password)
        token = create_access_token(
            RequestContext(id=user.id, role=user.role, name=user.name, matricule=user.matricule)
        )
        return TokenResponse(access_token=token, user=user)


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
