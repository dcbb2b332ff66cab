"""
ProjectRepo Backend - Password Hashing & Session Tokens
========================================================

What:  bcrypt password hashing and signed JWT session tokens.
Who:   AuthService (login), RegistrationService (hash at start),
       AdminService (create user / reset password), dependencies (decode).

Token claims:
    sub        user id (UUID string)
    name       display name
    role       STUDENT | SUPERVISOR | ADMIN
    matricule  enrollment identifier
    type       "access"
    exp        expiry (UTC)
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

import bcrypt
from jose import JWTError, jwt

from projectrepo.config import settings
from projectrepo.exceptions import AuthenticationError
from projectrepo.models.enums import UserRole


def get_password_hash(password: str) -> str:
    """Hash with the configured bcrypt cost. bcrypt only reads the first 72 bytes."""
    password_bytes = password.encode("utf-8")[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.bcrypt_rounds))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    password_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


@dataclass(frozen=True)
class RequestContext:
    """
    The authenticated caller, derived from the session token.

    Passed explicitly into every service operation; it is the only input
    used for authorization decisions.
    """

    id: UUID
    role: UserRole
    name: str
    matricule: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def create_access_token(context: RequestContext, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims: Dict[str, Any] = {
        "sub": str(context.id),
        "name": context.name,
        "role": context.role.value,
        "matricule": context.matricule,
        "type": "access",
        "exp": expire,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> RequestContext:
    """
    Verify signature and expiry, then rebuild the RequestContext.

    Raises:
        AuthenticationError: bad signature, expired token, wrong token type
            or malformed claims.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise AuthenticationError("Could not validate credentials")

    if payload.get("type") != "access":
        raise AuthenticationError("Invalid token type")

    try:
        return RequestContext(
            id=UUID(payload["sub"]),
            role=UserRole(payload["role"]),
            name=payload.get("name", ""),
            matricule=payload.get("matricule", ""),
        )
    except (KeyError, ValueError):
        raise AuthenticationError("Invalid token payload")
