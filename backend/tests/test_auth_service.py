"""
ProjectRepo Backend - Authentication & Token Unit Tests
========================================================

What:  Tests for password hashing, session tokens and AuthService.login.

Test Strategy:
    ✅ bcrypt hash/verify round trip, malformed hash
    ✅ Token carries id, role, name, matricule; expired/forged tokens refused
    ✅ Login: unknown matricule and wrong password give the same error
"""

import uuid
from datetime import timedelta

import pytest
from jose import jwt

from conftest import DEFAULT_PASSWORD
from projectrepo.config import settings
from projectrepo.exceptions import AuthenticationError
from projectrepo.models.enums import UserRole
from projectrepo.security import (
    RequestContext,
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)
from projectrepo.services.auth_service import AuthService


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = get_password_hash("correct horse")
        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong horse", hashed)

    def test_hashes_are_salted(self):
        assert get_password_hash("same") != get_password_hash("same")

    def test_malformed_hash_does_not_verify(self):
        """A corrupted stored hash is treated as a mismatch, not an error."""
        assert not verify_password("anything", "not-a-bcrypt-hash")


class TestTokens:

    def setup_method(self):
        self.context = RequestContext(
            id=uuid.uuid4(), role=UserRole.SUPERVISOR, name="Dr. Grace Hopper", matricule="STAFF/001"
        )

    def test_round_trip(self):
        decoded = decode_access_token(create_access_token(self.context))
        assert decoded == self.context
        assert not decoded.is_admin

    def test_expired_token_rejected(self):
        token = create_access_token(self.context, expires_delta=timedelta(seconds=-5))
        with pytest.raises(AuthenticationError):
            decode_access_token(token)

    def test_forged_signature_rejected(self):
        token = jwt.encode(
            {"sub": str(self.context.id), "role": "ADMIN", "type": "access"},
            "someone-elses-secret",
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(AuthenticationError):
            decode_access_token(token)

    def test_wrong_token_type_rejected(self):
        token = jwt.encode(
            {"sub": str(self.context.id), "role": "STUDENT", "type": "refresh"},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(AuthenticationError, match="Invalid token type"):
            decode_access_token(token)

    def test_unknown_role_rejected(self):
        token = jwt.encode(
            {"sub": str(self.context.id), "role": "JANITOR", "type": "access"},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(AuthenticationError, match="Invalid token payload"):
            decode_access_token(token)

    def test_admin_context(self):
        admin = RequestContext(id=uuid.uuid4(), role=UserRole.ADMIN, name="Root")
        assert admin.is_admin


class TestLogin:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_login_returns_token_and_user(self, db_session, users):
        response = await self.service.login(db_session, "CE/2020/010", DEFAULT_PASSWORD)

        assert response.token_type == "bearer"
        assert response.user.id == users.student.id
        assert response.user.role == UserRole.STUDENT
        context = decode_access_token(response.access_token)
        assert context.id == users.student.id
        assert context.matricule == "CE/2020/010"

    @pytest.mark.asyncio
    async def test_matricule_is_trimmed(self, db_session, users):
        response = await self.service.login(db_session, "  STAFF/001 ", DEFAULT_PASSWORD)
        assert response.user.role == UserRole.SUPERVISOR

    @pytest.mark.asyncio
    async def test_wrong_password(self, db_session, users):
        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            await self.service.login(db_session, "CE/2020/010", "not-the-password")

    @pytest.mark.asyncio
    async def test_unknown_matricule_same_error(self, db_session, users):
        """Unknown users are indistinguishable from wrong passwords."""
        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            await self.service.login(db_session, "NOBODY/000", DEFAULT_PASSWORD)
