"""
ProjectRepo Backend - Registration Service Unit Tests
======================================================

What:  Tests for two-step self-registration (classlist gate + emailed code).
How:   RegistrationService with a recording mailer and an injectable clock.

Test Strategy:
    ✅ Matricule not on the classlist → 403, nothing stored
    ✅ Existing account → 409
    ✅ Code is emailed to the classlist address, never to a request field
    ✅ Wrong code leaves the pending record untouched
    ✅ A code verifies once; replay fails
    ✅ Expired code fails (clock moved forward)
    ✅ Starting again replaces the previous code, also when two starts race
    ✅ Leaving the classlist between start and verify blocks the account
"""

import re
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from projectrepo.config import settings
from projectrepo.exceptions import ConflictError, PermissionDeniedError, ValidationError
from projectrepo.models.enums import UserRole
from projectrepo.models.user import PendingRegistration, User
from projectrepo.schemas.auth import RegisterStartRequest, RegisterVerifyRequest
from projectrepo.security import verify_password
from projectrepo.services.registration_service import (
    INVALID_OTP_MESSAGE,
    RegistrationService,
    generate_otp,
)

MATRICULE = "CE/2020/001"


def _start_request(matricule=MATRICULE, password="hunter22"):
    return RegisterStartRequest(name="Chidi Okafor", matricule=matricule, password=password)


def _sent_code(mailer) -> str:
    match = re.search(r"<strong>(\d+)</strong>", mailer.sent[-1].html)
    assert match, "no code found in the email body"
    return match.group(1)


async def _pending(db, matricule=MATRICULE):
    result = await db.execute(select(PendingRegistration).where(PendingRegistration.matricule == matricule))
    return result.scalar_one_or_none()


class TestGenerateOtp:

    def test_default_length_is_six_digits(self):
        code = generate_otp()
        assert len(code) == 6
        assert code.isdigit()

    def test_custom_length(self):
        assert len(generate_otp(8)) == 8

    def test_codes_are_zero_padded(self):
        """Leading zeros are kept so every code has the same length."""
        codes = {generate_otp(4) for _ in range(200)}
        assert all(len(c) == 4 for c in codes)


class TestStart:

    @pytest.mark.asyncio
    async def test_not_on_classlist_is_forbidden(self, registration_service, db_session, classlist_entry, mailer):
        with pytest.raises(PermissionDeniedError, match="Matricule not found or not authorized."):
            await registration_service.start(db_session, _start_request(matricule="CE/2020/999"))

        assert await _pending(db_session, "CE/2020/999") is None
        assert mailer.sent == []

    @pytest.mark.asyncio
    async def test_existing_account_conflicts(self, registration_service, db_session, classlist_entry):
        db_session.add(User(matricule=MATRICULE, name="Chidi Okafor", password_hash="x", role=UserRole.STUDENT.value))
        await db_session.commit()

        with pytest.raises(ConflictError):
            await registration_service.start(db_session, _start_request())

    @pytest.mark.asyncio
    async def test_code_emailed_to_classlist_address(self, registration_service, db_session, classlist_entry, mailer):
        response = await registration_service.start(db_session, _start_request())

        assert response.expires_in_minutes == settings.otp_ttl_minutes
        assert [m.to for m in mailer.sent] == ["chidi@uni.edu"]

        pending = await _pending(db_session)
        assert pending is not None
        assert pending.otp == _sent_code(mailer)
        assert verify_password("hunter22", pending.password_hash)

    @pytest.mark.asyncio
    async def test_start_again_replaces_code(self, db_session, classlist_entry, mailer):
        """Only the latest code is stored; there is still one pending row."""
        service = RegistrationService(mailer=mailer)
        await service.start(db_session, _start_request())
        await service.start(db_session, _start_request(password="another1"))

        count = await db_session.execute(select(func.count(PendingRegistration.id)))
        assert count.scalar() == 1
        pending = await _pending(db_session)
        assert pending.otp == _sent_code(mailer)
        assert verify_password("another1", pending.password_hash)

    @pytest.mark.asyncio
    async def test_concurrent_start_updates_existing_row(self, db_session, classlist_entry, mailer):
        """
        Another start inserts the pending row after our lookup: the unique
        constraint fails, and the retry overwrites that row (latest wins).
        """
        service = RegistrationService(mailer=mailer)
        await service.start(db_session, _start_request())

        real_find = service._find_pending
        lookups = []

        async def row_not_yet_visible(db, matricule):
            lookups.append(matricule)
            if len(lookups) == 1:
                return None
            return await real_find(db, matricule)

        service._find_pending = row_not_yet_visible
        await service.start(db_session, _start_request(password="another1"))

        assert len(lookups) == 2
        count = await db_session.execute(select(func.count(PendingRegistration.id)))
        assert count.scalar() == 1
        pending = await _pending(db_session)
        assert pending.otp == _sent_code(mailer)
        assert verify_password("another1", pending.password_hash)

    @pytest.mark.asyncio
    async def test_mail_failure_does_not_fail_start(self, db_session, classlist_entry, mailer):
        mailer.fail = True
        service = RegistrationService(mailer=mailer)
        response = await service.start(db_session, _start_request())
        assert response.expires_in_minutes == settings.otp_ttl_minutes
        assert await _pending(db_session) is not None


class TestVerify:

    @pytest.mark.asyncio
    async def test_wrong_code_keeps_pending(self, registration_service, db_session, classlist_entry, mailer):
        await registration_service.start(db_session, _start_request())
        code = _sent_code(mailer)
        wrong = "0" * len(code) if code != "0" * len(code) else "1" * len(code)

        with pytest.raises(ValidationError, match=INVALID_OTP_MESSAGE):
            await registration_service.verify(db_session, RegisterVerifyRequest(matricule=MATRICULE, otp=wrong))

        assert (await _pending(db_session)).otp == code
        users = await db_session.execute(select(func.count(User.id)).where(User.matricule == MATRICULE))
        assert users.scalar() == 0

    @pytest.mark.asyncio
    async def test_verify_creates_student_once(self, registration_service, db_session, classlist_entry, mailer):
        """A correct code creates exactly one STUDENT and consumes the pending record."""
        await registration_service.start(db_session, _start_request())
        request = RegisterVerifyRequest(matricule=MATRICULE, otp=_sent_code(mailer))

        user = await registration_service.verify(db_session, request)

        assert user.role == UserRole.STUDENT
        assert user.matricule == MATRICULE
        assert user.name == "Chidi Okafor"
        assert await _pending(db_session) is None

        stored = (await db_session.execute(select(User).where(User.matricule == MATRICULE))).scalar_one()
        assert stored.email == "chidi@uni.edu"
        assert verify_password("hunter22", stored.password_hash)

        with pytest.raises(ValidationError, match=INVALID_OTP_MESSAGE):
            await registration_service.verify(db_session, request)

    @pytest.mark.asyncio
    async def test_removed_from_classlist_before_verify(self, registration_service, db_session, classlist_entry, mailer):
        """A matricule dropped from the classlist after start cannot finish registering."""
        await registration_service.start(db_session, _start_request())
        code = _sent_code(mailer)
        await db_session.delete(classlist_entry)
        await db_session.commit()

        with pytest.raises(ValidationError, match=INVALID_OTP_MESSAGE):
            await registration_service.verify(db_session, RegisterVerifyRequest(matricule=MATRICULE, otp=code))

        users = await db_session.execute(select(func.count(User.id)).where(User.matricule == MATRICULE))
        assert users.scalar() == 0
        assert await _pending(db_session) is None

    @pytest.mark.asyncio
    async def test_expired_code_rejected(self, db_session, classlist_entry, mailer):
        """Moving the clock past OTP_TTL_MINUTES invalidates the code."""
        now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        service = RegistrationService(mailer=mailer, now=lambda: now)
        await service.start(db_session, _start_request())
        code = _sent_code(mailer)

        service.now = lambda: now + timedelta(minutes=settings.otp_ttl_minutes, seconds=1)
        with pytest.raises(ValidationError, match=INVALID_OTP_MESSAGE):
            await service.verify(db_session, RegisterVerifyRequest(matricule=MATRICULE, otp=code))

    @pytest.mark.asyncio
    async def test_code_valid_just_before_expiry(self, db_session, classlist_entry, mailer):
        now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        service = RegistrationService(mailer=mailer, now=lambda: now)
        await service.start(db_session, _start_request())

        service.now = lambda: now + timedelta(minutes=settings.otp_ttl_minutes) - timedelta(seconds=1)
        user = await service.verify(db_session, RegisterVerifyRequest(matricule=MATRICULE, otp=_sent_code(mailer)))
        assert user.matricule == MATRICULE

    @pytest.mark.asyncio
    async def test_unknown_matricule_same_message(self, registration_service, db_session):
        """No pending record answers exactly like a wrong code."""
        with pytest.raises(ValidationError, match=INVALID_OTP_MESSAGE):
            await registration_service.verify(
                db_session, RegisterVerifyRequest(matricule="CE/2020/404", otp="123456")
            )

    @pytest.mark.asyncio
    async def test_previous_code_invalid_after_restart(self, registration_service, db_session, classlist_entry, mailer):
        await registration_service.start(db_session, _start_request())
        first = _sent_code(mailer)
        await registration_service.start(db_session, _start_request())
        second = _sent_code(mailer)

        if first != second:
            with pytest.raises(ValidationError):
                await registration_service.verify(db_session, RegisterVerifyRequest(matricule=MATRICULE, otp=first))
        user = await registration_service.verify(db_session, RegisterVerifyRequest(matricule=MATRICULE, otp=second))
        assert user.matricule == MATRICULE
