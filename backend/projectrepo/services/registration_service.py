"""
ProjectRepo Backend - Self-Registration with One-Time Codes
============================================================

What:  Two-step student sign-up gated by the classlist.
How:   start() stores a pending registration with a random numeric code and
       emails the code to the address on the classlist; verify() checks the
       code and expiry, then creates the account and consumes the record in
       one transaction.
Who:   POST /api/auth/register/start and /api/auth/register/verify.

States of a pending registration (one per matricule):
    NONE ──start──▶ PENDING ──verify ok──▶ CONSUMED (row deleted)
                       │ ▲
                       │ └──start again (new code, previous one invalid)
                       └──expires_at passes──▶ EXPIRED (ignored by verify)

Every verify failure (no record, wrong code, expired, matricule removed from
the classlist since start) answers with the same message so a caller cannot
tell which check failed. Removal from the classlist also drops the pending row.
"""

import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from projectrepo.config import settings
from projectrepo.exceptions import (
    ConflictError,
    DatabaseError,
    PermissionDeniedError,
    ValidationError,
)
from projectrepo.models.enums import UserRole
from projectrepo.models.user import ClasslistEntry, PendingRegistration, User, utcnow
from projectrepo.schemas.auth import (
    RegisterStartRequest,
    RegisterStartResponse,
    RegisterVerifyRequest,
    SessionUser,
)
from projectrepo.security import get_password_hash
from projectrepo.services.email_templates import otp_email
from projectrepo.services.mailer import Mailer, mailer as default_mailer

logger = logging.getLogger(__name__)

INVALID_OTP_MESSAGE = "Invalid or expired OTP."
NOT_ON_CLASSLIST_MESSAGE = "Matricule not found or not authorized."


def generate_otp(length: int = 6) -> str:
    """Uniformly random, zero-padded numeric code."""
    return f"{secrets.randbelow(10 ** length):0{length}d}"


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class RegistrationService:
    """
    Args:
        mailer: Transport for the code email.
        now:    Clock returning an aware UTC datetime (overridden in tests).
    """

    def __init__(self, mailer: Mailer, now: Callable[[], datetime] = utcnow):
        self.mailer = mailer
        self.now = now

    async def _classlist_entry(self, db: AsyncSession, matricule: str) -> Optional[ClasslistEntry]:
        result = await db.execute(select(ClasslistEntry).where(ClasslistEntry.matricule == matricule))
        return result.scalar_one_or_none()

    async def _user_exists(self, db: AsyncSession, matricule: str) -> bool:
        result = await db.execute(select(User.id).where(User.matricule == matricule))
        return result.scalar_one_or_none() is not None

    async def _find_pending(self, db: AsyncSession, matricule: str) -> Optional[PendingRegistration]:
        result = await db.execute(
            select(PendingRegistration).where(PendingRegistration.matricule == matricule)
        )
        return result.scalar_one_or_none()

    async def _store_pending(self, db: AsyncSession, matricule: str, **values) -> None:
        """
        Insert or overwrite the single pending row for `matricule`.

        A concurrent start can insert the row between our lookup and our
        commit; the unique constraint then fails and the second attempt
        updates that row instead, so the latest request wins.
        """
        for attempt in range(2):
            pending = await self._find_pending(db, matricule)
            if pending is None:
                pending = PendingRegistration(matricule=matricule)
                db.add(pending)
            for key, value in values.items():
                setattr(pending, key, value)

            try:
                await db.commit()
                return
            except IntegrityError:
                await db.rollback()
                if attempt == 0:
                    logger.info("Concurrent registration start for %s; updating the existing record", matricule)
                    continue
                logger.error("Pending registration for %s kept conflicting", matricule)
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error("Failed to store pending registration: %s", str(e))
            raise DatabaseError(message="Could not start registration. Please try again.")

    async def start(self, db: AsyncSession, request: RegisterStartRequest) -> RegisterStartResponse:
        """
        Raises:
            PermissionDeniedError: matricule is not on the classlist (403).
            ConflictError: an account already uses the matricule (409).
        """
        entry = await self._classlist_entry(db, request.matricule)
        if entry is None:
            logger.info("Registration refused: matricule not on classlist")
            raise PermissionDeniedError(NOT_ON_CLASSLIST_MESSAGE)

        if await self._user_exists(db, request.matricule):
            raise ConflictError("An account with this matricule already exists.")

        otp = generate_otp(settings.otp_length)
        expires_at = self.now() + timedelta(minutes=settings.otp_ttl_minutes)
        await self._store_pending(
            db,
            matricule=request.matricule,
            name=request.name,
            password_hash=get_password_hash(request.password),
            otp=otp,
            expires_at=expires_at,
        )

        subject, html = otp_email(entry.student_name, otp, settings.otp_ttl_minutes)
        if not await self.mailer.send(entry.student_email, subject, html):
            logger.warning("Verification code for %s could not be delivered", request.matricule)

        logger.info("Registration started for %s (expires %s)", request.matricule, expires_at.isoformat())
        return RegisterStartResponse(expires_in_minutes=settings.otp_ttl_minutes)

    async def verify(self, db: AsyncSession, request: RegisterVerifyRequest) -> SessionUser:
        """
        Consume a pending registration and create the STUDENT account.

        Raises:
            ValidationError("Invalid or expired OTP."): no record, wrong code,
                expired, or the matricule left the classlist since start().
            ConflictError: an account with the matricule was created meanwhile.
        """
        pending = await self._find_pending(db, request.matricule)

        if pending is None:
            raise ValidationError(INVALID_OTP_MESSAGE, field="otp")
        if self.now() >= _as_utc(pending.expires_at):
            logger.info("Expired verification code used for %s", request.matricule)
            raise ValidationError(INVALID_OTP_MESSAGE, field="otp")
        if not hmac.compare_digest(pending.otp.encode("utf-8"), request.otp.encode("utf-8")):
            logger.info("Wrong verification code for %s", request.matricule)
            raise ValidationError(INVALID_OTP_MESSAGE, field="otp")

        entry = await self._classlist_entry(db, request.matricule)
        if entry is None:
            logger.info("Registration for %s dropped: no longer on the classlist", request.matricule)
            await db.delete(pending)
            await db.commit()
            raise ValidationError(INVALID_OTP_MESSAGE, field="otp")

        if await self._user_exists(db, request.matricule):
            raise ConflictError("An account with this matricule already exists.")

        user = User(
            matricule=pending.matricule,
            name=pending.name,
            email=entry.student_email,
            password_hash=pending.password_hash,
            role=UserRole.STUDENT.value,
        )
        db.add(user)
        await db.delete(pending)

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("An account with this matricule or email already exists.")
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to complete registration: %s", str(e))
            raise DatabaseError(message="Could not complete registration. Please try again.")

        logger.info("Registration completed: user %s (%s)", user.id, user.matricule)
        return SessionUser(id=user.id, name=user.name, role=UserRole.STUDENT, matricule=user.matricule)


# ── Singleton Instance ────────────────────────────────────────────────────
registration_service = RegistrationService(mailer=default_mailer)
