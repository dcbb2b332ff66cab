"""
ProjectRepo Backend - Administration Service
=============================================

What:  Account management and classlist curation for ADMIN users.
Who:   /api/admin/* route handlers (role checked by the router dependency).

Uniqueness:
    Matricule and email are unique for users; matricule and student_email
    are unique on the classlist. Duplicates are checked up front for a
    friendly message, and the database constraint is the final word
    (IntegrityError -> ConflictError).
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from projectrepo.exceptions import ConflictError, DatabaseError, NotFoundError, ValidationError
from projectrepo.models.enums import ProjectStatus, UserRole
from projectrepo.models.project import Project
from projectrepo.models.user import ClasslistEntry, User
from projectrepo.schemas.admin import (
    ClasslistEntryRequest,
    ClasslistEntryResponse,
    PasswordResetRequest,
    UserCreateRequest,
    UserResponse,
    UserUpdateRequest,
)
from projectrepo.schemas.project import ProjectSummary
from projectrepo.security import RequestContext, get_password_hash
from projectrepo.services.project_service import ProjectService, project_service

logger = logging.getLogger(__name__)


class AdminService:

    def __init__(self, projects: ProjectService = project_service):
        self.projects = projects

    async def _flush(self, db: AsyncSession, conflict_message: str) -> None:
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError(conflict_message)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Admin write failed: %s", str(e), exc_info=True)
            raise DatabaseError()

    # ── Users ─────────────────────────────────────────────────────────────

    async def _get_user(self, db: AsyncSession, user_id: UUID) -> User:
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    async def list_users(self, db: AsyncSession) -> List[UserResponse]:
        result = await db.execute(select(User).order_by(User.name.asc()))
        return [UserResponse.model_validate(u) for u in result.scalars().all()]

    async def get_user(self, db: AsyncSession, user_id: UUID) -> UserResponse:
        return UserResponse.model_validate(await self._get_user(db, user_id))

    async def create_user(self, db: AsyncSession, request: UserCreateRequest) -> UserResponse:
        """
        Create an account of any role.

        Raises:
            ConflictError: matricule or email already in use.
        """
        conditions = [User.matricule == request.matricule]
        if request.email:
            conditions.append(User.email == request.email)
        existing = await db.execute(select(User.id).where(or_(*conditions)))
        if existing.first() is not None:
            raise ConflictError("A user with this matricule or email already exists.")

        user = User(
            name=request.name,
            matricule=request.matricule,
            email=request.email,
            role=request.role.value,
            password_hash=get_password_hash(request.password),
        )
        db.add(user)
        await self._flush(db, "A user with this matricule or email already exists.")
        logger.info("Admin created user %s (role=%s)", user.id, user.role)
        return UserResponse.model_validate(user)

    async def update_user(self, db: AsyncSession, user_id: UUID, request: UserUpdateRequest) -> UserResponse:
        """
        Applies only the fields present in the request body.

        Raises:
            ConflictError: email taken, or demoting a supervisor with drafts awaiting review.
        """
        user = await self._get_user(db, user_id)
        fields = request.model_fields_set

        demoting_supervisor = (
            "role" in fields
            and request.role is not None
            and user.role == UserRole.SUPERVISOR.value
            and request.role != UserRole.SUPERVISOR
        )
        if demoting_supervisor:
            result = await db.execute(
                select(func.count(Project.id)).where(
                    Project.supervisor_id == user_id,
                    Project.status == ProjectStatus.PENDING_REVIEW.value,
                )
            )
            if (result.scalar() or 0) > 0:
                raise ConflictError(
                    "This supervisor still has drafts awaiting review and cannot change role.",
                    context={"user_id": str(user_id)},
                )

        if "email" in fields and request.email and request.email != user.email:
            taken = await db.execute(select(User.id).where(User.email == request.email, User.id != user_id))
            if taken.first() is not None:
                raise ConflictError("This email is already used by another account.")

        if "name" in fields and request.name:
            user.name = request.name
        if "email" in fields:
            user.email = request.email
        if "role" in fields and request.role is not None and request.role.value != user.role:
            logger.info("Role of user %s changed: %s -> %s", user.id, user.role, request.role.value)
            user.role = request.role.value

        await self._flush(db, "This email is already used by another account.")
        return UserResponse.model_validate(user)

    async def reset_password(self, db: AsyncSession, user_id: UUID, request: PasswordResetRequest) -> None:
        user = await self._get_user(db, user_id)
        user.password_hash = get_password_hash(request.password)
        await self._flush(db, "Password could not be updated.")
        logger.info("Password reset for user %s", user.id)

    async def delete_user(self, db: AsyncSession, context: RequestContext, user_id: UUID) -> None:
        """
        Raises:
            ValidationError: an admin deleting their own account.
            ConflictError: the user still owns or supervises projects.
        """
        if user_id == context.id:
            raise ValidationError("You cannot delete your own account.", field="user_id")
        user = await self._get_user(db, user_id)

        result = await db.execute(
            select(func.count(Project.id)).where(
                or_(Project.student_id == user_id, Project.supervisor_id == user_id)
            )
        )
        if (result.scalar() or 0) > 0:
            raise ConflictError(
                "This user still owns or supervises projects and cannot be deleted.",
                context={"user_id": str(user_id)},
            )

        await db.delete(user)
        await self._flush(db, "This user is still referenced and cannot be deleted.")
        logger.info("Admin %s deleted user %s", context.id, user_id)

    # ── Classlist ─────────────────────────────────────────────────────────

    async def _get_entry(self, db: AsyncSession, entry_id: UUID) -> ClasslistEntry:
        result = await db.execute(select(ClasslistEntry).where(ClasslistEntry.id == entry_id))
        entry = result.scalar_one_or_none()
        if entry is None:
            raise NotFoundError(resource="classlist entry", resource_id=str(entry_id))
        return entry

    async def _check_entry_unique(self, db: AsyncSession, request: ClasslistEntryRequest, exclude_id=None) -> None:
        query = select(ClasslistEntry.id).where(
            or_(
                ClasslistEntry.matricule == request.matricule,
                ClasslistEntry.student_email == request.student_email,
            )
        )
        if exclude_id is not None:
            query = query.where(ClasslistEntry.id != exclude_id)
        result = await db.execute(query)
        if result.first() is not None:
            raise ConflictError("A classlist entry with this matricule or email already exists.")

    async def list_classlist(self, db: AsyncSession) -> List[ClasslistEntryResponse]:
        result = await db.execute(select(ClasslistEntry).order_by(ClasslistEntry.student_name.asc()))
        return [ClasslistEntryResponse.model_validate(e) for e in result.scalars().all()]

    async def create_classlist_entry(self, db: AsyncSession, request: ClasslistEntryRequest) -> ClasslistEntryResponse:
        await self._check_entry_unique(db, request)
        entry = ClasslistEntry(
            matricule=request.matricule,
            student_name=request.student_name,
            student_email=request.student_email,
        )
        db.add(entry)
        await self._flush(db, "A classlist entry with this matricule or email already exists.")
        logger.info("Classlist entry added: %s", entry.matricule)
        return ClasslistEntryResponse.model_validate(entry)

    async def update_classlist_entry(
        self, db: AsyncSession, entry_id: UUID, request: ClasslistEntryRequest
    ) -> ClasslistEntryResponse:
        entry = await self._get_entry(db, entry_id)
        await self._check_entry_unique(db, request, exclude_id=entry_id)
        entry.matricule = request.matricule
        entry.student_name = request.student_name
        entry.student_email = request.student_email
        await self._flush(db, "A classlist entry with this matricule or email already exists.")
        return ClasslistEntryResponse.model_validate(entry)

    async def delete_classlist_entry(self, db: AsyncSession, entry_id: UUID) -> None:
        entry = await self._get_entry(db, entry_id)
        await db.delete(entry)
        await self._flush(db, "This classlist entry cannot be deleted.")
        logger.info("Classlist entry removed: %s", entry.matricule)

    # ── Projects ──────────────────────────────────────────────────────────

    async def list_projects(self, db: AsyncSession) -> List[ProjectSummary]:
        return await self.projects.list_all(db)


# ── Singleton Instance ────────────────────────────────────────────────────
admin_service = AdminService()
