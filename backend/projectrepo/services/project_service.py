"""
ProjectRepo Backend - Project Service (Business Logic Orchestrator)
====================================================================

What:  Every operation on projects: lifecycle actions, reads with view and
       download tracking, listings and repository search.
How:   Composes FileService, NotificationService and a Mailer around the
       lifecycle table in `projectrepo.services.lifecycle`.
Who:   Called by the projects, supervisors and admin route handlers.

Action Flow (submit / approve / reject / resubmit / publish):
    ┌──────────┐    ┌──────────────┐    ┌──────────────┐    ┌─────────────┐
    │  Authz   │───▶│  Validate &  │───▶│ Conditional  │───▶│ Notify &    │
    │ (role,   │    │  store file  │    │ UPDATE +     │    │ email       │
    │  owner)  │    │ (FileServ)   │    │ commit       │    │ (best-effort)│
    └──────────┘    └──────────────┘    └──────────────┘    └─────────────┘

    - Role mismatch            → AuthenticationError (401)
    - Not owner / not assigned → PermissionDeniedError (403)
    - Status not in the table  → InvalidTransitionError (403)
    - The UPDATE is guarded by `status = <expected>`; losing a race to
      another writer is reported as an invalid transition.
    - A file stored for an action that then fails is removed again.
    - Notifications and emails run after the commit; their failures are
      logged and never undo the transition.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import distinct, extract, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from projectrepo.exceptions import (
    AuthenticationError,
    DatabaseError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ProjectRepoError,
    ValidationError,
)
from projectrepo.models.enums import ProjectStatus, UserRole
from projectrepo.models.project import Comment, Project
from projectrepo.models.user import User, utcnow
from projectrepo.schemas.project import (
    CommentResponse,
    ProjectActionResponse,
    ProjectDetail,
    ProjectListResponse,
    ProjectSummary,
    RepositoryFilters,
    SupervisorOption,
)
from projectrepo.security import RequestContext
from projectrepo.services.email_templates import (
    published_email,
    status_update_email,
    submission_email,
)
from projectrepo.services.file_service import DRAFT_FOLDER, FINAL_FOLDER, FileService, file_service
from projectrepo.services.lifecycle import ProjectAction, actor_role, allowed_actions, next_status
from projectrepo.services.mailer import Mailer, mailer as default_mailer
from projectrepo.services.notification_service import NotificationService, notification_service

logger = logging.getLogger(__name__)

MIN_TITLE_LENGTH = 10
MIN_ABSTRACT_LENGTH = 20
APPROVAL_COMMENT_PREFIX = "[APPROVAL COMMENT]\n"
LIKE_ESCAPE = "\\"

Student = aliased(User, name="student")
Supervisor = aliased(User, name="supervisor")


def file_url(ref: Optional[str]) -> Optional[str]:
    return f"/api/files/{ref}" if ref else None


def _contains_pattern(term: str) -> str:
    """LIKE pattern matching `term` literally; `%` and `_` in user input are not wildcards."""
    escaped = term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
    for wildcard in ("%", "_"):
        escaped = escaped.replace(wildcard, LIKE_ESCAPE + wildcard)
    return f"%{escaped}%"


def _listing_query():
    """Projects joined with their student's and supervisor's display names."""
    return (
        select(Project, Student.name, Supervisor.name)
        .join(Student, Project.student_id == Student.id)
        .outerjoin(Supervisor, Project.supervisor_id == Supervisor.id)
    )


def _may_act(context: RequestContext, project: Project, action: ProjectAction) -> bool:
    if context.role != actor_role(action):
        return False
    if context.role == UserRole.STUDENT:
        return project.student_id == context.id
    return project.supervisor_id == context.id


def actions_for(context: RequestContext, project: Project) -> List[str]:
    """Lifecycle actions the caller may take on the project right now."""
    return [
        action.value
        for action in allowed_actions(project.status)
        if _may_act(context, project, action)
    ]


def _summary(
    project: Project,
    student_name: Optional[str],
    supervisor_name: Optional[str],
    context: Optional[RequestContext] = None,
) -> ProjectSummary:
    return ProjectSummary(
        id=project.id,
        title=project.title,
        report_type=project.report_type,
        status=ProjectStatus(project.status),
        student_id=project.student_id,
        student_name=student_name,
        supervisor_id=project.supervisor_id,
        supervisor_name=supervisor_name,
        view_count=project.view_count,
        download_count=project.download_count,
        created_at=project.created_at,
        updated_at=project.updated_at,
        published_at=project.published_at,
        allowed_actions=actions_for(context, project) if context else [],
    )


class ProjectService:
    """
    Args:
        mailer:        Email transport for review notices.
        files:         Storage for draft and final PDFs.
        notifications: In-app notice writer.
    """

    def __init__(
        self,
        mailer: Mailer,
        files: FileService,
        notifications: NotificationService = notification_service,
    ):
        self.mailer = mailer
        self.files = files
        self.notifications = notifications

    # ══════════════════════════════════════════════════════════════════════
    # Internal helpers
    # ══════════════════════════════════════════════════════════════════════

    @staticmethod
    def _require_role(context: RequestContext, role: UserRole) -> None:
        if context.role != role:
            raise AuthenticationError(f"This action requires the {role.value} role.")

    @staticmethod
    def _can_see_unpublished(context: RequestContext, project: Project) -> bool:
        return context.is_admin or context.id in (project.student_id, project.supervisor_id)

    async def _get_project(self, db: AsyncSession, project_id: UUID) -> Project:
        result = await db.execute(select(Project).where(Project.id == project_id))
        project = result.scalar_one_or_none()
        if project is None:
            raise NotFoundError(resource="project", resource_id=str(project_id))
        return project

    async def _get_user(self, db: AsyncSession, user_id: Optional[UUID]) -> Optional[User]:
        if user_id is None:
            return None
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def _owned_project(self, db: AsyncSession, context: RequestContext, project_id: UUID) -> Project:
        project = await self._get_project(db, project_id)
        if project.student_id != context.id:
            raise PermissionDeniedError("You are not authorized to perform this action on this project.")
        return project

    async def _assigned_project(self, db: AsyncSession, context: RequestContext, project_id: UUID) -> Project:
        project = await self._get_project(db, project_id)
        if project.supervisor_id != context.id:
            raise PermissionDeniedError("You are not the assigned supervisor for this project.")
        return project

    async def _transition(
        self,
        db: AsyncSession,
        project: Project,
        action: ProjectAction,
        **values: Any,
    ) -> ProjectStatus:
        """
        Apply one lifecycle edge with a conditional UPDATE.

        Raises:
            InvalidTransitionError: the edge does not exist, or another writer
                changed the status first (zero rows matched).
        """
        expected = project.status
        target = next_status(expected, action)
        result = await db.execute(
            update(Project)
            .where(Project.id == project.id, Project.status == expected)
            .values(status=target.value, updated_at=utcnow(), **values)
        )
        if result.rowcount == 0:
            logger.warning("Lost status race on project %s (%s from %s)", project.id, action.value, expected)
            raise InvalidTransitionError(current_status=expected, action=action.value)
        logger.info("Project %s: %s -> %s (%s)", project.id, expected, target.value, action.value)
        return target

    async def _commit(self, db: AsyncSession, what: str) -> None:
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Commit failed while %s: %s", what, str(e), exc_info=True)
            raise DatabaseError(context={"operation": what})

    async def _email(self, user: Optional[User], message: Optional[Tuple[str, str]]) -> None:
        if user is None or message is None:
            return
        if not user.email:
            logger.info("No email address on file for user %s; email skipped", user.id)
            return
        subject, html = message
        await self.mailer.send(user.email, subject, html)

    @staticmethod
    def _validate_submission_text(title: Optional[str], abstract: Optional[str]) -> Tuple[str, str]:
        title = (title or "").strip()
        abstract = (abstract or "").strip()
        if len(title) < MIN_TITLE_LENGTH:
            raise ValidationError(
                f"Title must be at least {MIN_TITLE_LENGTH} characters long.", field="title"
            )
        if len(abstract) < MIN_ABSTRACT_LENGTH:
            raise ValidationError(
                f"Abstract must be at least {MIN_ABSTRACT_LENGTH} characters long.", field="abstract"
            )
        return title, abstract

    @staticmethod
    def _require_file(filename: Optional[str], content: Optional[bytes]) -> None:
        if not filename or content is None:
            raise ValidationError("A PDF file is required.", field="file")

    # ══════════════════════════════════════════════════════════════════════
    # Lifecycle actions
    # ══════════════════════════════════════════════════════════════════════

    async def submit(
        self,
        db: AsyncSession,
        context: RequestContext,
        title: Optional[str],
        abstract: Optional[str],
        supervisor_id: Optional[UUID],
        filename: Optional[str],
        content: Optional[bytes],
        content_length: Optional[int] = None,
        report_type: Optional[str] = None,
    ) -> ProjectActionResponse:
        """
        Create a project and send it straight to review.

        Workflow Steps:
            1. Role, title, abstract and supervisor checks (no writes yet)
            2. Store the draft PDF
            3. Insert the project in the status DRAFT --SUBMIT--> yields
            4. Commit; on failure remove the stored file
            5. Notify and email the supervisor

        Raises:
            AuthenticationError: caller is not a STUDENT.
            ValidationError: short title/abstract, unknown supervisor, missing or non-PDF file.
            DatabaseError: insert failed.
        """
        self._require_role(context, UserRole.STUDENT)
        title, abstract = self._validate_submission_text(title, abstract)

        supervisor = await self._get_user(db, supervisor_id)
        if supervisor is None or supervisor.role != UserRole.SUPERVISOR.value:
            raise ValidationError("Please select a valid supervisor.", field="supervisor_id")
        self._require_file(filename, content)

        status = next_status(ProjectStatus.DRAFT.value, ProjectAction.SUBMIT)
        ref = await self.files.upload(filename, content, DRAFT_FOLDER, content_length)

        project = Project(
            title=title,
            abstract=abstract,
            report_type=(report_type or "").strip().upper() or None,
            student_id=context.id,
            supervisor_id=supervisor.id,
            status=status.value,
            draft_file_ref=ref,
        )
        try:
            db.add(project)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            await self.files.cleanup_ref(ref)
            logger.error("Failed to create project: %s", str(e), exc_info=True)
            raise DatabaseError(message="Failed to submit the project. Please try again.")

        logger.info("Project %s submitted by %s to supervisor %s", project.id, context.id, supervisor.id)

        await self.notifications.notify(
            db,
            supervisor.id,
            f'Student {context.name} has submitted a draft for the project "{title}".',
            f"/projects/{project.id}/review",
        )
        await self._email(supervisor, submission_email(context.name, title, project.id))

        return ProjectActionResponse(
            message="Project submitted for review.", project_id=project.id, status=status
        )

    async def approve(
        self,
        db: AsyncSession,
        context: RequestContext,
        project_id: UUID,
        comment: Optional[str] = None,
    ) -> ProjectActionResponse:
        """PENDING_REVIEW -> APPROVED_FOR_FINAL; an optional comment is stored with the change."""
        self._require_role(context, UserRole.SUPERVISOR)
        project = await self._assigned_project(db, context, project_id)
        title, student_id = project.title, project.student_id

        status = await self._transition(db, project, ProjectAction.APPROVE)
        note = (comment or "").strip()
        if note:
            db.add(Comment(project_id=project_id, author_id=context.id, content=APPROVAL_COMMENT_PREFIX + note))
        await self._commit(db, "approving a project")

        student = await self._get_user(db, student_id)
        await self.notifications.notify(
            db,
            student_id,
            f'Your draft for "{title}" has been APPROVED. You can now upload the final version.',
            "/my-projects",
        )
        if student:
            await self._email(
                student, status_update_email(student.name, title, ProjectStatus.APPROVED_FOR_FINAL)
            )

        return ProjectActionResponse(message="Project approved.", project_id=project_id, status=status)

    async def reject(
        self,
        db: AsyncSession,
        context: RequestContext,
        project_id: UUID,
        comments: Optional[str],
    ) -> ProjectActionResponse:
        """
        PENDING_REVIEW -> REJECTED with mandatory feedback.

        The status change and the feedback Comment are one transaction:
        both are committed together or the whole unit is rolled back.

        Raises:
            ValidationError: blank feedback (checked before any write).
        """
        self._require_role(context, UserRole.SUPERVISOR)
        feedback = (comments or "").strip()
        if not feedback:
            raise ValidationError("Rejection comments are required.", field="comments")

        project = await self._assigned_project(db, context, project_id)
        title, student_id = project.title, project.student_id

        try:
            status = await self._transition(db, project, ProjectAction.REJECT)
            db.add(Comment(project_id=project_id, author_id=context.id, content=feedback))
            await db.commit()
        except Exception as e:
            await db.rollback()
            if isinstance(e, ProjectRepoError):
                raise
            logger.error("Reject of project %s rolled back: %s", project_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to reject the project. Please try again.",
                context={"project_id": str(project_id), "error_type": type(e).__name__},
            )

        student = await self._get_user(db, student_id)
        await self.notifications.notify(
            db,
            student_id,
            f'Your draft for "{title}" requires revisions. See your supervisor\'s comments.',
            "/my-projects",
        )
        if student:
            await self._email(
                student, status_update_email(student.name, title, ProjectStatus.REJECTED, feedback)
            )

        return ProjectActionResponse(message="Project rejected.", project_id=project_id, status=status)

    async def resubmit(
        self,
        db: AsyncSession,
        context: RequestContext,
        project_id: UUID,
        filename: Optional[str],
        content: Optional[bytes],
        content_length: Optional[int] = None,
    ) -> ProjectActionResponse:
        """REJECTED -> PENDING_REVIEW with a new draft PDF replacing the previous one."""
        self._require_role(context, UserRole.STUDENT)
        project = await self._owned_project(db, context, project_id)
        next_status(project.status, ProjectAction.RESUBMIT)
        self._require_file(filename, content)
        title, supervisor_id = project.title, project.supervisor_id

        ref = await self.files.upload(filename, content, DRAFT_FOLDER, content_length)
        try:
            status = await self._transition(db, project, ProjectAction.RESUBMIT, draft_file_ref=ref)
            await db.commit()
        except Exception as e:
            await db.rollback()
            await self.files.cleanup_ref(ref)
            if isinstance(e, ProjectRepoError):
                raise
            logger.error("Resubmit of project %s failed: %s", project_id, str(e), exc_info=True)
            raise DatabaseError(message="Failed to resubmit the project. Please try again.")

        supervisor = await self._get_user(db, supervisor_id)
        await self.notifications.notify(
            db,
            supervisor_id,
            f'Student {context.name} has resubmitted a draft for the project "{title}".',
            f"/projects/{project_id}/review",
        )
        await self._email(supervisor, submission_email(context.name, title, project_id))

        return ProjectActionResponse(message="Project resubmitted for review.", project_id=project_id, status=status)

    async def publish_final(
        self,
        db: AsyncSession,
        context: RequestContext,
        project_id: UUID,
        filename: Optional[str] = None,
        content: Optional[bytes] = None,
        content_length: Optional[int] = None,
    ) -> ProjectActionResponse:
        """
        APPROVED_FOR_FINAL -> PUBLISHED.

        An uploaded PDF becomes the final report; without one the approved
        draft is published as-is. An empty upload is rejected like any
        other invalid file.
        """
        self._require_role(context, UserRole.STUDENT)
        project = await self._owned_project(db, context, project_id)
        next_status(project.status, ProjectAction.PUBLISH_FINAL)
        title, supervisor_id, draft_ref = project.title, project.supervisor_id, project.draft_file_ref

        uploaded_ref: Optional[str] = None
        if content is not None:
            uploaded_ref = await self.files.upload(filename or "final.pdf", content, FINAL_FOLDER, content_length)
        elif not draft_ref:
            raise ValidationError("No approved draft found to publish as final.", field="file")

        try:
            status = await self._transition(
                db,
                project,
                ProjectAction.PUBLISH_FINAL,
                final_file_ref=uploaded_ref or draft_ref,
                published_at=utcnow(),
            )
            await db.commit()
        except Exception as e:
            await db.rollback()
            if uploaded_ref:
                await self.files.cleanup_ref(uploaded_ref)
            if isinstance(e, ProjectRepoError):
                raise
            logger.error("Publishing project %s failed: %s", project_id, str(e), exc_info=True)
            raise DatabaseError(message="Failed to publish final report.")

        supervisor = await self._get_user(db, supervisor_id)
        await self.notifications.notify(
            db,
            supervisor_id,
            f'{context.name} has published the final report for "{title}".',
            f"/projects/{project_id}",
        )
        if supervisor:
            await self._email(supervisor, published_email(supervisor.name, context.name, title, project_id))

        return ProjectActionResponse(
            message="Final report published successfully.", project_id=project_id, status=status
        )

    # ══════════════════════════════════════════════════════════════════════
    # Reads with tracking
    # ══════════════════════════════════════════════════════════════════════

    async def _increment(self, db: AsyncSession, project_id: UUID, column: str) -> bool:
        """Best-effort `column = column + 1` on a PUBLISHED project."""
        counter = getattr(Project, column)
        try:
            result = await db.execute(
                update(Project)
                .where(Project.id == project_id, Project.status == ProjectStatus.PUBLISHED.value)
                .values({column: counter + 1})
                .execution_options(synchronize_session=False)
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning("Failed to increment %s for project %s: %s", column, project_id, str(e))
            return False
        return result.rowcount == 1

    async def list_comments(
        self, db: AsyncSession, context: RequestContext, project_id: UUID
    ) -> List[CommentResponse]:
        project = await self._get_project(db, project_id)
        if not self._can_see_unpublished(context, project):
            raise PermissionDeniedError("You are not authorized to view comments on this project.")
        return await self._comments(db, project_id)

    async def _comments(self, db: AsyncSession, project_id: UUID) -> List[CommentResponse]:
        result = await db.execute(
            select(Comment, User.name)
            .outerjoin(User, Comment.author_id == User.id)
            .where(Comment.project_id == project_id)
            .order_by(Comment.created_at.asc())
        )
        return [
            CommentResponse(
                id=c.id,
                author_id=c.author_id,
                author_name=author_name,
                content=c.content,
                created_at=c.created_at,
            )
            for c, author_name in result.all()
        ]

    async def get_project(self, db: AsyncSession, context: RequestContext, project_id: UUID) -> ProjectDetail:
        """
        Project detail. Reading a PUBLISHED project counts one view.

        Unpublished projects exist only for their student, their supervisor
        and admins; everyone else gets 404.
        """
        result = await db.execute(_listing_query().where(Project.id == project_id))
        row = result.first()
        if row is None:
            raise NotFoundError(resource="project", resource_id=str(project_id))
        project, student_name, supervisor_name = row

        privileged = self._can_see_unpublished(context, project)
        published = project.status == ProjectStatus.PUBLISHED.value
        if not published and not privileged:
            raise NotFoundError(resource="project", resource_id=str(project_id))

        summary = _summary(project, student_name, supervisor_name, context)
        detail = ProjectDetail(
            **summary.model_dump(),
            abstract=project.abstract,
            draft_url=file_url(project.draft_file_ref) if privileged else None,
            final_url=file_url(project.final_file_ref),
            comments=await self._comments(db, project_id) if privileged else [],
        )

        if published and await self._increment(db, project_id, "view_count"):
            detail.view_count += 1
        return detail

    async def download(self, db: AsyncSession, context: RequestContext, project_id: UUID) -> str:
        """
        Returns the URL to redirect to. Downloads of a PUBLISHED project's final
        report are counted; owners and reviewers fetching an unpublished draft are not.
        """
        project = await self._get_project(db, project_id)
        if project.status == ProjectStatus.PUBLISHED.value:
            ref = project.final_file_ref or project.draft_file_ref
            await self._increment(db, project_id, "download_count")
        elif self._can_see_unpublished(context, project):
            ref = project.draft_file_ref
        else:
            raise NotFoundError(resource="project", resource_id=str(project_id))

        if not ref:
            raise NotFoundError(resource="file", resource_id=str(project_id))
        return file_url(ref)

    # ══════════════════════════════════════════════════════════════════════
    # Listings
    # ══════════════════════════════════════════════════════════════════════

    async def _list(self, db: AsyncSession, query, context: Optional[RequestContext] = None) -> List[ProjectSummary]:
        try:
            result = await db.execute(query)
        except SQLAlchemyError as e:
            logger.error("Database error listing projects: %s", str(e), exc_info=True)
            raise DatabaseError(message="Could not retrieve projects. Please try again.")
        return [_summary(p, s, sv, context) for p, s, sv in result.all()]

    async def my_projects(self, db: AsyncSession, context: RequestContext) -> List[ProjectSummary]:
        self._require_role(context, UserRole.STUDENT)
        query = (
            _listing_query()
            .where(Project.student_id == context.id)
            .order_by(Project.updated_at.desc())
        )
        return await self._list(db, query, context)

    async def review_queue(self, db: AsyncSession, context: RequestContext) -> List[ProjectSummary]:
        """Drafts waiting for the calling supervisor, oldest submission first."""
        self._require_role(context, UserRole.SUPERVISOR)
        query = (
            _listing_query()
            .where(
                Project.supervisor_id == context.id,
                Project.status == ProjectStatus.PENDING_REVIEW.value,
            )
            .order_by(Project.updated_at.asc())
        )
        return await self._list(db, query, context)

    async def pending_review_count(self, db: AsyncSession, context: RequestContext) -> int:
        self._require_role(context, UserRole.SUPERVISOR)
        result = await db.execute(
            select(func.count(Project.id)).where(
                Project.supervisor_id == context.id,
                Project.status == ProjectStatus.PENDING_REVIEW.value,
            )
        )
        return result.scalar() or 0

    async def supervised(self, db: AsyncSession, context: RequestContext) -> List[ProjectSummary]:
        self._require_role(context, UserRole.SUPERVISOR)
        query = (
            _listing_query()
            .where(
                Project.supervisor_id == context.id,
                Project.status == ProjectStatus.PUBLISHED.value,
            )
            .order_by(Project.published_at.desc())
        )
        return await self._list(db, query, context)

    async def list_all(self, db: AsyncSession) -> List[ProjectSummary]:
        """Every project, newest first (admin overview)."""
        return await self._list(db, _listing_query().order_by(Project.created_at.desc()))

    async def search_repository(
        self,
        db: AsyncSession,
        q: Optional[str] = None,
        supervisor_id: Optional[UUID] = None,
        year: Optional[int] = None,
    ) -> ProjectListResponse:
        """
        Search PUBLISHED projects, newest publication first.

        `q` matches title, student name or supervisor name (case-insensitive);
        a four-digit `q` also matches the publication year.
        """
        query = _listing_query().where(Project.status == ProjectStatus.PUBLISHED.value)

        term = (q or "").strip()
        if term:
            pattern = _contains_pattern(term)
            conditions = [
                Project.title.ilike(pattern, escape=LIKE_ESCAPE),
                Student.name.ilike(pattern, escape=LIKE_ESCAPE),
                Supervisor.name.ilike(pattern, escape=LIKE_ESCAPE),
            ]
            if len(term) == 4 and term.isdigit():
                conditions.append(extract("year", Project.published_at) == int(term))
            query = query.where(or_(*conditions))

        if supervisor_id:
            query = query.where(Project.supervisor_id == supervisor_id)
        if year:
            query = query.where(extract("year", Project.published_at) == year)

        projects = await self._list(db, query.order_by(Project.published_at.desc()))
        return ProjectListResponse(projects=projects, total_count=len(projects))

    async def list_supervisors(self, db: AsyncSession) -> List[SupervisorOption]:
        result = await db.execute(
            select(User.id, User.name)
            .where(User.role == UserRole.SUPERVISOR.value)
            .order_by(User.name.asc())
        )
        return [SupervisorOption(id=uid, name=name) for uid, name in result.all()]

    async def repository_filters(self, db: AsyncSession) -> RepositoryFilters:
        year_expr = extract("year", Project.published_at)
        result = await db.execute(
            select(distinct(year_expr)).where(
                Project.status == ProjectStatus.PUBLISHED.value,
                Project.published_at.is_not(None),
            )
        )
        years = sorted({int(y) for (y,) in result.all() if y is not None}, reverse=True)
        return RepositoryFilters(supervisors=await self.list_supervisors(db), years=years)


# ── Singleton Instance ────────────────────────────────────────────────────
project_service = ProjectService(mailer=default_mailer, files=file_service)
