"""
ProjectRepo Backend - Notification Service
===========================================

What:  In-app notices for project events, and the caller's inbox.
Who:   ProjectService (writes after each committed transition);
       notifications routes (inbox reads, mark-read).

Write semantics:
    `notify` runs after the transition it reports has been committed, in its
    own commit. A failed insert is logged and rolled back; it never undoes
    or fails the transition.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import desc, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from projectrepo.exceptions import DatabaseError
from projectrepo.models.notification import Notification
from projectrepo.schemas.notification import NotificationResponse

logger = logging.getLogger(__name__)

INBOX_LIMIT = 20


class NotificationService:

    async def notify(
        self,
        db: AsyncSession,
        recipient_id: Optional[UUID],
        message: str,
        link: Optional[str] = None,
    ) -> bool:
        """
        Best-effort insert of one notification.

        Returns:
            True when the row was committed, False otherwise (including when
            there is no recipient, e.g. a project whose supervisor was removed).
        """
        if recipient_id is None:
            logger.info("Notification skipped (no recipient): %s", message)
            return False
        try:
            db.add(Notification(recipient_id=recipient_id, message=message, link=link))
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to create notification for %s: %s", recipient_id, str(e))
            return False
        return True

    async def list_for(self, db: AsyncSession, recipient_id: UUID) -> List[NotificationResponse]:
        """The latest notifications for a user, newest first."""
        try:
            result = await db.execute(
                select(Notification)
                .where(Notification.recipient_id == recipient_id)
                .order_by(desc(Notification.created_at))
                .limit(INBOX_LIMIT)
            )
        except SQLAlchemyError as e:
            logger.error("Database error listing notifications: %s", str(e), exc_info=True)
            raise DatabaseError(message="Could not retrieve notifications. Please try again.")
        return [NotificationResponse.model_validate(n) for n in result.scalars().all()]

    async def unread_count(self, db: AsyncSession, recipient_id: UUID) -> int:
        result = await db.execute(
            select(func.count(Notification.id)).where(
                Notification.recipient_id == recipient_id,
                Notification.is_read.is_(False),
            )
        )
        return result.scalar() or 0

    async def mark_all_read(self, db: AsyncSession, recipient_id: UUID) -> int:
        """Marks every unread notification of the user as read; returns how many changed."""
        result = await db.execute(
            update(Notification)
            .where(
                Notification.recipient_id == recipient_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True)
        )
        await db.flush()
        return result.rowcount or 0


# ── Singleton Instance ────────────────────────────────────────────────────
notification_service = NotificationService()
