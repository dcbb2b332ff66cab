"""
ProjectRepo Backend - Notification Route Handlers
==================================================

The caller's inbox: latest notices, unread badge count, mark all read.
"""

from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from projectrepo.database import get_db_session
from projectrepo.dependencies import get_notification_service, get_request_context
from projectrepo.schemas.notification import NotificationResponse, UnreadCountResponse
from projectrepo.security import RequestContext
from projectrepo.services.notification_service import NotificationService

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("", response_model=List[NotificationResponse], summary="Latest notifications, newest first")
async def list_notifications(
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db_session),
    service: NotificationService = Depends(get_notification_service),
) -> List[NotificationResponse]:
    return await service.list_for(db, context.id)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db_session),
    service: NotificationService = Depends(get_notification_service),
) -> UnreadCountResponse:
    return UnreadCountResponse(count=await service.unread_count(db, context.id))


@router.post("/mark-read", status_code=204, response_class=Response, summary="Mark all notifications read")
async def mark_read(
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db_session),
    service: NotificationService = Depends(get_notification_service),
) -> Response:
    await service.mark_all_read(db, context.id)
    return Response(status_code=204)
