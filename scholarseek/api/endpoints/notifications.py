# scholarseek/api/endpoints/notifications.py

from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from scholarseek.api.deps import get_db_session, get_current_user
from scholarseek.models.user import User
from scholarseek.schemas.notification import (
    MarkAllReadResponse,
    NotificationDetail,
    NotificationRead,
    NotificationStats,
    UnreadCount,
)
from scholarseek.services import notification_service

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


# -------------------------------------------------------------------
# LIST (owner only)
# -------------------------------------------------------------------
@router.get("", response_model=List[NotificationRead])
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    unread_only: bool = Query(False),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    owner = notification_service.notification_owner(current_user)
    return await notification_service.list_for_user(session, owner, limit=limit, unread_only=unread_only)


@router.get("/unread-count", response_model=UnreadCount)
async def get_unread_count(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    owner = notification_service.notification_owner(current_user)
    return UnreadCount(unread_count=await notification_service.unread_count(session, owner))


@router.get("/stats", response_model=NotificationStats)
async def get_stats(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    owner = notification_service.notification_owner(current_user)
    return await notification_service.notification_stats(session, owner)


# -------------------------------------------------------------------
# MARK READ
# -------------------------------------------------------------------
@router.post("/read-all", response_model=MarkAllReadResponse)
async def read_all(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    owner = notification_service.notification_owner(current_user)
    updated = await notification_service.mark_all_read(session, owner)
    return MarkAllReadResponse(updated=updated)


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def read_one(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    owner = notification_service.notification_owner(current_user)
    return await notification_service.mark_read(session, owner, notification_id)


# -------------------------------------------------------------------
# DETAILS (+ evaluation report for rejected applications)
# -------------------------------------------------------------------
@router.get("/{notification_id}", response_model=NotificationDetail)
async def get_details(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    owner = notification_service.notification_owner(current_user)
    details = await notification_service.get_notification_details(session, owner, notification_id)

    return NotificationDetail(
        notification=NotificationRead.model_validate(details["notification"]),
        details=details["details"],
        evaluation=asdict(details["evaluation"]) if details["evaluation"] else None,
    )
