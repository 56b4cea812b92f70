# scholarseek/services/notification_service.py

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger
from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from scholarseek.core.database import AsyncSessionLocal
from scholarseek.core.exceptions import NotFound
from scholarseek.core.rbac import role_name
from scholarseek.models.application import Application
from scholarseek.models.enums import NotificationType
from scholarseek.models.notification import Notification
from scholarseek.models.scholarship import Scholarship
from scholarseek.models.user import User, UserRole
from scholarseek.services.email_service import EmailSettings, send_application_status_email
from scholarseek.services.rejection_reasons import build_evaluation_report, rejection_feedback

# (user_id, user_type)
NotificationOwner = Tuple[int, str]


@dataclass
class StatusNotice:
    """Everything needed to tell a student about a status change, detached from the session."""
    student_id: int
    application_id: int
    scholarship_title: str
    status: str
    email: Optional[str] = None
    name: Optional[str] = None
    rejection_reason: Optional[str] = None


STATUS_NOTIFICATION_COPY = {
    "approved": {
        "title": "Application Approved! 🎉",
        "message": "Congratulations! Your application for '{title}' has been approved.",
    },
    "rejected": {
        "title": "Application Update",
        "message": "Your application for '{title}' was not selected this time. Keep applying for other opportunities!",
    },
    "pending": {
        "title": "Application Under Review",
        "message": "Your application for '{title}' is currently being reviewed.",
    },
}


def notification_owner(user: User) -> NotificationOwner:
    """Students receive notifications under their student id; staff and admins under their user id."""
    role = role_name(user.role)
    if role == UserRole.Student.value:
        return user.student_id, role
    return user.id, role


# ============================================================================
# CREATE
# ============================================================================
async def create_notification(
    session: AsyncSession,
    user_id: int,
    user_type: str,
    notification_type: str,
    title: str,
    message: str,
    related_id: Optional[int] = None,
    related_type: Optional[str] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        user_type=user_type,
        type=notification_type,
        title=title,
        message=message,
        related_id=related_id,
        related_type=related_type,
    )
    session.add(notification)
    await session.commit()
    await session.refresh(notification)
    return notification


async def notify_application_status(
    session: AsyncSession,
    email_settings: EmailSettings,
    student_id: int,
    application_id: int,
    scholarship_title: str,
    status: str,
    recipient_email: Optional[str] = None,
    recipient_name: Optional[str] = None,
    rejection_reason: Optional[str] = None,
) -> bool:
    """
    Creates the in-app notification for a status change, then attempts the
    status email. Returns whether an email went out; never raises.
    """
    status = getattr(status, "value", status)
    copy = STATUS_NOTIFICATION_COPY.get(status, STATUS_NOTIFICATION_COPY["pending"])
    message = copy["message"].format(title=scholarship_title)
    if status == "rejected" and rejection_reason:
        message = f"{message}\n\nReason: {rejection_reason}"

    try:
        await create_notification(
            session,
            user_id=student_id,
            user_type=UserRole.Student.value,
            notification_type=f"application_{status}",
            title=copy["title"],
            message=message,
            related_id=application_id,
            related_type="application",
        )
    except SQLAlchemyError:
        logger.exception(f"Notification insert failed for application {application_id}")
        await session.rollback()

    if not recipient_email:
        return False

    try:
        return await send_application_status_email(
            session,
            email_settings,
            to_email=recipient_email,
            name=recipient_name or "Student",
            scholarship_title=scholarship_title,
            status=status,
            rejection_reason=rejection_reason,
        )
    except Exception:
        logger.exception(f"Status email failed for application {application_id}")
        return False


async def _dispatch(session: AsyncSession, notice: StatusNotice, email_settings: EmailSettings) -> None:
    try:
        await notify_application_status(
            session,
            email_settings,
            student_id=notice.student_id,
            application_id=notice.application_id,
            scholarship_title=notice.scholarship_title,
            status=notice.status,
            recipient_email=notice.email,
            recipient_name=notice.name,
            rejection_reason=notice.rejection_reason,
        )
    except Exception:
        logger.exception(f"Notification dispatch error for application {notice.application_id}")
        await session.rollback()


async def dispatch_status_notice(notice: StatusNotice, email_settings: EmailSettings) -> None:
    """
    Background-task entry point. Uses its own session because the request
    session is closed by the time this runs.
    """
    async with AsyncSessionLocal() as session:
        await _dispatch(session, notice, email_settings)


async def dispatch_status_notices(notices: Sequence[StatusNotice], email_settings: EmailSettings) -> None:
    if not notices:
        return
    async with AsyncSessionLocal() as session:
        for notice in notices:
            await _dispatch(session, notice, email_settings)
    logger.info(f"Dispatched {len(notices)} status notification(s)")


# ============================================================================
# READ / MARK READ (owner only)
# ============================================================================
async def list_for_user(
    session: AsyncSession,
    owner: NotificationOwner,
    limit: int = 50,
    unread_only: bool = False,
) -> List[Notification]:
    user_id, user_type = owner
    query = (
        select(Notification)
        .where(Notification.user_id == user_id, Notification.user_type == user_type)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
    )
    if unread_only:
        query = query.where(Notification.is_read.is_(False))

    result = await session.execute(query)
    return list(result.scalars().all())


async def unread_count(session: AsyncSession, owner: NotificationOwner) -> int:
    user_id, user_type = owner
    result = await session.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.user_type == user_type,
            Notification.is_read.is_(False),
        )
    )
    return result.scalar_one()


async def _get_owned(session: AsyncSession, owner: NotificationOwner, notification_id: int) -> Notification:
    user_id, user_type = owner
    result = await session.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
            Notification.user_type == user_type,
        )
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise NotFound("Notification", notification_id)
    return notification


async def mark_read(session: AsyncSession, owner: NotificationOwner, notification_id: int) -> Notification:
    notification = await _get_owned(session, owner, notification_id)
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.utcnow()
        session.add(notification)
        await session.commit()
        await session.refresh(notification)
    return notification


async def mark_all_read(session: AsyncSession, owner: NotificationOwner) -> int:
    user_id, user_type = owner
    result = await session.execute(
        update(Notification)
        .where(
            Notification.user_id == user_id,
            Notification.user_type == user_type,
            Notification.is_read.is_(False),
        )
        .values(is_read=True, read_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    return result.rowcount or 0


async def notification_stats(session: AsyncSession, owner: NotificationOwner) -> Dict[str, int]:
    user_id, user_type = owner
    result = await session.execute(
        select(Notification.type, Notification.is_read, func.count(Notification.id))
        .where(Notification.user_id == user_id, Notification.user_type == user_type)
        .group_by(Notification.type, Notification.is_read)
    )

    stats = {
        "total": 0,
        "unread": 0,
        "approved": 0,
        "rejected": 0,
        "pending": 0,
        "deadlines": 0,
        "general": 0,
    }
    by_type = {
        NotificationType.ApplicationApproved.value: "approved",
        NotificationType.ApplicationRejected.value: "rejected",
        NotificationType.ApplicationPending.value: "pending",
        NotificationType.ScholarshipDeadline.value: "deadlines",
        NotificationType.General.value: "general",
    }
    for notification_type, is_read, count in result.all():
        stats["total"] += count
        if not is_read:
            stats["unread"] += count
        if notification_type in by_type:
            stats[by_type[notification_type]] += count
    return stats


# ============================================================================
# DETAILS (what the student sees when opening a notification)
# ============================================================================
async def get_notification_details(session: AsyncSession, owner: NotificationOwner, notification_id: int) -> dict:
    notification = await _get_owned(session, owner, notification_id)
    user_id, user_type = owner

    response = {"notification": notification, "details": None, "evaluation": None}

    if not (notification.related_type and notification.related_id):
        return response

    if notification.related_type == "application":
        query = (
            select(Application, Scholarship)
            .join(Scholarship, Scholarship.id == Application.scholarship_id)
            .where(Application.id == notification.related_id)
        )
        # Students only ever see their own applications
        if user_type == UserRole.Student.value:
            query = query.where(Application.student_id == user_id)

        row = (await session.execute(query)).first()
        if row:
            application, scholarship = row
            reason_text, notes = rejection_feedback(application.rejection_reason, application.additional_notes)
            response["details"] = {
                "application_id": application.id,
                "status": application.status,
                "scholarship_title": scholarship.title,
                "sponsor": scholarship.sponsor,
                "amount": scholarship.amount,
                "deadline": scholarship.deadline,
                "min_gwa": scholarship.min_gwa,
                "review_date": application.review_date,
                "rejection_reason": reason_text or None,
                "additional_notes": notes,
            }
            if notification.type == NotificationType.ApplicationRejected.value and reason_text:
                response["evaluation"] = build_evaluation_report(reason_text, notes)

    elif notification.related_type == "scholarship":
        result = await session.execute(select(Scholarship).where(Scholarship.id == notification.related_id))
        scholarship = result.scalar_one_or_none()
        if scholarship:
            response["details"] = {
                "scholarship_id": scholarship.id,
                "scholarship_title": scholarship.title,
                "sponsor": scholarship.sponsor,
                "amount": scholarship.amount,
                "deadline": scholarship.deadline,
                "min_gwa": scholarship.min_gwa,
            }

    return response
