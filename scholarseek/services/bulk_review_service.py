# scholarseek/services/bulk_review_service.py

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Union

from loguru import logger
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from scholarseek.core.exceptions import AccessDenied, InvalidState, NoEligibleApplications, ValidationError
from scholarseek.core.rbac import is_reviewer
from scholarseek.models.application import Application
from scholarseek.models.enums import ApplicationStatus
from scholarseek.models.scholarship import Scholarship
from scholarseek.models.student import Student
from scholarseek.models.user import User
from scholarseek.services.notification_service import StatusNotice
from scholarseek.services.review_service import commit_review

BULK_TARGET_STATUSES = {ApplicationStatus.Approved, ApplicationStatus.Rejected}


@dataclass
class BulkUpdateResult:
    success: bool
    message: str
    updated_count: int
    status: ApplicationStatus
    processed_ids: List[int]
    notices: List[StatusNotice] = field(default_factory=list)


def sanitize_application_ids(raw_ids: Iterable) -> List[int]:
    """Coerce to int, drop anything non-numeric or non-positive, keep first-seen order."""
    cleaned: List[int] = []
    for raw in raw_ids:
        try:
            value = int(raw)
        except (TypeError, ValueError):
            continue
        if value > 0 and value not in cleaned:
            cleaned.append(value)
    return cleaned


def _parse_target_status(target_status: Union[ApplicationStatus, str]) -> ApplicationStatus:
    try:
        status = ApplicationStatus(getattr(target_status, "value", target_status))
    except ValueError:
        raise ValidationError("Invalid status")
    if status not in BULK_TARGET_STATUSES:
        raise ValidationError("Invalid status")
    return status


async def bulk_update(
    session: AsyncSession,
    application_ids: Optional[Iterable],
    target_status: Union[ApplicationStatus, str],
    reviewer: Optional[User],
) -> BulkUpdateResult:
    """
    All-or-nothing bulk decision.

    Phase 1 reads the current status of every selected application and
    refuses the whole request if any of them is no longer pending. Phase 2
    updates the eligible rows in one statement that re-checks
    ``status = 'pending'``, so a row decided concurrently in between is
    skipped rather than overwritten.
    """
    if not is_reviewer(reviewer):
        raise AccessDenied("Only staff or admin accounts can review applications")

    raw_ids = list(application_ids or [])
    if not raw_ids:
        raise ValidationError("No applications selected")

    status = _parse_target_status(target_status)

    ids = sanitize_application_ids(raw_ids)
    if not ids:
        raise ValidationError("Invalid application IDs")

    # ---------------------------------------
    # 1. Validate: every selected row must be pending
    # ---------------------------------------
    result = await session.execute(
        select(Application.id, Application.status).where(Application.id.in_(ids))
    )
    non_pending: List[int] = []
    eligible: List[int] = []
    for app_id, current_status in result.all():
        if current_status != ApplicationStatus.Pending:
            non_pending.append(app_id)
        else:
            eligible.append(app_id)

    if non_pending:
        raise InvalidState(
            "Only pending applications can be bulk updated. "
            f"You have selected {len(non_pending)} non-pending application(s). "
            "Please select only pending applications."
        )

    if not eligible:
        raise NoEligibleApplications()

    eligible.sort()

    # ---------------------------------------
    # 2. Commit: guarded single statement
    # ---------------------------------------
    now = datetime.utcnow()
    update_result = await session.execute(
        update(Application)
        .where(Application.id.in_(eligible), Application.status == ApplicationStatus.Pending)
        .values(status=status, reviewed_by=reviewer.id, review_date=now, updated_at=now)
        .returning(Application.id)
        .execution_options(synchronize_session=False)
    )
    updated_ids = sorted(update_result.scalars().all())

    await commit_review(session, f"bulk {status.value} of {len(eligible)} application(s)")

    if len(updated_ids) < len(eligible):
        logger.warning(
            f"Bulk {status.value}: {len(eligible) - len(updated_ids)} application(s) changed before the update"
        )

    notices = await _build_notices(session, updated_ids, status)

    logger.info(f"Bulk {status.value} {len(updated_ids)} pending application(s) by reviewer {reviewer.id}")

    return BulkUpdateResult(
        success=True,
        message=f"Successfully {status.value} {len(updated_ids)} pending application(s)",
        updated_count=len(updated_ids),
        status=status,
        processed_ids=eligible,
        notices=notices,
    )


async def _build_notices(session: AsyncSession, application_ids: List[int], status: ApplicationStatus) -> List[StatusNotice]:
    if not application_ids:
        return []

    result = await session.execute(
        select(Application.id, Application.student_id, Scholarship.title, Student.fullname, Student.email)
        .join(Scholarship, Scholarship.id == Application.scholarship_id)
        .join(Student, Student.id == Application.student_id)
        .where(Application.id.in_(application_ids))
        .order_by(Application.id)
    )
    return [
        StatusNotice(
            student_id=student_id,
            application_id=app_id,
            scholarship_title=title,
            status=status.value,
            email=email,
            name=fullname,
        )
        for app_id, student_id, title, fullname, email in result.all()
    ]
