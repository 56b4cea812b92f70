# scholarseek/services/review_service.py

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from scholarseek.core.config import settings
from scholarseek.core.exceptions import AccessDenied, InvalidState, NotFound, PersistenceError, ValidationError
from scholarseek.core.rbac import is_reviewer
from scholarseek.models.application import Application
from scholarseek.models.enums import ApplicationStatus, ReviewDecision
from scholarseek.models.scholarship import Scholarship
from scholarseek.models.student import Student
from scholarseek.models.user import User
from scholarseek.schemas.application import RejectionDetails
from scholarseek.services.notification_service import StatusNotice
from scholarseek.services.rejection_reasons import compose_rejection, format_legacy_reason

DECISION_TO_STATUS = {
    ReviewDecision.Approve: ApplicationStatus.Approved,
    ReviewDecision.Reject: ApplicationStatus.Rejected,
}

DECISION_MESSAGES = {
    ApplicationStatus.Approved: "Application approved successfully! Student has been notified.",
    ApplicationStatus.Rejected: "Application rejected successfully! Student has been notified with detailed feedback.",
}


@dataclass
class DecisionResult:
    success: bool
    status: ApplicationStatus
    message: str
    notice: StatusNotice


async def commit_review(session: AsyncSession, description: str) -> None:
    """Commit under the review write timeout; any failure rolls back and becomes PersistenceError."""
    try:
        await asyncio.wait_for(session.commit(), timeout=settings.REVIEW_WRITE_TIMEOUT_SECONDS)
    except (SQLAlchemyError, asyncio.TimeoutError) as e:
        logger.error(f"Review write failed ({description}): {e!r}")
        await session.rollback()
        raise PersistenceError()


def _parse_decision(decision: Union[ReviewDecision, str]) -> ReviewDecision:
    try:
        return ReviewDecision(getattr(decision, "value", decision))
    except ValueError:
        raise ValidationError(f"Invalid decision '{decision}'. Allowed: approve, reject")


async def _fetch_for_review(session: AsyncSession, application_id: int):
    result = await session.execute(
        select(Application, Scholarship.title, Student.fullname, Student.email)
        .join(Scholarship, Scholarship.id == Application.scholarship_id)
        .join(Student, Student.id == Application.student_id)
        .where(Application.id == application_id)
    )
    row = result.first()
    if not row:
        raise NotFound("Application", application_id)
    return row


async def decide_application(
    session: AsyncSession,
    application_id: int,
    reviewer: Optional[User],
    decision: Union[ReviewDecision, str],
    rejection_details: Optional[RejectionDetails] = None,
) -> DecisionResult:
    """
    Move one pending application to approved or rejected.

    The status, reviewer, review date and (on rejection) the structured
    rejection fields are committed together. Notification is NOT sent here:
    the returned notice is handed to the dispatcher by the caller once the
    commit has succeeded.
    """
    if not is_reviewer(reviewer):
        raise AccessDenied("Only staff or admin accounts can review applications")

    parsed = _parse_decision(decision)
    new_status = DECISION_TO_STATUS[parsed]

    application, scholarship_title, student_name, student_email = await _fetch_for_review(session, application_id)

    # Terminal states are final; a repeated decision must not notify twice
    if application.status != ApplicationStatus.Pending:
        raise InvalidState(
            f"Application {application_id} has already been {application.status.value}. "
            "Only pending applications can be reviewed."
        )

    notice_reason = None
    if new_status == ApplicationStatus.Rejected and rejection_details is not None:
        if not (rejection_details.reason_code or "").strip():
            raise ValidationError("Please select a rejection reason before submitting.")

        composed = compose_rejection(
            rejection_details.reason_code,
            rejection_details.custom_reason_text,
            rejection_details.additional_notes,
        )
        application.rejection_code = composed.code
        application.rejection_reason = composed.reason_text
        application.additional_notes = composed.additional_notes
        notice_reason = format_legacy_reason(composed.reason_text, composed.additional_notes)

    now = datetime.utcnow()
    application.status = new_status
    application.reviewed_by = reviewer.id
    application.review_date = now
    application.updated_at = now
    session.add(application)

    await commit_review(session, f"application {application_id} -> {new_status.value}")

    logger.info(f"Application {application_id} {new_status.value} by reviewer {reviewer.id}")

    return DecisionResult(
        success=True,
        status=new_status,
        message=DECISION_MESSAGES[new_status],
        notice=StatusNotice(
            student_id=application.student_id,
            application_id=application.id,
            scholarship_title=scholarship_title,
            status=new_status.value,
            email=student_email,
            name=student_name,
            rejection_reason=notice_reason,
        ),
    )
