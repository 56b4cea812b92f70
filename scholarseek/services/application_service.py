# scholarseek/services/application_service.py

import math
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from fastapi import UploadFile
from loguru import logger
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from scholarseek.core.exceptions import InvalidState, NotFound, PersistenceError, ValidationError
from scholarseek.core.storage import (
    describe_document,
    discard_documents,
    read_application_document,
    write_application_document,
)
from scholarseek.models.application import Application, DOCUMENT_COLUMNS
from scholarseek.models.enums import ApplicationStatus, ScholarshipStatus
from scholarseek.models.scholarship import Scholarship
from scholarseek.models.student import Student
from scholarseek.models.user import User
from scholarseek.schemas.application import ApplicationForm
from scholarseek.services.notification_service import StatusNotice

GWA_BEST = Decimal("1.0")
GWA_LOWEST_PASSING = Decimal("2.5")
GWA_FAIL = Decimal("5.0")

SORTABLE_COLUMNS = {
    "application_date": Application.application_date,
    "review_date": Application.review_date,
    "full_name": Application.full_name,
    "status": Application.status,
    "gwa": Application.gwa,
}


def validate_gwa(gwa: Optional[Decimal], min_gwa: Optional[Decimal]) -> None:
    """1.0 is the best grade; 2.5 the lowest passing; 5.0 marks a failing GWA."""
    if gwa is None:
        return

    if gwa < GWA_BEST or (gwa > GWA_LOWEST_PASSING and gwa != GWA_FAIL):
        raise ValidationError("GWA must be between 1.0 (highest) and 2.5 (lowest), or 5.0 (fail).")

    if min_gwa is not None and gwa > min_gwa:
        raise ValidationError(
            f"Your GWA ({gwa}) does not meet the minimum requirement ({min_gwa} or better). "
            "Lower GWA is better in this scale."
        )


# ============================================================================
# CREATE (student submission)
# ============================================================================
async def create_application_for_student(
    session: AsyncSession,
    student: Student,
    scholarship_id: int,
    form: ApplicationForm,
    documents: Dict[str, UploadFile],
) -> Tuple[Application, StatusNotice]:

    # ---------------------------------------
    # 1. Scholarship must be open
    # ---------------------------------------
    result = await session.execute(
        select(Scholarship).where(
            Scholarship.id == scholarship_id,
            Scholarship.status == ScholarshipStatus.Active,
        )
    )
    scholarship = result.scalar_one_or_none()
    if not scholarship:
        raise ValidationError("Invalid scholarship.")

    if scholarship.deadline < date.today():
        raise ValidationError("The application deadline for this scholarship has passed.")

    # ---------------------------------------
    # 2. One application per scholarship
    # ---------------------------------------
    existing = await session.execute(
        select(Application.id).where(
            Application.student_id == student.id,
            Application.scholarship_id == scholarship_id,
        )
    )
    if existing.first():
        raise InvalidState("You have already applied for this scholarship.")

    validate_gwa(form.gwa, scholarship.min_gwa)

    # ---------------------------------------
    # 3. Documents: every required type present
    # ---------------------------------------
    missing = [doc for doc in scholarship.all_required_documents() if doc not in documents]
    if missing:
        raise ValidationError(f"Missing required documents: {', '.join(missing)}")

    # Validate every upload before anything touches the disk
    pending = [await read_application_document(upload, doc_type) for doc_type, upload in documents.items()]

    stored: Dict[str, str] = {}
    try:
        for document in pending:
            stored[document.document_type] = write_application_document(document, student.id, scholarship_id)
    except PersistenceError:
        discard_documents(stored.values())
        raise

    # ---------------------------------------
    # 4. Insert the pending application
    # ---------------------------------------
    application = Application(
        student_id=student.id,
        scholarship_id=scholarship_id,
        full_name=form.full_name,
        email=form.email,
        student_number=form.student_number,
        date_of_birth=form.date_of_birth,
        address=form.address,
        gwa=form.gwa,
        year_level=form.year_level,
        program=form.program,
        department=form.department or student.department,
        status=ApplicationStatus.Pending,
        additional_documents={
            doc_type: path for doc_type, path in stored.items() if doc_type not in DOCUMENT_COLUMNS
        },
    )
    for doc_type, column in DOCUMENT_COLUMNS.items():
        setattr(application, column, stored.get(doc_type))

    session.add(application)

    try:
        await session.commit()
        await session.refresh(application)
    except IntegrityError:
        await session.rollback()
        discard_documents(stored.values())
        # Lost a race with a concurrent submission
        raise InvalidState("You have already applied for this scholarship.")
    except SQLAlchemyError as e:
        logger.error(f"Application insert failed for student {student.id}: {e!r}")
        await session.rollback()
        discard_documents(stored.values())
        raise PersistenceError("Failed to submit application. Please try again.")

    logger.info(f"Application {application.id} submitted by student {student.id} for scholarship {scholarship_id}")

    notice = StatusNotice(
        student_id=student.id,
        application_id=application.id,
        scholarship_title=scholarship.title,
        status=ApplicationStatus.Pending.value,
        email=student.email,
        name=student.fullname,
    )
    return application, notice


# ============================================================================
# READ
# ============================================================================
async def list_for_student(session: AsyncSession, student_id: int) -> List[dict]:
    result = await session.execute(
        select(Application, Scholarship.title)
        .join(Scholarship, Scholarship.id == Application.scholarship_id)
        .where(Application.student_id == student_id)
        .order_by(Application.application_date.desc(), Application.id.desc())
    )
    return [
        {**application.model_dump(), "scholarship_title": title}
        for application, title in result.all()
    ]


async def get_application_details(session: AsyncSession, application_id: int) -> dict:
    result = await session.execute(
        select(Application, Scholarship)
        .join(Scholarship, Scholarship.id == Application.scholarship_id)
        .where(Application.id == application_id)
    )
    row = result.first()
    if not row:
        raise NotFound("Application", application_id)

    application, scholarship = row

    reviewer_name = None
    if application.reviewed_by:
        reviewer = await session.execute(select(User.name).where(User.id == application.reviewed_by))
        reviewer_name = reviewer.scalar_one_or_none()

    documents = []
    for doc_type, column in DOCUMENT_COLUMNS.items():
        info = describe_document(getattr(application, column), doc_type)
        if info:
            documents.append(info)
    for doc_type, path in (application.additional_documents or {}).items():
        info = describe_document(path, doc_type)
        if info:
            documents.append(info)

    return {
        "application": application,
        "scholarship": {
            "id": scholarship.id,
            "title": scholarship.title,
            "sponsor": scholarship.sponsor,
            "amount": scholarship.amount,
            "deadline": scholarship.deadline,
            "min_gwa": scholarship.min_gwa,
            "required_documents": scholarship.all_required_documents(),
        },
        "reviewer_name": reviewer_name,
        "documents": documents,
    }


async def list_applications(
    session: AsyncSession,
    status: Optional[ApplicationStatus] = None,
    scholarship_id: Optional[int] = None,
    search: Optional[str] = None,
    sort: str = "application_date",
    order: str = "desc",
    page: int = 1,
    per_page: int = 20,
) -> dict:
    """Reviewer listing. Unknown sort columns fall back to application_date."""
    conditions = []
    if status:
        conditions.append(Application.status == status)
    if scholarship_id:
        conditions.append(Application.scholarship_id == scholarship_id)
    if search:
        pattern = f"%{search.strip()}%"
        conditions.append(
            or_(
                Application.full_name.ilike(pattern),
                Application.email.ilike(pattern),
                Application.student_number.ilike(pattern),
                Scholarship.title.ilike(pattern),
            )
        )

    count_query = (
        select(func.count(Application.id))
        .select_from(Application)
        .join(Scholarship, Scholarship.id == Application.scholarship_id)
        .where(*conditions)
    )
    total = (await session.execute(count_query)).scalar_one()

    sort_column = SORTABLE_COLUMNS.get(sort, Application.application_date)
    ordering = sort_column.asc() if order.lower() == "asc" else sort_column.desc()

    query = (
        select(Application, Scholarship.title)
        .join(Scholarship, Scholarship.id == Application.scholarship_id)
        .where(*conditions)
        .order_by(ordering, Application.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    result = await session.execute(query)

    return {
        "items": [
            {**application.model_dump(), "scholarship_title": title}
            for application, title in result.all()
        ],
        "total": total,
        "page": page,
        "per_page": per_page,
        "total_pages": math.ceil(total / per_page) if total else 0,
    }
