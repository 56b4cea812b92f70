from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, BackgroundTasks, File, Form, Query, UploadFile
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from scholarseek.api.deps import get_db_session
from scholarseek.core.rbac import AllowRoles
from scholarseek.models.enums import ApplicationStatus
from scholarseek.models.student import Student
from scholarseek.models.user import User, UserRole
from scholarseek.schemas.application import (
    ApplicationDetail,
    ApplicationForm,
    ApplicationListItem,
    ApplicationListResponse,
    ApplicationRead,
    BulkDecisionRequest,
    BulkDecisionResponse,
    DecisionRequest,
    DecisionResponse,
)
from scholarseek.services.application_service import (
    create_application_for_student,
    get_application_details,
    list_applications,
    list_for_student,
)
from scholarseek.services.audit_service import log_activity
from scholarseek.services.bulk_review_service import bulk_update
from scholarseek.services.email_service import load_email_settings
from scholarseek.services.notification_service import dispatch_status_notice, dispatch_status_notices
from scholarseek.services.rejection_reasons import list_reason_categories
from scholarseek.services.review_service import decide_application

router = APIRouter(
    prefix="/api/applications",
    tags=["Applications"]
)


async def _current_student(current_user: User, session: AsyncSession) -> Student:
    if not current_user.student_id:
        raise HTTPException(status_code=400, detail="No student profile linked to user")

    result = await session.execute(select(Student).where(Student.id == current_user.student_id))
    student = result.scalar_one_or_none()
    if not student:
        raise HTTPException(status_code=404, detail="Student profile not found")
    return student


FORM_FIELD_LABELS = {
    "full_name": "Full name",
    "email": "Email",
    "student_number": "Student number",
    "program": "Program",
    "year_level": "Year level",
    "address": "Address",
}


def _form_error(exc: SchemaValidationError) -> str:
    """First failing form field as a message the student can act on."""
    error = exc.errors()[0]
    field = str(error["loc"][0]) if error["loc"] else "form"
    label = FORM_FIELD_LABELS.get(field, field)
    if field == "email":
        return "Invalid email format."
    if error["type"] == "string_too_short":
        return f"{label} is required."
    return f"{label}: {error['msg']}"


# ------------------------------------------------------------
# SUBMIT APPLICATION (student, multipart)
# ------------------------------------------------------------
@router.post("", response_model=ApplicationRead, status_code=status.HTTP_201_CREATED)
async def create_application(
    background_tasks: BackgroundTasks,
    scholarship_id: int = Form(...),
    full_name: str = Form(...),
    email: str = Form(...),
    student_number: str = Form(...),
    date_of_birth: date = Form(...),
    program: str = Form(...),
    year_level: str = Form(...),
    address: str = Form(...),
    gwa: Optional[Decimal] = Form(None),
    department: Optional[str] = Form(None),
    document_types: List[str] = Form(...),
    documents: List[UploadFile] = File(...),
    current_user: User = Depends(AllowRoles(UserRole.Student)),
    session: AsyncSession = Depends(get_db_session),
):
    student = await _current_student(current_user, session)

    if len(document_types) != len(documents):
        raise HTTPException(status_code=400, detail="Each document needs exactly one document type")

    try:
        form = ApplicationForm(
            full_name=full_name.strip(),
            email=email.strip(),
            student_number=student_number.strip(),
            date_of_birth=date_of_birth,
            program=program.strip(),
            year_level=year_level.strip(),
            address=address.strip(),
            gwa=gwa,
            department=department,
        )
    except SchemaValidationError as e:
        raise HTTPException(status_code=400, detail=_form_error(e))

    application, notice = await create_application_for_student(
        session,
        student=student,
        scholarship_id=scholarship_id,
        form=form,
        documents=dict(zip(document_types, documents)),
    )

    email_settings = await load_email_settings(session)
    background_tasks.add_task(dispatch_status_notice, notice, email_settings)
    background_tasks.add_task(
        log_activity,
        action="application_submitted",
        actor_id=current_user.id,
        actor_role=UserRole.Student.value,
        application_id=application.id,
        details={"scholarship_id": scholarship_id},
    )

    return ApplicationRead.model_validate(application)


# ------------------------------------------------------------
# MY APPLICATIONS (student)
# ------------------------------------------------------------
@router.get("/my", response_model=List[ApplicationListItem])
async def get_my_applications(
    current_user: User = Depends(AllowRoles(UserRole.Student)),
    session: AsyncSession = Depends(get_db_session),
):
    student = await _current_student(current_user, session)
    return await list_for_student(session, student.id)


# ------------------------------------------------------------
# REVIEWER LISTING
# ------------------------------------------------------------
@router.get("", response_model=ApplicationListResponse)
async def get_applications(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    scholarship_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    sort: str = Query("application_date"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    _: User = Depends(AllowRoles(UserRole.Staff)),
    session: AsyncSession = Depends(get_db_session),
):
    return await list_applications(
        session,
        status=status_filter,
        scholarship_id=scholarship_id,
        search=search,
        sort=sort,
        order=order,
        page=page,
        per_page=per_page,
    )


@router.get("/rejection-reasons")
async def get_rejection_reasons(
    _: User = Depends(AllowRoles(UserRole.Staff)),
):
    return {"categories": list_reason_categories()}


# ------------------------------------------------------------
# BULK DECISION
# ------------------------------------------------------------
@router.post("/bulk-decision", response_model=BulkDecisionResponse)
async def bulk_decision(
    payload: BulkDecisionRequest,
    background_tasks: BackgroundTasks,
    reviewer: User = Depends(AllowRoles(UserRole.Staff)),
    session: AsyncSession = Depends(get_db_session),
):
    result = await bulk_update(session, payload.application_ids, payload.status, reviewer)

    email_settings = await load_email_settings(session)
    background_tasks.add_task(dispatch_status_notices, result.notices, email_settings)
    background_tasks.add_task(
        log_activity,
        action="bulk_update_applications",
        actor_id=reviewer.id,
        actor_role=reviewer.role.value,
        details={"processed_ids": result.processed_ids, "status": result.status.value},
    )

    return BulkDecisionResponse(
        success=result.success,
        message=result.message,
        updated_count=result.updated_count,
        status=result.status,
        processed_ids=result.processed_ids,
    )


# ------------------------------------------------------------
# APPLICATION DETAILS (reviewer)
# ------------------------------------------------------------
@router.get("/{application_id}", response_model=ApplicationDetail)
async def get_application(
    application_id: int,
    _: User = Depends(AllowRoles(UserRole.Staff)),
    session: AsyncSession = Depends(get_db_session),
):
    details = await get_application_details(session, application_id)
    details["application"] = ApplicationRead.model_validate(details["application"])
    return details


# ------------------------------------------------------------
# SINGLE DECISION
# ------------------------------------------------------------
@router.post("/{application_id}/decision", response_model=DecisionResponse)
async def decide(
    application_id: int,
    payload: DecisionRequest,
    background_tasks: BackgroundTasks,
    reviewer: User = Depends(AllowRoles(UserRole.Staff)),
    session: AsyncSession = Depends(get_db_session),
):
    result = await decide_application(
        session,
        application_id=application_id,
        reviewer=reviewer,
        decision=payload.decision,
        rejection_details=payload.rejection_details,
    )

    # Dispatch only after the decision is committed
    email_settings = await load_email_settings(session)
    background_tasks.add_task(dispatch_status_notice, result.notice, email_settings)
    background_tasks.add_task(
        log_activity,
        action=f"application_{result.status.value}",
        actor_id=reviewer.id,
        actor_role=reviewer.role.value,
        application_id=application_id,
        details={"rejection_reason": result.notice.rejection_reason} if result.notice.rejection_reason else {},
    )

    return DecisionResponse(success=result.success, status=result.status, message=result.message)
