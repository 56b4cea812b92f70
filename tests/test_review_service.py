import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from scholarseek.core.config import settings
from scholarseek.core.exceptions import AccessDenied, InvalidState, NotFound, PersistenceError, ValidationError
from scholarseek.models.application import Application
from scholarseek.models.enums import ApplicationStatus
from scholarseek.models.user import UserRole
from scholarseek.schemas.application import RejectionDetails
from scholarseek.services.review_service import decide_application


@pytest.mark.asyncio
async def test_approve_sets_review_fields_only(session, factory, fetch):
    reviewer = await factory.user(UserRole.Staff)
    [application] = await factory.pending_applications(1)
    before = application.model_dump()

    result = await decide_application(session, application.id, reviewer, "approve")

    assert result.success is True
    assert result.status == ApplicationStatus.Approved
    assert result.message == "Application approved successfully! Student has been notified."
    assert result.notice.status == "approved"
    assert result.notice.rejection_reason is None

    after = (await fetch(Application, application.id)).model_dump()
    assert after["status"] == ApplicationStatus.Approved
    assert after["reviewed_by"] == reviewer.id
    assert after["review_date"] is not None

    changed = {"status", "reviewed_by", "review_date", "updated_at"}
    for key, value in before.items():
        if key not in changed:
            assert after[key] == value, key


@pytest.mark.asyncio
async def test_reject_with_alias_stores_canonical_reason(session, factory, fetch):
    reviewer = await factory.user(UserRole.Admin)
    [application] = await factory.pending_applications(1)

    result = await decide_application(
        session,
        application.id,
        reviewer,
        "reject",
        RejectionDetails(reason_code="gwa", additional_notes="Please reapply next semester."),
    )

    assert result.status == ApplicationStatus.Rejected
    assert result.message == (
        "Application rejected successfully! Student has been notified with detailed feedback."
    )

    stored = await fetch(Application, application.id)
    assert stored.status == ApplicationStatus.Rejected
    assert stored.rejection_code == "gwa_below_requirement"
    assert stored.rejection_reason == "GWA does not meet the minimum requirement"
    assert stored.additional_notes == "Please reapply next semester."

    # email and notification carry the combined text
    assert result.notice.rejection_reason == (
        "GWA does not meet the minimum requirement\n\nAdditional Notes: Please reapply next semester."
    )


@pytest.mark.asyncio
async def test_reject_with_custom_text(session, factory, fetch):
    reviewer = await factory.user(UserRole.Staff)
    [application] = await factory.pending_applications(1)

    await decide_application(
        session,
        application.id,
        reviewer,
        "reject",
        RejectionDetails(reason_code="custom_reason", custom_reason_text="Did not attend the interview"),
    )

    stored = await fetch(Application, application.id)
    assert stored.rejection_reason == "Did not attend the interview"
    assert stored.additional_notes is None


@pytest.mark.asyncio
async def test_reject_without_details_leaves_reason_empty(session, factory, fetch):
    reviewer = await factory.user(UserRole.Staff)
    [application] = await factory.pending_applications(1)

    await decide_application(session, application.id, reviewer, "reject")

    stored = await fetch(Application, application.id)
    assert stored.status == ApplicationStatus.Rejected
    assert stored.rejection_reason is None


@pytest.mark.asyncio
async def test_reject_with_blank_code_is_refused(session, factory, fetch):
    reviewer = await factory.user(UserRole.Staff)
    [application] = await factory.pending_applications(1)

    with pytest.raises(ValidationError, match="Please select a rejection reason"):
        await decide_application(session, application.id, reviewer, "reject", RejectionDetails(reason_code="  "))

    assert (await fetch(Application, application.id)).status == ApplicationStatus.Pending


@pytest.mark.asyncio
async def test_second_decision_is_rejected(session, factory):
    reviewer = await factory.user(UserRole.Staff)
    [application] = await factory.pending_applications(1)

    await decide_application(session, application.id, reviewer, "approve")

    with pytest.raises(InvalidState, match="already been approved"):
        await decide_application(session, application.id, reviewer, "approve")

    with pytest.raises(InvalidState):
        await decide_application(session, application.id, reviewer, "reject")


@pytest.mark.asyncio
async def test_student_cannot_decide(session, factory, fetch):
    [application] = await factory.pending_applications(1)
    _student, account = await factory.student()

    with pytest.raises(AccessDenied):
        await decide_application(session, application.id, account, "approve")

    with pytest.raises(AccessDenied):
        await decide_application(session, application.id, None, "approve")

    assert (await fetch(Application, application.id)).status == ApplicationStatus.Pending


@pytest.mark.asyncio
async def test_unknown_decision_and_missing_application(session, factory):
    reviewer = await factory.user(UserRole.Staff)

    with pytest.raises(ValidationError):
        await decide_application(session, 1, reviewer, "maybe")

    with pytest.raises(NotFound):
        await decide_application(session, 999, reviewer, "approve")


@pytest.mark.asyncio
async def test_commit_failure_rolls_back(session, factory, fetch, monkeypatch):
    reviewer = await factory.user(UserRole.Staff)
    [application] = await factory.pending_applications(1)
    app_id = application.id

    async def failing_commit():
        raise OperationalError("UPDATE applications", {}, Exception("database is locked"))

    monkeypatch.setattr(session, "commit", failing_commit)

    with pytest.raises(PersistenceError) as exc_info:
        await decide_application(session, app_id, reviewer, "approve")

    assert exc_info.value.status_code == 500
    monkeypatch.undo()
    assert (await fetch(Application, app_id)).status == ApplicationStatus.Pending


@pytest.mark.asyncio
async def test_commit_timeout_rolls_back(session, factory, fetch, monkeypatch):
    reviewer = await factory.user(UserRole.Staff)
    [application] = await factory.pending_applications(1)
    app_id = application.id

    async def slow_commit():
        await asyncio.sleep(5)

    monkeypatch.setattr(session, "commit", slow_commit)
    monkeypatch.setattr(settings, "REVIEW_WRITE_TIMEOUT_SECONDS", 0.05)

    with pytest.raises(PersistenceError):
        await decide_application(session, app_id, reviewer, "approve")

    monkeypatch.undo()
    assert (await fetch(Application, app_id)).status == ApplicationStatus.Pending
