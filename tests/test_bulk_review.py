import pytest
from sqlalchemy import update

from scholarseek.core.database import AsyncSessionLocal
from scholarseek.core.exceptions import AccessDenied, InvalidState, NoEligibleApplications, ValidationError
from scholarseek.models.application import Application
from scholarseek.models.enums import ApplicationStatus
from scholarseek.models.user import UserRole
from scholarseek.services.bulk_review_service import bulk_update, sanitize_application_ids


def test_sanitize_application_ids():
    assert sanitize_application_ids(["3", 1, "x", -2, 0, None, "3", 2.0]) == [3, 1, 2]
    assert sanitize_application_ids(["abc", ""]) == []


@pytest.mark.asyncio
async def test_bulk_approve_five_pending(session, factory, fetch):
    reviewer = await factory.user(UserRole.Staff)
    applications = await factory.pending_applications(5)
    ids = [a.id for a in applications]

    result = await bulk_update(session, ids, "approved", reviewer)

    assert result.success is True
    assert result.updated_count == 5
    assert result.status == ApplicationStatus.Approved
    assert result.processed_ids == sorted(ids)
    assert result.message == "Successfully approved 5 pending application(s)"
    assert [n.application_id for n in result.notices] == sorted(ids)
    assert all(n.status == "approved" for n in result.notices)

    for app_id in ids:
        stored = await fetch(Application, app_id)
        assert stored.status == ApplicationStatus.Approved
        assert stored.reviewed_by == reviewer.id
        assert stored.review_date is not None


@pytest.mark.asyncio
async def test_row_decided_between_phases_is_skipped(session, factory, fetch, monkeypatch):
    reviewer = await factory.user(UserRole.Staff)
    applications = await factory.pending_applications(3)
    ids = sorted(a.id for a in applications)
    raced_id = ids[1]

    real_execute = session.execute
    calls = []

    async def execute_then_decide_elsewhere(statement, *args, **kwargs):
        result = await real_execute(statement, *args, **kwargs)
        if not calls:
            calls.append(statement)
            # Another reviewer rejects one row right after the pending check
            async with AsyncSessionLocal() as other:
                await other.execute(
                    update(Application)
                    .where(Application.id == raced_id)
                    .values(status=ApplicationStatus.Rejected)
                )
                await other.commit()
        return result

    monkeypatch.setattr(session, "execute", execute_then_decide_elsewhere)
    result = await bulk_update(session, ids, "approved", reviewer)
    monkeypatch.undo()

    assert result.processed_ids == ids
    assert result.updated_count == len(ids) - 1
    assert result.message == "Successfully approved 2 pending application(s)"
    assert [n.application_id for n in result.notices] == [i for i in ids if i != raced_id]

    assert (await fetch(Application, raced_id)).status == ApplicationStatus.Rejected
    for app_id in ids:
        if app_id != raced_id:
            assert (await fetch(Application, app_id)).status == ApplicationStatus.Approved


@pytest.mark.asyncio
async def test_mixed_selection_updates_nothing(session, factory, fetch):
    reviewer = await factory.user(UserRole.Staff)
    pending = await factory.pending_applications(3)
    approved = await factory.pending_applications(2, scholarship_title="Leadership Grant")
    for application in approved:
        application.status = ApplicationStatus.Approved
        session.add(application)
    await session.commit()

    ids = [a.id for a in pending + approved]

    with pytest.raises(InvalidState) as exc_info:
        await bulk_update(session, ids, "rejected", reviewer)

    assert "2 non-pending application(s)" in exc_info.value.message

    for application in pending:
        assert (await fetch(Application, application.id)).status == ApplicationStatus.Pending
    for application in approved:
        assert (await fetch(Application, application.id)).status == ApplicationStatus.Approved


@pytest.mark.asyncio
async def test_duplicates_and_garbage_ids_are_dropped(session, factory):
    reviewer = await factory.user(UserRole.Admin)
    [first, second] = await factory.pending_applications(2)

    result = await bulk_update(session, [first.id, str(first.id), "abc", second.id], "rejected", reviewer)

    assert result.updated_count == 2
    assert result.processed_ids == sorted([first.id, second.id])


@pytest.mark.asyncio
async def test_unknown_ids_only(session, factory):
    reviewer = await factory.user(UserRole.Staff)

    with pytest.raises(NoEligibleApplications, match="No valid pending applications found."):
        await bulk_update(session, [404, 405], "approved", reviewer)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "ids, status, message",
    [
        ([], "approved", "No applications selected"),
        (None, "approved", "No applications selected"),
        ([1], "pending", "Invalid status"),
        ([1], "archived", "Invalid status"),
        (["x", "-1"], "approved", "Invalid application IDs"),
    ],
)
async def test_bulk_input_validation(session, factory, ids, status, message):
    reviewer = await factory.user(UserRole.Staff)

    with pytest.raises(ValidationError) as exc_info:
        await bulk_update(session, ids, status, reviewer)

    assert exc_info.value.message == message


@pytest.mark.asyncio
async def test_bulk_requires_reviewer(session, factory):
    [application] = await factory.pending_applications(1)
    _student, account = await factory.student()

    with pytest.raises(AccessDenied):
        await bulk_update(session, [application.id], "approved", account)
