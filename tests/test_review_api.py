import pytest
from sqlalchemy import func
from sqlmodel import select

from scholarseek.models.application import Application
from scholarseek.models.audit import ActivityLog
from scholarseek.models.enums import ApplicationStatus
from scholarseek.models.notification import Notification
from scholarseek.models.system_setting import SystemSetting
from scholarseek.models.user import UserRole


async def notifications_for(session, application_id):
    result = await session.execute(select(Notification).where(Notification.related_id == application_id))
    return result.scalars().all()


# ------------------------------------------------------------
# SINGLE DECISION
# ------------------------------------------------------------
@pytest.mark.asyncio
async def test_approve_notifies_student(client, session, factory, fetch, auth_headers):
    staff = await factory.user(UserRole.Staff)
    [application] = await factory.pending_applications(1)

    res = await client.post(
        f"/api/applications/{application.id}/decision", json={"decision": "approve"}, headers=auth_headers(staff)
    )

    assert res.status_code == 200
    assert res.json() == {
        "success": True,
        "status": "approved",
        "message": "Application approved successfully! Student has been notified.",
    }
    assert (await fetch(Application, application.id)).status == ApplicationStatus.Approved

    [notification] = await notifications_for(session, application.id)
    assert notification.type == "application_approved"
    assert notification.user_id == application.student_id

    log = (await session.execute(select(ActivityLog))).scalar_one()
    assert log.action == "application_approved"
    assert log.actor_id == staff.id


@pytest.mark.asyncio
async def test_decision_succeeds_with_broken_email_setting(client, session, factory, fetch, auth_headers):
    staff = await factory.user(UserRole.Staff)
    [application] = await factory.pending_applications(1)
    session.add(SystemSetting(setting_key="smtp_port", setting_value="abc"))
    await session.commit()

    res = await client.post(
        f"/api/applications/{application.id}/decision", json={"decision": "approve"}, headers=auth_headers(staff)
    )

    assert res.status_code == 200
    assert (await fetch(Application, application.id)).status == ApplicationStatus.Approved
    assert len(await notifications_for(session, application.id)) == 1


@pytest.mark.asyncio
async def test_reject_with_gwa_reason_and_evaluation(client, session, factory, fetch, auth_headers):
    staff = await factory.user(UserRole.Staff)
    [application] = await factory.pending_applications(1)
    student_account = await factory.user(UserRole.Student, student_id=application.student_id)

    res = await client.post(
        f"/api/applications/{application.id}/decision",
        json={
            "decision": "reject",
            "rejection_details": {"reason_code": "gwa", "additional_notes": "Please reapply next semester."},
        },
        headers=auth_headers(staff),
    )
    assert res.status_code == 200
    assert res.json()["status"] == "rejected"

    stored = await fetch(Application, application.id)
    assert stored.rejection_reason == "GWA does not meet the minimum requirement"
    assert stored.additional_notes == "Please reapply next semester."

    [notification] = await notifications_for(session, application.id)
    assert "GWA does not meet the minimum requirement" in notification.message

    # the student opens the notification
    res = await client.get(f"/api/notifications/{notification.id}", headers=auth_headers(student_account))
    assert res.status_code == 200
    body = res.json()
    assert body["details"]["rejection_reason"] == "GWA does not meet the minimum requirement"
    assert body["details"]["additional_notes"] == "Please reapply next semester."

    evaluation = body["evaluation"]
    assert evaluation["category"] == "Academic Requirements"
    assert evaluation["failed_item"] == "Minimum GWA Requirement"
    assert {c["item"]: c["passed"] for c in evaluation["checklist"]} == {
        "Minimum GWA Requirement": False,
        "Complete Academic Records": True,
        "No Failing Grades": True,
        "Academic Standing": True,
    }


@pytest.mark.asyncio
async def test_second_decision_does_not_notify_twice(client, session, factory, auth_headers):
    staff = await factory.user(UserRole.Staff)
    [application] = await factory.pending_applications(1)
    url = f"/api/applications/{application.id}/decision"

    first = await client.post(url, json={"decision": "approve"}, headers=auth_headers(staff))
    assert first.status_code == 200

    second = await client.post(url, json={"decision": "approve"}, headers=auth_headers(staff))
    assert second.status_code == 400
    assert second.json()["success"] is False
    assert second.json()["error_code"] == "INVALID_STATE"

    assert len(await notifications_for(session, application.id)) == 1


@pytest.mark.asyncio
async def test_blank_reason_code_is_refused(client, factory, fetch, auth_headers):
    staff = await factory.user(UserRole.Staff)
    [application] = await factory.pending_applications(1)

    res = await client.post(
        f"/api/applications/{application.id}/decision",
        json={"decision": "reject", "rejection_details": {"reason_code": ""}},
        headers=auth_headers(staff),
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Please select a rejection reason before submitting."
    assert (await fetch(Application, application.id)).status == ApplicationStatus.Pending


@pytest.mark.asyncio
async def test_decision_requires_reviewer(client, factory, fetch, auth_headers):
    [application] = await factory.pending_applications(1)
    _student, account = await factory.student()
    url = f"/api/applications/{application.id}/decision"

    res = await client.post(url, json={"decision": "approve"})
    assert res.status_code in (401, 403)

    res = await client.post(url, json={"decision": "approve"}, headers=auth_headers(account))
    assert res.status_code == 403

    assert (await fetch(Application, application.id)).status == ApplicationStatus.Pending


@pytest.mark.asyncio
async def test_unknown_decision_is_unprocessable(client, factory, auth_headers):
    staff = await factory.user(UserRole.Staff)
    [application] = await factory.pending_applications(1)

    res = await client.post(
        f"/api/applications/{application.id}/decision", json={"decision": "maybe"}, headers=auth_headers(staff)
    )
    assert res.status_code == 422


# ------------------------------------------------------------
# BULK DECISION
# ------------------------------------------------------------
@pytest.mark.asyncio
async def test_bulk_approve_notifies_every_student(client, session, factory, fetch, auth_headers):
    staff = await factory.user(UserRole.Staff)
    applications = await factory.pending_applications(5)
    ids = [a.id for a in applications]

    res = await client.post(
        "/api/applications/bulk-decision",
        json={"application_ids": ids, "status": "approved"},
        headers=auth_headers(staff),
    )

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["updated_count"] == 5
    assert body["processed_ids"] == sorted(ids)
    assert body["message"] == "Successfully approved 5 pending application(s)"

    for app_id in ids:
        assert (await fetch(Application, app_id)).status == ApplicationStatus.Approved

    count = (await session.execute(
        select(func.count(Notification.id)).where(Notification.type == "application_approved")
    )).scalar_one()
    assert count == 5

    log = (await session.execute(select(ActivityLog))).scalar_one()
    assert log.action == "bulk_update_applications"
    assert log.details == {"processed_ids": sorted(ids), "status": "approved"}


@pytest.mark.asyncio
async def test_bulk_reject_with_non_pending_selected(client, session, factory, fetch, auth_headers):
    staff = await factory.user(UserRole.Staff)
    pending = await factory.pending_applications(3)
    approved = await factory.pending_applications(2, scholarship_title="Leadership Grant")
    for application in approved:
        application.status = ApplicationStatus.Approved
        session.add(application)
    await session.commit()

    res = await client.post(
        "/api/applications/bulk-decision",
        json={"application_ids": [a.id for a in pending + approved], "status": "rejected"},
        headers=auth_headers(staff),
    )

    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert "2 non-pending application(s)" in body["message"]

    for application in pending:
        assert (await fetch(Application, application.id)).status == ApplicationStatus.Pending
    for application in approved:
        assert (await fetch(Application, application.id)).status == ApplicationStatus.Approved

    assert (await session.execute(select(func.count(Notification.id)))).scalar_one() == 0


@pytest.mark.asyncio
async def test_bulk_empty_selection(client, factory, auth_headers):
    staff = await factory.user(UserRole.Staff)

    res = await client.post(
        "/api/applications/bulk-decision",
        json={"application_ids": [], "status": "approved"},
        headers=auth_headers(staff),
    )
    assert res.status_code == 400
    assert res.json()["message"] == "No applications selected"


@pytest.mark.asyncio
async def test_bulk_requires_reviewer(client, factory, auth_headers):
    [application] = await factory.pending_applications(1)
    _student, account = await factory.student()

    res = await client.post(
        "/api/applications/bulk-decision",
        json={"application_ids": [application.id], "status": "approved"},
        headers=auth_headers(account),
    )
    assert res.status_code == 403


# ------------------------------------------------------------
# NOTIFICATION ENDPOINTS
# ------------------------------------------------------------
@pytest.mark.asyncio
async def test_student_notification_inbox(client, factory, auth_headers):
    staff = await factory.user(UserRole.Staff)
    [first, second] = await factory.pending_applications(2)
    owner = await factory.user(UserRole.Student, student_id=first.student_id)
    other = await factory.user(UserRole.Student, student_id=second.student_id)

    await client.post(
        "/api/applications/bulk-decision",
        json={"application_ids": [first.id, second.id], "status": "approved"},
        headers=auth_headers(staff),
    )

    res = await client.get("/api/notifications", headers=auth_headers(owner))
    assert res.status_code == 200
    [notification] = res.json()
    assert notification["related_id"] == first.id

    res = await client.get("/api/notifications/unread-count", headers=auth_headers(owner))
    assert res.json() == {"unread_count": 1}

    # other students cannot read or mark it
    res = await client.post(f"/api/notifications/{notification['id']}/read", headers=auth_headers(other))
    assert res.status_code == 404
    res = await client.get(f"/api/notifications/{notification['id']}", headers=auth_headers(other))
    assert res.status_code == 404

    res = await client.post(f"/api/notifications/{notification['id']}/read", headers=auth_headers(owner))
    assert res.status_code == 200
    assert res.json()["is_read"] is True

    res = await client.get("/api/notifications/stats", headers=auth_headers(owner))
    assert res.json()["approved"] == 1
    assert res.json()["unread"] == 0

    res = await client.post("/api/notifications/read-all", headers=auth_headers(other))
    assert res.json() == {"success": True, "updated": 1}


# ------------------------------------------------------------
# ACTIVITY LOG
# ------------------------------------------------------------
@pytest.mark.asyncio
async def test_activity_logs_admin_only(client, factory, auth_headers):
    admin = await factory.user(UserRole.Admin, name="Maria Santos")
    staff = await factory.user(UserRole.Staff)
    [application] = await factory.pending_applications(1)

    await client.post(
        f"/api/applications/{application.id}/decision", json={"decision": "approve"}, headers=auth_headers(admin)
    )

    res = await client.get("/api/admin/activity-logs", headers=auth_headers(staff))
    assert res.status_code == 403

    res = await client.get(
        "/api/admin/activity-logs", params={"action": "application_approved"}, headers=auth_headers(admin)
    )
    assert res.status_code == 200
    [entry] = res.json()
    assert entry["actor_name"] == "Maria Santos"
    assert entry["actor_role"] == "admin"
    assert entry["application_id"] == application.id


@pytest.mark.asyncio
async def test_rejection_reason_table(client, factory, auth_headers):
    staff = await factory.user(UserRole.Staff)
    res = await client.get("/api/applications/rejection-reasons", headers=auth_headers(staff))
    assert res.status_code == 200
    assert len(res.json()["categories"]) == 7
