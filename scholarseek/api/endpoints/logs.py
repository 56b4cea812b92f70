# scholarseek/api/endpoints/logs.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select
from typing import List, Optional

from scholarseek.api.deps import get_db_session
from scholarseek.core.rbac import AllowRoles

# Models
from scholarseek.models.user import User, UserRole
from scholarseek.models.audit import ActivityLog

# Schemas
from scholarseek.schemas.audit import ActivityLogRead

router = APIRouter(prefix="/api/admin", tags=["Audit & Logs"])


# -------------------------------------------------------------------
# VIEW REVIEW ACTIVITY (decisions, bulk updates, submissions)
# -------------------------------------------------------------------
@router.get("/activity-logs", response_model=List[ActivityLogRead])
async def get_activity_logs(
    action: Optional[str] = Query(None),
    actor_role: Optional[str] = Query(None),
    application_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(AllowRoles(UserRole.Admin)),
):
    query = (
        select(ActivityLog, User.name)
        .outerjoin(User, User.id == ActivityLog.actor_id)
        .order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
        .limit(limit)
    )

    if action:
        query = query.where(ActivityLog.action == action)
    if actor_role:
        query = query.where(ActivityLog.actor_role == actor_role)
    if application_id:
        query = query.where(ActivityLog.application_id == application_id)

    result = await session.execute(query)
    return [
        ActivityLogRead(**log.model_dump(), actor_name=actor_name)
        for log, actor_name in result.all()
    ]
