# scholarseek/services/audit_service.py

from typing import Optional, Dict, Any

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from scholarseek.models.audit import ActivityLog
from scholarseek.core.database import AsyncSessionLocal

async def log_activity(
    action: str,
    actor_id: Optional[int],
    actor_role: Optional[str] = None,
    application_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None
):
    """
    Appends an activity log entry in a separate DB session.
    Safe for use in BackgroundTasks; a failed insert is logged and dropped.
    """
    async with AsyncSessionLocal() as session:
        try:
            session.add(ActivityLog(
                actor_id=actor_id,
                actor_role=actor_role,
                action=action,
                application_id=application_id,
                details=details or {}
            ))
            await session.commit()

        except SQLAlchemyError as e:
            logger.error(f"❌ ACTIVITY LOG ERROR ({action}): {e}")
            # Rollback to keep the connection healthy
            await session.rollback()
