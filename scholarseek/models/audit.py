# scholarseek/models/audit.py

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, JSON
from typing import Optional, Dict, Any
from datetime import datetime

class ActivityLog(SQLModel, table=True):
    __tablename__ = "activity_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    actor_id: Optional[int] = Field(default=None, foreign_key="users.id")
    actor_role: Optional[str] = None

    # e.g. "application_approved", "bulk_update_applications"
    action: str = Field(index=True)
    application_id: Optional[int] = Field(default=None, foreign_key="applications.id")

    # Stores {"processed_ids": [...], "status": "..."}
    details: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
