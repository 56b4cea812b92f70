# scholarseek/schemas/notification.py

from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from datetime import datetime


class NotificationRead(BaseModel):
    id: int
    type: str
    title: str
    message: str
    is_read: bool
    read_at: Optional[datetime] = None
    related_type: Optional[str] = None
    related_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UnreadCount(BaseModel):
    unread_count: int


class MarkAllReadResponse(BaseModel):
    success: bool = True
    updated: int


class NotificationStats(BaseModel):
    total: int
    unread: int
    approved: int
    rejected: int
    pending: int
    deadlines: int
    general: int


# ------------------------------------------------------------
# EVALUATION REPORT (rejected applications)
# ------------------------------------------------------------
class ChecklistEntryRead(BaseModel):
    item: str
    icon: str
    passed: bool

    class Config:
        from_attributes = True


class EvaluationReportRead(BaseModel):
    category: str
    failed_item: str
    reason_text: str
    additional_notes: Optional[str] = None
    checklist: List[ChecklistEntryRead] = []
    suggestions: List[str] = []
    next_steps: List[str] = []

    class Config:
        from_attributes = True


class NotificationDetail(BaseModel):
    notification: NotificationRead
    details: Optional[Dict[str, Any]] = None
    evaluation: Optional[EvaluationReportRead] = None
