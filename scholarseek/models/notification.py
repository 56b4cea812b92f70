# scholarseek/models/notification.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import Boolean, DateTime, Integer, String, Text
from datetime import datetime
from typing import Optional


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: Optional[int] = Field(default=None, primary_key=True)

    # Owner: (user_id, user_type). Students are addressed by their student id.
    user_id: int = Field(sa_column=Column(Integer, nullable=False, index=True))
    user_type: str = Field(sa_column=Column(String, nullable=False))

    # NotificationType value
    type: str = Field(sa_column=Column(String, nullable=False, index=True))
    title: str = Field(sa_column=Column(String, nullable=False))
    message: str = Field(sa_column=Column(Text, nullable=False))

    # The only mutable part of a notification
    is_read: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    read_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))

    # Back-reference to what triggered it, e.g. ("application", 12)
    related_type: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    related_id: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
