from sqlmodel import SQLModel, Field, Column
from sqlalchemy import DateTime, String, Text
from sqlalchemy import Enum as SAEnum
from datetime import datetime
from typing import Optional

from scholarseek.models.enums import EmailStatus, enum_values


class EmailLog(SQLModel, table=True):
    __tablename__ = "email_logs"

    id: Optional[int] = Field(default=None, primary_key=True)

    recipient_email: str = Field(sa_column=Column(String, nullable=False))
    recipient_name: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    subject: str = Field(sa_column=Column(String, nullable=False))
    message: str = Field(sa_column=Column(Text, nullable=False))
    type: str = Field(sa_column=Column(String, nullable=False))

    status: EmailStatus = Field(
        sa_column=Column(SAEnum(EmailStatus, name="email_status", values_callable=enum_values), nullable=False)
    )

    # Null when delivery failed
    sent_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
