from sqlmodel import SQLModel, Field, Column
from sqlalchemy import DateTime, String, Text
from datetime import datetime
from typing import Optional


class SystemSetting(SQLModel, table=True):
    __tablename__ = "system_settings"

    id: Optional[int] = Field(default=None, primary_key=True)
    setting_key: str = Field(sa_column=Column(String, nullable=False, unique=True, index=True))
    setting_value: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
