# scholarseek/models/user.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy import Enum as SAEnum
from datetime import datetime
from enum import Enum
from typing import Optional

from scholarseek.models.enums import enum_values

class UserRole(str, Enum):
    Admin = "admin"
    Staff = "staff"      # scholarship office reviewers
    Student = "student"

class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)

    name: str = Field(nullable=False)
    email: str = Field(sa_column=Column(String, nullable=False, index=True, unique=True))
    password_hash: str = Field(nullable=False)

    role: UserRole = Field(
        sa_column=Column(SAEnum(UserRole, name="user_role", values_callable=enum_values), nullable=False)
    )

    # Only student accounts link to a student profile
    student_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("students.id"), nullable=True)
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
