from sqlmodel import SQLModel, Field, Column
from sqlalchemy import DateTime, Text, String, Numeric
from datetime import datetime
from decimal import Decimal
from typing import Optional


class Student(SQLModel, table=True):
    __tablename__ = "students"

    id: Optional[int] = Field(default=None, primary_key=True)

    student_number: str = Field(
        sa_column=Column(String, nullable=False, unique=True)
    )

    fullname: str = Field(
        sa_column=Column(String, nullable=False)
    )

    email: str = Field(
        sa_column=Column(String, nullable=False, unique=True)
    )

    department: Optional[str] = Field(
        default=None, sa_column=Column(String, nullable=True)
    )
    program: Optional[str] = Field(
        default=None, sa_column=Column(String, nullable=True)
    )
    year_level: Optional[str] = Field(
        default=None, sa_column=Column(String, nullable=True)
    )

    gwa: Optional[Decimal] = Field(
        default=None, sa_column=Column(Numeric(3, 2), nullable=True)
    )

    address: Optional[str] = Field(
        default=None, sa_column=Column(Text, nullable=True)
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
