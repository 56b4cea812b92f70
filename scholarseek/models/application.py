# scholarseek/models/application.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import Date, DateTime, ForeignKey, Integer, JSON, Numeric, String, Text, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Optional

from scholarseek.models.enums import ApplicationStatus, enum_values

# Core document type -> column holding its stored path
DOCUMENT_COLUMNS = {
    "Certificate of Enrollment": "enrollment_certificate",
    "Certificate of Good Moral Character": "good_moral_document",
    "Report Card (Grades)": "report_card",
    "Study Load": "study_load_document",
}


class Application(SQLModel, table=True):
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("student_id", "scholarship_id", name="uq_application_student_scholarship"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    student_id: int = Field(
        sa_column=Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    )

    scholarship_id: int = Field(
        sa_column=Column(Integer, ForeignKey("scholarships.id"), nullable=False, index=True)
    )

    # Snapshot of what the student submitted
    full_name: str = Field(sa_column=Column(String, nullable=False))
    email: str = Field(sa_column=Column(String, nullable=False))
    student_number: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    date_of_birth: Optional[date] = Field(default=None, sa_column=Column(Date, nullable=True))
    address: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    gwa: Optional[Decimal] = Field(default=None, sa_column=Column(Numeric(3, 2), nullable=True))
    year_level: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    program: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    department: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))

    status: ApplicationStatus = Field(
        default=ApplicationStatus.Pending,
        sa_column=Column(
            SAEnum(ApplicationStatus, name="application_status", values_callable=enum_values),
            nullable=False,
            index=True,
        )
    )

    application_date: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )

    review_date: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True)
    )

    reviewed_by: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("users.id"), nullable=True)
    )

    # Rejection feedback, kept as separate fields
    rejection_code: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    rejection_reason: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    additional_notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    # Stored document paths
    enrollment_certificate: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    good_moral_document: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    report_card: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    study_load_document: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    additional_documents: Dict[str, str] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
