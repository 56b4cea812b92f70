# scholarseek/models/scholarship.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import Date, DateTime, JSON, Numeric, String, Text
from sqlalchemy import Enum as SAEnum
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from scholarseek.models.enums import ScholarshipStatus, enum_values

# Always required, whatever the scholarship lists in required_documents
CORE_REQUIRED_DOCUMENTS = [
    "Certificate of Enrollment",
    "Certificate of Good Moral Character",
    "Report Card (Grades)",
    "Study Load",
]


class Scholarship(SQLModel, table=True):
    __tablename__ = "scholarships"

    id: Optional[int] = Field(default=None, primary_key=True)

    title: str = Field(sa_column=Column(String, nullable=False))
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    sponsor: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))

    amount: Optional[Decimal] = Field(
        default=None, sa_column=Column(Numeric(10, 2), nullable=True)
    )

    deadline: date = Field(sa_column=Column(Date, nullable=False))

    # 1.0 is the best grade; an application GWA above this is too low
    min_gwa: Optional[Decimal] = Field(
        default=None, sa_column=Column(Numeric(3, 2), nullable=True)
    )

    # Extra document types on top of CORE_REQUIRED_DOCUMENTS
    required_documents: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    status: ScholarshipStatus = Field(
        default=ScholarshipStatus.Active,
        sa_column=Column(
            SAEnum(ScholarshipStatus, name="scholarship_status", values_callable=enum_values),
            nullable=False,
        )
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )

    def all_required_documents(self) -> List[str]:
        combined = list(CORE_REQUIRED_DOCUMENTS)
        for doc in self.required_documents or []:
            if doc not in combined:
                combined.append(doc)
        return combined
