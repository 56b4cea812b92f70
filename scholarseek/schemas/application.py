# scholarseek/schemas/application.py

from pydantic import BaseModel, EmailStr, Field
from typing import Any, Dict, List, Optional
from datetime import date, datetime
from decimal import Decimal

from scholarseek.models.enums import ApplicationStatus, ReviewDecision


# ============================================================
# REVIEWER → single decision
# ============================================================
class RejectionDetails(BaseModel):
    reason_code: str
    custom_reason_text: Optional[str] = None
    additional_notes: Optional[str] = None


class DecisionRequest(BaseModel):
    decision: ReviewDecision
    rejection_details: Optional[RejectionDetails] = None

    class Config:
        json_schema_extra = {
            "examples": [
                {"decision": "approve"},
                {
                    "decision": "reject",
                    "rejection_details": {
                        "reason_code": "gwa",
                        "additional_notes": "Please reapply next semester."
                    }
                }
            ]
        }


class DecisionResponse(BaseModel):
    success: bool
    status: ApplicationStatus
    message: str


# ============================================================
# REVIEWER → bulk decision
# ============================================================
class BulkDecisionRequest(BaseModel):
    # Raw values; non-numeric ids are discarded by the coordinator
    application_ids: List[Any] = Field(default_factory=list)
    status: str


class BulkDecisionResponse(BaseModel):
    success: bool
    message: str
    updated_count: int
    status: ApplicationStatus
    processed_ids: List[int]


# ============================================================
# APPLICATION READ
# ============================================================
class ApplicationRead(BaseModel):
    id: int
    student_id: int
    scholarship_id: int
    full_name: str
    email: str
    student_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    gwa: Optional[Decimal] = None
    year_level: Optional[str] = None
    program: Optional[str] = None
    department: Optional[str] = None
    status: ApplicationStatus
    application_date: datetime
    review_date: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    rejection_code: Optional[str] = None
    rejection_reason: Optional[str] = None
    additional_notes: Optional[str] = None
    updated_at: datetime

    class Config:
        from_attributes = True


class ApplicationListItem(ApplicationRead):
    scholarship_title: Optional[str] = None


class ApplicationListResponse(BaseModel):
    items: List[ApplicationListItem]
    total: int
    page: int
    per_page: int
    total_pages: int


class DocumentInfo(BaseModel):
    filename: str
    path: str
    size: int
    modified: datetime
    type: str
    extension: str


class ApplicationDetail(BaseModel):
    application: ApplicationRead
    scholarship: Dict[str, Any]
    reviewer_name: Optional[str] = None
    documents: List[DocumentInfo] = []


# ============================================================
# STUDENT → submission form (multipart fields)
# ============================================================
class ApplicationForm(BaseModel):
    full_name: str = Field(min_length=1)
    email: EmailStr
    student_number: str = Field(min_length=1)
    date_of_birth: date
    program: str = Field(min_length=1)
    year_level: str = Field(min_length=1)
    address: str = Field(min_length=1)
    gwa: Optional[Decimal] = None
    department: Optional[str] = None
