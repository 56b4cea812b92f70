from enum import Enum

class ApplicationStatus(str, Enum):
    Pending = "pending"
    Approved = "approved"
    Rejected = "rejected"

class ReviewDecision(str, Enum):
    Approve = "approve"
    Reject = "reject"

class ScholarshipStatus(str, Enum):
    Active = "active"
    Inactive = "inactive"
    Closed = "closed"

class NotificationType(str, Enum):
    ApplicationApproved = "application_approved"
    ApplicationRejected = "application_rejected"
    ApplicationPending = "application_pending"
    ScholarshipDeadline = "scholarship_deadline"
    General = "general"

class EmailStatus(str, Enum):
    Sent = "sent"
    Failed = "failed"


def enum_values(enum_cls):
    # Persist the lowercase values, not the member names
    return [member.value for member in enum_cls]
