# scholarseek/services/rejection_reasons.py
"""
Rejection reasons and the student-facing evaluation report.

Reviewers pick a reason code from REASON_CATEGORIES (or type their own for
``custom_reason``) and may add free-text notes. The stored reason text is
later mapped back onto a category and a failed checklist item by keyword
rules evaluated in a fixed order; the first matching rule wins.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

LEGACY_NOTES_MARKER = "Additional Notes:"
CUSTOM_REASON_CODE = "custom_reason"

DEFAULT_CATEGORY = "Academic Requirements"
DEFAULT_FAILED_ITEM = "Application Requirements"


# ============================================================
# REASON TABLE (what reviewers choose from)
# ============================================================
REASON_CATEGORIES: Dict[str, Dict] = {
    "academic": {
        "title": "Academic Requirements",
        "reasons": {
            "gwa_below_requirement": "GWA does not meet the minimum requirement",
            "incomplete_grades": "Incomplete or missing academic records",
            "failed_subjects": "Has failing grades in major subjects",
        },
    },
    "eligibility": {
        "title": "Eligibility Criteria",
        "reasons": {
            "program_mismatch": "Program does not match scholarship requirements",
            "already_has_scholarship": "Already receiving another scholarship",
        },
    },
    "documentation": {
        "title": "Documentation Issues",
        "reasons": {
            "incomplete_documents": "Missing required documents",
            "invalid_documents": "Invalid or expired documents",
        },
    },
    "financial": {
        "title": "Financial Assessment",
        "reasons": {
            "income_exceeds_limit": "Family income exceeds scholarship limit",
            "insufficient_financial_need": "Does not demonstrate sufficient financial need",
        },
    },
    "application": {
        "title": "Application Quality",
        "reasons": {
            "incomplete_application": "Application form is incomplete",
        },
    },
    "competitive": {
        "title": "Competitive Selection",
        "reasons": {
            "limited_slots": "Limited slots available, other applicants were more qualified",
            "quota_filled": "Scholarship quota has been filled",
        },
    },
    "other": {
        "title": "Other Reasons",
        "reasons": {
            CUSTOM_REASON_CODE: "Other reason (please specify)",
        },
    },
}

# Short codes accepted from API clients
REASON_ALIASES = {
    "gwa": "gwa_below_requirement",
    "grades": "incomplete_grades",
    "failing": "failed_subjects",
    "program": "program_mismatch",
    "documents": "incomplete_documents",
    "invalid": "invalid_documents",
    "income": "income_exceeds_limit",
    "financial_need": "insufficient_financial_need",
    "incomplete": "incomplete_application",
    "slots": "limited_slots",
    "quota": "quota_filled",
    "custom": CUSTOM_REASON_CODE,
}


def list_reason_categories() -> List[dict]:
    return [
        {
            "key": key,
            "title": category["title"],
            "reasons": [{"code": code, "text": text} for code, text in category["reasons"].items()],
        }
        for key, category in REASON_CATEGORIES.items()
    ]


def canonical_reason_code(code: str) -> str:
    code = (code or "").strip()
    return REASON_ALIASES.get(code, code)


def resolve_reason_text(code: str, custom_text: Optional[str] = None) -> str:
    code = canonical_reason_code(code)
    custom_text = (custom_text or "").strip()

    if code == CUSTOM_REASON_CODE and custom_text:
        return custom_text

    for category in REASON_CATEGORIES.values():
        if code in category["reasons"]:
            return category["reasons"][code]

    # Unknown codes are stored as given
    return code


@dataclass
class ComposedRejection:
    code: str
    reason_text: str
    additional_notes: Optional[str] = None


def compose_rejection(
    reason_code: str,
    custom_reason_text: Optional[str] = None,
    additional_notes: Optional[str] = None,
) -> ComposedRejection:
    code = canonical_reason_code(reason_code)
    notes = (additional_notes or "").strip() or None
    return ComposedRejection(
        code=code,
        reason_text=resolve_reason_text(code, custom_reason_text),
        additional_notes=notes,
    )


# ============================================================
# LEGACY SINGLE-COLUMN FORMAT
# ============================================================
def format_legacy_reason(reason_text: str, additional_notes: Optional[str] = None) -> str:
    if not additional_notes:
        return reason_text
    return f"{reason_text}\n\n{LEGACY_NOTES_MARKER} {additional_notes}"


def split_legacy_reason(stored: str) -> Tuple[str, Optional[str]]:
    """Inverse of format_legacy_reason for rows migrated from the old schema."""
    if LEGACY_NOTES_MARKER not in stored:
        return stored.strip(), None
    reason, notes = stored.split(LEGACY_NOTES_MARKER, 1)
    return reason.strip(), notes.strip() or None


def rejection_feedback(rejection_reason: Optional[str], additional_notes: Optional[str]) -> Tuple[str, Optional[str]]:
    # Structured rows already carry notes separately
    if additional_notes is not None or not rejection_reason:
        return (rejection_reason or "").strip(), additional_notes
    return split_legacy_reason(rejection_reason)


# ============================================================
# EVALUATION REPORT
# ============================================================
def _mentions(*keywords: str) -> Callable[[str], bool]:
    def predicate(reason_lower: str) -> bool:
        return any(keyword in reason_lower for keyword in keywords)
    return predicate


# Order matters: a reason mentioning both "gwa" and "income" is Academic.
CATEGORY_RULES: List[Tuple[Callable[[str], bool], str]] = [
    (_mentions("gwa", "grade", "failing", "probation", "academic", "units"), "Academic Requirements"),
    (_mentions("program", "year level", "age", "residency", "scholarship"), "Eligibility Criteria"),
    (_mentions("document", "invalid", "quality", "deadline", "submission"), "Documentation Issues"),
    (_mentions("income", "financial", "need", "family"), "Financial Assessment"),
    (_mentions("incomplete", "essay", "recommendation", "error", "application"), "Application Quality"),
]

# Order matters: "financial need" must be tried before "financial".
FAILED_ITEM_RULES: List[Tuple[str, str]] = [
    ("gwa", "Minimum GWA Requirement"),
    ("grade", "Complete Academic Records"),
    ("failing", "No Failing Grades"),
    ("probation", "Academic Standing"),
    ("program", "Program Compatibility"),
    ("year level", "Year Level Requirements"),
    ("age", "Age Requirements"),
    ("residency", "Residency Status"),
    ("document", "Required Documents Submitted"),
    ("invalid", "Document Validity"),
    ("quality", "Document Quality"),
    ("deadline", "Submission Deadline"),
    ("income", "Income Requirements"),
    ("financial need", "Financial Need Assessment"),
    ("financial", "Financial Documents"),
    ("incomplete", "Complete Application Form"),
    ("essay", "Essay/Personal Statement"),
    ("recommendation", "Recommendation Letters"),
    ("error", "Application Accuracy"),
]

CHECKLIST_ITEMS: Dict[str, List[Tuple[str, str]]] = {
    "Academic Requirements": [
        ("Minimum GWA Requirement", "fa-graduation-cap"),
        ("Complete Academic Records", "fa-file-alt"),
        ("No Failing Grades", "fa-check-circle"),
        ("Academic Standing", "fa-award"),
    ],
    "Eligibility Criteria": [
        ("Program Compatibility", "fa-university"),
        ("Year Level Requirements", "fa-layer-group"),
        ("Age Requirements", "fa-calendar-alt"),
        ("Residency Status", "fa-home"),
    ],
    "Documentation Issues": [
        ("Required Documents Submitted", "fa-folder-open"),
        ("Document Validity", "fa-certificate"),
        ("Document Quality", "fa-image"),
        ("Submission Deadline", "fa-clock"),
    ],
    "Financial Assessment": [
        ("Income Requirements", "fa-money-bill-wave"),
        ("Financial Need Assessment", "fa-chart-line"),
        ("Financial Documents", "fa-receipt"),
        ("Family Financial Status", "fa-users"),
    ],
    "Application Quality": [
        ("Complete Application Form", "fa-edit"),
        ("Essay/Personal Statement", "fa-pen"),
        ("Recommendation Letters", "fa-envelope"),
        ("Application Accuracy", "fa-spell-check"),
    ],
}

IMPROVEMENT_SUGGESTIONS: Dict[str, List[str]] = {
    "Academic Requirements": [
        "Improve your GWA by focusing on your studies",
        "Seek academic support or tutoring if needed",
        "Maintain consistent academic performance",
        "Consider retaking courses to improve grades",
    ],
    "Eligibility Criteria": [
        "Check program-specific scholarships that match your field",
        "Wait until you meet the year level requirements",
        "Look for scholarships with different eligibility criteria",
        "Verify residency requirements for future applications",
    ],
    "Documentation Issues": [
        "Ensure all required documents are complete and valid",
        "Submit high-quality, legible copies of documents",
        "Get proper certifications and signatures",
        "Apply well before deadlines to avoid last-minute issues",
    ],
    "Financial Assessment": [
        "Provide complete and accurate financial information",
        "Include all required financial supporting documents",
        "Consider scholarships with different income brackets",
        "Seek financial counseling if needed",
    ],
    "Application Quality": [
        "Take time to carefully complete all application sections",
        "Have someone review your essay before submission",
        "Request strong recommendation letters early",
        "Double-check all information for accuracy",
    ],
}

NEXT_STEPS = [
    "Review the feedback above carefully",
    "Work on improving the identified areas",
    "Apply for other suitable scholarships",
    "Reapply when requirements are met",
]


def categorize_reason(reason_text: str) -> str:
    reason_lower = (reason_text or "").lower()
    for predicate, category in CATEGORY_RULES:
        if predicate(reason_lower):
            return category
    return DEFAULT_CATEGORY


def failed_checklist_item(reason_text: str) -> str:
    reason_lower = (reason_text or "").lower()
    for keyword, item in FAILED_ITEM_RULES:
        if keyword in reason_lower:
            return item
    return DEFAULT_FAILED_ITEM


@dataclass
class ChecklistEntry:
    item: str
    icon: str
    passed: bool


@dataclass
class EvaluationReport:
    category: str
    failed_item: str
    reason_text: str
    additional_notes: Optional[str]
    checklist: List[ChecklistEntry] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    next_steps: List[str] = field(default_factory=list)


def build_evaluation_report(reason_text: str, additional_notes: Optional[str] = None) -> EvaluationReport:
    reason_lower = (reason_text or "").lower()
    category = categorize_reason(reason_text)
    failed_item = failed_checklist_item(reason_text)

    checklist = [
        ChecklistEntry(
            item=item,
            icon=icon,
            passed=not (item == failed_item or item.lower() in reason_lower),
        )
        for item, icon in CHECKLIST_ITEMS[category]
    ]

    return EvaluationReport(
        category=category,
        failed_item=failed_item,
        reason_text=reason_text,
        additional_notes=additional_notes,
        checklist=checklist,
        suggestions=list(IMPROVEMENT_SUGGESTIONS[category]),
        next_steps=list(NEXT_STEPS),
    )
