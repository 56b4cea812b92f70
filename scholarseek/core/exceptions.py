# scholarseek/core/exceptions.py

from typing import Optional


class ReviewError(Exception):
    """Base exception for the application review workflow."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class AccessDenied(ReviewError):
    """Raised when the caller is not an authenticated reviewer."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message=message, error_code="ACCESS_DENIED", status_code=403)


class NotFound(ReviewError):
    """Raised when an application or notification does not exist (or is not yours)."""

    def __init__(self, entity: str = "Application", entity_id: Optional[int] = None):
        message = f"{entity} {entity_id} not found" if entity_id else f"{entity} not found"
        super().__init__(message=message, error_code="NOT_FOUND", status_code=404)


class InvalidState(ReviewError):
    """Raised when an application is not in the state the operation requires."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="INVALID_STATE", status_code=400)


class NoEligibleApplications(ReviewError):
    def __init__(self, message: str = "No valid pending applications found."):
        super().__init__(message=message, error_code="NO_ELIGIBLE_APPLICATIONS", status_code=400)


class PersistenceError(ReviewError):
    """Raised when the review write could not be committed."""

    def __init__(self, message: str = "Failed to update application status. Please try again."):
        super().__init__(message=message, error_code="PERSISTENCE_ERROR", status_code=500)


class ValidationError(ReviewError, ValueError):
    """Malformed input: empty selections, bad status values, bad ids."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="VALIDATION_ERROR", status_code=400)
