"""
Custom exception classes for unified error handling.
"""

from fastapi import HTTPException


class AppBaseError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message: str, detail: str | None = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class InvalidCourseInput(AppBaseError):
    """Raised when a course row lacks a code, a known grade, or valid credit hours."""
    def __init__(self, row: int, field: str, reason: str = "is missing or invalid"):
        self.row = row
        self.field = field
        super().__init__(
            message="Each course must have a valid course code, credit hours, and grade. "
                    "Course name is optional.",
            detail=f"Course #{row}: {field} {reason}",
        )


class RetakeCheckUnavailable(AppBaseError):
    """Raised when the retake lookup fails or times out. Never blocks GPA math."""
    def __init__(self, message: str = "Retake check unavailable"):
        super().__init__(
            message=message,
            detail="Retake information could not be loaded. GPA preview is unaffected.",
        )


class SubmissionFailed(AppBaseError):
    """Raised when saving a semester fails. `message` is shown to the user verbatim."""
    def __init__(self, message: str = "Failed to save semester", status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message=message)


class MissingRequiredFields(AppBaseError):
    """Raised when a request lacks a field it cannot be processed without."""
    def __init__(self, message: str):
        super().__init__(message=message)


class SemesterAlreadyExists(AppBaseError):
    """Raised when the student already has a semester for the same term and year."""
    def __init__(self, semester: str, year: int):
        super().__init__(
            message=f"You already have a {semester} {year} semester. "
                    f"Please edit or delete the existing one first.",
        )


class SemesterNotFound(AppBaseError):
    """Raised when a semester id does not belong to the current student."""
    def __init__(self):
        super().__init__(message="Semester not found.")


class InvalidTokenError(AppBaseError):
    """Raised when JWT token is invalid or expired."""
    def __init__(self):
        super().__init__(
            message="Invalid or expired token",
            detail="Please log in again.",
        )


# ── Utility: convert to HTTPException ────────────────────

def app_error_to_http(error: AppBaseError, status_code: int = 400) -> HTTPException:
    """Convert an AppBaseError to an HTTPException with consistent JSON body."""
    return HTTPException(
        status_code=status_code,
        detail={
            "error": error.message,
            "detail": error.detail,
            "type": type(error).__name__,
        },
    )
