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


class GradingInputError(AppBaseError):
    """Raised when a grading request passes schema validation but cannot be computed."""
    def __init__(self, message: str = "Dữ liệu điểm không hợp lệ", detail: str | None = None):
        super().__init__(
            message=message,
            detail=detail or "Vui lòng kiểm tra lại dữ liệu đầu vào.",
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
