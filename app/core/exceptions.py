"""
API error hierarchy
Every error is rendered as a {success: false, message, ...} envelope by the
handlers registered in app.main
"""
from typing import Any, Optional

from fastapi import status


class TodoAPIError(Exception):
    """
    Base exception for errors that map onto an HTTP status
    """
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_envelope(self) -> dict[str, Any]:
        """Response body for this error"""
        return {"success": False, "message": self.message}


class ValidationError(TodoAPIError):
    """
    Exception raised when one or more fields violate their constraints
    Carries every violation, not just the first
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation error"

    def __init__(self, errors: list[str], message: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(message)

    def to_envelope(self) -> dict[str, Any]:
        envelope = super().to_envelope()
        envelope["errors"] = self.errors
        return envelope


class MalformedIdError(TodoAPIError):
    """
    Exception raised when a todo ID is not a 24-character hex string
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid todo ID format"


class NotFoundError(TodoAPIError):
    """
    Exception raised when a well-formed ID has no matching todo
    """
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Todo not found"


class StoreError(TodoAPIError):
    """
    Exception raised when the database fails (connection loss, timeout, ...)
    The underlying error text is exposed for diagnostics
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Database error"

    def __init__(self, message: Optional[str] = None, *, error: Optional[str] = None):
        self.error = error
        super().__init__(message)

    def to_envelope(self) -> dict[str, Any]:
        envelope = super().to_envelope()
        if self.error is not None:
            envelope["error"] = self.error
        return envelope
