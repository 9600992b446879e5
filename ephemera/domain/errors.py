"""
Error Handling Module

Defines domain exceptions and error categories for the application.
Domain exceptions are pure and have no external dependencies.
Application exceptions carry the user-facing message for API responses.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Error category enumeration for structured error handling."""

    INVALID_REQUEST = "invalid_request"
    FILE_TOO_LARGE = "file_too_large"
    AUTH_REQUIRED = "auth_required"
    ACCESS_DENIED = "access_denied"
    FILE_NOT_FOUND = "file_not_found"
    FILE_EXPIRED = "file_expired"
    DOWNLOAD_LIMIT_REACHED = "download_limit_reached"
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


# User-friendly error messages with actionable guidance
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.INVALID_REQUEST: {
        "title": "Invalid Request",
        "message": "The request is missing required information or contains invalid data.",
        "action": "Please check your input and try again.",
    },
    ErrorCategory.FILE_TOO_LARGE: {
        "title": "File Too Large",
        "message": "The uploaded file exceeds the maximum allowed size.",
        "action": "Upload a smaller file.",
    },
    ErrorCategory.AUTH_REQUIRED: {
        "title": "Authentication Required",
        "message": "You need to be signed in to perform this operation.",
        "action": "Sign in and try again.",
    },
    ErrorCategory.ACCESS_DENIED: {
        "title": "Access Denied",
        "message": "You are not allowed to modify this file.",
        "action": "Only the owner of a file can delete it.",
    },
    ErrorCategory.FILE_NOT_FOUND: {
        "title": "File Not Found",
        "message": "The requested file could not be found.",
        "action": "Check the link you were given.",
    },
    ErrorCategory.FILE_EXPIRED: {
        "title": "File Expired",
        "message": "This file has expired and is no longer available.",
        "action": "Ask the sender to share the file again.",
    },
    ErrorCategory.DOWNLOAD_LIMIT_REACHED: {
        "title": "Download Limit Reached",
        "message": "This file has reached its maximum number of downloads.",
        "action": "Ask the sender to share the file again.",
    },
    ErrorCategory.STORAGE_ERROR: {
        "title": "Storage Error",
        "message": "The file could not be stored or retrieved.",
        "action": "Please try again later.",
    },
    ErrorCategory.SYSTEM_ERROR: {
        "title": "System Error",
        "message": "An unexpected error occurred while processing your request.",
        "action": "Please try again later. If the problem persists, contact support.",
    },
}


# ============================================================================
# Domain Exceptions (Pure - No External Dependencies)
# ============================================================================

class DomainError(Exception):
    """
    Base exception for all domain errors.

    Domain exceptions are pure and have no external dependencies.
    They can optionally wrap original errors for context.
    """

    def __init__(self, message: str, original_error: Exception = None):
        """
        Initialize domain error.

        Args:
            message: Error message
            original_error: Optional original exception that caused this error
        """
        super().__init__(message)
        self.original_error = original_error


class ValidationError(DomainError):
    """Raised when caller-supplied input violates a precondition."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.INVALID_REQUEST,
        original_error: Exception = None,
    ):
        super().__init__(message, original_error)
        self.category = category


class SharedFileNotFoundError(DomainError):
    """Raised when no file exists for a token or id, or its blob is missing."""
    pass


class FileGoneError(DomainError):
    """
    Raised when a file existed but is no longer accessible.

    Distinct from SharedFileNotFoundError so clients can tell
    "never existed" apart from "expired or used up".
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.FILE_EXPIRED,
        original_error: Exception = None,
    ):
        super().__init__(message, original_error)
        self.category = category


class DownloadLimitExceededError(FileGoneError):
    """Raised when a download loses the race at the download bound."""

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message, ErrorCategory.DOWNLOAD_LIMIT_REACHED, original_error)


class FileConflictError(DomainError):
    """
    Raised when a metadata insert violates a uniqueness constraint.

    Attributes:
        field: Name of the conflicting field (id, download_token, storage_key)
    """

    def __init__(self, message: str, field: Optional[str] = None, original_error: Exception = None):
        super().__init__(message, original_error)
        self.field = field


class StorageError(DomainError):
    """Raised when the blob store or the metadata backend fails."""
    pass


class AccessDeniedError(DomainError):
    """Raised when the caller is not allowed to act on a file."""
    pass


class AuthenticationRequiredError(DomainError):
    """Raised when an operation needs a caller identity and none was supplied."""
    pass


# ============================================================================
# Application Layer Exceptions
# ============================================================================

class ApplicationError(Exception):
    """
    Base application error with category and user-friendly messaging.

    Bridges domain errors with user-facing error messages and HTTP responses.
    """

    def __init__(
        self,
        category: ErrorCategory,
        technical_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize application error.

        Args:
            category: Error category
            technical_message: Technical error details for logging
            context: Additional context information
        """
        self.category = category
        self.technical_message = technical_message or ""
        self.context = context or {}

        error_info = ERROR_MESSAGES.get(
            category, ERROR_MESSAGES[ErrorCategory.SYSTEM_ERROR]
        )
        self.title = error_info["title"]
        self.message = error_info["message"]
        self.action = error_info["action"]

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for API response.

        Returns:
            Dictionary with error information
        """
        return {
            "error": self.category.value,
            "title": self.title,
            "message": self.message,
            "action": self.action,
        }


def create_error_response(
    category: ErrorCategory,
    technical_message: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 400,
) -> tuple[Dict[str, Any], int]:
    """
    Create a structured error response for API endpoints.

    Args:
        category: Error category
        technical_message: Technical error details for logging
        context: Additional context information
        status_code: HTTP status code

    Returns:
        Tuple of (error_dict, status_code)
    """
    error = ApplicationError(category, technical_message, context)
    return error.to_dict(), status_code
