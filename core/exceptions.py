"""
Custom exceptions for the mission control API with structured error context.

Every error raised by the service layer belongs to this hierarchy. Each class
carries the HTTP status and machine-readable code that the API boundary
renders, so handlers never need to translate errors themselves.

Exception Hierarchy:
    MissionControlError (base)
    ├── InvalidArgumentError      400
    ├── UnauthorizedError         401
    ├── NotFoundError             404
    ├── ConflictError             409
    │   └── InvalidTransitionError
    ├── RateLimitExceededError    429
    └── InternalError             500
        └── UpstreamError         502
"""

from typing import Optional, Dict, Any
from datetime import datetime


class MissionControlError(Exception):
    """
    Base exception for all mission control errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (entity ids, field names, etc.)
        original_exception: The original exception that was caught (if any)
    """

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.utcnow()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Client Errors
# ============================================================================

class InvalidArgumentError(MissionControlError):
    """
    Raised for malformed or missing input.

    Context should include:
        - field: Name of the offending field (if applicable)
        - value: Value that failed validation
    """
    status_code = 400
    code = "BAD_REQUEST"


class UnauthorizedError(MissionControlError):
    """Missing or incorrect credential (API key or session cookie)."""
    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized", **kwargs):
        super().__init__(message, **kwargs)


class NotFoundError(MissionControlError):
    """
    Raised when a referenced entity does not exist.

    Context should include:
        - resource: Entity type (project, research_job, ...)
        - id: Identifier that was looked up
    """
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(MissionControlError):
    """Uniqueness violation, e.g. a ticker that is already on the watchlist."""
    status_code = 409
    code = "CONFLICT"


class InvalidTransitionError(ConflictError):
    """
    Raised when a research job status change is not a legal successor.

    Context should include:
        - job_id: The research job
        - from_status: Current status
        - to_status: Requested status
    """
    code = "INVALID_TRANSITION"


class RateLimitExceededError(MissionControlError):
    """Too many requests from one client within the limiter window."""
    status_code = 429
    code = "TOO_MANY_REQUESTS"

    def __init__(self, message: str = "Too many requests", retry_after: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after
        if retry_after:
            self.context["retry_after"] = retry_after


# ============================================================================
# Server Errors
# ============================================================================

class InternalError(MissionControlError):
    """Unexpected store or runtime failure."""
    status_code = 500
    code = "INTERNAL_ERROR"


class UpstreamError(InternalError):
    """
    Raised when an external collaborator (quote provider, gateway) fails.

    Context should include:
        - url: The upstream endpoint
        - status_code: HTTP status code (if a response was received)
    """
    status_code = 502
    code = "UPSTREAM_ERROR"
