"""Error taxonomy and classification for task orchestration operations."""

from enum import Enum

from pydantic import BaseModel, ValidationError as PydanticValidationError

from src.core.config import constants
from src.core.db_client import DatabaseError


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Input errors
    ERR_VALIDATION = "ERR_VALIDATION"

    # Lookup errors
    ERR_TEMPLATE_NOT_FOUND = "ERR_TEMPLATE_NOT_FOUND"
    ERR_ASSIGNMENT_NOT_FOUND = "ERR_ASSIGNMENT_NOT_FOUND"
    ERR_WORKER_NOT_FOUND = "ERR_WORKER_NOT_FOUND"
    ERR_SUBTASK_NOT_FOUND = "ERR_SUBTASK_NOT_FOUND"

    # State errors
    ERR_NOT_COMPLETED = "ERR_NOT_COMPLETED"
    ERR_TEMPLATE_IN_USE = "ERR_TEMPLATE_IN_USE"

    # Storage errors
    ERR_DATABASE = "ERR_DATABASE"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


class TaskCoreError(Exception):
    """Base class for all reported, recoverable task orchestration errors."""

    default_code: str = ErrorCode.ERR_UNKNOWN
    http_status: int = constants.HTTP_SERVER_ERROR

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class ValidationError(TaskCoreError):
    """Malformed input: empty required string, non-positive duration, due date before assigned date."""

    default_code = ErrorCode.ERR_VALIDATION
    http_status = constants.HTTP_BAD_REQUEST

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> "ValidationError":
        """Flatten a Pydantic validation failure into a single readable message."""
        parts = []
        for error in exc.errors():
            location = ".".join(str(item) for item in error["loc"])
            message = error["msg"].removeprefix("Value error, ")
            parts.append(f"{location}: {message}" if location else message)
        return cls("; ".join(parts) or "Invalid input")


class NotFoundError(TaskCoreError):
    """Unresolved template, assignment, worker, or subtask id."""

    http_status = constants.HTTP_NOT_FOUND


class ConflictError(TaskCoreError):
    """Operation not allowed in the current state (e.g. verifying incomplete work)."""

    http_status = constants.HTTP_CONFLICT


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


_SUGGESTIONS: dict[str, str] = {
    ErrorCode.ERR_VALIDATION: "Check the submitted fields and try again.",
    ErrorCode.ERR_TEMPLATE_NOT_FOUND: "List templates with GET /templates to find a valid id.",
    ErrorCode.ERR_ASSIGNMENT_NOT_FOUND: "List assignments with GET /assignments to find a valid id.",
    ErrorCode.ERR_WORKER_NOT_FOUND: "Make sure the worker exists in the worker directory.",
    ErrorCode.ERR_SUBTASK_NOT_FOUND: "The subtask may have been removed from the template.",
    ErrorCode.ERR_NOT_COMPLETED: "Finish every subtask before asking for verification.",
    ErrorCode.ERR_TEMPLATE_IN_USE: "Templates with assignments are kept for history and cannot be deleted.",
}


def http_status_for(exception: Exception) -> int:
    """Return the HTTP status code a caller-side wrapper should use for an exception."""
    if isinstance(exception, TaskCoreError):
        return exception.http_status
    return constants.HTTP_SERVER_ERROR


def classify_error_with_response(exception: Exception) -> ErrorResponse:
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised during execution

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    if isinstance(exception, TaskCoreError):
        severity = ErrorSeverity.MEDIUM if isinstance(exception, ConflictError) else ErrorSeverity.LOW
        return ErrorResponse(
            code=exception.code,
            message=exception.message,
            suggestion=_SUGGESTIONS.get(exception.code, "Please try again."),
            severity=severity,
        )

    if isinstance(exception, DatabaseError):
        return ErrorResponse(
            code=ErrorCode.ERR_DATABASE,
            message="The task store is unavailable.",
            suggestion="Please try again later. If the problem persists, contact support.",
            severity=ErrorSeverity.HIGH,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
    )
