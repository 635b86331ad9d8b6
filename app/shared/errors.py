"""
Domain exceptions and standardized error response helpers.

Repositories and the attachment service raise the exceptions defined here;
the API layer turns them into the consistent JSON error body below, with
correlation ID tracking for debugging.

Usage:
    from app.shared.errors import RepositoryError, error_response, ErrorCode

    try:
        await repo.update(task_id, {"status": "done"})
    except RepositoryError as exc:
        return database_error(operation=exc.operation)

Error body:
    {"error": {"code": "...", "message": "...", "details": {...}, "correlation_id": "..."}}
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel
from fastapi import Request
from fastapi.responses import JSONResponse


class ErrorCode(str, Enum):
    """Standard error codes used across the service."""

    # Client errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Server errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"

    # Domain-specific errors
    STORAGE_ERROR = "STORAGE_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


# =========================================================================
# EXCEPTIONS
# =========================================================================

class RenoDeskError(Exception):
    """Base class for every error raised by the data-access layer."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class RecordValidationError(RenoDeskError):
    """Input rejected before any backend call was made."""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, entity: str, errors: list[dict[str, Any]]):
        fields = ", ".join(".".join(str(p) for p in err.get("loc", ())) or "?" for err in errors)
        super().__init__(
            f"Invalid {entity}: {fields}",
            details={"entity": entity, "errors": errors},
        )
        self.entity = entity
        self.errors = errors


class RepositoryError(RenoDeskError):
    """A backend operation (network, permission, constraint) failed."""

    code = ErrorCode.DATABASE_ERROR

    def __init__(self, entity: str, operation: str, record_id: Optional[str] = None):
        message = f"{entity} {operation} failed"
        if record_id:
            message = f"{message} ({record_id})"
        details = {"entity": entity, "operation": operation}
        if record_id:
            details["record_id"] = record_id
        super().__init__(message, details=details)
        self.entity = entity
        self.operation = operation
        self.record_id = record_id


class RecordNotFoundError(RepositoryError):
    """The targeted row does not exist."""

    code = ErrorCode.NOT_FOUND


class AttachmentError(RenoDeskError):
    """Blob storage upload, lookup or deletion failed."""

    code = ErrorCode.STORAGE_ERROR


class AttachmentNotFoundError(AttachmentError):
    """The object a URL or path points at is not in storage."""


class ConfigurationError(RenoDeskError):
    code = ErrorCode.CONFIGURATION_ERROR


# =========================================================================
# RESPONSE HELPERS
# =========================================================================

class ErrorDetail(BaseModel):
    """Structured error detail model."""
    code: str
    message: str
    details: Optional[dict[str, Any]] = None
    correlation_id: Optional[str] = None


def get_correlation_id(request: Optional[Request] = None) -> Optional[str]:
    """
    Extract correlation ID from request state.

    Args:
        request: FastAPI request object (optional)

    Returns:
        Correlation ID string or None if not available
    """
    if request is None:
        return None
    return getattr(request.state, "correlation_id", None)


def error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """
    Create a standardized JSON error response.

    Args:
        code: Error code from ErrorCode enum
        message: Human-readable error message
        status_code: HTTP status code
        details: Optional additional error details
        correlation_id: Request correlation ID for tracing

    Returns:
        JSONResponse with standardized error format
    """
    error_detail = ErrorDetail(
        code=code.value,
        message=message,
        details=details,
        correlation_id=correlation_id,
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": error_detail.model_dump(mode="json", exclude_none=True)},
    )


def validation_error(
    message: str,
    details: Optional[dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """Create a 400 validation error response."""
    return error_response(
        code=ErrorCode.VALIDATION_ERROR,
        message=message,
        status_code=400,
        details=details,
        correlation_id=correlation_id,
    )


def not_found_error(
    message: str,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """
    Create a 404 not found error response.

    Args:
        message: Description of what was not found
        resource_type: Type of resource (e.g., "contact", "quote")
        resource_id: ID of the missing resource
        correlation_id: Request correlation ID

    Returns:
        JSONResponse with 404 status
    """
    details = {}
    if resource_type:
        details["resource_type"] = resource_type
    if resource_id:
        details["resource_id"] = resource_id

    return error_response(
        code=ErrorCode.NOT_FOUND,
        message=message,
        status_code=404,
        details=details if details else None,
        correlation_id=correlation_id,
    )


def external_service_error(
    service_name: str,
    message: str,
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """
    Create a 502 bad gateway error for external service failures.

    Args:
        service_name: Name of the failing external service
        message: Description of the failure
        correlation_id: Request correlation ID

    Returns:
        JSONResponse with 502 status
    """
    return error_response(
        code=ErrorCode.EXTERNAL_SERVICE_ERROR,
        message=message,
        status_code=502,
        details={"service": service_name},
        correlation_id=correlation_id,
    )


def database_error(
    message: str = "Database operation failed",
    operation: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """
    Create a 500 database error response.

    Args:
        message: User-safe error message
        operation: Type of operation that failed (e.g., "create", "list")
        correlation_id: Request correlation ID

    Returns:
        JSONResponse with 500 status
    """
    details = {"operation": operation} if operation else None
    return error_response(
        code=ErrorCode.DATABASE_ERROR,
        message=message,
        status_code=500,
        details=details,
        correlation_id=correlation_id,
    )
