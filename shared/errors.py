"""
Shared error handling for the ReBAC authorization core.
"""

from typing import Dict, Any, Optional

from opentelemetry import trace
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class ReBACException(Exception):
    """Base exception for the ReBAC core."""

    http_status: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class NotInitializedError(ReBACException):
    """A component was used before it was wired or bootstrapped."""

    http_status = 503

    def __init__(self, message: str = "Not initialized", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_INITIALIZED", message, details)


class BackendError(ReBACException):
    """The tuple store answered with a non-success status."""

    http_status = 502

    def __init__(
        self,
        operation: str,
        status_code: Optional[int] = None,
        body: str = "",
        message: Optional[str] = None,
        code: str = "BACKEND_ERROR"
    ):
        self.operation = operation
        self.status_code = status_code
        self.body = body
        if message is None:
            message = f"{operation} failed: {status_code} - {body}"
        super().__init__(
            code,
            message,
            {"operation": operation, "status_code": status_code, "body": body}
        )


class BackendUnavailableError(BackendError):
    """The tuple store could not be reached (connection failure or timeout)."""

    http_status = 503

    def __init__(self, operation: str, error: str):
        super().__init__(
            operation,
            body=error,
            message=f"{operation} failed: backend unavailable ({error})",
            code="BACKEND_UNAVAILABLE"
        )


class StoreNotFoundError(ReBACException):
    """No store id is known; bootstrap has not completed."""

    def __init__(self, message: str = "Tuple store not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_NOT_FOUND", message, details)


class ModelNotFoundError(ReBACException):
    """No authorization model id is known."""

    def __init__(self, message: str = "Authorization model not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("MODEL_NOT_FOUND", message, details)


class RoleNotFoundError(ReBACException):
    http_status = 404

    def __init__(self, role_name: str):
        super().__init__("ROLE_NOT_FOUND", f"Role not found: {role_name}", {"role": role_name})


class GroupNotFoundError(ReBACException):
    http_status = 404

    def __init__(self, group_name: str):
        super().__init__("GROUP_NOT_FOUND", f"Group not found: {group_name}", {"group": group_name})


class UserNotFoundError(ReBACException):
    http_status = 404

    def __init__(self, email: str):
        super().__init__("USER_NOT_FOUND", f"User not found: {email}", {"user": email})


class PermissionDeniedError(ReBACException):
    http_status = 403

    def __init__(self, message: str = "Permission denied", details: Optional[Dict[str, Any]] = None):
        super().__init__("PERMISSION_DENIED", message, details)


class InvalidPermissionError(ReBACException):
    http_status = 400

    def __init__(self, permission: str):
        super().__init__(
            "INVALID_PERMISSION", f"Invalid permission: {permission}", {"permission": permission}
        )


class InvalidResourceTypeError(ReBACException):
    http_status = 400

    def __init__(self, resource_type: str):
        super().__init__(
            "INVALID_RESOURCE_TYPE",
            f"Invalid resource type: {resource_type}",
            {"resource_type": resource_type}
        )


class DuplicateEntryError(ReBACException):
    http_status = 409

    def __init__(self, message: str = "Duplicate entry", details: Optional[Dict[str, Any]] = None):
        super().__init__("DUPLICATE_ENTRY", message, details)


class ValidationError(ReBACException):
    """Validation-related errors."""

    http_status = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class InternalError(ReBACException):
    """Unexpected internal failure."""

    def __init__(self, message: str = "Internal error", details: Optional[Dict[str, Any]] = None):
        super().__init__("INTERNAL_ERROR", message, details)
