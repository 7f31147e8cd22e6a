"""
Shared error handling for worker-manager.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str
    message: str
    code: str
    details: Dict[str, Any] = {}


class WorkerManagerException(Exception):
    """Base exception for worker-manager services."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None,
                 status_code: Optional[int] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            error=self.error,
            message=self.message,
            code=self.code,
            details=self.details
        )


class AuthenticationError(WorkerManagerException):
    """Authentication-related errors."""

    status_code = 401
    error = "Unauthorized"

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)


class NotFoundError(WorkerManagerException):
    """Routing misses and missing local records."""

    status_code = 404
    error = "Not found"

    def __init__(self, message: str = "Endpoint not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class ValidationError(WorkerManagerException):
    """Validation-related errors."""

    status_code = 400
    error = "Bad request"

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class UpstreamError(WorkerManagerException):
    """Vendor API errors (transport failures and unusable bodies)."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, service: str, message: str = "Upstream service error",
                 details: Optional[Dict[str, Any]] = None, status_code: Optional[int] = None):
        super().__init__("UPSTREAM_ERROR", f"{service}: {message}", details, status_code)


class StoreError(WorkerManagerException):
    """Relational or object store errors."""

    def __init__(self, message: str = "Store error", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_ERROR", message, details)


class RouteConflictError(WorkerManagerException):
    """Raised at construction when two routes would match the same requests."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("ROUTE_CONFLICT", message, details)
