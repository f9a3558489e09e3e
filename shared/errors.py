"""
Shared error handling for the SkillSnap Access Layer.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from .logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class AccessLayerException(Exception):
    """Base exception for Access Layer services."""

    status_code: int = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class NotAuthorizedError(AccessLayerException):
    """Request denied by the access policy.

    Every denial renders identically; subclasses exist only so callers and
    logs can tell an authentication failure from a missing role.
    """

    status_code = 401

    def __init__(self):
        super().__init__("NOT_AUTHORIZED", "Not authorized")


class AuthenticationError(NotAuthorizedError):
    """Missing, malformed, expired or badly signed bearer token."""


class AuthorizationError(NotAuthorizedError):
    """Valid identity lacking the role an operation requires."""


class NotFoundError(AccessLayerException):
    """Requested entity does not exist."""

    status_code = 404

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            "NOT_FOUND",
            f"{resource} {resource_id} not found",
            {"resource": resource, "id": resource_id}
        )


class ValidationError(AccessLayerException):
    """Validation-related errors."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class ConcurrentModificationError(AccessLayerException):
    """Row changed or vanished between read and write."""

    status_code = 409

    def __init__(self, resource: str, resource_id: Any, message: str = "Entity was modified concurrently"):
        super().__init__(
            "CONCURRENT_MODIFICATION",
            message,
            {"resource": resource, "id": resource_id}
        )


class ConfigurationError(AccessLayerException):
    """Invalid process configuration; raised only during start-up."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)
