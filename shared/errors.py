"""
Shared error handling for the Design Gateway.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class DesignGatewayException(Exception):
    """Base exception for Design Gateway components."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class NotFoundError(DesignGatewayException):
    """Requested page, frame or node does not exist."""

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class ValidationError(DesignGatewayException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class ConfigurationError(DesignGatewayException):
    """Invalid gateway configuration (quotas, credentials)."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class ThrottledError(DesignGatewayException):
    """Upstream asked us to slow down. Carries the server retry hint in seconds."""

    def __init__(self, retry_after: float, details: Optional[Dict[str, Any]] = None):
        self.retry_after = retry_after
        super().__init__("THROTTLED", f"Upstream throttled, retry after {retry_after}s", details)


class RateLimitError(DesignGatewayException):
    """Rate limiting errors."""

    def __init__(self, message: str = "Rate limit exceeded", details: Optional[Dict[str, Any]] = None):
        super().__init__("RATE_LIMIT_ERROR", message, details)


class OperationCancelledError(DesignGatewayException):
    """A cancellation token fired while waiting."""

    def __init__(self, message: str = "Operation cancelled", details: Optional[Dict[str, Any]] = None):
        super().__init__("CANCELLED", message, details)
