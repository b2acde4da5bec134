"""
Shared error handling for the Game Store Gateway.

Every client-visible failure renders as ``{"error": <message>}``. The message
is short and generic; diagnostics go to the server log via ``details``.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str


class GatewayException(Exception):
    """Base exception for gateway services."""

    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(error=self.message)


class ValidationError(GatewayException):
    """Missing or malformed request input."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class UnauthorizedError(GatewayException):
    """No credential was presented."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized", details: Optional[Dict[str, Any]] = None):
        super().__init__("UNAUTHORIZED", message, details)


class InvalidTokenError(GatewayException):
    """The identity provider rejected the credential."""

    status_code = 401

    def __init__(self, message: str = "Invalid token", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_TOKEN", message, details)


class AuthenticationError(GatewayException):
    """The credential could not be checked (provider failure)."""

    status_code = 401

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)


class NotFoundError(GatewayException):
    """A single-entity fetch matched zero or several rows."""

    status_code = 404

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class StoreError(GatewayException):
    """Any other failure reported by the external store."""

    status_code = 500

    def __init__(self, message: str = "Store error", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_ERROR", message, details)
