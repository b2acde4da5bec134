"""
Authentication guard for Gateway.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from shared.logging import get_logger, set_user_context
from shared.metrics import MetricsCollector
from shared.errors import (
    AuthenticationError,
    GatewayException,
    InvalidTokenError,
    UnauthorizedError,
)
from ..adapters.auth_client import AuthClient, UserIdentity


@dataclass(frozen=True)
class VerificationResult:
    """Either a resolved identity or the reason the request was rejected."""

    identity: Optional[UserIdentity] = None
    error: Optional[GatewayException] = None

    @property
    def ok(self) -> bool:
        return self.identity is not None


class AuthMiddleware:
    """Bearer-token guard applied per route.

    ``verify`` is the plain guard and never raises; ``require_user`` wraps it
    as a FastAPI dependency that ends the request with 401 on rejection.
    """

    def __init__(self, auth_client: AuthClient, metrics: Optional[MetricsCollector] = None):
        self.auth_client = auth_client
        self.metrics = metrics
        self.logger = get_logger("gateway.auth_middleware")

    @staticmethod
    def extract_token(auth_header: str) -> Optional[str]:
        """Return the second whitespace-delimited segment of the header.

        The scheme name itself is not checked.
        """
        parts = auth_header.split()
        if len(parts) < 2:
            return None
        return parts[1]

    async def verify(self, request: Request) -> VerificationResult:
        """Resolve the request's bearer token to a user identity."""
        auth_header = request.headers.get("Authorization")
        if not auth_header:
            return self._reject("missing", UnauthorizedError())

        token = self.extract_token(auth_header)
        if not token:
            return self._reject("invalid", InvalidTokenError())

        try:
            identity = await self.auth_client.get_user(token)
        except Exception as e:
            self.logger.error("Auth error", error=str(e))
            return self._reject("failed", AuthenticationError(details={"error": str(e)}))

        if identity is None:
            return self._reject("invalid", InvalidTokenError())

        if self.metrics is not None:
            self.metrics.record_auth_verification("ok")
        return VerificationResult(identity=identity)

    async def require_user(self, request: Request) -> UserIdentity:
        """FastAPI dependency for routes that act on the caller's own rows."""
        result = await self.verify(request)
        if not result.ok:
            raise result.error

        request.state.user = result.identity
        set_user_context(result.identity.id)
        self.logger.debug("Request authenticated", user_id=result.identity.id)
        return result.identity

    def _reject(self, outcome: str, error: GatewayException) -> VerificationResult:
        if self.metrics is not None:
            self.metrics.record_auth_verification(outcome)
        return VerificationResult(error=error)
