"""
Identity provider client for Gateway.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from shared.logging import get_logger
from shared.errors import AuthenticationError


@dataclass(frozen=True)
class UserIdentity:
    """A user resolved from a bearer token."""

    id: str
    email: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict)


class AuthClient:
    """Client for the identity provider's "user for token" endpoint."""

    USER_PATH = "/auth/v1/user"

    def __init__(self, base_url: str, service_key: str, client: httpx.AsyncClient):
        self.base_url = base_url.rstrip('/')
        self.service_key = service_key
        self.client = client
        self.logger = get_logger("gateway.auth_client")

    async def get_user(self, token: str) -> Optional[UserIdentity]:
        """Resolve a bearer token to a user.

        Returns ``None`` when the provider rejects the token or answers
        without a user. Raises ``AuthenticationError`` when the provider
        cannot be reached or returns an unreadable body.
        """
        try:
            response = await self.client.get(
                f"{self.base_url}{self.USER_PATH}",
                headers={
                    "apikey": self.service_key,
                    "Authorization": f"Bearer {token}",
                }
            )

            if response.status_code != 200:
                self.logger.warning(
                    "Token rejected by identity provider",
                    status_code=response.status_code
                )
                return None

            payload = response.json()

        except httpx.HTTPError as e:
            self.logger.error("Identity provider HTTP error", error=str(e))
            raise AuthenticationError(details={"http_error": str(e)})
        except ValueError as e:
            self.logger.error("Identity provider returned invalid JSON", error=str(e))
            raise AuthenticationError(details={"error": str(e)})

        if not isinstance(payload, dict) or not payload.get("id"):
            self.logger.warning("Identity provider returned no user")
            return None

        return UserIdentity(
            id=str(payload["id"]),
            email=payload.get("email"),
            claims=payload
        )
