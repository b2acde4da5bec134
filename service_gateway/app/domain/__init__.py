"""
Domain utilities for the Gateway Service.

Includes the authentication guard, request body models and response shaping
helpers shared by every route.
"""

from .auth_middleware import AuthMiddleware, VerificationResult
from .responses import FailurePolicy

__all__ = [
    "AuthMiddleware",
    "VerificationResult",
    "FailurePolicy",
]
