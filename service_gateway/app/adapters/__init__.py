"""
Adapters package for the Gateway Service.

Contains HTTP client wrappers for the external backend-as-a-service:

- AuthClient: resolves bearer tokens through the identity provider
- StoreClient: scoped reads and writes against the relational store

Both adapters share one ``httpx.AsyncClient`` owned by the service. Store
failures come back as values (``StoreResult``); nothing is retried.
"""

from .auth_client import AuthClient, UserIdentity
from .store_client import StoreClient, StoreFailure, StoreResult

__all__ = [
    "AuthClient",
    "UserIdentity",
    "StoreClient",
    "StoreFailure",
    "StoreResult",
]
