"""
Shared fixtures for Gateway tests.
"""

import pytest

from doubles import StubAuthClient, TestDataFactory


@pytest.fixture
def store():
    """Seeded in-memory store."""
    return TestDataFactory.create_store()


@pytest.fixture
def auth_client():
    """Identity provider stub."""
    return StubAuthClient()
