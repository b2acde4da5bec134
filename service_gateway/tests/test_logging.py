"""
Tests for request correlation in structured logs.
"""

import json
import logging

import pytest

from shared.logging import (
    clear_context,
    configure_logging,
    current_context,
    get_logger,
    set_user_context,
    start_request_context,
)


@pytest.fixture(autouse=True)
def reset_context():
    clear_context()
    yield
    clear_context()


def test_start_request_context_keeps_caller_id():
    assert start_request_context("req-123") == "req-123"
    assert current_context() == {"request_id": "req-123"}


def test_start_request_context_generates_id():
    request_id = start_request_context()

    assert request_id
    assert current_context()["request_id"] == request_id


def test_start_request_context_drops_previous_user():
    start_request_context("req-1")
    set_user_context("user-1")

    start_request_context("req-2")

    assert current_context() == {"request_id": "req-2"}


def test_set_user_context_ignores_empty_id():
    start_request_context("req-1")
    set_user_context(None)

    assert "user_id" not in current_context()


def test_events_carry_correlation(caplog):
    configure_logging("gateway", "info")
    caplog.set_level(logging.INFO, logger="gateway.test")
    start_request_context("req-9")
    set_user_context("user-1")

    get_logger("gateway.test").info("Wishlist fetched")

    messages = [record.getMessage() for record in caplog.records if record.name == "gateway.test"]
    assert messages
    event = json.loads(messages[-1])
    assert event["request_id"] == "req-9"
    assert event["user_id"] == "user-1"
    assert event["service"] == "gateway"
    assert event["level"] == "info"
