"""Tests for request-scoped log context."""

import pytest
import structlog

from app.core.logging import bind_context, clear_request_context, set_request_context


@pytest.mark.unit
def test_request_context_starts_fresh_and_clears():
    bind_context(user_id=7)

    set_request_context("req-1")
    assert structlog.contextvars.get_contextvars() == {"request_id": "req-1"}

    bind_context(user_id=42)
    assert structlog.contextvars.get_contextvars() == {"request_id": "req-1", "user_id": 42}

    clear_request_context()
    assert structlog.contextvars.get_contextvars() == {}
