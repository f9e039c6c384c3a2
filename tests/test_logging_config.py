"""Tests for the structlog configuration and request context helpers."""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal

import pytest
import structlog

from internhub.logging_config import (
    bind_actor,
    bind_request_context,
    setup_logging,
    stringify_values,
)


@pytest.fixture(autouse=True)
def _clean_context():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


def test_stringify_values_renders_ids_and_money() -> None:
    dispute_id = uuid.uuid4()
    event = stringify_values(
        None, "info", {"event": "dispute.filed", "dispute_id": dispute_id, "amount": Decimal("1.50")}
    )

    assert event == {"event": "dispute.filed", "dispute_id": str(dispute_id), "amount": "1.50"}


def test_request_context_is_reset_per_request() -> None:
    bind_request_context("req-1", "GET", "/company/disputes")
    bind_actor(uuid.UUID(int=7), "COMPANY")

    bind_request_context("req-2", "PUT", "/company/disputes/x/resolve")

    assert structlog.contextvars.get_contextvars() == {
        "request_id": "req-2",
        "method": "PUT",
        "path": "/company/disputes/x/resolve",
    }


def test_bind_actor_adds_caller() -> None:
    user_id = uuid.uuid4()
    bind_request_context("req-1", "POST", "/api/student/contracts/x/dispute")

    bind_actor(user_id, "STUDENT")

    context = structlog.contextvars.get_contextvars()
    assert context["actor_id"] == str(user_id)
    assert context["actor_role"] == "STUDENT"
    assert context["request_id"] == "req-1"


def test_setup_logging_installs_single_handler() -> None:
    setup_logging(log_level="warning", json_logs=True)
    setup_logging(log_level="info", json_logs=True)

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert root.level == logging.INFO
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
