"""Tests for structured logging and request correlation."""

from __future__ import annotations

import io
import json
import logging
import uuid

import pytest

from src.logging_config import (
    CorrelationIdFilter,
    JsonFormatter,
    bind_correlation_id,
    get_correlation_id,
    reset_correlation_id,
    setup_logging,
)


@pytest.fixture()
def json_logger():
    """A logger writing JSON lines into a buffer."""
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(CorrelationIdFilter("product-catalog", "test"))

    logger = logging.getLogger(f"tests.json.{uuid.uuid4().hex}")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    logger.addHandler(handler)

    def _entries():
        return [json.loads(line) for line in stream.getvalue().splitlines()]

    yield logger, _entries
    logger.removeHandler(handler)


def test_json_entry_carries_context_and_extras(json_logger):
    logger, entries = json_logger
    token = bind_correlation_id("req-123")
    try:
        logger.info("Product %s created", "abc", extra={"operation": "create_product"})
    finally:
        reset_correlation_id(token)

    (entry,) = entries()
    assert entry["message"] == "Product abc created"
    assert entry["level"] == "INFO"
    assert entry["correlation_id"] == "req-123"
    assert entry["service_name"] == "product-catalog"
    assert entry["environment"] == "test"
    assert entry["operation"] == "create_product"
    assert entry["timestamp"].endswith("+00:00")
    assert get_correlation_id() is None


def test_json_entry_includes_exception(json_logger):
    logger, entries = json_logger
    try:
        raise ValueError("broken")
    except ValueError:
        logger.exception("Failure")

    (entry,) = entries()
    assert entry["level"] == "ERROR"
    assert "ValueError: broken" in entry["exception"]
    assert "correlation_id" not in entry


def test_setup_logging_does_not_stack_handlers():
    root = logging.getLogger()
    before = len(root.handlers)

    first = setup_logging("product-catalog")
    second = setup_logging("product-catalog")

    assert first not in root.handlers
    assert second in root.handlers
    assert len(root.handlers) in (before, before + 1)


@pytest.mark.asyncio
async def test_request_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Request-ID": "trace-42"})

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "trace-42"


@pytest.mark.asyncio
async def test_request_id_is_generated_when_missing(client):
    response = await client.get("/health")

    assert uuid.UUID(response.headers["X-Request-ID"])


@pytest.mark.asyncio
async def test_route_logs_carry_operation_and_level(client, caplog):
    with caplog.at_level(logging.INFO):
        await client.get(f"/products/{uuid.uuid4()}")

    warning = next(r for r in caplog.records if r.levelno == logging.WARNING)
    assert warning.operation == "get_product"
    assert any(
        r.getMessage().startswith("HTTP GET /products/") for r in caplog.records
    )
