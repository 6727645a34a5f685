"""Structured JSON logging with per-request correlation ids.

Every entry is a single JSON object carrying ``timestamp`` (UTC, ISO 8601),
``level``, ``logger``, ``message``, ``service_name``, ``environment``, the
current ``correlation_id`` and any field passed through ``extra=``. Tracebacks
are attached under ``exception``.

Usage::

    from src.logging_config import setup_logging
    setup_logging("product-catalog", environment="development", level="INFO")

    logger = logging.getLogger(__name__)
    logger.info("Product created", extra={"product_id": str(product.id)})
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from typing import Any

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RESERVED_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName", "correlation_id", "service_name", "environment"}

_HANDLER_MARKER = "_product_catalog_handler"


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def bind_correlation_id(correlation_id: str) -> Token[str | None]:
    """Bind the correlation id for the current context (request or task)."""
    return _correlation_id.set(correlation_id)


def reset_correlation_id(token: Token[str | None]) -> None:
    _correlation_id.reset(token)


class CorrelationIdFilter(logging.Filter):
    """Inject service context and the bound correlation id into every record."""

    def __init__(self, service_name: str, environment: str) -> None:
        super().__init__()
        self.service_name = service_name
        self.environment = environment

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = self.service_name
        record.environment = self.environment
        if not getattr(record, "correlation_id", None):
            record.correlation_id = get_correlation_id()
        return True


class JsonFormatter(logging.Formatter):
    """Formatter that renders log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in ("service_name", "environment", "correlation_id"):
            value = getattr(record, key, None)
            if value is not None:
                log_data[key] = value

        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRIBUTES and not key.startswith("_"):
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(
    service_name: str,
    *,
    environment: str = "development",
    level: str = "INFO",
    log_format: str = "json",
) -> logging.Handler:
    """Install the stdout handler on the root logger.

    Calling it again replaces the handler installed by the previous call, so
    building several applications in one process does not duplicate output.
    """
    handler = logging.StreamHandler(sys.stdout)
    if log_format == "text":
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"
            )
        )
    else:
        handler.setFormatter(JsonFormatter())
    handler.addFilter(CorrelationIdFilter(service_name, environment))
    setattr(handler, _HANDLER_MARKER, True)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, _HANDLER_MARKER, False):
            root.removeHandler(existing)
    root.setLevel(level)
    root.addHandler(handler)

    # Request lines come from our middleware instead.
    logging.getLogger("uvicorn.access").disabled = True

    return handler
