"""HTTP middleware binding correlation ids and logging each request."""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.logging_config import bind_correlation_id, reset_correlation_id

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag every request with a correlation id and log its completion."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = bind_correlation_id(correlation_id)
        start = time.perf_counter()

        context = {
            "request_method": request.method,
            "request_path": request.url.path,
            "request_host": request.headers.get("host", request.url.hostname or "-"),
            "request_scheme": request.url.scheme,
        }

        try:
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.exception(
                    "Unhandled error while processing %s %s",
                    request.method,
                    request.url.path,
                    extra={**context, "error_type": type(exc).__name__},
                )
                response = JSONResponse(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    content={"detail": "Internal server error."},
                )

            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info(
                "HTTP %s %s responded %d in %.4fms",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
                extra={
                    **context,
                    "status_code": response.status_code,
                    "elapsed_ms": round(elapsed_ms, 4),
                },
            )
            response.headers[REQUEST_ID_HEADER] = correlation_id
            return response
        finally:
            reset_correlation_id(token)
