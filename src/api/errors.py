"""Exception handlers shaping validation failures as field/message pairs."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.models.product import FieldError, to_field_errors

logger = logging.getLogger(__name__)

VALIDATION_FAILED = "Validation failed."


class InvalidRequestError(Exception):
    """Raised by route handlers when the store rejects the supplied fields."""

    def __init__(self, errors: Sequence[FieldError]) -> None:
        super().__init__(VALIDATION_FAILED)
        self.errors = list(errors)


def validation_error_response(errors: Sequence[FieldError]) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": VALIDATION_FAILED,
            "errors": [error.model_dump() for error in errors],
        },
    )


async def _handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = to_field_errors(exc.errors())
    logger.warning(
        "Request validation failed for %s %s",
        request.method,
        request.url.path,
        extra={
            "request_path": request.url.path,
            "errors": [error.model_dump() for error in errors],
        },
    )
    return validation_error_response(errors)


async def _handle_invalid_request(
    request: Request, exc: InvalidRequestError
) -> JSONResponse:
    return validation_error_response(exc.errors)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the validation handlers to the application."""

    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(InvalidRequestError, _handle_invalid_request)
