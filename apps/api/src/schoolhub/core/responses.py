"""
Response Envelope

Every endpoint answers with one of:
- ``{"ok": true, "data": {...}}`` on success
- ``{"ok": false, "errors": [...]}`` when a payload fails validation (400)
- ``{"ok": false, "message": "..."}`` for any other failure
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from schoolhub.core.errors import ServiceError, ValidationError
from schoolhub.core.validators import format_validation_errors

logger = logging.getLogger(__name__)


def ok(data: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """Wrap a result in the success envelope. Pydantic models are dumped by alias."""
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True, mode="json")
    return JSONResponse(
        status_code=status_code,
        content={"ok": True, "data": jsonable_encoder(data)},
    )


def fail(message: str, status_code: int, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"ok": False, "message": message},
        headers=headers,
    )


def fail_validation(errors: list[str]) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"ok": False, "errors": errors},
    )


# ============================================
# Exception handlers
# ============================================


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if isinstance(exc, ValidationError):
        return fail_validation(exc.errors)

    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code}")
    return fail(exc.message, exc.status_code, exc.headers)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = format_validation_errors(exc.errors())
    logger.info(f"{request.method} {request.url.path} -> 400 validation: {errors}")
    return fail_validation(errors)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return fail("An unexpected error occurred.", status.HTTP_500_INTERNAL_SERVER_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the envelope handlers on an application."""
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


__all__ = [
    "fail",
    "fail_validation",
    "ok",
    "register_exception_handlers",
]
