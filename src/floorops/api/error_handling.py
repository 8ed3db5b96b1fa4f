from __future__ import annotations

import logging
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from floorops.api.middleware.request_id import get_request_id
from floorops.domain.common.errors import (
    ConflictError,
    DomainError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)

logger = logging.getLogger("floorops.api.errors")


def _error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
            },
            "requestId": get_request_id(),
        },
    )


def _domain_exception_handler(status_code: int):
    async def handler(_: Request, exc: Exception) -> JSONResponse:
        domain_exc = cast(DomainError, exc)
        return _error_response(
            status_code=status_code,
            code=domain_exc.code,
            message=str(domain_exc),
            details=domain_exc.details,
        )

    return handler


async def _http_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    message = str(http_exc.detail) if http_exc.detail else "request failed"
    code = "HTTP_ERROR"
    if http_exc.status_code == 404:
        code = "NOT_FOUND"
    elif http_exc.status_code == 405:
        code = "METHOD_NOT_ALLOWED"
    elif http_exc.status_code == 400:
        code = "BAD_REQUEST"
    return _error_response(
        status_code=http_exc.status_code,
        code=code,
        message=message,
    )


async def _validation_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    validation_exc = cast(RequestValidationError, exc)
    return _error_response(
        status_code=400,
        code="INVALID_REQUEST",
        message="request validation failed",
        details={"errors": validation_exc.errors()},
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={"method": request.method, "path": request.url.path},
    )
    return _error_response(
        status_code=500,
        code="INTERNAL_ERROR",
        message="an unexpected error occurred",
    )


def register_exception_handlers(app: FastAPI) -> None:
    # Handlers resolve along the exception MRO, so subclasses inherit their family's status.
    mappings: list[tuple[type[DomainError], int]] = [
        (ValidationError, 422),
        (ConflictError, 409),
        (PreconditionError, 409),
        (NotFoundError, 404),
        (DomainError, 400),
    ]

    for exc_cls, status_code in mappings:
        app.add_exception_handler(exc_cls, _domain_exception_handler(status_code))

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
