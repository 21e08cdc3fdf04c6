"""
Exception handlers: every failure leaves the API as
``{statusCode, message, success: false}``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.domain.errors import DependencyFailure, DomainError, Unauthenticated

logger = logging.getLogger(__name__)

# Request-location prefixes FastAPI puts in front of field names
_LOCATIONS = {"body", "query", "path", "header", "cookie"}


def failure(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"statusCode": status_code, "message": message, "success": False},
        headers=headers,
    )


async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, DomainError)
    if isinstance(exc, DependencyFailure):
        logger.error(
            "%s %s failed: %s (retryable=%s)", request.method, request.url.path, exc, exc.retryable
        )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return failure(exc.status_code, exc.message, headers)


async def request_validation_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    errors = exc.errors()
    if not errors:
        return failure(400, "Invalid request")
    first = errors[0]
    loc = [str(p) for p in first.get("loc", ()) if str(p) not in _LOCATIONS]
    msg = first.get("msg", "Invalid value")
    return failure(400, f"{'.'.join(loc)}: {msg}" if loc else msg)


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, StarletteHTTPException)
    return failure(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return failure(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
