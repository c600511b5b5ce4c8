"""
Error responses. Every failure is a JSON object with a human-readable
"message"; unexpected failures use {"error", "details"} and only carry
details when debug is on.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from services.errors import LoanPortalError, MissingFieldsError, RequestFailed

logger = logging.getLogger(__name__)

MSG_INVALID_BODY = "Invalid request body."


@contextmanager
def handle_errors(message: str) -> Iterator[None]:
    """Turn unexpected exceptions in the block into RequestFailed(message)."""
    try:
        yield
    except (LoanPortalError, StarletteHTTPException):
        raise
    except Exception as e:
        logger.exception(message)
        raise RequestFailed(message, str(e)) from e


def _debug(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings and settings.debug)


async def loan_portal_error_handler(request: Request, exc: LoanPortalError) -> JSONResponse:
    if isinstance(exc, RequestFailed):
        body = {"error": exc.message}
        if _debug(request):
            body["details"] = exc.details
        return JSONResponse(status_code=exc.status_code, content=body)

    body = {"message": exc.message}
    if isinstance(exc, MissingFieldsError):
        body["fields"] = exc.fields
    if exc.status_code == 401:
        return JSONResponse(status_code=401, content=body, headers={"WWW-Authenticate": "Bearer"})
    return JSONResponse(status_code=exc.status_code, content=body)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"message": MSG_INVALID_BODY, "details": jsonable_encoder(exc.errors())},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    body = {"error": "An error occurred"}
    if _debug(request):
        body["details"] = str(exc)
    return JSONResponse(status_code=500, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LoanPortalError, loan_portal_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
