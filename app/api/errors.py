"""
Exception handlers that render every failure as ``{"success": false, "error": ...}``.
"""

from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from googleapiclient.errors import HttpError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.clients.google_auth import (
    OAuthStateError,
    OAuthTokenExchangeError,
    OAuthUserInfoError,
)
from app.services import (
    AdminNotConfiguredError,
    AdminUnauthorizedError,
    DriveAccessError,
    MissingBearerTokenError,
    TokenRefreshError,
)

logger = logging.getLogger(__name__)

_DOMAIN_ERRORS: dict[type[Exception], HTTPStatus] = {
    AdminNotConfiguredError: HTTPStatus.SERVICE_UNAVAILABLE,
    DriveAccessError: HTTPStatus.SERVICE_UNAVAILABLE,
    AdminUnauthorizedError: HTTPStatus.FORBIDDEN,
    MissingBearerTokenError: HTTPStatus.UNAUTHORIZED,
    TokenRefreshError: HTTPStatus.UNAUTHORIZED,
    OAuthUserInfoError: HTTPStatus.UNAUTHORIZED,
    OAuthStateError: HTTPStatus.BAD_REQUEST,
    OAuthTokenExchangeError: HTTPStatus.BAD_REQUEST,
}


def error_response(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


def _validation_message(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        detail = error.get("msg", "Invalid value")
        messages.append(f"{location}: {detail}" if location else detail)
    return "; ".join(messages) or "Invalid request."


def drive_error_status(exc: HttpError) -> tuple[int, str]:
    """Map a Drive API error onto the status and message returned to callers."""
    upstream = int(getattr(exc.resp, "status", 0) or 0)
    reason = getattr(exc, "reason", None) or str(exc)
    if upstream == HTTPStatus.UNAUTHORIZED:
        return HTTPStatus.UNAUTHORIZED, "Invalid or expired access token"
    if upstream in (HTTPStatus.FORBIDDEN, HTTPStatus.NOT_FOUND):
        return upstream, reason
    return HTTPStatus.INTERNAL_SERVER_ERROR, reason


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the envelope handlers to ``app``."""

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(request: Request, exc: RequestValidationError):
        return error_response(HTTPStatus.BAD_REQUEST, _validation_message(exc))

    @app.exception_handler(HttpError)
    async def _drive_exception_handler(request: Request, exc: HttpError):
        status_code, message = drive_error_status(exc)
        logger.error("Drive API error on %s %s: %s", request.method, request.url.path, exc)
        return error_response(status_code, message)

    for exc_type, status_code in _DOMAIN_ERRORS.items():

        async def _domain_exception_handler(
            request: Request, exc: Exception, _status: HTTPStatus = status_code
        ):
            logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
            return error_response(_status, str(exc))

        app.add_exception_handler(exc_type, _domain_exception_handler)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception: %s", exc, exc_info=True)
        return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal server error")


__all__ = ["drive_error_status", "error_response", "register_exception_handlers"]
