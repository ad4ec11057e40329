"""
Domain errors raised by the services and the handlers that turn them into responses.

Services never build HTTP responses themselves; they raise one of the
ServiceError subclasses below and `register_error_handlers` maps it to a status
code and a `{"message": ...}` body. Anything else that escapes a route is
logged and reported as a generic 500 so internals never reach the client.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for errors surfaced to API clients with a stable message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def headers(self) -> dict[str, str] | None:
        return None

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message}
        body.update(jsonable_encoder(self.details))
        return body


class ValidationError(ServiceError):
    """Malformed or missing input; the client must fix the request."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidCredentials(ServiceError):
    """Login or password check failed. Never says whether the account exists."""

    status_code = status.HTTP_401_UNAUTHORIZED


class Unauthorized(ServiceError):
    """Missing, invalid or expired bearer token."""

    status_code = status.HTTP_401_UNAUTHORIZED

    @property
    def headers(self) -> dict[str, str] | None:
        return {"WWW-Authenticate": "Bearer"}


class Forbidden(ServiceError):
    """Valid identity without the privilege, or a banned account."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(ServiceError):
    """Uniqueness violation (email or username already taken)."""

    status_code = status.HTTP_409_CONFLICT


class InternalError(ServiceError):
    """Unexpected failure; the body never carries internal details."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class InvalidToken(Exception):
    """Raised by the token service when a token cannot be trusted."""


def register_error_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on the application."""

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            exc.to_body(),
            status_code=exc.status_code,
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            {
                "message": "Invalid request body.",
                "errors": jsonable_encoder(exc.errors()),
            },
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        error = InternalError("Internal server error")
        return JSONResponse(error.to_body(), status_code=error.status_code)
