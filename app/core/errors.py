"""Error kinds raised by the session workflow and the handlers that turn them into HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AuthServiceError(Exception):
    """
    Base for expected failures. `kind` tags the failure; `status_code` is the
    HTTP status the boundary answers with.
    """

    kind: str = "internal"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(AuthServiceError):
    """Missing or malformed input field."""

    kind = "validation"
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(AuthServiceError):
    """Email already registered."""

    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class AuthenticationError(AuthServiceError):
    """Bad credentials, or an unusable refresh / access token."""

    kind = "authentication"
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(AuthServiceError):
    """Reserved for entity lookups outside the session workflow (e.g. user management)."""

    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidTokenError(AuthenticationError):
    """Token signature, expiry, or type check failed."""

    kind = "invalid_token"


def error_body(message: str) -> dict[str, str]:
    return {"status": "error", "message": message}


async def auth_service_error_handler(
    request: Request, exc: AuthServiceError
) -> JSONResponse:
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message),
        headers=headers,
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Report the first failing field only; the raw input is never echoed back.
    errors = exc.errors()
    message = "Invalid request body."
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg', 'invalid value')}" if field else message
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(message),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error on %s %s", request.method, request.url.path
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal Server Error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the shared error envelope to every route of the app."""
    app.add_exception_handler(AuthServiceError, auth_service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
