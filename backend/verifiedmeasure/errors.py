"""Application error taxonomy and FastAPI handlers.

Every error is rendered as ``{"error": message}`` with the class status code.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthError(AppError):
    """Missing or invalid bearer token, or failed admin check."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ValidationError(AppError):
    """Missing required field, non-positive amount, empty id list."""

    status_code = status.HTTP_400_BAD_REQUEST


class NoValidRows(ValidationError):
    """Every row in an import batch was dropped during normalization."""


class InsufficientCredits(AppError):
    """Balance is below the cost of a claim."""

    status_code = status.HTTP_402_PAYMENT_REQUIRED


class UpstreamError(AppError):
    """The data store returned an error. Message is passed through verbatim."""

    status_code = status.HTTP_400_BAD_REQUEST


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    if loc:
        return f"{'.'.join(loc)}: {first.get('msg', 'invalid value')}"
    return first.get("msg", "Invalid request body")


def register_exception_handlers(app: FastAPI) -> None:
    """Attach JSON error renderers to the application."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        logger.warning(
            f"{request.method} {request.url.path} rejected "
            f"({exc.status_code} {type(exc).__name__}): {exc.message}"
        )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        message = _first_validation_message(exc)
        logger.warning(f"{request.method} {request.url.path} invalid body: {message}")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})
