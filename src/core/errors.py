"""Application error types and their HTTP rendering."""

import logging
from enum import Enum

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    """Categories of errors surfaced to API clients."""

    VALIDATION = "validation"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_CREDENTIALS = "invalid_credentials"
    INTERNAL = "internal"


class ErrorResponse(BaseModel):
    """Error body returned to clients."""

    message: str


class TaskboardError(Exception):
    """Base class for errors that map onto an HTTP response."""

    category: ErrorCategory = ErrorCategory.INTERNAL
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequestError(TaskboardError):
    """Missing or malformed required fields."""

    category = ErrorCategory.VALIDATION
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class UnauthenticatedError(TaskboardError):
    """Missing, invalid or expired access token."""

    category = ErrorCategory.UNAUTHENTICATED
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class ForbiddenError(TaskboardError):
    """Authenticated but not permitted to perform the action."""

    category = ErrorCategory.FORBIDDEN
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(TaskboardError):
    """Referenced entity does not exist."""

    category = ErrorCategory.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(TaskboardError):
    """A unique field is already taken."""

    category = ErrorCategory.CONFLICT
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Already exists"


class InvalidCredentialsError(TaskboardError):
    """Unknown email or wrong password; the two cases are indistinguishable to the caller."""

    category = ErrorCategory.INVALID_CREDENTIALS
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid email or password"


def _error_json(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


async def handle_taskboard_error(request: Request, exc: TaskboardError) -> JSONResponse:
    """Render a TaskboardError as ``{"message": ...}`` with its status code."""
    level = logging.ERROR if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR else logging.WARNING
    logger.log(
        level,
        "request_failed",
        extra={"path": request.url.path, "category": exc.category.value, "error": exc.message},
    )
    return _error_json(exc.status_code, exc.message)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI body/query validation failures in the same error shape."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = InvalidRequestError.default_message
    logger.warning(
        "request_failed",
        extra={"path": request.url.path, "category": ErrorCategory.VALIDATION.value, "error": message},
    )
    return _error_json(status.HTTP_400_BAD_REQUEST, message)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Log unclassified failures (store or I/O) and hide their detail from the client."""
    logger.error(
        "request_failed",
        extra={"path": request.url.path, "category": ErrorCategory.INTERNAL.value, "error": str(exc)},
    )
    return _error_json(status.HTTP_500_INTERNAL_SERVER_ERROR, TaskboardError.default_message)


def register_error_handlers(app: FastAPI) -> None:
    """Attach the error handlers to an application."""
    app.add_exception_handler(TaskboardError, handle_taskboard_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
