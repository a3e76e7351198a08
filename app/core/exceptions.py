"""Custom exceptions and FastAPI exception handlers.

Every error leaves the API as ``{"error": "<message>"}``. Client errors carry
their specific message; server errors are logged in full and surfaced with
an opaque message.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.logging import get_logger
from app.shared.schemas import ErrorResponse

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


# =============================================================================
# Exception Classes
# =============================================================================


class MetricsError(Exception):
    """Base exception for SalesMetrics application errors.

    All application-specific exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application error.

        Args:
            message: Human-readable error message.
            code: Machine-readable error code.
            status_code: HTTP status code.
            details: Additional error context (logged, never returned).
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    @property
    def public_message(self) -> str:
        """Message safe to return to the caller."""
        if self.status_code >= 500:
            return INTERNAL_ERROR_MESSAGE
        return self.message


class NotFoundError(MetricsError):
    """Resource not found error.

    Raised by the existence guard when a user, group or sale id does not
    resolve. The message names the entity kind, e.g. "User not found".
    """

    def __init__(
        self,
        message: str = "Resource not found",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404,
            details=details,
        )


class DatabaseError(MetricsError):
    """Database operation error.

    Raised when a store round-trip fails (connectivity, constraint, timeout).
    No retry is attempted; callers are expected to re-request.
    """

    def __init__(
        self,
        message: str = "Database operation failed",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="DATABASE_ERROR",
            status_code=500,
            details=details,
        )


class BadRequestError(MetricsError):
    """Bad request error.

    Raised when a required path identifier is missing or malformed. No store
    access is attempted.
    """

    def __init__(
        self,
        message: str = "Bad request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="BAD_REQUEST",
            status_code=400,
            details=details,
        )


# =============================================================================
# Exception Handlers
# =============================================================================


def error_response(status: int, message: str) -> JSONResponse:
    """Create the uniform error body.

    Args:
        status: HTTP status code.
        message: Message returned to the caller.

    Returns:
        JSON response with ``{"error": message}``.
    """
    return JSONResponse(
        status_code=status,
        content=ErrorResponse(error=message).model_dump(),
    )


async def metrics_exception_handler(
    request: Request,
    exc: MetricsError,
) -> JSONResponse:
    """Handle MetricsError exceptions.

    Args:
        request: FastAPI request object.
        exc: The raised exception.

    Returns:
        Error response with the exception's status code.
    """
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "app.error_handled",
        error=exc.message,
        error_type=type(exc).__name__,
        error_code=exc.code,
        status_code=exc.status_code,
        details=exc.details,
        path=str(request.url.path),
    )

    return error_response(exc.status_code, exc.public_message)


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle request validation errors as bad input.

    Args:
        request: FastAPI request object.
        exc: Pydantic validation error.

    Returns:
        400 error response naming the offending fields.
    """
    fields = [
        ".".join(str(part) for part in error.get("loc", []) if part != "body")
        for error in exc.errors()
    ]

    logger.warning(
        "app.validation_error",
        error_count=len(fields),
        path=str(request.url.path),
        fields=fields,
    )

    return error_response(400, f"Invalid request parameters: {', '.join(fields)}")


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle unexpected exceptions.

    Args:
        request: FastAPI request object.
        exc: The raised exception.

    Returns:
        Opaque 500 error response.
    """
    logger.error(
        "app.unhandled_error",
        error=str(exc),
        error_type=type(exc).__name__,
        path=str(request.url.path),
        exc_info=True,
    )

    return error_response(500, INTERNAL_ERROR_MESSAGE)


# =============================================================================
# Handler Registration
# =============================================================================


def register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.add_exception_handler(MetricsError, metrics_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
