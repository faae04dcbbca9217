"""HTTP exception hierarchy and standardized error responses.

Exception Hierarchy:
    AppError (HTTPException)
    ├── ClientError (4xx errors)
    │   ├── BadRequestError (400)    malformed bus payload
    │   ├── ForbiddenError (403)     access check denied
    │   ├── NotFoundError (404)      empty result or failed query
    │   └── ConflictError (409)      database constraint violation
    └── ServerError (5xx errors)
        ├── InternalServerError (500)
        └── ServiceUnavailableError (503)  nobody handles the bus event

The route binder turns every ``(status, message)`` pair reported on the bus
into one of these through ``error_for_status``.

Usage:
    # Option 1: Pass individual parameters
    raise NotFoundError(
        message="Product not found",
        detail={"product_id": "9f1c..."}
    )

    # Option 2: Pass ErrorResponse object directly
    raise NotFoundError(ErrorResponse(error_code="PRODUCT_NOT_FOUND", message="Product not found"))
"""

from typing import Any

from fastapi import HTTPException, status
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standardized error response model."""

    success: bool = Field(default=False, description="Always False for errors")
    error_code: str = Field(description="Error code identifier")
    message: str = Field(description="Human-readable error message")
    detail: dict[str, Any] | None = Field(default=None, description="Additional error details")
    path: str | None = Field(default=None, description="Request path where error occurred")


class AppError(HTTPException):
    """Base exception for all application HTTP errors.

    Subclasses pin ``status_code`` and the fallback message through class
    attributes. ``HTTPException.detail`` carries the message; structured
    extras live in ``error_detail``.
    """

    default_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "An error occurred"

    def __init__(
        self,
        message: str | ErrorResponse | None = None,
        error_code: str | None = None,
        status_code: int | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        if isinstance(message, ErrorResponse):
            error_code = message.error_code
            detail = message.detail
            message = message.message

        self.message = message or self.default_message
        super().__init__(status_code=status_code or self.default_status, detail=self.message)
        self.error_code = error_code or self.__class__.__name__
        self.error_detail = detail

    def to_error_response(self, path: str | None = None) -> ErrorResponse:
        return ErrorResponse(
            error_code=self.error_code,
            message=self.message,
            detail=self.error_detail,
            path=path,
        )


# ============================================================================
# Client Exceptions (4xx)
# ============================================================================


class ClientError(AppError):
    default_status = status.HTTP_400_BAD_REQUEST
    default_message = "Client error"


class BadRequestError(ClientError):
    default_status = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class ForbiddenError(ClientError):
    default_status = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(ClientError):
    default_status = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(ClientError):
    default_status = status.HTTP_409_CONFLICT
    default_message = "Conflict"


# ============================================================================
# Server Exceptions (5xx)
# ============================================================================


class ServerError(AppError):
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server error"


class InternalServerError(ServerError):
    default_message = "Internal server error"


class ServiceUnavailableError(ServerError):
    default_status = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Service unavailable"


_STATUS_ERRORS: dict[int, type[AppError]] = {
    error_cls.default_status: error_cls
    for error_cls in (
        BadRequestError,
        ForbiddenError,
        NotFoundError,
        ConflictError,
        InternalServerError,
        ServiceUnavailableError,
    )
}


def error_for_status(status_code: int, message: str, detail: dict[str, Any] | None = None) -> AppError:
    """Build the exception matching a bus ``response:error`` status.

    Unknown 4xx codes fall back to ClientError, anything else to ServerError.
    """
    error_cls = _STATUS_ERRORS.get(status_code)
    if error_cls is not None:
        return error_cls(message, detail=detail)
    if 400 <= status_code < 500:
        return ClientError(message, status_code=status_code, detail=detail)
    return ServerError(message, status_code=status_code, detail=detail)
