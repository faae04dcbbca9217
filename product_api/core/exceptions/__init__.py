"""Exception handling package for the Product API.

Provides the domain errors raised by queries and schema validation, the HTTP
exception hierarchy and the FastAPI handlers producing standardized error
responses.
"""

from .domain import ProductAPIError, ProductValidationError, QueryError
from .handlers import register_exception_handlers
from .http_exceptions import (
    AppError,
    BadRequestError,
    ClientError,
    ConflictError,
    ErrorResponse,
    ForbiddenError,
    InternalServerError,
    NotFoundError,
    ServerError,
    ServiceUnavailableError,
    error_for_status,
)

__all__ = [
    # Base exceptions
    "AppError",
    # Client exceptions (4xx)
    "BadRequestError",
    "ClientError",
    "ConflictError",
    # Models
    "ErrorResponse",
    "ForbiddenError",
    # Server Error (5xx)
    "InternalServerError",
    "NotFoundError",
    # Domain
    "ProductAPIError",
    "ProductValidationError",
    "QueryError",
    "ServerError",
    "ServiceUnavailableError",
    "error_for_status",
    # Handlers
    "register_exception_handlers",
]
