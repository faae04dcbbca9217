"""Domain errors raised below the HTTP layer.

These never carry a status code themselves; the responder maps them onto
``response:error`` and the route binder maps that onto ``AppError``.
"""

from collections.abc import Mapping


class ProductAPIError(Exception):
    """Base exception for product query and validation failures."""


class QueryError(ProductAPIError):
    """Raised when a query payload cannot be translated into SQL."""


class ProductValidationError(ProductAPIError):
    """Raised when a record fails schema validation.

    Attributes:
        errors: Failing path -> verbatim validation message
    """

    def __init__(self, errors: Mapping[str, str]) -> None:
        self.errors = dict(errors)
        summary = ", ".join(f"{path}: {message}" if path else message for path, message in self.errors.items())
        super().__init__(f"Product validation failed: {summary}")
