"""
Shared response shaping for resource APIs.

A resource API composes a ``Responder`` and hands it the awaitable produced
by its query. The responder resolves it exactly once and reports either the
result on the success event or a ``(status, message)`` pair on
``response:error``. Per-call continuations replace bus emission when given.

Result rules:
    - ``None``, an empty sequence or a zero affected-count -> 404 with the
      caller's not-found message
    - a database or query failure -> 404 with the error text appended
    - anything else -> success event carrying the raw result
"""

import inspect
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from fastapi import status
from sqlalchemy.exc import SQLAlchemyError

from .exceptions import ProductAPIError
from .intercom import Intercom

__all__ = ["RESPONSE_ERROR_EVENT", "ErrorCallback", "Responder", "SuccessCallback", "is_empty_result"]

logger = structlog.get_logger(__name__)

RESPONSE_ERROR_EVENT = "response:error"

SuccessCallback = Callable[[Any], Any]
ErrorCallback = Callable[[int, str], Any]


def is_empty_result(data: Any) -> bool:
    if data is None:
        return True
    if isinstance(data, (list, tuple)):
        return len(data) == 0
    # Affected-row counts from update/remove
    return isinstance(data, int) and not isinstance(data, bool) and data == 0


async def _call(callback: Callable[..., Any], *args: Any) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class Responder:
    """Resolve query awaitables into success or error responses.

    Args:
        intercom: Bus the responses are emitted on
        resource: Resource name used in query error messages
    """

    def __init__(self, intercom: Intercom, resource: str) -> None:
        self.intercom = intercom
        self.resource = resource

    async def respond(
        self,
        event: str,
        work: Awaitable[Any] | Any,
        not_found_message: str,
        on_success: SuccessCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Resolve ``work`` and report its outcome once.

        ``work`` is usually a query awaitable; a plain value is reported as is.
        """
        try:
            data = await work if inspect.isawaitable(work) else work
        except (SQLAlchemyError, ProductAPIError) as exc:
            logger.warning("query_failed", resource=self.resource, event_name=event, error=str(exc))
            await self.error(
                status.HTTP_404_NOT_FOUND,
                f"Error querying for {self.resource}(s): {exc}",
                on_error,
            )
            return

        if is_empty_result(data):
            await self.error(status.HTTP_404_NOT_FOUND, not_found_message, on_error)
            return

        if on_success is not None:
            await _call(on_success, data)
        else:
            self.intercom.emit(event, data)

    async def error(self, status_code: int, message: str, on_error: ErrorCallback | None = None) -> None:
        """Report an error through ``on_error`` or ``response:error``."""
        logger.info("response_error", resource=self.resource, status=status_code, message=message)
        if on_error is not None:
            await _call(on_error, status_code, message)
        else:
            self.intercom.emit(RESPONSE_ERROR_EVENT, status_code, message)
