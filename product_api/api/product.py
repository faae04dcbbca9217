"""
Product API: event-driven CRUD handlers over the Product repository.

Every handler follows the same path:

    inbound event -> payload shape check (400) -> access check (403)
    -> one repository call -> success event or response:error (404)

Handlers accept optional ``on_success(data)`` / ``on_error(status, message)``
continuations. When given they receive the outcome instead of the bus,
which is how the HTTP route binder correlates a response with its request.

Usage:
    intercom = Intercom()
    api = ProductAPI(intercom)
    intercom.on("response:product:data", print)
    intercom.emit("product:find", {"conditions": {"product_type": "bundle"}})
"""

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any, TypeVar

import structlog
from fastapi import APIRouter, Body, Query, Request, status
from fastapi.encoders import jsonable_encoder
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from product_api.core.access import AllowAllAuthorizer, Authorizer, IntercomAuthorizer
from product_api.core.database import AsyncDBPool
from product_api.core.exceptions import InternalServerError, ServiceUnavailableError, error_for_status
from product_api.core.intercom import Intercom
from product_api.core.query import FindQuery, UpdateQuery
from product_api.core.responder import ErrorCallback, Responder, SuccessCallback
from product_api.main_config import IntercomConfig, ProductConfig, get_intercom_config, get_product_config
from product_api.models.product import Product
from product_api.repository.product_repository import ProductRepository, product_model

from .events import ProductEvents

__all__ = ["PRIVILEGE_MESSAGE", "ProductAPI", "RouteOptions"]

logger = structlog.get_logger(__name__)

T = TypeVar("T")

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]
RepositoryFactory = Callable[[AsyncSession], ProductRepository]

PRIVILEGE_MESSAGE = "You do not have the privileges to perform this operation."
NO_CONDITIONS_MESSAGE = "No query conditions were specified"
NO_UPDATES_MESSAGE = "No updates were specified"
NO_CREATE_DATA_MESSAGE = "No data supplied for creating new product."
NO_REMOVE_CONDITIONS_MESSAGE = "No conditions specified for remove operation."

NOT_FOUND_FIND = "No products matched your criteria."
NOT_FOUND_FIND_ONE = "No product matched your criteria."
NOT_FOUND_CREATE = "No product was created based on your criteria."
NOT_FOUND_UPDATE = "No products were updated based on your criteria."
NOT_FOUND_REMOVE = "No product was removed based on your criteria."
NOT_FOUND_DATA = "Product was not found."

# Query-string keys that are options rather than conditions
_RESERVED_PARAMS = {"limit", "skip", "sort", "fields", "lean"}


@dataclass(frozen=True)
class RouteOptions:
    """Where the HTTP routes are mounted on the router."""

    route: str = "/products"


def _serialize(data: Any) -> Any:
    if isinstance(data, Product):
        return data.to_dict()
    if isinstance(data, list):
        return [_serialize(item) for item in data]
    return jsonable_encoder(data)


class ProductAPI:
    """Subscribe Product CRUD handlers to the intercom bus.

    Args:
        intercom: Shared event bus
        session_factory: Async context manager factory yielding a session per call
        authorizer: Access check delegate. Defaults to asking over the bus,
            or allowing everything when ``INTERCOM_ACCESS_CHECK`` is off.
        repository_factory: Builds the query handle for a session
        config: Product settings (soft delete, default lean)
        intercom_config: Access-check settings
    """

    resource = "product"

    def __init__(
        self,
        intercom: Intercom,
        session_factory: SessionFactory = AsyncDBPool.get_session,
        authorizer: Authorizer | None = None,
        repository_factory: RepositoryFactory = product_model,
        config: ProductConfig | None = None,
        intercom_config: IntercomConfig | None = None,
    ) -> None:
        self.intercom = intercom
        self.session_factory = session_factory
        self.repository_factory = repository_factory
        self.config = config or get_product_config()

        if authorizer is None:
            intercom_config = intercom_config or get_intercom_config()
            if intercom_config.access_check:
                authorizer = IntercomAuthorizer(intercom, intercom_config.deny_without_listener)
            else:
                authorizer = AllowAllAuthorizer()
        self.authorizer = authorizer

        self.responder = Responder(intercom, self.resource)
        self.router: APIRouter | None = None
        self.register_events()

    # ------------------------------------------------------------------
    # Bus wiring
    # ------------------------------------------------------------------

    def _handlers(self) -> dict[str, Callable[..., Awaitable[None]]]:
        return {
            ProductEvents.DATA: self.handle_data,
            ProductEvents.FIND: self.find,
            ProductEvents.FIND_ONE: self.find_one,
            ProductEvents.CREATE: self.create,
            ProductEvents.UPDATE: self.update,
            ProductEvents.REMOVE: self.remove,
        }

    def register_events(self) -> None:
        """Subscribe every handler to its inbound event."""
        for event, handler in self._handlers().items():
            self.intercom.on(event, handler)

    def unregister_events(self) -> None:
        for event, handler in self._handlers().items():
            self.intercom.off(event, handler)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _authorized(self, capability: str, on_error: ErrorCallback | None) -> bool:
        decision = await self.authorizer.check(capability)
        if decision.allowed:
            return True
        logger.warning("product_access_denied", capability=capability, reason=decision.reason)
        await self.responder.error(status.HTTP_403_FORBIDDEN, PRIVILEGE_MESSAGE, on_error)
        return False

    async def _run(self, operation: Callable[[ProductRepository], Awaitable[T]]) -> T:
        """Run one repository operation in its own session and commit it."""
        async with self.session_factory() as session:
            repository = self.repository_factory(session)
            result = await operation(repository)
            await session.commit()
            return result

    async def _read(
        self,
        operation: Callable[[ProductRepository], Awaitable[Any]],
        fields: list[str] | None,
        lean: bool | None,
    ) -> Any:
        data = await self._run(operation)
        if lean is None:
            lean = self.config.default_lean
        if not (fields or lean):
            return data
        if isinstance(data, list):
            return [item.to_dict(fields) for item in data]
        return data.to_dict(fields) if data is not None else None

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def handle_data(
        self,
        data: Awaitable[Any] | Any,
        on_success: SuccessCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Report product data produced by someone else's query."""
        await self.responder.respond(ProductEvents.RESPONSE_DATA, data, NOT_FOUND_DATA, on_success, on_error)

    async def find(
        self,
        query: Mapping[str, Any] | FindQuery | None = None,
        on_success: SuccessCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Find products by conditions, or a single product when the query has an ``id`` key.

        Args:
            query: ``{conditions, fields, options, id?}``; None finds everything.
                An ``id`` key, even a null one, selects the single lookup.
        """
        if query is None:
            query = {"conditions": {}}
        try:
            find = query if isinstance(query, FindQuery) else FindQuery.model_validate(query)
        except ValidationError as exc:
            await self.responder.error(status.HTTP_400_BAD_REQUEST, f"Invalid query: {exc}", on_error)
            return

        if not await self._authorized(ProductEvents.FIND, on_error):
            return

        if "id" in find.model_fields_set:
            logger.info("product_find", product_id=find.id)
            conditions = {"id": find.id}
            work = self._read(lambda repo: repo.find_one(conditions, find.options), find.fields, find.options.lean)
        else:
            logger.info("product_find", conditions=find.conditions)
            work = self._read(lambda repo: repo.find(find.conditions, find.options), find.fields, find.options.lean)

        await self.responder.respond(ProductEvents.RESPONSE_DATA, work, NOT_FOUND_FIND, on_success, on_error)

    async def find_one(
        self,
        query: Mapping[str, Any] | FindQuery | None,
        on_success: SuccessCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Find the first product matching ``query["conditions"]``."""
        if query is None or (isinstance(query, Mapping) and query.get("conditions") is None):
            await self.responder.error(status.HTTP_400_BAD_REQUEST, NO_CONDITIONS_MESSAGE, on_error)
            return
        try:
            find = query if isinstance(query, FindQuery) else FindQuery.model_validate(query)
        except ValidationError as exc:
            await self.responder.error(status.HTTP_400_BAD_REQUEST, f"Invalid query: {exc}", on_error)
            return

        if not await self._authorized(ProductEvents.FIND_ONE, on_error):
            return

        logger.info("product_find_one", conditions=find.conditions)
        work = self._read(lambda repo: repo.find_one(find.conditions, find.options), find.fields, find.options.lean)
        await self.responder.respond(ProductEvents.RESPONSE_DATA, work, NOT_FOUND_FIND_ONE, on_success, on_error)

    async def create(
        self,
        data: Mapping[str, Any] | list[Mapping[str, Any]] | None,
        on_success: SuccessCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Create one product from a mapping, or several from a list."""
        if not data or not isinstance(data, (Mapping, list)):
            await self.responder.error(status.HTTP_400_BAD_REQUEST, NO_CREATE_DATA_MESSAGE, on_error)
            return

        if not await self._authorized(ProductEvents.CREATE, on_error):
            return

        if isinstance(data, list):
            logger.info("product_create", count=len(data))
            work = self._run(lambda repo: repo.create_products(data))
        else:
            logger.info("product_create", key=data.get("key"))
            work = self._run(lambda repo: repo.create_product(data))

        await self.responder.respond(ProductEvents.RESPONSE_CREATE, work, NOT_FOUND_CREATE, on_success, on_error)

    async def update(
        self,
        query: Mapping[str, Any] | UpdateQuery | None,
        on_success: SuccessCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Update the first matching product, or all of them with ``options.multi``.

        Reports the number of products updated.
        """
        if not isinstance(query, UpdateQuery):
            if not isinstance(query, Mapping) or query.get("conditions") is None:
                await self.responder.error(status.HTTP_400_BAD_REQUEST, NO_CONDITIONS_MESSAGE, on_error)
                return
            if query.get("updates") is None:
                await self.responder.error(status.HTTP_400_BAD_REQUEST, NO_UPDATES_MESSAGE, on_error)
                return
            try:
                query = UpdateQuery.model_validate(query)
            except ValidationError as exc:
                await self.responder.error(status.HTTP_400_BAD_REQUEST, f"Invalid update: {exc}", on_error)
                return

        if not await self._authorized(ProductEvents.UPDATE, on_error):
            return

        update = query
        logger.info("product_update", conditions=update.conditions, multi=update.options.multi)
        work = self._run(
            lambda repo: repo.update_where(update.conditions, update.updates, multi=update.options.multi)
        )
        await self.responder.respond(ProductEvents.RESPONSE_UPDATE, work, NOT_FOUND_UPDATE, on_success, on_error)

    async def remove(
        self,
        conditions: Mapping[str, Any] | None,
        on_success: SuccessCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Remove matching products and report how many were removed.

        Rows are deleted, or stamped with ``date_deleted`` when
        ``PRODUCT_SOFT_DELETE`` is on. Empty conditions match every product.
        """
        if conditions is None or not isinstance(conditions, Mapping):
            await self.responder.error(status.HTTP_400_BAD_REQUEST, NO_REMOVE_CONDITIONS_MESSAGE, on_error)
            return

        if not await self._authorized(ProductEvents.REMOVE, on_error):
            return

        logger.info("product_remove", conditions=dict(conditions), soft=self.config.soft_delete)
        if self.config.soft_delete:
            work = self._run(lambda repo: repo.soft_delete_where(conditions))
        else:
            work = self._run(lambda repo: repo.delete_where(conditions))

        await self.responder.respond(ProductEvents.RESPONSE_REMOVE, work, NOT_FOUND_REMOVE, on_success, on_error)

    # ------------------------------------------------------------------
    # HTTP route binder
    # ------------------------------------------------------------------

    async def _dispatch(self, event: str, payload: Any) -> Any:
        """Emit ``event`` with a continuation pair and return its outcome.

        Raises:
            AppError: The handler reported an error
            ServiceUnavailableError: Nobody listens on ``event``
        """
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

        def on_success(data: Any) -> None:
            if not future.done():
                future.set_result(data)

        def on_error(status_code: int, message: str) -> None:
            if not future.done():
                future.set_exception(error_for_status(status_code, message))

        if not await self.intercom.emit_async(event, payload, on_success, on_error):
            raise ServiceUnavailableError(f"No handler registered for '{self.intercom.name(event)}'")
        if not future.done():
            raise InternalServerError(f"Handler for '{self.intercom.name(event)}' did not respond")
        return future.result()

    def bind_routes(
        self, router: APIRouter, route_options: RouteOptions | Mapping[str, Any] | None = None
    ) -> APIRouter:
        """Mount GET/POST/PUT/DELETE product routes on ``router``.

        Each route re-emits the matching bus event, so a host that swaps the
        handlers on the bus changes the HTTP behaviour too.
        """
        if route_options is None:
            route_options = RouteOptions(route=self.config.route)
        elif isinstance(route_options, Mapping):
            route_options = RouteOptions(**route_options)

        self.router = router
        base = route_options.route.rstrip("/")

        @router.get(base + "/{product_id}")
        async def get_product(product_id: str) -> Any:
            """Get a specific product by id."""
            return _serialize(await self._dispatch(ProductEvents.FIND, {"id": product_id}))

        @router.get(base or "/")
        async def list_products(
            request: Request,
            limit: int | None = Query(None, ge=1, le=1000, description="Max records to return"),
            skip: int | None = Query(None, ge=0, description="Records to skip"),
            sort: str | None = Query(None, description='Sort spec, e.g. "price -stock"'),
            fields: str | None = Query(None, description="Comma separated projection"),
        ) -> Any:
            """List products; remaining query parameters are equality conditions."""
            conditions = {
                key: value for key, value in request.query_params.items() if key not in _RESERVED_PARAMS
            }
            query = {
                "conditions": conditions,
                "fields": fields,
                "options": {"limit": limit, "skip": skip, "sort": sort},
            }
            return _serialize(await self._dispatch(ProductEvents.FIND, query))

        @router.post(base or "/", status_code=status.HTTP_201_CREATED)
        async def create_product(payload: dict[str, Any] | list[dict[str, Any]] = Body(...)) -> Any:
            """Create one product, or several from a JSON array."""
            return _serialize(await self._dispatch(ProductEvents.CREATE, payload))

        @router.put(base + "/{product_id}")
        async def update_product(product_id: str, updates: dict[str, Any] = Body(...)) -> Any:
            """Update an existing product."""
            query = {"conditions": {"id": product_id}, "updates": updates}
            return {"updated": await self._dispatch(ProductEvents.UPDATE, query)}

        @router.delete(base + "/{product_id}")
        async def delete_product(product_id: str) -> Any:
            """Remove a product."""
            return {"removed": await self._dispatch(ProductEvents.REMOVE, {"id": product_id})}

        return router
