"""Shared fixtures for Product API tests."""

from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager
from functools import partial
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from product_api.api import ProductAPI
from product_api.core.database import AsyncDBPool
from product_api.core.intercom import Intercom
from product_api.main_config import DatabaseConfig, IntercomConfig, ProductConfig
from product_api.models import Base
from product_api.repository import ProductRepository

TEE = {"key": "tee", "label": "T-Shirt", "price": 10, "description": "x"}


class EventRecorder:
    """Collects every emission of the given events as (event, args)."""

    def __init__(self, intercom: Intercom, *events: str) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        for event in events:
            intercom.on(event, partial(self._record, event))

    def _record(self, event: str, *args: Any) -> None:
        self.calls.append((event, args))

    def events(self) -> list[str]:
        return [event for event, _ in self.calls]

    def last(self, event: str) -> tuple[Any, ...]:
        matching = [args for name, args in self.calls if name == event]
        assert matching, f"{event} was never emitted (got {self.events()})"
        return matching[-1]


RESPONSE_EVENTS = (
    "response:product:data",
    "response:product:create",
    "response:product:update",
    "response:product:remove",
    "response:error",
)


@pytest.fixture
def sqlite_config(tmp_path: Path) -> DatabaseConfig:
    """Database settings pointing at a fresh aiosqlite file."""
    return DatabaseConfig(
        url_override=f"sqlite+aiosqlite:///{tmp_path / 'products.db'}",
        create_tables=True,
    )


@pytest_asyncio.fixture
async def database(sqlite_config: DatabaseConfig) -> AsyncIterator[DatabaseConfig]:
    """Initialized AsyncDBPool with the products table created."""
    await AsyncDBPool.init(sqlite_config)
    await AsyncDBPool.create_tables(Base.metadata)
    yield sqlite_config
    await AsyncDBPool.dispose()


@pytest.fixture
def intercom() -> Intercom:
    return Intercom()


@pytest.fixture
def recorder(intercom: Intercom) -> EventRecorder:
    return EventRecorder(intercom, *RESPONSE_EVENTS)


@pytest.fixture
def product_config() -> ProductConfig:
    return ProductConfig(route="/products", soft_delete=False, default_lean=False)


@pytest.fixture
def intercom_config() -> IntercomConfig:
    return IntercomConfig(prefix="", access_check=True, deny_without_listener=False)


@pytest.fixture
def api(
    intercom: Intercom, product_config: ProductConfig, intercom_config: IntercomConfig
) -> ProductAPI:
    """ProductAPI on the real session pool (use with the ``database`` fixture)."""
    return ProductAPI(intercom, config=product_config, intercom_config=intercom_config)


# =============================================================================
# Spy wiring: no database, just count repository calls
# =============================================================================


@pytest.fixture
def spy_repository() -> MagicMock:
    repo = MagicMock(spec=ProductRepository)
    repo.find = AsyncMock(return_value=[MagicMock()])
    repo.find_one = AsyncMock(return_value=MagicMock())
    repo.create_product = AsyncMock(return_value=MagicMock())
    repo.create_products = AsyncMock(return_value=[MagicMock()])
    repo.update_where = AsyncMock(return_value=1)
    repo.delete_where = AsyncMock(return_value=1)
    repo.soft_delete_where = AsyncMock(return_value=1)
    return repo


def repository_calls(repo: MagicMock) -> int:
    """Total awaited repository operations."""
    return sum(
        getattr(repo, name).await_count
        for name in (
            "find",
            "find_one",
            "create_product",
            "create_products",
            "update_where",
            "delete_where",
            "soft_delete_where",
        )
    )


@pytest.fixture
def spy_api(
    intercom: Intercom,
    spy_repository: MagicMock,
    product_config: ProductConfig,
    intercom_config: IntercomConfig,
) -> ProductAPI:
    @asynccontextmanager
    async def session_factory() -> AsyncIterator[AsyncMock]:
        yield AsyncMock()

    return ProductAPI(
        intercom,
        session_factory=session_factory,
        repository_factory=lambda session: spy_repository,
        config=product_config,
        intercom_config=intercom_config,
    )


@pytest.fixture
def deny_access(intercom: Intercom) -> Iterator[list[str]]:
    """Register an access listener denying everything; yields checked tags."""
    checked: list[str] = []

    def listener(capability: str, continuation: Any) -> None:
        checked.append(capability)
        continuation(False)

    intercom.on("check:access", listener)
    yield checked
    intercom.off("check:access", listener)
