"""
Application lifespan management for the Product API host.

Startup:
    - Initialize database connection pool
    - Create tables when DATABASE_CREATE_TABLES is set

Shutdown:
    - Wait for bus listeners still running
    - Cleanup database pool
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from product_api.core.database import AsyncDBPool
from product_api.main_config import DatabaseConfig, get_database_config
from product_api.models import Base

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle events."""
    database_config: DatabaseConfig = getattr(app.state, "database_config", None) or get_database_config()

    await AsyncDBPool.init(database_config)
    if database_config.create_tables:
        await AsyncDBPool.create_tables(Base.metadata)
        logger.info("database_tables_created")

    yield

    await app.state.intercom.drain()
    await AsyncDBPool.dispose()
