"""
Async SQLAlchemy connection pool and database session management.

This module provides a singleton connection pool manager for async SQLAlchemy
operations. Every bus request opens its own session from the pool, so no
session is shared between in-flight operations.

Usage:
    # Initialize once at application startup (in lifespan)
    await AsyncDBPool.init(get_database_config())

    # Use in handlers
    async with AsyncDBPool.get_session() as session:
        result = await session.execute(select(Product))
        products = result.scalars().all()
        await session.commit()

    # Cleanup at shutdown (in lifespan)
    await AsyncDBPool.dispose()
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from product_api.main_config import DatabaseConfig

logger = structlog.get_logger(__name__)


class AsyncDBPool:
    """Async-only SQLAlchemy engine + session manager."""

    _engine: AsyncEngine | None = None
    _maker: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    async def init(cls, config: DatabaseConfig) -> None:
        """Initialize async engine and sessionmaker.

        Args:
            config: DatabaseConfig instance with credentials and pool settings
        """
        if cls._engine is not None:
            return  # already initialized

        cls._engine = create_async_engine(
            config.url,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
            pool_recycle=config.pool_recycle,
            pool_pre_ping=config.pool_pre_ping,
            echo=config.echo,
        )
        cls._maker = async_sessionmaker(cls._engine, expire_on_commit=False, class_=AsyncSession)
        logger.info("database_pool_initialized", dialect=cls._engine.dialect.name)

    @classmethod
    async def create_tables(cls, metadata: MetaData) -> None:
        """Create every table in ``metadata`` that does not exist yet."""
        if cls._engine is None:
            raise RuntimeError("AsyncDBPool not initialized. Call await AsyncDBPool.init() first.")

        async with cls._engine.begin() as conn:
            await conn.run_sync(metadata.create_all)

    @classmethod
    async def dispose(cls) -> None:
        """Dispose engine and clear session maker."""
        if cls._engine is not None:
            await cls._engine.dispose()
            cls._engine = None
            cls._maker = None
            logger.info("database_pool_disposed")

    @classmethod
    @asynccontextmanager
    async def get_session(cls) -> AsyncIterator[AsyncSession]:
        """Yield a session; rollback on exceptions.

        Raises:
            RuntimeError: If pool not initialized
        """
        if cls._maker is None:
            raise RuntimeError("AsyncDBPool not initialized. Call await AsyncDBPool.init() first.")

        async with cls._maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
