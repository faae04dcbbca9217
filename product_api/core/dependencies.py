"""
FastAPI dependency injection functions for the bus and the Product API.

The host stores its intercom and ProductAPI on ``app.state`` at creation;
routes pull them from the request instead of importing module globals, so
tests can build as many apps as they need.

Testing with Dependency Override:
    app.dependency_overrides[get_intercom] = lambda: Intercom(prefix="test:")
"""

from collections.abc import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from .database import AsyncDBPool
from .intercom import Intercom


def get_intercom(request: Request) -> Intercom:
    """Intercom bus shared by every API module of this app."""
    return request.app.state.intercom


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency for an async database session.

    Session cleanup and rollback on errors are handled by AsyncDBPool.
    """
    async with AsyncDBPool.get_session() as session:
        yield session
