"""Health check endpoints for monitoring."""
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from product_api.api.events import ProductEvents
from product_api.core.dependencies import get_db, get_intercom
from product_api.core.intercom import Intercom
from product_api.main_config import get_fastapi_config

router = APIRouter(
    prefix="/api",
    tags=["health"],
)


@router.get("/")
async def root():
    """API root endpoint."""
    config = get_fastapi_config()
    return {
        "message": config.title,
        "version": config.version,
        "docs": config.docs_url,
    }


@router.get("/health")
async def health_check(
    session: AsyncSession = Depends(get_db),
    intercom: Intercom = Depends(get_intercom),
):
    """Health check: database reachable and product handlers subscribed."""
    await session.execute(text("SELECT 1"))
    return {
        "status": "healthy",
        "handlers": {
            intercom.name(event): intercom.listener_count(event)
            for event in (
                ProductEvents.FIND,
                ProductEvents.FIND_ONE,
                ProductEvents.CREATE,
                ProductEvents.UPDATE,
                ProductEvents.REMOVE,
            )
        },
    }
