"""
FastAPI host for the Product API with async lifespan management.

This module builds the application with:
- Structured logging with request correlation IDs
- Async database connection pooling (AsyncDBPool)
- An intercom bus with the ProductAPI handlers subscribed
- Product HTTP routes bound onto the same bus events
- CORS middleware configuration and standardized error responses

Architecture:
    - Logging configured before app creation (JSON/console)
    - Lifespan context manager handles database pool initialization/cleanup
    - Configuration is loaded from environment-specific .env files
"""

from uuid import uuid4

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from product_api.api import ProductAPI, RouteOptions
from product_api.core.exceptions import register_exception_handlers
from product_api.core.intercom import Intercom
from product_api.core.lifespan import app_lifespan
from product_api.core.logging_config import setup_logging
from product_api.main_config import (
    DatabaseConfig,
    get_cors_config,
    get_fastapi_config,
    get_intercom_config,
    get_product_config,
    get_settings,
)
from product_api.routes import health


def create_app(
    intercom: Intercom | None = None,
    database_config: DatabaseConfig | None = None,
    api: ProductAPI | None = None,
) -> FastAPI:
    """Build the FastAPI host.

    Args:
        intercom: Bus to use; a new one with the configured prefix by default
        database_config: Overrides DATABASE_* settings (tests point this at aiosqlite)
        api: Pre-built ProductAPI; one is created on ``intercom`` otherwise
    """
    fastapi_config = get_fastapi_config()
    cors_config = get_cors_config()

    if api is not None:
        intercom = api.intercom
    intercom = intercom or Intercom(prefix=get_intercom_config().prefix)
    api = api or ProductAPI(intercom)

    app = FastAPI(
        title=fastapi_config.title,
        description=fastapi_config.description,
        version=fastapi_config.version,
        docs_url=fastapi_config.docs_url,
        redoc_url=fastapi_config.redoc_url,
        openapi_url=fastapi_config.openapi_url,
        root_path=fastapi_config.root_path,
        lifespan=app_lifespan,
        debug=fastapi_config.debug,
    )
    app.state.intercom = intercom
    app.state.product_api = api
    app.state.database_config = database_config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_config.origins_list,
        allow_credentials=cors_config.allow_credentials,
        allow_methods=cors_config.methods_list,
        allow_headers=cors_config.headers_list,
    )

    # Adds request_id to the logging context
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name="X-Request-ID",
        generator=lambda: uuid4().hex[:16],
        validator=None,
        transformer=lambda x: x,
    )

    register_exception_handlers(app)

    app.include_router(health.router)
    product_router = APIRouter(tags=["products"])
    api.bind_routes(product_router, RouteOptions(route=get_product_config().route))
    app.include_router(product_router)

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "product_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_config=None,  # keep the structlog setup
    )
