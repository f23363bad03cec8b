# itscope_connector/main.py

import logging
import os
import subprocess
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request
from sqlalchemy.ext.asyncio import async_sessionmaker

from itscope_connector.container import build_container
from itscope_connector.core.config import Settings, get_settings
from itscope_connector.core.logging_config import configure_logging
from itscope_connector.database import build_engine, build_session_factory
from itscope_connector.routes import health, jobs, orders, products, settings as settings_routes, webhooks
from itscope_connector.scheduler import start_scheduler, stop_scheduler
from itscope_connector.services.itscope.client import ItScopeClient
from itscope_connector.services.shopify.client import ShopifyGraphQLClient

logger = logging.getLogger(__name__)


def run_migrations():
    result = subprocess.run(['alembic', 'upgrade', 'head'], capture_output=True, text=True)
    if result.returncode == 0:
        logger.info("Migrations completed successfully")
    else:
        logger.error(f"Migration failed: {result.stderr}")


def create_app(
    settings: Optional[Settings] = None,
    session_factory: Optional[async_sessionmaker] = None,
    itscope: Optional[ItScopeClient] = None,
    shopify_client_factory: Callable[..., ShopifyGraphQLClient] = ShopifyGraphQLClient,
) -> FastAPI:
    """
    Build the application.

    Engine, session factory and services are created in the lifespan; tests
    pass their own session factory and gateway fakes.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = None
        factory = session_factory
        if factory is None:
            if os.getenv('RUN_MIGRATIONS', 'false').lower() == 'true':
                logger.info("Running database migrations...")
                run_migrations()
            engine = build_engine(settings.DATABASE_URL)
            factory = build_session_factory(engine)

        app.state.settings = settings
        app.state.session_factory = factory
        app.state.container = build_container(
            settings, factory, itscope=itscope, shopify_client_factory=shopify_client_factory
        )

        if settings.SYNC_SCHEDULE_ENABLED:
            await start_scheduler(app.state.container)
        try:
            yield
        finally:
            await stop_scheduler()
            if engine is not None:
                await engine.dispose()

    app = FastAPI(title="ItScope Shopify Connector", lifespan=lifespan, debug=settings.DEBUG)

    # Add middleware to handle HTTPS behind proxy
    @app.middleware("http")
    async def proxy_headers_middleware(request: Request, call_next):
        if request.headers.get("x-forwarded-proto") == "https":
            request.scope["scheme"] = "https"
        return await call_next(request)

    app.include_router(webhooks.router)  # HMAC-authenticated
    app.include_router(jobs.router)  # Bearer CRON_SECRET
    app.include_router(products.router)
    app.include_router(orders.router)
    app.include_router(settings_routes.router)
    app.include_router(health.router)

    return app


def _build_default_app() -> FastAPI:
    configure_logging()
    return create_app()


app = _build_default_app()
