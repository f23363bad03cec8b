# itscope_connector/cli.py
import asyncio
import json

import click

from itscope_connector.container import build_container
from itscope_connector.core.config import get_settings
from itscope_connector.core.logging_config import configure_logging
from itscope_connector.database import Base, build_engine, build_session_factory

# Import all models to ensure they're registered with the Base
from itscope_connector import models  # noqa: F401


async def _run_job(job_name: str):
    settings = get_settings()
    engine = build_engine(settings.DATABASE_URL)
    try:
        container = build_container(settings, build_session_factory(engine))
        job = getattr(container, job_name)
        return await job.run()
    finally:
        await engine.dispose()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log at DEBUG level")
def cli(verbose):
    """ItScope / Shopify connector maintenance commands"""
    configure_logging("DEBUG" if verbose else None)


@cli.command("create-tables")
def create_tables():
    """Create all database tables directly using SQLAlchemy"""
    settings = get_settings()

    async def _create_tables():
        engine = build_engine(settings.DATABASE_URL)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()
        click.echo("All tables created successfully!")

    asyncio.run(_create_tables())


@cli.command("sync-stock")
def sync_stock():
    """Pull stock and buy prices from ItScope and push stock to Shopify"""
    result = asyncio.run(_run_job("stock_sync"))
    click.echo(json.dumps(result.model_dump()))


@cli.command("sync-order-status")
def sync_order_status():
    """Poll ItScope for forwarded order status and create Shopify fulfillments"""
    result = asyncio.run(_run_job("order_status_sync"))
    click.echo(json.dumps(result.model_dump()))


if __name__ == "__main__":
    cli()
