from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from itscope_connector.core.config import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_factory(request: Request) -> async_sessionmaker:
    return request.app.state.session_factory


async def get_db(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_container(request: Request):
    """The ServiceContainer built in the application lifespan."""
    return request.app.state.container
