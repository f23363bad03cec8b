# itscope_connector/services/session_service.py
import logging
from typing import Callable, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from itscope_connector.core.config import Settings
from itscope_connector.core.exceptions import StorefrontSessionError
from itscope_connector.models.shop import ShopSession, ShopSettings
from itscope_connector.services.shopify.client import ShopifyGraphQLClient

logger = logging.getLogger(__name__)


def offline_session_id(shop: str) -> str:
    return f"offline_{shop}"


class ShopSessionService:
    """
    Access tokens and per-shop settings.

    Sessions are written by the app install flow; this service only reads
    them (and deletes them on uninstall).
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        settings: Settings,
        client_factory: Callable[..., ShopifyGraphQLClient] = ShopifyGraphQLClient,
    ):
        self.session_factory = session_factory
        self.settings = settings
        self.client_factory = client_factory

    async def get_offline_session(self, shop: str) -> Optional[ShopSession]:
        """The shop's offline session, else any session of the shop with a token."""
        async with self.session_factory() as db:
            session = await db.get(ShopSession, offline_session_id(shop))
            if session and session.access_token:
                return session

            result = await db.execute(
                select(ShopSession)
                .where(ShopSession.shop == shop, ShopSession.access_token != "")
                .order_by(ShopSession.created_at.desc())
            )
            return result.scalars().first()

    async def get_client(self, shop: str) -> ShopifyGraphQLClient:
        session = await self.get_offline_session(shop)
        if not session:
            raise StorefrontSessionError(shop)
        return self.client_factory(shop, session.access_token, self.settings)

    async def delete_sessions(self, shop: str) -> int:
        async with self.session_factory() as db:
            result = await db.execute(delete(ShopSession).where(ShopSession.shop == shop))
            await db.commit()
        logger.info(f"App uninstalled from {shop}, {result.rowcount} session(s) cleaned up")
        return result.rowcount

    # --- Shop settings ---

    async def get_location_id(self, shop: str) -> Optional[str]:
        async with self.session_factory() as db:
            result = await db.execute(select(ShopSettings.location_id).where(ShopSettings.shop == shop))
            return result.scalar_one_or_none()

    async def set_location_id(self, shop: str, location_id: str) -> ShopSettings:
        async with self.session_factory() as db:
            result = await db.execute(select(ShopSettings).where(ShopSettings.shop == shop))
            shop_settings = result.scalar_one_or_none()
            if shop_settings is None:
                shop_settings = ShopSettings(shop=shop, location_id=location_id)
                db.add(shop_settings)
            else:
                shop_settings.location_id = location_id
            await db.commit()
            await db.refresh(shop_settings)
            return shop_settings

    async def resolve_location(self, shop: str, client: ShopifyGraphQLClient) -> Optional[str]:
        """Configured location for the shop, falling back to Shopify's first location."""
        return await client.resolve_default_location(await self.get_location_id(shop))
