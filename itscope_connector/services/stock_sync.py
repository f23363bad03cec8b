# itscope_connector/services/stock_sync.py
"""
Stock and buy-price reconciliation.

Pulls the bound distributor's current offer for every tracked product, pushes
the stock level to Shopify and records the buy price. A price above the
reference (import price, else last seen price) raises a sticky price alert;
only the merchant clears it. Shopify sell prices are never changed here.
"""

import logging
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, List, Optional

from itscope_connector.core.exceptions import StorefrontSessionError
from itscope_connector.models.tracked_product import TrackedProduct
from itscope_connector.schemas.itscope import Offer
from itscope_connector.schemas.order import SyncResult
from itscope_connector.services.itscope.client import ItScopeClient
from itscope_connector.services.session_service import ShopSessionService
from itscope_connector.services.shopify.client import ShopifyGraphQLClient
from itscope_connector.services.tracked_product_store import TrackedProductStore

logger = logging.getLogger(__name__)


def effective_price(offer: Offer, project_id: Optional[str]) -> float:
    """Contract price when the product's project matches one on the offer, else list price."""
    project_price = offer.project_price(project_id)
    return project_price if project_price is not None else offer.price


def reference_price(product: TrackedProduct) -> float:
    if product.import_price is not None:
        return product.import_price
    if product.last_price is not None:
        return product.last_price
    return 0.0


class StockSyncService:

    def __init__(
        self,
        products: TrackedProductStore,
        itscope: ItScopeClient,
        sessions: ShopSessionService,
    ):
        self.products = products
        self.itscope = itscope
        self.sessions = sessions

    async def run(self) -> SyncResult:
        logger.info("Starting stock sync...")
        result = SyncResult()

        by_shop: Dict[str, List[TrackedProduct]] = OrderedDict()
        for product in await self.products.list_stock_sync_candidates():
            by_shop.setdefault(product.shop, []).append(product)

        for shop, products in by_shop.items():
            try:
                client = await self.sessions.get_client(shop)
            except StorefrontSessionError:
                logger.error(f"No session for shop {shop}, skipping {len(products)} product(s)")
                result.errors += len(products)
                continue
            except Exception as e:
                logger.error(f"Session lookup failed for shop {shop}: {e}", exc_info=True)
                result.errors += len(products)
                continue

            location_id = None
            location_resolved = False
            for product in products:
                try:
                    if product.shopify_inventory_item_id and not location_resolved:
                        location_id = await self.sessions.resolve_location(shop, client)
                        location_resolved = True
                    if await self.sync_product(product, client, location_id):
                        result.updated += 1
                except Exception as e:
                    logger.error(f"Stock sync error for {product.itscope_sku}: {e}", exc_info=True)
                    result.errors += 1

        logger.info(f"Stock sync complete: {result.updated} updated, {result.errors} errors")
        return result

    async def sync_product(
        self, product: TrackedProduct, client: ShopifyGraphQLClient, location_id: Optional[str]
    ) -> bool:
        """Sync one product. Returns False when the bound distributor has no offer."""
        offers = await self.itscope.get_stock(product.itscope_product_id)
        offer = next((o for o in offers if o.distributor_id == product.distributor_id), None)
        if offer is None:
            logger.warning(f"No offer from distributor {product.distributor_id} for {product.itscope_sku}")
            return False

        new_stock = offer.stock
        new_price = effective_price(offer, product.project_id)

        if product.shopify_inventory_item_id and location_id:
            logger.debug(
                "Setting inventory for %s: item=%s location=%s qty=%s",
                product.itscope_sku, product.shopify_inventory_item_id, location_id, new_stock,
            )
            await client.activate_and_set_inventory(product.shopify_inventory_item_id, location_id, new_stock)

        reference = reference_price(product)
        price_increased = new_price > reference
        if price_increased:
            logger.warning(
                f"Price alert for {product.itscope_sku}: was {reference:.2f}, now {new_price:.2f}"
            )

        await self.products.update_sync_state(
            product.id,
            last_stock=new_stock,
            last_price=new_price,
            price_alert=True if price_increased else bool(product.price_alert),
            synced_at=datetime.now(timezone.utc),
        )
        return True
