# itscope_connector/services/tracked_product_store.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import async_sessionmaker

from itscope_connector.core.enums import ProductCategory
from itscope_connector.core.exceptions import ProductNotFoundError
from itscope_connector.models.tracked_product import TrackedProduct

logger = logging.getLogger(__name__)


class TrackedProductStore:
    """
    Sole writer of ``tracked_products``.

    Every mutation is a single-row statement in its own short transaction;
    concurrent writers (stock loop vs. user edits) are last-write-wins.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    # --- Reads ---

    async def get(self, product_id: int) -> Optional[TrackedProduct]:
        async with self.session_factory() as db:
            return await db.get(TrackedProduct, product_id)

    async def get_by_sku(self, shop: str, sku: str) -> Optional[TrackedProduct]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(TrackedProduct).where(TrackedProduct.shop == shop, TrackedProduct.itscope_sku == sku)
            )
            return result.scalar_one_or_none()

    async def list_active(self, shop: Optional[str] = None) -> List[TrackedProduct]:
        """Active products, newest first; all shops when ``shop`` is None."""
        stmt = select(TrackedProduct).where(TrackedProduct.active.is_(True))
        if shop is not None:
            stmt = stmt.where(TrackedProduct.shop == shop)
        stmt = stmt.order_by(TrackedProduct.created_at.desc(), TrackedProduct.id.desc())
        async with self.session_factory() as db:
            result = await db.execute(stmt)
            return list(result.scalars().all())

    async def list_stock_sync_candidates(self) -> List[TrackedProduct]:
        """Active, inventoried products with a known ItScope product id."""
        stmt = (
            select(TrackedProduct)
            .where(
                TrackedProduct.active.is_(True),
                TrackedProduct.itscope_product_id.is_not(None),
                TrackedProduct.itscope_product_id != "",
                TrackedProduct.product_category != ProductCategory.WARRANTY.value,
            )
            .order_by(TrackedProduct.shop, TrackedProduct.id)
        )
        async with self.session_factory() as db:
            result = await db.execute(stmt)
            return list(result.scalars().all())

    async def find_by_shopify_products(self, shop: str, product_gids: Iterable[str]) -> List[TrackedProduct]:
        gids = [gid for gid in set(product_gids) if gid]
        if not gids:
            return []
        async with self.session_factory() as db:
            result = await db.execute(
                select(TrackedProduct).where(
                    TrackedProduct.shop == shop,
                    TrackedProduct.shopify_product_id.in_(gids),
                    TrackedProduct.active.is_(True),
                )
            )
            return list(result.scalars().all())

    # --- Writes ---

    async def create(self, **fields: Any) -> TrackedProduct:
        product = TrackedProduct(**fields)
        async with self.session_factory() as db:
            db.add(product)
            await db.commit()
            await db.refresh(product)
        logger.info(f"Tracking {product.itscope_sku} for {product.shop} (id={product.id})")
        return product

    async def delete(self, product_id: int) -> None:
        async with self.session_factory() as db:
            await db.execute(delete(TrackedProduct).where(TrackedProduct.id == product_id))
            await db.commit()

    async def update_sync_state(
        self,
        product_id: int,
        *,
        last_stock: int,
        last_price: float,
        price_alert: bool,
        synced_at: Optional[datetime] = None,
    ) -> None:
        await self._update(
            product_id,
            {
                "last_stock": last_stock,
                "last_price": last_price,
                "price_alert": price_alert,
                "last_stock_sync": synced_at or datetime.now(timezone.utc),
            },
        )

    async def update_fields(self, shop: str, product_id: int, values: Dict[str, Any]) -> TrackedProduct:
        """Apply a user edit to one of the shop's products."""
        async with self.session_factory() as db:
            product = await db.get(TrackedProduct, product_id)
            if product is None or product.shop != shop:
                raise ProductNotFoundError(f"Tracked product {product_id} not found for {shop}")
            for key, value in values.items():
                setattr(product, key, value)
            await db.commit()
            await db.refresh(product)
            return product

    async def soft_delete(self, shop: str, product_id: int) -> TrackedProduct:
        return await self.update_fields(shop, product_id, {"active": False})

    async def _update(self, product_id: int, values: Dict[str, Any]) -> None:
        async with self.session_factory() as db:
            await db.execute(update(TrackedProduct).where(TrackedProduct.id == product_id).values(**values))
            await db.commit()
