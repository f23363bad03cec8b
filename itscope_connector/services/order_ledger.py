# itscope_connector/services/order_ledger.py
"""
Order ledger: the durable record of every purchase order forwarded to ItScope.

``claim`` inserts the ``pending`` row and commits before anything is sent to
the supplier. The (shop, shopify_order_id, distributor_id) unique constraint
turns a second claim for the same slot into an IntegrityError, which is how
duplicate and concurrent webhook deliveries are told apart from first ones.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from itscope_connector.core.enums import OrderStatus
from itscope_connector.models.order import Order
from itscope_connector.schemas.itscope import SubmitResult

logger = logging.getLogger(__name__)


class OrderLedger:

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def claim(
        self,
        *,
        shop: str,
        shopify_order_id: str,
        shopify_order_number: str,
        distributor_id: str,
        own_order_id: str,
        dropship: bool,
    ) -> Optional[Order]:
        """
        Insert the pending row for one (order, distributor) slot.

        Returns None when the slot is already claimed.
        """
        order = Order(
            shop=shop,
            shopify_order_id=shopify_order_id,
            shopify_order_number=shopify_order_number,
            distributor_id=distributor_id,
            itscope_own_order_id=own_order_id,
            status=OrderStatus.PENDING.value,
            dropship=dropship,
        )
        async with self.session_factory() as db:
            db.add(order)
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                logger.info(
                    f"Order {shopify_order_id} already claimed for distributor {distributor_id}, skipping"
                )
                return None
            await db.refresh(order)
        return order

    async def release(self, order_id: int) -> None:
        """Drop a claimed row that turned out to have nothing to send."""
        async with self.session_factory() as db:
            await db.execute(delete(Order).where(Order.id == order_id))
            await db.commit()

    async def record_submission(self, order_id: int, result: SubmitResult) -> None:
        await self._update(
            order_id,
            {
                "itscope_deal_id": result.deal_id or None,
                "status": (OrderStatus.SENT if result.success else OrderStatus.ERROR).value,
                "error_message": result.error or None,
            },
        )

    async def mark_error(self, order_id: int, message: str) -> None:
        await self._update(order_id, {"status": OrderStatus.ERROR.value, "error_message": message})

    async def record_status(
        self,
        order_id: int,
        *,
        status: OrderStatus,
        tracking_number: Optional[str],
        serial_numbers: Optional[List[str]],
        checked_at: Optional[datetime] = None,
    ) -> None:
        await self._update(
            order_id,
            {
                "status": status.value,
                "tracking_number": tracking_number,
                "serial_numbers": serial_numbers,
                "last_status_check": checked_at or datetime.now(timezone.utc),
            },
        )

    async def get(self, order_id: int) -> Optional[Order]:
        async with self.session_factory() as db:
            return await db.get(Order, order_id)

    async def list_by_status(self, statuses: Iterable[str]) -> List[Order]:
        values = [OrderStatus(s).value for s in statuses]
        async with self.session_factory() as db:
            result = await db.execute(
                select(Order).where(Order.status.in_(values)).order_by(Order.id)
            )
            return list(result.scalars().all())

    async def list_for_order(self, shop: str, shopify_order_id: str) -> List[Order]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Order)
                .where(Order.shop == shop, Order.shopify_order_id == shopify_order_id)
                .order_by(Order.id)
            )
            return list(result.scalars().all())

    async def list_recent(self, shop: str, limit: int = 50) -> List[Order]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Order)
                .where(Order.shop == shop)
                .order_by(Order.created_at.desc(), Order.id.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    async def _update(self, order_id: int, values: Dict[str, Any]) -> None:
        async with self.session_factory() as db:
            await db.execute(update(Order).where(Order.id == order_id).values(**values))
            await db.commit()
