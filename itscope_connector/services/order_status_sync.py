# itscope_connector/services/order_status_sync.py
import logging
from datetime import datetime, timezone
from typing import List, Optional

from itscope_connector.core.config import Settings
from itscope_connector.core.enums import OrderStatus
from itscope_connector.models.order import Order
from itscope_connector.schemas.order import SyncResult
from itscope_connector.services.itscope.client import ItScopeClient
from itscope_connector.services.order_ledger import OrderLedger
from itscope_connector.services.session_service import ShopSessionService

logger = logging.getLogger(__name__)

STATUS_PROGRESSION = [OrderStatus.SENT, OrderStatus.CONFIRMED, OrderStatus.SHIPPED, OrderStatus.DELIVERED]


class OrderStatusSyncService:
    """
    Polls ItScope for the status of forwarded orders and mirrors shipments
    into Shopify.

    A Shopify fulfillment is created only on the transition into ``shipped``
    and only once a tracking number is known, so repeated runs never fulfill
    the same shipment twice.
    """

    def __init__(
        self,
        settings: Settings,
        ledger: OrderLedger,
        itscope: ItScopeClient,
        sessions: ShopSessionService,
    ):
        self.settings = settings
        self.ledger = ledger
        self.itscope = itscope
        self.sessions = sessions

    async def run(self) -> SyncResult:
        logger.info("Starting order status sync...")
        result = SyncResult()

        for order in await self.ledger.list_by_status(self.settings.ORDER_STATUS_POLL_STATUSES):
            try:
                if await self.sync_order(order):
                    result.updated += 1
            except Exception as e:
                logger.error(f"Order status sync error for order {order.id}: {e}", exc_info=True)
                result.errors += 1

        logger.info(f"Order status sync complete: {result.updated} updated, {result.errors} errors")
        return result

    async def sync_order(self, order: Order) -> bool:
        """Poll one order. Returns True when its status changed."""
        lookup_id = order.itscope_deal_id or order.itscope_own_order_id
        if not lookup_id:
            return False

        logger.info(f"Checking status for order {order.id}, lookupId: {lookup_id}")
        deal = await self.itscope.get_deal_status(lookup_id)
        if deal is None:
            return False

        previous = order.order_status
        new_status = next_status(previous, deal.status)
        tracking_number = order.tracking_number
        serial_numbers = order.serial_numbers

        if deal.dispatch_document_url:
            dispatch = await self.itscope.fetch_dispatch_document(deal.dispatch_document_url)
            if dispatch.tracking_numbers:
                tracking_number = dispatch.tracking_numbers[0]
            if dispatch.serial_numbers:
                serial_numbers = dispatch.serial_numbers

        if new_status is OrderStatus.SHIPPED and previous is not OrderStatus.SHIPPED and tracking_number:
            await self.create_fulfillment(order, tracking_number, serial_numbers or [])

        await self.ledger.record_status(
            order.id,
            status=new_status,
            tracking_number=tracking_number,
            serial_numbers=serial_numbers,
            checked_at=datetime.now(timezone.utc),
        )
        return new_status is not previous

    async def create_fulfillment(self, order: Order, tracking_number: str, serial_numbers: List[str]) -> None:
        """
        Fulfill every open fulfillment order of the Shopify order.

        Missing sessions and transport errors propagate so the ledger row is
        left untouched and the order is retried on the next run.
        """
        client = await self.sessions.get_client(order.shop)

        for fulfillment_order in await client.get_fulfillment_orders(order.shopify_order_id):
            if fulfillment_order["status"] != "OPEN":
                continue

            line_items = [
                {"id": li["id"], "quantity": li["remaining_quantity"]}
                for li in fulfillment_order["line_items"]
                if li["remaining_quantity"] > 0
            ]
            if not line_items:
                continue

            errors = await client.create_fulfillment(
                fulfillment_order["id"],
                line_items,
                tracking_number=tracking_number,
                notify_customer=self.settings.NOTIFY_CUSTOMER_ON_FULFILLMENT,
            )
            if errors:
                logger.error(f"Fulfillment errors for {order.shopify_order_id}: {errors}")
            else:
                logger.info(f"Fulfillment created for order {order.shopify_order_id}")

        if serial_numbers:
            await client.annotate_order(order.shopify_order_id, f"Serial Numbers: {', '.join(serial_numbers)}")


def next_status(previous: OrderStatus, reported: Optional[OrderStatus]) -> OrderStatus:
    """Apply a reported deal status; unknown text and backwards moves keep ``previous``."""
    if reported is None or previous not in STATUS_PROGRESSION or reported not in STATUS_PROGRESSION:
        return previous
    if STATUS_PROGRESSION.index(reported) < STATUS_PROGRESSION.index(previous):
        return previous
    return reported
