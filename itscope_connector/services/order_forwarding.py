# itscope_connector/services/order_forwarding.py
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from itscope_connector.core.config import Settings
from itscope_connector.core.exceptions import StorefrontSessionError
from itscope_connector.models.tracked_product import TrackedProduct
from itscope_connector.schemas.itscope import (
    Address,
    BuyerParty,
    ContactParty,
    OrderDocumentParams,
    OrderLineItem,
    SubmitResult,
)
from itscope_connector.schemas.order import ShopifyAddress, ShopifyLineItem, ShopifyOrderPayload
from itscope_connector.services.itscope.client import ItScopeClient
from itscope_connector.services.itscope.distributors import DistributorRegistry
from itscope_connector.services.itscope.order_document import build_order_xml, own_order_ids
from itscope_connector.services.order_ledger import OrderLedger
from itscope_connector.services.session_service import ShopSessionService
from itscope_connector.services.tracked_product_store import TrackedProductStore

logger = logging.getLogger(__name__)

MAX_NOTE_ERROR_LENGTH = 200


@dataclass
class DistributorGroup:
    distributor_id: str
    own_order_id: str
    lines: List[tuple]  # (ShopifyLineItem, TrackedProduct)

    @property
    def products(self) -> List[TrackedProduct]:
        return [product for _, product in self.lines]

    @property
    def dropship(self) -> bool:
        return any(product.is_dropship for product in self.products)

    @property
    def label(self) -> str:
        return self.products[0].distributor_name or self.distributor_id


@dataclass
class ForwardingOutcome:
    distributor_id: str
    own_order_id: str
    status: str  # "sent", "error", "skipped" or "empty"
    deal_id: Optional[str] = None
    error: Optional[str] = None


class OrderForwardingService:
    """
    Forwards a Shopify order to ItScope as one purchase order per distributor.

    Each (order, distributor) pair is sent at most once: the ledger row is
    claimed before submission and a failed claim means another delivery of
    the same webhook got there first.
    """

    def __init__(
        self,
        settings: Settings,
        products: TrackedProductStore,
        ledger: OrderLedger,
        itscope: ItScopeClient,
        sessions: ShopSessionService,
        distributors: Optional[DistributorRegistry] = None,
    ):
        self.settings = settings
        self.products = products
        self.ledger = ledger
        self.itscope = itscope
        self.sessions = sessions
        self.distributors = distributors or DistributorRegistry(settings)

    # ===== 1. ENTRY POINT =====

    async def handle_order_created(
        self, shop: str, payload: Union[ShopifyOrderPayload, dict]
    ) -> List[ForwardingOutcome]:
        order = payload if isinstance(payload, ShopifyOrderPayload) else ShopifyOrderPayload.model_validate(payload)
        logger.info(f"New order {order.id} from {shop}")

        groups = await self.group_by_distributor(shop, order)
        if not groups:
            return []

        outcomes = []
        for group in groups:
            outcomes.append(await self._forward_group(shop, order, group))
        return outcomes

    async def group_by_distributor(self, shop: str, order: ShopifyOrderPayload) -> List[DistributorGroup]:
        """
        Match line items to tracked products and group them by distributor.

        Groups keep the order in which their distributor first appears in the
        line items, and own order ids are assigned over all groups up front so
        a retry yields the same ids whatever gets skipped.
        """
        gids = [item.product_gid for item in order.line_items if item.product_gid]
        if not gids:
            return []

        tracked = {p.shopify_product_id: p for p in await self.products.find_by_shopify_products(shop, gids)}
        if not tracked:
            return []

        grouped: Dict[str, List[tuple]] = {}
        for item in order.line_items:
            product = tracked.get(item.product_gid)
            if product is None:
                continue
            grouped.setdefault(product.distributor_id, []).append((item, product))

        ids = own_order_ids(order.order_number, len(grouped))
        return [
            DistributorGroup(distributor_id=distributor_id, own_order_id=own_id, lines=lines)
            for (distributor_id, lines), own_id in zip(grouped.items(), ids)
        ]

    # ===== 2. PER-DISTRIBUTOR FORWARDING =====

    async def _forward_group(self, shop: str, order: ShopifyOrderPayload, group: DistributorGroup) -> ForwardingOutcome:
        claimed = None
        try:
            claimed = await self.ledger.claim(
                shop=shop,
                shopify_order_id=order.order_gid,
                shopify_order_number=str(order.order_number),
                distributor_id=group.distributor_id,
                own_order_id=group.own_order_id,
                dropship=group.dropship,
            )
            if claimed is None:
                return ForwardingOutcome(group.distributor_id, group.own_order_id, "skipped")

            line_items = self.build_line_items(group)
            if not line_items:
                await self.ledger.release(claimed.id)
                return ForwardingOutcome(group.distributor_id, group.own_order_id, "empty")

            params = self.build_document_params(order, group, line_items)
            result = await self.itscope.submit_order(group.distributor_id, build_order_xml(params))
            await self.ledger.record_submission(claimed.id, result)

            await self._annotate(shop, order, group, line_items, result)
            if result.success:
                logger.info(f"Order sent to ItScope: {group.own_order_id} -> Deal {result.deal_id}")
                return ForwardingOutcome(group.distributor_id, group.own_order_id, "sent", deal_id=result.deal_id)

            logger.error(f"Failed to send order {group.own_order_id}: {result.error}")
            return ForwardingOutcome(group.distributor_id, group.own_order_id, "error", error=result.error)

        except Exception as e:
            logger.error(
                f"Error processing distributor {group.distributor_id} for order {order.id}: {e}", exc_info=True
            )
            if claimed is not None:
                await self._mark_error(claimed.id, str(e))
            return ForwardingOutcome(group.distributor_id, group.own_order_id, "error", error=str(e))

    async def _mark_error(self, order_id: int, message: str) -> None:
        try:
            await self.ledger.mark_error(order_id, message)
        except Exception:
            logger.exception(f"Could not mark ledger row {order_id} as error")

    # ===== 3. DOCUMENT PARAMETERS =====

    def build_line_items(self, group: DistributorGroup) -> List[OrderLineItem]:
        return [
            OrderLineItem(
                supplier_pid=product.itscope_sku,
                itscope_product_id=product.itscope_product_id or "",
                quantity=item.quantity,
                description=item.title or product.itscope_sku,
                project_id=product.project_id or None,
                unit_price=product.last_price or None,
                is_service=product.category.is_service,
            )
            for item, product in group.lines
        ]

    def build_document_params(
        self, order: ShopifyOrderPayload, group: DistributorGroup, line_items: List[OrderLineItem]
    ) -> OrderDocumentParams:
        has_service_items = any(item.is_service for item in line_items)
        return OrderDocumentParams(
            order_id=group.own_order_id,
            supplier_id=group.distributor_id,
            dropship=group.dropship,
            buyer=self.buyer_party(group),
            delivery=self.delivery_address(order) if group.dropship else None,
            customer=self.end_customer(order) if has_service_items else None,
            line_items=line_items,
            remarks=self.remarks_for(group),
        )

    def buyer_party(self, group: DistributorGroup) -> BuyerParty:
        s = self.settings
        return BuyerParty(
            party_id=self.distributors.buyer_party_id(group.products[0].distributor_name or ""),
            address=Address(
                name=s.COMPANY_NAME,
                street=s.COMPANY_STREET,
                zip=s.COMPANY_ZIP,
                city=s.COMPANY_CITY,
                country=s.COMPANY_COUNTRY,
            ),
            phone=s.COMPANY_PHONE or None,
            fax=s.COMPANY_FAX or None,
            url=s.COMPANY_URL or None,
            contact_name=s.COMPANY_CONTACT_NAME or None,
            contact_email=s.COMPANY_CONTACT_EMAIL or None,
        )

    def delivery_address(self, order: ShopifyOrderPayload) -> Address:
        shipping = order.shipping_address or order.billing_address or ShopifyAddress()
        return Address(
            name=shipping.full_name or shipping.company or "",
            name2=shipping.company or "",
            street=shipping.street,
            zip=shipping.zip or "",
            city=shipping.city or "",
            country=shipping.country_code or self.settings.DEFAULT_COUNTRY_CODE,
        )

    def end_customer(self, order: ShopifyOrderPayload) -> ContactParty:
        """Licensee for warranty/service items, taken from the billing contact."""
        billing = order.billing_address or order.shipping_address or ShopifyAddress()
        customer = order.customer
        return ContactParty(
            company=billing.company or billing.full_name,
            first_name=billing.first_name or (customer.first_name if customer else None) or "",
            last_name=billing.last_name or (customer.last_name if customer else None) or "",
            email=order.email or (customer.email if customer else None) or "",
            phone=billing.phone or (customer.phone if customer else None) or order.phone or "",
            street=billing.street,
            zip=billing.zip or "",
            city=billing.city or "",
            country=billing.country_code or self.settings.DEFAULT_COUNTRY_CODE,
        )

    def remarks_for(self, group: DistributorGroup) -> Optional[str]:
        """
        Vendor-specific order remark from VENDOR_ORDER_REMARKS.

        SERVICE_REMARK_SUFFIX is appended when the group also holds a service
        item from that vendor.
        """
        remarks = self.settings.VENDOR_ORDER_REMARKS
        if not remarks:
            return None

        for item, _ in group.lines:
            vendor = _vendor(item)
            if vendor not in remarks:
                continue
            remark = remarks[vendor]
            has_vendor_service = any(
                product.category.is_service and _vendor(line) == vendor for line, product in group.lines
            )
            if has_vendor_service and self.settings.SERVICE_REMARK_SUFFIX:
                remark = f"{remark} {self.settings.SERVICE_REMARK_SUFFIX}"
            return remark
        return None

    # ===== 4. SHOPIFY ORDER NOTE =====

    async def _annotate(
        self,
        shop: str,
        order: ShopifyOrderPayload,
        group: DistributorGroup,
        line_items: List[OrderLineItem],
        result: SubmitResult,
    ) -> None:
        if result.success:
            mode = " (Dropship)" if group.dropship else " (Warehouse)"
            names = ", ".join(item.description for item in line_items)
            note = f"ItScope order {group.own_order_id} sent successfully to {group.label}{mode}. Products: {names}."
            if result.deal_id:
                note += f" Deal-ID: {result.deal_id}"
        else:
            error = (result.error or "")[:MAX_NOTE_ERROR_LENGTH] or "Unknown error"
            note = f"ItScope order {group.own_order_id} failed to send to {group.label}. Error: {error}"

        try:
            client = await self.sessions.get_client(shop)
            await client.annotate_order(order.order_gid, note)
        except StorefrontSessionError as e:
            logger.warning(f"Skipping order note for {order.order_gid}: {e}")
        except Exception as e:
            logger.error(f"Failed to add order comment to {order.order_gid}: {e}", exc_info=True)


def _vendor(item: ShopifyLineItem) -> str:
    return (item.vendor or "").strip().lower()
