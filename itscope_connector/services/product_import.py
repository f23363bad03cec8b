# itscope_connector/services/product_import.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from itscope_connector.core.config import Settings
from itscope_connector.core.enums import ProductCategory
from itscope_connector.core.exceptions import (
    ProductAlreadyTrackedError,
    ProductImportError,
    ProductNotFoundError,
)
from itscope_connector.models.tracked_product import TrackedProduct
from itscope_connector.schemas.itscope import Offer, SupplierProduct
from itscope_connector.schemas.product import ProductImportRequest
from itscope_connector.services.itscope.client import ItScopeClient
from itscope_connector.services.session_service import ShopSessionService
from itscope_connector.services.shopify.client import ShopifyGraphQLClient
from itscope_connector.services.tracked_product_store import TrackedProductStore

logger = logging.getLogger(__name__)

MANAGED_TAG = "itscope-managed"


def build_metafields(metafields: Dict[str, Any]) -> List[Dict[str, str]]:
    """``{"namespace.key": value}`` -> Shopify MetafieldInput list, empty values dropped."""
    result = []
    for name, value in (metafields or {}).items():
        if value in (None, ""):
            continue
        namespace, _, key = name.partition(".")
        if not namespace or not key:
            logger.warning(f"Ignoring metafield without namespace: {name}")
            continue
        result.append({
            "namespace": namespace,
            "key": key,
            "value": str(value),
            "type": "single_line_text_field",
        })
    return result


class ProductImportService:
    """
    Imports an ItScope product into a shop as a draft Shopify product and
    starts tracking it.

    Only product creation is fatal. The image upload and the initial stock
    push are best-effort; the stock loop corrects inventory on its next run.
    """

    def __init__(
        self,
        settings: Settings,
        products: TrackedProductStore,
        itscope: ItScopeClient,
        sessions: ShopSessionService,
    ):
        self.settings = settings
        self.products = products
        self.itscope = itscope
        self.sessions = sessions

    def sell_price(self, buy_price: float) -> float:
        return round(buy_price * (1 + self.settings.SELL_PRICE_MARKUP_PERCENT / 100.0), 2)

    async def import_product(self, request: ProductImportRequest) -> TrackedProduct:
        category = request.category

        existing = await self.products.get_by_sku(request.shop, request.sku)
        if existing is not None:
            if existing.active:
                raise ProductAlreadyTrackedError("Product already tracked", product=existing)
            # Previously removed; start over with a fresh row
            await self.products.delete(existing.id)

        supplier_product = await self.itscope.search_by_sku(request.sku)
        if supplier_product is None:
            raise ProductNotFoundError("Product not found in ItScope")

        offer = supplier_product.offer_for(request.distributor_id)
        client = await self.sessions.get_client(request.shop)

        created = await self._create_shopify_product(client, supplier_product, category, request.metafields)
        shopify_product = created.get("product") or {}
        product_id = shopify_product.get("id")
        variant = _default_variant(shopify_product)

        buy_price = offer.price if offer else 0.0
        if variant and product_id:
            variant = await self._update_variant(client, product_id, variant, supplier_product, request.sku, category, buy_price)

        if supplier_product.image_url and product_id:
            try:
                await client.create_product_media(product_id, supplier_product.image_url, alt=supplier_product.name)
            except Exception as e:
                logger.error(f"Image upload failed (non-fatal) for {request.sku}: {e}")

        inventory_item_id = ((variant or {}).get("inventoryItem") or {}).get("id")
        if not category.is_service and inventory_item_id:
            await self._set_initial_stock(client, request.shop, inventory_item_id, offer)

        return await self.products.create(
            shop=request.shop,
            itscope_sku=request.sku,
            itscope_product_id=supplier_product.product_id,
            shopify_product_id=product_id,
            shopify_variant_id=(variant or {}).get("id"),
            shopify_inventory_item_id=inventory_item_id,
            distributor_id=request.distributor_id,
            distributor_name=request.distributor_name or "",
            product_category=category.value,
            shipping_mode=request.shipping_mode.value,
            project_id=request.project_id or None,
            import_price=buy_price,
            last_price=offer.price if offer else None,
            last_stock=offer.stock if offer else None,
            last_stock_sync=datetime.now(timezone.utc),
        )

    async def _create_shopify_product(
        self,
        client: ShopifyGraphQLClient,
        supplier_product: SupplierProduct,
        category: ProductCategory,
        metafields: Dict[str, Any],
    ) -> Dict[str, Any]:
        product_input = {
            "title": supplier_product.name,
            "descriptionHtml": (
                supplier_product.long_description
                or supplier_product.short_description
                or f"<p>{supplier_product.name}</p>"
            ),
            "vendor": supplier_product.manufacturer,
            "productType": category.value,
            "tags": [MANAGED_TAG, category.tag],
            "status": "DRAFT",
        }
        shopify_metafields = build_metafields(metafields)
        if shopify_metafields:
            product_input["metafields"] = shopify_metafields

        result = await client.create_product(product_input)
        if not result.get("userErrors"):
            return result

        if not shopify_metafields:
            raise ProductImportError("Shopify errors", details=result["userErrors"])

        # Metafield definitions missing in the shop are the usual cause
        logger.warning("Retrying productCreate without metafields...")
        product_input.pop("metafields")
        result = await client.create_product(product_input)
        if result.get("userErrors"):
            raise ProductImportError("Shopify errors", details=result["userErrors"])
        logger.warning("Product created without metafields, check metafield definitions in Shopify admin")
        return result

    async def _update_variant(
        self,
        client: ShopifyGraphQLClient,
        product_id: str,
        variant: Dict[str, Any],
        supplier_product: SupplierProduct,
        sku: str,
        category: ProductCategory,
        buy_price: float,
    ) -> Dict[str, Any]:
        variant_input = {
            "id": variant["id"],
            "price": f"{self.sell_price(buy_price):.2f}",
            "inventoryPolicy": "DENY",
            "inventoryItem": {
                "sku": sku,
                "tracked": not category.is_service,
                "cost": f"{buy_price:.2f}",
            },
        }
        if supplier_product.ean:
            variant_input["barcode"] = supplier_product.ean

        result = await client.update_default_variant(product_id, variant_input)
        updated = (result.get("productVariants") or [None])[0]
        return updated or variant

    async def _set_initial_stock(
        self, client: ShopifyGraphQLClient, shop: str, inventory_item_id: str, offer: Optional[Offer]
    ) -> None:
        try:
            location_id = await self.sessions.resolve_location(shop, client)
            if location_id:
                await client.activate_and_set_inventory(inventory_item_id, location_id, offer.stock if offer else 0)
        except Exception as e:
            logger.error(f"Initial stock set failed (non-fatal) for {inventory_item_id}: {e}")


def _default_variant(shopify_product: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    edges = (shopify_product.get("variants") or {}).get("edges") or []
    return edges[0].get("node") if edges else None
