# itscope_connector.services.shopify.client

import json
import logging
import asyncio
from typing import Dict, List, Optional, Any

import httpx

from itscope_connector.core.config import Settings
from itscope_connector.core.exceptions import ShopifyAPIError, ShopifyServiceError

logger = logging.getLogger(__name__)


class ShopifyGraphQLError(ShopifyServiceError):
    """Custom exception for GraphQL errors."""
    def __init__(self, errors):
        self.errors = errors
        message = "GraphQL query failed with errors:\n"
        for error in errors:
            msg = error.get('message', 'Unknown error')
            path = error.get('path', [])
            message += f"- Message: {msg}, Path: {path}\n"
        super().__init__(message)


def product_gid(product_id) -> str:
    return f"gid://shopify/Product/{product_id}"


def order_gid(order_id) -> str:
    return f"gid://shopify/Order/{order_id}"


class ShopifyGraphQLClient:
    """
    Admin GraphQL client for a single shop.

    Built per shop from the shop's offline access token (see
    ``ShopSessionService.get_client``). Covers the operations the connector
    needs: inventory levels, fulfillments, order notes, locations and the
    product import mutations.

    Requests are throttled against Shopify's cost-based rate limit using the
    ``extensions.cost.throttleStatus`` block returned with every response.
    """

    # --- Meta/Infrastructure ---

    def __init__(self, shop: str, access_token: str, settings: Settings, safety_buffer_percentage=0.25):
        if not shop or not access_token:
            raise ValueError("shop and access_token are required for a Shopify client")

        self.shop = shop
        self.api_version = settings.SHOPIFY_API_VERSION
        self.timeout = settings.SHOPIFY_TIMEOUT

        self.graphql_url = f"https://{shop}/admin/api/{self.api_version}/graphql.json"
        self.headers = {
            "X-Shopify-Access-Token": access_token,
            "Content-Type": "application/json"
        }

        # Initialize throttle status - will be updated after the first call
        self.max_available_points = 1000.0
        self.currently_available_points = self.max_available_points
        self.restore_rate = 50.0
        self.safety_buffer_percentage = safety_buffer_percentage
        self.safety_buffer_points = self.max_available_points * safety_buffer_percentage

    async def execute(self, query: str, variables: dict | None = None, estimated_cost: int = 10):
        return await self._make_request(query, variables, estimated_cost)

    def _update_throttle_status(self, extensions):
        if extensions and "cost" in extensions:
            throttle = extensions["cost"].get("throttleStatus") or {}
            if not throttle:
                return
            self.max_available_points = float(throttle["maximumAvailable"])
            self.currently_available_points = float(throttle["currentlyAvailable"])
            self.restore_rate = float(throttle["restoreRate"])
            self.safety_buffer_points = self.max_available_points * self.safety_buffer_percentage

    async def _make_request(self, query: str, variables: dict = None, estimated_cost: int = 10):
        """
        Makes a GraphQL request to Shopify, handling rate limits.
        estimated_cost: A rough estimate of the query cost to check against the safety buffer.
        """
        required_points_for_next_op = estimated_cost + self.safety_buffer_points

        if self.currently_available_points < required_points_for_next_op:
            points_needed = required_points_for_next_op - self.currently_available_points
            wait_time = (points_needed / self.restore_rate) if self.restore_rate > 0 else 10
            wait_time = max(wait_time, 0) + 0.5

            logger.info(
                "Shopify rate limit approaching for %s: %.0f points available, need ~%.0f. Waiting %.2fs",
                self.shop, self.currently_available_points, required_points_for_next_op, wait_time
            )
            await asyncio.sleep(wait_time)
            self.currently_available_points = min(
                self.max_available_points,
                self.currently_available_points + (self.restore_rate * wait_time)
            )

        payload = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.graphql_url, headers=self.headers, json=payload)
        except httpx.RequestError as e:
            logger.error(f"Network error calling Shopify for {self.shop}: {str(e)}")
            raise ShopifyAPIError(f"Network error calling Shopify: {str(e)}")

        if response.status_code == 429:
            logger.warning(f"Received 429 Too Many Requests from {self.shop}")
            # Force the next call through the wait branch above
            self.currently_available_points = 0
            raise ShopifyAPIError(f"Shopify rate limit exceeded for {self.shop}")

        if response.status_code >= 300:
            logger.error(f"Shopify HTTP error {response.status_code} for {self.shop}: {response.text}")
            raise ShopifyAPIError(f"Shopify request failed with HTTP {response.status_code}")

        try:
            response_data = response.json()
        except (json.JSONDecodeError, ValueError):
            raise ShopifyGraphQLError([{"message": "Failed to decode JSON response", "response_text": response.text}])

        if "extensions" in response_data:
            self._update_throttle_status(response_data["extensions"])

        if response_data.get("errors"):
            raise ShopifyGraphQLError(response_data["errors"])

        return response_data.get("data") or {}

    @staticmethod
    def _user_errors(data: Dict[str, Any], field: str) -> List[Dict[str, Any]]:
        payload = (data or {}).get(field) or {}
        return payload.get("userErrors") or []

    # --- Inventory ---

    async def activate_inventory(self, inventory_item_id: str, location_id: str) -> List[Dict[str, Any]]:
        """Stock an inventory item at a location. Returns userErrors."""
        mutation = """
        mutation inventoryActivate($inventoryItemId: ID!, $locationId: ID!) {
          inventoryActivate(inventoryItemId: $inventoryItemId, locationId: $locationId) {
            inventoryLevel { id }
            userErrors { field message }
          }
        }
        """
        data = await self._make_request(
            mutation, {"inventoryItemId": inventory_item_id, "locationId": location_id}, estimated_cost=10
        )
        return self._user_errors(data, "inventoryActivate")

    async def set_inventory(self, inventory_item_id: str, location_id: str, quantity: int) -> List[Dict[str, Any]]:
        """Set the absolute ``available`` quantity. Returns userErrors."""
        mutation = """
        mutation inventorySetQuantities($input: InventorySetQuantitiesInput!) {
          inventorySetQuantities(input: $input) {
            inventoryAdjustmentGroup { createdAt }
            userErrors { field message }
          }
        }
        """
        variables = {
            "input": {
                "name": "available",
                "reason": "correction",
                "ignoreCompareQuantity": True,
                "quantities": [
                    {
                        "inventoryItemId": inventory_item_id,
                        "locationId": location_id,
                        "quantity": int(quantity),
                    }
                ],
            }
        }
        data = await self._make_request(mutation, variables, estimated_cost=10)
        errors = self._user_errors(data, "inventorySetQuantities")
        if errors:
            logger.error(f"inventorySetQuantities errors for {inventory_item_id}: {json.dumps(errors)}")
        return errors

    async def activate_and_set_inventory(self, inventory_item_id: str, location_id: str, quantity: int) -> List[Dict[str, Any]]:
        """Activate at the location (failure tolerated, it may already be active), then set quantity."""
        try:
            await self.activate_inventory(inventory_item_id, location_id)
        except ShopifyServiceError as e:
            logger.warning(f"inventoryActivate failed for {inventory_item_id} (may already be active): {e}")
        return await self.set_inventory(inventory_item_id, location_id, quantity)

    # --- Locations ---

    async def get_locations(self, first: int = 50, active_only: bool = True) -> List[Dict[str, Any]]:
        query = """
        query GetShopLocations($first: Int!) {
          locations(first: $first) {
            edges {
              node {
                id
                name
                isActive
              }
            }
          }
        }
        """
        data = await self._make_request(query, {"first": first}, estimated_cost=5)
        edges = ((data or {}).get("locations") or {}).get("edges") or []
        locations = [edge["node"] for edge in edges if edge.get("node")]
        if active_only:
            locations = [loc for loc in locations if loc.get("isActive")]
        return locations

    async def resolve_default_location(self, configured_location_id: Optional[str] = None) -> Optional[str]:
        """The shop's configured stock location, else the first location Shopify returns."""
        if configured_location_id:
            return configured_location_id
        locations = await self.get_locations(first=1, active_only=False)
        return locations[0]["id"] if locations else None

    # --- Orders & fulfillment ---

    async def get_fulfillment_orders(self, order_id: str) -> List[Dict[str, Any]]:
        """
        Fulfillment orders of an order, flattened to
        ``{"id", "status", "line_items": [{"id", "remaining_quantity"}]}``.
        """
        query = """
        query getOrder($id: ID!) {
          order(id: $id) {
            fulfillmentOrders(first: 5) {
              edges {
                node {
                  id
                  status
                  lineItems(first: 50) {
                    edges {
                      node {
                        id
                        remainingQuantity
                      }
                    }
                  }
                }
              }
            }
          }
        }
        """
        data = await self._make_request(query, {"id": order_id}, estimated_cost=20)
        order = (data or {}).get("order") or {}
        edges = (order.get("fulfillmentOrders") or {}).get("edges") or []

        fulfillment_orders = []
        for edge in edges:
            node = edge.get("node") or {}
            line_items = [
                {"id": li["node"]["id"], "remaining_quantity": li["node"].get("remainingQuantity") or 0}
                for li in (node.get("lineItems") or {}).get("edges") or []
                if li.get("node")
            ]
            fulfillment_orders.append({"id": node.get("id"), "status": node.get("status"), "line_items": line_items})
        return fulfillment_orders

    async def create_fulfillment(
        self,
        fulfillment_order_id: str,
        line_items: List[Dict[str, Any]],
        tracking_number: Optional[str] = None,
        notify_customer: bool = True,
    ) -> List[Dict[str, Any]]:
        """Fulfill the given fulfillment-order line items. Returns userErrors."""
        mutation = """
        mutation fulfillmentCreate($fulfillment: FulfillmentInput!) {
          fulfillmentCreate(fulfillment: $fulfillment) {
            fulfillment {
              id
              status
            }
            userErrors {
              field
              message
            }
          }
        }
        """
        fulfillment = {
            "lineItemsByFulfillmentOrder": [
                {
                    "fulfillmentOrderId": fulfillment_order_id,
                    "fulfillmentOrderLineItems": line_items,
                }
            ],
            "notifyCustomer": notify_customer,
        }
        if tracking_number:
            fulfillment["trackingInfo"] = {"number": tracking_number}

        data = await self._make_request(mutation, {"fulfillment": fulfillment}, estimated_cost=20)
        return self._user_errors(data, "fulfillmentCreate")

    async def get_order_note(self, order_id: str) -> str:
        query = """
        query getOrderNote($id: ID!) {
          order(id: $id) {
            id
            note
          }
        }
        """
        data = await self._make_request(query, {"id": order_id}, estimated_cost=2)
        return ((data or {}).get("order") or {}).get("note") or ""

    async def annotate_order(self, order_id: str, note: str) -> List[Dict[str, Any]]:
        """Append ``note`` to the order's note. Returns userErrors."""
        existing = await self.get_order_note(order_id)
        combined = f"{existing}\n{note}" if existing else note

        mutation = """
        mutation orderUpdate($input: OrderInput!) {
          orderUpdate(input: $input) {
            order {
              id
              note
            }
            userErrors {
              field
              message
            }
          }
        }
        """
        data = await self._make_request(mutation, {"input": {"id": order_id, "note": combined}}, estimated_cost=10)
        errors = self._user_errors(data, "orderUpdate")
        if errors:
            logger.error(f"Order note errors for {order_id}: {errors}")
        return errors

    # --- Product import ---

    async def create_product(self, product_input: dict) -> Dict[str, Any]:
        """
        Creates a product using the productCreate mutation.

        Returns the ``productCreate`` payload (``product`` with its default
        variant and inventory item, plus ``userErrors``).
        """
        mutation = """
        mutation productCreate($product: ProductCreateInput!) {
          productCreate(product: $product) {
            product {
              id
              title
              variants(first: 1) {
                edges {
                  node {
                    id
                    inventoryItem {
                      id
                    }
                  }
                }
              }
            }
            userErrors {
              field
              message
            }
          }
        }
        """
        data = await self._make_request(mutation, {"product": product_input}, estimated_cost=50)
        result = (data or {}).get("productCreate") or {}
        if result.get("userErrors"):
            logger.warning(f"UserErrors during productCreate for '{product_input.get('title', 'N/A')}': {result['userErrors']}")
        return result

    async def update_default_variant(self, product_id: str, variant_input: dict) -> Dict[str, Any]:
        """Update one variant through productVariantsBulkUpdate."""
        mutation = """
        mutation productVariantsBulkUpdate($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
          productVariantsBulkUpdate(productId: $productId, variants: $variants) {
            productVariants {
              id
              inventoryItem {
                id
              }
            }
            userErrors {
              field
              message
            }
          }
        }
        """
        data = await self._make_request(
            mutation, {"productId": product_id, "variants": [variant_input]}, estimated_cost=20
        )
        result = (data or {}).get("productVariantsBulkUpdate") or {}
        if result.get("userErrors"):
            logger.error(f"Variant update errors for {product_id}: {result['userErrors']}")
        return result

    async def create_product_media(self, product_id: str, image_url: str, alt: str = "") -> Dict[str, Any]:
        mutation = """
        mutation productCreateMedia($productId: ID!, $media: [CreateMediaInput!]!) {
          productCreateMedia(productId: $productId, media: $media) {
            media {
              alt
            }
            mediaUserErrors {
              field
              message
            }
          }
        }
        """
        media = [{"originalSource": image_url, "alt": alt, "mediaContentType": "IMAGE"}]
        data = await self._make_request(mutation, {"productId": product_id, "media": media}, estimated_cost=20)
        return (data or {}).get("productCreateMedia") or {}
