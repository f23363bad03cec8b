from itscope_connector.services.shopify.client import ShopifyGraphQLClient, ShopifyGraphQLError

__all__ = ["ShopifyGraphQLClient", "ShopifyGraphQLError"]
