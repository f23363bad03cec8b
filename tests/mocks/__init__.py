from tests.mocks.itscope import FakeItScopeClient
from tests.mocks.shopify import FakeShopifyClient, FakeShopifyFactory

__all__ = ["FakeItScopeClient", "FakeShopifyClient", "FakeShopifyFactory"]
