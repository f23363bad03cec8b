class BaseServiceError(Exception):
    """Base exception for all service-related errors."""
    pass

class ProductServiceError(BaseServiceError):
    """Base exception for tracked product errors."""
    pass

class ProductImportError(ProductServiceError):
    """Raised when importing a supplier product into Shopify fails."""
    def __init__(self, message, details=None):
        self.details = details or []
        super().__init__(message)

class ProductNotFoundError(ProductServiceError):
    """Raised when a product is not found (locally or in ItScope)."""
    pass

class ProductAlreadyTrackedError(ProductServiceError):
    """Raised when an active tracked product already exists for the SKU."""
    def __init__(self, message, product=None):
        self.product = product
        super().__init__(message)

class PlatformServiceError(BaseServiceError):
    """Base exception for platform service errors."""
    pass

class ItScopeServiceError(PlatformServiceError):
    """Base exception for ItScope-specific errors."""
    pass

class ItScopeAPIError(ItScopeServiceError):
    """Raised when ItScope API calls fail."""
    pass

class ShopifyServiceError(PlatformServiceError):
    """Base exception for Shopify-specific errors."""
    pass

class ShopifyAPIError(ShopifyServiceError):
    """Raised when Shopify API calls fail."""
    pass

class StorefrontSessionError(ShopifyServiceError):
    """Raised when no offline Shopify session exists for a shop."""
    def __init__(self, shop: str):
        self.shop = shop
        super().__init__(f"No Shopify session found for shop {shop}")

class DatabaseError(Exception):
    """Exception raised for database-related errors."""
    pass
