"""
Shared enums and constants used across the application.
"""

from enum import Enum


class OrderStatus(str, Enum):
    """Lifecycle of a purchase order forwarded to one distributor"""
    PENDING = "pending"
    SENT = "sent"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    ERROR = "error"


class ProductCategory(str, Enum):
    """Product categories offered on import; WARRANTY items carry no inventory"""
    LAPTOP = "Laptop"
    ACCESSORY = "Accessory"
    WARRANTY = "Warranty"

    @property
    def is_service(self) -> bool:
        return self is ProductCategory.WARRANTY

    @property
    def tag(self) -> str:
        # Shopify tag applied alongside "itscope-managed"
        return {
            ProductCategory.LAPTOP: "laptop",
            ProductCategory.ACCESSORY: "addon",
            ProductCategory.WARRANTY: "warranty",
        }[self]

    @classmethod
    def parse(cls, value, default: "ProductCategory" = None) -> "ProductCategory":
        for member in cls:
            if value == member or str(value or "").lower() == member.value.lower():
                return member
        return default or cls.LAPTOP


class ShippingMode(str, Enum):
    WAREHOUSE = "warehouse"
    DROPSHIP = "dropship"

    @classmethod
    def parse(cls, value) -> "ShippingMode":
        return cls.DROPSHIP if str(value or "").lower() == cls.DROPSHIP.value else cls.WAREHOUSE


class WebhookTopic(str, Enum):
    ORDERS_CREATE = "orders/create"
    APP_UNINSTALLED = "app/uninstalled"
