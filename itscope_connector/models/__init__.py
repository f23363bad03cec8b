from .tracked_product import TrackedProduct
from .order import Order
from .shop import ShopSession, ShopSettings

# This ensures all models are registered with SQLAlchemy
__all__ = [
    'TrackedProduct',
    'Order',
    'ShopSession',
    'ShopSettings',
]
