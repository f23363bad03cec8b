# itscope_connector/models/tracked_product.py
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, UniqueConstraint, Index
from sqlalchemy.sql import func

from itscope_connector.database import Base
from itscope_connector.core.enums import ProductCategory, ShippingMode


class TrackedProduct(Base):
    """
    One ItScope SKU mirrored as one Shopify product/variant for one shop.

    Unique per (shop, itscope_sku). Removal is a soft delete (active=False);
    re-importing the SKU deletes the inactive row and creates a fresh one.
    """
    __tablename__ = "tracked_products"
    __table_args__ = (
        UniqueConstraint("shop", "itscope_sku", name="uq_tracked_products_shop_sku"),
        Index("ix_tracked_products_shop_active", "shop", "active"),
    )

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    shop = Column(String, nullable=False)
    itscope_sku = Column(String, nullable=False)
    itscope_product_id = Column(String)  # ItScope puid

    # Shopify GIDs
    shopify_product_id = Column(String, index=True)
    shopify_variant_id = Column(String)
    shopify_inventory_item_id = Column(String)

    distributor_id = Column(String, nullable=False)
    distributor_name = Column(String, default="")

    product_category = Column(String, nullable=False, default=ProductCategory.LAPTOP.value)
    shipping_mode = Column(String, nullable=False, default=ShippingMode.WAREHOUSE.value)
    project_id = Column(String, nullable=True)  # Manufacturer project / contract id

    # Pricing history (ItScope buy price, not the Shopify sell price)
    import_price = Column(Float)
    last_price = Column(Float)
    last_stock = Column(Integer)
    last_stock_sync = Column(DateTime(timezone=True))
    price_alert = Column(Boolean, nullable=False, default=False)

    active = Column(Boolean, nullable=False, default=True)

    @property
    def category(self) -> ProductCategory:
        return ProductCategory.parse(self.product_category)

    @property
    def is_dropship(self) -> bool:
        return ShippingMode.parse(self.shipping_mode) is ShippingMode.DROPSHIP

    def __repr__(self):
        return f"<TrackedProduct(id={self.id}, shop={self.shop}, sku={self.itscope_sku}, distributor={self.distributor_id})>"
