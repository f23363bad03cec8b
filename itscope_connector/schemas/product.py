# File: itscope_connector/schemas/product.py

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field

from itscope_connector.core.enums import ProductCategory, ShippingMode
from itscope_connector.schemas.base import TimestampedSchema


class TrackedProductRead(TimestampedSchema):
    id: int
    shop: str
    itscope_sku: str
    itscope_product_id: Optional[str] = None
    shopify_product_id: Optional[str] = None
    shopify_variant_id: Optional[str] = None
    shopify_inventory_item_id: Optional[str] = None
    distributor_id: str
    distributor_name: Optional[str] = None
    product_category: str
    shipping_mode: str
    project_id: Optional[str] = None
    import_price: Optional[float] = None
    last_price: Optional[float] = None
    last_stock: Optional[int] = None
    last_stock_sync: Optional[datetime] = None
    price_alert: bool = False
    active: bool = True


class ProductImportRequest(BaseModel):
    shop: str
    sku: str
    distributor_id: str = Field(alias="distributorId")
    distributor_name: str = Field(default="", alias="distributorName")
    shipping_mode: ShippingMode = Field(default=ShippingMode.WAREHOUSE, alias="shippingMode")
    project_id: Optional[str] = Field(default=None, alias="projectId")
    product_category: Optional[str] = Field(default=None, alias="productType")
    metafields: Dict[str, str] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}

    @property
    def category(self) -> ProductCategory:
        return ProductCategory.parse(self.product_category)


class ProductUpdateRequest(BaseModel):
    shop: str
    id: int
    project_id: Optional[str] = Field(default=None, alias="projectId")
    dismiss_price_alert: bool = Field(default=False, alias="dismissPriceAlert")

    model_config = {"populate_by_name": True}


class ProductDeleteRequest(BaseModel):
    shop: str
    id: int
