# File: itscope_connector/schemas/order.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from itscope_connector.schemas.base import TimestampedSchema


class OrderRead(TimestampedSchema):
    id: int
    shop: str
    shopify_order_id: str
    shopify_order_number: Optional[str] = None
    distributor_id: str
    itscope_own_order_id: str
    itscope_deal_id: Optional[str] = None
    status: str
    error_message: Optional[str] = None
    tracking_number: Optional[str] = None
    serial_numbers: Optional[List[str]] = None
    dropship: bool = False
    last_status_check: Optional[datetime] = None


class SyncResult(BaseModel):
    updated: int = 0
    errors: int = 0


# --- Shopify "orders/create" webhook payload (REST shape) ---

class ShopifyAddress(BaseModel):
    model_config = ConfigDict(extra="ignore")

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    zip: Optional[str] = None
    city: Optional[str] = None
    country_code: Optional[str] = None
    phone: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def street(self) -> str:
        street = self.address1 or ""
        if self.address2:
            street = f"{street} {self.address2}"
        return street


class ShopifyCustomer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class ShopifyLineItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    product_id: Optional[int] = None
    quantity: int = 1
    title: Optional[str] = None
    vendor: Optional[str] = None

    @property
    def product_gid(self) -> Optional[str]:
        if self.product_id is None:
            return None
        return f"gid://shopify/Product/{self.product_id}"


class ShopifyOrderPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    order_number: int | str
    email: Optional[str] = None
    phone: Optional[str] = None
    line_items: List[ShopifyLineItem] = Field(default_factory=list)
    shipping_address: Optional[ShopifyAddress] = None
    billing_address: Optional[ShopifyAddress] = None
    customer: Optional[ShopifyCustomer] = None

    @property
    def order_gid(self) -> str:
        return f"gid://shopify/Order/{self.id}"
