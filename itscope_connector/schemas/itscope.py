# File: itscope_connector/schemas/itscope.py
"""
Domain types exchanged with the ItScope gateway.

The gateway normalizes ItScope's loosely structured XML into these models, so
nothing downstream deals with one-or-many groups or tag casing.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from itscope_connector.core.enums import OrderStatus


class ProjectPrice(BaseModel):
    """Contract/project price attached to a distributor offer"""
    manufacturer_project_id: str
    price: float
    stock: Optional[int] = None


class Offer(BaseModel):
    """One distributor's quote for a product at query time"""
    supplier_item_id: str = ""
    distributor_id: str
    distributor_name: str = ""
    supplier_sku: str = ""
    price: float = 0.0
    price_calc: float = 0.0
    stock: int = 0
    stock_status_text: str = ""
    condition: str = ""
    available: bool = False
    projects: List[ProjectPrice] = Field(default_factory=list)

    def project_price(self, project_id: Optional[str]) -> Optional[float]:
        if not project_id:
            return None
        for project in self.projects:
            if project.manufacturer_project_id == project_id:
                return project.price
        return None


class SupplierProduct(BaseModel):
    product_id: str
    name: str = ""
    manufacturer: str = ""
    manufacturer_sku: str = ""
    ean: str = ""
    short_description: str = ""
    long_description: str = ""
    image_url: str = ""
    image_thumb: str = ""
    best_price: float = 0.0
    best_stock: int = 0
    aggregated_stock: int = 0
    offers: List[Offer] = Field(default_factory=list)

    def offer_for(self, distributor_id: str) -> Optional[Offer]:
        return next((o for o in self.offers if o.distributor_id == distributor_id), None)


class SubmitResult(BaseModel):
    success: bool
    deal_id: Optional[str] = None
    error: Optional[str] = None


class DealStatus(BaseModel):
    deal_id: str = ""
    status_text: str = ""
    # None when the text matched no known vocabulary
    status: Optional[OrderStatus] = None
    status_message: str = ""
    status_date: str = ""
    dispatch_document_url: Optional[str] = None
    invoice_document_url: Optional[str] = None


class DispatchInfo(BaseModel):
    tracking_numbers: List[str] = Field(default_factory=list)
    serial_numbers: List[str] = Field(default_factory=list)


# --- Order document parameters ---

class Address(BaseModel):
    name: str = ""
    name2: str = ""
    street: str = ""
    zip: str = ""
    city: str = ""
    country: str = ""


class ContactParty(BaseModel):
    """End customer / licensee, required for warranty and license items"""
    company: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    street: str = ""
    zip: str = ""
    city: str = ""
    country: str = ""


class BuyerParty(BaseModel):
    party_id: str
    address: Address
    phone: Optional[str] = None
    fax: Optional[str] = None
    url: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None


class OrderLineItem(BaseModel):
    supplier_pid: str
    itscope_product_id: str = ""
    quantity: int
    description: str = ""
    project_id: Optional[str] = None
    unit_price: Optional[float] = None
    is_service: bool = False


class OrderDocumentParams(BaseModel):
    order_id: str
    supplier_id: str
    dropship: bool = False
    buyer: BuyerParty
    delivery: Optional[Address] = None  # None -> buyer's own address
    customer: Optional[ContactParty] = None
    line_items: List[OrderLineItem]
    remarks: Optional[str] = None
