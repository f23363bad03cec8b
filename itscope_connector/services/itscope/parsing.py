# itscope_connector/services/itscope/parsing.py
"""
Normalization of ItScope XML (as produced by xmltodict) into domain types.

ItScope responses are loosely structured: repeated elements come back as a
single dict when there is one of them and as a list otherwise, and the deal
endpoints use lower-case or upper-case tag names depending on API version.
Everything that copes with that lives here.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from itscope_connector.core.enums import OrderStatus
from itscope_connector.schemas.itscope import (
    DealStatus,
    DispatchInfo,
    Offer,
    ProjectPrice,
    SupplierProduct,
)

logger = logging.getLogger(__name__)

# stockStatus values ItScope reports for orderable stock
AVAILABLE_STOCK_STATUSES = {1, 3}

# Checked in order; later lifecycle states win over earlier ones
STATUS_VOCABULARY = (
    (OrderStatus.DELIVERED, ("DELIVERED", "COMPLETED")),
    (OrderStatus.SHIPPED, ("SHIPPED", "DISPATCHED")),
    (OrderStatus.CONFIRMED, ("CONFIRMED", "ADVISED")),
)


def as_list(value: Any) -> List[Any]:
    """Coerce a one-or-many XML group into a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def first(value: Any) -> Any:
    items = as_list(value)
    return items[0] if items else None


def text(value: Any) -> str:
    """Text content of a node; elements carrying attributes come back as dicts."""
    if value is None:
        return ""
    if isinstance(value, dict):
        return text(value.get("#text"))
    if isinstance(value, list):
        return text(first(value))
    return str(value).strip()


def pick(node: Optional[Dict[str, Any]], *keys: str) -> Any:
    """Value of the first key variant present (and non-empty) in ``node``."""
    if not isinstance(node, dict):
        return None
    for key in keys:
        value = node.get(key)
        if value not in (None, "", {}, []):
            return value
    return None


def dig(node: Any, *path: Iterable[str]) -> Any:
    """
    Walk nested dicts, trying every name variant at each step.

    ``dig(doc, ("dealList", "DEALLIST"), ("deal", "DEAL"))``
    """
    current = node
    for variants in path:
        if isinstance(variants, str):
            variants = (variants,)
        current = pick(first(current), *variants)
        if current is None:
            return None
    return current


def to_float(value: Any, default: float = 0.0) -> float:
    raw = text(value)
    if not raw:
        return default
    try:
        return float(raw.replace(",", "."))
    except ValueError:
        return default


def to_int(value: Any, default: int = 0) -> int:
    raw = text(value)
    if not raw:
        return default
    try:
        return int(float(raw))
    except ValueError:
        return default


# ------------------------------------------------------------------
# Products / offers
# ------------------------------------------------------------------

def parse_project(node: Dict[str, Any]) -> Optional[ProjectPrice]:
    project_id = text(pick(node, "manufacturerProjectId", "projectId", "id"))
    if not project_id:
        return None
    stock = pick(node, "stock")
    return ProjectPrice(
        manufacturer_project_id=project_id,
        price=to_float(pick(node, "price", "projectPrice")),
        stock=to_int(stock) if stock is not None else None,
    )


def parse_offer(item: Dict[str, Any]) -> Offer:
    price = to_float(item.get("price"))
    stock_status = to_int(item.get("stockStatus"), default=-1)
    projects = []
    for node in as_list(dig(item, ("projects", "projectPrices"), ("project", "projectPrice"))):
        project = parse_project(node) if isinstance(node, dict) else None
        if project:
            projects.append(project)

    return Offer(
        supplier_item_id=text(item.get("id")),
        distributor_id=text(item.get("supplierId")),
        distributor_name=text(item.get("supplierName")),
        supplier_sku=text(item.get("supplierSKU")),
        price=price,
        price_calc=to_float(item.get("priceCalc")),
        stock=to_int(item.get("stock")),
        stock_status_text=text(item.get("stockStatusText")),
        condition=text(item.get("conditionName")),
        available=stock_status in AVAILABLE_STOCK_STATUSES and price > 0,
        projects=projects,
    )


def sort_offers(offers: List[Offer]) -> List[Offer]:
    """Available offers first, then cheapest first."""
    return sorted(offers, key=lambda o: (not o.available, o.price))


def parse_offers(product: Dict[str, Any]) -> List[Offer]:
    items = as_list(dig(product, "supplierItems", "supplierItem"))
    return [parse_offer(item) for item in items if isinstance(item, dict)]


def extract_product_node(parsed: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """``<products><product>...`` -> the first product dict."""
    node = first(dig(parsed, "products", "product"))
    return node if isinstance(node, dict) else None


def parse_product(product: Dict[str, Any], sku: str) -> SupplierProduct:
    return SupplierProduct(
        product_id=text(product.get("puid")),
        name=text(product.get("productName")),
        manufacturer=text(product.get("manufacturerName")),
        manufacturer_sku=text(product.get("manufacturerSKU")) or sku,
        ean=text(product.get("ean")),
        short_description=text(product.get("shortDescription")),
        long_description=text(product.get("longDescription")),
        image_url=text(pick(product, "imageHighRes1", "imageThumb")),
        image_thumb=text(product.get("imageThumb")),
        best_price=to_float(product.get("price")),
        best_stock=to_int(product.get("stock")),
        aggregated_stock=to_int(product.get("aggregatedStock")),
        offers=sort_offers(parse_offers(product)),
    )


# ------------------------------------------------------------------
# Orders / deals
# ------------------------------------------------------------------

def parse_deal_id(parsed: Dict[str, Any]) -> Optional[str]:
    deal = first(pick(parsed, "DEAL", "deal"))
    deal_id = pick(deal, "ID", "ORDERID", "id", "orderId") if isinstance(deal, dict) else None
    if deal_id is None:
        deal_id = pick(parsed, "orderId")
    return text(deal_id) or None


def map_status_text(status_text: str) -> Optional[OrderStatus]:
    """Translate ItScope's free-text deal status; unknown text maps to None."""
    upper = (status_text or "").upper()
    for status, needles in STATUS_VOCABULARY:
        if any(needle in upper for needle in needles):
            return status
    return None


def _document_url(deal: Dict[str, Any], group: tuple) -> Optional[str]:
    document = first(dig(deal, group, ("document", "DOCUMENT")))
    return text(pick(document, "documentUrl", "DOCUMENTURL")) or None


def parse_deal(parsed: Dict[str, Any], fallback_id: str) -> Optional[DealStatus]:
    deal = dig(parsed, ("dealList", "DEALLIST"), ("deal", "DEAL"))
    if deal is None:
        deal = pick(parsed, "deal", "DEAL")
    deal = first(deal)
    if not isinstance(deal, dict):
        return None

    status_text = text(pick(deal, "status", "STATUS"))
    return DealStatus(
        deal_id=text(pick(deal, "orderId", "ORDERID", "id", "ID")) or fallback_id,
        status_text=status_text,
        status=map_status_text(status_text),
        status_message=text(pick(deal, "statusMessage", "STATUSMESSAGE")),
        status_date=text(pick(deal, "statusDate", "STATUSDATE")),
        dispatch_document_url=_document_url(deal, ("dispatchnotifications", "DISPATCHNOTIFICATIONS")),
        invoice_document_url=_document_url(deal, ("invoices", "INVOICES")),
    )


def parse_dispatch_notification(parsed: Dict[str, Any]) -> DispatchInfo:
    """Tracking and serial numbers from an openTRANS 2.1 DISPATCHNOTIFICATION."""
    info = DispatchInfo()
    dispatch = pick(parsed, "DISPATCHNOTIFICATION")
    if not isinstance(dispatch, dict):
        return info

    shipment_ids = dig(dispatch, "DISPATCHNOTIFICATION_HEADER", "DISPATCHNOTIFICATION_INFO", "SHIPMENT_ID")
    for shipment_id in as_list(shipment_ids):
        value = text(shipment_id)
        if value and value not in info.tracking_numbers:
            info.tracking_numbers.append(value)

    items = dig(dispatch, "DISPATCHNOTIFICATION_ITEM_LIST", "DISPATCHNOTIFICATION_ITEM")
    for item in as_list(items):
        if not isinstance(item, dict):
            continue
        serials = pick(item, "SERIAL_NUMBER") or dig(item, "UDX", "SERIALNUMBER")
        for serial in as_list(serials):
            value = text(serial)
            if value:
                info.serial_numbers.append(value)

    return info
