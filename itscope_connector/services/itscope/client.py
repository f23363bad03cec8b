# itscope_connector/services/itscope/client.py
"""
ItScope API client.

Wraps the product search, stock, deal submission and deal status endpoints.
Responses are XML; they are parsed with xmltodict and normalized by
``services.itscope.parsing`` so callers only see domain types.
"""

import base64
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote
from xml.parsers.expat import ExpatError

import httpx
import xmltodict

from itscope_connector.core.config import Settings
from itscope_connector.core.exceptions import ItScopeAPIError
from itscope_connector.schemas.itscope import (
    DealStatus,
    DispatchInfo,
    Offer,
    SubmitResult,
    SupplierProduct,
)
from itscope_connector.services.itscope import parsing

logger = logging.getLogger(__name__)


def encode_path_value(value: str) -> str:
    """
    ItScope's own escaping for identifiers embedded in URL paths.

    ``/`` and ``#`` must arrive double-encoded, otherwise the API splits the
    path on them.
    """
    return value.replace("/", "%252F").replace("#", "%2523").replace(" ", "%20")


def sku_encodings(sku: str) -> List[str]:
    """Encodings tried in order when searching by SKU."""
    encodings = [quote(sku, safe="!'()*")]
    special = encode_path_value(sku)
    if special not in encodings:
        encodings.append(special)
    return encodings


class ItScopeClient:
    """
    Client for the ItScope REST/XML API.

    One instance per settings object; every call opens its own short-lived
    ``httpx.AsyncClient``.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.base_url = settings.ITSCOPE_BASE_URL.rstrip("/")
        self.order_url = settings.ITSCOPE_ORDER_URL.rstrip("/")
        self.timeout = settings.ITSCOPE_TIMEOUT

    # ==========================================================================
    # 1. REQUEST HELPERS
    # ==========================================================================

    def _auth_header(self) -> str:
        credentials = f"{self.settings.ITSCOPE_ACCOUNT_ID}:{self.settings.ITSCOPE_API_KEY}"
        return "Basic " + base64.b64encode(credentials.encode("utf-8")).decode("ascii")

    def _headers(self, content_type: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "Authorization": self._auth_header(),
            "User-Agent": self.settings.ITSCOPE_USER_AGENT,
            "Accept": "application/xml",
        }
        if content_type:
            headers["Content-Type"] = content_type
        return headers

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"Network error calling ItScope {method} {url}: {str(e)}")
            raise ItScopeAPIError(f"Network error calling ItScope: {str(e)}")

    async def _get_xml(self, url: str, context: str) -> Optional[Dict[str, Any]]:
        """GET ``url`` and parse the XML body; non-2xx responses yield None."""
        response = await self._request("GET", url, headers=self._headers())
        if response.status_code >= 300:
            logger.error("ItScope %s failed: HTTP %s", context, response.status_code)
            return None
        try:
            return xmltodict.parse(response.text)
        except ExpatError as e:
            logger.error("ItScope %s returned malformed XML: %s", context, e)
            raise ItScopeAPIError(f"Malformed XML from ItScope {context}: {str(e)}")

    # ==========================================================================
    # 2. PRODUCTS
    # ==========================================================================

    async def search_by_sku(self, sku: str) -> Optional[SupplierProduct]:
        """Look a product up by manufacturer SKU. Returns None when nothing matches."""
        for encoded in sku_encodings(sku):
            url = f"{self.base_url}/products/search/hstpid={encoded}/standard.xml?plzproducts=true"
            logger.info(f"ItScope search: {url}")

            parsed = await self._get_xml(url, "search")
            if not parsed:
                continue
            product = parsing.extract_product_node(parsed)
            if product is None:
                continue
            return parsing.parse_product(product, sku)

        return None

    async def get_stock(self, product_id: str) -> List[Offer]:
        """Current distributor offers for an ItScope product id."""
        url = f"{self.base_url}/products/id/{quote(str(product_id), safe='')}/standard.xml?plzproducts=true"
        parsed = await self._get_xml(url, "stock fetch")
        if not parsed:
            return []
        product = parsing.extract_product_node(parsed)
        if product is None:
            return []
        return parsing.parse_offers(product)

    # ==========================================================================
    # 3. ORDERS
    # ==========================================================================

    async def submit_order(self, distributor_id: str, order_xml: str) -> SubmitResult:
        """POST an openTRANS ORDER to the distributor's deal endpoint."""
        url = f"{self.order_url}/{quote(str(distributor_id), safe='')}"
        response = await self._request(
            "POST",
            url,
            headers=self._headers("application/xml;charset=UTF-8"),
            content=order_xml.encode("utf-8"),
        )

        if response.status_code >= 300:
            return SubmitResult(success=False, error=f"HTTP {response.status_code}: {response.text}")

        deal_id = None
        if response.text and response.text.strip():
            try:
                deal_id = parsing.parse_deal_id(xmltodict.parse(response.text))
            except ExpatError:
                logger.warning("ItScope accepted order for %s but the response was not XML", distributor_id)

        return SubmitResult(success=True, deal_id=deal_id)

    async def get_deal_status(self, lookup_id: str) -> Optional[DealStatus]:
        """Status of a deal, looked up by deal id or our own order id."""
        url = f"{self.base_url}/business/deals/sales/search/orderId={encode_path_value(lookup_id)}/deal.xml"
        parsed = await self._get_xml(url, "deal status fetch")
        if not parsed:
            return None
        return parsing.parse_deal(parsed, lookup_id)

    async def fetch_dispatch_document(self, document_url: str) -> DispatchInfo:
        """Tracking and serial numbers from a dispatch notification document."""
        response = await self._request("GET", document_url, headers=self._headers())
        if response.status_code >= 300:
            logger.warning("Dispatch document fetch failed: HTTP %s", response.status_code)
            return DispatchInfo()
        try:
            parsed = xmltodict.parse(response.text)
        except ExpatError as e:
            logger.warning(f"Dispatch document is not valid XML: {e}")
            return DispatchInfo()
        return parsing.parse_dispatch_notification(parsed)
