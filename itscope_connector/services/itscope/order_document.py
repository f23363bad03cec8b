# itscope_connector/services/itscope/order_document.py
"""
openTRANS 2.1 ORDER documents for ItScope's deal submission endpoint.

``build_order_xml`` is a pure function of its parameters (plus the order date,
which callers may pin). Every free-text value goes through ``escape_xml``.
"""

import re
from datetime import datetime, timezone
from typing import List, Optional
from xml.sax.saxutils import escape

from itscope_connector.schemas.itscope import (
    Address,
    BuyerParty,
    ContactParty,
    OrderDocumentParams,
    OrderLineItem,
)

OPENTRANS_NAMESPACE = "http://www.opentrans.org/XMLSchema/2.1"
GENERATOR_INFO = "ItScope-Shopify-Connector"
MAX_OWN_ORDER_ID_LENGTH = 18

_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}
_COUNTRY_PREFIX = re.compile(r"^[A-Za-z]{1,3}-\s*")


def escape_xml(value: Optional[str]) -> str:
    return escape(str(value or ""), _XML_ENTITIES)


def strip_country_prefix(postal_code: Optional[str]) -> str:
    """``A-1090`` -> ``1090``; distributors reject the prefixed form."""
    return _COUNTRY_PREFIX.sub("", (postal_code or "").strip())


def own_order_ids(order_number, count: int) -> List[str]:
    """
    Deterministic own order ids for the distributor groups of one order.

    Group 0 gets ``SH<number>``, group i > 0 gets ``SH<number>/<i>``; all are
    cut to the 18 characters ItScope accepts.
    """
    base = f"SH{order_number}"
    ids = []
    for index in range(count):
        own_id = base if index == 0 else f"{base}/{index}"
        ids.append(own_id[:MAX_OWN_ORDER_ID_LENGTH])
    return ids


# ----- party blocks -----

def _address_block(
    address: Address,
    strip_prefix: bool = False,
    indent: str = "          ",
    contact: Optional[str] = None,
    extra: Optional[List[str]] = None,
) -> str:
    # openTRANS puts CONTACT_DETAILS before STREET and the contact numbers after COUNTRY
    zip_code = strip_country_prefix(address.zip) if strip_prefix else address.zip
    lines = [f"{indent}<NAME>{escape_xml(address.name)}</NAME>"]
    if address.name2:
        lines.append(f"{indent}<NAME2>{escape_xml(address.name2)}</NAME2>")
    if contact:
        lines.append(contact)
    lines.extend([
        f"{indent}<STREET>{escape_xml(address.street)}</STREET>",
        f"{indent}<ZIP>{escape_xml(zip_code)}</ZIP>",
        f"{indent}<CITY>{escape_xml(address.city)}</CITY>",
        f"{indent}<COUNTRY>{escape_xml(address.country)}</COUNTRY>",
    ])
    lines.extend(extra or [])
    return "\n".join(lines)


def _buyer_party(buyer: BuyerParty) -> str:
    contact = None
    if buyer.contact_name or buyer.contact_email:
        contact_lines = ["          <CONTACT_DETAILS>"]
        if buyer.contact_name:
            contact_lines.append(f"            <CONTACT_NAME>{escape_xml(buyer.contact_name)}</CONTACT_NAME>")
        if buyer.contact_email:
            contact_lines.append(f"            <EMAILS><EMAIL>{escape_xml(buyer.contact_email)}</EMAIL></EMAILS>")
        contact_lines.append("          </CONTACT_DETAILS>")
        contact = "\n".join(contact_lines)

    extra = []
    if buyer.phone:
        extra.append(f"          <PHONE>{escape_xml(buyer.phone)}</PHONE>")
    if buyer.fax:
        extra.append(f"          <FAX>{escape_xml(buyer.fax)}</FAX>")
    if buyer.url:
        extra.append(f"          <URL>{escape_xml(buyer.url)}</URL>")

    address = _address_block(buyer.address, contact=contact, extra=extra)

    return (
        "      <PARTY>\n"
        f"        <PARTY_ID type=\"buyer_specific\">{escape_xml(buyer.party_id)}</PARTY_ID>\n"
        "        <PARTY_ROLE>buyer</PARTY_ROLE>\n"
        "        <ADDRESS>\n"
        f"{address}\n"
        "        </ADDRESS>\n"
        "      </PARTY>"
    )


def _delivery_party(params: OrderDocumentParams) -> str:
    # Warehouse orders ship to the merchant itself
    address = params.delivery if (params.dropship and params.delivery) else params.buyer.address
    return (
        "      <PARTY>\n"
        f"        <PARTY_ID type=\"buyer_specific\">{escape_xml(params.buyer.party_id)}_DELIVERY</PARTY_ID>\n"
        "        <PARTY_ROLE>delivery</PARTY_ROLE>\n"
        "        <ADDRESS>\n"
        f"{_address_block(address, strip_prefix=True)}\n"
        "        </ADDRESS>\n"
        "      </PARTY>"
    )


def end_customer_party_id(buyer_party_id: str) -> str:
    return f"{buyer_party_id}_ENDCUSTOMER"


def _customer_party(customer: ContactParty, buyer_party_id: str) -> str:
    full_name = f"{customer.first_name} {customer.last_name}".strip()
    contact = ["          <CONTACT_DETAILS>"]
    contact.append(f"            <CONTACT_NAME>{escape_xml(customer.last_name)}</CONTACT_NAME>")
    if customer.first_name:
        contact.append(f"            <FIRST_NAME>{escape_xml(customer.first_name)}</FIRST_NAME>")
    if customer.phone:
        contact.append(f"            <PHONE>{escape_xml(customer.phone)}</PHONE>")
    if customer.email:
        contact.append(f"            <EMAILS><EMAIL>{escape_xml(customer.email)}</EMAIL></EMAILS>")
    contact.append("          </CONTACT_DETAILS>")

    address = Address(
        name=customer.company or full_name,
        name2=full_name if customer.company and customer.company != full_name else "",
        street=customer.street,
        zip=customer.zip,
        city=customer.city,
        country=customer.country,
    )
    extra = []
    if customer.phone:
        extra.append(f"          <PHONE>{escape_xml(customer.phone)}</PHONE>")
    if customer.email:
        extra.append(f"          <EMAIL>{escape_xml(customer.email)}</EMAIL>")

    body = _address_block(address, contact="\n".join(contact), extra=extra)
    return (
        "      <PARTY>\n"
        f"        <PARTY_ID type=\"buyer_specific\">{escape_xml(end_customer_party_id(buyer_party_id))}</PARTY_ID>\n"
        "        <PARTY_ROLE>end_customer</PARTY_ROLE>\n"
        "        <ADDRESS>\n"
        f"{body}\n"
        "        </ADDRESS>\n"
        "      </PARTY>"
    )


# ----- items -----

def _order_item(index: int, item: OrderLineItem, end_customer_id: Optional[str]) -> str:
    lines = [
        "    <ORDER_ITEM>",
        f"      <LINE_ITEM_ID>{index}</LINE_ITEM_ID>",
        "      <PRODUCT_ID>",
        f"        <SUPPLIER_PID type=\"supplier_specific\">{escape_xml(item.supplier_pid)}</SUPPLIER_PID>",
        f"        <INTERNATIONAL_PID type=\"itscope\">{escape_xml(item.itscope_product_id)}</INTERNATIONAL_PID>",
        f"        <DESCRIPTION_SHORT>{escape_xml(item.description)}</DESCRIPTION_SHORT>",
        "      </PRODUCT_ID>",
        f"      <QUANTITY>{item.quantity}</QUANTITY>",
        "      <ORDER_UNIT>C62</ORDER_UNIT>",
    ]
    if item.unit_price is not None:
        lines.extend([
            "      <PRODUCT_PRICE_FIX>",
            f"        <PRICE_AMOUNT>{item.unit_price:.2f}</PRICE_AMOUNT>",
            "      </PRODUCT_PRICE_FIX>",
        ])
    if item.is_service and end_customer_id:
        lines.extend([
            "      <PARTY_REFERENCE>",
            f"        <END_CUSTOMER_IDREF type=\"buyer_specific\">{escape_xml(end_customer_id)}</END_CUSTOMER_IDREF>",
            "      </PARTY_REFERENCE>",
        ])

    udx = []
    if item.project_id:
        udx.append(f"        <UDX.PROJECT_ID>{escape_xml(item.project_id)}</UDX.PROJECT_ID>")
    if item.is_service:
        udx.append("        <UDX.PRODUCT_TYPE>service</UDX.PRODUCT_TYPE>")
    if udx:
        lines.append("      <ITEM_UDX>")
        lines.extend(udx)
        lines.append("      </ITEM_UDX>")

    lines.append("    </ORDER_ITEM>")
    return "\n".join(lines)


def build_order_xml(params: OrderDocumentParams, order_date: Optional[datetime] = None) -> str:
    """Render one supplier purchase order as openTRANS 2.1 XML."""
    order_date = order_date or datetime.now(timezone.utc)
    has_service_items = any(item.is_service for item in params.line_items)
    end_customer_id = None

    parties = [
        "      <PARTY>\n"
        f"        <PARTY_ID type=\"supplier_specific\">{escape_xml(params.supplier_id)}</PARTY_ID>\n"
        "        <PARTY_ROLE>supplier</PARTY_ROLE>\n"
        "      </PARTY>",
        _buyer_party(params.buyer),
        _delivery_party(params),
    ]
    if has_service_items:
        end_customer_id = end_customer_party_id(params.buyer.party_id)
        parties.append(_customer_party(params.customer or ContactParty(), params.buyer.party_id))

    header_extra = []
    if params.dropship:
        header_extra.append("    <HEADER_UDX><UDX.DROPSHIPMENT>true</UDX.DROPSHIPMENT></HEADER_UDX>")
    header_extra.append("    <PARTIAL_SHIPMENT_ALLOWED>true</PARTIAL_SHIPMENT_ALLOWED>")
    if params.remarks:
        header_extra.append(f"    <REMARKS type=\"general\">{escape_xml(params.remarks)}</REMARKS>")

    items = "\n".join(
        _order_item(index, item, end_customer_id)
        for index, item in enumerate(params.line_items, start=1)
    )
    parties_xml = "\n".join(parties)
    header_xml = "\n".join(header_extra)

    return f"""<?xml version="1.0" encoding="UTF-8"?>
<ORDER xmlns="{OPENTRANS_NAMESPACE}" version="2.1" type="standard">
  <ORDER_HEADER>
    <CONTROL_INFO>
      <GENERATOR_INFO>{GENERATOR_INFO}</GENERATOR_INFO>
    </CONTROL_INFO>
    <ORDER_INFO>
    <ORDER_ID>{escape_xml(params.order_id)}</ORDER_ID>
    <ORDER_DATE>{order_date.isoformat()}</ORDER_DATE>
    <PARTIES>
{parties_xml}
    </PARTIES>
{header_xml}
    </ORDER_INFO>
  </ORDER_HEADER>
  <ORDER_ITEM_LIST>
{items}
  </ORDER_ITEM_LIST>
  <ORDER_SUMMARY>
    <TOTAL_ITEM_NUM>{len(params.line_items)}</TOTAL_ITEM_NUM>
  </ORDER_SUMMARY>
</ORDER>"""
