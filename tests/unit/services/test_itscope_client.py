# tests/unit/services/test_itscope_client.py
import base64
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from itscope_connector.core.enums import OrderStatus
from itscope_connector.core.exceptions import ItScopeAPIError
from itscope_connector.services.itscope.client import ItScopeClient, encode_path_value, sku_encodings

SEARCH_XML = """<products><product>
  <puid>4711</puid>
  <productName>ThinkPad X1 Carbon</productName>
  <supplierItems>
    <supplierItem><supplierId>D1</supplierId><supplierName>TD SYNNEX</supplierName>
      <price>1099.00</price><stock>12</stock><stockStatus>1</stockStatus></supplierItem>
  </supplierItems>
</product></products>"""


def _response(status_code=200, text=""):
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.text = text
    return mock_response


@pytest.fixture
def http(mocker):
    """Patch httpx.AsyncClient; returns the client entered by ``async with``"""
    async_client_mock = AsyncMock()
    mocker.patch('httpx.AsyncClient', return_value=async_client_mock)
    return async_client_mock.__aenter__.return_value


@pytest.fixture
def client(settings):
    return ItScopeClient(settings)


"""
1. Path encoding
"""

def test_encode_path_value_double_encodes_separators():
    assert encode_path_value("SH1042/1") == "SH1042%252F1"
    assert encode_path_value("A#B C") == "A%2523B%20C"


def test_sku_encodings_tries_standard_then_special():
    assert sku_encodings("20XW004AGE") == ["20XW004AGE"]
    assert sku_encodings("MK1A3D/A") == ["MK1A3D%2FA", "MK1A3D%252FA"]


"""
2. Requests
"""

@pytest.mark.asyncio
async def test_requests_use_basic_auth(client, http):
    http.request.return_value = _response(200, SEARCH_XML)

    await client.search_by_sku("20XW004AGE")

    method, url = http.request.call_args.args
    headers = http.request.call_args.kwargs["headers"]
    assert method == "GET"
    assert url == "https://api.itscope.com/2.1/products/search/hstpid=20XW004AGE/standard.xml?plzproducts=true"
    assert headers["Authorization"] == "Basic " + base64.b64encode(b"acct-1:itscope-key").decode()
    assert headers["User-Agent"] == "ItScopeShopifyConnector-App-1.0"


@pytest.mark.asyncio
async def test_search_by_sku_parses_product(client, http):
    http.request.return_value = _response(200, SEARCH_XML)

    product = await client.search_by_sku("20XW004AGE")

    assert product.product_id == "4711"
    assert product.manufacturer_sku == "20XW004AGE"
    assert product.offers[0].distributor_id == "D1"
    assert product.offers[0].available is True


@pytest.mark.asyncio
async def test_search_by_sku_falls_back_to_special_encoding(client, http):
    http.request.side_effect = [_response(404, "Not Found"), _response(200, SEARCH_XML)]

    product = await client.search_by_sku("MK1A3D/A")

    assert product.product_id == "4711"
    urls = [call.args[1] for call in http.request.call_args_list]
    assert "hstpid=MK1A3D%2FA/" in urls[0]
    assert "hstpid=MK1A3D%252FA/" in urls[1]


@pytest.mark.asyncio
async def test_search_by_sku_not_found(client, http):
    http.request.return_value = _response(200, "<products/>")
    assert await client.search_by_sku("UNKNOWN") is None


@pytest.mark.asyncio
async def test_network_error_raises_itscope_api_error(client, http):
    http.request.side_effect = httpx.ConnectError("connection refused")

    with pytest.raises(ItScopeAPIError):
        await client.get_stock("4711")


@pytest.mark.asyncio
async def test_malformed_xml_raises_itscope_api_error(client, http):
    http.request.return_value = _response(200, "<products><product>")

    with pytest.raises(ItScopeAPIError):
        await client.get_stock("4711")


@pytest.mark.asyncio
async def test_get_stock_returns_offers(client, http):
    http.request.return_value = _response(200, SEARCH_XML)

    offers = await client.get_stock("4711")

    assert http.request.call_args.args[1] == "https://api.itscope.com/2.1/products/id/4711/standard.xml?plzproducts=true"
    assert [(o.distributor_id, o.stock, o.price) for o in offers] == [("D1", 12, 1099.0)]


@pytest.mark.asyncio
async def test_get_stock_http_error_returns_empty(client, http):
    http.request.return_value = _response(500, "boom")
    assert await client.get_stock("4711") == []


"""
3. Deals
"""

@pytest.mark.asyncio
async def test_submit_order_success(client, http):
    http.request.return_value = _response(200, "<deal><id>DEAL-1</id></deal>")

    result = await client.submit_order("D1", "<ORDER>Müller</ORDER>")

    assert result.success is True
    assert result.deal_id == "DEAL-1"
    method, url = http.request.call_args.args
    kwargs = http.request.call_args.kwargs
    assert method == "POST"
    assert url == "https://api.itscope.com/2.0/business/deals/send/D1"
    assert kwargs["content"] == "<ORDER>Müller</ORDER>".encode("utf-8")
    assert kwargs["headers"]["Content-Type"] == "application/xml;charset=UTF-8"


@pytest.mark.asyncio
async def test_submit_order_rejected(client, http):
    http.request.return_value = _response(400, "Invalid ORDER_ID")

    result = await client.submit_order("D1", "<ORDER/>")

    assert result.success is False
    assert result.error == "HTTP 400: Invalid ORDER_ID"
    assert result.deal_id is None


@pytest.mark.asyncio
async def test_submit_order_accepted_without_xml_body(client, http):
    http.request.return_value = _response(201, "OK")

    result = await client.submit_order("D1", "<ORDER/>")

    assert result.success is True
    assert result.deal_id is None


@pytest.mark.asyncio
async def test_get_deal_status_encodes_lookup_id(client, http):
    http.request.return_value = _response(
        200, "<dealList><deal><orderId>SH1042/1</orderId><status>CONFIRMED</status></deal></dealList>"
    )

    deal = await client.get_deal_status("SH1042/1")

    assert http.request.call_args.args[1] == (
        "https://api.itscope.com/2.1/business/deals/sales/search/orderId=SH1042%252F1/deal.xml"
    )
    assert deal.status is OrderStatus.CONFIRMED


@pytest.mark.asyncio
async def test_get_deal_status_not_found(client, http):
    http.request.return_value = _response(404, "")
    assert await client.get_deal_status("SH1") is None


@pytest.mark.asyncio
async def test_fetch_dispatch_document(client, http):
    http.request.return_value = _response(200, """<DISPATCHNOTIFICATION>
      <DISPATCHNOTIFICATION_HEADER><DISPATCHNOTIFICATION_INFO><SHIPMENT_ID>TRK1</SHIPMENT_ID></DISPATCHNOTIFICATION_INFO></DISPATCHNOTIFICATION_HEADER>
    </DISPATCHNOTIFICATION>""")

    info = await client.fetch_dispatch_document("https://api.itscope.com/doc/1.xml")

    assert info.tracking_numbers == ["TRK1"]
    assert http.request.call_args.args[1] == "https://api.itscope.com/doc/1.xml"


@pytest.mark.asyncio
async def test_fetch_dispatch_document_tolerates_bad_documents(client, http):
    http.request.return_value = _response(200, "not xml")
    info = await client.fetch_dispatch_document("https://api.itscope.com/doc/1.xml")
    assert info.tracking_numbers == []
