# tests/unit/services/test_product_import.py
import pytest

from itscope_connector.core.exceptions import (
    ProductAlreadyTrackedError,
    ProductImportError,
    ProductNotFoundError,
    StorefrontSessionError,
)
from itscope_connector.schemas.itscope import SupplierProduct
from itscope_connector.schemas.product import ProductImportRequest
from itscope_connector.services.product_import import build_metafields
from tests.mocks.payloads import SHOP, make_offer

SKU = "20XW004AGE"


@pytest.fixture
def supplier_product(itscope):
    product = SupplierProduct(
        product_id="4711",
        name="ThinkPad X1 Carbon",
        manufacturer="Lenovo",
        manufacturer_sku=SKU,
        ean="0195892123456",
        long_description="<p>Business Notebook</p>",
        image_url="https://img.itscope.com/4711.jpg",
        offers=[make_offer(distributor_id="D1", price=100.0, stock=7)],
    )
    itscope.products[SKU] = product
    return product


def _request(**overrides):
    data = {"shop": SHOP, "sku": SKU, "distributorId": "D1", "distributorName": "TD SYNNEX", "productType": "Laptop"}
    data.update(overrides)
    return ProductImportRequest(**data)


"""
1. Metafields
"""

def test_build_metafields_skips_empty_and_unqualified():
    assert build_metafields({"custom.cpu": "i7", "custom.ram": "", "nonamespace": "x"}) == [
        {"namespace": "custom", "key": "cpu", "value": "i7", "type": "single_line_text_field"},
    ]


"""
2. Import
"""

@pytest.mark.asyncio
async def test_import_creates_draft_product_and_tracks_it(container, shopify_factory, supplier_product, add_session):
    await add_session()

    tracked = await container.product_import.import_product(_request(projectId="PRJ-UNI"))

    shopify = shopify_factory.for_shop(SHOP)
    product_input = shopify.created_products[0]
    assert product_input["title"] == "ThinkPad X1 Carbon"
    assert product_input["vendor"] == "Lenovo"
    assert product_input["status"] == "DRAFT"
    assert product_input["tags"] == ["itscope-managed", "laptop"]
    assert product_input["descriptionHtml"] == "<p>Business Notebook</p>"

    variant = shopify.variant_updates[0]["variant"]
    assert variant["price"] == "110.00"
    assert variant["barcode"] == "0195892123456"
    assert variant["inventoryPolicy"] == "DENY"
    assert variant["inventoryItem"] == {"sku": SKU, "tracked": True, "cost": "100.00"}

    assert shopify.media == [{
        "product_id": "gid://shopify/Product/9001",
        "image_url": "https://img.itscope.com/4711.jpg",
        "alt": "ThinkPad X1 Carbon",
    }]
    assert shopify.inventory_sets[0]["quantity"] == 7

    assert tracked.itscope_product_id == "4711"
    assert tracked.shopify_product_id == "gid://shopify/Product/9001"
    assert tracked.shopify_variant_id == "gid://shopify/ProductVariant/9101"
    assert tracked.shopify_inventory_item_id == "gid://shopify/InventoryItem/9201"
    assert tracked.distributor_id == "D1"
    assert tracked.project_id == "PRJ-UNI"
    assert tracked.import_price == 100.0
    assert tracked.last_stock == 7
    assert tracked.active is True


@pytest.mark.asyncio
async def test_warranty_import_is_not_inventoried(container, shopify_factory, supplier_product, add_session):
    await add_session()

    tracked = await container.product_import.import_product(_request(productType="Warranty"))

    shopify = shopify_factory.for_shop(SHOP)
    assert shopify.created_products[0]["tags"] == ["itscope-managed", "warranty"]
    assert shopify.variant_updates[0]["variant"]["inventoryItem"]["tracked"] is False
    assert shopify.inventory_sets == []
    assert tracked.product_category == "Warranty"


@pytest.mark.asyncio
async def test_active_product_is_not_imported_twice(container, supplier_product, add_session):
    await add_session()
    first = await container.product_import.import_product(_request())

    with pytest.raises(ProductAlreadyTrackedError) as exc_info:
        await container.product_import.import_product(_request())

    assert exc_info.value.product.id == first.id


@pytest.mark.asyncio
async def test_removed_product_can_be_imported_again(container, supplier_product, add_session):
    await add_session()
    first = await container.product_import.import_product(_request())
    await container.products.soft_delete(SHOP, first.id)

    second = await container.product_import.import_product(_request(shippingMode="dropship"))

    assert second.id != first.id
    assert second.shipping_mode == "dropship"
    assert await container.products.get(first.id) is None


@pytest.mark.asyncio
async def test_unknown_sku_raises_not_found(container, add_session):
    await add_session()
    with pytest.raises(ProductNotFoundError):
        await container.product_import.import_product(_request(sku="NOPE"))


@pytest.mark.asyncio
async def test_missing_session_raises(container, supplier_product):
    with pytest.raises(StorefrontSessionError):
        await container.product_import.import_product(_request())
    assert await container.products.get_by_sku(SHOP, SKU) is None


@pytest.mark.asyncio
async def test_metafields_are_dropped_on_retry(container, shopify_factory, supplier_product, add_session):
    await add_session()
    shopify = shopify_factory.for_shop(SHOP)
    shopify.product_create_results = [
        {"product": None, "userErrors": [{"field": ["metafields"], "message": "Definition not found"}]},
    ]

    tracked = await container.product_import.import_product(_request(metafields={"custom.cpu": "i7"}))

    assert len(shopify.created_products) == 2
    assert shopify.created_products[0]["metafields"][0]["key"] == "cpu"
    assert "metafields" not in shopify.created_products[1]
    assert tracked.shopify_product_id == "gid://shopify/Product/9001"


@pytest.mark.asyncio
async def test_shopify_user_errors_fail_the_import(container, shopify_factory, supplier_product, add_session):
    await add_session()
    shopify_factory.for_shop(SHOP).product_create_results = [
        {"product": None, "userErrors": [{"field": ["title"], "message": "Title can't be blank"}]},
    ]

    with pytest.raises(ProductImportError) as exc_info:
        await container.product_import.import_product(_request())

    assert exc_info.value.details[0]["message"] == "Title can't be blank"
    assert await container.products.get_by_sku(SHOP, SKU) is None
