# tests/test_routes/test_products.py
from itscope_connector.core.exceptions import ItScopeAPIError
from itscope_connector.schemas.itscope import SupplierProduct
from tests.mocks.payloads import SHOP, make_offer

SKU = "20XW004AGE"


def _supplier_product():
    return SupplierProduct(
        product_id="4711",
        name="ThinkPad X1 Carbon",
        manufacturer="Lenovo",
        offers=[
            make_offer(distributor_id="D1", distributor_name="TD SYNNEX", price=100.0),
            make_offer(distributor_id="D2", distributor_name="ALSO Austria", price=105.0),
            make_offer(distributor_id="D9", distributor_name="Ingram Micro", price=95.0),
        ],
    )


def _import_body(**overrides):
    body = {"shop": SHOP, "sku": SKU, "distributorId": "D1", "distributorName": "TD SYNNEX", "productType": "Laptop"}
    body.update(overrides)
    return body


"""
1. Listing and editing
"""

def test_list_requires_shop(client):
    assert client.get("/api/products").status_code == 400


def test_list_returns_active_products_of_shop(client, run, add_product):
    kept = run(add_product())
    run(add_product(active=False))
    run(add_product(shop="other-shop.myshopify.com"))

    response = client.get("/api/products", params={"shop": SHOP})

    assert response.status_code == 200
    assert [p["id"] for p in response.json()] == [kept.id]


def test_patch_sets_project_and_dismisses_alert(client, run, add_product):
    product = run(add_product(price_alert=True))

    response = client.patch("/api/products", json={
        "shop": SHOP, "id": product.id, "projectId": "PRJ-UNI", "dismissPriceAlert": True,
    })

    assert response.status_code == 200
    body = response.json()["product"]
    assert body["project_id"] == "PRJ-UNI"
    assert body["price_alert"] is False


def test_patch_clears_project_with_empty_value(client, run, add_product):
    product = run(add_product(project_id="PRJ-UNI", price_alert=True))

    response = client.patch("/api/products", json={"shop": SHOP, "id": product.id, "projectId": ""})

    body = response.json()["product"]
    assert body["project_id"] is None
    assert body["price_alert"] is True


def test_patch_of_other_shops_product_is_not_found(client, run, add_product):
    product = run(add_product(shop="other-shop.myshopify.com"))

    response = client.patch("/api/products", json={"shop": SHOP, "id": product.id, "dismissPriceAlert": True})

    assert response.status_code == 404


def test_delete_is_a_soft_delete(client, container, run, add_product):
    product = run(add_product())

    response = client.request("DELETE", "/api/products", json={"shop": SHOP, "id": product.id})

    assert response.status_code == 200
    assert run(container.products.get(product.id)).active is False
    assert client.get("/api/products", params={"shop": SHOP}).json() == []


"""
2. Import
"""

def test_import_product(client, itscope, run, add_session):
    run(add_session())
    itscope.products[SKU] = _supplier_product()

    response = client.post("/api/products", json=_import_body())

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["product"]["itscope_sku"] == SKU
    assert body["product"]["shopify_product_id"] == "gid://shopify/Product/9001"


def test_import_conflict_returns_existing_product(client, itscope, run, add_session):
    run(add_session())
    itscope.products[SKU] = _supplier_product()
    client.post("/api/products", json=_import_body())

    response = client.post("/api/products", json=_import_body())

    assert response.status_code == 409
    assert response.json()["product"]["itscope_sku"] == SKU


def test_import_unknown_sku(client, run, add_session):
    run(add_session())
    assert client.post("/api/products", json=_import_body()).status_code == 404


def test_import_without_session(client, itscope):
    itscope.products[SKU] = _supplier_product()
    assert client.post("/api/products", json=_import_body()).status_code == 401


def test_import_shopify_user_errors(client, itscope, shopify_factory, run, add_session):
    run(add_session())
    itscope.products[SKU] = _supplier_product()
    shopify_factory.for_shop(SHOP).product_create_results = [
        {"product": None, "userErrors": [{"field": ["title"], "message": "Title can't be blank"}]},
    ]

    response = client.post("/api/products", json=_import_body())

    assert response.status_code == 422
    assert response.json()["details"][0]["message"] == "Title can't be blank"


"""
3. ItScope search
"""

def test_search_keeps_only_allowed_distributors(client, itscope):
    itscope.products[SKU] = _supplier_product()

    response = client.get("/api/itscope-search", params={"sku": SKU, "shop": SHOP})

    assert response.status_code == 200
    assert [o["distributor_id"] for o in response.json()["offers"]] == ["D1", "D2"]


def test_search_requires_sku_and_shop(client):
    assert client.get("/api/itscope-search", params={"sku": SKU}).status_code == 400


def test_search_not_found(client):
    assert client.get("/api/itscope-search", params={"sku": "NOPE", "shop": SHOP}).status_code == 404


def test_search_upstream_failure(client, itscope, mocker):
    mocker.patch.object(itscope, "search_by_sku", side_effect=ItScopeAPIError("Network error calling ItScope"))
    assert client.get("/api/itscope-search", params={"sku": SKU, "shop": SHOP}).status_code == 502
