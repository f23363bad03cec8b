from itscope_connector.schemas.itscope import Offer, ProjectPrice

SHOP = "test-shop.myshopify.com"


def make_offer(distributor_id="D1", price=100.0, stock=5, projects=None, **kwargs) -> Offer:
    return Offer(
        distributor_id=distributor_id,
        distributor_name=kwargs.pop("distributor_name", "TD SYNNEX"),
        price=price,
        stock=stock,
        available=kwargs.pop("available", stock > 0 and price > 0),
        projects=[ProjectPrice(manufacturer_project_id=p, price=v) for p, v in (projects or {}).items()],
        **kwargs,
    )


def order_payload(order_id=5001, order_number=1042, line_items=None, **overrides) -> dict:
    """orders/create webhook body in Shopify's REST shape"""
    payload = {
        "id": order_id,
        "order_number": order_number,
        "email": "kunde@example.com",
        "line_items": line_items or [],
        "shipping_address": {
            "first_name": "Anna",
            "last_name": "Muster",
            "address1": "Ringstr. 5",
            "zip": "A-1010",
            "city": "Wien",
            "country_code": "AT",
        },
        "billing_address": {
            "first_name": "Anna",
            "last_name": "Muster",
            "company": "Muster KG",
            "address1": "Ringstr. 5",
            "zip": "1010",
            "city": "Wien",
            "country_code": "AT",
            "phone": "+43 1 234",
        },
        "customer": {"first_name": "Anna", "last_name": "Muster", "email": "kunde@example.com"},
    }
    payload.update(overrides)
    return payload


def line_item(product, quantity=1, title=None, vendor="Lenovo") -> dict:
    return {
        "product_id": int(product.shopify_product_id.rsplit("/", 1)[-1]),
        "quantity": quantity,
        "title": title or f"Item {product.itscope_sku}",
        "vendor": vendor,
    }
