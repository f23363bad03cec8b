# tests/test_routes/test_webhooks.py
import json

from itscope_connector.core.security import compute_shopify_hmac
from tests.mocks.payloads import SHOP, line_item, order_payload

SECRET = "shpss_test_secret"


def _post(client, topic, body, hmac_header=None, shop=SHOP):
    raw = body if isinstance(body, bytes) else json.dumps(body).encode("utf8")
    headers = {
        "X-Shopify-Topic": topic,
        "X-Shopify-Shop-Domain": shop,
        "X-Shopify-Hmac-Sha256": hmac_header or compute_shopify_hmac(SECRET, raw),
        "Content-Type": "application/json",
    }
    return client.post("/api/webhooks", content=raw, headers=headers)


def test_missing_headers_are_rejected(client):
    response = client.post("/api/webhooks", json={"id": 1})
    assert response.status_code == 401


def test_invalid_hmac_is_rejected(client, itscope):
    response = _post(client, "orders/create", order_payload(), hmac_header="bm90LXRoZS1yaWdodC1obWFj")

    assert response.status_code == 401
    assert itscope.submissions == []


def test_hmac_is_checked_against_raw_body(client):
    body = json.dumps(order_payload()).encode("utf8")
    tampered = body.replace(b"1042", b"1043")

    response = _post(client, "orders/create", tampered, hmac_header=compute_shopify_hmac(SECRET, body))

    assert response.status_code == 401


def test_order_created_is_forwarded(client, itscope, run, add_product, add_session):
    run(add_session())
    product = run(add_product())

    response = _post(client, "orders/create", order_payload(line_items=[line_item(product)]))

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert len(itscope.submissions_for("D1")) == 1


def test_redelivered_webhook_is_acknowledged_without_resending(client, itscope, run, add_product, add_session):
    run(add_session())
    product = run(add_product())
    body = order_payload(line_items=[line_item(product)])

    assert _post(client, "orders/create", body).status_code == 200
    assert _post(client, "orders/create", body).status_code == 200

    assert len(itscope.submissions) == 1


def test_handler_failures_are_still_acknowledged(client):
    response = _post(client, "orders/create", b"{not json")

    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_app_uninstalled_deletes_sessions(client, container, run, add_session):
    run(add_session())

    response = _post(client, "app/uninstalled", {"domain": SHOP})

    assert response.status_code == 200
    assert run(container.sessions.get_offline_session(SHOP)) is None


def test_unknown_topic_is_acknowledged(client):
    assert _post(client, "products/update", {"id": 1}).status_code == 200
