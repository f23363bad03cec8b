# tests/unit/services/test_stores.py
import pytest

from itscope_connector.core.exceptions import ProductNotFoundError, StorefrontSessionError
from itscope_connector.models.shop import ShopSession
from itscope_connector.services.session_service import offline_session_id
from tests.mocks.payloads import SHOP


"""
1. Shop sessions
"""

@pytest.mark.asyncio
async def test_get_client_uses_offline_token(container, shopify_factory, add_session):
    await add_session(access_token="shpat_offline")

    client = await container.sessions.get_client(SHOP)

    assert client is shopify_factory.clients[SHOP]
    assert client.access_token == "shpat_offline"


@pytest.mark.asyncio
async def test_online_session_is_used_when_no_offline_session(container, session_factory):
    async with session_factory() as db:
        db.add(ShopSession(id="online-1", shop=SHOP, access_token="", is_online=True))
        db.add(ShopSession(id="online-2", shop=SHOP, access_token="shpat_online", is_online=True))
        await db.commit()

    session = await container.sessions.get_offline_session(SHOP)

    assert session.id == "online-2"


@pytest.mark.asyncio
async def test_get_client_without_session_raises(container):
    with pytest.raises(StorefrontSessionError) as exc_info:
        await container.sessions.get_client(SHOP)
    assert exc_info.value.shop == SHOP


@pytest.mark.asyncio
async def test_delete_sessions_only_touches_the_shop(container, add_session):
    await add_session()
    await add_session("other-shop.myshopify.com")

    assert await container.sessions.delete_sessions(SHOP) == 1
    assert await container.sessions.get_offline_session(SHOP) is None
    assert await container.sessions.get_offline_session("other-shop.myshopify.com") is not None


def test_offline_session_id():
    assert offline_session_id(SHOP) == f"offline_{SHOP}"


"""
2. Tracked products
"""

@pytest.mark.asyncio
async def test_find_by_shopify_products_ignores_inactive(container, add_product):
    active = await add_product()
    inactive = await add_product(active=False)

    found = await container.products.find_by_shopify_products(
        SHOP, [active.shopify_product_id, inactive.shopify_product_id, None]
    )

    assert [p.id for p in found] == [active.id]


@pytest.mark.asyncio
async def test_update_sync_state(container, add_product):
    product = await add_product()

    await container.products.update_sync_state(product.id, last_stock=4, last_price=99.5, price_alert=False)

    synced = await container.products.get(product.id)
    assert (synced.last_stock, synced.last_price, synced.price_alert) == (4, 99.5, False)
    assert synced.last_stock_sync is not None


@pytest.mark.asyncio
async def test_soft_delete_checks_shop(container, add_product):
    product = await add_product()

    with pytest.raises(ProductNotFoundError):
        await container.products.soft_delete("other-shop.myshopify.com", product.id)

    removed = await container.products.soft_delete(SHOP, product.id)
    assert removed.active is False
    assert await container.products.list_active(SHOP) == []
