# tests/unit/services/test_order_ledger.py
import asyncio

import pytest

from itscope_connector.core.enums import OrderStatus
from itscope_connector.schemas.itscope import SubmitResult
from itscope_connector.services.order_ledger import OrderLedger
from tests.mocks.payloads import SHOP


@pytest.fixture
def ledger(session_factory):
    return OrderLedger(session_factory)


def _claim(ledger, distributor_id="D1", own_order_id="SH1042", order_id="gid://shopify/Order/5001", shop=SHOP):
    return ledger.claim(
        shop=shop,
        shopify_order_id=order_id,
        shopify_order_number="1042",
        distributor_id=distributor_id,
        own_order_id=own_order_id,
        dropship=False,
    )


@pytest.mark.asyncio
async def test_claim_inserts_pending_row(ledger):
    order = await _claim(ledger)

    assert order.id is not None
    assert order.status == OrderStatus.PENDING.value
    assert order.itscope_own_order_id == "SH1042"


@pytest.mark.asyncio
async def test_second_claim_for_same_slot_returns_none(ledger):
    assert await _claim(ledger) is not None
    assert await _claim(ledger) is None
    assert len(await ledger.list_for_order(SHOP, "gid://shopify/Order/5001")) == 1


@pytest.mark.asyncio
async def test_claims_are_per_distributor_and_shop(ledger):
    assert await _claim(ledger, distributor_id="D1") is not None
    assert await _claim(ledger, distributor_id="D2", own_order_id="SH1042/1") is not None
    assert await _claim(ledger, shop="other-shop.myshopify.com") is not None


@pytest.mark.asyncio
async def test_concurrent_claims_have_one_winner(ledger):
    results = await asyncio.gather(*[_claim(ledger) for _ in range(5)])
    assert sum(1 for r in results if r is not None) == 1


@pytest.mark.asyncio
async def test_record_submission(ledger):
    order = await _claim(ledger)

    await ledger.record_submission(order.id, SubmitResult(success=True, deal_id="DEAL-1"))
    sent = await ledger.get(order.id)
    assert sent.status == "sent"
    assert sent.itscope_deal_id == "DEAL-1"

    await ledger.record_submission(order.id, SubmitResult(success=False, error="HTTP 400: bad"))
    failed = await ledger.get(order.id)
    assert failed.status == "error"
    assert failed.error_message == "HTTP 400: bad"


@pytest.mark.asyncio
async def test_release_frees_the_slot(ledger):
    order = await _claim(ledger)
    await ledger.release(order.id)

    assert await ledger.get(order.id) is None
    assert await _claim(ledger) is not None


@pytest.mark.asyncio
async def test_record_status_and_list_by_status(ledger):
    first = await _claim(ledger, distributor_id="D1")
    second = await _claim(ledger, distributor_id="D2", own_order_id="SH1042/1")
    await ledger.record_submission(first.id, SubmitResult(success=True))
    await ledger.mark_error(second.id, "boom")

    await ledger.record_status(first.id, status=OrderStatus.SHIPPED, tracking_number="1Z", serial_numbers=["S1"])

    shipped = await ledger.get(first.id)
    assert shipped.status == "shipped"
    assert shipped.tracking_number == "1Z"
    assert shipped.serial_numbers == ["S1"]
    assert shipped.last_status_check is not None

    assert [o.id for o in await ledger.list_by_status(["shipped"])] == [first.id]
    assert [o.id for o in await ledger.list_by_status(["error"])] == [second.id]
    assert await ledger.list_by_status(["sent", "confirmed"]) == []


@pytest.mark.asyncio
async def test_list_recent_is_scoped_to_shop(ledger):
    await _claim(ledger, order_id="gid://shopify/Order/1")
    await _claim(ledger, order_id="gid://shopify/Order/2")
    await _claim(ledger, order_id="gid://shopify/Order/3", shop="other-shop.myshopify.com")

    recent = await ledger.list_recent(SHOP, limit=1)
    assert len(recent) == 1
    assert len(await ledger.list_recent(SHOP)) == 2
