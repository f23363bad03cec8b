# tests/conftest.py
import pytest
from sqlalchemy.pool import NullPool

from itscope_connector import models  # noqa: F401
from itscope_connector.container import build_container
from itscope_connector.core.config import Settings
from itscope_connector.database import Base, build_engine, build_session_factory
from itscope_connector.models.shop import ShopSession
from itscope_connector.models.tracked_product import TrackedProduct
from tests.mocks import FakeItScopeClient, FakeShopifyFactory
from tests.mocks.payloads import SHOP


@pytest.fixture
def settings(tmp_path):
    """Provide test settings"""
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        ITSCOPE_ACCOUNT_ID="acct-1",
        ITSCOPE_API_KEY="itscope-key",
        ITSCOPE_CUSTOMER_ID="cust-fallback",
        SHOPIFY_API_SECRET="shpss_test_secret",
        CRON_SECRET="cron-secret",
        COMPANY_NAME="Test Company GmbH",
        COMPANY_STREET="Hauptstr. 1",
        COMPANY_ZIP="A-1090",
        COMPANY_CITY="Wien",
        COMPANY_COUNTRY="AT",
        DISTRIBUTOR_CUSTOMER_IDS="synnex:640545,also:10738286",
        VENDOR_ORDER_REMARKS="apple:Universität Wien",
        SERVICE_REMARK_SUFFIX="+ AppleCare+",
        SYNC_SCHEDULE_ENABLED=False,
    )


@pytest.fixture
async def test_engine(settings):
    """Function-scoped SQLite engine with all tables created"""
    engine = build_engine(settings.DATABASE_URL, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return build_session_factory(test_engine)


@pytest.fixture
def itscope():
    return FakeItScopeClient()


@pytest.fixture
def shopify_factory():
    return FakeShopifyFactory()


@pytest.fixture
def container(settings, session_factory, itscope, shopify_factory):
    return build_container(settings, session_factory, itscope=itscope, shopify_client_factory=shopify_factory)


@pytest.fixture
def add_session(session_factory):
    """Insert an offline session for a shop"""
    async def _add(shop=SHOP, access_token="shpat_test"):
        async with session_factory() as db:
            db.add(ShopSession(id=f"offline_{shop}", shop=shop, access_token=access_token, is_online=False))
            await db.commit()
    return _add


@pytest.fixture
def add_product(session_factory):
    """Insert a tracked product; keyword arguments override the defaults"""
    counter = {"n": 0}

    async def _add(**overrides):
        counter["n"] += 1
        n = counter["n"]
        fields = dict(
            shop=SHOP,
            itscope_sku=f"SKU-{n}",
            itscope_product_id=f"puid-{n}",
            shopify_product_id=f"gid://shopify/Product/{1000 + n}",
            shopify_variant_id=f"gid://shopify/ProductVariant/{2000 + n}",
            shopify_inventory_item_id=f"gid://shopify/InventoryItem/{3000 + n}",
            distributor_id="D1",
            distributor_name="TD SYNNEX",
            product_category="Laptop",
            shipping_mode="warehouse",
            import_price=100.0,
            last_price=100.0,
            active=True,
        )
        fields.update(overrides)
        async with session_factory() as db:
            product = TrackedProduct(**fields)
            db.add(product)
            await db.commit()
            await db.refresh(product)
            return product
    return _add
