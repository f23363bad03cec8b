# itscope_connector/container.py
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from itscope_connector.core.config import Settings
from itscope_connector.services.itscope.client import ItScopeClient
from itscope_connector.services.itscope.distributors import DistributorRegistry
from itscope_connector.services.order_forwarding import OrderForwardingService
from itscope_connector.services.order_ledger import OrderLedger
from itscope_connector.services.order_status_sync import OrderStatusSyncService
from itscope_connector.services.product_import import ProductImportService
from itscope_connector.services.session_service import ShopSessionService
from itscope_connector.services.shopify.client import ShopifyGraphQLClient
from itscope_connector.services.stock_sync import StockSyncService
from itscope_connector.services.tracked_product_store import TrackedProductStore


@dataclass
class ServiceContainer:
    """Every service wired against one settings object and one session factory."""
    settings: Settings
    itscope: ItScopeClient
    distributors: DistributorRegistry
    sessions: ShopSessionService
    products: TrackedProductStore
    ledger: OrderLedger
    forwarding: OrderForwardingService
    stock_sync: StockSyncService
    order_status_sync: OrderStatusSyncService
    product_import: ProductImportService


def build_container(
    settings: Settings,
    session_factory: async_sessionmaker,
    itscope: Optional[ItScopeClient] = None,
    shopify_client_factory: Callable[..., ShopifyGraphQLClient] = ShopifyGraphQLClient,
) -> ServiceContainer:
    itscope = itscope or ItScopeClient(settings)
    distributors = DistributorRegistry(settings)
    sessions = ShopSessionService(session_factory, settings, client_factory=shopify_client_factory)
    products = TrackedProductStore(session_factory)
    ledger = OrderLedger(session_factory)

    return ServiceContainer(
        settings=settings,
        itscope=itscope,
        distributors=distributors,
        sessions=sessions,
        products=products,
        ledger=ledger,
        forwarding=OrderForwardingService(settings, products, ledger, itscope, sessions, distributors),
        stock_sync=StockSyncService(products, itscope, sessions),
        order_status_sync=OrderStatusSyncService(settings, ledger, itscope, sessions),
        product_import=ProductImportService(settings, products, itscope, sessions),
    )
