# itscope_connector/routes/jobs.py
"""Cron-triggered reconciliation runs."""

from fastapi import APIRouter, Depends

from itscope_connector.container import ServiceContainer
from itscope_connector.core.security import require_cron_secret
from itscope_connector.dependencies import get_container
from itscope_connector.schemas.order import SyncResult

router = APIRouter(prefix="/api", tags=["jobs"], dependencies=[Depends(require_cron_secret)])


@router.get("/stock-sync", response_model=SyncResult)
async def stock_sync(container: ServiceContainer = Depends(get_container)):
    return await container.stock_sync.run()


@router.get("/order-status-sync", response_model=SyncResult)
async def order_status_sync(container: ServiceContainer = Depends(get_container)):
    return await container.order_status_sync.run()
