"""Forwarded order history."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from itscope_connector.container import ServiceContainer
from itscope_connector.dependencies import get_container
from itscope_connector.schemas.order import OrderRead

router = APIRouter(prefix="/api", tags=["orders"])


@router.get("/orders", response_model=List[OrderRead])
async def list_orders(
    shop: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    container: ServiceContainer = Depends(get_container),
):
    if not shop:
        raise HTTPException(status_code=400, detail="Missing shop")
    return await container.ledger.list_recent(shop, limit=limit)
