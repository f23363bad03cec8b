import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from itscope_connector.container import ServiceContainer
from itscope_connector.core.exceptions import ShopifyServiceError, StorefrontSessionError
from itscope_connector.dependencies import get_container
from itscope_connector.schemas.shop import ShopSettingsRead, ShopSettingsUpdate, ShopSettingsView

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["settings"])


@router.get("/settings", response_model=ShopSettingsView)
async def get_shop_settings(
    shop: Optional[str] = Query(None),
    container: ServiceContainer = Depends(get_container),
):
    """Active Shopify locations and the location stock is synced to."""
    if not shop:
        raise HTTPException(status_code=400, detail="Missing shop")

    try:
        client = await container.sessions.get_client(shop)
        locations = await client.get_locations(first=50, active_only=True)
    except StorefrontSessionError:
        raise HTTPException(status_code=401, detail="No Shopify session found")
    except ShopifyServiceError as e:
        logger.error(f"Settings GET error for {shop}: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return ShopSettingsView(
        locations=locations,
        selectedLocationId=await container.sessions.get_location_id(shop),
    )


@router.post("/settings")
async def save_shop_settings(
    request: ShopSettingsUpdate,
    container: ServiceContainer = Depends(get_container),
):
    if not request.location_id:
        raise HTTPException(status_code=400, detail="Missing shop or locationId")
    shop_settings = await container.sessions.set_location_id(request.shop, request.location_id)
    return {"success": True, "settings": ShopSettingsRead.from_orm_model(shop_settings)}
