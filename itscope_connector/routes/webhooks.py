import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from itscope_connector.container import ServiceContainer
from itscope_connector.core.config import Settings
from itscope_connector.core.enums import WebhookTopic
from itscope_connector.core.security import verify_shopify_hmac
from itscope_connector.dependencies import get_app_settings, get_container

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])


@router.post("/api/webhooks")
async def shopify_webhook(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    container: ServiceContainer = Depends(get_container),
):
    """
    Shopify webhook receiver.

    Authenticated by X-Shopify-Hmac-Sha256. Once authenticated the delivery
    is always acknowledged, whatever happens while handling it; Shopify
    retries unacknowledged deliveries and order forwarding is idempotent
    anyway.
    """
    topic = request.headers.get("x-shopify-topic")
    shop = request.headers.get("x-shopify-shop-domain")
    hmac_header = request.headers.get("x-shopify-hmac-sha256")

    if not topic or not shop or not hmac_header:
        raise HTTPException(status_code=401, detail="Missing headers")

    raw_body = await request.body()
    if not verify_shopify_hmac(settings.SHOPIFY_API_SECRET, raw_body, hmac_header):
        raise HTTPException(status_code=401, detail="Invalid HMAC")

    try:
        body = json.loads(raw_body)
        if topic == WebhookTopic.ORDERS_CREATE.value:
            await container.forwarding.handle_order_created(shop, body)
        elif topic == WebhookTopic.APP_UNINSTALLED.value:
            await container.sessions.delete_sessions(shop)
        else:
            logger.info(f"Unhandled webhook topic: {topic}")
    except Exception as e:
        logger.error(f"Webhook error ({topic}) for {shop}: {e}", exc_info=True)

    return {"ok": True}
