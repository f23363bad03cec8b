"""
Request authentication for Shopify webhooks and cron triggers
"""

import base64
import hashlib
import hmac
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from itscope_connector.core.config import Settings
from itscope_connector.dependencies import get_app_settings


def compute_shopify_hmac(secret: str, body: bytes) -> str:
    """Base64 HMAC-SHA256 digest as sent in X-Shopify-Hmac-Sha256"""
    digest = hmac.new(secret.encode("utf8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf8")


def verify_shopify_hmac(secret: str, body: bytes, received: Optional[str]) -> bool:
    if not secret or not received:
        return False
    expected = compute_shopify_hmac(secret, body)
    return hmac.compare_digest(expected.encode("utf8"), received.encode("utf8"))


async def require_cron_secret(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> None:
    """
    Cron triggers authenticate with ``Authorization: Bearer <CRON_SECRET>``.
    An unset secret locks the endpoints rather than opening them.
    """
    auth_header = request.headers.get("authorization", "")
    expected = f"Bearer {settings.CRON_SECRET}"
    if not settings.CRON_SECRET or not secrets.compare_digest(
        auth_header.encode("utf8"), expected.encode("utf8")
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
