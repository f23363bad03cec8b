# itscope_connector/models/shop.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func

from itscope_connector.database import Base


class ShopSession(Base):
    """Shopify access tokens, written by the app install flow"""
    __tablename__ = "shop_sessions"

    id = Column(String, primary_key=True)  # "offline_{shop}" for offline tokens
    shop = Column(String, nullable=False, index=True)
    state = Column(String, default="")
    is_online = Column(Boolean, nullable=False, default=False)
    scope = Column(String)
    expires = Column(DateTime(timezone=True))
    access_token = Column(String, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class ShopSettings(Base):
    __tablename__ = "shop_settings"

    id = Column(Integer, primary_key=True, index=True)
    shop = Column(String, nullable=False, unique=True)
    location_id = Column(String)  # gid://shopify/Location/...
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
