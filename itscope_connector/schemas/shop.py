# File: itscope_connector/schemas/shop.py

from typing import List, Optional

from pydantic import BaseModel, Field

from itscope_connector.schemas.base import BaseSchema


class LocationRead(BaseModel):
    id: str
    name: str = ""
    isActive: bool = True


class ShopSettingsView(BaseModel):
    locations: List[LocationRead] = Field(default_factory=list)
    selectedLocationId: Optional[str] = None


class ShopSettingsUpdate(BaseModel):
    shop: str
    location_id: str = Field(alias="locationId")

    model_config = {"populate_by_name": True}


class ShopSettingsRead(BaseSchema):
    id: int
    shop: str
    location_id: Optional[str] = None
