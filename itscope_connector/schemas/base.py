"""
Base schemas for API responses built from ORM rows.
"""
from datetime import datetime
from pydantic import BaseModel, ConfigDict
from typing import Any, Optional, Type, TypeVar

T = TypeVar("T", bound="BaseSchema")


class BaseSchema(BaseModel):
    """Reads ORM attributes; accepts field names as well as aliases"""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True
    )

    @classmethod
    def from_orm_model(cls: Type[T], orm_model: Any) -> T:
        return cls.model_validate(orm_model)


class TimestampedSchema(BaseSchema):
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
