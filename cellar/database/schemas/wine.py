from datetime import datetime
from typing import Optional

from pydantic.main import BaseModel
from pydantic.config import ConfigDict
from pydantic.fields import Field

from .customer import CustomerRef


class WineInput(BaseModel):
    name: str
    type: str
    price: float = Field(ge=0)
    producer: str
    country: str
    size: str
    harvest: Optional[int] = None


class WineSchema(BaseModel):
    """Wine as exposed to callers; ``price`` is in currency units."""
    id: str
    name: str
    type: str
    price: float
    producer: str
    country: str
    size: str
    harvest: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class WineConsignedRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    customer: CustomerRef


class WineOnConsignedDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    wine_id: str
    consigned_id: str
    balance: int
    consigned: WineConsignedRef


class WineDetails(WineSchema):
    wine_on_consigned: list[WineOnConsignedDetail] = []


class WineMetric(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    wine_name: str
    wine_id: str
    updated_at: datetime
    customer_name: str
    total: int
    total_balance: int
