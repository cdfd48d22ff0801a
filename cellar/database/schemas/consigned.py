from datetime import datetime
from typing import Optional

from pydantic.main import BaseModel
from pydantic.config import ConfigDict
from pydantic.fields import Field

from cellar.database.enums import ConsignedStatus
from .customer import CustomerRef


class ConsignedItemInput(BaseModel):
    wine_id: str
    count: int = Field(gt=0)


class WineOnConsignedSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    wine_id: str
    consigned_id: str
    count: int
    balance: int


class ConsignedSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    customer_id: str
    status: ConsignedStatus
    created_at: datetime
    updated_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    customer: Optional[CustomerRef] = None
    wines_on_consigned: list[WineOnConsignedSchema] = []
