from datetime import datetime
from typing import Optional

from pydantic.main import BaseModel
from pydantic.config import ConfigDict
from pydantic.fields import Field

from .customer import CustomerRef
from .role import RoleRef


class UserInput(BaseModel):
    email: str
    name: str
    password: str = Field(min_length=1)
    associated_customer_id: Optional[str] = None


class UserUpdate(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    password: Optional[str] = None
    associated_customer_id: Optional[str] = None


class ConsignedRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str


class UserCustomer(CustomerRef):
    consigned: list[ConsignedRef] = []


class UserDetails(BaseModel):
    id: str
    name: str
    email: str
    roles: list[RoleRef] = []
    customer: Optional[UserCustomer] = None


class UserListItem(BaseModel):
    id: str
    name: str
    email: str
    created_at: datetime
    roles: list[RoleRef] = []
    customer: Optional[CustomerRef] = None


class AccessToken(BaseModel):
    access_token: str
    token_type: str = "bearer"
