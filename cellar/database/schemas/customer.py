from datetime import datetime
from typing import Optional, Any

from pydantic.main import BaseModel
from pydantic.config import ConfigDict
from pydantic.functional_validators import field_validator

from .address import AddressInput, AddressSchema


class CustomerInput(BaseModel):
    name: str
    document: str
    state_registration: str
    contact_person: Optional[str] = None
    email: Optional[str] = None
    cellphone: Optional[str] = None
    business_phone: Optional[str] = None
    address: Optional[AddressInput] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any):
        if isinstance(value, str):
            return value.strip().lower() or None

        return value

    @field_validator("document", "state_registration", mode="before")
    @classmethod
    def strip_registration(cls, value: Any):
        return value.strip() if isinstance(value, str) else value

    def column_data(self, partial: bool = False) -> dict:
        """Column values without the address; ``partial`` keeps only the fields the caller set."""
        return self.model_dump(exclude={"address"}, exclude_unset=partial)


class CustomerSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    document: str
    state_registration: str
    contact_person: Optional[str] = None
    email: Optional[str] = None
    cellphone: Optional[str] = None
    business_phone: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    disabled_at: Optional[datetime] = None
    address: Optional[AddressSchema] = None


class CustomerListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    contact_person: Optional[str] = None
    email: Optional[str] = None
    cellphone: Optional[str] = None
    business_phone: Optional[str] = None


class CustomerSummary(BaseModel):
    customer_id: str
    customer: str
    consigned_id: str
    total_types: int
    total_balance: int


class CustomerRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
