from typing import Optional

from pydantic.main import BaseModel
from pydantic.config import ConfigDict

from cellar.utils import is_blank


class AddressInput(BaseModel):
    street_address: str = ""
    number: str = ""
    neighborhood: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""

    @property
    def blank(self) -> bool:
        return all(is_blank(value) for value in self.model_dump().values())


class AddressSchema(AddressInput):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    customer_id: Optional[str] = None
