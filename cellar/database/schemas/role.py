from pydantic.main import BaseModel
from pydantic.config import ConfigDict


class RoleRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
