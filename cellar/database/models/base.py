from typing import TypeVar
from uuid import uuid4

from sqlalchemy.orm.decl_api import DeclarativeBase
from sqlalchemy.ext.asyncio import AsyncAttrs


class Base(AsyncAttrs, DeclarativeBase):
    def __repr__(self) -> str:
        pk = ", ".join(f"{col.key}={getattr(self, col.key, None)!r}" for col in self.__mapper__.primary_key)
        return f"<{type(self).__name__} {pk}>"


BaseType = TypeVar("BaseType", bound=Base)


def generate_id() -> str:
    return str(uuid4())
