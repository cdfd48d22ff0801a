from enum import Enum

from sqlalchemy.orm.mapper import Mapper
from sqlalchemy.orm.relationships import Relationship
from sqlalchemy.sql.schema import UniqueConstraint
from sqlalchemy.inspection import inspect

from .base import BaseType
from .customer import Customer
from .address import Address
from .user import User
from .role import Role
from .permission import Permission
from .user_role import UserRole
from .role_permission import RolePermission
from .wine import Wine
from .consigned import Consigned
from .wine_on_consigned import WineOnConsigned


class ModelClass(Enum):
    CUSTOMER = Customer
    ADDRESS = Address
    USER = User
    ROLE = Role
    PERMISSION = Permission
    USER_ROLE = UserRole
    ROLE_PERMISSION = RolePermission
    WINE = Wine
    CONSIGNED = Consigned
    WINE_ON_CONSIGNED = WineOnConsigned

    @property
    def value(self) -> type[BaseType]:
        return self._value_

    @property
    def mapper(self) -> Mapper[BaseType]:
        return inspect(self.value)

    @property
    def model_name(self) -> str:
        return self.value.__name__

    @property
    def column_names(self) -> set[str]:
        return {column.key for column in self.mapper.column_attrs}

    @property
    def relationship_names(self) -> set[str]:
        return set(self.mapper.relationships.keys())

    @property
    def primary_key_names(self) -> list[str]:
        return [column.key for column in self.mapper.primary_key]

    @property
    def required_columns(self) -> list[str]:
        required_columns = []

        for column in self.mapper.columns:
            if column.primary_key or column.foreign_keys:
                continue

            if not column.nullable and column.default is None and column.server_default is None:
                required_columns.append(column.key)

        return required_columns

    @property
    def unique_sets(self) -> list[tuple[str, ...]]:
        """Every column set that identifies at most one row.

        Ordered primary key first, then single unique columns, then composite unique
        constraints; duplicates are removed.
        """
        unique_sets: list[tuple[str, ...]] = [tuple(self.primary_key_names)]

        for column in self.mapper.columns:
            if column.unique:
                unique_sets.append((column.key,))

        for constraint in self.mapper.local_table.constraints:
            if isinstance(constraint, UniqueConstraint):
                unique_sets.append(tuple(col.key for col in constraint.columns))

        return list(dict.fromkeys(unique_sets))

    def relationship(self, name: str) -> Relationship:
        return self.mapper.relationships[name]

    def related(self, name: str) -> "ModelClass":
        return ModelClass(self.mapper.relationships[name].mapper.class_)
