from .base import Base, BaseType
from .model_class import ModelClass
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

__all__ = [
    "Base",
    "BaseType",
    "ModelClass",
    "Customer",
    "Address",
    "User",
    "Role",
    "Permission",
    "UserRole",
    "RolePermission",
    "Wine",
    "Consigned",
    "WineOnConsigned"
]
