from .customer import CustomerService
from .user import UserService
from .wine import WineService
from .consigned import ConsignedService

__all__ = [
    "CustomerService",
    "UserService",
    "WineService",
    "ConsignedService"
]
