from .customer import CustomerRepository
from .user import UserRepository
from .wine import WineRepository
from .consigned import ConsignedRepository

__all__ = [
    "CustomerRepository",
    "UserRepository",
    "WineRepository",
    "ConsignedRepository"
]
