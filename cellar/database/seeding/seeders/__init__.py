from .base import Seeder
from .customer import CustomerSeeder
from .wine import WineSeeder
from .user import UserSeeder
from .consigned import ConsignedSeeder

__all__ = [
    "Seeder",
    "CustomerSeeder",
    "WineSeeder",
    "UserSeeder",
    "ConsignedSeeder"
]
