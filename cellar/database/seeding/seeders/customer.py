from cellar.database.models import Customer
from ..target import SeederTarget
from .base import Seeder


class CustomerSeeder(Seeder):
    target = SeederTarget.CUSTOMER
    fixture_name = "customers.json"

    async def _seed_entry(self, entry: dict):
        if await self.db.get(Customer, id=entry["id"], session=self.session):
            return

        data = {k: v for k, v in entry.items() if k != "address"}

        if address := entry.get("address"):
            data["address"] = {"create": address}

        await self.db.create(Customer, data, session=self.session)
