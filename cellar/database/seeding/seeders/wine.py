from cellar.database.models import Wine
from cellar.services.wine import to_cents
from ..target import SeederTarget
from .base import Seeder


class WineSeeder(Seeder):
    target = SeederTarget.WINE
    fixture_name = "wines.json"

    async def _seed_entry(self, entry: dict):
        if await self.db.get(Wine, id=entry["id"], session=self.session):
            return

        await self.db.create(Wine, {**entry, "price": to_cents(entry["price"])}, session=self.session)
