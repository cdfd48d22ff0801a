from cellar.database.models import Consigned
from ..target import SeederTarget
from .base import Seeder


class ConsignedSeeder(Seeder):
    target = SeederTarget.CONSIGNED
    fixture_name = "consignments.json"

    async def _seed_entry(self, entry: dict):
        if await self.db.get(Consigned, id=entry["id"], session=self.session):
            return

        lines = [
            {"wine_id": item["wine_id"], "count": item["count"], "balance": item.get("balance", item["count"])}
            for item in entry["items"]
        ]
        data = {k: v for k, v in entry.items() if k != "items"}
        data["wines_on_consigned"] = {"create": lines}

        await self.db.create(Consigned, data, session=self.session)
