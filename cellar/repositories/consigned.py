from cellar.database import PostgresqlDB
from cellar.database.models import Consigned, WineOnConsigned
from cellar.database.enums import ConsignedStatus
from cellar.utils import aware_utcnow

CONSIGNED_INCLUDE = {
    "customer": True,
    "wines_on_consigned": True
}


class ConsignedRepository:
    def __init__(self, db: PostgresqlDB):
        self.db = db

    async def create(self, customer_id: str, counts: dict[str, int]) -> Consigned:
        """Open a consignment whose line items start with ``balance == count``."""
        return await self.db.consigned.create(
            {
                "customer_id": customer_id,
                "wines_on_consigned": {
                    "create": [
                        {"wine_id": wine_id, "count": count, "balance": count}
                        for wine_id, count in counts.items()
                    ]
                }
            },
            include=CONSIGNED_INCLUDE
        )

    async def find_by_id(self, consigned_id: str) -> Consigned | None:
        return await self.db.consigned.find_unique({"id": consigned_id}, include=CONSIGNED_INCLUDE)

    async def find_line(self, consigned_id: str, wine_id: str) -> WineOnConsigned | None:
        return await self.db.wine_on_consigned.find_unique(
            {"consigned_id": consigned_id, "wine_id": wine_id},
            include={"consigned": True}
        )

    async def count_existing_wines(self, wine_ids: list[str]) -> int:
        return await self.db.wine.count({"id": {"in": wine_ids}})

    async def decrement_balance(self, consigned_id: str, wine_id: str, quantity: int) -> WineOnConsigned:
        return await self.db.wine_on_consigned.update(
            {"consigned_id": consigned_id, "wine_id": wine_id},
            {"balance": {"decrement": quantity}}
        )

    async def close(self, consigned_id: str, status: ConsignedStatus = ConsignedStatus.FINISHED) -> Consigned:
        return await self.db.consigned.update(
            {"id": consigned_id},
            {"status": status, "closed_at": aware_utcnow()},
            include=CONSIGNED_INCLUDE
        )
