from typing import Any

from sqlalchemy.sql import select, or_, cast
from sqlalchemy.sql.sqltypes import Integer
from sqlalchemy.sql.functions import func
from sqlalchemy.ext.asyncio import AsyncSession

from cellar.database import PostgresqlDB
from cellar.database.crud import session_manager, db_session_resolver
from cellar.database.models import Wine, WineOnConsigned, Consigned, Customer
from cellar.database.enums import ConsignedStatus

WINE_LIST_LIMIT = 10


class WineRepository:
    def __init__(self, db: PostgresqlDB):
        self.db = db

    async def create_wine(self, data: dict[str, Any]) -> Wine:
        return await self.db.wine.create(data)

    async def find_by_id(self, wine_id: str) -> Wine | None:
        return await self.db.wine.find_unique({"id": wine_id})

    async def find_wine_details(self, wine_id: str) -> Wine | None:
        """Wine with its line items on in-progress consignments of active customers."""
        return await self.db.wine.find_unique(
            {"id": wine_id},
            include={
                "wine_on_consigned": {
                    "where": {
                        "consigned": {
                            "status": ConsignedStatus.IN_PROGRESS,
                            "customer": {"disabled_at": None}
                        }
                    },
                    "include": {
                        "consigned": {"include": {"customer": True}}
                    }
                }
            }
        )

    async def find_many(self, search_term: str = None) -> list[Wine]:
        return await self.db.wine.find_many(
            where={"name": {"contains": search_term, "mode": "insensitive"}},
            order_by={"created_at": "desc"},
            take=WINE_LIST_LIMIT
        )

    async def update_wine(self, wine_id: str, data: dict[str, Any]) -> Wine:
        return await self.db.wine.update({"id": wine_id}, data)

    async def delete_wine(self, wine_id: str):
        await self.db.wine.delete({"id": wine_id})

    @session_manager(db_session_resolver)
    async def wine_metrics(
        self,
        page: int,
        page_size: int,
        search_term: str = None,
        session: AsyncSession = None
    ) -> list[dict[str, Any]]:
        """Balance per wine and customer over in-progress consignments of active customers.

        Each row carries ``total``, the number of (wine, customer) groups across all
        pages. Rows are ordered by customer name, then wine id.
        """
        conditions = [
            Consigned.status == ConsignedStatus.IN_PROGRESS,
            Customer.disabled_at.is_(None)
        ]

        if search_term:
            pattern = f"%{search_term}%"
            conditions.append(or_(Wine.name.ilike(pattern), Customer.name.ilike(pattern)))

        select_stmt = (
            select(
                Wine.name.label("wine_name"),
                Wine.id.label("wine_id"),
                Wine.updated_at.label("updated_at"),
                Customer.name.label("customer_name"),
                cast(func.count().over(), Integer).label("total"),
                cast(func.sum(WineOnConsigned.balance), Integer).label("total_balance")
            )
            .join(WineOnConsigned, WineOnConsigned.wine_id == Wine.id)
            .join(Consigned, WineOnConsigned.consigned_id == Consigned.id)
            .join(Customer, Consigned.customer_id == Customer.id)
            .where(*conditions)
            .group_by(Wine.id, Customer.name)
            .order_by(Customer.name, Wine.id)
            .limit(page_size)
            .offset((page - 1) * page_size)
        )

        return [dict(row) for row in (await session.execute(select_stmt)).mappings().all()]
