from typing import Any

from cellar.database import PostgresqlDB
from cellar.database.models import Customer
from cellar.database.enums import ConsignedStatus
from cellar.database.schemas import CustomerInput
from cellar.logging import get_logger
from cellar.utils import aware_utcnow

logger = get_logger(__name__)


class CustomerRepository:
    def __init__(self, db: PostgresqlDB):
        self.db = db

    async def create(self, customer: CustomerInput) -> Customer:
        """Create a customer, and its address when any address field is filled in."""
        data: dict[str, Any] = customer.column_data()

        if customer.address is not None and not customer.address.blank:
            data["address"] = {"create": customer.address.model_dump()}

        new_customer = await self.db.customer.create(data)
        logger.info(f"Created customer {new_customer.id}")

        return new_customer

    async def existing_customer(
        self,
        document: str = None,
        email: str = None,
        state_registration: str = None,
        customer_id: str = None
    ) -> Customer | None:
        """First customer (other than ``customer_id``) sharing any of the unique fields."""
        candidates = [
            {field: value}
            for field, value in (
                ("document", document),
                ("email", email),
                ("state_registration", state_registration)
            )
            if value is not None
        ]

        if not candidates:
            return None

        where: dict[str, Any] = {"OR": candidates}

        if customer_id is not None:
            where = {"AND": [{"id": {"not": customer_id}}, where]}

        return await self.db.customer.find_first(where)

    async def find_by_id(self, customer_id: str) -> Customer | None:
        return await self.db.customer.find_first(
            {"id": customer_id, "disabled_at": None},
            include={"address": True}
        )

    async def list_customers(self, search_term: str = None) -> list[Customer]:
        return await self.db.customer.find_many(
            where={
                "disabled_at": None,
                "name": {"contains": search_term, "mode": "insensitive"}
            },
            select={
                "id": True,
                "name": True,
                "contact_person": True,
                "email": True,
                "cellphone": True,
                "business_phone": True
            },
            order_by={"created_at": "desc"}
        )

    async def list_customers_summary(self) -> list[Customer]:
        in_progress = {"status": ConsignedStatus.IN_PROGRESS}

        return await self.db.customer.find_many(
            where={
                "disabled_at": None,
                "consigned": {"some": in_progress}
            },
            select={
                "id": True,
                "name": True,
                "consigned": {
                    "where": in_progress,
                    "select": {
                        "id": True,
                        "wines_on_consigned": {
                            "select": {
                                "balance": True,
                                "wine": {"select": {"type": True}}
                            }
                        }
                    }
                }
            },
            order_by={"name": "asc"}
        )

    async def update(self, customer_id: str, customer: CustomerInput) -> Customer:
        """Update the fields the caller set; a non-blank address is updated or created."""
        data: dict[str, Any] = customer.column_data(partial=True)

        if customer.address is not None and not customer.address.blank:
            address = customer.address.model_dump()
            data["address"] = {"upsert": {"create": address, "update": address}}

        return await self.db.customer.update({"id": customer_id}, data)

    async def disable_customer(self, customer_id: str):
        await self.db.customer.update({"id": customer_id}, {"disabled_at": aware_utcnow()})
        logger.info(f"Disabled customer {customer_id}")
