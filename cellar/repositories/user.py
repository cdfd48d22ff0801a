from typing import Any, Iterable

from cellar.database import PostgresqlDB
from cellar.database.models import User
from cellar.database.schemas import UserInput

USER_DETAILS_SELECT = {
    "id": True,
    "name": True,
    "email": True,
    "associated_customer_id": True,
    "created_at": True,
    "roles": {"select": {"role": {"select": {"id": True, "name": True}}}},
    "customer": {
        "select": {
            "id": True,
            "name": True,
            "consigned": {"select": {"id": True}}
        }
    }
}


class UserRepository:
    def __init__(self, db: PostgresqlDB):
        self.db = db

    async def create_user(self, user: UserInput) -> User:
        return await self.db.user.create(user.model_dump())

    async def find_by_email(self, email: str) -> User | None:
        return await self.db.user.find_unique({"email": email.strip().lower()})

    async def find_by_id(self, user_id: str) -> User | None:
        return await self.db.user.find_unique({"id": user_id}, select=USER_DETAILS_SELECT)

    async def find_many(self, search_term: str = None) -> list[User]:
        """Users whose name contains ``search_term``, without a customer or with an active one."""
        return await self.db.user.find_many(
            where={
                "name": {"contains": search_term, "mode": "insensitive"},
                "OR": [
                    {"customer": None},
                    {"customer": {"is": {"disabled_at": None}}}
                ]
            },
            select={
                "id": True,
                "name": True,
                "email": True,
                "created_at": True,
                "roles": {"select": {"role": {"select": {"id": True, "name": True}}}},
                "customer": {"select": {"id": True, "name": True}}
            },
            order_by={"created_at": "desc"}
        )

    async def existing_user(self, user_id: str, email: str) -> User | None:
        return await self.db.user.find_first({
            "AND": [
                {"id": {"not": user_id}},
                {"email": email.strip().lower()}
            ]
        })

    async def update_user(self, user_id: str, data: dict[str, Any]) -> User:
        return await self.db.user.update({"id": user_id}, data)

    async def set_roles(self, user_id: str, role_ids: Iterable[str]) -> int:
        """Replace the user's role links in one transaction; returns the new link count."""
        async with self.db.transaction() as tx:
            await tx.user_role.delete_many({"user_id": user_id})

            return await tx.user_role.create_many(
                [{"user_id": user_id, "role_id": role_id} for role_id in dict.fromkeys(role_ids)]
            )

    async def find_for_authentication(self, email: str) -> User | None:
        return await self.db.user.find_unique(
            {"email": email.strip().lower()},
            include={
                "roles": {
                    "include": {
                        "role": {"include": {"permissions": {"include": {"permission": True}}}}
                    }
                }
            }
        )
