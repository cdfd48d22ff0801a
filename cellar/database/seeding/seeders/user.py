from cellar.database.models import User
from cellar.security import hash_password
from ..target import SeederTarget
from .base import Seeder


class UserSeeder(Seeder):
    """Seeds users; ``roles`` in the fixture are role names created by setup."""
    target = SeederTarget.USER
    fixture_name = "users.json"

    async def _seed_entry(self, entry: dict):
        if await self.db.get(User, email=entry["email"], session=self.session):
            return

        data = {k: v for k, v in entry.items() if k != "roles"}
        data["password"] = hash_password(entry["password"])
        data["roles"] = {"create": [{"role": {"connect": {"name": name}}} for name in entry.get("roles", [])]}

        await self.db.create(User, data, session=self.session)
