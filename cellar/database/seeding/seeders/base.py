import asyncio
import os
import json
from abc import ABC, abstractmethod

from sqlalchemy.ext.asyncio.session import AsyncSession

from cellar.database import PostgresqlDB
from cellar.database.crud import session_manager, db_session_resolver
from ..event import SeedEvent
from ..target import SeederTarget

FIXTURES_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "fixtures")


class Seeder(ABC):
    target: SeederTarget
    fixture_name: str

    def __init__(self, db: PostgresqlDB):
        self.db = db
        self.data = self._load()
        self.progress: int = 0
        self.total = len(self.data)
        self.session: AsyncSession | None = None

    @session_manager(session_resolver=db_session_resolver, autoflush_allowed=False)
    async def seed(self, queue: asyncio.Queue[SeedEvent | None], session: AsyncSession = None):
        self.session = session
        await queue.put(SeedEvent(self.target, self.progress, self.total))

        for entry in self.data:
            await self._seed_entry(entry)
            self.progress += 1
            await queue.put(SeedEvent(self.target, self.progress, self.total))

    @abstractmethod
    async def _seed_entry(self, entry: dict):
        ...

    def _load(self) -> list[dict]:
        with open(self.fixture_path, encoding="utf-8") as f:
            return json.load(f)

    @property
    def fixture_path(self) -> str:
        return os.path.join(FIXTURES_PATH, self.fixture_name)
