import asyncio
from typing import AsyncIterator

from cellar.database import PostgresqlDB
from cellar.logging import get_logger
from .seeders import Seeder, CustomerSeeder, WineSeeder, UserSeeder, ConsignedSeeder
from .target import SeedTarget, SeederTarget, CLI_TO_SEEDER
from .dependencies import resolve_dependencies
from .event import SeedEvent

SEEDERS: dict[SeederTarget, type[Seeder]] = {
    SeederTarget.CUSTOMER: CustomerSeeder,
    SeederTarget.WINE: WineSeeder,
    SeederTarget.USER: UserSeeder,
    SeederTarget.CONSIGNED: ConsignedSeeder
}

logger = get_logger(__name__)


class SeederOrchestrator:
    """Runs seeders layer by layer in dependency order.

    Seeders in the same layer run concurrently, each in its own session, and their
    progress events are streamed through ``run_seeders``.
    """
    def __init__(self, db: PostgresqlDB, *targets: SeedTarget):
        self.db = db
        targets = set(targets)

        if not targets.issubset(set(SeedTarget)):
            raise TypeError(f"Invalid target(s) provided, all must be {SeedTarget}")

        self.targets: set[SeederTarget] = self._normalize_cli_targets(targets)
        self.execution_order: list[list[SeederTarget]] = resolve_dependencies(self.targets)
        self.seeders = {
            target: SEEDERS[target](db)
            for layer in self.execution_order
            for target in layer
        }
        self.total = sum(seeder.total for seeder in self.seeders.values())

    async def run_seeders(self) -> AsyncIterator[SeedEvent]:
        queue: asyncio.Queue[SeedEvent | None] = asyncio.Queue()

        for layer in self.execution_order:
            async def wrap(target: SeederTarget):
                try:
                    await self.seeders[target].seed(queue=queue)
                finally:
                    await queue.put(None)

            tasks = [
                asyncio.create_task(wrap(target), name=f"{target.seed_title} Seed Task")
                for target in layer
            ]

            remaining = len(layer)

            while remaining:
                event = await queue.get()

                if event is None:
                    remaining -= 1
                    continue

                yield event

            await asyncio.gather(*tasks)
            logger.debug(f"Seeded layer: {', '.join(layer)}")

    @staticmethod
    def _normalize_cli_targets(targets: set[SeedTarget]) -> set[SeederTarget]:
        if SeedTarget.ALL in targets:
            return set(SeederTarget)

        return {CLI_TO_SEEDER[t] for t in targets}
