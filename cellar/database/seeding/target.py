from enum import StrEnum


class SeedTarget(StrEnum):
    """CLI-facing seed targets."""
    ALL = "all"
    CUSTOMERS = "customers"
    WINES = "wines"
    USERS = "users"
    CONSIGNMENTS = "consignments"


class SeederTarget(StrEnum):
    """Internal seeder targets, one per concrete ``Seeder``."""
    CUSTOMER = "customer"
    WINE = "wine"
    USER = "user"
    CONSIGNED = "consigned"

    @property
    def seed_title(self) -> str:
        return SEEDER_TO_CLI[self].capitalize()


CLI_TO_SEEDER: dict[SeedTarget, SeederTarget] = {
    SeedTarget.CUSTOMERS: SeederTarget.CUSTOMER,
    SeedTarget.WINES: SeederTarget.WINE,
    SeedTarget.USERS: SeederTarget.USER,
    SeedTarget.CONSIGNMENTS: SeederTarget.CONSIGNED
}

SEEDER_TO_CLI: dict[SeederTarget, SeedTarget] = {v: k for k, v in CLI_TO_SEEDER.items()}
