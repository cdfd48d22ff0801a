from .target import SeedTarget, SeederTarget, CLI_TO_SEEDER, SEEDER_TO_CLI
from .dependencies import DEPENDENCIES, resolve_dependencies
from .event import SeedEvent
from .orchestrator import SeederOrchestrator

__all__ = [
    "SeedTarget",
    "SeederTarget",
    "CLI_TO_SEEDER",
    "SEEDER_TO_CLI",
    "DEPENDENCIES",
    "resolve_dependencies",
    "SeedEvent",
    "SeederOrchestrator"
]
